"""
Task graph server entry point.

Startup sequence:
1. Read VAULT_ROOT, EXCLUDE_DIRS and SETTINGS_PATH from environment
2. Load settings (defaults merged in, at least one board guaranteed)
3. Build the TaskGraph and extract the last active board
4. Start DocumentWatcher daemon thread (debounced refresh)
5. Start REST API server in background thread (if API_ENABLED)
6. Register MCP tools and run the MCP server (stdio transport)
"""

import logging
import os
import sys
import threading
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from api.tools import register_tools
from graph.service import TaskGraph
from graph.settings_store import SettingsStore
from graph.store import GraphStore
from parsers.list_index import ListIndex
from utils.debounce import Debouncer
from utils.notices import Notices
from vault.documents import VaultDocuments
from watcher.document_watcher import DocumentWatcher

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stderr,
)
log = logging.getLogger(__name__)

_DEFAULT_SETTINGS_DIR = ".task-graph"


def _parse_exclude_dirs(raw: str) -> set[str]:
    """Parse a comma-separated list of directory names to exclude."""
    return {part.strip() for part in raw.split(",") if part.strip()}


def _start_api_server(graph, port: int) -> None:
    """Run the FastAPI/uvicorn server in a daemon thread."""
    import uvicorn

    from api.app import create_app

    app = create_app(graph)
    log.info("Starting REST API on port %d", port)
    uvicorn.run(app, host="127.0.0.1", port=port, log_level="warning")


def build_graph(vault_root: Path, exclude_dirs: set, settings_path: Path) -> TaskGraph:
    documents = VaultDocuments(vault_root, exclude_dirs)
    index = ListIndex(documents)
    store = GraphStore(SettingsStore(settings_path))
    return TaskGraph(documents, index, store, Notices())


def main() -> None:
    vault_root_env = os.environ.get("VAULT_ROOT", "")
    if not vault_root_env:
        log.error("VAULT_ROOT environment variable is not set")
        sys.exit(1)

    vault_root = Path(vault_root_env)
    if not vault_root.is_dir():
        log.error("VAULT_ROOT does not exist or is not a directory: %s", vault_root)
        sys.exit(1)

    exclude_raw = os.environ.get("EXCLUDE_DIRS", ".git,.obsidian,node_modules,.trash")
    exclude_dirs = _parse_exclude_dirs(exclude_raw)

    settings_path = Path(
        os.environ.get("SETTINGS_PATH", vault_root / _DEFAULT_SETTINGS_DIR / "data.json")
    )

    log.info("Vault root: %s", vault_root)
    log.info("Excluded dirs: %s", exclude_dirs)
    log.info("Settings: %s", settings_path)

    graph = build_graph(vault_root, exclude_dirs, settings_path)
    active = graph.store.active_board()
    log.info("Extracted %d tasks for board %s", len(graph.tasks.tasks(active.id)), active.name)

    debounce_window = float(os.environ.get("REFRESH_DEBOUNCE", "0.5"))
    refresher = Debouncer(graph.tasks.refresh_all, window=debounce_window)
    watcher = DocumentWatcher(graph.documents, graph.index, refresher.trigger)
    watcher.start()

    api_enabled = os.environ.get("API_ENABLED", "true").lower() in ("true", "1", "yes")
    if api_enabled:
        api_port = int(os.environ.get("API_PORT", "9410"))
        api_thread = threading.Thread(
            target=_start_api_server, args=(graph, api_port), daemon=True
        )
        api_thread.start()

    mcp = FastMCP("task-graph")
    register_tools(mcp, graph)

    log.info("Starting task-graph server")
    try:
        mcp.run(transport="stdio")
    finally:
        watcher.stop()


if __name__ == "__main__":
    main()
