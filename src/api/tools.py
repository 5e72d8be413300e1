"""MCP tool registration for the task graph."""

import json
import logging
from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from api.handlers import (
    handle_board_activate,
    handle_board_create,
    handle_board_get,
    handle_board_list,
    handle_board_save_data,
    handle_board_update,
    handle_status,
    handle_task_add,
    handle_task_list,
    handle_task_promote,
    handle_task_update_text,
)

log = logging.getLogger(__name__)


def _filters(
    tags: Optional[List[str]],
    exclude_tags: Optional[List[str]],
    folders: Optional[List[str]],
    status: Optional[List[str]],
) -> dict:
    raw = {"tags": tags, "excludeTags": exclude_tags, "folders": folders, "status": status}
    return {k: v for k, v in raw.items() if v is not None}


def register_tools(mcp: FastMCP, graph) -> None:
    """Register all MCP tools onto the FastMCP instance."""

    # ------------------------------------------------------------------
    # Board tools
    # ------------------------------------------------------------------

    @mcp.tool()
    def board_list() -> str:
        """
        List all boards with their filters.

        Returns:
            JSON array of boards; the last active board has "active": true
        """
        return json.dumps(handle_board_list(graph), indent=2)

    @mcp.tool()
    def board_get(board_id: str) -> str:
        """
        Get one board including its layout, edges, status overrides and text nodes.

        Args:
            board_id: Board ID as returned by board_list

        Returns:
            JSON board object or error message
        """
        return json.dumps(handle_board_get(graph, board_id=board_id), indent=2)

    @mcp.tool()
    def board_create(
        name: str,
        tags: Optional[List[str]] = None,
        exclude_tags: Optional[List[str]] = None,
        folders: Optional[List[str]] = None,
        status: Optional[List[str]] = None,
    ) -> str:
        """
        Create a new board.

        Args:
            name: Display name
            tags: Lines must contain at least one of these (e.g. ["#work"])
            exclude_tags: Lines containing any of these are skipped
            folders: Document path prefixes to include (e.g. ["Projects/"])
            status: Checkbox characters to include (default [" ", "/"])

        Returns:
            JSON board object
        """
        return json.dumps(
            handle_board_create(graph, name=name, filters=_filters(tags, exclude_tags, folders, status)),
            indent=2,
        )

    @mcp.tool()
    def board_update(
        board_id: str,
        name: Optional[str] = None,
        tags: Optional[List[str]] = None,
        exclude_tags: Optional[List[str]] = None,
        folders: Optional[List[str]] = None,
        status: Optional[List[str]] = None,
    ) -> str:
        """
        Update a board's name or filters. Only the fields you pass change.

        Returns:
            Updated board JSON or error message
        """
        return json.dumps(
            handle_board_update(
                graph,
                board_id=board_id,
                name=name,
                filters=_filters(tags, exclude_tags, folders, status),
            ),
            indent=2,
        )

    @mcp.tool()
    def board_activate(board_id: str) -> str:
        """Mark a board as the last active one."""
        return json.dumps(handle_board_activate(graph, board_id=board_id), indent=2)

    @mcp.tool()
    def board_link(board_id: str, source: str, target: str, label: Optional[str] = None) -> str:
        """
        Add an edge between two nodes of a board.

        Args:
            board_id: Board ID
            source: Source task identifier or text node id
            target: Target task identifier or text node id
            label: Optional edge label

        Returns:
            Updated board JSON or error message
        """
        board = graph.store.find_board(board_id)
        if board is None:
            return json.dumps({"error": f"Board '{board_id}' not found"})
        edges = [e.to_dict() for e in board.data.edges]
        edge = {"source": source, "target": target}
        if label:
            edge["label"] = label
        edges.append(edge)
        return json.dumps(handle_board_save_data(graph, board_id=board_id, edges=edges), indent=2)

    # ------------------------------------------------------------------
    # Task tools
    # ------------------------------------------------------------------

    @mcp.tool()
    def task_list(board_id: Optional[str] = None, refresh: bool = False) -> str:
        """
        List the tasks a board currently shows.

        Task IDs take the form "<path>::^<anchor>" (durable) or
        "<path>::#<key>" (derived from the text; changes when the text does).

        Args:
            board_id: Board ID (defaults to the first board)
            refresh: Re-extract instead of returning the cached list

        Returns:
            JSON array of task objects
        """
        return json.dumps(handle_task_list(graph, board_id=board_id, refresh=refresh), indent=2)

    @mcp.tool()
    def task_promote(board_id: str, task_id: str) -> str:
        """
        Give a task a durable anchor ID.

        Writes "^<token>" to the end of the task's line and moves every
        layout, edge and status reference on the board to the new ID.

        Returns:
            JSON with "id" (new or unchanged) and "promoted"
        """
        try:
            return json.dumps(handle_task_promote(graph, board_id=board_id, task_id=task_id), indent=2)
        except Exception as e:
            log.exception("task_promote failed")
            return json.dumps({"error": str(e)})

    @mcp.tool()
    def task_add(file_path: str, text: str) -> str:
        """
        Append a new open task to a document.

        The task is written with an anchor, so the returned ID is durable.

        Args:
            file_path: Vault-relative document path, e.g. "Projects/x.md"
            text: Task text

        Returns:
            JSON with the new task "id", or error message
        """
        try:
            return json.dumps(handle_task_add(graph, file_path=file_path, text=text), indent=2)
        except Exception as e:
            log.exception("task_add failed")
            return json.dumps({"error": str(e)})

    @mcp.tool()
    def task_update_text(file_path: str, line: int, text: str) -> str:
        """
        Replace the text of a task line. The checkbox and any anchor are kept.

        Args:
            file_path: Vault-relative document path
            line: 0-based line index
            text: New task text

        Returns:
            JSON confirmation or error message
        """
        try:
            return json.dumps(
                handle_task_update_text(graph, file_path=file_path, line=line, text=text), indent=2
            )
        except Exception as e:
            log.exception("task_update_text failed")
            return json.dumps({"error": str(e)})

    @mcp.tool()
    def graph_status() -> str:
        """
        Show task graph statistics.

        Returns:
            JSON with vault root, document count, boards and cache state
        """
        return json.dumps(handle_status(graph), indent=2)
