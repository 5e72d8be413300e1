"""
Interactive harness for exercising the task graph without MCP integration.

Usage:
    python harness.py <VAULT_ROOT> [--settings PATH] [--exclude .git,.obsidian]

Runs a quick smoke test against the vault, then drops into a small REPL
where boards can be inspected and tasks promoted or appended.
"""

import json
import sys
from pathlib import Path

# Add src/ to path so imports work
sys.path.insert(0, str(Path(__file__).parent / "src"))

from server import build_graph
from utils.ids import is_anchor_id


def smoke_test(graph) -> None:
    """Quick automated checks after loading."""
    print("\n=== Smoke Test ===")
    print(f"  Vault root:   {graph.documents.root}")
    print(f"  Documents:    {len(graph.documents.list_documents())}")
    for board in graph.store.list_boards():
        tasks = graph.tasks.tasks(board.id)
        anchored = sum(1 for t in tasks if is_anchor_id(t.id))
        print(f"  Board {board.id!r} ({board.name}): {len(tasks)} tasks, {anchored} anchored")
        for t in tasks[:5]:
            print(f"    [{t.status}] {t.id}")
        if len(tasks) > 5:
            print(f"    ... and {len(tasks) - 5} more")
    print("\n=== Smoke Test Complete ===\n")


def repl(graph) -> None:
    """Simple REPL for interactive exploration."""
    print("Interactive mode. Type 'help' for commands, 'quit' to exit.\n")

    commands = {
        "help":     "Show this help",
        "boards":   "List boards",
        "board":    "Show board data. Usage: board <id>",
        "tasks":    "List tasks. Usage: tasks [board_id]",
        "promote":  "Anchor a task. Usage: promote <board_id> <task_id>",
        "add":      "Append a task. Usage: add <path> <text...>",
        "notices":  "Show recent notices",
        "quit":     "Exit",
    }

    while True:
        try:
            line = input("task-graph> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not line:
            continue

        parts = line.split()
        cmd = parts[0].lower()

        if cmd == "quit" or cmd == "exit":
            break

        elif cmd == "help":
            for k, v in commands.items():
                print(f"  {k:12s} {v}")

        elif cmd == "boards":
            active = graph.store.settings.last_active_board_id
            for b in graph.store.list_boards():
                marker = "*" if b.id == active else " "
                print(f" {marker} {b.id:12s} {b.name}  filters={b.filters.to_dict()}")

        elif cmd == "board":
            if len(parts) < 2:
                print("Usage: board <id>")
                continue
            b = graph.store.find_board(parts[1])
            if b:
                print(json.dumps(b.to_dict(), indent=2, ensure_ascii=False))
            else:
                print(f"  Board '{parts[1]}' not found")

        elif cmd == "tasks":
            board_id = parts[1] if len(parts) > 1 else None
            tasks = graph.tasks.refresh_board(graph.store.get_board(board_id).id)
            print(f"Found {len(tasks)} tasks:")
            for t in tasks:
                print(f"  [{t.status}] {t.id}  {t.text}")

        elif cmd == "promote":
            if len(parts) < 3:
                print("Usage: promote <board_id> <task_id>")
                continue
            new_id = graph.promote(parts[1], " ".join(parts[2:]))
            print(f"  -> {new_id}")

        elif cmd == "add":
            if len(parts) < 3:
                print("Usage: add <path> <text...>")
                continue
            new_id = graph.append_task(parts[1], " ".join(parts[2:]))
            print(f"  -> {new_id}")

        elif cmd == "notices":
            for n in graph.notices.recent():
                print(f"  {n.created:%H:%M:%S} [{n.level}] {n.message}")

        else:
            print(f"Unknown command: {cmd}. Type 'help' for available commands.")


def main():
    if len(sys.argv) < 2:
        print("Usage: python harness.py <VAULT_ROOT> [--settings PATH] [--exclude .git,.obsidian]")
        sys.exit(1)

    vault_root = Path(sys.argv[1]).resolve()
    if not vault_root.is_dir():
        print(f"Error: {vault_root} is not a directory")
        sys.exit(1)

    exclude_dirs = {".git", ".obsidian", "node_modules", ".trash"}
    settings_path = vault_root / ".task-graph" / "data.json"
    args = sys.argv[2:]
    for i, arg in enumerate(args):
        if arg == "--exclude" and i + 1 < len(args):
            exclude_dirs = set(args[i + 1].split(","))
        elif arg == "--settings" and i + 1 < len(args):
            settings_path = Path(args[i + 1])

    print(f"Loading vault: {vault_root}")
    print(f"Settings:      {settings_path}")

    graph = build_graph(vault_root, exclude_dirs, settings_path)

    smoke_test(graph)
    repl(graph)

    print("Done.")


if __name__ == "__main__":
    main()
