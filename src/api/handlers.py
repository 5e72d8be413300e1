"""Handler functions shared by MCP tools and REST API."""

import logging
from typing import Any, Dict, List, Optional

from models.board import Board, BoardFilters

log = logging.getLogger(__name__)


def _task_to_dict(task) -> dict:
    return {
        "id": task.id,
        "text": task.text,
        "status": task.status,
        "file": task.file_name,
        "path": task.path,
        "line": task.line,
        "rawText": task.raw_text,
    }


def _board_to_dict(board: Board, include_data: bool = True) -> dict:
    d = {"id": board.id, "name": board.name, "filters": board.filters.to_dict()}
    if include_data:
        d["data"] = board.data.to_dict()
    return d


def _not_found(board_id: str) -> dict:
    return {"error": f"Board '{board_id}' not found"}


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------


def handle_board_list(graph) -> List[dict]:
    active = graph.store.settings.last_active_board_id
    results = []
    for board in graph.store.list_boards():
        d = _board_to_dict(board, include_data=False)
        d["active"] = board.id == active
        results.append(d)
    return results


def handle_board_get(graph, *, board_id: str) -> dict:
    board = graph.store.find_board(board_id)
    if board is None:
        return _not_found(board_id)
    return _board_to_dict(board)


def handle_board_create(graph, *, name: str, filters: Optional[Dict[str, Any]] = None) -> dict:
    board = graph.store.create_board(name, BoardFilters.from_dict(filters or {}))
    return _board_to_dict(board)


def handle_board_update(
    graph,
    *,
    board_id: str,
    name: Optional[str] = None,
    new_id: Optional[str] = None,
    filters: Optional[Dict[str, Any]] = None,
) -> dict:
    partial: Dict[str, Any] = {}
    if name is not None:
        partial["name"] = name
    if new_id:
        partial["id"] = new_id
    if filters:
        partial["filters"] = filters

    if graph.store.find_board(board_id) is None:
        return _not_found(board_id)
    if not graph.store.update_board_config(board_id, partial):
        return {"error": f"Board id '{new_id}' is already in use"}

    current_id = new_id or board_id
    graph.tasks.forget(board_id)
    return _board_to_dict(graph.store.get_board(current_id))


def handle_board_delete(graph, *, board_id: str) -> dict:
    if not graph.store.delete_board(board_id):
        return _not_found(board_id)
    graph.tasks.forget(board_id)
    return {"deleted": board_id}


def handle_board_activate(graph, *, board_id: str) -> dict:
    if not graph.store.set_active_board(board_id):
        return _not_found(board_id)
    return {"lastActiveBoardId": board_id}


def handle_board_save_data(
    graph,
    *,
    board_id: str,
    layout: Optional[Dict[str, Any]] = None,
    edges: Optional[List[Dict[str, Any]]] = None,
    node_status: Optional[Dict[str, str]] = None,
    text_nodes: Optional[List[Dict[str, Any]]] = None,
) -> dict:
    partial = {
        "layout": layout,
        "edges": edges,
        "nodeStatus": node_status,
        "textNodes": text_nodes,
    }
    if not graph.store.save_board_data(board_id, partial):
        return _not_found(board_id)
    return _board_to_dict(graph.store.get_board(board_id))


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def handle_task_list(graph, *, board_id: Optional[str] = None, refresh: bool = False) -> List[dict]:
    board = graph.store.get_board(board_id)
    if refresh:
        tasks = graph.tasks.refresh_board(board.id)
    else:
        tasks = graph.tasks.tasks(board.id)
    return [_task_to_dict(t) for t in tasks]


def handle_task_promote(graph, *, board_id: str, task_id: str) -> dict:
    new_id = graph.promote(board_id, task_id)
    if new_id != task_id:
        graph.tasks.refresh_board(board_id)
    return {"id": new_id, "previousId": task_id, "promoted": new_id != task_id}


def handle_task_add(graph, *, file_path: str, text: str) -> dict:
    new_id = graph.append_task(file_path, text)
    if new_id is None:
        return {"error": f"Could not add task to '{file_path}'"}
    graph.tasks.refresh_all()
    return {"id": new_id, "file_path": file_path}


def handle_task_update_text(graph, *, file_path: str, line: int, text: str) -> dict:
    if not graph.update_task_text(file_path, line, text):
        return {"error": f"Could not update line {line} of '{file_path}'"}
    graph.tasks.refresh_all()
    return {"updated": True, "file_path": file_path, "line": line}


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


def handle_notices(graph, *, limit: int = 20) -> List[dict]:
    return [
        {"message": n.message, "level": n.level, "created": n.created.isoformat()}
        for n in graph.notices.recent(limit)
    ]


def handle_status(graph) -> dict:
    status = graph.tasks.status()
    status.update(
        {
            "vault_root": str(graph.documents.root),
            "documents": len(graph.documents.list_documents()),
            "boards": len(graph.store.list_boards()),
            "last_active_board_id": graph.store.settings.last_active_board_id,
        }
    )
    return status
