"""REST API routes for the task graph."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from api.handlers import (
    handle_board_activate,
    handle_board_create,
    handle_board_delete,
    handle_board_get,
    handle_board_list,
    handle_board_save_data,
    handle_board_update,
    handle_notices,
    handle_status,
    handle_task_add,
    handle_task_list,
    handle_task_promote,
    handle_task_update_text,
)


# ---------------------------------------------------------------------------
# Request body models
# ---------------------------------------------------------------------------


class FiltersBody(BaseModel):
    tags: Optional[List[str]] = None
    excludeTags: Optional[List[str]] = None
    folders: Optional[List[str]] = None
    status: Optional[List[str]] = None


class BoardCreateBody(BaseModel):
    name: str
    filters: Optional[FiltersBody] = None


class BoardUpdateBody(BaseModel):
    name: Optional[str] = None
    id: Optional[str] = None
    filters: Optional[FiltersBody] = None


class BoardDataBody(BaseModel):
    layout: Optional[Dict[str, Dict[str, float]]] = None
    edges: Optional[List[Dict[str, Any]]] = None
    nodeStatus: Optional[Dict[str, str]] = None
    textNodes: Optional[List[Dict[str, Any]]] = None


class PromoteBody(BaseModel):
    task_id: str


class TaskAddBody(BaseModel):
    file_path: str
    text: str = Field(min_length=1)


class TaskTextBody(BaseModel):
    file_path: str
    line: int = Field(ge=0)
    text: str


def _filters_dict(filters: Optional[FiltersBody]) -> Optional[dict]:
    return filters.model_dump(exclude_none=True) if filters else None


def _raise_for_error(result, status_code: int = 404):
    if isinstance(result, dict) and "error" in result:
        raise HTTPException(status_code=status_code, detail=result["error"])
    return result


# ---------------------------------------------------------------------------
# Route registration
# ---------------------------------------------------------------------------


def register_routes(app_router: APIRouter, graph) -> None:
    """Attach all REST routes that use the shared TaskGraph."""

    # --- Boards ---

    @app_router.get("/boards")
    def list_boards():
        return handle_board_list(graph)

    @app_router.post("/boards", status_code=201)
    def create_board(body: BoardCreateBody):
        try:
            return handle_board_create(graph, name=body.name, filters=_filters_dict(body.filters))
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app_router.get("/boards/{board_id}")
    def get_board(board_id: str):
        return _raise_for_error(handle_board_get(graph, board_id=board_id))

    @app_router.patch("/boards/{board_id}")
    def update_board(board_id: str, body: BoardUpdateBody):
        try:
            result = handle_board_update(
                graph,
                board_id=board_id,
                name=body.name,
                new_id=body.id,
                filters=_filters_dict(body.filters),
            )
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))
        if "error" in result:
            status_code = 404 if "not found" in result["error"] else 409
            raise HTTPException(status_code=status_code, detail=result["error"])
        return result

    @app_router.delete("/boards/{board_id}")
    def delete_board(board_id: str):
        try:
            result = handle_board_delete(graph, board_id=board_id)
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _raise_for_error(result)

    @app_router.post("/boards/{board_id}/activate")
    def activate_board(board_id: str):
        try:
            result = handle_board_activate(graph, board_id=board_id)
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _raise_for_error(result)

    @app_router.put("/boards/{board_id}/data")
    def save_board_data(board_id: str, body: BoardDataBody):
        try:
            result = handle_board_save_data(
                graph,
                board_id=board_id,
                layout=body.layout,
                edges=body.edges,
                node_status=body.nodeStatus,
                text_nodes=body.textNodes,
            )
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _raise_for_error(result)

    # --- Tasks ---

    @app_router.get("/boards/{board_id}/tasks")
    def list_tasks(board_id: str, refresh: bool = Query(False)):
        return handle_task_list(graph, board_id=board_id, refresh=refresh)

    @app_router.post("/boards/{board_id}/promote")
    def promote_task(board_id: str, body: PromoteBody):
        try:
            return handle_task_promote(graph, board_id=board_id, task_id=body.task_id)
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app_router.post("/tasks", status_code=201)
    def add_task(body: TaskAddBody):
        try:
            result = handle_task_add(graph, file_path=body.file_path, text=body.text)
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _raise_for_error(result, status_code=400)

    @app_router.patch("/tasks")
    def update_task_text(body: TaskTextBody):
        try:
            result = handle_task_update_text(
                graph, file_path=body.file_path, line=body.line, text=body.text
            )
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _raise_for_error(result, status_code=400)

    # --- Diagnostics ---

    @app_router.get("/notices")
    def list_notices(limit: int = Query(20)):
        return handle_notices(graph, limit=limit)

    @app_router.get("/status")
    def get_status():
        return handle_status(graph)
