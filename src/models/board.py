"""
Board and settings data models.

Settings is the single persisted document:

    {
      "boards": [
        {"id", "name",
         "filters": {"tags", "excludeTags", "folders", "status"},
         "data": {"layout", "edges", "nodeStatus", "textNodes"}}
      ],
      "lastActiveBoardId": "..."
    }

The from_dict/to_dict pairs translate between that camelCase wire shape and
the dataclasses below. Loading tolerates missing keys on older records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_BOARD_ID = "default"
DEFAULT_BOARD_NAME = "Main Board"
DEFAULT_STATUS_FILTER = [" ", "/"]


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Position:
        return cls(x=raw.get("x", 0.0), y=raw.get("y", 0.0))

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}


@dataclass
class Edge:
    """
    A directed connection between two nodes.

    ``source`` and ``target`` are task identifiers or text node ids. Canvas
    specific fields (handles, colours, labels) are kept in ``meta`` verbatim.
    """

    source: str
    target: str
    id: Optional[str] = None
    label: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Edge:
        extra = {k: v for k, v in raw.items() if k not in ("source", "target", "id", "label")}
        return cls(
            source=raw.get("source", ""),
            target=raw.get("target", ""),
            id=raw.get("id"),
            label=raw.get("label"),
            meta=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = dict(self.meta)
        if self.id is not None:
            d["id"] = self.id
        d["source"] = self.source
        d["target"] = self.target
        if self.label is not None:
            d["label"] = self.label
        return d


@dataclass
class TextNode:
    """Free-standing annotation placed on the canvas."""

    id: str
    text: str = ""
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> TextNode:
        return cls(
            id=raw.get("id", ""),
            text=raw.get("text", ""),
            x=raw.get("x", 0.0),
            y=raw.get("y", 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "x": self.x, "y": self.y}


@dataclass
class BoardFilters:
    tags: List[str] = field(default_factory=list)
    exclude_tags: List[str] = field(default_factory=list)
    folders: List[str] = field(default_factory=list)
    status: List[str] = field(default_factory=lambda: list(DEFAULT_STATUS_FILTER))

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> BoardFilters:
        return cls(
            tags=list(raw.get("tags") or []),
            exclude_tags=list(raw.get("excludeTags") or []),
            folders=list(raw.get("folders") or []),
            status=list(raw["status"]) if raw.get("status") is not None else list(DEFAULT_STATUS_FILTER),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tags": list(self.tags),
            "excludeTags": list(self.exclude_tags),
            "folders": list(self.folders),
            "status": list(self.status),
        }


@dataclass
class BoardData:
    """Persisted graph state of one board."""

    layout: Dict[str, Position] = field(default_factory=dict)
    edges: List[Edge] = field(default_factory=list)
    node_status: Dict[str, str] = field(default_factory=dict)
    text_nodes: List[TextNode] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> BoardData:
        return cls(
            layout={k: Position.from_dict(v) for k, v in (raw.get("layout") or {}).items()},
            edges=[Edge.from_dict(e) for e in (raw.get("edges") or [])],
            node_status=dict(raw.get("nodeStatus") or {}),
            text_nodes=[TextNode.from_dict(n) for n in (raw.get("textNodes") or [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layout": {k: v.to_dict() for k, v in self.layout.items()},
            "edges": [e.to_dict() for e in self.edges],
            "nodeStatus": dict(self.node_status),
            "textNodes": [n.to_dict() for n in self.text_nodes],
        }


@dataclass
class Board:
    id: str
    name: str
    filters: BoardFilters = field(default_factory=BoardFilters)
    data: BoardData = field(default_factory=BoardData)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Board:
        return cls(
            id=raw.get("id", DEFAULT_BOARD_ID),
            name=raw.get("name", DEFAULT_BOARD_NAME),
            filters=BoardFilters.from_dict(raw.get("filters") or {}),
            data=BoardData.from_dict(raw.get("data") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "filters": self.filters.to_dict(),
            "data": self.data.to_dict(),
        }


def default_board() -> Board:
    return Board(id=DEFAULT_BOARD_ID, name=DEFAULT_BOARD_NAME)


@dataclass
class Settings:
    """Process-wide state: every board plus the last active board id."""

    boards: List[Board] = field(default_factory=lambda: [default_board()])
    last_active_board_id: str = DEFAULT_BOARD_ID

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> Settings:
        """Merge a loaded document over the defaults."""
        raw = raw or {}
        boards = [Board.from_dict(b) for b in (raw.get("boards") or [])]
        if not boards:
            boards = [default_board()]
        last_active = raw.get("lastActiveBoardId")
        if not any(b.id == last_active for b in boards):
            last_active = boards[0].id
        return cls(boards=boards, last_active_board_id=last_active)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "boards": [b.to_dict() for b in self.boards],
            "lastActiveBoardId": self.last_active_board_id,
        }

    def find_board(self, board_id: str) -> Optional[Board]:
        for board in self.boards:
            if board.id == board_id:
                return board
        return None
