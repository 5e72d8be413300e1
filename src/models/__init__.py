from .task import Task
from .board import Board, BoardData, BoardFilters, Edge, Position, Settings, TextNode

__all__ = [
    "Task",
    "Board",
    "BoardData",
    "BoardFilters",
    "Edge",
    "Position",
    "Settings",
    "TextNode",
]
