from .identity import fallback_key, resolve_task_id
from .line_normalizer import detect_anchor, display_text
from .list_index import ListIndex, ListItem, scan_list_items

__all__ = [
    "detect_anchor",
    "display_text",
    "fallback_key",
    "resolve_task_id",
    "ListIndex",
    "ListItem",
    "scan_list_items",
]
