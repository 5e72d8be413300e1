from .extractor import TaskExtractor
from .promotion import AnchorPromoter, migrate_references
from .service import TaskGraph
from .settings_store import SettingsStore
from .store import GraphStore

__all__ = [
    "AnchorPromoter",
    "GraphStore",
    "SettingsStore",
    "TaskExtractor",
    "TaskGraph",
    "migrate_references",
]
