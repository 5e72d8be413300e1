"""Shared fixtures: temp vaults and an in-memory settings store."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from graph.service import TaskGraph
from graph.store import GraphStore
from models.board import Settings
from parsers.list_index import ListIndex
from utils.notices import Notices
from vault.documents import VaultDocuments


class MemorySettingsStore:
    """Settings store that keeps the last saved document in memory."""

    def __init__(self, initial=None):
        self.saved = initial
        self.save_count = 0

    def load(self) -> Settings:
        return Settings.from_dict(self.saved)

    def save(self, settings: Settings) -> None:
        self.saved = settings.to_dict()
        self.save_count += 1


def _write_vault(root: Path, files: dict) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
    return root


@pytest.fixture
def make_vault(tmp_path):
    """Factory: make_vault({"a.md": "..."}) -> vault root."""
    def factory(files: dict) -> Path:
        return _write_vault(tmp_path / "vault", files)
    return factory


@pytest.fixture
def make_graph(tmp_path):
    """
    Factory building a TaskGraph over a temp vault.

    Returns (graph, vault_root, settings_store). ``tokens`` fixes the anchor
    tokens handed out, in order.
    """
    def factory(files: dict, settings: dict = None, tokens=None):
        vault = _write_vault(tmp_path / "vault", files)
        documents = VaultDocuments(vault, {".obsidian"})
        index = ListIndex(documents)
        store_backend = MemorySettingsStore(settings)
        store = GraphStore(store_backend)
        generate = None
        if tokens is not None:
            it = iter(tokens)
            generate = lambda: next(it)
        graph = TaskGraph(documents, index, store, Notices(), generate=generate)
        return graph, vault, store_backend
    return factory
