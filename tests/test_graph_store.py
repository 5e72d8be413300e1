"""
Tests for graph/store.py, graph/settings_store.py and models/board.py.

Covers:
- loading: defaults, empty boards, older records without nodeStatus/textNodes
- save_board_data: field-level merge, unknown board no-op
- update_board_config: partial filters, rename (lock follows the board), clash
- board collection: create, delete (never the last), set active
- on-disk settings: atomic save, round trip, corrupt file
"""

import json
import sys
import threading
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from conftest import MemorySettingsStore
from graph.settings_store import SettingsStore
from graph.store import GraphStore
from models.board import BoardFilters, Edge, Position, Settings, TextNode


def _two_boards():
    return {
        "boards": [
            {
                "id": "b1",
                "name": "One",
                "filters": {"tags": ["#work"], "excludeTags": [], "folders": [], "status": [" "]},
                "data": {
                    "layout": {"t1": {"x": 1, "y": 1}},
                    "edges": [{"source": "t1", "target": "t2"}],
                    "nodeStatus": {"t1": "x"},
                    "textNodes": [],
                },
            },
            {"id": "b2", "name": "Two", "filters": {}, "data": {}},
        ],
        "lastActiveBoardId": "b2",
    }


class TestLoading:
    def test_first_run_synthesises_default(self):
        store = GraphStore(MemorySettingsStore(None))
        boards = store.list_boards()
        assert len(boards) == 1
        assert boards[0].id == "default"
        assert boards[0].name == "Main Board"
        assert boards[0].filters.status == [" ", "/"]
        assert store.settings.last_active_board_id == "default"

    def test_empty_boards_synthesises_default(self):
        store = GraphStore(MemorySettingsStore({"boards": [], "lastActiveBoardId": "gone"}))
        assert [b.id for b in store.list_boards()] == ["default"]

    def test_older_record_defaults(self):
        raw = {"boards": [{"id": "old", "name": "Old", "filters": {"tags": []},
                           "data": {"layout": {}, "edges": []}}]}
        store = GraphStore(MemorySettingsStore(raw))
        board = store.get_board("old")
        assert board.data.node_status == {}
        assert board.data.text_nodes == []
        assert store.settings.last_active_board_id == "old"

    def test_get_board_falls_back_to_first(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        assert store.get_board("missing").id == "b1"
        assert store.find_board("missing") is None
        assert store.active_board().id == "b2"


class TestSaveBoardData:
    def test_partial_merge(self):
        backend = MemorySettingsStore(_two_boards())
        store = GraphStore(backend)

        assert store.save_board_data("b1", {"layout": {"t1": {"x": 5, "y": 6}}})

        data = store.get_board("b1").data
        assert data.layout == {"t1": Position(5, 6)}
        assert [(e.source, e.target) for e in data.edges] == [("t1", "t2")]
        assert data.node_status == {"t1": "x"}
        assert backend.save_count == 1

    def test_all_fields(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        store.save_board_data("b2", {
            "edges": [{"source": "a", "target": "b", "sourceHandle": "right"}],
            "nodeStatus": {"a": "/"},
            "textNodes": [{"id": "n1", "text": "hello", "x": 3, "y": 4}],
        })
        data = store.get_board("b2").data
        assert data.edges == [Edge("a", "b", meta={"sourceHandle": "right"})]
        assert data.node_status == {"a": "/"}
        assert data.text_nodes == [TextNode("n1", "hello", 3, 4)]

    def test_none_fields_ignored(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        store.save_board_data("b1", {"edges": None, "nodeStatus": {}})
        data = store.get_board("b1").data
        assert len(data.edges) == 1
        assert data.node_status == {}

    def test_unknown_board(self):
        backend = MemorySettingsStore(_two_boards())
        store = GraphStore(backend)
        assert not store.save_board_data("nope", {"layout": {}})
        assert backend.save_count == 0


class TestUpdateBoardConfig:
    def test_partial_filters(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        assert store.update_board_config("b1", {"filters": {"folders": ["Projects/"]}})
        filters = store.get_board("b1").filters
        assert filters.folders == ["Projects/"]
        assert filters.tags == ["#work"]
        assert filters.status == [" "]

    def test_filters_object_replaces(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        store.update_board_config("b1", {"filters": BoardFilters(tags=["#home"])})
        assert store.get_board("b1").filters.tags == ["#home"]

    def test_name(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        store.update_board_config("b1", {"name": "Renamed"})
        assert store.get_board("b1").name == "Renamed"

    def test_rename_id_follows_active(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        assert store.update_board_config("b2", {"id": "b3"})
        assert store.find_board("b2") is None
        assert store.settings.last_active_board_id == "b3"

    def test_rename_keeps_board_serialised(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        entered = threading.Event()

        def writer():
            with store.board_lock("b3"):
                entered.set()

        with store.board_lock("b2"):
            assert store.update_board_config("b2", {"id": "b3"})
            thread = threading.Thread(target=writer)
            thread.start()
            assert not entered.wait(0.2)
        assert entered.wait(2)
        thread.join(2)

    def test_rename_clash(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        assert not store.update_board_config("b2", {"id": "b1"})
        assert store.find_board("b2") is not None

    def test_unknown_board(self):
        backend = MemorySettingsStore(_two_boards())
        store = GraphStore(backend)
        assert not store.update_board_config("nope", {"name": "x"})
        assert backend.save_count == 0


class TestBoardCollection:
    def test_create(self):
        backend = MemorySettingsStore(None)
        store = GraphStore(backend)
        board = store.create_board("Work", BoardFilters(tags=["#work"]))
        assert store.find_board(board.id) is board
        assert len(store.list_boards()) == 2
        assert backend.saved["boards"][1]["filters"]["tags"] == ["#work"]

    def test_delete_moves_active(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        assert store.delete_board("b2")
        assert store.settings.last_active_board_id == "b1"

    def test_delete_last_board_refused(self):
        store = GraphStore(MemorySettingsStore(None))
        with pytest.raises(ValueError):
            store.delete_board("default")
        assert len(store.list_boards()) == 1

    def test_delete_unknown(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        assert not store.delete_board("nope")

    def test_set_active(self):
        store = GraphStore(MemorySettingsStore(_two_boards()))
        assert store.set_active_board("b1")
        assert store.settings.last_active_board_id == "b1"
        assert not store.set_active_board("nope")
        assert store.settings.last_active_board_id == "b1"


class TestSettingsStore:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "cfg" / "data.json"
        store = SettingsStore(path)
        settings = Settings.from_dict(_two_boards())
        settings.boards[0].data.edges.append(Edge("x", "y", label="l", meta={"animated": True}))
        store.save(settings)

        assert not path.with_name("data.json.tmp").exists()
        loaded = store.load()
        assert loaded.to_dict() == settings.to_dict()
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["lastActiveBoardId"] == "b2"
        assert raw["boards"][0]["data"]["edges"][1] == {
            "animated": True, "source": "x", "target": "y", "label": "l",
        }

    def test_missing_file(self, tmp_path):
        loaded = SettingsStore(tmp_path / "none.json").load()
        assert [b.id for b in loaded.boards] == ["default"]

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        loaded = SettingsStore(path).load()
        assert [b.id for b in loaded.boards] == ["default"]

    def test_non_object(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("[]", encoding="utf-8")
        assert SettingsStore(path).load().boards[0].id == "default"

    def test_graph_store_persists_to_disk(self, tmp_path):
        path = tmp_path / "data.json"
        store = GraphStore(SettingsStore(path))
        store.save_board_data("default", {"layout": {"t": {"x": 1, "y": 2}}})
        reloaded = GraphStore(SettingsStore(path))
        assert reloaded.get_board("default").data.layout == {"t": Position(1, 2)}


class TestActiveBoardRepair:
    def test_dangling_active_id(self):
        store = GraphStore(MemorySettingsStore({"boards": [], "lastActiveBoardId": "gone"}))
        assert store.settings.last_active_board_id == "default"
