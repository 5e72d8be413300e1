"""
Tests for graph/promotion.py.

Covers:
- the write-report scenario: line rewrite, returned id, edge migration
- idempotence for anchor ids
- migration preserves counts and leaves no stale reference
- not-found / stale-line / out-of-range cases are no-ops
- document write and settings save failures push notices
- token selection avoids anchors already in the document
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from graph.promotion import AnchorPromoter, fresh_token, migrate_references
from models.board import BoardData, Edge, Position
from models.task import Task

OLD = "a.md::#writereport"

A_MD = (
    "# Notes\n"
    "\n"
    "some text\n"
    "\n"
    "- [ ] write report\n"
    "- [ ] other thing\n"
)


def _settings():
    return {
        "boards": [
            {
                "id": "b1",
                "name": "Board",
                "filters": {"tags": [], "excludeTags": [], "folders": [], "status": [" "]},
                "data": {
                    "layout": {OLD: {"x": 10, "y": 20}, "x": {"x": 0, "y": 0}},
                    "edges": [
                        {"source": OLD, "target": "x"},
                        {"source": "x", "target": OLD, "label": "after"},
                        {"source": "a.md::#otherthing", "target": "x"},
                    ],
                    "nodeStatus": {OLD: "/"},
                    "textNodes": [{"id": "x", "text": "note", "x": 0, "y": 0}],
                },
            }
        ],
        "lastActiveBoardId": "b1",
    }


def _all_refs(data: BoardData):
    refs = set(data.layout) | set(data.node_status)
    for e in data.edges:
        refs.add(e.source)
        refs.add(e.target)
    return refs


class TestPromoteScenario:
    def test_write_report(self, make_graph):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings(), tokens=["tok001"])

        new_id = graph.promote("b1", OLD)

        assert new_id == "a.md::^tok001"
        lines = (vault / "a.md").read_text(encoding="utf-8").split("\n")
        assert lines[4] == "- [ ] write report ^tok001"
        assert lines[5] == "- [ ] other thing"

        data = graph.store.get_board("b1").data
        assert data.edges[0].source == new_id
        assert data.edges[0].target == "x"
        assert data.edges[1].target == new_id
        assert data.edges[1].label == "after"
        assert data.layout[new_id] == Position(10, 20)
        assert data.node_status[new_id] == "/"

    def test_no_stale_references_and_counts_preserved(self, make_graph):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings(), tokens=["tok001"])
        before = graph.store.get_board("b1").data
        counts = (len(before.edges), len(before.layout), len(before.node_status))

        new_id = graph.promote("b1", OLD)

        data = graph.store.get_board("b1").data
        assert OLD not in _all_refs(data)
        assert (len(data.edges), len(data.layout), len(data.node_status)) == counts
        assert new_id in _all_refs(data)

    def test_persisted(self, make_graph):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings(), tokens=["tok001"])
        graph.promote("b1", OLD)

        assert backend.save_count == 1
        saved = backend.saved["boards"][0]["data"]
        assert "a.md::^tok001" in saved["layout"]
        assert OLD not in saved["layout"]
        assert saved["edges"][0]["source"] == "a.md::^tok001"

    def test_promoted_task_extracts_with_new_id(self, make_graph):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings(), tokens=["tok001"])
        graph.promote("b1", OLD)
        ids = [t.id for t in graph.get_tasks("b1")]
        assert ids == ["a.md::^tok001", "a.md::#otherthing"]


class TestPromoteNoOps:
    def test_anchor_id_is_idempotent(self, make_graph):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings(), tokens=["tok001", "tok002"])
        first = graph.promote("b1", OLD)
        content = (vault / "a.md").read_text(encoding="utf-8")
        saves = backend.save_count

        assert graph.promote("b1", first) == first
        assert (vault / "a.md").read_text(encoding="utf-8") == content
        assert backend.save_count == saves

    def test_unknown_task(self, make_graph):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings(), tokens=["tok001"])
        assert graph.promote("b1", "a.md::#nothing") == "a.md::#nothing"
        assert (vault / "a.md").read_text(encoding="utf-8") == A_MD
        assert backend.save_count == 0

    def test_unknown_board(self, make_graph):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings(), tokens=["tok001"])
        assert graph.promote("nope", OLD) == OLD
        assert (vault / "a.md").read_text(encoding="utf-8") == A_MD

    def test_filtered_out_task_not_found(self, make_graph):
        settings = _settings()
        settings["boards"][0]["filters"]["tags"] = ["#work"]
        graph, vault, backend = make_graph({"a.md": A_MD}, settings, tokens=["tok001"])
        assert graph.promote("b1", OLD) == OLD


class _FixedExtractor:
    def __init__(self, task):
        self.task = task

    def find_task(self, board, task_id):
        return self.task


class TestStaleLines:
    def _promoter(self, graph, task):
        return AnchorPromoter(
            graph.store, _FixedExtractor(task), graph.documents, graph.index,
            graph.notices, generate=lambda: "tok001",
        )

    def test_line_out_of_range(self, make_graph):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings())
        task = Task(id=OLD, text="write report", status=" ", path="a.md", line=99,
                    raw_text="- [ ] write report")
        assert self._promoter(graph, task).promote("b1", OLD) == OLD
        assert (vault / "a.md").read_text(encoding="utf-8") == A_MD
        assert backend.save_count == 0

    def test_line_changed_since_extraction(self, make_graph):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings())
        task = Task(id=OLD, text="write report", status=" ", path="a.md", line=5,
                    raw_text="- [ ] write report")
        assert self._promoter(graph, task).promote("b1", OLD) == OLD
        assert (vault / "a.md").read_text(encoding="utf-8") == A_MD

    def test_anchored_since_extraction_reused(self, make_graph):
        content = A_MD.replace("- [ ] write report", "- [ ] write report ^old1")
        graph, vault, backend = make_graph({"a.md": content}, _settings())
        task = Task(id=OLD, text="write report", status=" ", path="a.md", line=4,
                    raw_text="- [ ] write report")
        assert self._promoter(graph, task).promote("b1", OLD) == "a.md::^old1"
        assert (vault / "a.md").read_text(encoding="utf-8") == content
        assert graph.store.get_board("b1").data.edges[0].source == "a.md::^old1"
        assert backend.save_count == 1

    def test_anchored_and_edited_since_extraction(self, make_graph):
        content = A_MD.replace("- [ ] write report", "- [ ] write the report ^old1")
        graph, vault, backend = make_graph({"a.md": content}, _settings())
        task = Task(id=OLD, text="write report", status=" ", path="a.md", line=4,
                    raw_text="- [ ] write report")
        assert self._promoter(graph, task).promote("b1", OLD) == OLD
        assert backend.save_count == 0


class TestPromoteFailures:
    def test_document_write_fails(self, make_graph, monkeypatch):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings(), tokens=["tok001"])

        def fail(path, text):
            raise OSError("read-only")

        monkeypatch.setattr(graph.documents, "write", fail)

        assert graph.promote("b1", OLD) == OLD
        data = graph.store.get_board("b1").data
        assert data.edges[0].source == OLD
        assert OLD in data.layout
        assert data.node_status[OLD] == "/"
        assert backend.save_count == 0
        notice = graph.notices.recent()[-1]
        assert notice.message == "Failed to update a.md"
        assert notice.level == "error"

    def test_settings_save_fails(self, make_graph, monkeypatch):
        graph, vault, backend = make_graph({"a.md": A_MD}, _settings(), tokens=["tok001"])

        def fail(settings):
            raise OSError("settings dir is read-only")

        monkeypatch.setattr(backend, "save", fail)

        new_id = graph.promote("b1", OLD)

        assert new_id == "a.md::^tok001"
        assert "- [ ] write report ^tok001" in (vault / "a.md").read_text(encoding="utf-8")
        # references follow the anchored line in memory
        assert graph.store.get_board("b1").data.edges[0].source == new_id
        notice = graph.notices.recent()[-1]
        assert notice.message == "Failed to save board data"
        assert notice.level == "error"


class TestTokens:
    def test_avoids_tokens_in_document(self, make_graph):
        content = A_MD + "- [x] done ^tok001\n"
        graph, vault, backend = make_graph({"a.md": content}, _settings(), tokens=["tok001", "tok002"])
        assert graph.promote("b1", OLD) == "a.md::^tok002"

    def test_fresh_token_gives_up(self):
        assert fresh_token("- [ ] a ^same", lambda: "same") is None

    def test_fresh_token_crlf(self):
        tokens = iter(["t1", "t2"])
        assert fresh_token("- [ ] a ^t1\r\n", lambda: next(tokens)) == "t2"


class TestMigrateReferences:
    def test_counts(self):
        data = BoardData(
            layout={"old": Position(1, 2), "keep": Position(3, 4)},
            edges=[Edge("old", "keep"), Edge("keep", "old"), Edge("old", "old")],
            node_status={"old": "x", "keep": " "},
        )
        changed = migrate_references(data, "old", "new")
        assert changed == 6
        assert list(data.layout) == ["new", "keep"]
        assert [(e.source, e.target) for e in data.edges] == [
            ("new", "keep"), ("keep", "new"), ("new", "new"),
        ]
        assert data.node_status == {"new": "x", "keep": " "}

    def test_same_id_is_noop(self):
        data = BoardData(layout={"a": Position()})
        assert migrate_references(data, "a", "a") == 0

    def test_edge_meta_kept(self):
        data = BoardData(edges=[Edge("old", "x", id="e1", meta={"animated": True})])
        migrate_references(data, "old", "new")
        assert data.edges[0].to_dict() == {"animated": True, "id": "e1", "source": "new", "target": "x"}
