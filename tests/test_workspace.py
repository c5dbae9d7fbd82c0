"""Tests for stratus.workspace."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from stratus.context import Context
from stratus.projects import Project
from stratus.services.sfn.activity import Activity, ActivityDataSource
from stratus.spec import Specification, _spec_registry
from stratus.specop import Absent, Ensure, Present, Read
from stratus.workspace import BlueprintRef, OperationRef, Workspace


class TestWorkspaceConstruction:
    def test_default_project_type(self):
        assert Workspace().project_type is Project

    def test_custom_project_type(self):
        class Custom(Project):
            extra: str = ""

        assert Workspace(project_type=Custom).project_type is Custom

    def test_empty_workspace(self):
        ws = Workspace()
        assert len(ws) == 0
        assert list(ws) == []
        assert "anything" not in ws

    def test_getitem_empty_raises(self):
        with pytest.raises(KeyError):
            Workspace()["missing"]

    def test_get_empty_returns_default(self):
        ws = Workspace()
        assert ws.get("missing") is None
        sentinel = Project(name="fallback")
        assert ws.get("missing", sentinel) is sentinel

    def test_repr_empty(self):
        assert repr(Workspace()) == "Workspace(project_type=Project, blueprints=0, projects=0)"

    def test_add_rejects_other_refs(self):
        with pytest.raises(TypeError):
            Workspace().add(OperationRef(name="widget", strategy="ensure", attrs={}))


class TrackingSpec(Specification["Project"]):
    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def equals(self, ctx: Context[Project]) -> bool:
        return False

    def apply(self, ctx: Context[Project]) -> None:
        pass

    def remove(self, ctx: Context[Project]) -> None:
        pass


@pytest.fixture(autouse=True)
def _clean_registry():
    saved = _spec_registry.copy()
    _spec_registry.clear()
    _spec_registry["widget"] = TrackingSpec
    yield
    _spec_registry.clear()
    _spec_registry.update(saved)


def _write_hcl(tmp_path: Path, filename: str, content: str) -> Path:
    f = tmp_path / filename
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(content)
    return f


class TestWorkspaceLoad:
    def test_load_single_file_with_project(self, tmp_path):
        f = _write_hcl(tmp_path, "proj.hcl", 'project "myproj" { description = "test" }\n')
        ws = Workspace()
        ws.load(f)
        assert "myproj" in ws
        assert ws["myproj"].description == "test"

    def test_load_accepts_string_path(self, tmp_path):
        f = _write_hcl(tmp_path, "proj.hcl", 'project "myproj" {}\n')
        ws = Workspace()
        ws.load(str(f))
        assert "myproj" in ws

    def test_load_file_with_blueprint_and_project(self, tmp_path):
        f = _write_hcl(
            tmp_path,
            "all.hcl",
            """
            blueprint "base" {
                description = "shared"
                ensure "widget" { color = "red" }
            }
            project "myproj" { use = ["base"] }
        """,
        )
        ws = Workspace()
        ws.load(f)
        assert "base" in ws.blueprints
        assert ws.blueprints["base"].description == "shared"
        proj = ws["myproj"]
        assert proj.blueprints[0].name == "base"
        assert proj.blueprints[0].description == "shared"

    def test_load_multiple_files(self, tmp_path):
        bp = _write_hcl(tmp_path, "bp.hcl", 'blueprint "base" {\n  ensure "widget" { color = "red" }\n}\n')
        proj = _write_hcl(tmp_path, "proj.hcl", 'project "myproj" { use = ["base"] }\n')
        ws = Workspace()
        ws.load(proj)
        ws.load(bp)
        assert len(ws["myproj"].blueprints) == 1

    def test_load_duplicate_blueprint_raises(self, tmp_path):
        a = _write_hcl(tmp_path, "a.hcl", 'blueprint "dup" {}\n')
        b = _write_hcl(tmp_path, "b.hcl", 'blueprint "dup" {}\n')
        ws = Workspace()
        ws.load(a)
        with pytest.raises(ValueError, match="Duplicate blueprint: 'dup'"):
            ws.load(b)

    def test_load_duplicate_project_raises(self, tmp_path):
        a = _write_hcl(tmp_path, "a.hcl", 'project "dup" {}\n')
        b = _write_hcl(tmp_path, "b.hcl", 'project "dup" {}\n')
        ws = Workspace()
        ws.load(a)
        with pytest.raises(ValueError, match="Duplicate project: 'dup'"):
            ws.load(b)

    def test_load_blueprint_only_file(self, tmp_path):
        f = _write_hcl(tmp_path, "bp.hcl", 'blueprint "base" {}\n')
        ws = Workspace()
        ws.load(f)
        assert len(ws) == 0
        assert "base" in ws.blueprints

    def test_project_attrs_exclude_structural_keys(self, tmp_path):
        class Custom(Project):
            team: str = ""

        f = _write_hcl(
            tmp_path,
            "proj.hcl",
            """
            blueprint "base" {}
            project "myproj" {
                description = "d"
                use = ["base"]
                team = "media"
            }
        """,
        )
        ws = Workspace(project_type=Custom)
        ws.load(f)
        proj = ws["myproj"]
        assert proj.team == "media"
        assert proj.description == "d"

    def test_repr_after_load(self, tmp_path):
        f = _write_hcl(tmp_path, "all.hcl", 'blueprint "a" {}\nblueprint "b" {}\nproject "p" {}\n')
        ws = Workspace()
        ws.load(f)
        assert repr(ws) == "Workspace(project_type=Project, blueprints=2, projects=1)"


class TestOperationParsing:
    def test_strategies(self, tmp_path):
        f = _write_hcl(
            tmp_path,
            "proj.hcl",
            """
            project "p" {
                present "widget" { color = "red" }
                ensure "widget" { color = "green" }
                absent "widget" { color = "blue" }
            }
        """,
        )
        ws = Workspace()
        ws.load(f)
        ops = ws["p"].blueprints[0].ops
        assert [type(op) for op in ops] == [Present, Ensure, Absent]

    def test_data_sources_come_first(self, tmp_path):
        f = _write_hcl(
            tmp_path,
            "proj.hcl",
            """
            project "p" {
                ensure "aws_sfn_activity" { name = "worker" }
                data "aws_sfn_activity" "existing" { name = "legacy" }
            }
        """,
        )
        ws = Workspace()
        ws.load(f)
        ops = ws["p"].blueprints[0].ops
        assert isinstance(ops[0], Read)
        assert isinstance(ops[0].spec, ActivityDataSource)
        assert ops[0].label == "existing"
        assert isinstance(ops[1], Ensure)
        assert isinstance(ops[1].spec, Activity)

    def test_labelled_block(self, tmp_path):
        f = _write_hcl(
            tmp_path,
            "proj.hcl",
            """
            project "p" {
                ensure "aws_sfn_activity" "worker" {
                    name = "worker"
                    tags = {
                        team = "media"
                    }
                }
            }
        """,
        )
        ws = Workspace()
        ws.load(f)
        op = ws["p"].blueprints[0].ops[0]
        assert op.label == "worker"
        assert op.spec.name == "worker"
        assert op.spec.tags == {"team": "media"}

    def test_unlabelled_single_map_attribute(self, tmp_path):
        f = _write_hcl(
            tmp_path,
            "proj.hcl",
            """
            blueprint "base" {
                present "aws_sfn_activity" {
                    tags = {
                        team = "media"
                    }
                }
            }
        """,
        )
        ws = Workspace()
        ws.load(f)
        (op,) = ws.blueprints["base"].ops
        assert op.label is None
        assert op.attrs == {"tags": {"team": "media"}}

    def test_unknown_type_fails_on_resolve(self, tmp_path):
        f = _write_hcl(tmp_path, "proj.hcl", 'project "p" {\n  ensure "nope" { a = 1 }\n}\n')
        ws = Workspace()
        ws.load(f)
        with pytest.raises(ValueError, match="Unknown spec type: 'nope'"):
            ws["p"]


class TestWorkspaceScan:
    def test_scan_finds_hcl_files(self, tmp_path):
        _write_hcl(tmp_path, "a.hcl", 'project "a" {}\n')
        _write_hcl(tmp_path, "b.hcl", 'project "b" {}\n')
        ws = Workspace()
        ws.scan(tmp_path)
        assert sorted(ws) == ["a", "b"]

    def test_scan_accepts_string_path(self, tmp_path):
        _write_hcl(tmp_path, "a.hcl", 'project "a" {}\n')
        ws = Workspace()
        ws.scan(str(tmp_path))
        assert "a" in ws

    def test_scan_recurse_false(self, tmp_path):
        _write_hcl(tmp_path, "top.hcl", 'project "top" {}\n')
        _write_hcl(tmp_path, "sub/nested.hcl", 'project "nested" {}\n')
        ws = Workspace()
        ws.scan(tmp_path, recurse=False)
        assert list(ws) == ["top"]

    def test_scan_sorted_order(self, tmp_path):
        _write_hcl(tmp_path, "c.hcl", 'project "c" {}\n')
        _write_hcl(tmp_path, "a.hcl", 'project "a" {}\n')
        _write_hcl(tmp_path, "b.hcl", 'project "b" {}\n')
        ws = Workspace()
        ws.scan(tmp_path)
        assert list(ws) == ["a", "b", "c"]

    def test_scan_missing_dir_warns(self, tmp_path, caplog):
        ws = Workspace()
        with caplog.at_level(logging.WARNING, logger="stratus.workspace"):
            ws.scan(tmp_path / "nonexistent")
        assert len(ws) == 0
        assert "not found" in caplog.text

    def test_scan_ignores_non_hcl_files(self, tmp_path):
        _write_hcl(tmp_path, "a.hcl", 'project "a" {}\n')
        _write_hcl(tmp_path, "notes.txt", 'project "b" {}\n')
        ws = Workspace()
        ws.scan(tmp_path)
        assert list(ws) == ["a"]


class TestWorkspaceMapping:
    @pytest.fixture
    def ws(self, tmp_path) -> Workspace:
        _write_hcl(
            tmp_path,
            "all.hcl",
            """
            blueprint "base" {
                ensure "widget" { color = "red" }
            }
            project "alpha" { use = ["base"] }
            project "beta" { description = "second" }
        """,
        )
        ws = Workspace()
        ws.scan(tmp_path)
        return ws

    def test_keys(self, ws):
        assert list(ws.keys()) == ["alpha", "beta"]

    def test_values(self, ws):
        assert [p.name for p in ws.values()] == ["alpha", "beta"]

    def test_items(self, ws):
        assert {name: p.name for name, p in ws.items()} == {"alpha": "alpha", "beta": "beta"}

    def test_fresh_resolution_each_access(self, ws):
        first = ws["alpha"]
        second = ws["alpha"]
        assert first is not second
        assert first.blueprints[0].ops[0].spec is not second.blueprints[0].ops[0].spec

    def test_filter_preserves_order(self, ws):
        assert [p.name for p in ws.filter(["beta", "alpha"])] == ["beta", "alpha"]

    def test_filter_skips_missing(self, ws):
        assert [p.name for p in ws.filter(["missing", "alpha"])] == ["alpha"]

    def test_filter_empty_names(self, ws):
        assert ws.filter([]) == []

    def test_blueprint_refs(self, ws):
        assert isinstance(ws.blueprints["base"], BlueprintRef)
