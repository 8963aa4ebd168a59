"""Tests for impactgraph.models."""

import pytest

from impactgraph.models import (
    ApiChange,
    ApiChangeType,
    BoundaryViolation,
    DiffFile,
    DiffHunk,
    DiffRecord,
    ImportSpec,
    ImpactResult,
    Layer,
    Boundary,
    RiskLevel,
    RiskScore,
    Severity,
    Symbol,
    SymbolKind,
    risk_level,
)


class TestRiskLevel:
    """Thresholds on the aggregate score"""

    @pytest.mark.parametrize("overall, level", [
        (0, RiskLevel.LOW),
        (29.9, RiskLevel.LOW),
        (30, RiskLevel.MEDIUM),
        (59.9, RiskLevel.MEDIUM),
        (60, RiskLevel.HIGH),
        (79.9, RiskLevel.HIGH),
        (80, RiskLevel.CRITICAL),
        (100, RiskLevel.CRITICAL),
    ])
    def test_thresholds(self, overall, level):
        assert risk_level(overall) == level

    def test_score_level_property(self):
        assert RiskScore(overall=61.5).level == RiskLevel.HIGH


class TestSymbol:

    def test_id(self):
        s = Symbol(name="login", kind=SymbolKind.FUNCTION, file_path="src/auth.ts", line=3)
        assert s.id == "src/auth.ts:function:login"

    def test_to_dict_uses_camel_case(self):
        s = Symbol(name="User", kind=SymbolKind.CLASS, file_path="a.py", line=1, exported=True)
        d = s.to_dict()
        assert d["filePath"] == "a.py"
        assert d["kind"] == "class"
        assert d["exported"] is True


class TestImportSpec:

    def test_wildcard(self):
        assert ImportSpec(source="./a", specifiers=("*",)).is_wildcard
        assert not ImportSpec(source="./a", specifiers=("b",)).is_wildcard

    def test_side_effect_has_no_specifiers(self):
        spec = ImportSpec(source="./polyfill")
        assert spec.specifiers == ()
        assert spec.to_dict()["specifiers"] == []


class TestDiff:

    def test_hunk_covers_new_side(self):
        hunk = DiffHunk(old_start=10, old_lines=2, new_start=10, new_lines=3)
        assert hunk.covers(10)
        assert hunk.covers(13)
        assert not hunk.covers(9)
        assert not hunk.covers(14)

    def test_record_paths_and_stats(self):
        diff = DiffRecord(files=[
            DiffFile(path="a.ts", additions=3, deletions=1),
            DiffFile(path="b.ts", additions=2),
        ])
        assert diff.paths == ["a.ts", "b.ts"]
        assert diff.stats() == {"files": 2, "additions": 5, "deletions": 1}

    def test_empty(self):
        diff = DiffRecord.empty(base="main")
        assert diff.files == []
        assert diff.base == "main"

    def test_old_path_only_serialized_for_renames(self):
        assert "oldPath" not in DiffFile(path="a.ts").to_dict()
        assert DiffFile(path="b.ts", old_path="a.ts").to_dict()["oldPath"] == "a.ts"


class TestArchitectureModel:

    def test_layer_allows_is_case_insensitive(self):
        layer = Layer(name="CLI", allowed_dependency_layer_names=["Core"])
        assert layer.allows("core")
        assert not layer.allows("Modules")

    def test_boundary_matches(self):
        b = Boundary(from_layer="Modules", to_layer="CLI")
        assert b.matches("modules", "cli")
        assert not b.matches("CLI", "Modules")


class TestImpactResult:

    def test_to_dict_keys(self):
        result = ImpactResult(
            public_api_changes=[ApiChange("f", "a.ts", ApiChangeType.BREAKING, "Export 'f' was removed")],
            boundary_violations=[BoundaryViolation("a.ts", "b.ts", "rule", Severity.ERROR)],
        )
        d = result.to_dict()
        assert set(d) == {
            "directlyChanged",
            "affectedModules",
            "riskScore",
            "publicApiChanges",
            "boundaryViolations",
        }
        assert d["riskScore"] == {"overall": 0.0, "level": "low", "factors": []}
        assert d["publicApiChanges"][0]["changeType"] == "breaking"
        assert d["boundaryViolations"][0] == {
            "from": "a.ts", "to": "b.ts", "rule": "rule", "severity": "error",
        }
