"""
Core data models for impactgraph.

FileRecord keys are normalized repo-relative paths:
    src/core/graph.ts
    app/models/user.rb
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SymbolKind(str, Enum):
    """Symbol kinds recognized by the lexical extractors"""
    FUNCTION = "function"
    METHOD = "method"
    CLASS = "class"           # also Go/Rust structs
    INTERFACE = "interface"   # also Rust traits
    TYPE = "type"
    ENUM = "enum"
    NAMESPACE = "namespace"   # Go packages, Ruby/Rust modules
    VARIABLE = "variable"
    PROPERTY = "property"


class EdgeKind(str, Enum):
    STATIC = "static"
    TYPE_ONLY = "type-only"


class ChangeStatus(str, Enum):
    """Status of a file in a diff"""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class ApiChangeType(str, Enum):
    BREAKING = "breaking"
    ADDITIVE = "additive"
    MODIFIED = "modified"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def risk_level(overall: float) -> RiskLevel:
    """Classify an aggregate 0-100 risk score."""
    if overall >= 80:
        return RiskLevel.CRITICAL
    if overall >= 60:
        return RiskLevel.HIGH
    if overall >= 30:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


# ---------------------------------------------------------------------------
# Extraction records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Symbol:
    """A declaration found in a file (class, function, constant, ...)"""
    name: str
    kind: SymbolKind
    file_path: str
    line: int
    column: int = 0
    exported: bool = False

    @property
    def id(self) -> str:
        return f"{self.file_path}:{self.kind.value}:{self.name}"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "filePath": self.file_path,
            "line": self.line,
            "column": self.column,
            "exported": self.exported,
        }


@dataclass(frozen=True)
class ImportSpec:
    """
    One import statement, unresolved.

    specifiers is empty for side-effect imports and ["*"] for wildcards.
    """
    source: str
    specifiers: tuple[str, ...] = ()
    is_default: bool = False
    is_namespace: bool = False
    line: int = 0
    type_only: bool = False

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.specifiers

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "specifiers": list(self.specifiers),
            "isDefault": self.is_default,
            "isNamespace": self.is_namespace,
            "line": self.line,
            "typeOnly": self.type_only,
        }


@dataclass(frozen=True)
class ExportSpec:
    name: str
    kind: SymbolKind
    is_default: bool = False
    line: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "isDefault": self.is_default,
            "line": self.line,
        }


@dataclass(frozen=True)
class FileRecord:
    """
    Everything extracted from one file.

    Produced once per index() run and never patched afterwards.
    """
    path: str
    language: str
    size: int
    line_count: int
    symbols: tuple[Symbol, ...] = ()
    imports: tuple[ImportSpec, ...] = ()
    exports: tuple[ExportSpec, ...] = ()

    def export_names(self) -> set[str]:
        return {e.name for e in self.exports}

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "language": self.language,
            "size": self.size,
            "lines": self.line_count,
            "symbols": [s.to_dict() for s in self.symbols],
            "imports": [i.to_dict() for i in self.imports],
            "exports": [e.to_dict() for e in self.exports],
        }


# ---------------------------------------------------------------------------
# Dependency graph
# ---------------------------------------------------------------------------

@dataclass
class DependencyNode:
    path: str
    imports: list[str] = field(default_factory=list)
    imported_by: list[str] = field(default_factory=list)
    depth: int = 0

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "imports": list(self.imports),
            "importedBy": list(self.imported_by),
            "depth": self.depth,
        }


@dataclass(frozen=True)
class DependencyEdge:
    source: str
    target: str
    kind: EdgeKind = EdgeKind.STATIC

    def to_dict(self) -> dict:
        return {"from": self.source, "to": self.target, "kind": self.kind.value}


# ---------------------------------------------------------------------------
# Architecture model (supplied by the loader in architecture.py)
# ---------------------------------------------------------------------------

@dataclass
class Layer:
    name: str
    path_globs: list[str] = field(default_factory=list)
    allowed_dependency_layer_names: list[str] = field(default_factory=list)
    description: str = ""

    def allows(self, other: str) -> bool:
        other = other.lower()
        return any(n.lower() == other for n in self.allowed_dependency_layer_names)


@dataclass
class Boundary:
    from_layer: str
    to_layer: str
    allowed: bool = False
    reason: Optional[str] = None

    def matches(self, from_layer: str, to_layer: str) -> bool:
        return (
            self.from_layer.lower() == from_layer.lower()
            and self.to_layer.lower() == to_layer.lower()
        )


@dataclass
class ArchitectureModel:
    layers: list[Layer] = field(default_factory=list)
    boundaries: list[Boundary] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Diff (supplied by the git collaborator in git.py)
# ---------------------------------------------------------------------------

@dataclass
class DiffHunk:
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int

    def covers(self, line: int) -> bool:
        """Whether a post-diff line number falls in this hunk's new side"""
        return self.new_start <= line <= self.new_start + self.new_lines


@dataclass
class DiffFile:
    path: str
    status: ChangeStatus = ChangeStatus.MODIFIED
    additions: int = 0
    deletions: int = 0
    hunks: list[DiffHunk] = field(default_factory=list)
    old_path: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "path": self.path,
            "status": self.status.value,
            "additions": self.additions,
            "deletions": self.deletions,
            "hunks": len(self.hunks),
        }
        if self.old_path:
            data["oldPath"] = self.old_path
        return data


@dataclass
class DiffRecord:
    files: list[DiffFile] = field(default_factory=list)
    base: str = ""
    head: str = ""

    @classmethod
    def empty(cls, base: str = "", head: str = "") -> "DiffRecord":
        return cls(files=[], base=base, head=head)

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def stats(self) -> dict:
        return {
            "files": len(self.files),
            "additions": sum(f.additions for f in self.files),
            "deletions": sum(f.deletions for f in self.files),
        }


# ---------------------------------------------------------------------------
# Impact result
# ---------------------------------------------------------------------------

@dataclass
class ChangedSymbol:
    symbol: Symbol
    change_type: ChangeStatus

    def to_dict(self) -> dict:
        return {"symbol": self.symbol.to_dict(), "changeType": self.change_type.value}


@dataclass
class AffectedModule:
    path: str
    distance: int
    reason: str
    via: str = ""  # neighbour the BFS reached this node from

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "distance": self.distance,
            "reason": self.reason,
            "via": self.via,
        }


@dataclass
class ApiChange:
    symbol: str
    file_path: str
    change_type: ApiChangeType
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "filePath": self.file_path,
            "changeType": self.change_type.value,
            "description": self.description,
        }


@dataclass
class BoundaryViolation:
    source: str
    target: str
    rule: str
    severity: Severity

    def to_dict(self) -> dict:
        return {
            "from": self.source,
            "to": self.target,
            "rule": self.rule,
            "severity": self.severity.value,
        }


@dataclass
class RiskFactor:
    name: str
    score: float
    weight: float
    reason: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "score": self.score,
            "weight": self.weight,
            "reason": self.reason,
        }


@dataclass
class RiskScore:
    overall: float
    factors: list[RiskFactor] = field(default_factory=list)

    @property
    def level(self) -> RiskLevel:
        return risk_level(self.overall)

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "level": self.level.value,
            "factors": [f.to_dict() for f in self.factors],
        }


@dataclass
class ImpactResult:
    directly_changed: list[ChangedSymbol] = field(default_factory=list)
    affected_modules: list[AffectedModule] = field(default_factory=list)
    risk_score: RiskScore = field(default_factory=lambda: RiskScore(overall=0.0))
    public_api_changes: list[ApiChange] = field(default_factory=list)
    boundary_violations: list[BoundaryViolation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "directlyChanged": [c.to_dict() for c in self.directly_changed],
            "affectedModules": [m.to_dict() for m in self.affected_modules],
            "riskScore": self.risk_score.to_dict(),
            "publicApiChanges": [c.to_dict() for c in self.public_api_changes],
            "boundaryViolations": [v.to_dict() for v in self.boundary_violations],
        }
