"""
Impact analysis - diff + index -> ImpactResult.

Steps:
1. directly changed symbols (status and hunk overlap)
2. blast radius (bounded BFS over the dependency graph)
3. public API changes (export set before vs after)
4. boundary violations (architecture model, or the CLI-layer heuristic)
5. risk score (weighted factors, 0-100)
"""

import logging
import posixpath
import re
from functools import lru_cache
from pathlib import Path
from typing import Callable, Mapping, Optional

from . import config
from .graph import DependencyGraph
from .models import (
    AffectedModule,
    ApiChange,
    ApiChangeType,
    ArchitectureModel,
    BoundaryViolation,
    ChangeStatus,
    ChangedSymbol,
    DiffFile,
    DiffRecord,
    FileRecord,
    ImpactResult,
    Layer,
    RiskFactor,
    RiskScore,
    Severity,
)
from .providers import LanguageProviderRegistry
from .symbol_map import SymbolMap

logger = logging.getLogger(__name__)

# Path segments that mark presentation code for the no-model heuristic
PRESENTATION_SEGMENTS = frozenset({"cli", "presentation"})

# (points per unit, weight); weights sum to 1
RISK_AFFECTED_MODULES = (10, 0.30)
RISK_BREAKING_CHANGES = (40, 0.25)
RISK_BOUNDARY_ERROR = 50
RISK_BOUNDARY_WARNING = 20
RISK_BOUNDARY_WEIGHT = 0.15
RISK_FAN_IN = (5, 0.30)


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern:
    """
    Compile a path glob: `**` spans directories, `*` and `?` stay inside
    one path segment.
    """
    out = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out) + r"\Z")


def layer_for(path: str, model: ArchitectureModel) -> Optional[Layer]:
    """First layer, in declaration order, with a glob matching path"""
    for layer in model.layers:
        for glob in layer.path_globs:
            if glob_to_regex(glob).match(path):
                return layer
    return None


def _segments(path: str) -> set[str]:
    return {s.lower() for s in path.split("/")}


def _path_like_target(from_path: str, specifier: str) -> Optional[str]:
    """
    Repo-relative path an unresolved specifier points at, or None for packages.

    './x' and '../x' are joined to the importer's directory. Bare
    specifiers count only when they contain a '/' and look like a
    directory path: no '@' scope and no dot in the first segment
    (github.com/..., example.org/...).
    """
    if specifier.startswith(("./", "../")):
        joined = posixpath.normpath(posixpath.join(posixpath.dirname(from_path), specifier))
        return None if joined.startswith("..") else joined
    head = specifier.split("/", 1)[0]
    if "/" not in specifier or specifier.startswith("@") or "." in head or not head:
        return None
    return specifier


class ImpactAnalyzer:
    """
    Impact analyzer

    Read-only over the graph and file records it is given. The
    architecture model is optional; None (absent) and an empty model
    (configured, no layers) behave differently.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        registry: LanguageProviderRegistry,
        root=None,
        max_depth: Optional[int] = None,
    ):
        self.graph = graph
        self.registry = registry
        self.root = Path(root) if root is not None else None
        self.max_depth = config.MAX_IMPACT_DEPTH if max_depth is None else max_depth
        self.architecture: Optional[ArchitectureModel] = None

    def set_architecture(self, model: Optional[ArchitectureModel]):
        self.architecture = model

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def analyze(
        self,
        diff: DiffRecord,
        files: Mapping[str, FileRecord],
        symbols: SymbolMap,
        max_depth: Optional[int] = None,
        base_reader: Optional[Callable[[str], Optional[str]]] = None,
        head_reader: Optional[Callable[[str], Optional[str]]] = None,
    ) -> ImpactResult:
        """
        Args:
            diff: changed files with hunks
            files: FileRecord map the graph was built from
            symbols: symbol map over the same files (for fan-in)
            max_depth: BFS hop bound, defaults to the analyzer's
            base_reader: optional path -> content at the diff base; when it
                returns text, the pre-diff export set is read from it
                instead of the FileRecord
            head_reader: optional path -> content at the diff head; when
                omitted the post-diff export set is read from the working tree
        """
        depth = self.max_depth if max_depth is None else max_depth

        directly_changed = self.find_directly_changed(diff, files)

        changed_paths = set()
        for f in diff.files:
            changed_paths.add(f.path)
            if f.old_path:
                changed_paths.add(f.old_path)
        affected = self.graph.affected_from(changed_paths, depth)

        api_changes = self.find_api_changes(diff, files, base_reader, head_reader)
        violations = self.check_boundaries(diff, files)
        risk = self.score_risk(affected, api_changes, violations, directly_changed, symbols)

        logger.info(
            "Impact: %d changed symbols, %d affected modules, risk %.1f (%s)",
            len(directly_changed), len(affected), risk.overall, risk.level.value,
        )
        return ImpactResult(
            directly_changed=directly_changed,
            affected_modules=affected,
            risk_score=risk,
            public_api_changes=api_changes,
            boundary_violations=violations,
        )

    @staticmethod
    def _record_for(diff_file: DiffFile, files: Mapping[str, FileRecord]) -> Optional[FileRecord]:
        record = files.get(diff_file.path)
        if record is None and diff_file.old_path:
            record = files.get(diff_file.old_path)
        return record

    # ------------------------------------------------------------------
    # 1. Directly changed symbols
    # ------------------------------------------------------------------

    def find_directly_changed(self, diff: DiffRecord, files: Mapping[str, FileRecord]) -> list[ChangedSymbol]:
        changed = []
        for diff_file in diff.files:
            record = self._record_for(diff_file, files)
            if record is None:
                continue

            if diff_file.status == ChangeStatus.ADDED:
                changed.extend(ChangedSymbol(s, ChangeStatus.ADDED) for s in record.symbols)
            elif diff_file.status == ChangeStatus.DELETED:
                changed.extend(ChangedSymbol(s, ChangeStatus.DELETED) for s in record.symbols)
            else:
                for symbol in record.symbols:
                    if any(h.covers(symbol.line) for h in diff_file.hunks):
                        changed.append(ChangedSymbol(symbol, ChangeStatus.MODIFIED))
        return changed

    # ------------------------------------------------------------------
    # 3. Public API changes
    # ------------------------------------------------------------------

    def _exports_of(self, path: str, content: Optional[str]) -> Optional[set[str]]:
        provider = self.registry.for_file(path)
        if provider is None or content is None:
            return None
        return {export.name for export in provider.extract_exports(content)}

    def _current_exports(
        self,
        diff_file: DiffFile,
        before: set[str],
        head_reader: Optional[Callable[[str], Optional[str]]],
    ) -> set[str]:
        """Export names after the change: from the head or disk when possible, else from status"""
        if diff_file.status == ChangeStatus.DELETED:
            return set()

        if head_reader is not None:
            names = self._exports_of(diff_file.path, head_reader(diff_file.path))
            if names is not None:
                return names
        elif self.root is not None and self.registry.is_supported(diff_file.path):
            try:
                content = (self.root / diff_file.path).read_text(encoding="utf-8")
            except FileNotFoundError:
                return set()
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Cannot re-read %s: %s", diff_file.path, e)
            else:
                return self._exports_of(diff_file.path, content)

        return set(before)

    def _previous_exports(
        self,
        diff_file: DiffFile,
        record: FileRecord,
        base_reader: Optional[Callable[[str], Optional[str]]],
    ) -> set[str]:
        if diff_file.status == ChangeStatus.ADDED:
            return set()
        if base_reader is not None:
            old_path = diff_file.old_path or diff_file.path
            names = self._exports_of(old_path, base_reader(old_path))
            if names is not None:
                return names
        return record.export_names()

    @staticmethod
    def _removed(path: str, names) -> list[ApiChange]:
        return [
            ApiChange(
                symbol=name,
                file_path=path,
                change_type=ApiChangeType.BREAKING,
                description=f"Export '{name}' was removed",
            )
            for name in sorted(names)
        ]

    def find_api_changes(
        self,
        diff: DiffRecord,
        files: Mapping[str, FileRecord],
        base_reader: Optional[Callable[[str], Optional[str]]] = None,
        head_reader: Optional[Callable[[str], Optional[str]]] = None,
    ) -> list[ApiChange]:
        changes = []
        for diff_file in diff.files:
            record = self._record_for(diff_file, files)
            if record is None:
                # Deleted from the working tree, so never indexed
                if diff_file.status == ChangeStatus.DELETED and base_reader is not None:
                    old_path = diff_file.old_path or diff_file.path
                    before = self._exports_of(old_path, base_reader(old_path)) or set()
                    changes.extend(self._removed(diff_file.path, before))
                continue

            before = self._previous_exports(diff_file, record, base_reader)
            if diff_file.status == ChangeStatus.ADDED:
                after = self._current_exports(diff_file, record.export_names(), head_reader)
            else:
                after = self._current_exports(diff_file, before, head_reader)

            changes.extend(self._removed(diff_file.path, before - after))
            for name in sorted(after - before):
                changes.append(ApiChange(
                    symbol=name,
                    file_path=diff_file.path,
                    change_type=ApiChangeType.ADDITIVE,
                    description=f"Export '{name}' was added",
                ))

            if diff_file.status in (ChangeStatus.MODIFIED, ChangeStatus.RENAMED):
                kept = before & after
                seen = set()
                for symbol in record.symbols:
                    if (
                        symbol.exported
                        and symbol.name in kept
                        and symbol.name not in seen
                        and any(h.covers(symbol.line) for h in diff_file.hunks)
                    ):
                        seen.add(symbol.name)
                        changes.append(ApiChange(
                            symbol=symbol.name,
                            file_path=diff_file.path,
                            change_type=ApiChangeType.MODIFIED,
                            description=f"Exported {symbol.kind.value} '{symbol.name}' was modified",
                        ))
        return changes

    # ------------------------------------------------------------------
    # 4. Boundary violations
    # ------------------------------------------------------------------

    def _import_targets(self, diff: DiffRecord, files: Mapping[str, FileRecord], unresolved: bool = False):
        """
        (changed file, import target) pairs.

        Targets are resolved paths. With unresolved=True, imports the graph
        could not resolve contribute their path-like specifiers too;
        package specifiers never do.
        """
        seen = set()
        for diff_file in diff.files:
            if diff_file.status == ChangeStatus.DELETED:
                continue
            record = files.get(diff_file.path)
            if record is None:
                continue
            targets = self.graph.resolved_targets(diff_file.path)
            for i, spec in enumerate(record.imports):
                target = targets[i] if i < len(targets) else None
                if target is None and unresolved:
                    target = _path_like_target(diff_file.path, spec.source)
                if target is None:
                    continue
                pair = (diff_file.path, target)
                if pair not in seen:
                    seen.add(pair)
                    yield pair

    def check_boundaries(self, diff: DiffRecord, files: Mapping[str, FileRecord]) -> list[BoundaryViolation]:
        if self.architecture is not None:
            return self._check_layers(diff, files, self.architecture)
        return self._check_presentation_heuristic(diff, files)

    def _check_layers(self, diff, files, model: ArchitectureModel) -> list[BoundaryViolation]:
        violations = []
        for source, target in self._import_targets(diff, files, unresolved=True):
            from_layer = layer_for(source, model)
            to_layer = layer_for(target, model)
            if from_layer is None or to_layer is None or from_layer is to_layer:
                continue
            if from_layer.allows(to_layer.name):
                continue

            boundary = next(
                (b for b in model.boundaries if b.matches(from_layer.name, to_layer.name)),
                None,
            )
            if boundary is not None and boundary.allowed:
                continue

            rule = (boundary.reason if boundary is not None else None) or (
                f"{from_layer.name} should not depend on {to_layer.name}"
            )
            violations.append(BoundaryViolation(
                source=source,
                target=target,
                rule=rule,
                severity=Severity.ERROR,
            ))
        return violations

    def _check_presentation_heuristic(self, diff, files) -> list[BoundaryViolation]:
        violations = []
        for source, target in self._import_targets(diff, files):
            if _segments(source) & PRESENTATION_SEGMENTS:
                continue
            hit = _segments(target) & PRESENTATION_SEGMENTS
            if hit:
                violations.append(BoundaryViolation(
                    source=source,
                    target=target,
                    rule=f"Non-presentation code should not depend on the {sorted(hit)[0]} layer",
                    severity=Severity.WARNING,
                ))
        return violations

    # ------------------------------------------------------------------
    # 5. Risk
    # ------------------------------------------------------------------

    def score_risk(
        self,
        affected: list[AffectedModule],
        api_changes: list[ApiChange],
        violations: list[BoundaryViolation],
        directly_changed: list[ChangedSymbol],
        symbols: SymbolMap,
    ) -> RiskScore:
        factors = []

        per_module, weight = RISK_AFFECTED_MODULES
        factors.append(RiskFactor(
            name="affected_modules",
            score=min(100, len(affected) * per_module),
            weight=weight,
            reason=f"{len(affected)} modules in the blast radius",
        ))

        breaking = sum(1 for c in api_changes if c.change_type == ApiChangeType.BREAKING)
        per_change, weight = RISK_BREAKING_CHANGES
        factors.append(RiskFactor(
            name="breaking_changes",
            score=min(100, breaking * per_change),
            weight=weight,
            reason=f"{breaking} breaking API changes",
        ))

        errors = sum(1 for v in violations if v.severity == Severity.ERROR)
        warnings = len(violations) - errors
        factors.append(RiskFactor(
            name="boundary_violations",
            score=min(100, errors * RISK_BOUNDARY_ERROR + warnings * RISK_BOUNDARY_WARNING),
            weight=RISK_BOUNDARY_WEIGHT,
            reason=f"{errors} errors, {warnings} warnings",
        ))

        fan_in = symbols.fan_in()
        references = 0
        counted = set()
        for changed in directly_changed:
            symbol = changed.symbol
            key = (symbol.file_path, symbol.name)
            if symbol.exported and key not in counted:
                counted.add(key)
                references += fan_in[key]
        per_reference, weight = RISK_FAN_IN
        factors.append(RiskFactor(
            name="fan_in",
            score=min(100, references * per_reference),
            weight=weight,
            reason=f"{references} import sites reference changed exports",
        ))

        overall = round(sum(f.score * f.weight for f in factors), 1)
        return RiskScore(overall=overall, factors=factors)
