"""
Symbol map - cross-file index of declarations.

Answers:
- "where is PaymentService declared?"   -> find_by_name("PaymentService")
- "what does src/api/client.ts define?" -> find_in_file("src/api/client.ts")
- "who imports formatDate?"             -> reference_count("formatDate")
"""

from collections import Counter, defaultdict
from typing import Mapping, Optional

from .models import FileRecord, Symbol, SymbolKind


class SymbolMap:
    """
    Symbol index built once from a completed FileRecord map.

    Reference counts are computed against the dependency graph on every
    call; nothing derived from the graph is cached here.
    """

    def __init__(self, files: Mapping[str, FileRecord], graph=None):
        self._files = files
        self._graph = graph
        self._by_name: dict[str, list[Symbol]] = defaultdict(list)
        self._by_file: dict[str, list[Symbol]] = {}
        self._all: list[Symbol] = []

        for path in sorted(files):
            symbols = list(files[path].symbols)
            self._by_file[path] = symbols
            for symbol in symbols:
                self._by_name[symbol.name].append(symbol)
                self._all.append(symbol)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def find_by_name(self, name: str) -> list[Symbol]:
        return list(self._by_name.get(name, ()))

    def find_in_file(self, file_path: str) -> list[Symbol]:
        return list(self._by_file.get(file_path, ()))

    def find_exported(self) -> list[Symbol]:
        return [s for s in self._all if s.exported]

    def find_by_kind(self, kind) -> list[Symbol]:
        kind = SymbolKind(kind)
        return [s for s in self._all if s.kind == kind]

    def all_symbols(self) -> list[Symbol]:
        return list(self._all)

    def count(self) -> int:
        return len(self._all)

    # ------------------------------------------------------------------
    # Fan-in
    # ------------------------------------------------------------------

    def fan_in(self) -> Counter:
        """
        (target path, exported name) -> number of import specs reaching it.

        Recomputed on every call; callers needing several lookups over one
        state should hold on to the result.
        """
        counts = Counter()
        if self._graph is None:
            return counts

        for path, record in self._files.items():
            targets = self._graph.resolved_targets(path)
            for spec, target in zip(record.imports, targets):
                target_record = self._files.get(target) if target else None
                if target_record is None:
                    continue
                for export in target_record.exports:
                    if (
                        export.name in spec.specifiers
                        or spec.is_wildcard
                        or spec.is_namespace
                        or (spec.is_default and export.is_default)
                    ):
                        counts[(target, export.name)] += 1
        return counts

    def reference_count(self, name: str, file_path: Optional[str] = None) -> int:
        """
        Import specifiers across the repo that reach an export called name.

        With file_path, only imports resolving to that file count.
        """
        return sum(
            n for (target, export_name), n in self.fan_in().items()
            if export_name == name and (file_path is None or target == file_path)
        )

    def orphan_exports(self) -> list[Symbol]:
        """Exported symbols that no import in the repo reaches"""
        counts = self.fan_in()
        orphans = []
        for path in sorted(self._files):
            exported = self._files[path].export_names()
            for symbol in self._by_file[path]:
                if symbol.exported and symbol.name in exported and not counts[(path, symbol.name)]:
                    orphans.append(symbol)
        return orphans
