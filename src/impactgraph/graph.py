"""
File-level dependency graph.

Nodes are kept in a flat list addressed by integer index; a path -> index
map fronts it. Edges exist only for specifiers that resolve to an indexed
file; everything else stays visible in the raw ImportSpec lists.
"""

import logging
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Mapping, Optional

from .models import (
    AffectedModule,
    DependencyEdge,
    DependencyNode,
    EdgeKind,
    FileRecord,
)
from .providers import LanguageProviderRegistry

logger = logging.getLogger(__name__)


class DependencyGraph:
    """
    Dependency graph

    Build once with build_from_imports(); afterwards the graph is only
    read. A rebuild produces a new graph rather than patching this one.
    """

    def __init__(self):
        self._paths: list[str] = []
        self._index: dict[str, int] = {}
        self._imports: list[list[int]] = []
        self._imported_by: list[list[int]] = []
        self._kinds: dict[tuple[int, int], EdgeKind] = {}
        self._depths: list[int] = []
        # path -> resolved target for each ImportSpec of the file, in order
        self._targets: dict[str, tuple[Optional[str], ...]] = {}

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: str) -> bool:
        return path in self._index

    @property
    def paths(self) -> list[str]:
        return list(self._paths)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def build_from_imports(
        self,
        files: Mapping[str, FileRecord],
        registry: LanguageProviderRegistry,
        workers: int = 1,
    ) -> "DependencyGraph":
        """
        Resolve every file's imports against the complete file set.

        Resolution is independent per source file and may run on a pool;
        the merge is serial in sorted path order so the result does not
        depend on scheduling.
        """
        started = time.perf_counter()
        paths = sorted(files)
        existing = frozenset(paths)

        self._paths = paths
        self._index = {p: i for i, p in enumerate(paths)}
        self._imports = [[] for _ in paths]
        self._imported_by = [[] for _ in paths]
        self._kinds = {}
        self._targets = {}

        def resolve(path):
            provider = registry.for_file(path)
            if provider is None:
                return tuple(None for _ in files[path].imports)
            return tuple(
                provider.resolve_import_path(path, spec.source, existing)
                for spec in files[path].imports
            )

        if workers > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                resolved = list(pool.map(resolve, paths))
        else:
            resolved = [resolve(p) for p in paths]

        for src, (path, targets) in enumerate(zip(paths, resolved)):
            self._targets[path] = targets
            for spec, target in zip(files[path].imports, targets):
                if target is None or target not in self._index:
                    continue
                kind = EdgeKind.TYPE_ONLY if spec.type_only else EdgeKind.STATIC
                self._add_edge(src, self._index[target], kind)

        for adjacency in (self._imports, self._imported_by):
            for neighbours in adjacency:
                neighbours.sort()

        self._depths = self._compute_depths()
        logger.debug(
            "Built graph: %d nodes, %d edges in %.2fs",
            len(paths), len(self._kinds), time.perf_counter() - started,
        )
        return self

    def _add_edge(self, src: int, dst: int, kind: EdgeKind):
        key = (src, dst)
        existing = self._kinds.get(key)
        if existing is None:
            self._kinds[key] = kind
            self._imports[src].append(dst)
            self._imported_by[dst].append(src)
        elif kind == EdgeKind.STATIC:
            # A static import wins over a type-only one for the same pair
            self._kinds[key] = EdgeKind.STATIC

    def _compute_depths(self) -> list[int]:
        """BFS distance from files nobody imports; 0 when unreachable from any root."""
        depths = [-1] * len(self._paths)
        queue = deque()
        for i, importers in enumerate(self._imported_by):
            if not importers:
                depths[i] = 0
                queue.append(i)
        while queue:
            node = queue.popleft()
            for nxt in self._imports[node]:
                if depths[nxt] < 0:
                    depths[nxt] = depths[node] + 1
                    queue.append(nxt)
        return [d if d >= 0 else 0 for d in depths]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def resolved_targets(self, path: str) -> tuple[Optional[str], ...]:
        """Resolved target per ImportSpec of path (None where unresolved)"""
        return self._targets.get(path, ())

    def get_node(self, path: str) -> Optional[DependencyNode]:
        i = self._index.get(path)
        if i is None:
            return None
        return DependencyNode(
            path=path,
            imports=[self._paths[j] for j in self._imports[i]],
            imported_by=[self._paths[j] for j in self._imported_by[i]],
            depth=self._depths[i],
        )

    def get_dependencies(self, path: str) -> list[str]:
        """Files that path imports"""
        i = self._index.get(path)
        return [] if i is None else [self._paths[j] for j in self._imports[i]]

    def get_dependents(self, path: str) -> list[str]:
        """Files that import path"""
        i = self._index.get(path)
        return [] if i is None else [self._paths[j] for j in self._imported_by[i]]

    def get_transitive_dependents(self, path: str, max_depth: Optional[int] = None) -> list[str]:
        start = self._index.get(path)
        if start is None:
            return []
        seen = {start: 0}
        queue = deque([start])
        while queue:
            node = queue.popleft()
            if max_depth is not None and seen[node] >= max_depth:
                continue
            for nxt in self._imported_by[node]:
                if nxt not in seen:
                    seen[nxt] = seen[node] + 1
                    queue.append(nxt)
        seen.pop(start)
        return sorted(self._paths[i] for i in seen)

    def edges(self) -> list[DependencyEdge]:
        return [
            DependencyEdge(self._paths[a], self._paths[b], kind)
            for (a, b), kind in sorted(self._kinds.items())
        ]

    def roots(self) -> list[str]:
        """Files nobody imports"""
        return [p for i, p in enumerate(self._paths) if not self._imported_by[i]]

    def leaves(self) -> list[str]:
        """Files that import nothing inside the repo"""
        return [p for i, p in enumerate(self._paths) if not self._imports[i]]

    # ------------------------------------------------------------------
    # Algorithms
    # ------------------------------------------------------------------

    def detect_cycles(self) -> list[list[str]]:
        """
        Import cycles, each reported once.

        A cycle is rotated so its smallest path comes first; self-imports
        are one-node cycles.
        """
        visited = [False] * len(self._paths)
        found: dict[tuple[int, ...], None] = {}

        for start in range(len(self._paths)):
            if visited[start]:
                continue
            path = [start]
            on_path = {start: 0}
            stack = [iter(self._imports[start])]
            visited[start] = True

            while stack:
                nxt = next(stack[-1], None)
                if nxt is None:
                    stack.pop()
                    on_path.pop(path.pop())
                    continue
                if nxt in on_path:
                    cycle = path[on_path[nxt]:]
                    pivot = cycle.index(min(cycle))
                    found.setdefault(tuple(cycle[pivot:] + cycle[:pivot]), None)
                elif not visited[nxt]:
                    visited[nxt] = True
                    on_path[nxt] = len(path)
                    path.append(nxt)
                    stack.append(iter(self._imports[nxt]))

        return [[self._paths[i] for i in cycle] for cycle in found]

    def affected_from(
        self,
        changed_paths: Iterable[str],
        max_depth: Optional[int] = None,
    ) -> list[AffectedModule]:
        """
        Multi-source BFS over both edge directions.

        Changed paths sit at distance 0 and are not reported; every other
        reached file gets its minimal hop count and the edge it was
        reached through.
        """
        changed = set(changed_paths)
        distance: dict[int, int] = {}
        queue = deque()
        for path in sorted(changed):
            i = self._index.get(path)
            if i is not None:
                distance[i] = 0
                queue.append(i)

        affected = []
        while queue:
            node = queue.popleft()
            hop = distance[node] + 1
            if max_depth is not None and hop > max_depth:
                continue
            steps = [(j, f"imports {self._paths[node]}") for j in self._imported_by[node]]
            steps += [(j, f"imported by {self._paths[node]}") for j in self._imports[node]]
            for nxt, reason in steps:
                if nxt in distance:
                    continue
                distance[nxt] = hop
                queue.append(nxt)
                if self._paths[nxt] not in changed:
                    affected.append(AffectedModule(
                        path=self._paths[nxt],
                        distance=hop,
                        reason=reason,
                        via=self._paths[node],
                    ))

        affected.sort(key=lambda m: (m.distance, m.path))
        return affected

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "nodes": [self.get_node(p).to_dict() for p in self._paths],
            "edges": [e.to_dict() for e in self.edges()],
        }
