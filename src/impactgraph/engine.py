"""
Main engine - owns the index, graph and symbol map for one repository.

Usage:
1. engine.index()                 - scan repo, build graph + symbol map
2. engine.analyze_impact(...)     - diff -> ImpactResult
3. engine.cycles() / graph_dict() - structural queries
"""

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from . import config
from .architecture import find_architecture_file
from .architecture import load_architecture as read_architecture
from .errors import EngineNotInitialized, GitUnavailable, MalformedArchitectureModel
from .git import GitClient
from .graph import DependencyGraph
from .impact import ImpactAnalyzer
from .indexer import RepoIndexer
from .models import ArchitectureModel, DiffRecord, FileRecord, ImpactResult, Symbol
from .providers import LanguageProviderRegistry
from .symbol_map import SymbolMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Snapshot:
    """Structures from one completed index run; swapped in as a unit"""
    indexer: RepoIndexer
    graph: DependencyGraph
    symbols: SymbolMap
    analyzer: ImpactAnalyzer


class Engine:
    """
    Impact engine

    Main features:
    1. index() - build file records, dependency graph, symbol map (once)
    2. analyze_impact() - git diff -> blast radius, API changes, risk
    3. architecture model loading from <root>/.impactgraph/architecture.yaml
    """

    def __init__(
        self,
        root,
        registry: Optional[LanguageProviderRegistry] = None,
        max_file_size: Optional[int] = None,
        workers: Optional[int] = None,
        max_depth: Optional[int] = None,
        git: Optional[GitClient] = None,
    ):
        self.root = Path(root).resolve()
        self.registry = registry or LanguageProviderRegistry()
        self.max_file_size = max_file_size
        self.workers = workers or config.WORKERS
        self.max_depth = config.MAX_IMPACT_DEPTH if max_depth is None else max_depth
        self.git = git or GitClient(self.root)

        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        # Bumped by invalidate(); a build is stale once the two differ
        self._generation = 0
        self._future_generation = 0
        self._snapshot: Optional[_Snapshot] = None

        # None = not configured; the model stays None when no file exists
        self._architecture: Optional[ArchitectureModel] = None
        self._architecture_set = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def index(self) -> dict:
        """
        Index the repository once; concurrent callers share the same run.

        A call that follows invalidate() never settles for a build started
        before the invalidation: it waits for that build and then starts
        (or joins) a fresh one.

        Returns:
            Index statistics
        """
        while True:
            with self._lock:
                owner = self._future is None
                if owner:
                    self._future = Future()
                    self._future_generation = self._generation
                future = self._future
                started = self._future_generation
                wanted = self._generation

            if owner:
                return self._run_build(future, started)

            future.result()
            if started == wanted:
                return self.stats()
            # The owner cleared the stale build before publishing it

    initialize = index

    def _run_build(self, future: Future, generation: int) -> dict:
        try:
            snapshot = self._build()
        except BaseException as e:
            with self._lock:
                if self._future is future:
                    self._future = None
            future.set_exception(e)
            raise

        with self._lock:
            self._snapshot = snapshot
            if self._generation != generation and self._future is future:
                self._future = None
        future.set_result(snapshot)
        return self.stats()

    def invalidate(self):
        """
        Next index() rebuilds; queries keep using the current snapshot until then.

        A build already running is left to finish and publish; the rebuild
        starts after it.
        """
        with self._lock:
            self._generation += 1
            if self._future is not None and self._future.done():
                self._future = None

    @property
    def is_indexed(self) -> bool:
        return self._snapshot is not None

    def _build(self) -> _Snapshot:
        # Fresh objects every run so readers of the previous snapshot are unaffected
        indexer = RepoIndexer(
            self.root,
            registry=self.registry,
            max_file_size=self.max_file_size,
            workers=self.workers,
        )
        files = indexer.index()
        graph = DependencyGraph().build_from_imports(files, self.registry, workers=self.workers)
        symbols = SymbolMap(files, graph)
        analyzer = ImpactAnalyzer(graph, self.registry, root=self.root, max_depth=self.max_depth)

        if not self._architecture_set:
            # Re-read on every build so edits to the file are picked up
            self._architecture = self._read_architecture()
        analyzer.set_architecture(self._architecture)

        return _Snapshot(indexer=indexer, graph=graph, symbols=symbols, analyzer=analyzer)

    def _require(self) -> _Snapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise EngineNotInitialized("call index() before querying the engine")
        return snapshot

    # ------------------------------------------------------------------
    # Architecture
    # ------------------------------------------------------------------

    def set_architecture(self, model: Optional[ArchitectureModel]):
        """Configure (or with None, clear) the architecture model."""
        self._architecture = model
        self._architecture_set = True
        snapshot = self._snapshot
        if snapshot is not None:
            snapshot.analyzer.set_architecture(model)

    def _read_architecture(self, path=None) -> Optional[ArchitectureModel]:
        path = Path(path) if path is not None else find_architecture_file(self.root)
        if path is None:
            return None
        try:
            return read_architecture(path)
        except MalformedArchitectureModel as e:
            logger.warning("Ignoring architecture model: %s", e)
            return None

    def load_architecture(self, path=None) -> Optional[ArchitectureModel]:
        """
        Load the architecture model from path, or from the project config
        directory. A missing or malformed file leaves the model absent.
        """
        model = self._read_architecture(path)
        self.set_architecture(model)
        return model

    @property
    def architecture(self) -> Optional[ArchitectureModel]:
        return self._architecture

    # ------------------------------------------------------------------
    # Impact
    # ------------------------------------------------------------------

    def get_diff(self, base: str = "HEAD", head: Optional[str] = None, staged: bool = False) -> DiffRecord:
        """Diff from git; an empty diff when git cannot provide one."""
        try:
            if staged:
                return self.git.get_staged_diff()
            return self.git.get_diff(base, head)
        except GitUnavailable as e:
            logger.warning("Git unavailable, analyzing an empty diff: %s", e)
            return DiffRecord.empty(base="HEAD" if staged else base, head="staged" if staged else head or "")

    def _reader(self, ref: str):
        def read(path: str) -> Optional[str]:
            try:
                return self.git.show_file(ref, path)
            except GitUnavailable:
                return None
        return read

    def analyze_impact(
        self,
        base: str = "HEAD",
        head: Optional[str] = None,
        staged: bool = False,
        depth: Optional[int] = None,
    ) -> ImpactResult:
        """
        Analyze the change between base and head (working tree when head
        is None, the index when staged).
        """
        snapshot = self._require()
        diff = self.get_diff(base, head, staged)

        base_reader = head_reader = None
        if diff.files:
            base_reader = self._reader("HEAD" if staged else base)
            if head and not staged:
                head_reader = self._reader(head)

        return snapshot.analyzer.analyze(
            diff,
            snapshot.indexer.files,
            snapshot.symbols,
            max_depth=depth,
            base_reader=base_reader,
            head_reader=head_reader,
        )

    def analyze_diff(self, diff: DiffRecord, depth: Optional[int] = None) -> ImpactResult:
        """Analyze a caller-supplied diff against the current index."""
        snapshot = self._require()
        return snapshot.analyzer.analyze(diff, snapshot.indexer.files, snapshot.symbols, max_depth=depth)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def files(self) -> Mapping[str, FileRecord]:
        return self._require().indexer.files

    @property
    def graph(self) -> DependencyGraph:
        return self._require().graph

    @property
    def symbols(self) -> SymbolMap:
        return self._require().symbols

    def get_file(self, path: str) -> Optional[FileRecord]:
        return self._require().indexer.get_file(path)

    def find_symbol(self, name: str) -> list[Symbol]:
        return self._require().symbols.find_by_name(name)

    def orphan_exports(self) -> list[Symbol]:
        return self._require().symbols.orphan_exports()

    def cycles(self) -> list[list[str]]:
        return self._require().graph.detect_cycles()

    def graph_dict(self) -> dict:
        return self._require().graph.to_dict()

    def stats(self) -> dict:
        snapshot = self._require()
        stats = snapshot.indexer.stats()
        stats["edges"] = len(snapshot.graph.edges())
        stats["errors"] = [
            {"path": e.path, "reason": e.reason}
            for e in snapshot.indexer.errors
        ]
        return stats
