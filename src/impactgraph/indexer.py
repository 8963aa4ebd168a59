"""
Repository indexer - walks a repo and extracts one FileRecord per file.

Usage:
    indexer = RepoIndexer("/path/to/repo")
    files = indexer.index()          # {path: FileRecord}, sorted by path
    indexer.stats()
"""

import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from . import config
from .errors import UnreadableFile
from .models import FileRecord
from .providers import IGNORE_DIRS, LanguageProviderRegistry

logger = logging.getLogger(__name__)


class RepoIndexer:
    """
    Repository indexer

    Per-file extraction runs on a thread pool; results are merged on the
    calling thread. index() runs at most once at a time: concurrent
    callers wait on the same in-flight Future, and once it succeeded
    later calls return the stored result until invalidate().
    """

    def __init__(
        self,
        root,
        registry: Optional[LanguageProviderRegistry] = None,
        max_file_size: Optional[int] = None,
        workers: Optional[int] = None,
    ):
        self.root = Path(root).resolve()
        self.registry = registry or LanguageProviderRegistry()
        self.max_file_size = config.MAX_FILE_SIZE if max_file_size is None else max_file_size
        self.workers = max(1, workers or config.WORKERS)

        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._files: Mapping[str, FileRecord] = MappingProxyType({})
        self._errors: list[UnreadableFile] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def index(self) -> Mapping[str, FileRecord]:
        with self._lock:
            future = self._future
            owner = future is None
            if owner:
                future = self._future = Future()

        if not owner:
            return future.result()

        try:
            files, errors = self._scan()
        except BaseException as e:
            # Release the claim so a later call can retry
            with self._lock:
                if self._future is future:
                    self._future = None
            future.set_exception(e)
            raise

        with self._lock:
            self._files = files
            self._errors = errors
        future.set_result(files)
        return files

    def invalidate(self):
        """Drop the completed result; the next index() rescans."""
        with self._lock:
            self._future = None

    @property
    def is_indexed(self) -> bool:
        future = self._future
        return future is not None and future.done() and future.exception() is None

    @property
    def files(self) -> Mapping[str, FileRecord]:
        return self._files

    @property
    def errors(self) -> list[UnreadableFile]:
        return list(self._errors)

    def get_file(self, path: str) -> Optional[FileRecord]:
        return self._files.get(path)

    def stats(self) -> dict:
        files = self._files
        languages: dict[str, int] = {}
        symbols = exports = imports = 0
        for record in files.values():
            symbols += len(record.symbols)
            exports += len(record.exports)
            imports += len(record.imports)
            languages[record.language] = languages.get(record.language, 0) + 1

        return {
            "files": len(files),
            "symbols": symbols,
            "exports": exports,
            "imports": imports,
            "avg_fan_out": round(imports / len(files), 2) if files else 0.0,
            "languages": dict(sorted(languages.items())),
        }

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def discover(self) -> list[str]:
        """Supported files under root, repo-relative with forward slashes, sorted."""
        found = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORE_DIRS)
            rel_dir = os.path.relpath(dirpath, self.root)
            for name in filenames:
                rel = name if rel_dir == "." else f"{rel_dir}/{name}"
                rel = rel.replace(os.sep, "/")
                if self.registry.is_supported(rel):
                    found.append(rel)
        return sorted(found)

    def _scan(self):
        started = time.perf_counter()
        paths = self.discover()

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            results = list(pool.map(self._process_safely, paths))

        files = {}
        errors = []
        for path, outcome in zip(paths, results):
            if isinstance(outcome, UnreadableFile):
                logger.warning("Skipping %s: %s", path, outcome.reason)
                errors.append(outcome)
            else:
                files[path] = outcome

        logger.info(
            "Indexed %d files (%d skipped) in %.2fs",
            len(files), len(errors), time.perf_counter() - started,
        )
        return MappingProxyType(files), errors

    def _process_safely(self, rel_path: str):
        try:
            return self.process_file(rel_path)
        except UnreadableFile as e:
            return e

    def process_file(self, rel_path: str) -> FileRecord:
        """Read one file and run its provider's extractors."""
        provider = self.registry.for_file(rel_path)
        if provider is None:
            raise UnreadableFile(rel_path, "unsupported file type")

        full_path = self.root / rel_path
        started = time.perf_counter()
        try:
            size = full_path.stat().st_size
            if size > self.max_file_size:
                raise UnreadableFile(rel_path, f"larger than {self.max_file_size} bytes")
            content = full_path.read_bytes().decode("utf-8")
        except UnicodeDecodeError:
            raise UnreadableFile(rel_path, "not valid UTF-8") from None
        except OSError as e:
            raise UnreadableFile(rel_path, e.strerror or str(e)) from e

        record = FileRecord(
            path=rel_path,
            language=self.registry.language_of(rel_path),
            size=size,
            line_count=len(content.splitlines()),
            symbols=tuple(provider.extract_symbols(content, rel_path)),
            imports=tuple(provider.extract_imports(content)),
            exports=tuple(provider.extract_exports(content)),
        )
        logger.debug("Extracted %s in %.1fms", rel_path, (time.perf_counter() - started) * 1000)
        return record
