"""
Base language provider.
"""

import posixpath
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional

from ..models import ExportSpec, ImportSpec, Symbol


@dataclass(frozen=True)
class CommentPatterns:
    single_line: re.Pattern
    block_start: re.Pattern
    block_end: re.Pattern


class BaseProvider(ABC):
    """
    Language provider base class

    Subclasses must implement:
    - extract_imports() / extract_exports() / extract_symbols()
    - resolve_import_path()
    - id, name, extensions, file_patterns

    The extract_* methods are line oriented and must tolerate any input:
    unrecognized syntax yields fewer matches, never an exception.
    """

    id: str = ""
    name: str = ""
    extensions: list[str] = []
    file_patterns: list[str] = []

    # Used by complexity consumers
    control_flow_patterns: list[re.Pattern] = []

    # Used by hot-path consumers
    entry_point_patterns: list[re.Pattern] = []

    comment_patterns = CommentPatterns(
        single_line=re.compile(r"//"),
        block_start=re.compile(r"/\*"),
        block_end=re.compile(r"\*/"),
    )

    @abstractmethod
    def extract_imports(self, content: str) -> list[ImportSpec]:
        pass

    @abstractmethod
    def extract_exports(self, content: str) -> list[ExportSpec]:
        pass

    @abstractmethod
    def extract_symbols(self, content: str, file_path: str) -> list[Symbol]:
        pass

    @abstractmethod
    def resolve_import_path(
        self,
        from_path: str,
        source: str,
        existing_paths: set[str] | frozenset[str],
    ) -> Optional[str]:
        """
        Map a raw import specifier to an indexed file path.

        Returns None for anything that does not land on a path in
        existing_paths (packages, stdlib, typos, generated code).
        """
        pass

    def can_handle(self, path: str) -> bool:
        return posixpath.splitext(path)[1] in self.extensions

    def language_for(self, extension: str) -> str:
        """Language id reported for a file extension"""
        return self.id

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def join(*parts: str) -> str:
        """Join and normalize to a forward-slash repo-relative path"""
        joined = posixpath.normpath(posixpath.join(*parts).replace("\\", "/"))
        return "" if joined == "." else joined

    @staticmethod
    def first_existing(candidates: Iterable[str], existing_paths) -> Optional[str]:
        for candidate in candidates:
            if candidate and candidate in existing_paths:
                return candidate
        return None

    def candidates_for(self, base: str, index_names: Iterable[str] = ()) -> list[str]:
        """
        Candidate order shared by all providers:
        literal path, path + each extension, then directory index files.
        """
        candidates = [base]
        candidates.extend(base + ext for ext in self.extensions)
        candidates.extend(self.join(base, name) for name in index_names)
        return candidates

    @staticmethod
    def split_names(text: str) -> list[str]:
        """Split "a, b as c, d" into ["a", "b", "d"]"""
        names = []
        for part in text.split(","):
            name = re.split(r"\s+as\s+", part.strip())[0].strip()
            if name:
                names.append(name)
        return names
