"""
Language provider registry.

Built explicitly and passed to the indexer and graph; there is no
process-wide instance.
"""

import logging
import posixpath
from types import MappingProxyType
from typing import Iterable, Optional

from .base import BaseProvider
from .go import GoProvider
from .java import JavaProvider
from .python import PythonProvider
from .ruby import RubyProvider
from .rust import RustProvider
from .typescript import TypeScriptProvider

logger = logging.getLogger(__name__)

# Directory names never descended into during discovery
IGNORE_DIRS = frozenset({
    "node_modules",
    "dist",
    "build",
    ".git",
    "coverage",
    "vendor",
    "__pycache__",
    "target",
    "bin",
    "obj",
    ".venv",
    "venv",
})


def default_providers() -> list[BaseProvider]:
    return [
        TypeScriptProvider(),
        PythonProvider(),
        RubyProvider(),
        JavaProvider(),
        GoProvider(),
        RustProvider(),
    ]


class LanguageProviderRegistry:
    """
    Extension -> provider dispatch.

    Immutable after construction; later providers win on a shared
    extension.
    """

    def __init__(self, providers: Optional[Iterable[BaseProvider]] = None):
        if providers is None:
            providers = default_providers()

        by_id = {}
        by_extension = {}
        for provider in providers:
            by_id[provider.id] = provider
            for ext in provider.extensions:
                ext = ext.lower()
                previous = by_extension.get(ext)
                if previous is not None and previous is not provider:
                    logger.warning(
                        "Extension %s: provider %s replaces %s", ext, provider.id, previous.id,
                    )
                by_extension[ext] = provider

        self._by_id = MappingProxyType(by_id)
        self._by_extension = MappingProxyType(by_extension)

    def get(self, provider_id: str) -> Optional[BaseProvider]:
        return self._by_id.get(provider_id)

    def for_extension(self, ext: str) -> Optional[BaseProvider]:
        if ext and not ext.startswith("."):
            ext = "." + ext
        return self._by_extension.get(ext.lower())

    def for_file(self, path: str) -> Optional[BaseProvider]:
        return self.for_extension(posixpath.splitext(path)[1])

    def all(self) -> list[BaseProvider]:
        return list(self._by_id.values())

    def extensions(self) -> list[str]:
        return list(self._by_extension)

    def patterns(self) -> list[str]:
        """Union of discovery globs of every provider, de-duplicated"""
        seen = []
        for provider in self._by_id.values():
            for pattern in provider.file_patterns:
                if pattern not in seen:
                    seen.append(pattern)
        return seen

    def ignore_patterns(self) -> list[str]:
        return [f"**/{name}/**" for name in sorted(IGNORE_DIRS)]

    def is_ignored(self, path: str) -> bool:
        """True when any directory component of path is on the ignore list"""
        return any(part in IGNORE_DIRS for part in path.split("/")[:-1])

    def is_supported(self, path: str) -> bool:
        return self.for_file(path) is not None

    def language_of(self, path: str) -> str:
        provider = self.for_file(path)
        if provider is None:
            return "unknown"
        return provider.language_for(posixpath.splitext(path)[1].lower())
