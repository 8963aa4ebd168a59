"""Language providers."""

from .base import BaseProvider, CommentPatterns
from .go import GoProvider
from .java import JavaProvider
from .python import PythonProvider
from .registry import IGNORE_DIRS, LanguageProviderRegistry, default_providers
from .ruby import RubyProvider
from .rust import RustProvider
from .typescript import TypeScriptProvider

__all__ = [
    "BaseProvider",
    "CommentPatterns",
    "LanguageProviderRegistry",
    "IGNORE_DIRS",
    "default_providers",
    "TypeScriptProvider",
    "PythonProvider",
    "RubyProvider",
    "JavaProvider",
    "GoProvider",
    "RustProvider",
]
