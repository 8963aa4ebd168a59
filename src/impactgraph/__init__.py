"""
impactgraph - multi-language dependency graph and change impact analysis.

Usage:
    from impactgraph import Engine

    engine = Engine("/path/to/repo")
    engine.index()
    result = engine.analyze_impact(base="main")
    print(result.risk_score.level)
"""

__version__ = "0.1.0"

from .engine import Engine
from .errors import (
    EngineNotInitialized,
    GitUnavailable,
    ImpactGraphError,
    MalformedArchitectureModel,
    UnreadableFile,
)
from .graph import DependencyGraph
from .impact import ImpactAnalyzer
from .indexer import RepoIndexer
from .providers import LanguageProviderRegistry
from .symbol_map import SymbolMap

__all__ = [
    "Engine",
    "RepoIndexer",
    "DependencyGraph",
    "SymbolMap",
    "ImpactAnalyzer",
    "LanguageProviderRegistry",
    "ImpactGraphError",
    "UnreadableFile",
    "MalformedArchitectureModel",
    "GitUnavailable",
    "EngineNotInitialized",
]
