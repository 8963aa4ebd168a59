"""
Runtime defaults.

Each value can be overridden through the environment; constructor
arguments and CLI flags take precedence over both.
"""

import os

# Files larger than this are skipped by the indexer (bytes)
MAX_FILE_SIZE = int(os.environ.get("IMPACTGRAPH_MAX_FILE_SIZE", str(1_048_576)))

# Hop bound for blast-radius search
MAX_IMPACT_DEPTH = int(os.environ.get("IMPACTGRAPH_MAX_DEPTH", "5"))

# Worker threads for per-file extraction and import resolution
WORKERS = int(os.environ.get("IMPACTGRAPH_WORKERS", str(min(32, (os.cpu_count() or 1) + 4))))

# Per-project directory holding architecture.yaml
CONFIG_DIR = os.environ.get("IMPACTGRAPH_CONFIG_DIR", ".impactgraph")

ARCHITECTURE_FILES = ("architecture.yaml", "architecture.yml")
