"""Shared fixtures."""

from pathlib import Path

import pytest


def write_files(root: Path, files: dict) -> Path:
    """Write {relative path: content} under root; bytes are written as-is."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_repo(tmp_path):
    """Build a small source tree under tmp_path."""
    def make(files: dict) -> Path:
        return write_files(tmp_path, files)
    return make


# A TypeScript project with a layered layout:
#   cli/formatter <- modules/test-module -> core/types
#   core/types <- core/utils
#   index -> cli/formatter
LAYERED_TS = {
    "src/core/types.ts": (
        "export interface Item {\n"
        "  id: string;\n"
        "}\n"
        "export type Id = string;\n"
    ),
    "src/core/utils.ts": (
        "import type { Item } from './types';\n"
        "\n"
        "export function formatDate(d: Date): string {\n"
        "  return d.toISOString();\n"
        "}\n"
        "\n"
        "export function unused() {}\n"
    ),
    "src/cli/formatter.ts": (
        "import { formatDate } from '../core/utils';\n"
        "\n"
        "export function format(value: string): string {\n"
        "  return value.trim();\n"
        "}\n"
    ),
    "src/modules/test-module.ts": (
        "import { format } from '../cli/formatter';\n"
        "import { Item } from '../core/types';\n"
        "import lodash from 'lodash';\n"
        "\n"
        "export function run(item: Item) {\n"
        "  return format(item.id);\n"
        "}\n"
    ),
    "src/index.ts": (
        "import { format } from './cli/formatter';\n"
        "import { run } from './modules/test-module';\n"
    ),
}


@pytest.fixture
def layered_repo(make_repo):
    return make_repo(LAYERED_TS)
