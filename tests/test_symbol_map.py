"""Tests for SymbolMap."""

import pytest

from impactgraph.graph import DependencyGraph
from impactgraph.indexer import RepoIndexer
from impactgraph.models import SymbolKind
from impactgraph.providers import LanguageProviderRegistry
from impactgraph.symbol_map import SymbolMap


def symbol_map_for(root) -> SymbolMap:
    registry = LanguageProviderRegistry()
    files = RepoIndexer(root, registry=registry).index()
    graph = DependencyGraph().build_from_imports(files, registry)
    return SymbolMap(files, graph)


@pytest.fixture
def symbols(layered_repo):
    return symbol_map_for(layered_repo)


class TestSymbolQueries:
    """Declaration lookups"""

    def test_find_by_name(self, symbols):
        found = symbols.find_by_name("formatDate")
        assert len(found) == 1
        assert found[0].file_path == "src/core/utils.ts"
        assert found[0].kind == SymbolKind.FUNCTION

    def test_find_by_name_missing(self, symbols):
        assert symbols.find_by_name("nothing") == []

    def test_find_in_file(self, symbols):
        names = [s.name for s in symbols.find_in_file("src/core/types.ts")]
        assert names == ["Item", "Id"]

    def test_find_by_kind_accepts_string(self, symbols):
        names = [s.name for s in symbols.find_by_kind("function")]
        assert names == ["format", "formatDate", "unused", "run"]
        assert symbols.find_by_kind(SymbolKind.INTERFACE)[0].name == "Item"

    def test_find_exported(self, symbols):
        assert {s.name for s in symbols.find_exported()} == {
            "format", "Item", "Id", "formatDate", "unused", "run",
        }

    def test_count(self, symbols):
        assert symbols.count() == len(symbols.all_symbols()) == 6


class TestReferenceCounts:
    """Fan-in over resolved imports"""

    def test_named_imports(self, symbols):
        assert symbols.reference_count("format") == 2
        assert symbols.reference_count("formatDate") == 1
        assert symbols.reference_count("unused") == 0

    def test_type_only_imports_count(self, symbols):
        assert symbols.reference_count("Item") == 2

    def test_scoped_to_file(self, symbols):
        assert symbols.reference_count("format", "src/cli/formatter.ts") == 2
        assert symbols.reference_count("format", "src/core/utils.ts") == 0

    def test_orphan_exports(self, symbols):
        assert [(s.file_path, s.name) for s in symbols.orphan_exports()] == [
            ("src/core/types.ts", "Id"),
            ("src/core/utils.ts", "unused"),
        ]

    def test_default_and_namespace_imports(self, make_repo):
        root = make_repo({
            "router.ts": "export function route() {}\nexport default router;\n",
            "a.ts": "import r from './router';\n",
            "b.ts": "import * as all from './router';\n",
        })
        symbols = symbol_map_for(root)
        assert symbols.reference_count("default", "router.ts") == 2
        assert symbols.reference_count("route", "router.ts") == 1

    @pytest.mark.parametrize("files, target, name", [
        (
            {
                "go.mod": "module example.com/m\n",
                "cmd/main.go": 'package main\n\nimport "example.com/m/pkg/util"\n\nfunc main() { util.Helper() }\n',
                "pkg/util/util.go": "package util\n\nfunc Helper() {}\n",
            },
            "pkg/util/util.go",
            "Helper",
        ),
        (
            {
                "app.py": "import lib.helpers\n\nlib.helpers.helper()\n",
                "lib/helpers.py": "def helper():\n    return 1\n",
            },
            "lib/helpers.py",
            "helper",
        ),
        (
            {
                "main.rb": "require_relative 'lib/greeter'\n\nGreeter.new\n",
                "lib/greeter.rb": "class Greeter\nend\n",
            },
            "lib/greeter.rb",
            "Greeter",
        ),
    ], ids=["go", "python", "ruby"])
    def test_whole_module_imports_reach_every_export(self, make_repo, files, target, name):
        symbols = symbol_map_for(make_repo(files))
        assert symbols.reference_count(name, target) == 1
        assert symbols.orphan_exports() == []

    def test_fan_in_counter(self, symbols):
        counts = symbols.fan_in()
        assert counts[("src/cli/formatter.ts", "format")] == 2
        assert counts[("src/core/utils.ts", "unused")] == 0

    def test_without_graph(self, layered_repo):
        files = RepoIndexer(layered_repo).index()
        assert SymbolMap(files).reference_count("format") == 0
