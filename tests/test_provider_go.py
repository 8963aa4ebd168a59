"""Tests for the Go provider."""

import pytest

from impactgraph.models import SymbolKind
from impactgraph.providers import GoProvider


@pytest.fixture
def provider():
    return GoProvider()


GO_SOURCE = """\
package service

import "fmt"

import (
	"context"
	api "github.com/acme/shop/internal/api"
	. "github.com/acme/shop/pkg/dsl"
	_ "github.com/lib/pq"
	// "commented/out"
)

const MaxRetries = 3

var (
	ErrNotFound = errors.New("not found")
	cache       = map[string]int{}
)

type (
	Store interface {
		Get(id string) string
	}
	Item struct {
		ID string
	}
	ID = string
)

type Service struct {
	store Store
}

type Handler interface {
	Handle() error
}

type Alias = Service

/*
func Commented() {}
*/

func NewService(s Store) *Service {
	return &Service{store: s}
}

func (s *Service) Run(ctx context.Context) error {
	return nil
}

func helper() {}
"""


class TestGoImports:
    """Single and grouped imports"""

    @pytest.fixture
    def imports(self, provider):
        return provider.extract_imports(GO_SOURCE)

    def test_sources(self, imports):
        assert [i.source for i in imports] == [
            "fmt",
            "context",
            "github.com/acme/shop/internal/api",
            "github.com/acme/shop/pkg/dsl",
            "github.com/lib/pq",
        ]

    def test_package_name_binding(self, imports):
        assert imports[0].specifiers == ("fmt",)
        assert imports[0].is_namespace

    def test_alias(self, imports):
        assert imports[2].specifiers == ("api",)

    def test_dot_import(self, imports):
        assert imports[3].specifiers == ("*",)
        assert imports[3].is_namespace

    def test_blank_import(self, imports):
        assert imports[4].specifiers == ()


class TestGoExports:
    """Capitalized package-level identifiers"""

    def test_exports(self, provider):
        exports = {e.name: e.kind for e in provider.extract_exports(GO_SOURCE)}
        assert exports == {
            "MaxRetries": SymbolKind.VARIABLE,
            "ErrNotFound": SymbolKind.VARIABLE,
            "Store": SymbolKind.INTERFACE,
            "Item": SymbolKind.CLASS,
            "ID": SymbolKind.TYPE,
            "Service": SymbolKind.CLASS,
            "Handler": SymbolKind.INTERFACE,
            "Alias": SymbolKind.TYPE,
            "NewService": SymbolKind.FUNCTION,
        }


class TestGoSymbols:
    """Package clause and declarations"""

    @pytest.fixture
    def symbols(self, provider):
        return provider.extract_symbols(GO_SOURCE, "internal/service/service.go")

    def test_package_namespace(self, symbols):
        assert symbols[0].name == "service"
        assert symbols[0].kind == SymbolKind.NAMESPACE
        assert symbols[0].line == 1

    def test_method(self, symbols):
        run = next(s for s in symbols if s.name == "Run")
        assert run.kind == SymbolKind.METHOD
        assert run.exported

    def test_unexported(self, symbols):
        by_name = {s.name: s for s in symbols}
        assert not by_name["helper"].exported
        assert not by_name["cache"].exported

    def test_block_comment_skipped(self, symbols):
        assert "Commented" not in {s.name for s in symbols}

    def test_struct_fields_skipped(self, symbols):
        assert "store" not in {s.name for s in symbols}


class TestGoResolution:
    """Package path to file mapping"""

    EXISTING = frozenset({
        "internal/api/router.go",
        "internal/api/handler.go",
        "internal/api/handler_test.go",
        "pkg/dsl/dsl.go",
        "cmd/server/main.go",
        "util/strings.go",
    })

    def test_module_path_prefix_stripped(self, provider):
        assert provider.resolve_import_path(
            "cmd/server/main.go", "github.com/acme/shop/internal/api", self.EXISTING
        ) == "internal/api/handler.go"

    def test_module_name_without_domain(self, provider):
        assert provider.resolve_import_path(
            "cmd/server/main.go", "myapp/internal/api", self.EXISTING
        ) == "internal/api/handler.go"

    def test_relative(self, provider):
        assert provider.resolve_import_path(
            "cmd/server/main.go", "../../util", self.EXISTING
        ) == "util/strings.go"

    def test_test_files_only_as_fallback(self, provider):
        existing = frozenset({"pkg/x/x_test.go"})
        assert provider.resolve_import_path("main.go", "example.com/m/pkg/x", existing) == "pkg/x/x_test.go"

    @pytest.mark.parametrize("source", ["fmt", "net/http", "github.com/lib/pq"])
    def test_external(self, provider, source):
        assert provider.resolve_import_path("cmd/server/main.go", source, self.EXISTING) is None
