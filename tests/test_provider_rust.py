"""Tests for the Rust provider."""

import pytest

from impactgraph.models import SymbolKind
from impactgraph.providers import RustProvider


@pytest.fixture
def provider():
    return RustProvider()


RUST_SOURCE = """\
use std::collections::HashMap;
use crate::models::User;
use super::utils::{format_date, parse as parse_date};
use self::inner::*;
use crate::config::{
    Config,
    Settings,
};
pub use crate::errors::Error as AppError;
mod inner;
pub mod api;

/// Doc comment
pub struct Service {
    users: HashMap<u64, User>,
}

impl Service {
    pub fn new() -> Self {
        Self { users: HashMap::new() }
    }

    fn helper(&self) {}
}

pub trait Repository {
    fn find(&self, id: u64) -> Option<User>;
}

pub enum Status { Active, Inactive }

pub(crate) async fn run() {}

fn private_fn() {}

pub const MAX: usize = 10;

pub type Result<T> = std::result::Result<T, AppError>;

#[macro_export]
macro_rules! log_event {
    ($e:expr) => {};
}
"""


class TestRustImports:
    """use paths and mod declarations"""

    @pytest.fixture
    def imports(self, provider):
        return provider.extract_imports(RUST_SOURCE)

    def test_sources(self, imports):
        assert [i.source for i in imports] == [
            "std::collections::HashMap",
            "crate::models::User",
            "super::utils",
            "self::inner",
            "crate::config",
            "crate::errors::Error",
            "inner",
            "api",
        ]

    def test_simple(self, imports):
        assert imports[0].specifiers == ("HashMap",)

    def test_group_with_alias(self, imports):
        assert imports[2].specifiers == ("format_date", "parse")

    def test_glob(self, imports):
        assert imports[3].specifiers == ("*",)
        assert imports[3].is_namespace

    def test_multi_line_group(self, imports):
        assert imports[4].specifiers == ("Config", "Settings")
        assert imports[4].line == 5

    def test_alias(self, imports):
        assert imports[5].specifiers == ("AppError",)

    def test_mod_declaration(self, imports):
        assert imports[6].is_namespace
        assert imports[7].specifiers == ("api",)


class TestRustExports:
    """Top-level pub items"""

    def test_exports(self, provider):
        exports = {e.name: e.kind for e in provider.extract_exports(RUST_SOURCE)}
        assert exports == {
            "AppError": SymbolKind.VARIABLE,
            "api": SymbolKind.NAMESPACE,
            "Service": SymbolKind.CLASS,
            "Repository": SymbolKind.INTERFACE,
            "Status": SymbolKind.ENUM,
            "run": SymbolKind.FUNCTION,
            "MAX": SymbolKind.VARIABLE,
            "Result": SymbolKind.TYPE,
            "log_event": SymbolKind.FUNCTION,
        }


class TestRustSymbols:
    """Items and impl methods"""

    @pytest.fixture
    def symbols(self, provider):
        return {s.name: s for s in provider.extract_symbols(RUST_SOURCE, "src/service.rs")}

    def test_impl_methods(self, symbols):
        assert symbols["new"].kind == SymbolKind.METHOD
        assert symbols["new"].exported
        assert symbols["helper"].kind == SymbolKind.METHOD
        assert not symbols["helper"].exported

    def test_trait_methods(self, symbols):
        assert symbols["find"].kind == SymbolKind.METHOD

    def test_free_functions(self, symbols):
        assert symbols["run"].kind == SymbolKind.FUNCTION
        assert symbols["private_fn"].kind == SymbolKind.FUNCTION
        assert not symbols["private_fn"].exported

    def test_modules(self, symbols):
        assert symbols["inner"].kind == SymbolKind.NAMESPACE
        assert symbols["api"].exported

    def test_impl_with_where_clause(self, provider):
        source = (
            "impl<T> Store<T>\n"
            "where\n"
            "    T: Clone,\n"
            "{\n"
            "    fn get(&self) {}\n"
            "}\n"
            "fn after() {}\n"
        )
        kinds = {s.name: s.kind for s in provider.extract_symbols(source, "src/store.rs")}
        assert kinds == {"get": SymbolKind.METHOD, "after": SymbolKind.FUNCTION}


class TestRustResolution:
    """Module path resolution"""

    EXISTING = frozenset({
        "src/lib.rs",
        "src/models.rs",
        "src/utils.rs",
        "src/config/mod.rs",
        "src/api/mod.rs",
        "src/api/handlers.rs",
        "src/api/handlers/users.rs",
    })

    @pytest.mark.parametrize("from_path, source, expected", [
        ("src/api/handlers.rs", "crate::models::User", "src/models.rs"),
        ("src/api/handlers.rs", "crate::config::Config", "src/config/mod.rs"),
        ("src/api/handlers.rs", "crate", "src/lib.rs"),
        ("src/api/handlers.rs", "super::super::utils", "src/utils.rs"),
        ("src/api/handlers/users.rs", "super::super::handlers", "src/api/handlers.rs"),
        ("src/lib.rs", "api", "src/api/mod.rs"),
        ("src/api/handlers.rs", "users", "src/api/handlers/users.rs"),
        ("src/api/mod.rs", "self::handlers", "src/api/handlers.rs"),
    ])
    def test_resolves(self, provider, from_path, source, expected):
        assert provider.resolve_import_path(from_path, source, self.EXISTING) == expected

    @pytest.mark.parametrize("source", ["std::collections::HashMap", "serde", "tokio::sync::Mutex"])
    def test_external(self, provider, source):
        assert provider.resolve_import_path("src/lib.rs", source, self.EXISTING) is None
