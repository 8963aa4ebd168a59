"""Tests for LanguageProviderRegistry."""

import pytest

from impactgraph.providers import (
    GoProvider,
    LanguageProviderRegistry,
    PythonProvider,
    TypeScriptProvider,
)


@pytest.fixture
def registry():
    return LanguageProviderRegistry()


class TestRegistryDispatch:
    """Extension to provider lookup"""

    @pytest.mark.parametrize("path, provider_id", [
        ("src/app.ts", "typescript"),
        ("src/App.TSX", "typescript"),
        ("lib/index.mjs", "typescript"),
        ("pkg/mod.py", "python"),
        ("app/models/user.rb", "ruby"),
        ("src/main/java/App.java", "java"),
        ("cmd/main.go", "go"),
        ("src/lib.rs", "rust"),
    ])
    def test_for_file(self, registry, path, provider_id):
        assert registry.for_file(path).id == provider_id

    def test_unsupported(self, registry):
        assert registry.for_file("README.md") is None
        assert not registry.is_supported("Makefile")
        assert registry.language_of("notes.txt") == "unknown"

    def test_for_extension_accepts_bare_extension(self, registry):
        assert registry.for_extension("go").id == "go"
        assert registry.for_extension(".py").id == "python"

    def test_language_of(self, registry):
        assert registry.language_of("a.ts") == "typescript"
        assert registry.language_of("a.jsx") == "javascript"
        assert registry.language_of("a.rs") == "rust"

    def test_get_by_id(self, registry):
        assert isinstance(registry.get("python"), PythonProvider)
        assert registry.get("cobol") is None


class TestRegistryConfiguration:

    def test_explicit_provider_list(self):
        registry = LanguageProviderRegistry([GoProvider()])
        assert [p.id for p in registry.all()] == ["go"]
        assert registry.for_file("a.ts") is None

    def test_later_provider_wins_shared_extension(self, caplog):
        class FlowProvider(TypeScriptProvider):
            id = "flow"
            extensions = [".js"]

        with caplog.at_level("WARNING", logger="impactgraph.providers.registry"):
            registry = LanguageProviderRegistry([TypeScriptProvider(), FlowProvider()])
        assert registry.for_file("a.js").id == "flow"
        assert registry.for_file("a.ts").id == "typescript"
        assert "Extension .js: provider flow replaces typescript" in caplog.text

    def test_default_providers_do_not_conflict(self, caplog):
        with caplog.at_level("WARNING", logger="impactgraph.providers.registry"):
            LanguageProviderRegistry()
        assert caplog.text == ""

    def test_patterns_deduplicated(self, registry):
        patterns = registry.patterns()
        assert "**/*.ts" in patterns
        assert "**/*.go" in patterns
        assert len(patterns) == len(set(patterns))

    def test_ignore(self, registry):
        assert "**/node_modules/**" in registry.ignore_patterns()
        assert registry.is_ignored("node_modules/react/index.js")
        assert registry.is_ignored("web/dist/bundle.js")
        assert not registry.is_ignored("src/dist.ts")
