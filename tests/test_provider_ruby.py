"""Tests for the Ruby provider."""

import pytest

from impactgraph.models import SymbolKind
from impactgraph.providers import RubyProvider


@pytest.fixture
def provider():
    return RubyProvider()


IMPORTS_SOURCE = """\
require 'json'
require_relative '../lib/helper'
load 'tasks/setup.rake'
require("set")
# require 'commented'
=begin
require 'in_block'
=end
class Foo
  include Comparable
  extend Forwardable::Helpers
end
"""

EXPORTS_SOURCE = """\
module Billing
  class Invoice
    TAX = 0.2
    def total
      items.each do |i|
        i.price
      end
    end
    def self.build(attrs = {})
      new(attrs)
    end
  end
  def self.configure; end
end
def greet(name = "world")
  puts name
end
def square(x) = x * x
class After
end
"""

SYMBOLS_SOURCE = """\
class User < ApplicationRecord
  ROLES = %w[admin guest]
  attr_accessor :name, :email
  def initialize(name)
  end
  def self.find_by_email(email)
  end
end
module Auth
end
def top_level
end
"""


class TestRubyImports:
    """require / mixin extraction"""

    @pytest.fixture
    def imports(self, provider):
        return provider.extract_imports(IMPORTS_SOURCE)

    def test_sources(self, imports):
        assert [i.source for i in imports] == [
            "json", "../lib/helper", "tasks/setup.rake", "set",
            "Comparable", "Forwardable::Helpers",
        ]

    def test_require_binds_basename(self, imports):
        assert imports[1].specifiers == ("helper",)
        assert imports[1].is_namespace

    def test_load_has_no_specifiers(self, imports):
        assert imports[2].specifiers == ()
        assert not imports[2].is_namespace

    def test_mixins_are_namespace_imports(self, imports):
        assert imports[4].is_namespace
        assert imports[5].specifiers == ("Forwardable::Helpers",)


class TestRubyExports:
    """Top-level and first-level declarations"""

    @pytest.fixture
    def exports(self, provider):
        return {e.name: e.kind for e in provider.extract_exports(EXPORTS_SOURCE)}

    def test_exports(self, exports):
        assert exports == {
            "Billing": SymbolKind.NAMESPACE,
            "Invoice": SymbolKind.CLASS,
            "greet": SymbolKind.FUNCTION,
            "square": SymbolKind.FUNCTION,
            "After": SymbolKind.CLASS,
        }

    def test_default_argument_is_not_an_endless_def(self, provider):
        source = 'def greet(name = "x")\n  name\nend\nclass Later\nend\n'
        names = [e.name for e in provider.extract_exports(source)]
        assert names == ["greet", "Later"]


class TestRubySymbols:
    """Symbol extraction"""

    @pytest.fixture
    def symbols(self, provider):
        return provider.extract_symbols(SYMBOLS_SOURCE, "app/models/user.rb")

    def test_kinds(self, symbols):
        kinds = {s.name: s.kind for s in symbols}
        assert kinds == {
            "User": SymbolKind.CLASS,
            "ROLES": SymbolKind.VARIABLE,
            "name": SymbolKind.PROPERTY,
            "email": SymbolKind.PROPERTY,
            "initialize": SymbolKind.METHOD,
            "find_by_email": SymbolKind.METHOD,
            "Auth": SymbolKind.NAMESPACE,
            "top_level": SymbolKind.FUNCTION,
        }


class TestRubyResolution:
    """require path resolution"""

    EXISTING = frozenset({
        "lib/helper.rb",
        "lib/foo/bar.rb",
        "lib/my_gem.rb",
        "app/models/user.rb",
        "app/models/concerns/auditable.rb",
    })

    def test_require_relative(self, provider):
        assert provider.resolve_import_path(
            "app/models/user.rb", "concerns/auditable", self.EXISTING
        ) == "app/models/concerns/auditable.rb"

    def test_parent_relative(self, provider):
        assert provider.resolve_import_path(
            "spec/user_spec.rb", "../lib/helper", self.EXISTING
        ) == "lib/helper.rb"

    def test_lib_convention(self, provider):
        assert provider.resolve_import_path("app/x.rb", "my_gem", self.EXISTING) == "lib/my_gem.rb"
        assert provider.resolve_import_path("app/x.rb", "foo-bar", self.EXISTING) == "lib/foo/bar.rb"

    @pytest.mark.parametrize("source", ["json", "Forwardable::Helpers", "rails/all"])
    def test_external(self, provider, source):
        assert provider.resolve_import_path("app/x.rb", source, self.EXISTING) is None
