"""
Ruby provider.
"""

import posixpath
import re

from ..models import ExportSpec, ImportSpec, Symbol, SymbolKind
from .base import BaseProvider, CommentPatterns


class RubyProvider(BaseProvider):
    """
    Ruby provider

    Extracts:
    - require / require_relative / load
    - include / extend (module mixins, recorded as namespace imports)
    - classes, modules, methods, constants, attr_* properties
    """

    id = "ruby"
    name = "Ruby"
    extensions = [".rb", ".rake", ".gemspec"]
    file_patterns = ["**/*.rb", "**/*.rake", "**/*.gemspec", "**/Rakefile", "**/Gemfile"]

    REQUIRE_PATTERN = re.compile(r"""^(require|require_relative|load)\s*\(?\s*['"]([^'"]+)['"]""")
    MIXIN_PATTERN = re.compile(r"^(?:include|extend)\s+(\w+(?:::\w+)*)")
    CLASS_PATTERN = re.compile(r"^class\s+(\w+(?:::\w+)*)")
    MODULE_PATTERN = re.compile(r"^module\s+(\w+(?:::\w+)*)")
    DEF_PATTERN = re.compile(r"^def\s+(self\.)?(\w+[?!=]?)")
    CONSTANT_PATTERN = re.compile(r"^([A-Z][A-Z0-9_]*)\s*=(?!=)")
    ATTR_PATTERN = re.compile(r"^attr_(?:accessor|reader|writer)\s+(.+)$")

    # Keywords that open a block closed by `end`
    OPENER_PATTERN = re.compile(r"^(?:class|module|def|if|unless|case|while|until|for|begin)\b")
    DO_BLOCK_PATTERN = re.compile(r"\bdo\s*(?:\|[^|]*\|)?\s*$")
    END_PATTERN = re.compile(r"^end\b")
    ONE_LINE_DEF_PATTERN = re.compile(r"^def\s+.*;\s*end\b|^def\s+[\w.]+[?!]?(?:\([^)]*\)\s*|\s+)=(?!=)")

    comment_patterns = CommentPatterns(
        single_line=re.compile(r"#"),
        block_start=re.compile(r"^=begin"),
        block_end=re.compile(r"^=end"),
    )

    control_flow_patterns = [
        re.compile(r"\bif\b"),
        re.compile(r"\belsif\b"),
        re.compile(r"\belse\b"),
        re.compile(r"\bunless\b"),
        re.compile(r"\bcase\b"),
        re.compile(r"\bwhen\b"),
        re.compile(r"\bwhile\b"),
        re.compile(r"\buntil\b"),
        re.compile(r"\bfor\b"),
        re.compile(r"\brescue\b"),
        re.compile(r"\bensure\b"),
        re.compile(r"&&"),
        re.compile(r"\|\|"),
    ]

    entry_point_patterns = [
        re.compile(r"""get\s+['"][^'"]+['"]"""),
        re.compile(r"""post\s+['"][^'"]+['"]"""),
        re.compile(r"resources?\s+:"),
        re.compile(r"Rails\.application\.routes"),
        re.compile(r"class\s+\w+Controller"),
    ]

    def _code_lines(self, content: str):
        """Yield (line_no, raw, stripped) for code lines, skipping =begin/=end blocks and comments"""
        in_block = False
        for line_no, raw in enumerate(content.splitlines(), 1):
            if in_block:
                if raw.startswith("=end"):
                    in_block = False
                continue
            if raw.startswith("=begin"):
                in_block = True
                continue
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            yield line_no, raw, line

    def extract_imports(self, content: str) -> list[ImportSpec]:
        imports = []

        for line_no, _raw, line in self._code_lines(content):
            match = self.REQUIRE_PATTERN.match(line)
            if match:
                keyword, source = match.group(1), match.group(2)
                imports.append(ImportSpec(
                    source=source,
                    specifiers=() if keyword == "load" else (source.rsplit("/", 1)[-1],),
                    is_namespace=keyword != "load",
                    line=line_no,
                ))
                continue

            match = self.MIXIN_PATTERN.match(line)
            if match:
                imports.append(ImportSpec(
                    source=match.group(1),
                    specifiers=(match.group(1),),
                    is_namespace=True,
                    line=line_no,
                ))

        return imports

    def extract_exports(self, content: str) -> list[ExportSpec]:
        exports = []
        nesting = 0

        for line_no, _raw, line in self._code_lines(content):
            depth_here = nesting
            if self.END_PATTERN.match(line):
                nesting = max(0, nesting - 1)
                continue
            if self.OPENER_PATTERN.match(line) and not self.ONE_LINE_DEF_PATTERN.match(line):
                nesting += 1
            elif self.DO_BLOCK_PATTERN.search(line):
                nesting += 1

            # Top level, or directly inside one class/module
            if depth_here > 1:
                continue

            match = self.CLASS_PATTERN.match(line)
            if match:
                exports.append(ExportSpec(name=match.group(1), kind=SymbolKind.CLASS, line=line_no))
                continue

            match = self.MODULE_PATTERN.match(line)
            if match:
                exports.append(ExportSpec(name=match.group(1), kind=SymbolKind.NAMESPACE, line=line_no))
                continue

            match = self.DEF_PATTERN.match(line)
            if match and depth_here == 0:
                exports.append(ExportSpec(name=match.group(2), kind=SymbolKind.FUNCTION, line=line_no))

        return exports

    def extract_symbols(self, content: str, file_path: str) -> list[Symbol]:
        symbols = []

        for line_no, raw, line in self._code_lines(content):
            indent = len(raw) - len(raw.lstrip())

            def add(name, kind, exported=True):
                symbols.append(Symbol(
                    name=name,
                    kind=kind,
                    file_path=file_path,
                    line=line_no,
                    column=indent,
                    exported=exported,
                ))

            match = self.CLASS_PATTERN.match(line)
            if match:
                add(match.group(1), SymbolKind.CLASS)
                continue

            match = self.MODULE_PATTERN.match(line)
            if match:
                add(match.group(1), SymbolKind.NAMESPACE)
                continue

            match = self.DEF_PATTERN.match(line)
            if match:
                name = match.group(2)
                add(
                    name,
                    SymbolKind.METHOD if indent > 0 else SymbolKind.FUNCTION,
                    exported=not name.startswith("_"),
                )
                continue

            match = self.CONSTANT_PATTERN.match(line)
            if match:
                add(match.group(1), SymbolKind.VARIABLE)
                continue

            match = self.ATTR_PATTERN.match(line)
            if match:
                for attr in match.group(1).split(","):
                    attr = attr.strip().lstrip(":")
                    if re.fullmatch(r"\w+", attr):
                        add(attr, SymbolKind.PROPERTY)

        return symbols

    def resolve_import_path(self, from_path, source, existing_paths):
        if "::" in source:
            return None

        relative = self.join(posixpath.dirname(from_path), source)
        candidates = [relative, relative + ".rb"]

        # require 'foo-bar' maps onto lib/foo/bar.rb by gem convention
        lib = self.join("lib", source)
        candidates += [lib + ".rb", self.join("lib", source.replace("-", "/")) + ".rb"]

        return self.first_existing(
            (c for c in candidates if c and not c.startswith("..")),
            existing_paths,
        )
