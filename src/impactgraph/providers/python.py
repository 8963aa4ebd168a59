"""
Python provider using line-oriented regex parsing.

ast.parse() would reject the whole file on the first syntax error, so
declarations are matched per line instead; a broken file still yields
whatever is recognizable.
"""

import posixpath
import re

from ..models import ExportSpec, ImportSpec, Symbol, SymbolKind
from .base import BaseProvider, CommentPatterns


class PythonProvider(BaseProvider):
    """
    Python provider

    Extracts:
    - imports (import a.b as c / from .x import (y, z) / from m import *)
    - exports (public top-level classes/functions, UPPER_CASE constants, __all__)
    - classes, functions, methods, module-level variables
    """

    id = "python"
    name = "Python"
    extensions = [".py", ".pyi", ".pyw"]
    file_patterns = ["**/*.py", "**/*.pyi", "**/*.pyw"]

    FROM_IMPORT_PATTERN = re.compile(r"^from\s+(\.+[\w.]*|[\w.]+)\s+import\s+(.+)$")
    IMPORT_PATTERN = re.compile(r"^import\s+(.+)$")
    CLASS_PATTERN = re.compile(r"^class\s+(\w+)")
    DEF_PATTERN = re.compile(r"^(?:async\s+)?def\s+(\w+)")
    CONSTANT_PATTERN = re.compile(r"^([A-Z][A-Z0-9_]*)\s*(?::[^=]+)?=(?!=)")
    VARIABLE_PATTERN = re.compile(r"^(\w+)\s*(?::[^=]+)?=(?!=)")
    ALL_PATTERN = re.compile(r"^__all__\s*(?::[^=]+)?=\s*[\[(]([^\])]*)[\])]", re.MULTILINE | re.DOTALL)

    comment_patterns = CommentPatterns(
        single_line=re.compile(r"#"),
        block_start=re.compile(r"\"\"\"|'''"),
        block_end=re.compile(r"\"\"\"|'''"),
    )

    control_flow_patterns = [
        re.compile(r"\bif\s+"),
        re.compile(r"\belif\s+"),
        re.compile(r"\belse\s*:"),
        re.compile(r"\bfor\s+"),
        re.compile(r"\bwhile\s+"),
        re.compile(r"\btry\s*:"),
        re.compile(r"\bexcept\b"),
        re.compile(r"\bfinally\s*:"),
        re.compile(r"\bwith\s+"),
        re.compile(r"\band\b"),
        re.compile(r"\bor\b"),
    ]

    entry_point_patterns = [
        re.compile(r"@app\.route\s*\("),
        re.compile(r"@(?:app|router)\.(?:get|post|put|delete|patch)\s*\("),
        re.compile(r"@api_view\s*\("),
        re.compile(r"class\s+\w+(?:API)?View\s*\("),
        re.compile(r"if\s+__name__\s*==\s*['\"]__main__['\"]"),
        re.compile(r"@click\.command"),
        re.compile(r"def\s+main\s*\("),
    ]

    def _code_lines(self, content: str):
        """
        Yield (line_no, raw_line) for lines outside triple-quoted strings.
        """
        in_string = None
        for line_no, raw in enumerate(content.splitlines(), 1):
            if in_string:
                if raw.count(in_string) % 2 == 1:
                    in_string = None
                continue
            yield line_no, raw
            for quote in ('"""', "'''"):
                if raw.count(quote) % 2 == 1:
                    in_string = quote
                    break

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def extract_imports(self, content: str) -> list[ImportSpec]:
        imports = []
        lines = content.splitlines()

        for line_no, raw in self._code_lines(content):
            line = raw.split("#", 1)[0].strip()

            match = self.FROM_IMPORT_PATTERN.match(line)
            if match:
                source, names_part = match.group(1), match.group(2).strip()

                # Parenthesized import spanning several lines
                if names_part.startswith("(") and ")" not in names_part:
                    nxt = line_no
                    while ")" not in names_part and nxt < len(lines) and nxt - line_no < 100:
                        names_part += " " + lines[nxt].split("#", 1)[0].strip()
                        nxt += 1
                names_part = names_part.replace("(", "").replace(")", "").rstrip("\\")

                if names_part.strip() == "*":
                    imports.append(ImportSpec(
                        source=source,
                        specifiers=("*",),
                        is_namespace=True,
                        line=line_no,
                    ))
                else:
                    imports.append(ImportSpec(
                        source=source,
                        specifiers=tuple(self.split_names(names_part)),
                        line=line_no,
                    ))
                continue

            match = self.IMPORT_PATTERN.match(line)
            if match:
                for module in self.split_names(match.group(1)):
                    if not re.fullmatch(r"[\w.]+", module):
                        continue
                    imports.append(ImportSpec(
                        source=module,
                        specifiers=(module.split(".")[-1],),
                        is_namespace=True,
                        line=line_no,
                    ))

        return imports

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def _dunder_all(self, content: str) -> tuple[list[str], int]:
        match = self.ALL_PATTERN.search(content)
        if not match:
            return [], 0
        names = [
            n.strip().strip("'\"")
            for n in match.group(1).split(",")
        ]
        line_no = content[:match.start()].count("\n") + 1
        return [n for n in names if n.isidentifier()], line_no

    def extract_exports(self, content: str) -> list[ExportSpec]:
        exports = []
        all_names, all_line = self._dunder_all(content)
        declared = set()

        for line_no, raw in self._code_lines(content):
            # Module level only
            if not raw or raw[0] in " \t":
                continue

            match = self.CLASS_PATTERN.match(raw)
            kind = SymbolKind.CLASS
            if not match:
                match = self.DEF_PATTERN.match(raw)
                kind = SymbolKind.FUNCTION
            if match:
                name = match.group(1)
                declared.add(name)
                if not name.startswith("_") or name in all_names:
                    exports.append(ExportSpec(name=name, kind=kind, line=line_no))
                continue

            match = self.CONSTANT_PATTERN.match(raw)
            if match:
                declared.add(match.group(1))
                exports.append(ExportSpec(
                    name=match.group(1),
                    kind=SymbolKind.VARIABLE,
                    line=line_no,
                ))
                continue

            match = self.VARIABLE_PATTERN.match(raw)
            if match:
                declared.add(match.group(1))

        # Re-exported names listed in __all__ but defined elsewhere
        for name in all_names:
            if name not in declared:
                exports.append(ExportSpec(name=name, kind=SymbolKind.VARIABLE, line=all_line))

        return exports

    # ------------------------------------------------------------------
    # Symbols
    # ------------------------------------------------------------------

    def extract_symbols(self, content: str, file_path: str) -> list[Symbol]:
        symbols = []

        for line_no, raw in self._code_lines(content):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            indent = len(raw) - len(raw.lstrip())

            match = self.CLASS_PATTERN.match(line)
            if match:
                symbols.append(Symbol(
                    name=match.group(1),
                    kind=SymbolKind.CLASS,
                    file_path=file_path,
                    line=line_no,
                    column=indent,
                    exported=not match.group(1).startswith("_"),
                ))
                continue

            match = self.DEF_PATTERN.match(line)
            if match:
                symbols.append(Symbol(
                    name=match.group(1),
                    kind=SymbolKind.METHOD if indent > 0 else SymbolKind.FUNCTION,
                    file_path=file_path,
                    line=line_no,
                    column=indent,
                    exported=not match.group(1).startswith("_"),
                ))
                continue

            if indent == 0:
                match = self.VARIABLE_PATTERN.match(line)
                if match and "(" not in line and not match.group(1).startswith("_"):
                    symbols.append(Symbol(
                        name=match.group(1),
                        kind=SymbolKind.VARIABLE,
                        file_path=file_path,
                        line=line_no,
                        column=0,
                        exported=True,
                    ))

        return symbols

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _module_candidates(self, base: str) -> list[str]:
        if not base:
            return ["__init__.py"]
        return self.candidates_for(base, ["__init__.py", "__init__.pyi"])

    def resolve_import_path(self, from_path, source, existing_paths):
        if source.startswith("."):
            dots = len(source) - len(source.lstrip("."))
            package = posixpath.dirname(from_path)
            for _ in range(dots - 1):
                if not package:
                    return None
                package = posixpath.dirname(package)
            module = source[dots:].replace(".", "/")
            base = self.join(package, module) if module else package
            return self.first_existing(self._module_candidates(base), existing_paths)

        module = source.replace(".", "/")
        candidates = self._module_candidates(module)
        candidates += self._module_candidates(self.join("src", module))
        return self.first_existing(candidates, existing_paths)
