"""
Go provider.

Go imports name packages (directories), not files. A resolved import
points at the lexicographically first .go file of the package directory
so the edge is stable across runs.
"""

import posixpath
import re

from ..models import ExportSpec, ImportSpec, Symbol, SymbolKind
from .base import BaseProvider


class GoProvider(BaseProvider):
    """
    Go provider

    Extracts:
    - single and grouped imports, with alias / dot / blank imports
    - package clause (namespace symbol)
    - funcs, methods, struct / interface / alias types, consts, vars
    """

    id = "go"
    name = "Go"
    extensions = [".go"]
    file_patterns = ["**/*.go"]

    SINGLE_IMPORT_PATTERN = re.compile(r"""^import\s+(?:([\w.]+)\s+)?["`]([^"`]+)["`]""")
    IMPORT_BLOCK_START = re.compile(r"^import\s*\($")
    BLOCK_IMPORT_PATTERN = re.compile(r"""^(?:([\w.]+)\s+)?["`]([^"`]+)["`]""")

    PACKAGE_PATTERN = re.compile(r"^package\s+(\w+)")
    METHOD_PATTERN = re.compile(r"^func\s+\(\s*(?:\w+\s+)?\*?\s*(\w+)(?:\[[^\]]*\])?\s*\)\s*(\w+)\s*[\[(]")
    FUNC_PATTERN = re.compile(r"^func\s+(\w+)\s*[\[(]")
    TYPE_PATTERN = re.compile(r"^type\s+(\w+)(?:\[[^\]]*\])?\s+(=\s*)?(struct|interface)?")
    DECL_PATTERN = re.compile(r"^(const|var)\s+(\w+)")
    GROUP_START_PATTERN = re.compile(r"^(const|var|type)\s*\($")
    GROUP_ITEM_PATTERN = re.compile(r"^(\w+)\b")

    control_flow_patterns = [
        re.compile(r"\bif\s+"),
        re.compile(r"\belse\s+if\s+"),
        re.compile(r"\belse\s*\{"),
        re.compile(r"\bfor\s+"),
        re.compile(r"\bswitch\s+"),
        re.compile(r"\bcase\s+"),
        re.compile(r"\bdefault\s*:"),
        re.compile(r"\bselect\s*\{"),
        re.compile(r"\bgo\s+"),
        re.compile(r"\bdefer\s+"),
        re.compile(r"&&"),
        re.compile(r"\|\|"),
    ]

    entry_point_patterns = [
        re.compile(r"func\s+main\s*\("),
        re.compile(r"func\s+init\s*\("),
        re.compile(r"http\.HandleFunc"),
        re.compile(r"\.(?:GET|POST|PUT|DELETE)\s*\("),
        re.compile(r"mux\.Handle"),
    ]

    def _code_lines(self, content: str):
        """Yield (line_no, stripped) outside /* */ blocks with // comments cut"""
        in_block = False
        for line_no, raw in enumerate(content.splitlines(), 1):
            line = raw.strip()
            if in_block:
                if "*/" not in line:
                    continue
                line = line.split("*/", 1)[1].strip()
                in_block = False
            if line.startswith("/*"):
                if "*/" not in line:
                    in_block = True
                    continue
                line = line.split("*/", 1)[1].strip()
            if not line.startswith(("\"", "`")):
                line = line.split("//", 1)[0]
            line = line.rstrip()
            if line:
                yield line_no, line

    def extract_imports(self, content: str) -> list[ImportSpec]:
        imports = []
        in_block = False

        for line_no, line in self._code_lines(content):
            if in_block:
                if line.startswith(")"):
                    in_block = False
                    continue
                match = self.BLOCK_IMPORT_PATTERN.match(line)
            elif self.IMPORT_BLOCK_START.match(line):
                in_block = True
                continue
            else:
                match = self.SINGLE_IMPORT_PATTERN.match(line)

            if not match:
                continue
            alias, source = match.groups()
            if alias == ".":
                imports.append(ImportSpec(
                    source=source,
                    specifiers=("*",),
                    is_namespace=True,
                    line=line_no,
                ))
            elif alias == "_":
                imports.append(ImportSpec(source=source, line=line_no))
            else:
                imports.append(ImportSpec(
                    source=source,
                    specifiers=(alias or source.rsplit("/", 1)[-1],),
                    is_namespace=True,
                    line=line_no,
                ))

        return imports

    def _declarations(self, content: str):
        """
        Yield (line_no, name, kind, is_method) for top-level declarations,
        including members of const/var/type groups.
        """
        group = None
        depth = 0

        for line_no, line in self._code_lines(content):
            if group:
                if line.startswith(")"):
                    group = None
                elif depth == 0:
                    match = self.GROUP_ITEM_PATTERN.match(line)
                    if match and match.group(1) != "_":
                        if group == "type":
                            kind = SymbolKind.INTERFACE if " interface" in line else (
                                SymbolKind.CLASS if " struct" in line else SymbolKind.TYPE
                            )
                        else:
                            kind = SymbolKind.VARIABLE
                        yield line_no, match.group(1), kind, False
                depth = max(0, depth + line.count("{") - line.count("}"))
                continue

            if depth == 0:
                match = self.GROUP_START_PATTERN.match(line)
                if match:
                    group = match.group(1)
                    continue

                match = self.METHOD_PATTERN.match(line)
                if match:
                    yield line_no, match.group(2), SymbolKind.METHOD, True
                else:
                    match = self.FUNC_PATTERN.match(line)
                    if match:
                        yield line_no, match.group(1), SymbolKind.FUNCTION, False
                    else:
                        match = self.TYPE_PATTERN.match(line)
                        if match:
                            name, alias, shape = match.groups()
                            if alias:
                                kind = SymbolKind.TYPE
                            elif shape == "interface":
                                kind = SymbolKind.INTERFACE
                            elif shape == "struct":
                                kind = SymbolKind.CLASS
                            else:
                                kind = SymbolKind.TYPE
                            yield line_no, name, kind, False
                        else:
                            match = self.DECL_PATTERN.match(line)
                            if match and match.group(2) != "_":
                                yield line_no, match.group(2), SymbolKind.VARIABLE, False

            depth = max(0, depth + line.count("{") - line.count("}"))

    def extract_exports(self, content: str) -> list[ExportSpec]:
        # Package-level identifiers starting with an upper-case letter
        return [
            ExportSpec(name=name, kind=kind, line=line_no)
            for line_no, name, kind, is_method in self._declarations(content)
            if not is_method and name[0].isupper()
        ]

    def extract_symbols(self, content: str, file_path: str) -> list[Symbol]:
        symbols = []

        for line_no, line in self._code_lines(content):
            match = self.PACKAGE_PATTERN.match(line)
            if match:
                symbols.append(Symbol(
                    name=match.group(1),
                    kind=SymbolKind.NAMESPACE,
                    file_path=file_path,
                    line=line_no,
                    exported=True,
                ))
            break

        for line_no, name, kind, _is_method in self._declarations(content):
            symbols.append(Symbol(
                name=name,
                kind=kind,
                file_path=file_path,
                line=line_no,
                exported=name[0].isupper(),
            ))

        return symbols

    @staticmethod
    def _package_file(directory: str, existing_paths):
        members = [
            p for p in existing_paths
            if p.endswith(".go") and posixpath.dirname(p) == directory
        ]
        if not members:
            return None
        # Prefer non-test sources
        sources = [p for p in members if not p.endswith("_test.go")]
        return min(sources or members)

    def resolve_import_path(self, from_path, source, existing_paths):
        if source.startswith("./") or source.startswith("../"):
            directory = self.join(posixpath.dirname(from_path), source)
            if directory.startswith(".."):
                return None
            return self._package_file(directory, existing_paths)

        segments = [s for s in source.split("/") if s]
        if not segments:
            return None

        # Module-internal path: strip the module prefix one segment at a time.
        # Standard library paths carry no dot in their first segment; for
        # those only the full path and, when deep enough, the path minus a
        # module-name prefix are tried.
        if "." in segments[0]:
            cut_points = range(len(segments))
        elif len(segments) >= 3:
            cut_points = range(2)
        else:
            cut_points = range(1)

        for cut in cut_points:
            resolved = self._package_file("/".join(segments[cut:]), existing_paths)
            if resolved:
                return resolved
        return None
