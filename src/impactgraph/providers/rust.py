"""
Rust provider.

Module resolution follows the 2018 edition file layout: `foo.rs` owns the
child directory `foo/`, while `mod.rs`, `lib.rs` and `main.rs` own the
directory they sit in.
"""

import posixpath
import re

from ..models import ExportSpec, ImportSpec, Symbol, SymbolKind
from .base import BaseProvider

# Files whose module directory is their own directory
_DIR_OWNERS = ("mod.rs", "lib.rs", "main.rs")


class RustProvider(BaseProvider):
    """
    Rust provider

    Extracts:
    - use paths (simple, aliased, grouped, glob) and `mod x;` declarations
    - fn, struct, enum, trait, type, const, static, mod
    - methods inside impl / trait blocks
    """

    id = "rust"
    name = "Rust"
    extensions = [".rs"]
    file_patterns = ["**/*.rs"]

    USE_START_PATTERN = re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?use\s+")
    USE_PATTERN = re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?use\s+([^;]+);", re.DOTALL)
    MOD_DECL_PATTERN = re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?mod\s+(\w+)\s*;")

    _VIS = r"(?:pub(?:\([^)]*\))?\s+)?"
    _FN_QUALIFIERS = r"(?:(?:const|async|unsafe|extern\s+\"[^\"]*\")\s+)*"

    ITEM_PATTERNS = [
        (re.compile(r"^" + _VIS + _FN_QUALIFIERS + r"fn\s+(\w+)"), SymbolKind.FUNCTION),
        (re.compile(r"^" + _VIS + r"struct\s+(\w+)"), SymbolKind.CLASS),
        (re.compile(r"^" + _VIS + r"union\s+(\w+)"), SymbolKind.CLASS),
        (re.compile(r"^" + _VIS + r"enum\s+(\w+)"), SymbolKind.ENUM),
        (re.compile(r"^" + _VIS + r"(?:unsafe\s+)?trait\s+(\w+)"), SymbolKind.INTERFACE),
        (re.compile(r"^" + _VIS + r"type\s+(\w+)"), SymbolKind.TYPE),
        (re.compile(r"^" + _VIS + r"(?:const|static(?:\s+mut)?)\s+(\w+)\s*:"), SymbolKind.VARIABLE),
        (re.compile(r"^" + _VIS + r"mod\s+(\w+)"), SymbolKind.NAMESPACE),
    ]

    IMPL_PATTERN = re.compile(r"^(?:unsafe\s+)?impl\b|^" + _VIS + r"(?:unsafe\s+)?trait\s+\w+")
    MACRO_EXPORT_PATTERN = re.compile(r"^macro_rules!\s*(\w+)")

    control_flow_patterns = [
        re.compile(r"\bif\s+"),
        re.compile(r"\belse\s+if\s+"),
        re.compile(r"\belse\s*\{"),
        re.compile(r"\bmatch\s+"),
        re.compile(r"=>"),
        re.compile(r"\bfor\s+"),
        re.compile(r"\bwhile\s+"),
        re.compile(r"\bloop\s*\{"),
        re.compile(r"\?;"),
        re.compile(r"&&"),
        re.compile(r"\|\|"),
    ]

    entry_point_patterns = [
        re.compile(r"fn\s+main\s*\("),
        re.compile(r"#\[tokio::main\]"),
        re.compile(r"#\[actix_web::main\]"),
        re.compile(r"#\[(?:get|post|put|delete|patch)\s*\("),
        re.compile(r"\.route\s*\("),
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
            line = line.split("//", 1)[0].rstrip()
            if line:
                yield line_no, line

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _use_spec(self, use_path: str, line_no: int):
        use_path = " ".join(use_path.split())

        if use_path.endswith("*"):
            return ImportSpec(
                source=re.sub(r"::\s*\*$", "", use_path),
                specifiers=("*",),
                is_namespace=True,
                line=line_no,
            )

        group = re.match(r"^(.+?)::\s*\{(.*)\}$", use_path)
        if group:
            # Nested groups are flattened to their leading names
            inner = re.sub(r"\{[^{}]*\}", "", group.group(2))
            names = [
                n.rsplit("::", 1)[-1]
                for n in self.split_names(inner)
            ]
            return ImportSpec(
                source=group.group(1),
                specifiers=tuple(n for n in names if n),
                line=line_no,
            )

        alias = re.match(r"^(.+)\s+as\s+(\w+)$", use_path)
        if alias:
            return ImportSpec(source=alias.group(1), specifiers=(alias.group(2),), line=line_no)

        return ImportSpec(
            source=use_path,
            specifiers=(use_path.rsplit("::", 1)[-1],),
            line=line_no,
        )

    def extract_imports(self, content: str) -> list[ImportSpec]:
        imports = []
        pending = None  # (line_no, text) of a use statement spanning lines

        for line_no, line in self._code_lines(content):
            if pending:
                start, text = pending
                text += " " + line
                if ";" not in line:
                    pending = (start, text)
                    continue
                pending = None
                match = self.USE_PATTERN.match(text)
                if match:
                    imports.append(self._use_spec(match.group(1).strip(), start))
                continue

            if self.USE_START_PATTERN.match(line):
                match = self.USE_PATTERN.match(line)
                if match:
                    imports.append(self._use_spec(match.group(1).strip(), line_no))
                else:
                    pending = (line_no, line)
                continue

            match = self.MOD_DECL_PATTERN.match(line)
            if match:
                imports.append(ImportSpec(
                    source=match.group(1),
                    specifiers=(match.group(1),),
                    is_namespace=True,
                    line=line_no,
                ))

        return imports

    # ------------------------------------------------------------------
    # Exports / symbols
    # ------------------------------------------------------------------

    def _match_item(self, line: str):
        for pattern, kind in self.ITEM_PATTERNS:
            match = pattern.match(line)
            if match:
                return match.group(1), kind
        return None

    def extract_exports(self, content: str) -> list[ExportSpec]:
        exports = []
        depth = 0
        macro_export = False

        for line_no, line in self._code_lines(content):
            if depth == 0:
                if line.startswith("#[macro_export"):
                    macro_export = True
                elif line.startswith("pub ") or line.startswith("pub("):
                    found = self._match_item(line)
                    if found:
                        exports.append(ExportSpec(name=found[0], kind=found[1], line=line_no))
                    else:
                        # pub use re-exports
                        match = self.USE_PATTERN.match(line)
                        if match:
                            spec = self._use_spec(match.group(1).strip(), line_no)
                            for name in spec.specifiers:
                                if name not in ("*", "self"):
                                    exports.append(ExportSpec(name=name, kind=SymbolKind.VARIABLE, line=line_no))
                elif macro_export:
                    match = self.MACRO_EXPORT_PATTERN.match(line)
                    if match:
                        exports.append(ExportSpec(
                            name=match.group(1),
                            kind=SymbolKind.FUNCTION,
                            line=line_no,
                        ))
                        macro_export = False
            depth = max(0, depth + line.count("{") - line.count("}"))

        return exports

    def extract_symbols(self, content: str, file_path: str) -> list[Symbol]:
        symbols = []
        depth = 0
        impl_depths = []  # body depth of each open impl/trait block
        impl_pending = False

        for line_no, line in self._code_lines(content):
            found = self._match_item(line)
            if found:
                name, kind = found
                if kind == SymbolKind.FUNCTION and impl_depths and depth == impl_depths[-1]:
                    kind = SymbolKind.METHOD
                symbols.append(Symbol(
                    name=name,
                    kind=kind,
                    file_path=file_path,
                    line=line_no,
                    column=depth,
                    exported=line.startswith("pub"),
                ))

            if self.IMPL_PATTERN.match(line):
                impl_pending = True
            # The body may open on a later line (where clauses)
            if impl_pending and "{" in line:
                impl_depths.append(depth + 1)
                impl_pending = False

            depth = max(0, depth + line.count("{") - line.count("}"))
            while impl_depths and depth < impl_depths[-1]:
                impl_depths.pop()

        return symbols

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @staticmethod
    def _module_dir(file_path: str) -> str:
        """Directory holding the child modules of the module in file_path"""
        directory, base = posixpath.split(file_path)
        if base in _DIR_OWNERS:
            return directory
        return posixpath.join(directory, posixpath.splitext(base)[0])

    @staticmethod
    def _crate_root(file_path: str) -> str:
        parts = file_path.split("/")[:-1]
        if "src" in parts:
            last = len(parts) - 1 - parts[::-1].index("src")
            return "/".join(parts[:last + 1])
        return "src"

    def _resolve_segments(self, base: str, segments: list[str], existing_paths):
        # use a::b::Item: Item may be an item inside a/b.rs rather than a module
        while segments:
            module = self.join(base, *segments)
            resolved = self.first_existing(
                (module + ".rs", self.join(module, "mod.rs")),
                existing_paths,
            )
            if resolved:
                return resolved
            segments = segments[:-1]
        return None

    def resolve_import_path(self, from_path, source, existing_paths):
        segments = [s.strip() for s in source.split("::") if s.strip()]
        if not segments or not all(re.fullmatch(r"\w+", s) for s in segments):
            return None

        head = segments[0]
        if head == "crate":
            root = self._crate_root(from_path)
            return self._resolve_segments(root, segments[1:], existing_paths) or self.first_existing(
                (self.join(root, "lib.rs"), self.join(root, "main.rs")),
                existing_paths,
            )

        if head in ("self", "super"):
            base = self._module_dir(from_path)
            while segments and segments[0] in ("self", "super"):
                if segments.pop(0) == "super":
                    base = posixpath.dirname(base)
            if not segments:
                return None
            return self._resolve_segments(base, segments, existing_paths)

        # `mod x;` declarations and single-segment uses of a child module
        if len(segments) == 1:
            return self._resolve_segments(self._module_dir(from_path), segments, existing_paths)

        # Multi-segment path without prefix names an external crate
        return None
