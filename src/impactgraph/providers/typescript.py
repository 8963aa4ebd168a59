"""
TypeScript/JavaScript provider using regex-based parsing.

Extracts:
- imports (named, default, namespace, side-effect, require, import type)
- re-exports (export ... from) as imports
- exports
- classes, interfaces, types, enums, functions, arrow functions, methods
"""

import posixpath
import re
from typing import Optional

from ..models import ExportSpec, ImportSpec, Symbol, SymbolKind
from .base import BaseProvider


class TypeScriptProvider(BaseProvider):
    """
    TypeScript/JavaScript provider

    Handles:
    - import { a, b as c } from './mod'
    - import Default, { a } from './mod'
    - import * as ns from './mod'
    - import type { T } from './types'
    - import './side-effect'
    - const x = require('./mod')
    - export { a } from './mod' / export * from './mod'
    """

    id = "typescript"
    name = "TypeScript"
    extensions = [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"]
    file_patterns = ["**/*.ts", "**/*.tsx", "**/*.js", "**/*.jsx", "**/*.mjs", "**/*.cjs"]

    _JS_EXTENSIONS = {".js", ".jsx", ".mjs", ".cjs"}

    # Imports
    TYPE_IMPORT_PATTERN = re.compile(
        r"^\s*import\s+type\s+(?:\{([^}]*)\}|(\w+))\s+from\s+['\"]([^'\"]+)['\"]"
    )
    NAMED_IMPORT_PATTERN = re.compile(
        r"import\s+(?:(\w+)\s*,\s*)?\{([^}]*)\}\s*from\s+['\"]([^'\"]+)['\"]"
    )
    NAMESPACE_IMPORT_PATTERN = re.compile(
        r"import\s+(?:(\w+)\s*,\s*)?\*\s+as\s+(\w+)\s+from\s+['\"]([^'\"]+)['\"]"
    )
    DEFAULT_IMPORT_PATTERN = re.compile(
        r"import\s+(\w+)\s+from\s+['\"]([^'\"]+)['\"]"
    )
    SIDE_EFFECT_IMPORT_PATTERN = re.compile(r"^\s*import\s+['\"]([^'\"]+)['\"]")
    REQUIRE_PATTERN = re.compile(r"require\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")
    REEXPORT_PATTERN = re.compile(
        r"^\s*export\s+(type\s+)?(?:\*(?:\s+as\s+(\w+))?|\{([^}]*)\})\s*from\s+['\"]([^'\"]+)['\"]"
    )
    # import { (or import type {) left open on this line
    OPEN_BRACE_IMPORT_PATTERN = re.compile(
        r"^\s*(?:import(?:\s+type)?(?:\s+\w+\s*,)?|export(?:\s+type)?)\s*\{[^}]*$"
    )

    # Exports: (pattern, kind)
    EXPORT_PATTERNS = [
        (re.compile(r"^export\s+(?:declare\s+)?(?:abstract\s+)?class\s+(\w+)"), SymbolKind.CLASS),
        (re.compile(r"^export\s+(?:declare\s+)?interface\s+(\w+)"), SymbolKind.INTERFACE),
        (re.compile(r"^export\s+(?:declare\s+)?type\s+(\w+)\s*(?:<[^>]*>)?\s*="), SymbolKind.TYPE),
        (re.compile(r"^export\s+(?:declare\s+)?(?:async\s+)?function\s*\*?\s*(\w+)"), SymbolKind.FUNCTION),
        (re.compile(r"^export\s+(?:declare\s+)?(?:const\s+)?enum\s+(\w+)"), SymbolKind.ENUM),
        (re.compile(r"^export\s+(?:declare\s+)?(?:const|let|var)\s+(\w+)"), SymbolKind.VARIABLE),
        (re.compile(r"^export\s+(?:declare\s+)?(?:namespace|module)\s+(\w+)"), SymbolKind.NAMESPACE),
    ]
    EXPORT_DEFAULT_PATTERN = re.compile(
        r"^export\s+default\s+(?:(abstract\s+class|class|async\s+function|function)\s*\*?\s*(\w+)?)?"
    )
    EXPORT_LIST_PATTERN = re.compile(r"^export\s+\{([^}]*)\}\s*;?\s*$")

    # Symbols: (pattern, kind); first match wins
    SYMBOL_PATTERNS = [
        (re.compile(r"^(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?class\s+(\w+)"), SymbolKind.CLASS),
        (re.compile(r"^(?:export\s+)?(?:declare\s+)?interface\s+(\w+)"), SymbolKind.INTERFACE),
        (re.compile(r"^(?:export\s+)?(?:declare\s+)?type\s+(\w+)\s*(?:<[^>]*>)?\s*="), SymbolKind.TYPE),
        (re.compile(r"^(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:async\s+)?function\s*\*?\s*(\w+)"), SymbolKind.FUNCTION),
        (re.compile(r"^(?:export\s+)?(?:const|let|var)\s+(\w+)\s*(?::[^=]+)?=\s*(?:async\s*)?(?:\([^)]*\)|\w+)\s*(?::[^=]+)?=>"), SymbolKind.FUNCTION),
        (re.compile(r"^(?:export\s+)?(?:const|let|var)\s+(\w+)\s*(?::[^=]+)?=\s*(?:async\s+)?function"), SymbolKind.FUNCTION),
        (re.compile(r"^(?:export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+(\w+)"), SymbolKind.ENUM),
        (re.compile(r"^(?:export\s+)?(?:declare\s+)?(?:namespace|module)\s+(\w+)"), SymbolKind.NAMESPACE),
        (re.compile(r"^(?:export\s+)?(?:const|let|var)\s+(\w+)"), SymbolKind.VARIABLE),
    ]
    METHOD_PATTERN = re.compile(
        r"^(?:(?:public|private|protected|static|readonly|async|override|abstract|get|set)\s+)*"
        r"\*?\s*(#?\w+)\s*(?:<[^>]*>)?\s*\([^)]*\)\s*(?::\s*[^{;]+)?\s*\{"
    )
    _NOT_METHODS = {
        "if", "for", "while", "switch", "catch", "function", "return",
        "constructor", "with", "do", "else", "try", "super",
    }

    control_flow_patterns = [
        re.compile(r"\bif\s*\("),
        re.compile(r"\belse\s+if\s*\("),
        re.compile(r"\belse\b"),
        re.compile(r"\bfor\s*\("),
        re.compile(r"\bwhile\s*\("),
        re.compile(r"\bdo\s*\{"),
        re.compile(r"\bswitch\s*\("),
        re.compile(r"\bcase\s+"),
        re.compile(r"\bcatch\s*\("),
        re.compile(r"\?\?"),
        re.compile(r"\?\."),
        re.compile(r"\?[^:.?]"),
        re.compile(r"&&"),
        re.compile(r"\|\|"),
    ]

    entry_point_patterns = [
        re.compile(r"\.(?:get|post|put|delete|patch)\s*\("),
        re.compile(r"app\.use\s*\("),
        re.compile(r"router\."),
        re.compile(r"export\s+default\s+function\s+\w*(?:Page|Handler)"),
        re.compile(r"getServerSideProps|getStaticProps"),
    ]

    def language_for(self, extension: str) -> str:
        return "javascript" if extension in self._JS_EXTENSIONS else "typescript"

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def extract_imports(self, content: str) -> list[ImportSpec]:
        imports = []
        lines = content.splitlines()
        i = 0
        while i < len(lines):
            line_no = i + 1
            line = lines[i]

            # Join a multi-line `import {` / `export {` block into one line
            if self.OPEN_BRACE_IMPORT_PATTERN.match(line):
                joined = line
                j = i + 1
                while "}" not in joined and j < len(lines) and j - i < 50:
                    joined += " " + lines[j].strip()
                    j += 1
                if "}" in joined:
                    line = joined
                    i = j - 1

            imp = self._parse_import_line(line, line_no)
            if imp:
                imports.append(imp)
            i += 1

        return imports

    def _parse_import_line(self, line: str, line_no: int) -> Optional[ImportSpec]:
        match = self.TYPE_IMPORT_PATTERN.match(line)
        if match:
            names = self.split_names(match.group(1)) if match.group(1) is not None else [match.group(2)]
            return ImportSpec(
                source=match.group(3),
                specifiers=tuple(names),
                is_default=match.group(2) is not None,
                line=line_no,
                type_only=True,
            )

        match = self.REEXPORT_PATTERN.match(line)
        if match:
            if match.group(3) is not None:
                names = tuple(self.split_names(match.group(3)))
            else:
                names = ("*",)
            return ImportSpec(
                source=match.group(4),
                specifiers=names,
                is_namespace=names == ("*",),
                line=line_no,
                type_only=bool(match.group(1)),
            )

        if not re.search(r"\bimport\b|\brequire\b", line):
            return None

        match = self.NAMED_IMPORT_PATTERN.search(line)
        if match:
            names = self.split_names(match.group(2))
            # `import { type Foo }` inline type modifiers
            names = [re.sub(r"^type\s+", "", n) for n in names]
            if match.group(1):
                names.insert(0, match.group(1))
            return ImportSpec(
                source=match.group(3),
                specifiers=tuple(names),
                is_default=bool(match.group(1)),
                line=line_no,
            )

        match = self.NAMESPACE_IMPORT_PATTERN.search(line)
        if match:
            return ImportSpec(
                source=match.group(3),
                specifiers=("*",),
                is_default=bool(match.group(1)),
                is_namespace=True,
                line=line_no,
            )

        match = self.DEFAULT_IMPORT_PATTERN.search(line)
        if match and match.group(1) != "type":
            return ImportSpec(
                source=match.group(2),
                specifiers=(match.group(1),),
                is_default=True,
                line=line_no,
            )

        match = self.SIDE_EFFECT_IMPORT_PATTERN.match(line)
        if match:
            return ImportSpec(source=match.group(1), line=line_no)

        match = self.REQUIRE_PATTERN.search(line)
        if match:
            return ImportSpec(source=match.group(1), line=line_no)

        return None

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def extract_exports(self, content: str) -> list[ExportSpec]:
        exports = []

        for line_no, raw in enumerate(content.splitlines(), 1):
            line = raw.strip()
            if not line.startswith("export"):
                continue

            match = self.EXPORT_DEFAULT_PATTERN.match(line)
            if match:
                declared = (match.group(1) or "")
                kind = SymbolKind.CLASS if "class" in declared else (
                    SymbolKind.FUNCTION if "function" in declared else SymbolKind.VARIABLE
                )
                exports.append(ExportSpec(
                    name=match.group(2) or "default",
                    kind=kind,
                    is_default=True,
                    line=line_no,
                ))
                continue

            match = self.EXPORT_LIST_PATTERN.match(line)
            if match:
                for part in match.group(1).split(","):
                    part = part.strip()
                    if not part:
                        continue
                    # `a as b` exports the name b
                    pieces = re.split(r"\s+as\s+", part)
                    exported = re.sub(r"^type\s+", "", pieces[-1].strip())
                    exports.append(ExportSpec(
                        name=exported,
                        kind=SymbolKind.VARIABLE,
                        is_default=exported == "default",
                        line=line_no,
                    ))
                continue

            for pattern, kind in self.EXPORT_PATTERNS:
                match = pattern.match(line)
                if match:
                    exports.append(ExportSpec(name=match.group(1), kind=kind, line=line_no))
                    break

        return exports

    # ------------------------------------------------------------------
    # Symbols
    # ------------------------------------------------------------------

    def extract_symbols(self, content: str, file_path: str) -> list[Symbol]:
        symbols = []
        depth = 0
        class_depths: list[int] = []  # brace depth at which each open class body sits

        for line_no, raw in enumerate(content.splitlines(), 1):
            line = raw.strip()
            indent = len(raw) - len(raw.lstrip())
            depth_before = depth
            depth += raw.count("{") - raw.count("}")

            while class_depths and depth_before < class_depths[-1]:
                class_depths.pop()

            if not line or line.startswith(("//", "*", "/*")):
                continue

            in_class_body = bool(class_depths) and depth_before == class_depths[-1]
            if in_class_body:
                match = self.METHOD_PATTERN.match(line)
                if match and match.group(1) not in self._NOT_METHODS:
                    symbols.append(Symbol(
                        name=match.group(1),
                        kind=SymbolKind.METHOD,
                        file_path=file_path,
                        line=line_no,
                        column=indent,
                        exported=not match.group(1).startswith(("#", "_")) and "private " not in line,
                    ))
                continue

            for pattern, kind in self.SYMBOL_PATTERNS:
                match = pattern.match(line)
                if match:
                    symbols.append(Symbol(
                        name=match.group(1),
                        kind=kind,
                        file_path=file_path,
                        line=line_no,
                        column=indent,
                        exported=line.startswith("export"),
                    ))
                    if kind == SymbolKind.CLASS and "{" in raw:
                        class_depths.append(depth_before + 1)
                    break

        return symbols

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_import_path(self, from_path, source, existing_paths):
        if source.startswith("/"):
            base = self.join(source.lstrip("/"))
        elif source.startswith("."):
            base = self.join(posixpath.dirname(from_path), source)
        else:
            # Bare specifier: npm package or path alias
            return None

        if not base or base.startswith(".."):
            return None

        resolved = self.first_existing(
            self.candidates_for(base, [f"index{ext}" for ext in self.extensions]),
            existing_paths,
        )
        if resolved:
            return resolved

        # ESM: `./foo.js` written in source for a `foo.ts` file
        stem, ext = posixpath.splitext(base)
        if ext in self._JS_EXTENSIONS:
            return self.first_existing([stem + ".ts", stem + ".tsx"], existing_paths)

        return None
