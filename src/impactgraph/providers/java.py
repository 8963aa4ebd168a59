"""
Java provider.
"""

import posixpath
import re

from ..models import ExportSpec, ImportSpec, Symbol, SymbolKind
from .base import BaseProvider

# Source roots probed in order when mapping a package to a path
SOURCE_ROOTS = ("src/main/java", "src", "")


class JavaProvider(BaseProvider):
    """
    Java provider

    Extracts:
    - import a.b.C; / import a.b.*; / import static a.b.C.member;
    - classes, interfaces, enums, records, annotations
    - methods and fields inside type bodies
    """

    id = "java"
    name = "Java"
    extensions = [".java"]
    file_patterns = ["**/*.java"]

    IMPORT_PATTERN = re.compile(r"^import\s+(static\s+)?([\w.]+?)(\.\*)?\s*;")

    _MODIFIERS = r"(?:(?:public|private|protected|abstract|final|static|sealed|non-sealed|strictfp)\s+)*"

    TYPE_PATTERNS = [
        (re.compile(r"^" + _MODIFIERS + r"class\s+(\w+)"), SymbolKind.CLASS),
        (re.compile(r"^" + _MODIFIERS + r"record\s+(\w+)"), SymbolKind.CLASS),
        (re.compile(r"^" + _MODIFIERS + r"@interface\s+(\w+)"), SymbolKind.INTERFACE),
        (re.compile(r"^" + _MODIFIERS + r"interface\s+(\w+)"), SymbolKind.INTERFACE),
        (re.compile(r"^" + _MODIFIERS + r"enum\s+(\w+)"), SymbolKind.ENUM),
    ]

    METHOD_PATTERN = re.compile(
        r"^(?:(?:public|private|protected|static|final|abstract|synchronized|native|default)\s+)*"
        r"(?:<[^>]+>\s+)?"
        r"([\w.]+(?:<[^()]*>)?(?:\[\])*)\s+(\w+)\s*\("
    )
    FIELD_PATTERN = re.compile(
        r"^(?:(?:public|private|protected|static|final|transient|volatile)\s+)*"
        r"([\w.]+(?:<[^()]*>)?(?:\[\])*)\s+(\w+)\s*[;=]"
    )

    # Statements that look like declarations to the patterns above
    _NOT_TYPES = frozenset({"return", "new", "throw", "else", "case", "package", "import"})

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
        re.compile(r"\bfinally\b"),
        re.compile(r"&&"),
        re.compile(r"\|\|"),
    ]

    entry_point_patterns = [
        re.compile(r"public\s+static\s+void\s+main\s*\("),
        re.compile(r"@(?:Get|Post|Put|Delete|Patch|Request)Mapping"),
        re.compile(r"@RestController"),
        re.compile(r"@Controller"),
        re.compile(r"@SpringBootApplication"),
        re.compile(r"extends\s+HttpServlet"),
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

    def extract_imports(self, content: str) -> list[ImportSpec]:
        imports = []

        for line_no, line in self._code_lines(content):
            match = self.IMPORT_PATTERN.match(line)
            if not match:
                continue
            is_static, source, wildcard = match.groups()

            if wildcard:
                imports.append(ImportSpec(
                    source=source,
                    specifiers=("*",),
                    is_namespace=True,
                    line=line_no,
                ))
            elif is_static:
                # import static a.b.C.member -> depends on class a.b.C
                owner, _, member = source.rpartition(".")
                imports.append(ImportSpec(
                    source=owner or source,
                    specifiers=(member,),
                    line=line_no,
                ))
            else:
                imports.append(ImportSpec(
                    source=source,
                    specifiers=(source.rsplit(".", 1)[-1],),
                    line=line_no,
                ))

        return imports

    def _match_type(self, line: str):
        for pattern, kind in self.TYPE_PATTERNS:
            match = pattern.match(line)
            if match:
                return match.group(1), kind
        return None

    def extract_exports(self, content: str) -> list[ExportSpec]:
        exports = []
        depth = 0

        for line_no, line in self._code_lines(content):
            if depth == 0:
                found = self._match_type(line)
                if found:
                    name, kind = found
                    exports.append(ExportSpec(
                        name=name,
                        kind=kind,
                        is_default="public" in line.split(),
                        line=line_no,
                    ))
            depth = max(0, depth + line.count("{") - line.count("}"))

        return exports

    def extract_symbols(self, content: str, file_path: str) -> list[Symbol]:
        symbols = []
        depth = 0
        type_stack = []  # (name, depth of its body)

        for line_no, line in self._code_lines(content):
            words = line.split()
            exported = "public" in words

            found = self._match_type(line)
            if found:
                name, kind = found
                symbols.append(Symbol(
                    name=name,
                    kind=kind,
                    file_path=file_path,
                    line=line_no,
                    column=depth,
                    exported=exported,
                ))
                type_stack.append((name, depth + 1))
            elif type_stack and depth == type_stack[-1][1] and words[0] not in self._NOT_TYPES:
                match = self.METHOD_PATTERN.match(line)
                if match:
                    # Constructors carry the class name and are not methods
                    if match.group(2) != type_stack[-1][0]:
                        symbols.append(Symbol(
                            name=match.group(2),
                            kind=SymbolKind.METHOD,
                            file_path=file_path,
                            line=line_no,
                            column=depth,
                            exported=exported,
                        ))
                else:
                    match = self.FIELD_PATTERN.match(line)
                    if match:
                        symbols.append(Symbol(
                            name=match.group(2),
                            kind=SymbolKind.PROPERTY,
                            file_path=file_path,
                            line=line_no,
                            column=depth,
                            exported=exported,
                        ))

            depth = max(0, depth + line.count("{") - line.count("}"))
            while type_stack and depth < type_stack[-1][1]:
                # Declaration whose body opens on a later line
                if found and "{" not in line and type_stack[-1][1] == depth + 1:
                    break
                type_stack.pop()

        return symbols

    def resolve_import_path(self, from_path, source, existing_paths):
        if not re.fullmatch(r"[\w.]+", source):
            return None
        package_path = source.replace(".", "/")

        for root in SOURCE_ROOTS:
            candidate = self.join(root, package_path + ".java")
            if candidate in existing_paths:
                return candidate

        # Wildcard import: first file of the package directory
        for root in SOURCE_ROOTS:
            directory = self.join(root, package_path)
            members = [
                p for p in existing_paths
                if p.endswith(".java") and posixpath.dirname(p) == directory
            ]
            if members:
                return min(members)

        return None
