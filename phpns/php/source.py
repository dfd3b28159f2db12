"""Text-level scanning of PHP source.

This is not a parser. It finds just enough structure to generate edits:
the namespace declaration, top-level use clauses, class declarations,
class-name references in the positions PHP allows them, and include/require
statements. Everything runs against a "mask" of the file in which string
literals and comments are blanked out with spaces, so offsets in the mask and
in the original text are identical and a name is only live when it sits in
code.
"""

import re
from dataclasses import dataclass, field
from functools import cached_property

from ..utils.names import SEPARATOR, normalize_fqn, short_name

NAME = r"[A-Za-z_\x80-\uffff][A-Za-z0-9_\x80-\uffff]*"
QUALIFIED_NAME = rf"\\?{NAME}(?:\\{NAME})*"
TYPE_LIST = rf"\??{QUALIFIED_NAME}(?:\s*[|&]\s*\??{QUALIFIED_NAME})*"

NAME_RE = re.compile(QUALIFIED_NAME)

RESERVED_TYPE_NAMES = {
    "int", "float", "string", "bool", "array", "callable", "iterable",
    "object", "mixed", "void", "null", "never", "false", "true",
    "self", "static", "parent", "extends", "implements",
    "public", "private", "protected", "readonly", "var", "function", "fn",
    "new", "use", "const", "abstract", "final",
}

_NAMESPACE_RE = re.compile(rf"(?<![\w\\$])namespace\s+({QUALIFIED_NAME})\s*([;{{])")
_CLASS_DECL_RE = re.compile(
    rf"(?<![\w\\$:>])(?:(?:abstract|final|readonly)\s+)*(class|interface|trait|enum)\s+({NAME})"
)
_USE_RE = re.compile(r"(?<![\w\\$>])use\s+(?:(function|const)\s+)?([^;{(]*(?:\{[^}]*\})?)\s*;")
_CLAUSE_RE = re.compile(rf"({QUALIFIED_NAME})(?:\s+as\s+({NAME}))?")
_INCLUDE_RE = re.compile(r"(?<![\w\\$>])(require_once|require|include_once|include)\b")
_HEREDOC_RE = re.compile(r"<<<[ \t]*(['\"]?)([A-Za-z_]\w*)\1\r?\n")

_REFERENCE_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("new", re.compile(rf"(?<![\w\\$>])new\s+({QUALIFIED_NAME})")),
    ("extends", re.compile(
        rf"(?<![\w\\$>])extends\s+({QUALIFIED_NAME}(?:\s*,\s*{QUALIFIED_NAME})*)"
    )),
    ("implements", re.compile(
        rf"(?<![\w\\$>])implements\s+({QUALIFIED_NAME}(?:\s*,\s*{QUALIFIED_NAME})*)"
    )),
    ("instanceof", re.compile(rf"(?<![\w\\$>])instanceof\s+({QUALIFIED_NAME})")),
    ("catch", re.compile(
        rf"(?<![\w\\$>])catch\s*\(\s*({QUALIFIED_NAME}(?:\s*\|\s*{QUALIFIED_NAME})*)"
    )),
    ("static", re.compile(rf"(?<![\w\\$>:])({QUALIFIED_NAME})\s*::")),
    ("param", re.compile(
        rf"(?<=[(,])\s*(?:(?:public|private|protected|readonly)\s+)*({TYPE_LIST})\s*&?\s*(?:\.\.\.)?\s*\$"
    )),
    ("return", re.compile(rf"\)\s*:\s*({TYPE_LIST})(?=\s*(?:\{{|;|=>))")),
    ("property", re.compile(
        rf"(?<![\w\\$>])(?:public|private|protected|var|readonly)"
        rf"(?:\s+(?:public|private|protected|static|readonly))*\s+({TYPE_LIST})\s+\$"
    )),
    ("attribute", re.compile(rf"#\[\s*({QUALIFIED_NAME})")),
]
_TRAIT_USE_RE = re.compile(
    rf"(?<![\w\\$>])use\s+({QUALIFIED_NAME}(?:\s*,\s*{QUALIFIED_NAME})*)\s*[;{{]"
)


@dataclass(frozen=True)
class Region:
    kind: str
    start: int
    end: int


@dataclass(frozen=True)
class NamespaceDeclaration:
    name: str
    start: int
    end: int
    name_start: int
    name_end: int
    braced: bool


@dataclass(frozen=True)
class ClassDeclaration:
    kind: str
    name: str
    start: int
    name_start: int
    name_end: int


@dataclass(frozen=True)
class UseClause:
    fqn: str
    alias: str | None
    start: int
    end: int
    statement_start: int
    statement_end: int
    name_end: int = 0
    kind: str = "class"
    grouped: bool = False

    @property
    def local_name(self) -> str:
        return self.alias or short_name(self.fqn)

    @property
    def text(self) -> str:
        if self.alias:
            return f"{self.fqn} as {self.alias}"
        return self.fqn


@dataclass(frozen=True)
class NameSite:
    name: str
    start: int
    end: int
    context: str

    @property
    def is_qualified(self) -> bool:
        return SEPARATOR in self.name

    @property
    def is_fully_qualified(self) -> bool:
        return self.name.startswith(SEPARATOR)


@dataclass(frozen=True)
class StringLiteral:
    start: int
    end: int
    quote: str

    def contents(self, text: str) -> str:
        return text[self.start + 1:self.end - 1]


@dataclass(frozen=True)
class IncludeStatement:
    keyword: str
    start: int
    end: int
    dir_relative: bool
    literals: list[StringLiteral] = field(default_factory=list)


def scan_regions(text: str) -> list[Region]:
    """Find string literals and comments, left to right.

    A quote opens a literal only when it is not already inside one, and a
    backslash escapes the next character, so a position is inside a string
    exactly when an odd number of unescaped quotes of the active kind
    precede it.
    """
    regions: list[Region] = []
    n = len(text)
    i = 0
    while i < n:
        ch = text[i]
        if ch in "'\"`":
            end = _string_end(text, i, ch)
            regions.append(Region("string", i, end))
            i = end
            continue
        if text.startswith("//", i) or (ch == "#" and not text.startswith("#[", i)):
            end = text.find("\n", i)
            end = n if end < 0 else end
            regions.append(Region("comment", i, end))
            i = end
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = n if end < 0 else end + 2
            regions.append(Region("comment", i, end))
            i = end
            continue
        if text.startswith("<<<", i):
            m = _HEREDOC_RE.match(text, i)
            if m:
                closing = re.compile(rf"^[ \t]*{m.group(2)}\b", re.MULTILINE)
                close = closing.search(text, m.end())
                end = close.end() if close else n
                regions.append(Region("string", i, end))
                i = end
                continue
        i += 1
    return regions


def _string_end(text: str, start: int, quote: str) -> int:
    j = start + 1
    n = len(text)
    while j < n:
        if text[j] == "\\":
            j += 2
            continue
        if text[j] == quote:
            return j + 1
        j += 1
    return n


def mask_code(text: str, regions: list[Region] | None = None) -> str:
    if regions is None:
        regions = scan_regions(text)
    parts: list[str] = []
    pos = 0
    for region in regions:
        parts.append(text[pos:region.start])
        parts.append(re.sub(r"[^\n]", " ", text[region.start:region.end]))
        pos = region.end
    parts.append(text[pos:])
    return "".join(parts)


class PhpSource:
    """Lazily computed structural view of one PHP file's text."""

    def __init__(self, text: str):
        self.text = text

    @cached_property
    def regions(self) -> list[Region]:
        return scan_regions(self.text)

    @cached_property
    def mask(self) -> str:
        return mask_code(self.text, self.regions)

    @cached_property
    def _depths(self) -> list[int]:
        depths = [0] * (len(self.mask) + 1)
        depth = 0
        for i, ch in enumerate(self.mask):
            depths[i] = depth
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth = max(0, depth - 1)
        depths[len(self.mask)] = depth
        return depths

    def depth_at(self, offset: int) -> int:
        return self._depths[max(0, min(offset, len(self._depths) - 1))]

    def is_code(self, offset: int) -> bool:
        for region in self.regions:
            if region.start <= offset < region.end:
                return False
            if region.start > offset:
                break
        return True

    @cached_property
    def namespace_declaration(self) -> NamespaceDeclaration | None:
        m = _NAMESPACE_RE.search(self.mask)
        if not m:
            return None
        return NamespaceDeclaration(
            name=normalize_fqn(m.group(1)),
            start=m.start(),
            end=m.end(),
            name_start=m.start(1),
            name_end=m.end(1),
            braced=m.group(2) == "{",
        )

    @property
    def namespace(self) -> str:
        decl = self.namespace_declaration
        return decl.name if decl else ""

    @property
    def _top_level_depth(self) -> int:
        decl = self.namespace_declaration
        return 1 if decl and decl.braced else 0

    @cached_property
    def class_declarations(self) -> list[ClassDeclaration]:
        declarations = []
        for m in _CLASS_DECL_RE.finditer(self.mask):
            name = m.group(2)
            if name.lower() in RESERVED_TYPE_NAMES:
                continue
            declarations.append(ClassDeclaration(
                kind=m.group(1),
                name=name,
                start=m.start(),
                name_start=m.start(2),
                name_end=m.end(2),
            ))
        return declarations

    @cached_property
    def use_clauses(self) -> list[UseClause]:
        clauses: list[UseClause] = []
        top = self._top_level_depth
        for m in _USE_RE.finditer(self.mask):
            if self.depth_at(m.start()) != top:
                continue
            kind = m.group(1) or "class"
            body_start = m.start(2)
            body = m.group(2)
            brace = body.find("{")
            if brace >= 0:
                prefix = normalize_fqn(body[:brace].strip().rstrip(SEPARATOR))
                inner_start = body_start + brace + 1
                inner = body[brace + 1:body.rfind("}")]
                for cm in _CLAUSE_RE.finditer(inner):
                    clauses.append(UseClause(
                        fqn=f"{prefix}{SEPARATOR}{normalize_fqn(cm.group(1))}",
                        alias=cm.group(2),
                        start=inner_start + cm.start(),
                        end=inner_start + cm.end(),
                        statement_start=m.start(),
                        statement_end=m.end(),
                        name_end=inner_start + cm.end(1),
                        kind=kind,
                        grouped=True,
                    ))
                continue
            for cm in _CLAUSE_RE.finditer(body):
                clauses.append(UseClause(
                    fqn=normalize_fqn(cm.group(1)),
                    alias=cm.group(2),
                    start=body_start + cm.start(),
                    end=body_start + cm.end(),
                    statement_start=m.start(),
                    statement_end=m.end(),
                    name_end=body_start + cm.end(1),
                    kind=kind,
                ))
        return clauses

    @property
    def class_imports(self) -> list[UseClause]:
        return [c for c in self.use_clauses if c.kind == "class"]

    @cached_property
    def imported_names(self) -> dict[str, str]:
        """Map of lower-cased local name to the imported FQN."""
        return {c.local_name.lower(): c.fqn for c in self.class_imports}

    @cached_property
    def reference_sites(self) -> list[NameSite]:
        sites: dict[tuple[int, int], NameSite] = {}
        use_spans = [(c.statement_start, c.statement_end) for c in self.use_clauses]

        def add(group_start: int, group_text: str, context: str) -> None:
            for nm in NAME_RE.finditer(group_text):
                name = nm.group(0)
                if name.lower() in RESERVED_TYPE_NAMES:
                    continue
                start = group_start + nm.start()
                end = group_start + nm.end()
                if any(s <= start < e for s, e in use_spans):
                    continue
                sites.setdefault((start, end), NameSite(name, start, end, context))

        for context, pattern in _REFERENCE_PATTERNS:
            for m in pattern.finditer(self.mask):
                add(m.start(1), m.group(1), context)

        top = self._top_level_depth
        for m in _TRAIT_USE_RE.finditer(self.mask):
            if self.depth_at(m.start()) > top:
                add(m.start(1), m.group(1), "trait_use")

        return sorted(sites.values(), key=lambda s: s.start)

    def include_statements(self) -> list[IncludeStatement]:
        statements = []
        strings = [r for r in self.regions if r.kind == "string"]
        for m in _INCLUDE_RE.finditer(self.mask):
            end = self.mask.find(";", m.end())
            end = len(self.mask) if end < 0 else end
            argument = self.mask[m.end():end]
            literals = [
                StringLiteral(r.start, r.end, self.text[r.start])
                for r in strings
                if m.end() <= r.start and r.end <= end and self.text[r.start] in "'\""
            ]
            statements.append(IncludeStatement(
                keyword=m.group(1),
                start=m.start(),
                end=end,
                dir_relative="__DIR__" in argument or "dirname" in argument,
                literals=literals,
            ))
        return statements
