"""A small Go syntax tree and parser for package, import and type declarations."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field as dc_field
from pathlib import Path
from typing import Optional, Union


class GoSyntaxError(ValueError):
    """Raised when Go source cannot be parsed."""


class ChanDir(enum.Flag):
    SEND = 1
    RECV = 2


@dataclass
class Ident:
    name: str


@dataclass
class SelectorExpr:
    x: "Node"
    sel: Ident


@dataclass
class StarExpr:
    x: "Node"


@dataclass
class Ellipsis:
    elt: "Node"


@dataclass
class ArrayType:
    elt: "Node"
    len: Optional["Node"] = None


@dataclass
class MapType:
    key: "Node"
    value: "Node"


@dataclass
class ChanType:
    value: "Node"
    dir: ChanDir = ChanDir.SEND | ChanDir.RECV


@dataclass
class Field:
    names: list[Ident] = dc_field(default_factory=list)
    type: Optional["Node"] = None
    doc: Optional[list[str]] = None
    comment: Optional[list[str]] = None


@dataclass
class FieldList:
    list: list[Field] = dc_field(default_factory=list)


@dataclass
class FuncType:
    params: Optional[FieldList] = None
    results: Optional[FieldList] = None


@dataclass
class StructType:
    fields: Optional[FieldList] = None


@dataclass
class InterfaceType:
    methods: Optional[FieldList] = None


@dataclass
class TypeSpec:
    name: Ident
    type: Optional["Node"] = None


@dataclass
class ImportSpec:
    path: str
    name: Optional[Ident] = None


@dataclass
class File:
    name: str
    package: str
    imports: list[ImportSpec] = dc_field(default_factory=list)
    types: list[TypeSpec] = dc_field(default_factory=list)


@dataclass
class Package:
    name: str
    files: dict[str, File] = dc_field(default_factory=dict)


Node = Union[
    Ident, SelectorExpr, StarExpr, Ellipsis, ArrayType, MapType, ChanType,
    FuncType, StructType, InterfaceType,
]

_KEYWORDS = set(
    "break case chan const continue default defer else fallthrough for func go goto "
    "if import interface map package range return select struct switch type var".split()
)
_SEMI_KEYWORDS = {"break", "continue", "fallthrough", "return"}
_TYPE_KEYWORDS = {"map", "chan", "func", "struct", "interface"}

_TOKEN_RE = re.compile(
    r"""(?P<newline>\n)|(?P<space>[ \t\r\f]+)
    |(?P<comment>//[^\n]*|/\*.*?\*/)
    |(?P<string>`[^`]*`|"(?:\\.|[^"\\\n])*")
    |(?P<char>'(?:\\.|[^'\\\n])*')
    |(?P<number>\.?\d[0-9a-zA-Z_.]*)
    |(?P<ident>[^\W\d]\w*)
    |(?P<op>\.\.\.|<<=|>>=|&\^=|&\^|&&|\|\||<-|\+\+|--|[-+*/%&|^<>=!:]=|<<|>>|[-+*/%&|^<>=!(){}\[\],;.:~])""",
    re.VERBOSE | re.DOTALL,
)


@dataclass
class _Token:
    kind: str
    value: str
    line: int
    comments: list  # (text, line) pairs preceding the token


def _ends_statement(tokens: list[_Token]) -> bool:
    if not tokens:
        return False
    last = tokens[-1]
    if last.kind == "ident":
        return last.value not in _KEYWORDS or last.value in _SEMI_KEYWORDS
    return last.kind in ("string", "char", "number") or last.value in (")", "]", "}", "++", "--")


def _tokenize(source: str) -> list[_Token]:
    tokens: list[_Token] = []
    pending: list = []
    line, pos = 1, 0

    def semicolon() -> None:
        nonlocal pending
        if _ends_statement(tokens):
            tokens.append(_Token("op", ";", line, pending))
            pending = []

    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise GoSyntaxError(f"line {line}: unexpected character {source[pos]!r}")
        kind, text, pos = match.lastgroup, match.group(), match.end()
        if kind == "newline":
            semicolon()
            line += 1
        elif kind == "comment":
            pending.append((text, line))
            if "\n" in text:
                semicolon()
                line += text.count("\n")
        elif kind != "space":
            tokens.append(_Token(kind, text, line, pending))
            pending = []
            line += text.count("\n")
    semicolon()
    tokens.append(_Token("EOF", "", line, pending))
    return tokens


class _Parser:
    def __init__(self, tokens: list[_Token], filename: str):
        self._tokens, self._i, self._filename = tokens, 0, filename

    def _error(self, message: str) -> GoSyntaxError:
        tok = self._peek()
        return GoSyntaxError(f"{self._filename}:{tok.line}: {message} (got {tok.value or 'EOF'!r})")

    def _peek(self, offset: int = 0) -> _Token:
        return self._tokens[min(self._i + offset, len(self._tokens) - 1)]

    def _next(self) -> _Token:
        tok = self._peek()
        if tok.kind != "EOF":
            self._i += 1
        return tok

    def _is(self, value: str, offset: int = 0) -> bool:
        tok = self._peek(offset)
        return tok.kind in ("op", "ident") and tok.value == value

    def _accept(self, value: str) -> bool:
        if self._is(value):
            self._next()
            return True
        return False

    def _expect(self, value: str) -> None:
        if not self._accept(value):
            raise self._error(f"expected {value!r}")

    def _ident(self) -> str:
        tok = self._peek()
        if tok.kind != "ident" or tok.value in _KEYWORDS:
            raise self._error("expected identifier")
        return self._next().value

    def _skip_semis(self) -> None:
        while self._accept(";"):
            pass

    def _end_stmt(self) -> None:
        if not (self._peek().kind == "EOF" or self._is(")") or self._is("}")):
            self._expect(";")

    def _group(self, parse_one) -> list:
        if not self._accept("("):
            return [parse_one()]
        items = []
        while True:
            self._skip_semis()
            if self._accept(")"):
                break
            items.append(parse_one())
        self._end_stmt()
        return items

    def parse_file(self) -> File:
        self._skip_semis()
        self._expect("package")
        result = File(name=self._filename, package=self._ident())
        self._end_stmt()
        self._skip_semis()
        while self._accept("import"):
            result.imports.extend(self._group(self._import_spec))
            self._skip_semis()
        while self._peek().kind != "EOF":
            if self._accept(";"):
                continue
            if self._accept("type"):
                result.types.extend(self._group(self._type_spec))
            else:
                self._skip_declaration()
        return result

    def _import_spec(self) -> ImportSpec:
        name = None
        if self._peek().kind == "ident":
            name = Ident(self._next().value)
        elif self._accept("."):
            name = Ident(".")
        path = self._next()
        if path.kind != "string":
            raise GoSyntaxError(f"{self._filename}:{path.line}: expected import path")
        self._end_stmt()
        return ImportSpec(path=path.value, name=name)

    def _type_spec(self) -> TypeSpec:
        name = self._ident()
        self._accept("=")
        spec = TypeSpec(Ident(name), self.parse_type())
        self._end_stmt()
        return spec

    def _skip_declaration(self) -> None:
        depth = 0
        while True:
            tok = self._next()
            if tok.kind == "EOF":
                if depth:
                    raise GoSyntaxError(f"{self._filename}: unexpected end of file")
                return
            if tok.kind != "op":
                continue
            if tok.value in "([{":
                depth += 1
            elif tok.value in ")]}":
                depth -= 1
                if depth < 0:
                    raise GoSyntaxError(f"{self._filename}:{tok.line}: unbalanced {tok.value!r}")
            elif tok.value == ";" and depth == 0:
                return

    def _starts_type(self) -> bool:
        tok = self._peek()
        if tok.kind == "ident":
            return tok.value not in _KEYWORDS or tok.value in _TYPE_KEYWORDS
        return tok.kind == "op" and tok.value in ("*", "[", "(", "<-", "...")

    def parse_type(self, allow_variadic: bool = False) -> Node:
        if self._accept("map"):
            self._expect("[")
            key = self.parse_type()
            self._expect("]")
            return MapType(key, self.parse_type())
        if self._accept("chan"):
            direction = ChanDir.SEND if self._accept("<-") else ChanDir.SEND | ChanDir.RECV
            return ChanType(self.parse_type(), direction)
        if self._accept("func"):
            return FuncType(*self._signature())
        if self._accept("struct"):
            return StructType(self._fields(struct=True))
        if self._accept("interface"):
            return InterfaceType(self._fields(struct=False))
        if self._peek().kind == "ident":
            ident = Ident(self._ident())
            return SelectorExpr(ident, Ident(self._ident())) if self._accept(".") else ident
        if self._accept("*"):
            return StarExpr(self.parse_type())
        if self._accept("<-"):
            self._expect("chan")
            return ChanType(self.parse_type(), ChanDir.RECV)
        if self._accept("["):
            parts, depth = [], 0
            while depth or not self._is("]"):
                part = self._next()
                if part.kind == "EOF":
                    raise self._error("unterminated array length")
                depth += {"[": 1, "]": -1}.get(part.value, 0)
                parts.append(part.value)
            self._expect("]")
            return ArrayType(self.parse_type(), Ident(" ".join(parts)) if parts else None)
        if self._accept("("):
            inner = self.parse_type()
            self._expect(")")
            return inner
        if allow_variadic and self._accept("..."):
            return Ellipsis(self.parse_type())
        raise self._error("expected type")

    def _signature(self) -> tuple[FieldList, Optional[FieldList]]:
        params = self._param_list()
        if self._is("("):
            return params, self._param_list()
        if self._starts_type():
            return params, FieldList([Field(type=self.parse_type())])
        return params, None

    def _param_list(self) -> FieldList:
        self._expect("(")
        items = []
        while not self._accept(")"):
            first = self.parse_type(allow_variadic=True)
            second = None if self._is(",") or self._is(")") else self.parse_type(allow_variadic=True)
            items.append((first, second))
            if not self._accept(","):
                self._expect(")")
                break
        if all(second is None for _, second in items):
            return FieldList([Field(type=first) for first, _ in items])
        fields, pending = [], []
        for first, second in items:
            if not isinstance(first, Ident):
                raise self._error("mixed named and unnamed parameters")
            pending.append(first)
            if second is not None:
                fields.append(Field(names=pending, type=second))
                pending = []
        if pending:
            raise self._error("mixed named and unnamed parameters")
        return FieldList(fields)

    def _doc(self, index: int) -> Optional[list[str]]:
        tok = self._tokens[index]
        prev_line = self._tokens[index - 1].line if index > 0 else 0
        group: list[str] = []
        expected = tok.line - 1
        for text, line in reversed(tok.comments):
            if line + text.count("\n") != expected or line == prev_line:
                break
            group.insert(0, text)
            expected = line - 1
        return group or None

    def _line_comment(self) -> Optional[list[str]]:
        last_line = self._tokens[self._i - 1].line
        return [text for text, line in self._peek().comments if line == last_line] or None

    def _fields(self, struct: bool) -> FieldList:
        self._expect("{")
        fields = []
        while True:
            self._skip_semis()
            if self._accept("}"):
                break
            start = self._i
            named = self._peek().kind == "ident"
            if not struct and named and self._is("(", 1):
                item = Field(names=[Ident(self._ident())], type=FuncType(*self._signature()))
            elif struct and named and not (
                self._is(".", 1) or self._is(";", 1) or self._is("}", 1) or self._peek(1).kind == "string"
            ):
                names = [Ident(self._ident())]
                while self._accept(","):
                    names.append(Ident(self._ident()))
                item = Field(names=names, type=self.parse_type())
            else:
                item = Field(type=self.parse_type())
            if struct and self._peek().kind == "string":
                self._next()
            item.doc, item.comment = self._doc(start), self._line_comment()
            fields.append(item)
            if not self._is("}"):
                self._expect(";")
        return FieldList(fields)


def parse_file(source: str, filename: str = "<source>") -> File:
    """Parse the package clause, imports and type declarations of a Go file."""
    return _Parser(_tokenize(source), filename).parse_file()


def parse_dir(directory) -> dict[str, Package]:
    """Parse every .go file in a directory, grouped by package name."""
    path = Path(directory)
    if not path.is_dir():
        raise FileNotFoundError(f"no such directory: {directory}")
    packages: dict[str, Package] = {}
    for go_file in sorted(path.glob("*.go")):
        parsed = parse_file(go_file.read_text(encoding="utf-8"), str(go_file))
        packages.setdefault(parsed.package, Package(parsed.package)).files[str(go_file)] = parsed
    return packages


def _format_fields(fields: Optional[FieldList], sep: str) -> str:
    if fields is None:
        return ""
    return sep.join(
        (", ".join(n.name for n in f.names) + " " if f.names else "") + format_node(f.type)
        for f in fields.list
    )


def format_node(node) -> str:
    """Render a type expression as Go source text."""
    if node is None:
        return ""
    if isinstance(node, Ident):
        return node.name
    if isinstance(node, SelectorExpr):
        return format_node(node.x) + "." + node.sel.name
    if isinstance(node, StarExpr):
        return "*" + format_node(node.x)
    if isinstance(node, Ellipsis):
        return "..." + format_node(node.elt)
    if isinstance(node, ArrayType):
        return "[" + format_node(node.len) + "]" + format_node(node.elt)
    if isinstance(node, MapType):
        return "map[" + format_node(node.key) + "]" + format_node(node.value)
    if isinstance(node, ChanType):
        prefix = {ChanDir.SEND: "chan<- ", ChanDir.RECV: "<-chan "}.get(node.dir, "chan ")
        return prefix + format_node(node.value)
    if isinstance(node, FuncType):
        text = "func(" + _format_fields(node.params, ", ") + ")"
        results = node.results.list if node.results else []
        if len(results) == 1 and not results[0].names:
            return text + " " + format_node(results[0].type)
        return text + (" (" + _format_fields(node.results, ", ") + ")" if results else "")
    if isinstance(node, (StructType, InterfaceType)):
        keyword = "struct" if isinstance(node, StructType) else "interface"
        body = _format_fields(node.fields if keyword == "struct" else node.methods, "; ")
        return f"{keyword}{{ {body} }}" if body else keyword + "{}"
    raise TypeError(f"cannot format {type(node).__name__}")