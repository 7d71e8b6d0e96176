"""Generation of decorators from interface declarations and templates."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import jinja2

from . import package as pkg
from .printer import Printer
from .syntax import (
    File,
    FuncType,
    GoSyntaxError,
    Ident,
    ImportSpec,
    InterfaceType,
    Package,
    SelectorExpr,
    TypeSpec,
    parse_file,
)
from .types import Method, new_method

EMPTY_INTERFACE = "interface has no methods"
UNEXPORTED_METHOD = "unexported method"
NO_PACKAGE_NAME = "failed to determine the destination package name"
INTERFACE_NOT_FOUND = "interface type declaration not found"
DUPLICATE_METHOD = "embedded interface has same method"
EMBEDDED_INTERFACE_NOT_FOUND = "embedded interface not found"
NOT_AN_INTERFACE = "embedded type is not an interface"
UNKNOWN_SELECTOR = "unknown selector"
PACKAGE_NOT_FOUND = "unable to find package"


class GeneratorError(Exception):
    """Raised when a decorator cannot be generated; ``reason`` names the failure."""

    def __init__(self, reason: str, subject: str = ""):
        super().__init__(f"{subject}: {reason}" if subject else reason)
        self.reason = reason
        self.subject = subject


@dataclass
class Options:
    """Options of new_generator."""

    interface_name: str = ""
    imports: list[str] = field(default_factory=list)
    source_package: str = ""
    source_package_alias: str = ""
    output_file: str = ""
    header_template: str = ""
    body_template: str = ""
    vars: Optional[dict[str, Any]] = None
    header_vars: dict[str, Any] = field(default_factory=dict)
    funcs: Optional[dict[str, Callable]] = None
    local_prefix: str = ""


@dataclass
class TemplateInputInterface:
    """Interface information passed to the body template."""

    name: str
    type: str
    methods: dict[str, Method]


@dataclass
class TemplateInputs:
    """Everything the body template receives."""

    interface: TemplateInputInterface
    vars: dict[str, Any] = field(default_factory=dict)
    imports: list[str] = field(default_factory=list)

    def import_statement(self, *args: str) -> str:
        """An import block with the source file's imports and the given ones."""
        all_imports = {i.strip() for i in self.imports if i.strip()}
        for item in args:
            item = item.strip()
            if not item:
                continue
            if not item.endswith('"'):
                item += '"'
            if not item.startswith('"'):
                item = '"' + item
            all_imports.add(item)
        return "import (\n" + "\n".join(sorted(all_imports)) + ")\n"


def _environment(funcs: dict[str, Callable]) -> jinja2.Environment:
    env = jinja2.Environment(keep_trailing_newline=True)
    env.globals.update(funcs)
    env.filters.update(funcs)
    return env


def _parse_template(env: jinja2.Environment, source: str, what: str) -> jinja2.Template:
    try:
        return env.from_string(source)
    except jinja2.TemplateSyntaxError as exc:
        raise GeneratorError(f"failed to parse {what} template: {exc}") from exc


@dataclass
class Generator:
    """Renders header and body templates into formatted Go source."""

    options: Options = field(default_factory=Options)
    header_template: Optional[jinja2.Template] = None
    body_template: Optional[jinja2.Template] = None
    src_package: Optional[pkg.GoPackage] = None
    dst_package: Optional[pkg.GoPackage] = None
    methods: dict[str, Method] = field(default_factory=dict)
    interface_type: str = ""

    def generate(self, writer) -> None:
        """Render the templates and write the formatted source to writer."""
        variables = self.options.vars or {}
        inputs = TemplateInputs(
            interface=TemplateInputInterface(
                name=self.options.interface_name, type=self.interface_type, methods=self.methods
            ),
            vars=variables,
            imports=self.options.imports,
        )
        try:
            header = self.header_template.render(
                SourcePackage=self.src_package,
                Package=self.dst_package,
                Vars=variables,
                Options=self.options,
            )
            body = self.body_template.render(
                Interface=inputs.interface,
                Vars=inputs.vars,
                Imports=inputs.imports,
                Import=inputs.import_statement,
            )
        except GeneratorError:
            raise
        except Exception as exc:
            raise GeneratorError(f"failed to execute template: {exc}") from exc
        writer.write(format_source(self.options.output_file, header + body, self.options.local_prefix))


def new_generator(options: Options) -> Generator:
    """Load source and destination packages and find the interface's methods."""
    funcs = dict(options.funcs or {})
    env = _environment(funcs)
    header = _parse_template(env, options.header_template, "header")
    body = _parse_template(env, options.body_template, "body")
    if options.vars is None:
        options.vars = {}
    options.funcs = funcs

    try:
        src_package = pkg.load(options.source_package)
    except pkg.PackageNotFoundError as exc:
        raise GeneratorError(f"failed to load source package: {exc}") from exc

    dst_path = os.path.dirname(options.output_file) or "."
    if not dst_path.startswith("/") and not dst_path.startswith("./"):
        dst_path = "./" + dst_path
    dst_package = _load_destination_package(dst_path)

    try:
        src_ast = pkg.package_ast(src_package)
    except (OSError, GoSyntaxError) as exc:
        raise GeneratorError(f"failed to parse source package: {exc}") from exc

    imports = list(options.imports)
    interface_type = src_package.name + "." + options.interface_name
    if src_package.pkg_path == dst_package.pkg_path:
        interface_type = options.interface_name
        src_ast.name = ""
    else:
        if options.source_package_alias:
            src_ast.name = options.source_package_alias
        imports.append('"' + src_package.pkg_path + '"')

    methods, file_imports = find_interface(src_package, src_ast, options.interface_name)
    if not methods:
        raise GeneratorError(EMPTY_INTERFACE)
    if src_ast.name:
        for name in methods:
            if name[0] == name[0].lower():
                raise GeneratorError(UNEXPORTED_METHOD, name)

    imports.extend(
        (i.name.name + " " if i.name else "") + i.path for i in file_imports
    )
    options.imports = imports
    return Generator(
        options=options,
        header_template=header,
        body_template=body,
        src_package=src_package,
        dst_package=dst_package,
        methods=methods,
        interface_type=interface_type,
    )


def _load_destination_package(path: str) -> pkg.GoPackage:
    try:
        return pkg.load(path)
    except pkg.PackageNotFoundError:
        name = os.path.basename(os.path.normpath(path))
        if name in ("", ".", os.sep):
            raise GeneratorError(NO_PACKAGE_NAME, path) from None
        return pkg.GoPackage(name=name)


_STRIP_RE = re.compile(r'`[^`]*`|"(?:\\.|[^"\\\n])*"|\'(?:\\.|[^\'\\\n])*\'|//[^\n]*|/\*.*?\*/', re.S)
_IMPORT_BLOCK_RE = re.compile(r'^[ \t]*import[ \t]*\((?:[^()"]|"(?:\\.|[^"\\])*")*\)[ \t]*', re.M)
_IMPORT_LINE_RE = re.compile(r'^[ \t]*import[ \t]+(?:[\w.]+[ \t]+)?"[^"\n]*"[ \t]*', re.M)
_PACKAGE_RE = re.compile(r"^[ \t]*package[ \t]+\w+[^\n]*\n?", re.M)


def _import_name(spec: ImportSpec) -> str:
    if spec.name is not None:
        return spec.name.name
    segments = unquote(spec.path).split("/")
    name = segments[-1]
    if re.fullmatch(r"v\d+", name) and len(segments) > 1:
        name = segments[-2]
    if name.startswith("go-"):
        name = name[3:]
    return name.replace("-", "").replace(".", "")


def _reindent(text: str) -> str:
    lines, depth = [], 0
    for raw in text.split("\n"):
        line = raw.strip()
        if not line:
            lines.append("")
            continue
        code = _STRIP_RE.sub("", line)
        leading = len(code) - len(code.lstrip(")]}"))
        opens = sum(code.count(c) for c in "([{")
        closes = sum(code.count(c) for c in ")]}")
        lines.append("\t" * max(depth - min(leading, closes), 0) + line)
        depth = max(depth + opens - closes, 0)
    return "\n".join(lines)


def format_source(filename: str, source: str, local_prefix: str = "") -> str:
    """Validate generated code, regroup and prune its imports and reindent it."""
    try:
        parsed: File = parse_file(source, filename or "<generated>")
    except GoSyntaxError as exc:
        raise GeneratorError(f"failed to format generated code:\n{source}\n{exc}") from exc

    match = _PACKAGE_RE.search(source)
    head = source[: match.end()] if match else ""
    rest = source[match.end():] if match else source
    rest = _IMPORT_LINE_RE.sub("", _IMPORT_BLOCK_RE.sub("", rest))
    code = _STRIP_RE.sub("", rest)

    prefixes = [p for p in (s.strip() for s in local_prefix.split(",")) if p]
    groups: list[list[tuple[str, str]]] = [[], [], []]
    seen = set()
    for spec in parsed.imports:
        alias = spec.name.name if spec.name else ""
        key = (alias, spec.path)
        if key in seen:
            continue
        seen.add(key)
        name = _import_name(spec)
        if name not in ("_", ".") and not re.search(r"\b" + re.escape(name) + r"\s*\.", code):
            continue
        path = unquote(spec.path)
        if any(path.startswith(p) for p in prefixes):
            group = 2
        elif "." not in path.split("/")[0]:
            group = 0
        else:
            group = 1
        groups[group].append((path, "\t" + (alias + " " if alias else "") + spec.path))

    blocks = ["\n".join(line for _, line in sorted(g)) for g in groups if g]
    text = "\n".join(l.rstrip() for l in head.strip().split("\n")) + "\n"
    if blocks:
        text += "\nimport (\n" + "\n\n".join(blocks) + "\n)\n"
    body = _reindent(rest).strip()
    if body:
        text += "\n" + body + "\n"
    return re.sub(r"\n{3,}", "\n\n", text)


def type_specs(file: File) -> list[TypeSpec]:
    """All type declarations of a file."""
    return list(file.types)


def find_interface(current_package, ast_package: Package, interface_name: str):
    """Return the interface's methods and the imports of the file declaring it."""
    types: list[TypeSpec] = []
    found: Optional[InterfaceType] = None
    imports: list[ImportSpec] = []
    for file in ast_package.files.values():
        for spec in type_specs(file):
            types.append(spec)
            if found is None and spec.name.name == interface_name and isinstance(spec.type, InterfaceType):
                found = spec.type
                imports = file.imports
    if found is None:
        raise GeneratorError(INTERFACE_NOT_FOUND, interface_name)
    methods = process_interface(current_package, found, types, ast_package.name, imports)
    return methods, imports


def process_interface(current_package, interface_type: InterfaceType, types, types_prefix, imports):
    """Collect the methods of an interface, including embedded ones."""
    methods: dict[str, Method] = {}
    if interface_type.methods is None:
        return methods
    for item in interface_type.methods.list:
        embedded = None
        if isinstance(item.type, FuncType):
            name = item.names[0].name
            methods[name] = new_method(name, item, Printer(types, types_prefix))
            continue
        if isinstance(item.type, SelectorExpr):
            embedded = process_selector(current_package, item.type, imports)
        elif isinstance(item.type, Ident):
            embedded = process_ident(current_package, item.type, types, types_prefix, imports)
        methods = merge_methods(methods, embedded)
    return methods


def process_selector(current_package, selector: SelectorExpr, imports):
    """Methods of an interface embedded from another package."""
    interface_name = selector.sel.name
    package_selector = selector.x.name
    try:
        import_path = find_import_path_for_name(package_selector, imports, current_package)
    except GeneratorError as exc:
        raise GeneratorError(f"{PACKAGE_NOT_FOUND} {package_selector}: {exc}") from exc
    imported = (current_package.imports if current_package else {}).get(import_path)
    if imported is None:
        raise GeneratorError(f"{PACKAGE_NOT_FOUND} {package_selector}")
    try:
        ast_package = pkg.package_ast(imported)
    except (OSError, GoSyntaxError) as exc:
        raise GeneratorError(f"failed to import package: {exc}") from exc
    return find_interface(imported, ast_package, interface_name)[0]


def process_ident(current_package, ident: Ident, types, types_prefix, imports):
    """Methods of an interface embedded from the same package."""
    embedded = None
    for spec in types:
        if spec.name.name == ident.name:
            if not isinstance(spec.type, InterfaceType):
                raise GeneratorError(NOT_AN_INTERFACE, spec.name.name)
            embedded = spec.type
            break
    if embedded is None:
        raise GeneratorError(EMBEDDED_INTERFACE_NOT_FOUND, ident.name)
    return process_interface(current_package, embedded, types, types_prefix, imports)


def merge_methods(ml1, ml2):
    """Merge two method maps, refusing duplicate names."""
    if ml1 is None or ml2 is None:
        return ml1
    for name in ml2:
        if name in ml1:
            raise GeneratorError(DUPLICATE_METHOD, name)
    return {**ml1, **ml2}


def find_import_path_for_name(name: str, imports, current_package) -> str:
    """Resolve a package selector to an import path."""
    for spec in imports or []:
        if spec.name is not None and spec.name.name == name:
            return unquote(spec.path)
    for path, imported in (current_package.imports if current_package else {}).items():
        if imported.name == name:
            return path
    raise GeneratorError(UNKNOWN_SELECTOR, name)


def unquote(s: str) -> str:
    """Strip a leading and a trailing double quote."""
    if s.startswith('"'):
        s = s[1:]
    if s.endswith('"'):
        s = s[:-1]
    return s