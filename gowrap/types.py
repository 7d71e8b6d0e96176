"""Method and parameter descriptions used by decorator templates."""

from __future__ import annotations

from dataclasses import dataclass, field as dc_field
from typing import Optional

from .syntax import (
    ArrayType,
    ChanType,
    Field,
    FieldList,
    FuncType,
    Ident,
    MapType,
    SelectorExpr,
    StarExpr,
    StructType,
)


@dataclass
class Param:
    """A function argument or result."""

    name: str = ""
    type: str = ""
    variadic: bool = False
    doc: Optional[list[str]] = None
    comment: Optional[list[str]] = None

    def pass_expr(self) -> str:
        """The name as passed to a call, with ``...`` for variadic params."""
        return self.name + "..." if self.variadic else self.name


def params_string(params) -> str:
    """Comma separated ``name type`` pairs."""
    return ", ".join(p.name + " " + p.type for p in params)


def params_pass(params) -> str:
    """Comma separated names as passed to a call."""
    return ", ".join(p.pass_expr() for p in params)


@dataclass
class Method:
    """A method signature."""

    name: str = ""
    params: list[Param] = dc_field(default_factory=list)
    results: list[Param] = dc_field(default_factory=list)
    doc: Optional[list[str]] = None
    comment: Optional[list[str]] = None
    returns_error: bool = False
    accepts_context: bool = False

    def call(self) -> str:
        return self.name + "(" + params_pass(self.params) + ")"

    def pass_call(self, prefix: str) -> str:
        if self.results:
            return "return " + prefix + self.call()
        return prefix + self.call() + "\nreturn"

    def params_names(self) -> str:
        return ", ".join(p.name for p in self.params)

    def results_names(self) -> str:
        return ", ".join(r.name for r in self.results)

    def params_struct(self) -> str:
        lines = [
            p.name + " " + (p.type.replace("...", "[]", 1) if p.variadic else p.type)
            for p in self.params
        ]
        return "struct{\n" + "\n ".join(lines) + "}"

    def results_struct(self) -> str:
        return "struct{\n" + "\n ".join(r.name + " " + r.type for r in self.results) + "}"

    def params_map(self) -> str:
        entries = [f'"{p.name}": {p.name}' for p in self.params]
        return "map[string]interface{}{\n" + ",\n ".join(entries) + "}"

    def results_map(self) -> str:
        entries = [f'"{r.name}": {r.name}' for r in self.results]
        return "map[string]interface{}{\n" + ",\n ".join(entries) + "}"

    def has_params(self) -> bool:
        return bool(self.params)

    def has_results(self) -> bool:
        return bool(self.results)

    def return_struct(self, struct_name: str) -> str:
        if not self.results:
            return "return"
        return "return " + ", ".join(struct_name + "." + r.name for r in self.results)

    def signature(self) -> str:
        return "(" + params_string(self.params) + ") (" + params_string(self.results) + ")"

    def declaration(self) -> str:
        return self.name + self.signature()


def _comments(items: Optional[list[str]]) -> Optional[list[str]]:
    return list(items) if items else None


def new_method(name: str, field: Field, printer) -> Method:
    """Build a Method from an interface method field."""
    func = field.type
    if not isinstance(func, FuncType):
        raise ValueError(f'"{name}" is not a method')

    method = Method(name=name, doc=_comments(field.doc), comment=_comments(field.comment))
    used_names: set[str] = set()

    if func.results is not None and func.results.list:
        last = func.results.list[-1].type
        method.returns_error = isinstance(last, Ident) and last.name == "error"
        used_names.add("err")

    if func.params is not None and func.params.list:
        first = func.params.list[0].type
        if isinstance(first, SelectorExpr):
            method.accepts_context = first.sel.name == "Context"
            used_names.add("ctx")

    method.params = _make_params(func.params, used_names, printer)
    method.results = _make_params(func.results, used_names, printer)

    if method.returns_error:
        method.results[-1].name = "err"
    if method.accepts_context:
        method.params[0].name = "ctx"
    return method


def new_param(name: str, field: Field, used_names: set, printer) -> Param:
    """Build a Param, generating a unique name when it is missing or taken."""
    if not name or name in used_names:
        name = _gen_name(_type_prefix(field.type), used_names)
    used_names.add(name)
    return Param(
        name=name,
        type=printer.print_type(field.type),
        variadic=type(field.type).__name__ == "Ellipsis",
        doc=_comments(field.doc),
        comment=_comments(field.comment),
    )


def _make_params(fields: Optional[FieldList], used_names: set, printer) -> list[Param]:
    if fields is None:
        return []
    result = []
    for item in fields.list:
        if not item.names:
            result.append(new_param("", item, used_names, printer))
        else:
            result.extend(new_param(ident.name, item, used_names, printer) for ident in item.names)
    return result


def _type_prefix(node) -> str:
    if isinstance(node, SelectorExpr):
        return _type_prefix(node.sel)
    if isinstance(node, StarExpr):
        return _type_prefix(node.x) + "p"
    if isinstance(node, ArrayType):
        return _type_prefix(node.elt) + "a"
    if isinstance(node, MapType):
        return "m"
    if isinstance(node, ChanType):
        return "ch"
    if isinstance(node, StructType):
        return "st"
    if isinstance(node, FuncType):
        return "f"
    if isinstance(node, Ident):
        return node.name[:1].lower()
    return "p"


def _gen_name(prefix: str, used_names: set) -> str:
    n = 1
    while f"{prefix}{n}" in used_names:
        n += 1
    return f"{prefix}{n}"