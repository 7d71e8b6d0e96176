"""Printing of type expressions, qualified for a destination package."""

from __future__ import annotations

from typing import Iterable, Optional

from .syntax import (
    ArrayType,
    ChanDir,
    ChanType,
    Ellipsis,
    FieldList,
    FuncType,
    Ident,
    MapType,
    StarExpr,
    StructType,
    TypeSpec,
    format_node,
)

_CHAN_PREFIXES = {
    ChanDir.SEND | ChanDir.RECV: "chan ",
    ChanDir.SEND: "chan<- ",
    ChanDir.RECV: "<-chan ",
}


class UnexportedTypeError(ValueError):
    """Raised when an unexported source type would be referenced from another package."""

    def __init__(self, type_name: str):
        super().__init__(f"{type_name}: unexported type")
        self.type_name = type_name


def _is_unexported(name: str) -> bool:
    return bool(name) and name[0] == name[0].lower()


class Printer:
    """Prints type nodes, prefixing source-package types with types_prefix when set."""

    def __init__(self, types: Optional[Iterable[TypeSpec]] = None, types_prefix: str = ""):
        self.types = list(types or [])
        self.types_prefix = types_prefix

    def print(self, node) -> str:
        """Print a node as is."""
        return "" if node is None else format_node(node)

    def print_type(self, node) -> str:
        """Print a type node, qualifying references to source-package types."""
        if isinstance(node, FuncType):
            params = self._field_list(node.params)
            results = self._field_list(node.results)
            return "func(" + ", ".join(params) + ") (" + ", ".join(results) + ")"
        if isinstance(node, StarExpr):
            return "*" + self.print_type(node.x)
        if isinstance(node, Ellipsis):
            return "..." + self.print_type(node.elt)
        if isinstance(node, ChanType):
            value = self.print_type(node.value)
            return _CHAN_PREFIXES.get(node.dir, "") + value
        if isinstance(node, ArrayType):
            elt = self.print_type(node.elt)
            return "[" + self.print(node.len) + "]" + elt
        if isinstance(node, MapType):
            key = self.print_type(node.key)
            return "map[" + key + "]" + self.print_type(node.value)
        if isinstance(node, StructType):
            return "struct{\n" + "\n".join(self._field_list(node.fields)) + "\n}"
        if isinstance(node, Ident):
            return self._print_ident(node)
        return self.print(node)

    def _print_ident(self, ident: Ident) -> str:
        for spec in self.types:
            if spec.name.name != ident.name:
                continue
            if self.types_prefix:
                if _is_unexported(spec.name.name):
                    raise UnexportedTypeError(spec.name.name)
                return self.types_prefix + "." + ident.name
            return ident.name
        return format_node(ident)

    def _field_list(self, fields: Optional[FieldList]) -> list[str]:
        if fields is None:
            return []
        return [
            ", ".join(n.name for n in item.names) + " " + self.print_type(item.type)
            for item in fields.list
        ]