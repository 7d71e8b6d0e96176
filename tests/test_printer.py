import pytest

from gowrap.printer import Printer, UnexportedTypeError
from gowrap.syntax import (
    ArrayType,
    ChanDir,
    ChanType,
    Ellipsis,
    Field,
    FieldList,
    FuncType,
    Ident,
    MapType,
    SelectorExpr,
    StarExpr,
    StructType,
    TypeSpec,
)


def _types(*names):
    return [TypeSpec(Ident(n)) for n in names]


def _unexported_printer(prefix="otherPackage"):
    return Printer(_types("unexported"), prefix)


def test_print_nil_node():
    assert Printer().print(None) == ""


def test_print_success():
    assert Printer().print(Ident("name")) == "name"


def test_field_list_nil():
    assert Printer()._field_list(None) == []


def test_field_list_error():
    fl = FieldList([Field(type=Ident("unexported"))])
    with pytest.raises(UnexportedTypeError):
        _unexported_printer()._field_list(fl)


def test_field_list_success():
    fl = FieldList([Field(names=[Ident("param")], type=Ident("ExportedType"))])
    assert Printer(_types("ExportedType"))._field_list(fl) == ["param ExportedType"]


@pytest.mark.parametrize(
    "node",
    [
        ArrayType(Ident("unexported")),
        ChanType(Ident("unexported")),
        FuncType(params=FieldList([Field(type=Ident("unexported"))])),
        FuncType(results=FieldList([Field(type=Ident("unexported"))])),
        MapType(Ident("unexported"), Ident("Exported")),
        MapType(Ident("Exported"), Ident("unexported")),
        StarExpr(Ident("unexported")),
        StructType(FieldList([Field(type=Ident("unexported"))])),
        Ellipsis(Ident("unexported")),
    ],
)
def test_unexported_type_errors(node):
    with pytest.raises(UnexportedTypeError):
        _unexported_printer().print_type(node)


def test_ident_unexported():
    with pytest.raises(UnexportedTypeError) as info:
        _unexported_printer("otherpackage").print_type(Ident("unexported"))
    assert info.value.type_name == "unexported"


def test_ident_success():
    assert Printer(_types("Exported"), "prefix").print_type(Ident("Exported")) == "prefix.Exported"


@pytest.mark.parametrize(
    "node,types,want",
    [
        (ArrayType(Ident("Exported")), ("Exported",), "[]Exported"),
        (ChanType(Ident("Exported"), ChanDir.SEND | ChanDir.RECV), ("Exported",), "chan Exported"),
        (ChanType(Ident("Recv"), ChanDir.RECV), ("Recv",), "<-chan Recv"),
        (ChanType(Ident("Send"), ChanDir.SEND), ("Send",), "chan<- Send"),
        (FuncType(), ("Exported",), "func() ()"),
        (MapType(Ident("Exported"), Ident("Exported")), ("Exported",), "map[Exported]Exported"),
        (StarExpr(Ident("Exported")), ("Exported",), "*Exported"),
        (StructType(FieldList([Field(type=Ident("Exported"))])), (), "struct{\n Exported\n}"),
        (Ellipsis(Ident("Exported")), ("Exported",), "...Exported"),
    ],
)
def test_success_cases(node, types, want):
    assert Printer(_types(*types)).print_type(node) == want


@pytest.mark.parametrize(
    "node,want",
    [
        (FuncType(), "func() ()"),
        (StarExpr(Ident("string")), "*string"),
        (Ellipsis(Ident("string")), "...string"),
        (ArrayType(Ident("string")), "[]string"),
        (MapType(Ident("string"), Ident("int")), "map[string]int"),
        (ChanType(Ident("string"), ChanDir.SEND | ChanDir.RECV), "chan string"),
        (StructType(), "struct{\n\n}"),
        (SelectorExpr(Ident("package"), Ident("Identifier")), "package.Identifier"),
    ],
)
def test_print_type(node, want):
    assert Printer().print_type(node) == want