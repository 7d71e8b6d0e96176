import io
import json
import subprocess

import jinja2
import pytest

from gowrap import generator as g
from gowrap import package as package_module
from gowrap.package import GoPackage
from gowrap.syntax import (
    Field, FieldList, File, FuncType, Ident, ImportSpec, InterfaceType, Package,
    SelectorExpr, StructType, TypeSpec,
)
from gowrap.types import Method


@pytest.mark.parametrize("s,want", [
    ("abcde", "abcde"), ('"abcde', "abcde"), ('abcde"', "abcde"), ('"abcde"', "abcde"),
])
def test_unquote(s, want):
    assert g.unquote(s) == want


def test_find_import_path_from_name():
    imports = [ImportSpec(path="domain/pkgname", name=Ident("pkg"))]
    assert g.find_import_path_for_name("pkg", imports, None) == "domain/pkgname"


def test_find_import_path_from_package_imports():
    cp = GoPackage(imports={"domain/pkgname": GoPackage(name="pkg")})
    assert g.find_import_path_for_name("pkg", [], cp) == "domain/pkgname"


def test_find_import_path_not_found():
    with pytest.raises(g.GeneratorError) as info:
        g.find_import_path_for_name("pkg", [], GoPackage())
    assert str(info.value) == "pkg: unknown selector"


def test_process_ident_not_interface():
    types = [TypeSpec(Ident("name"), StructType())]
    with pytest.raises(g.GeneratorError) as info:
        g.process_ident(None, Ident("name"), types, "", [])
    assert info.value.reason == g.NOT_AN_INTERFACE


def test_process_ident_not_found():
    with pytest.raises(g.GeneratorError) as info:
        g.process_ident(None, Ident("name"), [], "", [])
    assert info.value.reason == g.EMBEDDED_INTERFACE_NOT_FOUND


def test_process_ident_found():
    types = [TypeSpec(Ident("name"), InterfaceType())]
    assert g.process_ident(None, Ident("name"), types, "", []) == {}


def test_merge_methods():
    assert g.merge_methods(None, None) is None
    with pytest.raises(g.GeneratorError) as info:
        g.merge_methods({"method": Method()}, {"method": Method()})
    assert info.value.reason == g.DUPLICATE_METHOD
    assert g.merge_methods({"method1": Method()}, {"method2": Method()}) == {
        "method1": Method(), "method2": Method()}


def test_process_selector_unknown_name():
    se = SelectorExpr(Ident("unknown"), Ident("unknown"))
    with pytest.raises(g.GeneratorError):
        g.process_selector(GoPackage(), se, [])


def test_process_selector_import_not_found():
    se = SelectorExpr(Ident("unknownpackage"), Ident("Unknown"))
    with pytest.raises(g.GeneratorError):
        g.process_selector(GoPackage(), se, [ImportSpec(path="unknown_path")])


def test_process_selector_import_failed(tmp_path):
    se = SelectorExpr(Ident("io"), Ident("UnknownInterface"))
    cp = GoPackage(imports={"io": GoPackage(name="io", go_files=[str(tmp_path / "x.go")])})
    with pytest.raises(g.GeneratorError) as info:
        g.process_selector(cp, se, [ImportSpec(path="io")])
    assert info.value.reason == g.INTERFACE_NOT_FOUND


def test_process_interface_func_type():
    it = InterfaceType(FieldList([Field([Ident("methodName")], FuncType(FieldList()))]))
    assert g.process_interface(None, it, [], "", []) == {"methodName": Method(name="methodName")}


def test_process_interface_errors():
    sel = InterfaceType(FieldList([Field([], SelectorExpr(Ident("unknown"), Ident("Interface")))]))
    with pytest.raises(g.GeneratorError):
        g.process_interface(GoPackage(), sel, [], "", [])
    ident = InterfaceType(FieldList([Field([], Ident("unknown"))]))
    with pytest.raises(g.GeneratorError):
        g.process_interface(None, ident, [], "", [])


def test_process_interface_embedded():
    it = InterfaceType(FieldList([Field([], Ident("Embedded"))]))
    types = [TypeSpec(Ident("Embedded"), InterfaceType())]
    assert g.process_interface(None, it, types, "", []) == {}


def test_type_specs():
    spec = TypeSpec(Ident("Interface"), InterfaceType())
    assert g.type_specs(File("f.go", "p", types=[spec])) == [spec]


def test_find_interface():
    with pytest.raises(g.GeneratorError) as info:
        g.find_interface(None, Package(""), "")
    assert info.value.reason == g.INTERFACE_NOT_FOUND
    p = Package("", {"file.go": File("file.go", "p", types=[TypeSpec(Ident("Interface"), InterfaceType())])})
    methods, imports = g.find_interface(None, p, "Interface")
    assert methods == {} and imports == []


def _tmpl(source, **funcs):
    env = jinja2.Environment()
    env.globals.update(funcs)
    return env.from_string(source)


def _fail():
    raise RuntimeError("template error")


def test_generate_header_error():
    gen = g.Generator(header_template=_tmpl("{{ make_error() }}", make_error=_fail), body_template=_tmpl(""))
    with pytest.raises(g.GeneratorError):
        gen.generate(io.StringIO())


def test_generate_body_error():
    gen = g.Generator(header_template=_tmpl(""), body_template=_tmpl("{{ make_error() }}", make_error=_fail))
    with pytest.raises(g.GeneratorError):
        gen.generate(io.StringIO())


def test_generate_bad_code():
    gen = g.Generator(header_template=_tmpl("not a go code"), body_template=_tmpl(""))
    with pytest.raises(g.GeneratorError, match="failed to format"):
        gen.generate(io.StringIO())


def test_generate_success():
    out = io.StringIO()
    g.Generator(header_template=_tmpl("package success"), body_template=_tmpl("")).generate(out)
    assert out.getvalue() == "package success\n"


def test_imports_can_be_generated():
    gen = g.Generator(
        options=g.Options(imports=['"github.com/pkg/errors"', '"github.com/sirupsen/logrus"']),
        header_template=_tmpl("package success\n"),
        body_template=_tmpl(
            '\n\t\t\t\t\t\t{{ Import("github.com/sirupsen/logrus") }}\n'
            "\t\t\t\t\t\tfunc test(l *logrus.Logger) {}\n\t\t\t\t\t\t"),
    )
    out = io.StringIO()
    gen.generate(out)
    assert out.getvalue() == (
        'package success\n\nimport (\n\t"github.com/sirupsen/logrus"\n)\n\n'
        "func test(l *logrus.Logger) {}\n")


def test_format_source_local_prefix():
    src = 'package p\nimport (\n\t_ "foobar.com/pkg"\n\t_ "github.com/pkg/errors"\n\t_ "fmt"\n)'
    assert 'import (\n\t_ "fmt"\n\n\t_ "github.com/pkg/errors"\n\n\t_ "foobar.com/pkg"\n)' in \
        g.format_source("out.go", src, "foobar.com/pkg")


def test_new_generator_bad_templates():
    with pytest.raises(g.GeneratorError):
        g.new_generator(g.Options(header_template="{{."))
    with pytest.raises(g.GeneratorError):
        g.new_generator(g.Options(body_template="{{."))


def _fake_go(monkeypatch, packages):
    def run(cmd, **kwargs):
        obj = packages.get(cmd[-1], {"ImportPath": cmd[-1], "Error": {"Err": "not found"}})
        return subprocess.CompletedProcess(cmd, 0, stdout=json.dumps(obj), stderr="")
    monkeypatch.setattr(package_module.subprocess, "run", run)


def test_new_generator_source_not_found(monkeypatch):
    _fake_go(monkeypatch, {})
    with pytest.raises(g.GeneratorError, match="failed to load source package"):
        g.new_generator(g.Options(source_package="not-exist"))


def _src(tmp_path, body):
    (tmp_path / "a.go").write_text("package mypkg\n\ntype Closer interface {\n" + body + "}\n")
    return {"ImportPath": "example.com/mypkg", "Name": "mypkg", "Dir": str(tmp_path), "GoFiles": ["a.go"]}


def test_new_generator_unexported_method(monkeypatch, tmp_path):
    _fake_go(monkeypatch, {"example.com/mypkg": _src(tmp_path, "\tclose() error\n")})
    opts = g.Options(source_package="example.com/mypkg", output_file="./out.go", interface_name="Closer")
    with pytest.raises(g.GeneratorError) as info:
        g.new_generator(opts)
    assert info.value.reason == g.UNEXPORTED_METHOD


def test_new_generator_success(monkeypatch, tmp_path):
    _fake_go(monkeypatch, {"example.com/mypkg": _src(tmp_path, "\tClose() error\n")})
    opts = g.Options(
        source_package="example.com/mypkg", output_file="./out/out.go", interface_name="Closer",
        header_template="package {{ Package.name }}\n",
        body_template="{{ Import() }}\nvar _ {{ Interface.type }}\n",
    )
    gen = g.new_generator(opts)
    assert gen.interface_type == "mypkg.Closer"
    assert gen.methods["Close"].results[0].name == "err"
    out = io.StringIO()
    gen.generate(out)
    assert out.getvalue() == 'package out\n\nimport (\n\t"example.com/mypkg"\n)\n\nvar _ mypkg.Closer\n'


def test_import_statement():
    inputs = g.TemplateInputs(g.TemplateInputInterface("I", "p.I", {}), imports=[' "b" '])
    assert inputs.import_statement("a", "") == 'import (\n"a"\n"b")\n'