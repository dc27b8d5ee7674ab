import io

import pytest


def _fi(**kw):
    from shadowgo.builder.funcs import Field, FuncInfo

    kw.setdefault("params", [Field(names=["a", "b"], expr="int")])
    kw.setdefault("results", [Field(names=[], expr="int")])
    return FuncInfo(**kw)


def _mock(fi, **kw) -> str:
    out = io.StringIO()
    fi.write_mock(out, **kw)
    return out.getvalue()


def _recorder(fi, recorder="_package_Rec", **kw) -> str:
    out = io.StringIO()
    fi.write_recorder(out, recorder, **kw)
    return out.getvalue()


def test_real_form_is_renamed_for_exported_functions():
    fi = _fi(name="Add", body=b"{ return a + b }")
    out = io.StringIO()
    fi.write_real(out)
    assert out.getvalue() == "func _real_Add(a, b int) int { return a + b }\n"


def test_real_form_keeps_unexported_and_generic_names():
    from shadowgo.builder.funcs import Field

    assert _fi(name="add").real_name == "add"
    generic = _fi(name="Map", type_params="[T any]", params=[Field(names=["v"], expr="T")])
    assert generic.real_name == "Map"
    assert generic.is_generic
    assert _fi(name="Get", recv_expr="*Box[T]").is_generic


def test_real_form_keeps_export_directive_and_receiver():
    fi = _fi(name="Len", recv_name="s", recv_expr="*Stack", export="StackLen", params=[], body=b"{ return 0 }")
    out = io.StringIO()
    fi.write_real(out)
    assert out.getvalue() == "//export StackLen\nfunc (s *Stack) _real_Len() int { return 0 }\n"


def test_real_form_follows_linkname_to_the_new_name():
    fi = _fi(
        name="Now",
        params=[],
        directives=["//go:noinline", "//go:linkname Now runtime.nanotime", "//go:linkname other runtime.x"],
        body=b"{ return 0 }",
    )
    out = io.StringIO()
    fi.write_real(out)
    assert out.getvalue() == (
        "//go:noinline\n"
        "//go:linkname _real_Now runtime.nanotime\n"
        "//go:linkname other runtime.x\n"
        "func _real_Now() int { return 0 }\n"
    )


def test_forward_declaration_without_body():
    fi = _fi(name="Now", params=[], results=[])
    out = io.StringIO()
    fi.write_real(out)
    assert out.getvalue() == "func _real_Now()\n"


def test_stub_panics():
    fi = _fi(name="Now", params=[], results=[])
    out = io.StringIO()
    fi.write_stub(out)
    assert out.getvalue() == 'func _real_Now() {\n\tpanic("This is only a stub!")\n}\n\n'


def test_package_function_dispatcher():
    assert _mock(_fi(name="Add")) == (
        "func Add(p0, p1 int) int {\n"
        "\treturn _pkgMock.Add(p0, p1)\n"
        "}\n"
        "func (_m *_packageMock) Add(p0, p1 int) int {\n"
        '\tif _toggles.useReal("Add") {\n'
        "\t\treturn _real_Add(p0, p1)\n"
        "\t}\n"
        '\tret := _ctrl.Call(_m, "Add", p0, p1)\n'
        "\tret0, _ := ret[0].(int)\n"
        "\treturn ret0\n"
        "}\n"
    )


def test_method_dispatcher_without_results():
    from shadowgo.builder.funcs import Field

    fi = _fi(name="Push", recv_name="s", recv_expr="*Stack", params=[Field(names=["v"], expr="string")], results=[])
    assert _mock(fi) == (
        "func (_m *Stack) Push(p0 string) {\n"
        '\tif _toggles.useReal("Stack.Push") {\n'
        "\t\t_m._real_Push(p0)\n"
        "\t\treturn\n"
        "\t}\n"
        '\t_ctrl.Call(_m, "Push", p0)\n'
        "}\n"
    )


def test_multiple_results_are_flattened():
    from shadowgo.builder.funcs import Field

    fi = _fi(
        name="Split",
        params=[Field(names=[], expr="string")],
        results=[Field(names=["a", "b"], expr="string"), Field(names=["err"], expr="error")],
    )
    text = _mock(fi)
    assert "func Split(p0 string) (string, string, error) {" in text
    assert "\tret0, _ := ret[0].(string)\n\tret1, _ := ret[1].(string)\n\tret2, _ := ret[2].(error)\n" in text
    assert "\treturn ret0, ret1, ret2\n" in text


def test_variadic_arguments_are_flattened():
    from shadowgo.builder.funcs import Field

    fi = _fi(
        name="Sum",
        params=[Field(names=["a", "b"], expr="int"), Field(names=["rest"], expr="...int")],
        variadic=True,
    )
    text = _mock(fi)
    assert "func Sum(p0, p1 int, p2 ...int) int {\n\treturn _pkgMock.Sum(p0, p1, p2...)\n}\n" in text
    assert "\t\treturn _real_Sum(p0, p1, p2...)\n" in text
    assert (
        "\targs := []interface{}{p0, p1}\n"
        "\tfor _, v := range p2 {\n"
        "\t\targs = append(args, v)\n"
        "\t}\n"
        '\tret := _ctrl.Call(_m, "Sum", args...)\n'
    ) in text

    assert _recorder(fi) == (
        "func (_mr *_package_Rec) Sum(p0, p1 interface{}, p2 ...interface{}) *gomock.Call {\n"
        "\targs := append([]interface{}{p0, p1}, p2...)\n"
        '\treturn _ctrl.RecordCall(_mr.mock, "Sum", args...)\n'
        "}\n"
    )


def test_recorder_for_plain_and_empty_signatures():
    assert _recorder(_fi(name="Add")) == (
        "func (_mr *_package_Rec) Add(p0, p1 interface{}) *gomock.Call {\n"
        '\treturn _ctrl.RecordCall(_mr.mock, "Add", p0, p1)\n'
        "}\n"
    )
    assert _recorder(_fi(name="Now", params=[], results=[]), "_Clock_Rec", ctrl="_mr.mock.ctrl") == (
        "func (_mr *_Clock_Rec) Now() *gomock.Call {\n"
        '\treturn _mr.mock.ctrl.RecordCall(_mr.mock, "Now")\n'
        "}\n"
    )


def test_mock_only_form_skips_the_real_branch():
    fi = _fi(name="Read", recv_expr="*_Reader_Mock", real_disabled=True)
    text = _mock(fi, ctrl="_m.ctrl")
    assert "useReal" not in text
    assert '\tret := _m.ctrl.Call(_m, "Read", p0, p1)\n' in text


def test_add_scope_qualifies_signature():
    from shadowgo.builder.funcs import Field

    fi = _fi(
        name="Get",
        recv_expr="*Store",
        params=[Field(names=["k"], expr="Key")],
        results=[Field(names=[], expr="*Value"), Field(names=[], expr="error")],
    ).add_scope("store")
    assert fi.recv_expr == "*store.Store"
    assert [p.expr for p in fi.params] == ["store.Key"]
    assert fi.ret_types() == ["*store.Value", "error"]


def test_func_info_from_declaration():
    from gofixtures import ellipsis, field, func, go_file, ident, source_file, star

    from shadowgo.builder.funcs import func_info
    from shadowgo.goast.render import ExprRenderer

    src = b"package demo\n\nfunc (b *Buf) Printf(format string, args ...any) (int, error) { return 0, nil }\n"
    decl = func(
        "Printf",
        src,
        params=[field(ident("string"), "format"), field(ellipsis(ident("any")), "args")],
        results=[field(ident("int")), field(ident("error"))],
        recv=("b", star(ident("Buf"))),
        doc_lines=["// Printf formats into the buffer.", "//export BufPrintf", "//go:noinline"],
    )
    sf = source_file(go_file("demo.go", "demo", [decl]))
    fi = func_info(sf.decls[0], ExprRenderer(src))
    assert fi.recv_name == "b"
    assert fi.recv_expr == "*Buf"
    assert fi.variadic
    assert fi.export == "BufPrintf"
    assert fi.directives == ["//go:noinline"]
    assert fi.scoped_name == "Buf.Printf"
    assert fi.count_params() == 2
    assert fi.body == b"{ return 0, nil }"


def test_func_info_rejects_body_outside_source():
    from gofixtures import func, go_file, source_file

    from shadowgo.builder.funcs import func_info
    from shadowgo.errors import ShadowGoError
    from shadowgo.goast.render import ExprRenderer

    decl = func("Add")
    decl["body"] = [10, 500]
    sf = source_file(go_file("a.go", "demo", [decl]))
    with pytest.raises(ShadowGoError):
        func_info(sf.decls[0], ExprRenderer(b"package demo\n"))
