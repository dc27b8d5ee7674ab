def test_scope_name_qualifies_local_identifiers():
    from shadowgo.goast.scope import scope_name

    assert scope_name("Foo", "pkg") == "pkg.Foo"
    assert scope_name("*Foo", "pkg") == "*pkg.Foo"
    assert scope_name("[]Foo", "pkg") == "[]pkg.Foo"
    assert scope_name("...Foo", "pkg") == "...pkg.Foo"
    assert scope_name("[4]Foo", "pkg") == "[4]pkg.Foo"


def test_scope_name_leaves_predeclared_and_qualified_names():
    from shadowgo.goast.scope import scope_name

    for name in ("int", "error", "any", "byte", "io.Reader", "interface{}", "struct{}"):
        assert scope_name(name, "pkg") == name
    assert scope_name("*io.Reader", "pkg") == "*io.Reader"


def test_scope_name_recurses_into_maps_and_channels():
    from shadowgo.goast.scope import scope_name

    assert scope_name("map[Key][]*Val", "pkg") == "map[pkg.Key][]*pkg.Val"
    assert scope_name("map[string]int", "pkg") == "map[string]int"
    assert scope_name("chan Foo", "pkg") == "chan pkg.Foo"
    assert scope_name("<-chan *Foo", "pkg") == "<-chan *pkg.Foo"
    assert scope_name("chan<- error", "pkg") == "chan<- error"


def test_split_channel():
    from shadowgo.goast.scope import split_channel

    assert split_channel("<-chan int") == ("<-chan", "int")
    assert split_channel("chan<- []T") == ("chan<-", "[]T")
    assert split_channel("int") == ("", "")
    assert split_channel("func(a int)") == ("", "")


def test_is_local_expr():
    from shadowgo.goast.scope import is_local_expr

    assert is_local_expr("Foo")
    assert is_local_expr("foo_bar2")
    assert not is_local_expr("string")
    assert not is_local_expr("pkg.Foo")
    assert not is_local_expr("[]Foo")


def test_scope_fields_keeps_names():
    from shadowgo.builder.funcs import Field
    from shadowgo.goast.scope import scope_fields

    fields = [Field(names=["a", "b"], expr="Foo"), Field(names=[], expr="error")]
    assert scope_fields(fields, "pkg") == [
        Field(names=["a", "b"], expr="pkg.Foo"),
        Field(names=[], expr="error"),
    ]
