import pytest


@pytest.mark.parametrize(
    "path,comment,expected",
    [
        ("fmt", None, ("+", "fmt")),
        ("C", "mock", ("", "C")),
        ("_mock_/example.com/dep", None, ("_", "example.com/dep")),
        ("_/home/user/src/dep", None, ("+", "_/home/user/src/dep")),
        ("example.com/dep", "mock", ("_", "example.com/dep")),
        ("example.com/dep", " Test ", ("@", "example.com/dep")),
        ("example.com/dep", "replace", ("=", "example.com/dep")),
        ("example.com/dep", "unrelated note", ("+", "example.com/dep")),
        ("@example.com/dep", None, ("@", "@example.com/dep")),
    ],
)
def test_mark_for(path, comment, expected):
    from shadowgo.builder.marks import mark_for

    m, stripped = mark_for(path, comment)
    assert (m.value, stripped) == expected


def test_mark_import_replaces_first_character():
    from shadowgo.builder.marks import Mark, mark_import

    assert mark_import("example.com/dep", Mark.MOCK) == "_xample.com/dep"
    assert mark_import("example.com/dep", Mark.TEST) == "@xample.com/dep"
    assert mark_import("example.com/dep", Mark.NORMAL) == "example.com/dep"
    assert mark_import("example.com/dep", Mark.NONE) == "example.com/dep"


def test_get_mark_and_is_marked():
    from shadowgo.builder.marks import Mark, get_mark, is_marked

    assert get_mark("") is Mark.NORMAL
    assert get_mark("=x") is Mark.REPLACE
    assert get_mark("fmt") is Mark.NORMAL
    assert is_marked("_x")
    assert not is_marked("fmt")
    assert not is_marked("")
