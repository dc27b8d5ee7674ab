from __future__ import annotations

import subprocess
from pathlib import Path

import pytest


def _fake_go(monkeypatch, answers):
    """Route `go list` calls to `answers`, keyed by the listed package."""
    calls = []

    def fake_run(cmd, *, cwd=None, env=None, **kw):  # noqa: ANN001
        calls.append((list(cmd), cwd))
        out = answers.get(cmd[-1])
        if out is None:
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr=f"cannot find package {cmd[-1]}")
        return subprocess.CompletedProcess(cmd, 0, stdout=out + "\n", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)
    return calls


def test_missing_go_is_a_build_error(monkeypatch):
    from shadowgo.builder.resolve import GoListResolver
    from shadowgo.errors import BuildError

    def fake_run(*args, **kwargs):  # noqa: ANN001
        raise FileNotFoundError("go")

    monkeypatch.setattr(subprocess, "run", fake_run)
    with pytest.raises(BuildError, match="Go toolchain not found"):
        GoListResolver().lookup_import_path("fmt")


def test_vendor_paths():
    from shadowgo.builder.resolve import vendor_paths

    assert vendor_paths("example.com/a/b") == [
        "example.com/a/b/vendor",
        "example.com/a/vendor",
        "example.com/vendor",
        "vendor",
    ]
    assert vendor_paths("") == ["vendor"]


def test_package_names_are_cached(monkeypatch):
    from shadowgo.builder.resolve import GoListResolver

    calls = _fake_go(monkeypatch, {"gopkg.in/yaml.v3": "yaml"})
    r = GoListResolver()
    assert r.package_name("gopkg.in/yaml.v3", Path("/src/demo")) == "yaml"
    assert r.package_name("gopkg.in/yaml.v3", Path("/src/demo")) == "yaml"
    assert len(calls) == 1


def test_c_has_no_name(monkeypatch):
    from shadowgo.builder.resolve import GoListResolver

    calls = _fake_go(monkeypatch, {})
    assert GoListResolver().package_name("C", Path("/src/demo")) == ""
    assert calls == []


def test_vendored_imports_are_tried(monkeypatch):
    from shadowgo.builder.resolve import GoListResolver

    calls = _fake_go(monkeypatch, {"example.com/app/vendor/example.com/dep": "dep"})
    name = GoListResolver().package_name("example.com/dep", Path("/src/app"), "example.com/app/cmd")
    assert name == "dep"
    assert [c[0][-1] for c in calls] == [
        "example.com/dep",
        "example.com/app/cmd/vendor/example.com/dep",
        "example.com/app/vendor/example.com/dep",
    ]


def test_relative_imports_are_resolved_from_source_and_not_cached(monkeypatch):
    from shadowgo.builder.resolve import GoListResolver

    calls = _fake_go(monkeypatch, {"./util": "util"})
    r = GoListResolver()
    assert r.package_name("./util", Path("/src/demo")) == "util"
    assert r.package_name("./util", Path("/src/demo")) == "util"
    assert len(calls) == 2
    assert calls[0][1] == str(Path("/src/demo"))


def test_unknown_package_is_a_resolution_error(monkeypatch):
    from shadowgo.builder.resolve import GoListResolver
    from shadowgo.errors import ResolutionError

    _fake_go(monkeypatch, {})
    with pytest.raises(ResolutionError, match="example.com/nope"):
        GoListResolver().package_name("example.com/nope", Path("/src/demo"))


def test_missing_go_is_not_a_resolution_error(monkeypatch):
    from shadowgo.builder.resolve import GoListResolver
    from shadowgo.errors import BuildError

    calls = []

    def fake_run(cmd, **kwargs):  # noqa: ANN001
        calls.append(list(cmd))
        raise FileNotFoundError("go")

    monkeypatch.setattr(subprocess, "run", fake_run)
    with pytest.raises(BuildError, match="Go toolchain not found"):
        GoListResolver().package_name("example.com/dep", Path("/src/app"), "example.com/app")
    # Vendor alternates are not tried without a toolchain.
    assert len(calls) == 1


def test_lookup_import_path(monkeypatch, tmp_path):
    from shadowgo.builder.resolve import GoListResolver
    from shadowgo.errors import ResolutionError

    _fake_go(monkeypatch, {"example.com/dep": str(tmp_path), "example.com/none": ""})
    r = GoListResolver()
    assert r.lookup_import_path("example.com/dep") == tmp_path.resolve()
    assert r.lookup_import_path("_/home/me/dep") == Path("/home/me/dep")
    with pytest.raises(ResolutionError, match="Unable to find package"):
        r.lookup_import_path("example.com/none")
