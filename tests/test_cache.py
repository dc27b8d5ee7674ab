import pytest


def _cache(tmp_path, resolver=None):
    from shadowgo.cache.store import Cache

    return Cache(tmp_path / "cache", self_id="test", resolver=resolver)


def test_key_hash_is_stable_and_ordered():
    from shadowgo.cache.keys import CacheFileKey

    a = CacheFileKey("self", "make_pkg", ["f1", "f2"])
    assert a.hash() == a.hash()
    assert len(a.hash()) == 64
    assert a == CacheFileKey("self", "make_pkg", ["f1", "f2"])
    assert a != CacheFileKey("self", "make_pkg", ["f2", "f1"])
    assert a != CacheFileKey("other", "make_pkg", ["f1", "f2"])
    assert a != CacheFileKey("self", "mock_interfaces", ["f1", "f2"])
    assert len({a, CacheFileKey("self", "make_pkg", ["f1", "f2"])}) == 1


def test_fingerprint_tracks_content_not_location(tmp_path):
    from shadowgo.cache.fingerprint import fingerprint_path

    a = tmp_path / "a"
    a.mkdir()
    (a / "x.go").write_text("package x\n", encoding="utf-8")
    (a / ".git").mkdir()
    (a / ".git" / "HEAD").write_text("ref\n", encoding="utf-8")
    before = fingerprint_path(a)

    (a / ".git" / "HEAD").write_text("other\n", encoding="utf-8")
    assert fingerprint_path(a) == before

    b = tmp_path / "b"
    a.rename(b)
    assert fingerprint_path(b) == before

    (b / "x.go").write_text("package y\n", encoding="utf-8")
    assert fingerprint_path(b) != before

    with pytest.raises(FileNotFoundError):
        fingerprint_path(tmp_path / "missing")


def test_new_key_follows_input_content(tmp_path):
    cache = _cache(tmp_path)
    src = tmp_path / "add.go"
    src.write_text("package demo\n", encoding="utf-8")

    k1 = cache.new_cache_file_key("make_pkg", str(src))
    assert k1 == cache.new_cache_file_key("make_pkg", str(src))

    src.write_text("package demo\n\nfunc Add() {}\n", encoding="utf-8")
    assert cache.new_cache_file_key("make_pkg", str(src)) != k1


def test_directory_inputs_are_not_memoized(tmp_path):
    cache = _cache(tmp_path)
    pkg = tmp_path / "demo"
    pkg.mkdir()
    (pkg / "add.go").write_text("package demo\n", encoding="utf-8")

    k1 = cache.new_cache_file_key("make_pkg", str(pkg))
    (pkg / "sub.go").write_text("package demo\n", encoding="utf-8")
    assert cache.new_cache_file_key("make_pkg", str(pkg)) != k1


def test_import_paths_are_resolved(tmp_path, resolver):
    pkg = tmp_path / "dep"
    pkg.mkdir()
    (pkg / "dep.go").write_text("package dep\n", encoding="utf-8")
    resolver.dirs["example.com/dep"] = pkg

    cache = _cache(tmp_path, resolver)
    assert cache.new_cache_file_key("op", "example.com/dep") == cache.new_cache_file_key("op", str(pkg))


def test_missing_input_is_wrapped(tmp_path, resolver):
    from shadowgo.errors import ContextError, ResolutionError

    with pytest.raises(ContextError) as ei:
        _cache(tmp_path).new_cache_file_key("op", str(tmp_path / "nope"))
    assert ei.value.context() == f"lookup_details({tmp_path / 'nope'})"

    with pytest.raises(ContextError) as ei:
        _cache(tmp_path, resolver).new_cache_file_key("op", "example.com/unknown")
    assert isinstance(ei.value.root, ResolutionError)


def test_store_lookup_restore(tmp_path):
    from shadowgo.cache.keys import CacheFileKey

    cache = _cache(tmp_path)
    key = CacheFileKey("test", "make_pkg", ["abc"])
    assert cache.lookup(key) is None

    out = tmp_path / "out"
    (out / "demo").mkdir(parents=True)
    (out / "demo" / "demo_mock.go").write_text("package demo\n", encoding="utf-8")

    entry = cache.store(key, out)
    assert entry == cache.root / key.hash()[:2] / key.hash()
    assert cache.lookup(key) == entry
    assert not entry.with_name(entry.name + ".tmp").exists()

    dst = tmp_path / "dst"
    assert cache.restore(key, dst)
    assert (dst / "demo" / "demo_mock.go").read_text(encoding="utf-8") == "package demo\n"
    assert not cache.restore(CacheFileKey("test", "make_pkg", ["other"]), tmp_path / "dst2")
    assert not (tmp_path / "dst2").exists()


def test_store_refuses_to_overwrite(tmp_path):
    from shadowgo.cache.keys import CacheFileKey

    cache = _cache(tmp_path)
    key = CacheFileKey("test", "op", [])
    src = tmp_path / "src"
    src.mkdir()
    cache.store(key, src)
    with pytest.raises(FileExistsError):
        cache.store(key, src)


def test_store_replaces_stale_tmp_dir(tmp_path):
    from shadowgo.cache.keys import CacheFileKey

    cache = _cache(tmp_path)
    key = CacheFileKey("test", "op", [])
    entry = cache.path_for(key)
    stale = entry.with_name(entry.name + ".tmp")
    stale.mkdir(parents=True)
    (stale / "junk").write_text("x", encoding="utf-8")

    src = tmp_path / "src"
    src.mkdir()
    (src / "a.go").write_text("package a\n", encoding="utf-8")
    cache.store(key, src)
    assert sorted(p.name for p in entry.iterdir()) == ["a.go"]


def test_default_root_follows_environment(tmp_path, monkeypatch):
    from shadowgo.cache.store import Cache

    monkeypatch.setenv("SHADOWGO_CACHE_DIR", str(tmp_path / "env-cache"))
    assert Cache(self_id="x").root == tmp_path / "env-cache"


def test_default_scope_is_package_fingerprint():
    from shadowgo.cache.store import Cache, package_fingerprint

    assert Cache().self_id == package_fingerprint()


def test_entry_lock_times_out(tmp_path):
    from shadowgo.cache.lock import entry_lock
    from shadowgo.errors import ShadowGoError

    lock = tmp_path / "x.lock"
    with entry_lock(lock):
        with pytest.raises(ShadowGoError, match="timed out"):
            with entry_lock(lock, timeout_s=0.2, poll_s=0.05):
                pass
    with entry_lock(lock, timeout_s=0.2):
        pass
