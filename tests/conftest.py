import pytest


@pytest.fixture
def resolver():
    from gofixtures import FakeResolver

    return FakeResolver(
        names={
            "fmt": "fmt",
            "io": "io",
            "context": "context",
            "example.com/dep": "dep",
        }
    )


@pytest.fixture(autouse=True)
def _isolated_cache_dir(monkeypatch, tmp_path):
    # Never touch the user's real cache from tests.
    monkeypatch.setenv("SHADOWGO_CACHE_DIR", str(tmp_path / "shadowgo-cache"))
