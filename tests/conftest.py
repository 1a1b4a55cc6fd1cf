"""Shared fixtures for envinject tests."""

import os

import pytest

from envinject.utils.console import set_verbosity, NORMAL


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the host environment from leaking into substitution sets."""
    for key in list(os.environ):
        if key.startswith(("MY_APP_", "ENVINJECT_")):
            monkeypatch.delenv(key)
    yield
    set_verbosity(NORMAL)


@pytest.fixture
def make_tree(tmp_path):
    """Create files under a fresh asset root from a {relative_path: content} mapping."""
    root = tmp_path / "html"
    root.mkdir()

    def _make(files):
        for rel_path, content in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def app_env():
    return {
        "MY_APP_TITLE": "Dockerization",
        "MY_APP_ENVIRONMENT": "QA",
        "PATH": "/usr/bin",
        "HOME": "/root",
    }
