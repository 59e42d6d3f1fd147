"""Test configuration and fixtures."""

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from promise_rejection_fixer.config.runtime_config import RuntimeConfig
from promise_rejection_fixer.core.fixer import PromiseFixer

SAMPLE_SOURCE = """\
fetchUser(id)
  .then(function (user) {
    return render(user);
  });
load().then(show, fail);
save().then(function (r) { done(r); }, function (e) { report(e); });
"""


@pytest.fixture(autouse=True)
def clean_prf_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Remove PRF_* variables so tests never pick up the caller's environment."""
    for key in list(os.environ):
        if key.startswith("PRF_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """
    Provide a temporary workspace directory for tests.

    Returns:
        Path: Path to the temporary directory provided for the test.
    """
    return tmp_path


@pytest.fixture
def sample_js_file(temp_workspace: Path) -> Path:
    """
    Create ``app.js`` holding two unhandled chains and one second-callback chain.

    Returns:
        Path: Path to the created file.
    """
    js_file = temp_workspace / "app.js"
    js_file.write_text(SAMPLE_SOURCE, encoding="utf-8")
    return js_file


@pytest.fixture
def fixer(temp_workspace: Path) -> PromiseFixer:
    """
    Create a PromiseFixer with default configuration rooted at the temp workspace.

    Returns:
        PromiseFixer: Fixer instance for testing.
    """
    return PromiseFixer(RuntimeConfig.from_defaults(), workspace_root=temp_workspace)


@pytest.fixture
def sample_source() -> str:
    """Return the text written to ``app.js`` by ``sample_js_file``."""
    return SAMPLE_SOURCE
