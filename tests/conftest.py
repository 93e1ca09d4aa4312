import os
from pathlib import Path

import pytest


def make_executable(directory: Path, name: str) -> Path:
    p = directory / name
    p.write_text("#!/bin/sh\nexit 0\n")
    p.chmod(0o755)
    return p


@pytest.fixture
def bin_dir(tmp_path):
    d = tmp_path / "bin"
    d.mkdir()
    return d


@pytest.fixture
def only_path(bin_dir, monkeypatch):
    """PATH containing nothing but bin_dir."""
    monkeypatch.setenv("PATH", str(bin_dir))
    return bin_dir


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    monkeypatch.delenv("SCTOOL_CONFIG", raising=False)
    monkeypatch.setenv("SCTOOL_LOG_FILE", os.fspath(tmp_path / "logs" / "sctool.log"))
