"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

DEMO_MANIFEST = """\
[package]
name = "demo"
version = "0.1.0"
authors = ["A <a@x.com>"]
description = "d"
license = "MIT"
"""


@pytest.fixture
def demo_manifest_text() -> str:
    return DEMO_MANIFEST


@pytest.fixture
def write_manifest(tmp_path: Path):
    """Factory writing Cargo.toml text into a fresh directory under tmp_path."""

    def _factory(text: str, *, subdir: str = "crate") -> Path:
        crate_dir = tmp_path / subdir
        crate_dir.mkdir(parents=True, exist_ok=True)
        path = crate_dir / "Cargo.toml"
        path.write_text(text, encoding="utf-8")
        return path

    return _factory
