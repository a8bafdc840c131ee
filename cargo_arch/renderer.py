"""
renderer.py

Responsibility: Deterministically render an `ArchConfig` into PKGBUILD text,
and persist that text atomically.

Rules:
- Maintainer comments first, then one blank line.
- One `key=value` line per field in the fixed `RECIPE_FIELDS` order.
- Then one blank line and the bundled boilerplate, verbatim.
- Values are never escaped: quotes or newlines inside them pass through as-is.

This module intentionally does NOT know about manifests or the CLI.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from cargo_arch.resolver import ArchConfig

logger = logging.getLogger(__name__)

PKGBUILD_FILENAME = "PKGBUILD"
LAYOUT_TEMPLATE = "PKGBUILD.j2"
BOILERPLATE_TEMPLATE = "PKGBUILD-TEMPLATE"

# Output order is part of the PKGBUILD format contract; do not reorder.
RECIPE_FIELDS: tuple[tuple[str, str], ...] = (
    ("pkgname", "plain"),
    ("pkgver", "version"),
    ("pkgrel", "plain"),
    ("epoch", "plain"),
    ("pkgdesc", "quoted"),
    ("url", "quoted"),
    ("license", "array"),
    ("install", "quoted"),
    ("changelog", "quoted"),
    ("source", "array"),
    ("validpgpkeys", "array"),
    ("noextract", "array"),
    ("md5sums", "array"),
    ("sha1sums", "array"),
    ("sha256sums", "array"),
    ("sha384sums", "array"),
    ("sha512sums", "array"),
    ("groups", "array"),
    ("arch", "array"),
    ("backup", "array"),
    ("depends", "array"),
    ("makedepends", "array"),
    ("checkdepends", "array"),
    ("optdepends", "array"),
    ("conflicts", "array"),
    ("provides", "array"),
    ("replaces", "array"),
    ("options", "array"),
)


class RenderError(RuntimeError):
    pass


def quote_array(values: tuple[str, ...] | list[str]) -> str:
    return ", ".join(f'"{v}"' for v in values)


def format_field(kind: str, value: str | tuple[str, ...]) -> str:
    """
    Format the right-hand side of a `key=` line.

    - plain:   value as-is
    - version: `-` rewritten to `_` (makepkg rejects hyphens in pkgver)
    - quoted:  value wrapped in double quotes
    - array:   ("a", "b"), or () when empty
    """
    if kind == "plain":
        return str(value)
    if kind == "version":
        return str(value).replace("-", "_")
    if kind == "quoted":
        return f'"{value}"'
    if kind == "array":
        return f"({quote_array(value)})"
    raise RenderError(f"Unknown field kind: {kind}")


def field_lines(config: ArchConfig) -> list[str]:
    return [f"{name}={format_field(kind, getattr(config, name))}" for name, kind in RECIPE_FIELDS]


def _environment() -> Environment:
    return Environment(
        loader=PackageLoader("cargo_arch", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        trim_blocks=True,
        keep_trailing_newline=False,
    )


def render_pkgbuild(config: ArchConfig) -> str:
    """Render the full PKGBUILD text for `config` in memory."""
    env = _environment()
    try:
        # Loaded as raw source so the boilerplate never goes through Jinja2.
        boilerplate, _filename, _uptodate = env.loader.get_source(env, BOILERPLATE_TEMPLATE)
        template = env.get_template(LAYOUT_TEMPLATE)
        return template.render(
            maintainers=config.maintainers,
            field_lines=field_lines(config),
            boilerplate=boilerplate,
        )
    except TemplateError as e:
        raise RenderError(f"Failed rendering {LAYOUT_TEMPLATE}: {e}") from e


def _target_mode(dst: Path) -> int:
    """Mode of the existing target, or what a new file gets under the current umask."""
    if dst.is_file():
        return stat.S_IMODE(dst.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_pkgbuild(text: str, destination: str | Path = PKGBUILD_FILENAME) -> Path:
    """
    Write `text` to `destination`, replacing any existing file.

    The text goes to a temporary file in the same directory first and is then
    moved over the target with `os.replace`, so readers never see a partial file.
    """
    dst = Path(destination)
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="\n",
            dir=dst.parent,
            prefix=f".{dst.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(text)
        # NamedTemporaryFile creates 0600; give it the mode the target would have.
        os.chmod(tmp_name, _target_mode(dst))
        os.replace(tmp_name, dst)
    except OSError as e:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise RenderError(f"Could not write {dst}: {e.strerror or e}") from e

    logger.info("Wrote %s", dst)
    return dst
