"""
manifest_parser.py

Responsibility: Locate, read and decode a Cargo manifest into a typed model.

- `[package]` supplies the project fields (`RawManifest`).
- `[package.metadata.arch]` supplies optional per-field overrides (`ArchMetadata`).

Decoding is strict: a missing required field or a value of the wrong TOML type
is an error. Nothing here applies fallbacks; that is the resolver's job.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "Cargo.toml"
MANIFEST_DIR_ENV = "CARGO_MANIFEST_DIR"

# Override keys that take a single string; everything else is a list of strings.
SCALAR_OVERRIDE_KEYS = frozenset(
    {"pkgname", "pkgver", "pkgrel", "epoch", "pkgdesc", "url", "install", "changelog"}
)

REQUIRED_PACKAGE_KEYS = ("name", "version", "authors", "description", "license")


class ManifestError(ValueError):
    pass


@dataclass(frozen=True)
class ArchMetadata:
    """Sparse `[package.metadata.arch]` table; `None` means "not overridden"."""

    maintainers: tuple[str, ...] | None = None
    pkgname: str | None = None
    pkgver: str | None = None
    pkgrel: str | None = None
    epoch: str | None = None
    pkgdesc: str | None = None
    url: str | None = None
    license: tuple[str, ...] | None = None
    install: str | None = None
    changelog: str | None = None
    source: tuple[str, ...] | None = None
    validpgpkeys: tuple[str, ...] | None = None
    noextract: tuple[str, ...] | None = None
    md5sums: tuple[str, ...] | None = None
    sha1sums: tuple[str, ...] | None = None
    sha256sums: tuple[str, ...] | None = None
    sha384sums: tuple[str, ...] | None = None
    sha512sums: tuple[str, ...] | None = None
    groups: tuple[str, ...] | None = None
    arch: tuple[str, ...] | None = None
    backup: tuple[str, ...] | None = None
    depends: tuple[str, ...] | None = None
    makedepends: tuple[str, ...] | None = None
    checkdepends: tuple[str, ...] | None = None
    optdepends: tuple[str, ...] | None = None
    conflicts: tuple[str, ...] | None = None
    provides: tuple[str, ...] | None = None
    replaces: tuple[str, ...] | None = None
    options: tuple[str, ...] | None = None


@dataclass(frozen=True)
class RawManifest:
    """The `[package]` table of a Cargo manifest."""

    name: str
    version: str
    authors: tuple[str, ...]
    description: str
    license: str
    homepage: str | None = None
    repository: str | None = None
    metadata: ArchMetadata = field(default_factory=ArchMetadata)


def _require_str(table: dict[str, Any], key: str, where: str) -> str:
    value = table[key]
    if not isinstance(value, str):
        raise ManifestError(f"`{where}.{key}` must be a string, got {type(value).__name__}.")
    return value


def _require_str_list(table: dict[str, Any], key: str, where: str) -> tuple[str, ...]:
    value = table[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestError(f"`{where}.{key}` must be an array of strings.")
    return tuple(value)


def _optional_str(table: dict[str, Any], key: str, where: str) -> str | None:
    if key not in table:
        return None
    return _require_str(table, key, where)


def _parse_arch_metadata(package: dict[str, Any]) -> ArchMetadata:
    metadata = package.get("metadata")
    if metadata is None:
        return ArchMetadata()
    if not isinstance(metadata, dict):
        raise ManifestError("`package.metadata` must be a table when provided.")

    arch_raw = metadata.get("arch")
    if arch_raw is None:
        return ArchMetadata()
    if not isinstance(arch_raw, dict):
        raise ManifestError("`package.metadata.arch` must be a table when provided.")

    where = "package.metadata.arch"
    values: dict[str, Any] = {}
    for f in fields(ArchMetadata):
        if f.name not in arch_raw:
            continue
        if f.name in SCALAR_OVERRIDE_KEYS:
            values[f.name] = _require_str(arch_raw, f.name, where)
        else:
            values[f.name] = _require_str_list(arch_raw, f.name, where)

    unknown = sorted(set(arch_raw) - {f.name for f in fields(ArchMetadata)})
    if unknown:
        logger.debug("Ignoring unknown keys in [%s]: %s", where, ", ".join(unknown))

    return ArchMetadata(**values)


def parse_manifest(text: str) -> RawManifest:
    """
    Decode Cargo manifest text into a `RawManifest`.

    Raises `ManifestError` when the text is not valid TOML, when `[package]`
    is missing, or when any of name/version/authors/description/license is
    absent or mistyped.
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"Could not decode manifest: {e}") from e

    package = data.get("package")
    if package is None:
        raise ManifestError("Manifest must define a `[package]` table.")
    if not isinstance(package, dict):
        raise ManifestError("`package` must be a table.")

    missing = [k for k in REQUIRED_PACKAGE_KEYS if k not in package]
    if missing:
        raise ManifestError(f"Manifest is missing required field(s): {', '.join('package.' + k for k in missing)}")

    return RawManifest(
        name=_require_str(package, "name", "package"),
        version=_require_str(package, "version", "package"),
        authors=_require_str_list(package, "authors", "package"),
        description=_require_str(package, "description", "package"),
        license=_require_str(package, "license", "package"),
        homepage=_optional_str(package, "homepage", "package"),
        repository=_optional_str(package, "repository", "package"),
        metadata=_parse_arch_metadata(package),
    )


def locate_manifest(manifest_path: str | Path | None = None) -> Path:
    """
    Return the manifest file to read.

    An explicit path wins and may name either the manifest itself or the
    directory holding it. Otherwise `$CARGO_MANIFEST_DIR/Cargo.toml`, falling
    back to `./Cargo.toml`.
    """
    if manifest_path is not None:
        path = Path(manifest_path)
        return path / MANIFEST_FILENAME if path.is_dir() else path
    return Path(os.environ.get(MANIFEST_DIR_ENV) or ".") / MANIFEST_FILENAME


def load_manifest(manifest_path: str | Path | None = None) -> RawManifest:
    path = locate_manifest(manifest_path)
    logger.debug("Reading manifest %s", path)
    try:
        with path.open("rb") as f:
            raw = f.read()
    except OSError as e:
        raise ManifestError(f"Could not read manifest {path}: {e.strerror or e}") from e

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ManifestError(f"Could not decode manifest {path}: not valid UTF-8") from e
    return parse_manifest(text)
