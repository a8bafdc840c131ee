"""
resolver.py

Responsibility: Merge a `RawManifest` and its `[package.metadata.arch]`
overrides into a fully-populated `ArchConfig`.

Every field resolves on its own through an ordered list of candidate sources;
the first one that is present wins:

- Override: the value set in `[package.metadata.arch]`
- Inherited: a value taken (or derived) from `[package]`
- Default: a fixed literal

This module does no I/O.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Generic, TypeVar

from cargo_arch.manifest_parser import RawManifest

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PKGREL = "1"
DEFAULT_EPOCH = "0"

ARRAY_FIELDS = (
    "source",
    "validpgpkeys",
    "noextract",
    "md5sums",
    "sha1sums",
    "sha256sums",
    "sha384sums",
    "sha512sums",
    "groups",
    "arch",
    "backup",
    "depends",
    "makedepends",
    "checkdepends",
    "optdepends",
    "conflicts",
    "provides",
    "replaces",
    "options",
)


@dataclass(frozen=True)
class FieldSource(Generic[T]):
    value: T | None

    @property
    def kind(self) -> str:
        return type(self).__name__.lower()


class Override(FieldSource[T]):
    pass


class Inherited(FieldSource[T]):
    pass


class Default(FieldSource[T]):
    pass


def first_present(*candidates: FieldSource[T]) -> FieldSource[T]:
    """Return the first candidate whose value is not None."""
    for candidate in candidates:
        if candidate.value is not None:
            return candidate
    raise ValueError("No candidate source supplied a value.")


@dataclass(frozen=True)
class ArchConfig:
    """Canonical PKGBUILD configuration; see `man PKGBUILD`."""

    maintainers: tuple[str, ...]
    pkgname: str
    pkgver: str
    pkgrel: str
    epoch: str
    pkgdesc: str
    url: str
    license: tuple[str, ...]
    install: str
    changelog: str
    source: tuple[str, ...]
    validpgpkeys: tuple[str, ...]
    noextract: tuple[str, ...]
    md5sums: tuple[str, ...]
    sha1sums: tuple[str, ...]
    sha256sums: tuple[str, ...]
    sha384sums: tuple[str, ...]
    sha512sums: tuple[str, ...]
    groups: tuple[str, ...]
    arch: tuple[str, ...]
    backup: tuple[str, ...]
    depends: tuple[str, ...]
    makedepends: tuple[str, ...]
    checkdepends: tuple[str, ...]
    optdepends: tuple[str, ...]
    conflicts: tuple[str, ...]
    provides: tuple[str, ...]
    replaces: tuple[str, ...]
    options: tuple[str, ...]


@dataclass(frozen=True)
class ResolvedConfig:
    config: ArchConfig
    # read-only view: field name -> "override" | "inherited" | "default"
    sources: MappingProxyType[str, str]


def split_license(license_expr: str) -> tuple[str, ...]:
    """Split a Cargo `a/b` license string into its trimmed alternatives."""
    return tuple(part.strip() for part in license_expr.split("/"))


def _candidates(manifest: RawManifest) -> dict[str, tuple[FieldSource, ...]]:
    meta = manifest.metadata
    table: dict[str, tuple[FieldSource, ...]] = {
        "maintainers": (Override(meta.maintainers), Inherited(manifest.authors)),
        "pkgname": (Override(meta.pkgname), Inherited(manifest.name)),
        "pkgver": (Override(meta.pkgver), Inherited(manifest.version)),
        "pkgrel": (Override(meta.pkgrel), Default(DEFAULT_PKGREL)),
        "epoch": (Override(meta.epoch), Default(DEFAULT_EPOCH)),
        "pkgdesc": (Override(meta.pkgdesc), Inherited(manifest.description)),
        "url": (
            Override(meta.url),
            Inherited(manifest.homepage),
            Inherited(manifest.repository),
            Default(""),
        ),
        "license": (Override(meta.license), Inherited(split_license(manifest.license))),
        "install": (Override(meta.install), Default("")),
        "changelog": (Override(meta.changelog), Default("")),
    }
    for name in ARRAY_FIELDS:
        table[name] = (Override(getattr(meta, name)), Default(()))
    return table


def resolve(manifest: RawManifest) -> ResolvedConfig:
    """Resolve every field and keep track of which source supplied it."""
    values: dict[str, object] = {}
    sources: dict[str, str] = {}
    for name, candidates in _candidates(manifest).items():
        chosen = first_present(*candidates)
        values[name] = chosen.value
        sources[name] = chosen.kind

    config = ArchConfig(**values)  # type: ignore[arg-type]
    for name in sorted(sources):
        logger.debug("%s <- %s", name, sources[name])
    return ResolvedConfig(config=config, sources=MappingProxyType(sources))


def resolve_config(manifest: RawManifest) -> ArchConfig:
    return resolve(manifest).config
