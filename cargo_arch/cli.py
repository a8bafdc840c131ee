"""
cli.py

Responsibility: CLI entrypoint for cargo-arch.

High-level flow:
1) Locate and decode Cargo.toml -> `RawManifest`
2) Resolve overrides/fallbacks -> `ArchConfig`
3) Render PKGBUILD text in memory
4) Write it atomically to ./PKGBUILD

This module should orchestrate behavior but keep concerns isolated:
- Manifest decoding: `manifest_parser.py`
- Field resolution: `resolver.py`
- Rendering / writing: `renderer.py`
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from cargo_arch import __version__
from cargo_arch.manifest_parser import ManifestError, load_manifest
from cargo_arch.renderer import PKGBUILD_FILENAME, RenderError, render_pkgbuild, write_pkgbuild
from cargo_arch.resolver import resolve

logger = logging.getLogger(__name__)

# Cargo runs external subcommands as `cargo-arch arch <args>`.
CARGO_SUBCOMMAND = "arch"


class CLIError(RuntimeError):
    pass


def generate_cmd(args: argparse.Namespace) -> int:
    manifest = load_manifest(args.manifest_path)
    resolved = resolve(manifest)

    overridden = sorted(name for name, kind in resolved.sources.items() if kind == "override")
    if overridden:
        logger.debug("Overridden by [package.metadata.arch]: %s", ", ".join(overridden))

    text = render_pkgbuild(resolved.config)

    output = Path(args.output)
    if output.is_dir():
        raise CLIError(f"Output path is a directory: {output}")
    write_pkgbuild(text, output)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="cargo-arch", description="Generate an Arch Linux PKGBUILD from Cargo.toml")
    p.add_argument(
        "--manifest-path",
        default=None,
        help="Path to Cargo.toml or its directory (default: $CARGO_MANIFEST_DIR or the current directory)",
    )
    p.add_argument("--output", default=PKGBUILD_FILENAME, help=f"File to write (default: {PKGBUILD_FILENAME})")
    p.add_argument("-v", "--verbose", action="store_true", help="Log field resolution details")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.set_defaults(func=generate_cmd)
    return p


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    if argv is None:
        argv = sys.argv[1:]
    if argv and argv[0] == CARGO_SUBCOMMAND:
        argv = argv[1:]
    args = parser.parse_args(argv)
    _configure_logging(bool(args.verbose))

    try:
        return int(args.func(args))
    except ManifestError as e:
        logger.error("manifest: %s", e)
    except RenderError as e:
        logger.error("render: %s", e)
    except CLIError as e:
        logger.error("%s", e)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
