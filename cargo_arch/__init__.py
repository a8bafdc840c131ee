"""
cargo_arch package

Generates an Arch Linux PKGBUILD from a Cargo manifest.

Key responsibilities are split across modules:
- `manifest_parser.py`: locate and decode Cargo.toml into a typed manifest
- `resolver.py`: merge `[package.metadata.arch]` overrides with manifest fallbacks
- `renderer.py`: deterministic PKGBUILD rendering and atomic writing
- `cli.py`: CLI entrypoint and orchestration (parse -> resolve -> render -> write)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
