"""
Tests for PKGBUILD rendering and writing.
"""

import os
import stat
from dataclasses import replace

import pytest

from cargo_arch.manifest_parser import RawManifest
from cargo_arch.renderer import (
    RECIPE_FIELDS,
    RenderError,
    field_lines,
    format_field,
    render_pkgbuild,
    write_pkgbuild,
)
from cargo_arch.resolver import resolve_config

BOILERPLATE = """\
build() {
    return 0
}

package() {
    cd "$srcdir"
    cargo install --root="$pkgdir/usr" --git="$url"
    rm -f "$pkgdir/usr/.crates.toml" "$pkgdir/usr/.crates2.json"
}
"""

FIELD_ORDER = [
    "pkgname", "pkgver", "pkgrel", "epoch", "pkgdesc", "url", "license", "install",
    "changelog", "source", "validpgpkeys", "noextract", "md5sums", "sha1sums",
    "sha256sums", "sha384sums", "sha512sums", "groups", "arch", "backup", "depends",
    "makedepends", "checkdepends", "optdepends", "conflicts", "provides", "replaces",
    "options",
]


def demo_config():
    return resolve_config(
        RawManifest(
            name="demo",
            version="0.1.0",
            authors=("A <a@x.com>",),
            description="d",
            license="MIT",
        )
    )


def test_format_field_rows():
    assert format_field("plain", "demo") == "demo"
    assert format_field("version", "1.2.0-beta") == "1.2.0_beta"
    assert format_field("version", "1-2-3") == "1_2_3"
    assert format_field("quoted", "d") == '"d"'
    assert format_field("quoted", "") == '""'
    assert format_field("array", ()) == "()"
    assert format_field("array", ("MIT",)) == '("MIT")'
    assert format_field("array", ("MIT", "Apache-2.0")) == '("MIT", "Apache-2.0")'


def test_format_field_does_not_escape():
    assert format_field("quoted", 'say "hi"') == '"say "hi""'
    assert format_field("array", ('a"b',)) == '("a"b")'


def test_format_field_unknown_kind():
    with pytest.raises(RenderError):
        format_field("bogus", "x")


def test_field_order_is_fixed():
    assert [name for name, _kind in RECIPE_FIELDS] == FIELD_ORDER
    config = replace(demo_config(), depends=("x",), pkgrel="9", url="https://a")
    keys = [line.split("=", 1)[0] for line in field_lines(config)]
    assert keys == FIELD_ORDER


def test_version_sanitized_in_output():
    config = replace(demo_config(), pkgver="1.2.0-beta")
    assert "\npkgver=1.2.0_beta\n" in render_pkgbuild(config)


def test_end_to_end_demo():
    expected = (
        "# Maintainer: A <a@x.com>\n"
        "\n"
        "pkgname=demo\n"
        "pkgver=0.1.0\n"
        "pkgrel=1\n"
        "epoch=0\n"
        'pkgdesc="d"\n'
        'url=""\n'
        'license=("MIT")\n'
        'install=""\n'
        'changelog=""\n'
        "source=()\n"
        "validpgpkeys=()\n"
        "noextract=()\n"
        "md5sums=()\n"
        "sha1sums=()\n"
        "sha256sums=()\n"
        "sha384sums=()\n"
        "sha512sums=()\n"
        "groups=()\n"
        "arch=()\n"
        "backup=()\n"
        "depends=()\n"
        "makedepends=()\n"
        "checkdepends=()\n"
        "optdepends=()\n"
        "conflicts=()\n"
        "provides=()\n"
        "replaces=()\n"
        "options=()\n"
        "\n"
    ) + BOILERPLATE
    assert render_pkgbuild(demo_config()) == expected


def test_multiple_and_zero_maintainers():
    config = replace(demo_config(), maintainers=("A", "B"))
    assert render_pkgbuild(config).startswith("# Maintainer: A\n# Maintainer: B\n\npkgname=demo\n")

    config = replace(demo_config(), maintainers=())
    assert render_pkgbuild(config).startswith("\npkgname=demo\n")


def test_boilerplate_appended_verbatim():
    text = render_pkgbuild(demo_config())
    assert text.endswith("options=()\n\n" + BOILERPLATE)


def test_rendering_is_idempotent():
    config = demo_config()
    assert render_pkgbuild(config) == render_pkgbuild(config)


def test_template_markers_in_values_are_not_interpreted():
    config = replace(demo_config(), pkgdesc="{{ pkgname }} {% raw %}")
    assert 'pkgdesc="{{ pkgname }} {% raw %}"\n' in render_pkgbuild(config)


def test_write_pkgbuild_replaces_existing(tmp_path):
    target = tmp_path / "PKGBUILD"
    target.write_text("old contents", encoding="utf-8")

    written = write_pkgbuild("new contents\n", target)

    assert written == target
    assert target.read_text(encoding="utf-8") == "new contents\n"
    assert os.listdir(tmp_path) == ["PKGBUILD"]


def test_write_pkgbuild_unwritable_destination(tmp_path):
    with pytest.raises(RenderError, match="Could not write"):
        write_pkgbuild("x", tmp_path / "missing-dir" / "PKGBUILD")
    assert not (tmp_path / "missing-dir").exists()


def test_write_pkgbuild_removes_temp_file_when_replace_fails(tmp_path):
    target = tmp_path / "PKGBUILD"
    target.mkdir()

    with pytest.raises(RenderError, match="Could not write"):
        write_pkgbuild("x", target)

    assert os.listdir(tmp_path) == ["PKGBUILD"]
    assert target.is_dir()


def test_write_pkgbuild_keeps_existing_mode(tmp_path):
    target = tmp_path / "PKGBUILD"
    target.write_text("old", encoding="utf-8")
    target.chmod(0o600)

    write_pkgbuild("new\n", target)

    assert stat.S_IMODE(target.stat().st_mode) == 0o600


def test_write_pkgbuild_new_file_follows_umask(tmp_path):
    old_umask = os.umask(0o027)
    try:
        target = write_pkgbuild("new\n", tmp_path / "PKGBUILD")
    finally:
        os.umask(old_umask)

    assert stat.S_IMODE(target.stat().st_mode) == 0o640
