"""Test image manifests and the command line.

Tests for docima.utils.validators, docima.manifest and docima.cli:
    - Valid manifest loads; invalid ones are rejected with the offending key
    - Fill references resolve (plain callables and factories)
    - Defaults merge into entries (entry wins per key)
    - build_manifest generates entries in order, stops at the first failure
    - CLI build / root commands and exit codes

Run:
    pytest tests/test_manifest.py -v
"""

import numpy as np
import pytest

from conftest import decode_image, img_attributes, parse_fragment
from docima import cli, fills
from docima.config import DocimaSettings
from docima.errors import CallbackError, ConfigurationError
from docima.generator import GenerationStatus
from docima.manifest import build_manifest, resolve_fill, to_image_file
from docima.utils.validators import ImageDefaults, ImageEntry, load_manifest, validate_manifest

MANIFEST = """\
schema: images.v1
defaults:
  overwrite: true
  attrs: {loading: lazy, class: doc-image}
images:
  - path: images/noise.html
    width: 8
    height: 4
    fill: docima.fills:random_pixels
    fill_args: {seed: 1234}
    attrs: {alt: noise, class: noisy}
    wrapper: a
    wrapper_attrs: {href: "https://www.python.org/", target: _blank}
  - path: images/red.html
    width: 2
    height: 2
    fill: docima.fills:solid
    fill_args: {color: [255, 0, 0]}
"""


def broken_fill(buffer, width, height):
    raise RuntimeError("broken fill")


def blue_fill(buffer, width, height):
    fills.as_image(buffer, width, height)[:] = (0, 0, 255)


@pytest.fixture()
def manifest_file(project):
    path = project / "configs" / "images.yaml"
    path.parent.mkdir()
    path.write_text(MANIFEST)
    return path


def entry(**overrides):
    data = dict(path="img.html", width=2, height=2, fill="docima.fills:solid")
    data.update(overrides)
    return ImageEntry(**data)


# ============================================================================
# SCHEMA
# ============================================================================

def test_load_manifest(manifest_file):
    manifest = load_manifest(manifest_file)
    assert manifest.schema_version == "images.v1"
    assert [e.path for e in manifest.images] == ["images/noise.html", "images/red.html"]
    assert manifest.defaults.overwrite is True
    assert manifest.images[0].fill_args == {"seed": 1234}


def test_missing_manifest(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_manifest(tmp_path / "images.yaml")


@pytest.mark.parametrize("data,key", [
    ({"schema": "images.v2", "images": []}, "images.v2"),
    ({"images": [{"path": "a.html", "width": 0, "height": 1, "fill": "m:f"}]}, "width"),
    ({"images": [{"path": "", "width": 1, "height": 1, "fill": "m:f"}]}, "path"),
    ({"images": [{"width": 1, "height": 1, "fill": "m:f"}]}, "path"),
    ({"images": [{"path": "a.html", "width": 1, "height": 1, "fill": "not a ref"}]}, "fill"),
    ({"images": [{"path": "a.html", "width": 1, "height": 1, "fill": "m:f", "colour": 1}]},
     "colour"),
])
def test_invalid_manifest(data, key):
    with pytest.raises(ConfigurationError, match=key):
        validate_manifest(data, "test.yaml")


def test_duplicate_paths_rejected():
    image = {"path": "a.html", "width": 1, "height": 1, "fill": "m:f"}
    with pytest.raises(ConfigurationError, match="Duplicate image path: a.html"):
        validate_manifest({"images": [image, dict(image)]})


def test_non_mapping_manifest():
    with pytest.raises(ConfigurationError, match="mapping"):
        validate_manifest(["a", "b"])


# ============================================================================
# FILL RESOLUTION & DEFAULTS
# ============================================================================

def test_resolve_plain_callable():
    assert resolve_fill("test_manifest:blue_fill") is blue_fill


def test_resolve_factory():
    fill = resolve_fill("docima.fills:solid", {"color": [1, 2, 3]})
    buffer = np.zeros(6, dtype=np.uint8)
    fill(buffer, 2, 1)
    assert buffer.tolist() == [1, 2, 3, 1, 2, 3]


@pytest.mark.parametrize("reference,args,match", [
    ("docima.no_such_module:f", None, "Cannot resolve"),
    ("docima.fills:no_such_function", None, "Cannot resolve"),
    ("docima.fills:solid", {"colour": [1, 2, 3]}, "Bad fill_args"),
    ("docima.fills:solid", {"color": [300, 0, 0]}, "Bad fill_args"),
    ("docima.generator:IMAGE_FORMAT", None, "not callable"),
])
def test_resolve_errors(reference, args, match):
    with pytest.raises(ConfigurationError, match=match):
        resolve_fill(reference, args)


def test_defaults_merge_into_entry(settings):
    defaults = ImageDefaults(
        overwrite=False,
        attrs={"loading": "lazy", "alt": "default"},
        wrapper="div",
        wrapper_attrs={"class": "frame"},
    )
    spec = to_image_file(entry(attrs={"alt": "mine"}), defaults, settings).build()

    assert dict(spec.attributes) == {"loading": "lazy", "alt": "mine"}
    assert spec.wrapper == "div"
    assert dict(spec.wrapper_attributes) == {"class": "frame"}
    assert spec.overwrite is False


def test_entry_overrides_defaults(settings):
    defaults = ImageDefaults(overwrite=False, wrapper="div")
    spec = to_image_file(entry(overwrite=True, wrapper=""), defaults, settings).build()
    assert spec.overwrite is True
    assert spec.wrapper == ""


def test_unset_overwrite_uses_settings():
    spec = to_image_file(entry(), None, DocimaSettings(default_overwrite=False)).build()
    assert spec.overwrite is False


# ============================================================================
# BUILD
# ============================================================================

def test_build_manifest(project, manifest_file, settings):
    statuses = build_manifest(load_manifest(manifest_file), project_root=project, settings=settings)

    assert list(statuses) == ["images/noise.html", "images/red.html"]
    assert set(statuses.values()) == {GenerationStatus.WRITTEN}

    noise = (project / "images" / "noise.html").read_text()
    parsed = parse_fragment(noise)
    assert parsed.start_tags[0] == ("a", {"href": "https://www.python.org/", "target": "_blank"})
    attrs = img_attributes(noise)
    assert attrs["alt"] == "noise"
    assert attrs["class"] == "noisy"
    assert attrs["loading"] == "lazy"

    red = decode_image((project / "images" / "red.html").read_text())
    assert red.shape == (2, 2, 3)
    assert (red == [255, 0, 0]).all()


def test_build_manifest_skips_existing(project, settings):
    (project / "img.html").write_text("keep me")
    manifest = validate_manifest({
        "images": [{"path": "img.html", "width": 1, "height": 1,
                    "fill": "docima.fills:solid", "fill_args": {}, "overwrite": False}],
    })
    statuses = build_manifest(manifest, project_root=project, settings=settings)
    assert statuses == {"img.html": GenerationStatus.SKIPPED}
    assert (project / "img.html").read_text() == "keep me"


def test_build_manifest_stops_at_first_failure(project, settings):
    manifest = validate_manifest({
        "images": [
            {"path": "first.html", "width": 1, "height": 1, "fill": "test_manifest:blue_fill"},
            {"path": "broken.html", "width": 1, "height": 1, "fill": "test_manifest:broken_fill"},
            {"path": "never.html", "width": 1, "height": 1, "fill": "test_manifest:blue_fill"},
        ],
    })
    with pytest.raises(CallbackError, match="broken fill"):
        build_manifest(manifest, project_root=project, settings=settings)

    assert (project / "first.html").exists()
    assert not (project / "broken.html").exists()
    assert not (project / "never.html").exists()


def test_build_manifest_discovers_root(project, manifest_file, settings, monkeypatch):
    monkeypatch.chdir(manifest_file.parent)
    build_manifest(load_manifest(manifest_file), settings=settings)
    assert (project / "images" / "red.html").exists()


# ============================================================================
# CLI
# ============================================================================

def test_cli_build(project, manifest_file, capsys):
    code = cli.main(["build", str(manifest_file), "--root", str(project)])

    out = capsys.readouterr().out
    assert code == 0
    assert "written   images/noise.html" in out
    assert "written   images/red.html" in out
    assert (project / "images" / "red.html").exists()


def test_cli_no_overwrite(project, manifest_file, capsys):
    (project / "images").mkdir()
    (project / "images" / "red.html").write_text("old")

    code = cli.main(["build", str(manifest_file), "--root", str(project), "--no-overwrite"])

    assert code == 0
    assert "skipped   images/red.html" in capsys.readouterr().out
    assert (project / "images" / "red.html").read_text() == "old"


def test_cli_build_when_doc(project, manifest_file, capsys, monkeypatch):
    monkeypatch.setenv("DOCIMA_BUILD_WHEN_DOC", "1")

    assert cli.main(["build", str(manifest_file), "--root", str(project)]) == 0
    assert "disabled" in capsys.readouterr().out
    assert not (project / "images").exists()

    assert cli.main(["build", str(manifest_file), "--root", str(project), "--doc"]) == 0
    assert (project / "images" / "noise.html").exists()


def test_cli_invalid_manifest(tmp_path, capsys):
    path = tmp_path / "images.yaml"
    path.write_text("schema: images.v9\n")
    assert cli.main(["build", str(path), "--root", str(tmp_path)]) == 1
    assert "images.v9" in capsys.readouterr().err


def test_cli_rejected_fill_args(project, capsys):
    path = project / "images.yaml"
    path.write_text(
        "schema: images.v1\n"
        "images:\n"
        "  - path: images/red.html\n"
        "    width: 2\n"
        "    height: 2\n"
        "    fill: docima.fills:solid\n"
        "    fill_args: {color: [300, 0, 0]}\n"
    )

    assert cli.main(["build", str(path), "--root", str(project)]) == 1
    assert "Bad fill_args" in capsys.readouterr().err
    assert not (project / "images").exists()


def test_cli_invalid_settings(tmp_path, capsys):
    path = tmp_path / "docima.yaml"
    path.write_text("log_level: loud\n")
    assert cli.main(["--settings", str(path), "root"]) == 1
    assert "Error loading settings" in capsys.readouterr().err


def test_cli_root(project, monkeypatch, capsys):
    (project / "docs").mkdir()
    monkeypatch.chdir(project / "docs")
    assert cli.main(["root"]) == 0
    assert capsys.readouterr().out.strip() == str(project)
