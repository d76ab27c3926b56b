"""Shared fixtures and fragment-parsing helpers."""

import base64
import io
from html.parser import HTMLParser
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from docima.config import ENV_VARS, DocimaSettings
from docima.utils import logging_config

DATA_URI_PREFIX = "data:image/png;base64,"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Tests never see DOCIMA_* variables from the calling shell."""
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)
    yield
    logging_config.reset_logging()


@pytest.fixture()
def project(tmp_path) -> Path:
    """A synthetic project root (holds a pyproject.toml marker)."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "pyproject.toml").write_text("[project]\nname = 'demo'\n")
    return root


@pytest.fixture()
def settings() -> DocimaSettings:
    return DocimaSettings()


class FragmentParser(HTMLParser):
    """Collects start tags (with attributes) and end tags in document order."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.start_tags = []
        self.end_tags = []

    def handle_starttag(self, tag, attrs):
        self.start_tags.append((tag, dict(attrs)))

    def handle_startendtag(self, tag, attrs):
        self.start_tags.append((tag, dict(attrs)))

    def handle_endtag(self, tag):
        self.end_tags.append(tag)


def parse_fragment(text: str) -> FragmentParser:
    parser = FragmentParser()
    parser.feed(text)
    parser.close()
    return parser


def img_attributes(text: str) -> dict:
    """Attributes of the single <img> tag in a fragment."""
    imgs = [attrs for tag, attrs in parse_fragment(text).start_tags if tag == "img"]
    assert len(imgs) == 1
    return imgs[0]


def decode_image(text: str) -> np.ndarray:
    """Decode the embedded PNG of a fragment into a (H, W, 3) array."""
    src = img_attributes(text)["src"]
    assert src.startswith(DATA_URI_PREFIX)
    png = base64.b64decode(src[len(DATA_URI_PREFIX):])
    with Image.open(io.BytesIO(png)) as img:
        assert img.format == "PNG"
        assert img.mode == "RGB"
        return np.asarray(img)
