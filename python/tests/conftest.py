"""Shared pytest fixtures for Autentica tests."""

import struct

import numpy as np
import pytest
from PIL import Image, PngImagePlugin

from autentica.config import MODELS_DIR_ENV, TAXONOMY_ENV
from autentica.inference import clear_adapters
from autentica.signatures import SignatureTaxonomy, clear_taxonomies
from autentica.vectors import clear_analyzers

# EXIF tag ids
SOFTWARE = 0x0131
MAKE = 0x010F
MODEL = 0x0110
ARTIST = 0x013B
COPYRIGHT = 0x8298


@pytest.fixture(autouse=True)
def isolated_resources(tmp_path, monkeypatch):
    """Empty models dir, default taxonomy and fresh process-wide caches."""
    monkeypatch.setenv(MODELS_DIR_ENV, str(tmp_path / "models"))
    monkeypatch.delenv(TAXONOMY_ENV, raising=False)
    clear_adapters()
    clear_taxonomies()
    clear_analyzers()
    yield
    clear_adapters()
    clear_taxonomies()
    clear_analyzers()


# ---------------------------------------------------------------------------
# Image builders
# ---------------------------------------------------------------------------


def write_image(path, arr, fmt="PNG", exif=None, pnginfo=None, **kwargs):
    """Save a numpy array as an image file and return its path as str."""
    img = Image.fromarray(np.asarray(arr, dtype=np.uint8))
    save_kwargs = dict(kwargs)
    if exif:
        tags = Image.Exif()
        for tag, value in exif.items():
            tags[tag] = value
        save_kwargs["exif"] = tags
    if pnginfo:
        info = PngImagePlugin.PngInfo()
        for key, value in pnginfo.items():
            info.add_text(key, value)
        save_kwargs["pnginfo"] = info
    img.save(path, format=fmt, **save_kwargs)
    return str(path)


def c2pa_jumbf():
    """Minimal C2PA manifest store: a jumb superbox holding its jumd description box."""
    jumd = b"jumd" + bytes.fromhex("6332706100110010800000aa00389b71") + b"\x03" + b"c2pa\x00"
    jumd = struct.pack(">I", len(jumd) + 4) + jumd
    return struct.pack(">I", len(jumd) + 8) + b"jumb" + jumd


@pytest.fixture()
def gradient_png(tmp_path):
    """Smooth left-to-right gray ramp, 64x64."""
    row = np.linspace(0, 255, 64).astype(np.uint8)
    return write_image(tmp_path / "ramp.png", np.tile(row, (64, 1)))


@pytest.fixture()
def uniform_png(tmp_path):
    """Flat gray image, 32x32."""
    return write_image(tmp_path / "flat.png", np.full((32, 32), 128))


@pytest.fixture()
def noise_png(tmp_path):
    """Seeded uniform noise, 64x64."""
    rng = np.random.default_rng(1)
    return write_image(tmp_path / "noise.png", rng.integers(0, 256, (64, 64)))


@pytest.fixture()
def plain_jpeg(tmp_path):
    """Gradient JPEG without any metadata."""
    row = np.linspace(0, 255, 64).astype(np.uint8)
    return write_image(tmp_path / "plain.jpg", np.tile(row, (64, 1)), fmt="JPEG", quality=90)


@pytest.fixture()
def jpeg_factory(tmp_path):
    """Build a small JPEG carrying the given EXIF tags."""
    counter = {"n": 0}

    def make(exif=None, name=None):
        counter["n"] += 1
        path = tmp_path / (name or f"img{counter['n']}.jpg")
        rng = np.random.default_rng(counter["n"])
        return write_image(path, rng.integers(0, 256, (32, 32)), fmt="JPEG", exif=exif)

    return make


@pytest.fixture()
def small_taxonomy():
    """Minimal taxonomy covering every category once."""
    return SignatureTaxonomy.from_mapping({
        "provenance-marker": ["c2pa"],
        "ai-watermark": ["synthid"],
        "verification-seal": ["truepic"],
        "generic-camera-software": ["canon eos", "iphone"],
        "edition-software": ["photoshop"],
        "generative-ai-software": ["midjourney"],
    }, source="test")
