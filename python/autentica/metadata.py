"""
Metadata extraction for signature classification.

``extract_metadata`` flattens whatever textual metadata an image carries
into a ``{key: str}`` map:

- EXIF base IFD and Exif sub-IFD, keyed by tag name (``Software``, ``Make``...)
- XMP packet fields, keyed ``XMP:<name>``
- IPTC records, keyed ``IPTC:<name>``
- PNG text chunks, keyed ``PNG:<name>``
- ``C2PA:Manifest`` when a JUMBF box labelled c2pa is embedded

A field that is absent is simply missing from the map. Nothing here raises
for a damaged or non-image file; the caller gets whatever could be read.
"""
import logging
import os
import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Union

from PIL import Image, IptcImagePlugin
from PIL.ExifTags import TAGS

logger = logging.getLogger(__name__)

EXIF_IFD_POINTER = 0x8769

# Binary blobs and IFD pointers, not text
EXIF_SKIP = frozenset({"ExifOffset", "GPSInfo", "MakerNote", "PrintImageMatching"})

XMP_FIELDS = {
    "CreatorTool": "XMP:CreatorTool",
    "softwareAgent": "XMP:HistorySoftwareAgent",
    "rights": "XMP:Rights",
    "description": "XMP:Description",
    "creator": "XMP:Creator",
    "DigitalSourceType": "XMP:DigitalSourceType",
}

IPTC_FIELDS = {
    (2, 80): "IPTC:By-line",
    (2, 116): "IPTC:CopyrightNotice",
    (2, 120): "IPTC:Caption-Abstract",
    (2, 65): "IPTC:OriginatingProgram",
}

PNG_XMP_KEYS = ("XML:com.adobe.xmp", "xmp")

# jumb box, then its jumd description box: 4-byte length, "jumd", 16-byte
# type UUID (the C2PA one starts with "c2pa"), 1 toggle byte, label
C2PA_JUMBF = re.compile(rb"jumb.{4}jumd(?:c2pa|.{17}c2pa)", re.DOTALL)


def _to_text(value: Any) -> Optional[str]:
    """Render a metadata value as stripped text, or None if empty."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    elif isinstance(value, (list, tuple)):
        parts = [_to_text(v) for v in value]
        value = " ".join(p for p in parts if p)
    text = str(value).replace("\x00", "").strip()
    return text or None


def _read_exif(img: Image.Image, out: Dict[str, str]) -> None:
    exif = img.getexif()
    entries = dict(exif.items())
    try:
        entries.update(exif.get_ifd(EXIF_IFD_POINTER).items())
    except Exception as e:
        logger.debug(f"No Exif sub-IFD: {e}")
    for tag, value in entries.items():
        name = TAGS.get(tag)
        if not name or name in EXIF_SKIP:
            continue
        text = _to_text(value)
        if text:
            out[name] = text


def _xmp_value(packet: str, name: str) -> Optional[str]:
    """Value of an XMP property written as attribute or element."""
    attr = re.search(rf'\b[\w-]+:{name}\s*=\s*"([^"]*)"', packet)
    if attr:
        return _to_text(attr.group(1))
    elem = re.findall(rf"<[\w-]+:{name}\b[^>]*>(.*?)</[\w-]+:{name}>", packet, re.DOTALL)
    if elem:
        text = " ".join(re.sub(r"<[^>]+>", " ", e) for e in elem)
        return _to_text(re.sub(r"\s+", " ", text))
    return None


def _read_xmp(img: Image.Image, out: Dict[str, str]) -> None:
    packet = img.info.get("xmp")
    if packet is None:
        for key in PNG_XMP_KEYS:
            if key in img.info:
                packet = img.info[key]
                break
    packet = _to_text(packet)
    if not packet:
        return
    for name, key in XMP_FIELDS.items():
        value = _xmp_value(packet, name)
        if value:
            out[key] = value


def _read_iptc(img: Image.Image, out: Dict[str, str]) -> None:
    info = IptcImagePlugin.getiptcinfo(img)
    if not info:
        return
    for record, key in IPTC_FIELDS.items():
        text = _to_text(info.get(record))
        if text:
            out[key] = text


def _read_png_text(img: Image.Image, out: Dict[str, str]) -> None:
    if img.format != "PNG":
        return
    for key, value in img.info.items():
        if key in PNG_XMP_KEYS or not isinstance(value, str):
            continue
        text = _to_text(value)
        if text:
            out[f"PNG:{key}"] = text


def _has_c2pa_box(raw: bytes) -> bool:
    """JUMBF superbox whose description box carries the c2pa type or label."""
    return C2PA_JUMBF.search(raw) is not None


def extract_metadata(path: Union[str, os.PathLike]) -> Dict[str, str]:
    """Flat textual metadata of an image file (see module docstring)."""
    path = os.fspath(path)
    out: Dict[str, str] = {}

    try:
        with open(path, "rb") as f:
            raw = f.read()
        if _has_c2pa_box(raw):
            out["C2PA:Manifest"] = "c2pa manifest store (JUMBF)"
    except OSError as e:
        logger.warning(f"Cannot read {path} for provenance scan: {e}")
        return out

    try:
        with Image.open(path) as img:
            readers = (
                ("EXIF", _read_exif),
                ("XMP", _read_xmp),
                ("IPTC", _read_iptc),
                ("PNG text", _read_png_text),
            )
            for label, reader in readers:
                try:
                    reader(img, out)
                except Exception as e:
                    logger.warning(f"{label} extraction failed for {path}: {e}")
    except Exception as e:
        logger.warning(f"Cannot open {path} as an image: {e}")

    return out


@dataclass(frozen=True)
class MetadataRecord:
    """Typed view over the metadata fields used for classification."""
    software: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    artist: Optional[str] = None
    copyright: Optional[str] = None
    description: Optional[str] = None
    document_name: Optional[str] = None
    creator_tool: Optional[str] = None
    history_software_agent: Optional[str] = None
    rights: Optional[str] = None
    byline: Optional[str] = None
    copyright_notice: Optional[str] = None
    content_credentials: Optional[str] = None
    raw: Mapping[str, str] = field(default_factory=dict)

    # field -> candidate keys, first present wins
    SOURCES = {
        "software": ("Software", "IPTC:OriginatingProgram"),
        "make": ("Make",),
        "model": ("Model",),
        "artist": ("Artist", "XMP:Creator"),
        "copyright": ("Copyright",),
        "description": ("ImageDescription", "IPTC:Caption-Abstract"),
        "document_name": ("DocumentName",),
        "creator_tool": ("XMP:CreatorTool", "CreatorTool"),
        "history_software_agent": ("XMP:HistorySoftwareAgent", "HistorySoftwareAgent"),
        "rights": ("XMP:Rights", "Rights"),
        "byline": ("IPTC:By-line", "By-line"),
        "copyright_notice": ("IPTC:CopyrightNotice", "CopyrightNotice"),
        "content_credentials": ("C2PA:Manifest", "ContentCredentials", "XMP:ContentCredentials"),
    }

    @classmethod
    def from_mapping(cls, flat: Mapping[str, Any]) -> "MetadataRecord":
        values = {}
        for name, keys in cls.SOURCES.items():
            for key in keys:
                text = _to_text(flat.get(key))
                if text:
                    values[name] = text
                    break
        raw = {}
        for k, v in flat.items():
            text = _to_text(v)
            if text:
                raw[str(k)] = text
        return cls(raw=raw, **values)

    def identity_blob(self) -> str:
        """Identity fields joined into one lower-cased text blob."""
        parts = [
            getattr(self, f.name) for f in fields(self)
            if f.name not in ("raw", "content_credentials")
        ]
        return " | ".join(p for p in parts if p).lower()

    def full_blob(self) -> str:
        """Every metadata field, for provenance and watermark scans."""
        return " | ".join(v for _, v in sorted(self.raw.items())).lower()
