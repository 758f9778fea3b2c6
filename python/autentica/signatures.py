"""
Signature taxonomy and metadata text classification.

A taxonomy maps each SignatureCategory to a list of case-insensitive
regular expressions. Patterns are compiled once when the taxonomy is
built; invalid ones are logged and dropped there, so matching never sees
them. Classification walks the categories in a fixed priority order and
returns the first one with any pattern found anywhere in the text.
"""
import json
import logging
import os
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Pattern, Tuple, Union

from .config import default_taxonomy_path
from .types import SignatureCategory

logger = logging.getLogger(__name__)

PRIORITY = (
    SignatureCategory.PROVENANCE,
    SignatureCategory.AI_WATERMARK,
    SignatureCategory.VERIFICATION_SEAL,
    SignatureCategory.CAMERA,
    SignatureCategory.EDITING,
    SignatureCategory.AI_GENERATION,
)

# Categories also searched across every metadata field, not only the
# identity fields (software, author, copyright...)
WIDE_SCOPE = frozenset({SignatureCategory.PROVENANCE, SignatureCategory.AI_WATERMARK})


@dataclass(frozen=True)
class SignatureVerdict:
    score: float
    reliable: Optional[bool]
    message: str


VERDICTS = {
    SignatureCategory.PROVENANCE: SignatureVerdict(
        10.0, True,
        "Content Credentials (C2PA) provenance detected. Verify the trust chain."),
    SignatureCategory.AI_WATERMARK: SignatureVerdict(
        0.0, False, "Recent generative-AI watermark detected."),
    SignatureCategory.VERIFICATION_SEAL: SignatureVerdict(
        10.0, True, "Recognised verification seal."),
    SignatureCategory.CAMERA: SignatureVerdict(
        8.0, True, "Signature consistent with a genuine capture device."),
    SignatureCategory.EDITING: SignatureVerdict(
        5.0, None,
        "Edited with professional software. Not evidence of AI, but not reliable on its own."),
    SignatureCategory.AI_GENERATION: SignatureVerdict(
        0.0, False, "Signed by generative-AI software."),
    SignatureCategory.UNKNOWN: SignatureVerdict(
        5.0, None, "No recognisable digital signature, or patterns unavailable."),
}


@dataclass(frozen=True)
class SignatureTaxonomy:
    """Compiled, read-only pattern taxonomy."""
    patterns: Mapping[SignatureCategory, Tuple[Pattern, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    source: Optional[str] = None
    loaded: bool = False

    @classmethod
    def empty(cls, source: Optional[str] = None) -> "SignatureTaxonomy":
        return cls(MappingProxyType({}), source=source, loaded=False)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any],
                     source: Optional[str] = None) -> "SignatureTaxonomy":
        """Compile ``{category value: [pattern, ...]}`` into a taxonomy."""
        compiled: Dict[SignatureCategory, Tuple[Pattern, ...]] = {}
        for key, entries in mapping.items():
            try:
                category = SignatureCategory(key)
            except ValueError:
                logger.warning(f"Unknown signature category '{key}' skipped")
                continue
            if category is SignatureCategory.UNKNOWN:
                logger.warning("Patterns for the 'unknown' category are ignored")
                continue
            if not isinstance(entries, (list, tuple)):
                logger.warning(f"Category '{key}' is not a list of patterns, skipped")
                continue

            patterns = []
            for entry in entries:
                if not isinstance(entry, str) or not entry:
                    logger.warning(f"Invalid pattern entry {entry!r} in '{key}' skipped")
                    continue
                try:
                    patterns.append(re.compile(entry, re.IGNORECASE))
                except re.error as e:
                    logger.warning(f"Invalid pattern {entry!r} in '{key}' skipped: {e}")
            compiled[category] = tuple(patterns)

        return cls(MappingProxyType(compiled), source=source, loaded=True)

    def matches(self, category: SignatureCategory, text: Optional[str]) -> bool:
        if not text:
            return False
        return any(p.search(text) for p in self.patterns.get(category, ()))

    def counts(self) -> Dict[str, int]:
        return {c.value: len(self.patterns.get(c, ())) for c in PRIORITY}


def load_taxonomy(path: Union[str, os.PathLike]) -> SignatureTaxonomy:
    """Load a taxonomy from JSON, degrading to an empty one on any failure."""
    path = Path(path)
    if not path.exists():
        logger.warning(f"Signature taxonomy not found at {path}, using empty taxonomy")
        return SignatureTaxonomy.empty(source=str(path))
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except Exception as e:
        logger.error(f"Failed to load signature taxonomy {path}: {e}")
        return SignatureTaxonomy.empty(source=str(path))
    if not isinstance(data, dict):
        logger.error(f"Signature taxonomy {path} must be a JSON object")
        return SignatureTaxonomy.empty(source=str(path))

    taxonomy = SignatureTaxonomy.from_mapping(data, source=str(path))
    logger.info(f"Signature taxonomy loaded from {path}: {taxonomy.counts()}")
    return taxonomy


_taxonomies: Dict[str, SignatureTaxonomy] = {}
_taxonomies_lock = threading.Lock()


def get_taxonomy(path: Optional[Union[str, os.PathLike]] = None) -> SignatureTaxonomy:
    """Process-wide taxonomy for a path, loaded at most once."""
    key = str(Path(path) if path is not None else default_taxonomy_path())
    with _taxonomies_lock:
        taxonomy = _taxonomies.get(key)
        if taxonomy is None:
            taxonomy = load_taxonomy(key)
            _taxonomies[key] = taxonomy
        return taxonomy


def clear_taxonomies() -> None:
    with _taxonomies_lock:
        _taxonomies.clear()


def classify(blob: Optional[str], taxonomy: SignatureTaxonomy,
             extended_blob: Optional[str] = None) -> SignatureCategory:
    """Highest-priority category with a pattern found in the text.

    ``blob`` holds the identity fields; ``extended_blob`` (every metadata
    field) is additionally searched for provenance and AI watermarks.
    """
    for category in PRIORITY:
        if taxonomy.matches(category, blob):
            return category
        if category in WIDE_SCOPE and taxonomy.matches(category, extended_blob):
            return category
    return SignatureCategory.UNKNOWN
