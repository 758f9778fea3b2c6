"""
Digital signature analysis.

Reads an image's textual metadata, classifies it against the signature
taxonomy and maps the category to a fixed verdict:

    provenance-marker        10  reliable
    ai-watermark              0  not reliable
    verification-seal        10  reliable
    generic-camera-software   8  reliable
    edition-software          5  undetermined
    generative-ai-software    0  not reliable
    unknown                   5  undetermined

An embedded C2PA manifest is provenance regardless of any text pattern.
"""
import logging
import os
from typing import Any, Callable, Dict, Optional, Union

from .base import BaseAnalyzer, require_file
from .crypto import CryptoUtils
from .metadata import MetadataRecord, extract_metadata
from .signatures import VERDICTS, SignatureTaxonomy, classify, get_taxonomy
from .types import AnalysisResult, SignatureCategory

logger = logging.getLogger(__name__)

MetadataReader = Callable[[str], Dict[str, str]]


class SignatureAnalyzer(BaseAnalyzer):
    """Classifies embedded metadata signatures."""

    ANALYZER_ID = "DIGITAL_SIGNATURE"
    ANALYZER_NAME = "signatures"
    VERSION = "1.0.0"
    DESCRIPTION = (
        "Detects provenance markers, AI watermarks, verification seals and "
        "software signatures in image metadata."
    )

    def __init__(
        self,
        taxonomy: Optional[SignatureTaxonomy] = None,
        taxonomy_path: Optional[Union[str, os.PathLike]] = None,
        metadata_reader: MetadataReader = extract_metadata,
    ):
        """Initialize SignatureAnalyzer.

        Args:
            taxonomy: Pre-built taxonomy. When omitted the process-wide
                taxonomy for ``taxonomy_path`` (or the default path) is used.
            taxonomy_path: JSON taxonomy to load if ``taxonomy`` is None.
            metadata_reader: Callable returning the flat metadata map.
        """
        self._taxonomy = taxonomy
        self._taxonomy_path = taxonomy_path
        self._read_metadata = metadata_reader

    @property
    def taxonomy(self) -> SignatureTaxonomy:
        if self._taxonomy is None:
            self._taxonomy = get_taxonomy(self._taxonomy_path)
        return self._taxonomy

    def analyze(self, target: Union[str, os.PathLike], correlation_id: str = "N/A",
                image_id: str = "N/A") -> AnalysisResult:
        """Analyze the metadata signature of an image file.

        Returns:
            AnalysisResult with the category verdict score, or ``score=None``
            if the file is missing or extraction fails unexpectedly.
        """
        return self._execute(self._run, target, correlation_id, image_id)

    def _run(self, path: Any, result: AnalysisResult) -> None:
        path = require_file(path)
        result.logs.append("File validated for signature analysis.")

        taxonomy = self.taxonomy
        if not taxonomy.loaded:
            result.logs.append("Signature patterns unavailable; classification limited.")

        record = MetadataRecord.from_mapping(self._read_metadata(path))
        result.logs.append(f"Metadata extracted: {len(record.raw)} fields.")

        if record.content_credentials:
            category = SignatureCategory.PROVENANCE
        else:
            category = classify(record.identity_blob(), taxonomy, record.full_blob())
        verdict = VERDICTS[category]
        logger.debug(f"[{self.ANALYZER_ID}] {path}: category={category.value}")

        result.score = verdict.score
        result.details = {
            "has_signature": category is not SignatureCategory.UNKNOWN,
            "signature_type": category.value,
            "reliable": verdict.reliable,
            "message": verdict.message,
        }
        result.metadata = {
            "software": record.software,
            "make": record.make,
            "model": record.model,
            "copyright": record.copyright,
            "artist": record.artist,
            "document_name": record.document_name,
            "seal_detected": category is SignatureCategory.VERIFICATION_SEAL,
            "creator_tool": record.creator_tool,
            "history_software_agent": record.history_software_agent,
            "content_credentials": record.content_credentials,
            "taxonomy_loaded": taxonomy.loaded,
            "sha256": CryptoUtils.hash_file(path),
        }
        result.logs.append(f"Signature type: {category.value}. Score: {verdict.score}.")
