"""
Definition analysis: sharpness, tonal variability and complexity.

Scores an image from 0 (likely synthetic) to 10 (likely human capture)
from three pixel statistics of its grayscale rendition:

- **Sharpness** (weight 0.50) - mean vertical gradient. Soft, blurred
  detail reads as human; crisp digital edges read as synthetic.
- **Variability** (weight 0.30) - inverse of tonal uniformity derived from
  the standard deviation of intensities.
- **Complexity** (weight 0.20) - normalised entropy, rewarded near 0.6:
  neither near-blank nor maximally random.

A statistic that cannot be computed is reported as such in ``details`` and
``metadata`` and only replaced by the neutral default inside the weighted
combination.
"""
import logging
import os
from typing import Any, Dict, Optional, Union

from .base import BaseAnalyzer, require_file
from .config import DefinitionConfig
from .crypto import CryptoUtils
from .ensemble import (
    complexity_indicator,
    interpret,
    pixel_composite,
    sharpness_indicator,
    variability_indicator,
)
from .errors import InvalidInputError
from .pixels import PixelBuffer, compute_statistics, decode_grayscale
from .types import AnalysisResult

logger = logging.getLogger(__name__)


def _rounded(value: Optional[float], digits: int) -> Optional[float]:
    return round(value, digits) if value is not None else None


class DefinitionAnalyzer(BaseAnalyzer):
    """Pixel-statistics analyzer with a 0-10 humanness score."""

    ANALYZER_ID = "DEFINITION_IMAGE"
    ANALYZER_NAME = "definition"
    VERSION = "1.0.0"
    DESCRIPTION = (
        "Analyzes sharpness, tonal variability and complexity. "
        "Score 0 (synthetic) to 10 (human)."
    )

    def __init__(self, config: Optional[DefinitionConfig] = None, max_workers: int = 1):
        """Initialize DefinitionAnalyzer.

        Args:
            config: Thresholds and weights; defaults to the tuned values.
            max_workers: Threads used for the row-striped gradient sum.
                1 (default) runs sequentially.
        """
        self.config = config or DefinitionConfig()
        self._max_workers = max(1, max_workers)

    def analyze(self, target: Union[str, os.PathLike], correlation_id: str = "N/A",
                image_id: str = "N/A") -> AnalysisResult:
        """Analyze an image file.

        Args:
            target: Path to the image file.
            correlation_id: Echoed back for traceability.
            image_id: Echoed back for traceability.

        Returns:
            AnalysisResult with a 0-10 score, or ``score=None`` when the file
            is missing or cannot be decoded.
        """
        return self._execute(self._run_file, target, correlation_id, image_id)

    def analyze_pixels(self, buffer: PixelBuffer, correlation_id: str = "N/A",
                       image_id: str = "N/A") -> AnalysisResult:
        """Analyze an already decoded grayscale buffer."""
        return self._execute(self._run_buffer, buffer, correlation_id, image_id)

    def _run_file(self, path: Any, result: AnalysisResult) -> None:
        path = require_file(path)
        result.logs.append("File validated for definition analysis.")
        buffer = decode_grayscale(path)
        result.logs.append(f"Decoded {buffer.width}x{buffer.height} grayscale buffer.")
        self._score(buffer, result)
        result.metadata["sha256"] = CryptoUtils.hash_file(path)

    def _run_buffer(self, buffer: Any, result: AnalysisResult) -> None:
        if not isinstance(buffer, PixelBuffer):
            raise InvalidInputError(f"Expected a PixelBuffer, got {type(buffer).__name__}")
        self._score(buffer, result)

    def _score(self, buffer: PixelBuffer, result: AnalysisResult) -> None:
        cfg = self.config
        stats = compute_statistics(buffer, max_workers=self._max_workers)

        sharpness, sharpness_label = sharpness_indicator(stats.gradient, cfg)
        indicators: Dict[str, Optional[float]] = {
            "sharpness": sharpness,
            "variability": variability_indicator(stats.uniformity),
            "complexity": complexity_indicator(stats.entropy, cfg),
        }

        for signal, status in stats.status_values().items():
            if status != "ok":
                result.logs.append(f"Signal '{signal}' {status}; neutral default used.")

        score = pixel_composite(indicators, cfg)
        evaluation = interpret(score, cfg.labels)

        result.score = score
        result.details = {
            "gradient_mean_raw": _rounded(stats.gradient, 2),
            "sharpness": sharpness_label,
            "indicators": {k: _rounded(v, 4) for k, v in indicators.items()},
            "signal_status": stats.status_values(),
            "evaluation": evaluation,
            "message": (
                f"Analysis complete. Sharpness: {sharpness_label}. "
                f"Score: {score}/10 ({evaluation})."
            ),
        }
        result.metadata = {
            "format": buffer.format,
            "width": buffer.width,
            "height": buffer.height,
            "density": buffer.density,
            "complexity": _rounded(stats.entropy, 4),
            "uniformity": _rounded(stats.uniformity, 4),
            "stdev": _rounded(stats.stdev, 4),
        }
        result.logs.append(f"Final score: {score}. Evaluation: {evaluation}.")
        logger.debug(
            f"[{self.ANALYZER_ID}] gradient={stats.gradient} entropy={stats.entropy} "
            f"stdev={stats.stdev} indicators={indicators}"
        )
