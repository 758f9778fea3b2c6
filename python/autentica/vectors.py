"""
Feature-vector analyzers.

Each analyzer takes a fixed-length vector of normalised features in [0, 1]
produced upstream and scores it with up to two layers:

- **Hybrid** analyzers (color, artifacts, definition, exif) combine a table
  of weighted rule predicates with a small network, 0.7 / 0.3, on 0-1.
- **Learned-only** analyzers (screen, texture) report the network output
  rescaled to 0-10.

Weights are looked up as ``<models_dir>/<name>.json``. When they are
missing the analyzer keeps working on an untrained network of the same
shape and says so in ``metadata["model_loaded"]`` and
``details["inference_status"]``.
"""
import logging
import math
import os
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .base import BaseAnalyzer
from .config import EnsembleWeights, default_models_dir
from .ensemble import (
    WeightedIndicator,
    above,
    below,
    between,
    blend,
    equals,
    interpret,
    logical_score,
)
from .errors import InvalidInputError
from .inference import InferenceAdapter, get_adapter
from .types import AnalysisResult

logger = logging.getLogger(__name__)


def _two_sided(high: float, low: float, labels: Tuple[str, str, str]) -> Callable[[float], str]:
    """``>= high`` -> first label, ``<= low`` -> last, otherwise the middle one."""
    def interpreter(score: float) -> str:
        if score >= high:
            return labels[0]
        if score <= low:
            return labels[2]
        return labels[1]
    return interpreter


HYBRID_LABELS = (
    "Features consistent with a human capture.",
    "Intermediate features, inconclusive.",
    "Anomalous features, possible AI generation.",
)

SCREEN_LABELS = (
    "No clear evidence of a screen capture.",
    "Mixed characteristics according to the network.",
    "Strong indications of a screen capture.",
)

TEXTURE_BANDS = (
    (8.0, "High natural texture."),
    (6.0, "Texture probably natural."),
    (4.0, "Ambiguous texture."),
    (2.0, "Considerable synthetic texture traits."),
    (0.0, "High artificial texture."),
)


@dataclass(frozen=True)
class VectorProfile:
    """Static description of one vector analyzer."""
    name: str
    description: str
    features: Tuple[str, ...]
    interpreter: Callable[[float], str]
    indicators: Optional[Tuple[WeightedIndicator, ...]] = None
    fill: float = 0.0
    hidden: int = 5

    def __post_init__(self):
        if self.indicators is not None and len(self.indicators) != len(self.features):
            raise ValueError(
                f"Profile '{self.name}': {len(self.indicators)} indicators for "
                f"{len(self.features)} features"
            )

    @property
    def hybrid(self) -> bool:
        return self.indicators is not None

    @property
    def input_size(self) -> int:
        return len(self.features)


def _hybrid(name: str, description: str,
            indicators: Sequence[WeightedIndicator]) -> VectorProfile:
    indicators = tuple(indicators)
    return VectorProfile(
        name=name,
        description=description,
        features=tuple(ind.name for ind in indicators),
        interpreter=_two_sided(0.7, 0.3, HYBRID_LABELS),
        indicators=indicators,
    )


def _shape_indicators(last: WeightedIndicator) -> List[WeightedIndicator]:
    """Shared geometry and pixel-statistics rules of artifacts/definition."""
    return [
        WeightedIndicator("width", 0.10, between(0.3, 0.7)),
        WeightedIndicator("height", 0.10, between(0.3, 0.7)),
        WeightedIndicator("density", 0.15, below(0.5)),
        WeightedIndicator("horizontal_resolution", 0.10, below(0.6)),
        WeightedIndicator("vertical_resolution", 0.10, below(0.6)),
        WeightedIndicator("aspect_ratio", 0.10, between(0.4, 0.8)),
        WeightedIndicator("complexity", 0.15, above(0.6)),
        WeightedIndicator("uniformity", 0.10, below(0.5)),
        WeightedIndicator("mean_gradient", 0.10, below(0.4)),
        last,
    ]


COLOR = _hybrid("color", "Colour channel balance, colour space and tone.", [
    WeightedIndicator("red", 0.10, between(0.2, 0.8)),
    WeightedIndicator("green", 0.10, between(0.2, 0.8)),
    WeightedIndicator("blue", 0.10, between(0.2, 0.8)),
    WeightedIndicator("chromatic_balance", 0.15, between(0.4, 0.7)),
    WeightedIndicator("valid_color_space", 0.10, equals(1.0)),
    WeightedIndicator("color_space_range", 0.10, equals(1.0)),
    WeightedIndicator("white_balance", 0.10, equals(1.0)),
    WeightedIndicator("saturation", 0.10, between(0.3, 0.8)),
    WeightedIndicator("contrast", 0.10, between(0.3, 0.8)),
    WeightedIndicator("software_present", 0.05, equals(1.0)),
])

ARTIFACTS = _hybrid(
    "artifacts", "Compression and generation artifacts with image geometry.",
    _shape_indicators(WeightedIndicator("artifacts_detected", 0.10, below(0.2, inclusive=True))),
)

DEFINITION = _hybrid(
    "definition", "Definition and detail features with image geometry.",
    _shape_indicators(WeightedIndicator("artifacts_detected", 0.10, above(0.5))),
)

EXIF = _hybrid("exif", "Consistency of EXIF fields with pixel statistics.", [
    WeightedIndicator("exif_dimensions", 0.10, between(0.3, 0.7)),
    WeightedIndicator("software", 0.10, equals(0.5)),
    WeightedIndicator("original_date", 0.15, below(0.6)),
    WeightedIndicator("modified_date", 0.10, below(0.6)),
    WeightedIndicator("horizontal_resolution", 0.10, between(0.4, 0.8)),
    WeightedIndicator("vertical_resolution", 0.10, between(0.4, 0.8)),
    WeightedIndicator("aspect_ratio", 0.10, between(0.3, 0.7)),
    WeightedIndicator("complexity", 0.15, above(0.6)),
    WeightedIndicator("uniformity", 0.10, below(0.5)),
    WeightedIndicator("artifacts", 0.10, above(0.5)),
])

SCREEN = VectorProfile(
    name="screen",
    description="Screen capture or photo of a screen (high score = not a capture).",
    features=(
        "grid_visible", "is_png", "is_bmp", "is_jpeg", "is_other_format",
        "extensive_metadata", "density", "common_ratio",
        "typical_screen_dimensions", "heuristic_score",
    ),
    interpreter=_two_sided(7.0, 3.0, SCREEN_LABELS),
    fill=0.5,
    hidden=7,
)

TEXTURE = VectorProfile(
    name="texture",
    description="Natural versus synthetic texture statistics.",
    features=(
        "texture_complexity", "texture_uniformity", "repetitive_patterns",
        "local_variation", "edge_density", "micro_contrast", "texture_scale",
        "anisotropy", "statistical_roughness", "global_entropy",
    ),
    interpreter=lambda score: interpret(score, TEXTURE_BANDS),
    fill=0.5,
    hidden=7,
)

CATALOGUE: Dict[str, VectorProfile] = {
    p.name: p for p in (COLOR, ARTIFACTS, DEFINITION, EXIF, SCREEN, TEXTURE)
}


class FeatureVectorAnalyzer(BaseAnalyzer):
    """Scores a normalised feature vector with rules and/or a network."""

    VERSION = "1.0.0"
    # Adapter metadata stays meaningful after a failed call
    NULL_METADATA_ON_FAILURE = False

    def __init__(self, profile: VectorProfile, models_dir: Optional[os.PathLike] = None,
                 weights: Optional[EnsembleWeights] = None,
                 adapter: Optional[InferenceAdapter] = None):
        """Initialize FeatureVectorAnalyzer.

        Args:
            profile: Features, rules and interpretation of the analyzer.
            models_dir: Directory with ``<name>.json`` weights. Defaults to
                ``AUTENTICA_MODELS_DIR`` or the packaged models directory.
            weights: Logic/learned blend for hybrid profiles.
            adapter: Pre-built inference adapter; by default the process-wide
                adapter for the weights file is used.
        """
        self.profile = profile
        self.ANALYZER_ID = f"VECTOR_{profile.name.upper()}"
        self.ANALYZER_NAME = profile.name
        self.DESCRIPTION = profile.description
        self.weights = weights or EnsembleWeights()
        if adapter is None:
            path = default_models_dir(models_dir) / f"{profile.name}.json"
            adapter = get_adapter(path, profile.input_size, profile.hidden)
        self.adapter = adapter

    def analyze(self, target: Any, correlation_id: str = "N/A",
                image_id: str = "N/A") -> AnalysisResult:
        """Score a feature vector.

        Returns:
            AnalysisResult; ``score=None`` with ``details["status"] ==
            "invalid_input"`` when the vector has the wrong length.
        """
        return self._execute(self._run, target, correlation_id, image_id)

    def coerce(self, vector: Any) -> List[float]:
        """Vector as floats clipped to [0, 1]; bad entries become the fill value."""
        if vector is None or isinstance(vector, (str, bytes)) or not hasattr(vector, "__len__"):
            raise InvalidInputError(
                f"Expected a sequence of {self.profile.input_size} values, "
                f"got {type(vector).__name__}"
            )
        if len(vector) != self.profile.input_size:
            raise InvalidInputError(
                f"Expected {self.profile.input_size} values, got {len(vector)}"
            )

        values = []
        for raw in vector:
            try:
                value = float(raw)
            except (TypeError, ValueError):
                value = self.profile.fill
            except OverflowError:
                # integer beyond float range, clipped below
                value = math.inf if raw > 0 else -math.inf
            if math.isnan(value):
                value = self.profile.fill
            values.append(float(np.clip(value, 0.0, 1.0)))
        return values

    def _run(self, vector: Any, result: AnalysisResult) -> None:
        adapter = self.adapter
        result.metadata = {
            "model_loaded": adapter.model_loaded,
            "weights_path": adapter.weights_path,
            "load_error": adapter.load_error,
            "input_size": self.profile.input_size,
        }
        if not adapter.model_loaded:
            result.logs.append("Trained weights unavailable; untrained network in use.")

        values = self.coerce(vector)
        result.logs.append(f"Feature vector accepted ({len(values)} values).")

        network_score, error = adapter.predict(values)
        if error:
            status = "failed"
            result.logs.append(error)
        elif not adapter.model_loaded:
            status = "degraded"
        else:
            status = "ok"

        details: Dict[str, Any] = {}
        if self.profile.hybrid:
            logical = logical_score(self.profile.indicators, values)
            score = blend(logical, network_score, self.weights)
            details["logical_score"] = round(logical, 4)
        else:
            score = round(network_score * 10, 2)

        interpretation = self.profile.interpreter(score)
        details.update({
            "network_score": round(network_score, 4),
            "inference_status": status,
            "confidence": "full" if status == "ok" else "reduced",
            "interpretation": interpretation,
            "features": dict(zip(self.profile.features, values)),
            "message": f"{self.profile.name.capitalize()} analysis: {interpretation}",
        })

        result.score = score
        result.details = details
        result.logs.append(f"Final score: {score}. Inference: {status}.")
        logger.debug(f"[{self.ANALYZER_ID}] values={values} network={network_score} status={status}")


_analyzers: Dict[Tuple[str, str], FeatureVectorAnalyzer] = {}
_analyzers_lock = threading.Lock()


def get_analyzer(name: str, models_dir: Optional[os.PathLike] = None) -> FeatureVectorAnalyzer:
    """Process-wide analyzer instance for a catalogue name.

    Raises:
        ValueError: ``name`` is not in the catalogue.
    """
    profile = CATALOGUE.get(name)
    if profile is None:
        raise ValueError(f"Unknown vector analyzer '{name}'. Available: {sorted(CATALOGUE)}")
    key = (name, str(default_models_dir(models_dir)))
    with _analyzers_lock:
        analyzer = _analyzers.get(key)
        if analyzer is None:
            analyzer = FeatureVectorAnalyzer(profile, models_dir=models_dir)
            _analyzers[key] = analyzer
        return analyzer


def clear_analyzers() -> None:
    with _analyzers_lock:
        _analyzers.clear()


def analyze_vector(name: str, vector: Sequence[float], correlation_id: str = "N/A",
                   image_id: str = "N/A", models_dir: Optional[os.PathLike] = None) -> AnalysisResult:
    """Run the named catalogue analyzer on a feature vector.

    An unknown ``name`` yields a failed result with status ``invalid_input``.
    """
    if not isinstance(name, str) or name not in CATALOGUE:
        return _reject_unknown(name, vector, correlation_id, image_id)
    return get_analyzer(name, models_dir).analyze(vector, correlation_id, image_id)


def _reject_unknown(name: Any, vector: Any, correlation_id: str, image_id: str) -> AnalysisResult:
    analyzer = BaseAnalyzer()
    analyzer.ANALYZER_ID = f"VECTOR_{str(name).upper()}"
    analyzer.ANALYZER_NAME = str(name)

    def reject(target: Any, result: AnalysisResult) -> None:
        raise InvalidInputError(
            f"Unknown vector analyzer '{name}'. Available: {sorted(CATALOGUE)}"
        )

    return analyzer._execute(reject, vector, correlation_id, image_id)


def list_analyzers() -> List[Dict[str, Any]]:
    return [
        {
            "name": p.name,
            "kind": "hybrid" if p.hybrid else "learned",
            "range": "0-1" if p.hybrid else "0-10",
            "description": p.description,
            "features": list(p.features),
        }
        for p in CATALOGUE.values()
    ]
