"""
Scoring constants and resource locations.

The weights and thresholds below were tuned empirically; they are kept as
named values so they can be overridden per analyzer instance instead of
being edited in place.
"""
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

PACKAGE_DIR = Path(__file__).resolve().parent

TAXONOMY_ENV = "AUTENTICA_TAXONOMY"
MODELS_DIR_ENV = "AUTENTICA_MODELS_DIR"


class ScoringConfig:
    # --- Pixel statistics (definition analyzer) ---
    SHARPNESS = {
        "LOW_THRESHOLD": 8.0,    # mean row gradient below this reads as natural blur
        "HIGH_THRESHOLD": 15.0,  # above this reads as digital sharpness
        "BAND_TOP": 0.9,
        "BAND_SPAN": 0.8,        # interpolated band is [0.1, 0.9]
    }

    PIXEL_WEIGHTS = {
        "sharpness": 0.50,
        "variability": 0.30,
        "complexity": 0.20,
    }

    COMPLEXITY = {
        "TARGET_ENTROPY": 0.6,
        "FALLOFF": 15.0,
    }

    # Substituted for a missing signal in the weighted combination only
    NEUTRAL_DEFAULT = 0.5

    # Tonal stdev is normalised against half the 8-bit range
    STDEV_NORMALISER = 128.0

    # --- Rule + learned ensembles ---
    ENSEMBLE = {
        "LOGIC": 0.7,
        "LEARNED": 0.3,
    }

    # Cut points over the 0-10 public range, highest first
    HUMAN_LABELS_0_10 = (
        (8.0, "very likely human"),
        (6.0, "likely human"),
        (4.0, "indeterminate / mixed"),
        (2.0, "likely synthetic"),
        (0.0, "very likely synthetic"),
    )

    # Inference sentinel used when the network cannot produce an output
    INFERENCE_SENTINEL = 0.0


def _check_sum(weights: Dict[str, float], what: str) -> None:
    total = sum(weights.values())
    if any(w < 0 for w in weights.values()):
        raise ValueError(f"{what} weights must be non-negative: {weights}")
    if not math.isclose(total, 1.0, abs_tol=1e-9):
        raise ValueError(f"{what} weights must sum to 1.0, got {total}")


@dataclass(frozen=True)
class EnsembleWeights:
    """Weights of the logical and learned layers of a hybrid score."""
    logic: float = ScoringConfig.ENSEMBLE["LOGIC"]
    learned: float = ScoringConfig.ENSEMBLE["LEARNED"]

    def __post_init__(self):
        _check_sum({"logic": self.logic, "learned": self.learned}, "Ensemble")


@dataclass(frozen=True)
class DefinitionConfig:
    """Overridable constants of the pixel-statistics analyzer."""
    low_threshold: float = ScoringConfig.SHARPNESS["LOW_THRESHOLD"]
    high_threshold: float = ScoringConfig.SHARPNESS["HIGH_THRESHOLD"]
    band_top: float = ScoringConfig.SHARPNESS["BAND_TOP"]
    band_span: float = ScoringConfig.SHARPNESS["BAND_SPAN"]
    weights: Dict[str, float] = field(
        default_factory=lambda: dict(ScoringConfig.PIXEL_WEIGHTS)
    )
    target_entropy: float = ScoringConfig.COMPLEXITY["TARGET_ENTROPY"]
    falloff: float = ScoringConfig.COMPLEXITY["FALLOFF"]
    neutral_default: float = ScoringConfig.NEUTRAL_DEFAULT
    labels: Tuple[Tuple[float, str], ...] = ScoringConfig.HUMAN_LABELS_0_10

    def __post_init__(self):
        if self.high_threshold <= self.low_threshold:
            raise ValueError(
                f"high_threshold ({self.high_threshold}) must exceed "
                f"low_threshold ({self.low_threshold})"
            )
        if set(self.weights) != set(ScoringConfig.PIXEL_WEIGHTS):
            raise ValueError(
                f"Pixel weights must name exactly {sorted(ScoringConfig.PIXEL_WEIGHTS)}"
            )
        _check_sum(self.weights, "Pixel")


def default_taxonomy_path() -> Path:
    """Signature taxonomy location, overridable via ``AUTENTICA_TAXONOMY``."""
    override = os.environ.get(TAXONOMY_ENV)
    if override:
        return Path(override)
    return PACKAGE_DIR / "data" / "signature_taxonomy.json"


def default_models_dir(models_dir: Optional[os.PathLike] = None) -> Path:
    """Directory holding ``<analyzer>.json`` weight files."""
    if models_dir is not None:
        return Path(models_dir)
    override = os.environ.get(MODELS_DIR_ENV)
    if override:
        return Path(override)
    return PACKAGE_DIR / "models"
