"""
Combination of per-feature indicators into one bounded score.

Two layers can contribute:

- a *logical* layer of weighted boolean predicates over a feature vector,
  giving the weighted fraction of satisfied heuristics in [0, 1];
- a *learned* layer, the clamped output of a fixed-weight network.

Pixel statistics use a third path: continuous "humanness" indicators in
[0, 1] combined with fixed weights and rescaled to 0-10.
"""
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from .config import DefinitionConfig, EnsembleWeights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightedIndicator:
    """Named, weighted predicate over one feature value."""
    name: str
    weight: float
    predicate: Callable[[float], bool]

    def __post_init__(self):
        if self.weight < 0:
            raise ValueError(f"Indicator '{self.name}' has negative weight {self.weight}")


def between(low: float, high: float) -> Callable[[float], bool]:
    """Open interval predicate ``low < v < high``."""
    return lambda v: low < v < high


def below(limit: float, inclusive: bool = False) -> Callable[[float], bool]:
    if inclusive:
        return lambda v: v <= limit
    return lambda v: v < limit


def above(limit: float) -> Callable[[float], bool]:
    return lambda v: v > limit


def equals(target: float) -> Callable[[float], bool]:
    return lambda v: v == target


def logical_score(indicators: Sequence[WeightedIndicator], values: Sequence[float]) -> float:
    """Weighted fraction of satisfied predicates, 0.0 when weights sum to 0."""
    if len(indicators) != len(values):
        raise ValueError(
            f"Expected {len(indicators)} values for {len(indicators)} indicators, got {len(values)}"
        )
    total_weight = sum(ind.weight for ind in indicators)
    if total_weight <= 0:
        return 0.0
    satisfied = sum(
        ind.weight for ind, v in zip(indicators, values) if ind.predicate(v)
    )
    return float(np.clip(satisfied / total_weight, 0.0, 1.0))


def blend(logical: float, learned: float, weights: Optional[EnsembleWeights] = None) -> float:
    """``logical * w_logic + learned * w_learned``, clamped to [0, 1]."""
    weights = weights or EnsembleWeights()
    return float(np.clip(logical * weights.logic + learned * weights.learned, 0.0, 1.0))


# ---------------------------------------------------------------------------
# Pixel humanness indicators
# ---------------------------------------------------------------------------

def sharpness_indicator(gradient: Optional[float], config: DefinitionConfig) -> Tuple[Optional[float], str]:
    """Map mean gradient to a humanness value and a sharpness label.

    Below the low threshold reads as natural blur (0.9), at or above the
    high threshold as digital sharpness (0.1); in between the value is
    interpolated linearly across the [0.1, 0.9] band.
    """
    if gradient is None:
        return None, "indeterminable"
    low, high = config.low_threshold, config.high_threshold
    floor = config.band_top - config.band_span
    if gradient >= high:
        return floor, "high"
    if gradient < low:
        return config.band_top, "low"
    fraction = (gradient - low) / (high - low)
    return config.band_top - fraction * config.band_span, "moderate"


def variability_indicator(uniformity: Optional[float]) -> Optional[float]:
    if uniformity is None:
        return None
    return 1.0 - uniformity


def complexity_indicator(entropy: Optional[float], config: DefinitionConfig) -> Optional[float]:
    """Gaussian-shaped reward peaking at the target entropy."""
    if entropy is None:
        return None
    return math.exp(-config.falloff * (entropy - config.target_entropy) ** 2)


def pixel_composite(indicators: Dict[str, Optional[float]], config: DefinitionConfig) -> float:
    """Weighted pixel composite rescaled to 0-10 (one decimal).

    Missing indicators take the neutral default here and nowhere else.
    """
    composite = 0.0
    for name, weight in config.weights.items():
        value = indicators.get(name)
        if value is None:
            logger.debug(f"Indicator '{name}' missing, using neutral default {config.neutral_default}")
            value = config.neutral_default
        composite += value * weight
    composite = float(np.clip(composite, 0.0, 1.0))
    return round(composite * 10, 1)


def interpret(score: float, bands: Sequence[Tuple[float, str]]) -> str:
    """Label of the first band (highest cut point first) reached by score."""
    for cut, label in bands:
        if score >= cut:
            return label
    return bands[-1][1]
