"""
Fixed-weight feed-forward scorer with a degraded-mode fallback.

Weights are persisted as JSON::

    {
      "input_size": 10,
      "layers": [
        {"weights": [[...10 floats...], ...5 rows...], "biases": [...5...]},
        {"weights": [[...5 floats...]], "biases": [b]}
      ]
    }

Every layer uses the logistic activation and the last layer has exactly
one unit, so the output lies in [0, 1]. When the file is missing or
malformed the adapter builds an untrained network of the same input
arity and reports ``model_loaded = False`` instead of failing.
"""
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.special import expit

from .config import ScoringConfig
from .errors import ModelUnavailableError

logger = logging.getLogger(__name__)

# Untrained weights are drawn from [-INIT_RANGE, INIT_RANGE]
INIT_RANGE = 0.1
FALLBACK_SEED = 0


class FeedForwardNetwork:
    """Stack of fully connected logistic layers with a single output."""

    def __init__(self, layers: Sequence[Tuple[np.ndarray, np.ndarray]]):
        if not layers:
            raise ValueError("Network needs at least one layer")

        checked = []
        fan_in = None
        for i, (weights, biases) in enumerate(layers):
            w = np.asarray(weights, dtype=np.float64)
            b = np.asarray(biases, dtype=np.float64)
            if w.ndim != 2 or b.ndim != 1 or w.shape[0] != b.shape[0]:
                raise ValueError(
                    f"Layer {i}: weights {w.shape} and biases {b.shape} do not agree"
                )
            if fan_in is not None and w.shape[1] != fan_in:
                raise ValueError(
                    f"Layer {i} expects {w.shape[1]} inputs, previous layer gives {fan_in}"
                )
            if not (np.all(np.isfinite(w)) and np.all(np.isfinite(b))):
                raise ValueError(f"Layer {i} contains non-finite parameters")
            w.setflags(write=False)
            b.setflags(write=False)
            checked.append((w, b))
            fan_in = w.shape[0]

        if fan_in != 1:
            raise ValueError(f"Network must have exactly one output, got {fan_in}")
        self._layers: Tuple[Tuple[np.ndarray, np.ndarray], ...] = tuple(checked)

    @property
    def input_size(self) -> int:
        return int(self._layers[0][0].shape[1])

    @property
    def layer_sizes(self) -> List[int]:
        return [self.input_size] + [int(w.shape[0]) for w, _ in self._layers]

    def activate(self, vector: Sequence[float]) -> float:
        x = np.asarray(vector, dtype=np.float64)
        if x.shape != (self.input_size,):
            raise ValueError(
                f"Network expects {self.input_size} inputs, got {x.shape[0] if x.ndim else 0}"
            )
        for w, b in self._layers:
            x = expit(w @ x + b)
        return float(x[0])

    @classmethod
    def untrained(cls, input_size: int, hidden_size: int,
                  seed: int = FALLBACK_SEED) -> "FeedForwardNetwork":
        """Fresh ``input -> hidden -> 1`` network with small random weights."""
        rng = np.random.default_rng(seed)
        shapes = [(hidden_size, input_size), (1, hidden_size)]
        layers = [
            (rng.uniform(-INIT_RANGE, INIT_RANGE, size=shape),
             rng.uniform(-INIT_RANGE, INIT_RANGE, size=shape[0]))
            for shape in shapes
        ]
        return cls(layers)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedForwardNetwork":
        layers = [(layer["weights"], layer["biases"]) for layer in data["layers"]]
        network = cls(layers)
        declared = data.get("input_size", network.input_size)
        if int(declared) != network.input_size:
            raise ValueError(
                f"Declared input_size {declared} does not match first layer ({network.input_size})"
            )
        return network

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_size": self.input_size,
            "layers": [
                {"weights": w.tolist(), "biases": b.tolist()}
                for w, b in self._layers
            ],
        }

    def save(self, path: Union[str, os.PathLike]) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2))


def load_network(path: Union[str, os.PathLike], input_size: int) -> FeedForwardNetwork:
    """Load persisted weights and check their input arity.

    Raises:
        ModelUnavailableError: the file is missing, unreadable, malformed,
            or built for a different number of inputs.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            raise ValueError("weights file is empty")
        network = FeedForwardNetwork.from_dict(json.loads(raw))
    except Exception as e:
        raise ModelUnavailableError(f"Cannot load weights from {path}: {e}") from e

    if network.input_size != input_size:
        raise ModelUnavailableError(
            f"Weights in {path} take {network.input_size} inputs, expected {input_size}"
        )
    return network


class InferenceAdapter:
    """Never-failing wrapper around a FeedForwardNetwork.

    Construction tries the persisted weights first and falls back to an
    untrained network of the same arity; ``model_loaded`` tells the two
    apart. ``predict`` never raises.
    """

    def __init__(self, weights_path: Optional[Union[str, os.PathLike]], input_size: int,
                 fallback_hidden: int = 5):
        self.input_size = input_size
        self.fallback_hidden = fallback_hidden
        self.weights_path = str(weights_path) if weights_path is not None else None
        self.load_error: Optional[str] = None

        try:
            if weights_path is None:
                raise ModelUnavailableError("No weights path configured")
            self.network = load_network(weights_path, input_size)
            self.model_loaded = True
            logger.info(f"Loaded inference weights from {self.weights_path}")
        except Exception as e:
            self.network = FeedForwardNetwork.untrained(input_size, fallback_hidden)
            self.model_loaded = False
            self.load_error = str(e)
            logger.warning(
                f"Inference weights unavailable, using untrained "
                f"{input_size}-{fallback_hidden}-1 network: {e}"
            )

    def predict(self, vector: Sequence[float]) -> Tuple[float, Optional[str]]:
        """Return ``(output, error)``; on failure output is the sentinel."""
        try:
            if len(vector) != self.input_size:
                raise ValueError(
                    f"expected {self.input_size} inputs, got {len(vector)}"
                )
            output = self.network.activate(vector)
            if not np.isfinite(output):
                raise ValueError(f"non-finite network output {output}")
            return float(np.clip(output, 0.0, 1.0)), None
        except Exception as e:
            logger.warning(f"Inference failed: {e}")
            return ScoringConfig.INFERENCE_SENTINEL, f"Inference failed: {e}"

    def infer(self, vector: Sequence[float]) -> float:
        return self.predict(vector)[0]


_adapters: Dict[Tuple[Optional[str], int, int], InferenceAdapter] = {}
_adapters_lock = threading.Lock()


def get_adapter(weights_path: Optional[Union[str, os.PathLike]], input_size: int,
                fallback_hidden: int = 5) -> InferenceAdapter:
    """Process-wide adapter for a weights file, loaded at most once."""
    key = (
        str(weights_path) if weights_path is not None else None,
        input_size,
        fallback_hidden,
    )
    with _adapters_lock:
        adapter = _adapters.get(key)
        if adapter is None:
            adapter = InferenceAdapter(weights_path, input_size, fallback_hidden)
            _adapters[key] = adapter
        return adapter


def clear_adapters() -> None:
    """Drop cached adapters so weights are re-read on next use."""
    with _adapters_lock:
        _adapters.clear()
