"""
Pixel statistics over 8-bit grayscale buffers.

Three independent signals are derived from a decoded image:

1. **Entropy** - Shannon entropy of the 256-level histogram divided by 8,
   so it lies in [0, 1].
2. **Gradient roughness** - mean absolute difference between vertically
   adjacent pixels.
3. **Tonal spread** - population standard deviation over the full buffer.

Each signal is computed in isolation. A signal that cannot be computed is
reported as ``None`` with a status marker; it never takes the others down.
"""
import concurrent.futures
import logging
import os
from dataclasses import dataclass
from typing import Optional, Union

import cv2
import numpy as np
from PIL import Image
from scipy.stats import entropy as scipy_entropy

from .config import ScoringConfig
from .errors import ImageDecodeError, PartialSignalUnavailable
from .types import PixelStatistics, SignalStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PixelBuffer:
    """Immutable row-major grid of 8-bit grayscale intensities."""
    data: np.ndarray
    format: Optional[str] = None
    density: Optional[float] = None

    def __post_init__(self):
        arr = np.asarray(self.data)
        if arr.ndim != 2:
            raise ValueError(f"Pixel buffer must be 2-D, got shape {arr.shape}")
        if arr.dtype != np.uint8:
            arr = np.clip(arr, 0, 255).astype(np.uint8)
        else:
            arr = arr.copy()
        arr.setflags(write=False)
        object.__setattr__(self, "data", arr)

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def size(self) -> int:
        return int(self.data.size)


def _read_header(path: str):
    """Format and horizontal dpi from the image header, best effort."""
    try:
        with Image.open(path) as img:
            dpi = img.info.get("dpi")
            density = float(dpi[0]) if dpi else None
            return img.format, density
    except Exception as e:
        logger.warning(f"Could not read image header for {path}: {e}")
        return None, None


def decode_grayscale(path: Union[str, os.PathLike]) -> PixelBuffer:
    """Decode an image file into a grayscale PixelBuffer.

    Raises:
        ImageDecodeError: the file cannot be read or is not a decodable image.
    """
    path = os.fspath(path)
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as e:
        raise ImageDecodeError(f"Cannot read image file {path}: {e}") from e

    nparr = np.frombuffer(raw, np.uint8)
    gray = cv2.imdecode(nparr, cv2.IMREAD_GRAYSCALE) if nparr.size else None
    if gray is None:
        raise ImageDecodeError(f"Invalid or unsupported image data: {path}")

    fmt, density = _read_header(path)
    return PixelBuffer(gray, format=fmt, density=density)


def shannon_entropy(buffer: PixelBuffer) -> Optional[float]:
    """Normalised Shannon entropy in [0, 1], or None for an empty buffer."""
    if buffer.size == 0:
        return None
    hist = np.bincount(buffer.data.ravel(), minlength=256)
    return float(scipy_entropy(hist, base=2) / 8.0)


def _stripe_gradient_sum(data: np.ndarray, start: int, stop: int) -> int:
    """Sum of |row[y] - row[y+1]| for y in [start, stop)."""
    block = data[start:stop + 1].astype(np.int16)
    return int(np.abs(np.diff(block, axis=0)).sum())


def gradient_roughness(buffer: PixelBuffer, max_workers: int = 1) -> Optional[float]:
    """Mean absolute vertical intensity difference between adjacent rows.

    Returns None when fewer than two rows (or no columns) are available.
    With ``max_workers > 1`` the rows are summed in stripes on a thread
    pool; the result is identical to the sequential pass.
    """
    h, w = buffer.height, buffer.width
    if h < 2 or w < 1:
        return None

    pairs = h - 1
    if max_workers > 1 and pairs >= max_workers * 2:
        bounds = np.linspace(0, pairs, max_workers + 1).astype(int)
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(_stripe_gradient_sum, buffer.data, int(a), int(b))
                for a, b in zip(bounds[:-1], bounds[1:])
                if b > a
            ]
            total = sum(f.result() for f in futures)
    else:
        total = _stripe_gradient_sum(buffer.data, 0, pairs)

    return total / float(w * pairs)


def tonal_stdev(buffer: PixelBuffer) -> Optional[float]:
    """Population standard deviation over every pixel, or None."""
    if buffer.size == 0:
        return None
    sigma = float(np.std(buffer.data, dtype=np.float64))
    if not np.isfinite(sigma):
        raise PartialSignalUnavailable(f"Non-finite standard deviation: {sigma}")
    return sigma


def uniformity_from_stdev(stdev: float) -> float:
    """clamp(1 - stdev/128, 0, 1)."""
    return float(np.clip(1.0 - stdev / ScoringConfig.STDEV_NORMALISER, 0.0, 1.0))


def compute_statistics(buffer: PixelBuffer, max_workers: int = 1) -> PixelStatistics:
    """Compute entropy, gradient roughness and tonal spread of a buffer."""
    stats = PixelStatistics(width=buffer.width, height=buffer.height)

    try:
        stats.entropy = shannon_entropy(buffer)
    except Exception as e:
        logger.warning(f"Entropy computation failed: {e}")
    stats.status["entropy"] = (
        SignalStatus.OK if stats.entropy is not None else SignalStatus.UNAVAILABLE
    )

    try:
        stats.gradient = gradient_roughness(buffer, max_workers=max_workers)
    except Exception as e:
        logger.warning(f"Gradient computation failed: {e}")
    if stats.gradient is None:
        logger.warning(
            f"Gradient roughness indeterminable for {buffer.width}x{buffer.height} buffer"
        )
    stats.status["gradient"] = (
        SignalStatus.OK if stats.gradient is not None else SignalStatus.INDETERMINABLE
    )

    try:
        stats.stdev = tonal_stdev(buffer)
    except Exception as e:
        logger.warning(f"Standard deviation unavailable: {e}")
    if stats.stdev is not None:
        stats.uniformity = uniformity_from_stdev(stats.stdev)
    stats.status["stdev"] = (
        SignalStatus.OK if stats.stdev is not None else SignalStatus.UNAVAILABLE
    )

    return stats
