"""Type definitions for Autentica."""
from __future__ import annotations
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Any, Optional


class SignatureCategory(Enum):
    """Categories a metadata signature can be classified into."""
    PROVENANCE = "provenance-marker"
    AI_WATERMARK = "ai-watermark"
    VERIFICATION_SEAL = "verification-seal"
    CAMERA = "generic-camera-software"
    EDITING = "edition-software"
    AI_GENERATION = "generative-ai-software"
    UNKNOWN = "unknown"


class SignalStatus(Enum):
    """Availability of a single derived signal."""
    OK = "ok"
    UNAVAILABLE = "unavailable"
    INDETERMINABLE = "indeterminable"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class PixelStatistics:
    """Raw features derived from one grayscale pixel buffer.

    ``None`` marks a signal that could not be computed; the reason is kept
    in ``status``. Neutral defaults are never substituted here.
    """
    width: int
    height: int
    entropy: Optional[float] = None
    gradient: Optional[float] = None
    stdev: Optional[float] = None
    uniformity: Optional[float] = None
    status: Dict[str, SignalStatus] = field(default_factory=dict)

    def status_values(self) -> Dict[str, str]:
        return {name: s.value for name, s in self.status.items()}


@dataclass
class AnalysisResult:
    """Uniform envelope returned by every analyzer, on success or failure.

    ``score`` is ``None`` only when the analysis could not be carried out;
    a low score always means the evidence pointed that way.
    """
    analyzer_id: str
    analyzer_name: str
    version: str
    description: str = ""
    score: Optional[float] = None
    details: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    performance: Dict[str, Any] = field(default_factory=lambda: {"duration_ms": None})
    logs: List[str] = field(default_factory=list)
    correlation_id: str = "N/A"
    image_id: str = "N/A"
    timestamp: str = field(default_factory=_utc_now)

    @property
    def failed(self) -> bool:
        return self.score is None

    @property
    def duration_ms(self) -> Optional[float]:
        return self.performance.get("duration_ms")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
