"""
Autentica - Python Implementation

Image authenticity scoring: pixel statistics, metadata signatures and
feature-vector ensembles, each returning a uniform AnalysisResult.
"""

from .base import BaseAnalyzer
from .config import DefinitionConfig, EnsembleWeights, ScoringConfig
from .crypto import CryptoUtils
from .definition import DefinitionAnalyzer
from .digital_signature import SignatureAnalyzer
from .errors import (
    AutenticaError,
    ImageDecodeError,
    InvalidInputError,
    ModelUnavailableError,
    PartialSignalUnavailable,
)
from .inference import FeedForwardNetwork, InferenceAdapter
from .pixels import PixelBuffer
from .signatures import SignatureTaxonomy, load_taxonomy
from .types import AnalysisResult, SignalStatus, SignatureCategory
from .vectors import FeatureVectorAnalyzer, analyze_vector, get_analyzer

__version__ = "0.0.1"
__all__ = [
    "AnalysisResult",
    "AutenticaError",
    "BaseAnalyzer",
    "CryptoUtils",
    "DefinitionAnalyzer",
    "DefinitionConfig",
    "EnsembleWeights",
    "FeatureVectorAnalyzer",
    "FeedForwardNetwork",
    "ImageDecodeError",
    "InferenceAdapter",
    "InvalidInputError",
    "ModelUnavailableError",
    "PartialSignalUnavailable",
    "PixelBuffer",
    "ScoringConfig",
    "SignalStatus",
    "SignatureAnalyzer",
    "SignatureCategory",
    "SignatureTaxonomy",
    "analyze_vector",
    "get_analyzer",
    "load_taxonomy",
]
