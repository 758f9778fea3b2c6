"""Exception hierarchy for Autentica.

None of these escape a public analyzer entry point; they are raised inside
the scoring core and converted into a failed AnalysisResult at the boundary.
"""


class AutenticaError(Exception):
    """Base Autentica exception."""
    pass


class InvalidInputError(AutenticaError):
    """Input cannot be analyzed (wrong vector length, missing file...)."""
    pass


class ImageDecodeError(InvalidInputError):
    """The image file could not be decoded into a pixel buffer."""
    pass


class PartialSignalUnavailable(AutenticaError):
    """A single statistic or indicator could not be computed."""
    pass


class ModelUnavailableError(AutenticaError):
    """Persisted inference weights could not be loaded."""
    pass
