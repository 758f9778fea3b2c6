"""
Common analyzer scaffolding.

Every analyzer returns the same AnalysisResult envelope. ``_execute`` is the
outermost boundary of a call: it measures wall-clock duration with a
monotonic clock around everything (file I/O included), converts invalid
input and unexpected exceptions into a failed result, and always appends
the duration to the log trail.
"""
import concurrent.futures
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .errors import InvalidInputError
from .types import AnalysisResult

logger = logging.getLogger(__name__)

_executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def _shared_executor() -> concurrent.futures.ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = concurrent.futures.ThreadPoolExecutor(
                thread_name_prefix="autentica"
            )
        return _executor


def require_file(path: Any) -> str:
    """Validate a caller-supplied image path.

    Raises:
        InvalidInputError: path is missing, not a path, or not a regular file.
    """
    if not path or not isinstance(path, (str, os.PathLike)):
        raise InvalidInputError("File path parameter is invalid or missing.")
    path = os.fspath(path)
    if not Path(path).exists():
        raise InvalidInputError(f"File not found: {path}")
    if not Path(path).is_file():
        raise InvalidInputError(f"Not a regular file: {path}")
    return path


class BaseAnalyzer:
    """Base class for analyzers producing an AnalysisResult."""

    ANALYZER_ID = "BASE"
    ANALYZER_NAME = "base"
    VERSION = "1.0.0"
    DESCRIPTION = ""
    # Null technical metadata gathered before a failure
    NULL_METADATA_ON_FAILURE = True

    def new_result(self, correlation_id: str = "N/A", image_id: str = "N/A") -> AnalysisResult:
        return AnalysisResult(
            analyzer_id=self.ANALYZER_ID,
            analyzer_name=self.ANALYZER_NAME,
            version=self.VERSION,
            description=self.DESCRIPTION,
            correlation_id=correlation_id,
            image_id=image_id,
        )

    def _execute(
        self,
        runner: Callable[[Any, AnalysisResult], None],
        target: Any,
        correlation_id: str = "N/A",
        image_id: str = "N/A",
    ) -> AnalysisResult:
        start = time.perf_counter()
        result = self.new_result(correlation_id, image_id)
        logger.info(
            f"[{self.ANALYZER_ID}] Analysis started "
            f"(correlation_id={correlation_id}, image_id={image_id})"
        )

        try:
            runner(target, result)
        except InvalidInputError as e:
            logger.warning(f"[{self.ANALYZER_ID}] Invalid input: {e}")
            self._fail(result, "invalid_input", f"Invalid input: {e}")
        except Exception as e:
            logger.exception(f"[{self.ANALYZER_ID}] Analysis failed with exception")
            self._fail(result, "error", f"Critical error during {self.ANALYZER_NAME} analysis: {e}")

        duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
        result.performance["duration_ms"] = duration_ms
        result.logs.append(f"Analysis duration: {duration_ms} ms")
        logger.info(
            f"[{self.ANALYZER_ID}] Analysis finished: score={result.score}, "
            f"duration={duration_ms} ms"
        )
        return result

    def _fail(self, result: AnalysisResult, status: str, message: str) -> None:
        result.score = None
        result.details["status"] = status
        result.details["message"] = message
        if self.NULL_METADATA_ON_FAILURE:
            for key in result.metadata:
                result.metadata[key] = None
        result.logs.append(message)

    def analyze_async(self, *args, **kwargs) -> concurrent.futures.Future:
        """Run ``analyze`` on the shared worker pool.

        The future always completes with an AnalysisResult.
        """
        return _shared_executor().submit(self.analyze, *args, **kwargs)

    def analyze(self, target: Union[str, os.PathLike, Any], correlation_id: str = "N/A",
                image_id: str = "N/A") -> AnalysisResult:
        raise NotImplementedError
