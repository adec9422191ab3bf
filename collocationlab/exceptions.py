import logging


# Library logger - no configuration, user controls output
logger = logging.getLogger(__name__)


class CollocationLabBaseError(Exception):
    """
    Base class for all CollocationLab-specific errors.

    All CollocationLab exceptions inherit from this class, allowing users to catch
    any CollocationLab-specific error with a single except clause.

    Args:
        message: The error message describing what went wrong
        context: Optional additional context about where the error occurred
    """

    def __init__(self, message: str, context: str | None = None) -> None:
        self.message = message
        self.context = context

        logger.debug("CollocationLab exception: %s", self._format_message())
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with optional context."""
        if self.context:
            return f"{self.message} (Context: {self.context})"
        return self.message


class ConfigurationError(CollocationLabBaseError):
    """
    Raised when there is an invalid or incomplete CollocationLab configuration.

    Examples:
        - Unknown transcription scheme name
        - Fewer than two mesh points
        - Missing dynamics
        - Inconsistent bounds
    """

    pass


class UnsupportedFeatureError(CollocationLabBaseError):
    """
    Raised when a transcription scheme cannot represent a requested feature.

    The trapezoidal scheme, for example, evaluates dynamics and constraints only
    at the mesh nodes and therefore cannot enforce kinematic constraint
    derivatives. The combination is rejected before any variable is created.
    """

    pass


class DataIntegrityError(CollocationLabBaseError):
    """
    Raised when internal data corruption or inconsistency is detected.

    Examples:
        - NaN or infinite values in computed results
        - Mismatched array dimensions in internal calculations
        - Failure while assembling the nonlinear program
    """

    pass


class DimensionMismatchError(DataIntegrityError):
    """
    Raised when a problem evaluator returns an output of unexpected size.

    Detected the first time the evaluator is invoked, which happens while the
    transcription wraps the problem's callables.
    """

    pass


class SolutionExtractionError(CollocationLabBaseError):
    """
    Raised when solution data cannot be extracted from the optimization result.

    This exception occurs when the raw solver output cannot be unpacked into a
    Solution, typically due to unexpected solver behavior.
    """

    pass
