"""
Closed table of transcription schemes.
"""

from ..exceptions import ConfigurationError
from .base import (
    ConstraintBlock,
    NodeData,
    SchemeStrategy,
    TranscriptionScheme,
    VariableLayout,
)
from .trapezoidal import TRAPEZOIDAL_STRATEGY


SCHEME_STRATEGIES: dict[TranscriptionScheme, SchemeStrategy] = {
    TranscriptionScheme.TRAPEZOIDAL: TRAPEZOIDAL_STRATEGY,
}


def get_scheme_strategy(name: str) -> SchemeStrategy:
    """
    Look a scheme up by its configured name.

    Raises:
        ConfigurationError: If the name is not one of the supported schemes.
    """
    try:
        scheme = TranscriptionScheme(name)
    except ValueError:
        supported = ", ".join(repr(s.value) for s in TranscriptionScheme)
        raise ConfigurationError(
            f"Unknown transcription scheme '{name}'.", f"Supported schemes: {supported}"
        ) from None
    return SCHEME_STRATEGIES[scheme]


__all__ = [
    "SCHEME_STRATEGIES",
    "ConstraintBlock",
    "NodeData",
    "SchemeStrategy",
    "TranscriptionScheme",
    "VariableLayout",
    "get_scheme_strategy",
]
