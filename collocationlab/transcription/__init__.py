"""
Direct collocation transcription engine.
"""

from .core_transcription import Transcription
from .evaluators_transcription import build_problem_evaluators
from .types_transcription import ConstraintLayout, ProblemEvaluators, TranscriptionVariables


__all__ = [
    "ConstraintLayout",
    "ProblemEvaluators",
    "Transcription",
    "TranscriptionVariables",
    "build_problem_evaluators",
]
