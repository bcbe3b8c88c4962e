"""
lispbot - Build Lisp programs across chat messages.

Fragments are collected in a CodeAccumulator until their parens balance,
then evaluated by an EvaluationSession whose bindings outlive the run.
"""

from .accumulator import CodeAccumulator
from .balance import Balanced, ExtraClosers, MissingClosers, scan
from .config import Config, LineBreak, Mode
from .conversation import Conversation
from .session import EvaluationSession, Outcome

__all__ = [
    "Balanced", "ExtraClosers", "MissingClosers", "scan",
    "CodeAccumulator", "Config", "LineBreak", "Mode",
    "Conversation", "EvaluationSession", "Outcome",
]
