"""Per-provider rule evaluators."""

from app.services.evaluators.base import Evaluator
from app.services.evaluators.compute import ComputeEvaluator
from app.services.evaluators.database import DatabaseEvaluator
from app.services.evaluators.identity import IdentityEvaluator
from app.services.evaluators.storage import StorageEvaluator

__all__ = [
    "ComputeEvaluator",
    "DatabaseEvaluator",
    "Evaluator",
    "IdentityEvaluator",
    "StorageEvaluator",
]
