"""Public entry points for chainopt verifier helpers."""

from chainopt.verifier.equivalence import EquivalenceReport, check_equivalence, default_samples
from chainopt.verifier.evaluator import EvaluationError, evaluate_expression, run_chain

__all__ = [
    "EquivalenceReport",
    "EvaluationError",
    "check_equivalence",
    "default_samples",
    "evaluate_expression",
    "run_chain",
]
