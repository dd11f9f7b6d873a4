"""
Safe formula language used by calculation, condition, switch and transform steps.
"""

from .ast_nodes import BinaryOp, Call, Literal, Node, UnaryOp, Variable, variables_in
from .builtins import BUILTIN_FUNCTIONS
from .cache import FormulaCache
from .evaluator import ExpressionEvaluator, evaluate, validate_formula
from .parser import parse_formula

__all__ = [
    "BUILTIN_FUNCTIONS",
    "BinaryOp",
    "Call",
    "ExpressionEvaluator",
    "FormulaCache",
    "Literal",
    "Node",
    "UnaryOp",
    "Variable",
    "evaluate",
    "parse_formula",
    "validate_formula",
    "variables_in",
]
