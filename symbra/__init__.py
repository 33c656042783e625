"""
SYMBRA - Symbolic Reduction of Algebraic expressions

A small term-rewriting engine that brings algebraic expression trees into a
reduced form: double negations cancel, neutral elements disappear, nested
sums and products flatten, subtraction becomes addition of a negation, and
like terms are collected.

Quick Start:
    from symbra import E, Operator, simplify

    x, y = E.vars("x", "y")
    expr = E.op(Operator.ADDITION,
                E.op(Operator.ADDITION, x, x),
                x,
                E.op(Operator.MULTIPLICATION, 2, y),
                y)

    str(simplify(expr))   # => "(+ (* 3 x) (* 3 y))"

Operators:
    NEGATION (-)  RECIPROCAL (recip)  FACTORIAL (!)
    ADDITION (+)  SUBTRACTION (-)  MULTIPLICATION (*)  DIVISION (/)
    EXPONENTIATION (^)  LOGARITHM (log)  ROOT (root)

Rules (in dispatch order):
    double-negation          (- (- x)) => x
    subtraction-elimination  (- a b) => (+ a (- b))
    neutral-element          (+ x 0) => x, (* x 1) => x
    associative-flatten      (+ (+ x y) z) => (+ x y z)
    term-collection          (+ x (* 2 x)) => (* 3 x)
"""

__version__ = "0.1.0"

from .operators import (
    Operator,
    Arity,
    OperatorInfo,
    OPERATORS,
    info,
)

from .expression import (
    Expression,
    Constant,
    Symbol,
    OperatorExpression,
    ConstructionError,
    ArityError,
    try_build,
    build,
    has_operator,
    E,
    format_sexpr,
    format_infix,
)

from .simplifier import (
    Simplifier,
    RewriteStep,
    RewriteTrace,
    RULE_NAMES,
    simplify,
    normalize,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Operators
    "Operator",
    "Arity",
    "OperatorInfo",
    "OPERATORS",
    "info",
    # Expressions
    "Expression",
    "Constant",
    "Symbol",
    "OperatorExpression",
    "has_operator",
    # Construction
    "ConstructionError",
    "ArityError",
    "try_build",
    "build",
    "E",
    # Rendering
    "format_sexpr",
    "format_infix",
    # Simplification
    "Simplifier",
    "RewriteStep",
    "RewriteTrace",
    "RULE_NAMES",
    "simplify",
    "normalize",
]
