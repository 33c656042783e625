"""
Rewrite rules for SYMBRA.

Each rule is a pure function: it takes an operator node (or, for the
associative pipeline, an operator and an operand list) and returns the
rewritten value without touching its input. A rule whose preconditions do
not hold returns its input unchanged; a miss is never an error.

The rules consult the operator table for every algebraic fact they need:

    neutral element       remove_neutral   (+ x 0) -> x
    associativity         flatten          (+ (+ x y) z) -> (+ x y z)
    inverse operator      collect_terms    (+ x (- x)) -> 0
    distributive partner  collect_terms    (+ x x x) -> (* 3 x)

Rules that create new nodes take a ``rewrite`` callback. The driver passes
its node-level reducer so freshly built nodes are reduced too; their reused
children are already simplified.
"""

from typing import Callable, Dict, Iterable, List, Tuple

from .expression import (
    Expression, Constant, OperatorExpression, has_operator,
)
from .operators import Operator, OPERATORS

RewriteFn = Callable[[Expression], Expression]


def _unchanged(expr: Expression) -> Expression:
    return expr


# ============================================================
# Helpers
# ============================================================

def assemble(operator: Operator, operands: Iterable[Expression]) -> Expression:
    """
    Rebuild a node from an operand list that may have shrunk.

    No operands gives the operator's neutral element and a single operand
    stands for itself; anything else becomes a regular node.
    """
    operands = list(operands)
    if not operands:
        neutral = OPERATORS[operator].neutral
        if neutral is None:
            raise ValueError(f"Operator {operator.symbol} has no neutral element")
        return Constant(neutral)
    if len(operands) == 1:
        return operands[0]
    return OperatorExpression(operator, operands)


def term_of(operator: Operator, operand: Expression) -> Tuple[Expression, int]:
    """
    Split an operand of ``operator`` into (base, coefficient).

    Under addition:
        x         -> (x, 1)
        (* 3 x)   -> (x, 3)
        (- x)     -> (x, -1)
        (- (* 7 x)) -> (x, -7)

    Under multiplication:
        (^ x 3)   -> (x, 3)
        (recip x) -> (x, -1)
        (^ 2 x)   -> ((^ 2 x), 1)

    Exponentiation does not commute, so only a constant exponent counts.
    """
    meta = OPERATORS[operator]
    inverse = meta.inverse
    if inverse is not None and has_operator(operand, inverse) and len(operand.operands) == 1:
        base, coefficient = term_of(operator, operand.operands[0])
        return base, -coefficient

    partner = meta.distributive_partner
    if partner is not None and has_operator(operand, partner) and len(operand.operands) == 2:
        left, right = operand.operands
        left_const = isinstance(left, Constant)
        right_const = isinstance(right, Constant)
        if left_const != right_const:
            if right_const:
                return left, right.value
            # constant on the left is only a coefficient when the partner commutes
            if OPERATORS[partner].commutative:
                return right, left.value

    return operand, 1


def scaled(operator: Operator, base: Expression, coefficient: int) -> Expression:
    """Build ``base`` repeated ``coefficient`` times under ``operator``."""
    if coefficient == 1:
        return base
    partner = OPERATORS[operator].distributive_partner
    if OPERATORS[partner].commutative:
        return OperatorExpression(partner, (Constant(coefficient), base))
    return OperatorExpression(partner, (base, Constant(coefficient)))


# ============================================================
# Rules
# ============================================================

def double_negation(node: OperatorExpression) -> Expression:
    """(- (- x)) => x"""
    child = node.operands[0]
    if has_operator(child, Operator.NEGATION):
        return child.operands[0]
    return node


def eliminate_subtraction(node: OperatorExpression,
                          rewrite: RewriteFn = _unchanged) -> Expression:
    """
    (- a b2 ... bn) => (+ a (- (+ b2 ... bn 0)))

    The trailing 0 keeps the inner addition at two operands or more when
    there is a single subtrahend.
    """
    if not has_operator(node, Operator.SUBTRACTION):
        return node
    first, rest = node.operands[0], node.operands[1:]
    subtrahends = rewrite(OperatorExpression(Operator.ADDITION, rest + (Constant(0),)))
    negated = rewrite(OperatorExpression(Operator.NEGATION, (subtrahends,)))
    return rewrite(OperatorExpression(Operator.ADDITION, (first, negated)))


def remove_neutral(operator: Operator, operands: Iterable[Expression]) -> List[Expression]:
    """Drop every operand equal to the operator's neutral element."""
    operands = list(operands)
    neutral = OPERATORS[operator].neutral
    if neutral is None:
        return operands
    identity = Constant(neutral)
    return [operand for operand in operands if operand != identity]


def flatten(operator: Operator, operands: Iterable[Expression]) -> List[Expression]:
    """Splice children that use the same operator into the operand list."""
    result: List[Expression] = []
    for operand in operands:
        if has_operator(operand, operator):
            result.extend(operand.operands)
        else:
            result.append(operand)
    return result


def collect_terms(operator: Operator, operands: Iterable[Expression],
                  rewrite: RewriteFn = _unchanged) -> List[Expression]:
    """
    Group operands sharing a base into one scaled term.

    Coefficients accumulate per base in first-occurrence order and bases that
    cancel to zero disappear. Operands whose base is a constant are kept
    where they stand, so constants are never scaled against each other.

    Examples:
        (+ x x x)                  => [(* 3 x)]
        (+ (* 3 x) (- (* 7 x)) y)  => [(* -4 x), y]
        (+ x (- (* 2 x)))          => [(* -1 x)]
        (+ x (- x))                => []
        (+ 2 (- 3))                => [2, (- 3)]
        (* x x (recip y))          => [(^ x 2), (^ y -1)]
    """
    operands = list(operands)
    if OPERATORS[operator].distributive_partner is None:
        return operands

    coefficients: Dict[Expression, int] = {}
    # (collected, expr): a base from the map, or an operand kept as-is
    layout: List[Tuple[bool, Expression]] = []
    for operand in operands:
        base, coefficient = term_of(operator, operand)
        if isinstance(base, Constant):
            layout.append((False, operand))
            continue
        if base not in coefficients:
            coefficients[base] = 0
            layout.append((True, base))
        coefficients[base] += coefficient

    terms: List[Expression] = []
    for collected, expr in layout:
        if not collected:
            terms.append(expr)
            continue
        coefficient = coefficients[expr]
        if coefficient == 0:
            continue
        term = scaled(operator, expr, coefficient)
        # bases are already simplified, only new nodes need reducing
        terms.append(term if term is expr else rewrite(term))
    return terms
