"""
Expression data model, builder and rendering for SYMBRA.

An expression is one of three immutable values:

    Constant(3)                                   - integer literal
    Symbol("x")                                   - named variable
    OperatorExpression(Operator.ADDITION, [...])  - operator node

Equality is structural and order-sensitive, and hashing agrees with it, so
expressions can be used as dictionary keys:

    Constant(2) == Constant(2)                                # => True
    E.op(Operator.ADDITION, "x", "y") == E.op(Operator.ADDITION, "y", "x")
                                                              # => False

Construction:
    from symbra import E, Operator

    # Build programmatically, ints and strs are shorthand for leaves
    expr = E.op(Operator.ADDITION, "x", E.op(Operator.MULTIPLICATION, 2, "y"))

    # Result-style construction: errors are returned, not raised
    result = try_build(Operator.NEGATION, [])        # => ArityError(...)
    result = try_build(Operator.ADDITION, [result, "x"])   # same ArityError

Rendering:
    format_sexpr(expr)  # => "(+ x (* 2 y))"
    format_infix(expr)  # => "x + 2 * y"
"""

from typing import Iterable, List, Tuple, Union

import structlog

from .operators import Operator, OPERATORS, LEFT

logger = structlog.get_logger()

# Anything the builder accepts where an expression is expected
OperandType = Union["Expression", "ConstructionError", int, str]


# ============================================================
# Errors
# ============================================================

class ConstructionError(ValueError):
    """Raised (or returned by try_build) when an expression cannot be built."""


class ArityError(ConstructionError):
    """The operand count does not satisfy the operator's arity."""

    def __init__(self, operator: Operator, expected: str, actual: int):
        self.operator = operator
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Operator {operator.symbol} expects {expected} operands, "
            f"but {actual} were provided"
        )


# ============================================================
# Expression Variants
# ============================================================

class Expression:
    """Base class of the three expression variants."""

    __slots__ = ()

    def is_leaf(self) -> bool:
        """True for constants and symbols."""
        return True

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __str__(self) -> str:
        return format_sexpr(self)


class Constant(Expression):
    """
    An integer literal.

    Python ints are arbitrary precision, so coefficient arithmetic in term
    collection never overflows.
    """

    __slots__ = ('value',)

    def __init__(self, value: int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Constant value must be an int, got {type(value).__name__}")
        object.__setattr__(self, 'value', value)

    def __eq__(self, other):
        if isinstance(other, Constant):
            return self.value == other.value
        if isinstance(other, Expression):
            return False
        return NotImplemented

    def __hash__(self):
        return hash((Constant, self.value))

    def __repr__(self) -> str:
        return f"Constant({self.value})"


class Symbol(Expression):
    """A named variable. Two symbols are equal iff their names are."""

    __slots__ = ('name',)

    def __init__(self, name: str):
        if not isinstance(name, str):
            raise TypeError(f"Symbol name must be a str, got {type(name).__name__}")
        if not name:
            raise ValueError("Symbol name must not be empty")
        object.__setattr__(self, 'name', name)

    def __eq__(self, other):
        if isinstance(other, Symbol):
            return self.name == other.name
        if isinstance(other, Expression):
            return False
        return NotImplemented

    def __hash__(self):
        return hash((Symbol, self.name))

    def __repr__(self) -> str:
        return f"Symbol({self.name!r})"


class OperatorExpression(Expression):
    """
    An operator applied to an ordered tuple of operands.

    The constructor enforces the operator's arity and raises ArityError on
    a mismatch, so every OperatorExpression in existence is well-formed.
    """

    __slots__ = ('operator', 'operands', '_hash')

    def __init__(self, operator: Operator, operands: Iterable[Expression]):
        if not isinstance(operator, Operator):
            raise TypeError(f"operator must be an Operator, got {type(operator).__name__}")
        operands = tuple(operands)
        for operand in operands:
            if not isinstance(operand, Expression):
                raise TypeError(
                    f"operands must be Expressions, got {type(operand).__name__}"
                )
        arity = OPERATORS[operator].arity
        if not arity.accepts(len(operands)):
            raise ArityError(operator, arity.describe(), len(operands))
        object.__setattr__(self, 'operator', operator)
        object.__setattr__(self, 'operands', operands)
        object.__setattr__(self, '_hash', hash((OperatorExpression, operator, operands)))

    def is_leaf(self) -> bool:
        return False

    def __eq__(self, other):
        if isinstance(other, OperatorExpression):
            return (self._hash == other._hash
                    and self.operator is other.operator
                    and self.operands == other.operands)
        if isinstance(other, Expression):
            return False
        return NotImplemented

    def __hash__(self):
        return self._hash

    def __repr__(self) -> str:
        return f"OperatorExpression({self.operator!r}, {list(self.operands)!r})"


def has_operator(expr: Expression, operator: Operator) -> bool:
    """Check if expr is an operator node carrying the given operator."""
    return isinstance(expr, OperatorExpression) and expr.operator is operator


# ============================================================
# Builder
# ============================================================

def _coerce(value) -> Expression:
    """Turn builder shorthand (int, str) into an Expression."""
    if isinstance(value, Expression):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a valid expression")
    if isinstance(value, int):
        return Constant(value)
    if isinstance(value, str):
        return Symbol(value)
    raise TypeError(f"Cannot build an expression from {type(value).__name__}")


def try_build(
    operator: Operator, operands: Iterable[OperandType]
) -> Union[Expression, ConstructionError]:
    """
    Build an operator expression, returning the error instead of raising.

    Args:
        operator: The operator of the new node
        operands: Ordered operand results. Each is an Expression, a
            ConstructionError from a nested try_build, or an int/str leaf.

    Returns:
        The new OperatorExpression, the first ConstructionError found among
        the operands (unchanged), or a new ArityError.
    """
    operands = list(operands)
    for operand in operands:
        if isinstance(operand, ConstructionError):
            return operand
    try:
        return OperatorExpression(operator, [_coerce(o) for o in operands])
    except ArityError as error:
        logger.debug(
            "construction_failed",
            operator=operator.name,
            expected=error.expected,
            actual=error.actual,
        )
        return error


def build(operator: Operator, operands: Iterable[OperandType]) -> Expression:
    """Build an operator expression, raising the ConstructionError on failure."""
    result = try_build(operator, operands)
    if isinstance(result, ConstructionError):
        raise result
    return result


class _ExprBuilder:
    """
    Expression builder for SYMBRA.

    Examples:
        from symbra import E, Operator

        E(3)                                # => Constant(3)
        E("x")                              # => Symbol('x')

        x, y = E.vars("x", "y")
        E.op(Operator.ADDITION, x, E.op(Operator.MULTIPLICATION, 2, y))

        E.op(Operator.NEGATION)             # raises ArityError
    """

    def __call__(self, value: Union[Expression, int, str]) -> Expression:
        """Coerce an int, str or Expression into an Expression."""
        return _coerce(value)

    def op(self, operator: Operator, *operands: OperandType) -> Expression:
        """Build an operator expression; raises ConstructionError on failure."""
        return build(operator, operands)

    def const(self, value: int) -> Constant:
        """Create a constant."""
        return Constant(value)

    def var(self, name: str) -> Symbol:
        """Create a symbol."""
        return Symbol(name)

    def vars(self, *names: str) -> Tuple[Symbol, ...]:
        """
        Create multiple symbols for unpacking.

        Example:
            x, y, z = E.vars("x", "y", "z")
        """
        return tuple(Symbol(name) for name in names)

    def __repr__(self) -> str:
        return "E (expression builder)"


# Singleton instance
E = _ExprBuilder()


# ============================================================
# Rendering
# ============================================================

def format_sexpr(expr: Expression) -> str:
    """
    Format an expression in fully parenthesized prefix notation.

    Examples:
        Constant(-4)                                  -> "-4"
        Symbol("x")                                   -> "x"
        Addition(2, Negation(3))                      -> "(+ 2 (- 3))"
        Logarithm(2, x)                               -> "(log 2 x)"
    """
    if isinstance(expr, Constant):
        return str(expr.value)
    if isinstance(expr, Symbol):
        return expr.name
    parts = [expr.operator.symbol] + [format_sexpr(o) for o in expr.operands]
    return "(" + " ".join(parts) + ")"


_ATOM_PRECEDENCE = 100


def _precedence(expr: Expression) -> int:
    if isinstance(expr, OperatorExpression):
        return OPERATORS[expr.operator].precedence
    if isinstance(expr, Constant) and expr.value < 0:
        # a negative literal binds like a negation
        return OPERATORS[Operator.NEGATION].precedence
    return _ATOM_PRECEDENCE


def _parenthesize(text: str, needed: bool) -> str:
    return f"({text})" if needed else text


def format_infix(expr: Expression) -> str:
    """
    Format an expression in conventional infix notation.

    Parentheses are only added where precedence or associativity
    requires them.

    Examples:
        (+ x (* 2 y))       -> "x + 2 * y"
        (* (+ x 1) y)       -> "(x + 1) * y"
        (- (+ x y))         -> "-(x + y)"
        (^ x (^ y 2))       -> "x^y^2"
        (^ (^ x y) 2)       -> "(x^y)^2"
        (recip x)           -> "1/x"
        (! n)               -> "n!"
        (log 2 x)           -> "log(2, x)"
    """
    if isinstance(expr, Constant):
        return str(expr.value)
    if isinstance(expr, Symbol):
        return expr.name

    operator = expr.operator
    meta = OPERATORS[operator]
    operands = expr.operands

    if operator in (Operator.LOGARITHM, Operator.ROOT):
        return f"{meta.symbol}({', '.join(format_infix(o) for o in operands)})"

    if operator is Operator.NEGATION:
        child = operands[0]
        return "-" + _parenthesize(format_infix(child), _precedence(child) <= meta.precedence)

    if operator is Operator.RECIPROCAL:
        child = operands[0]
        return "1/" + _parenthesize(format_infix(child), _precedence(child) <= meta.precedence)

    if operator is Operator.FACTORIAL:
        child = operands[0]
        return _parenthesize(format_infix(child), _precedence(child) <= meta.precedence) + "!"

    last = len(operands) - 1
    parts: List[str] = []
    for index, child in enumerate(operands):
        child_precedence = _precedence(child)
        if child_precedence < meta.precedence:
            needed = True
        elif child_precedence > meta.precedence:
            needed = False
        elif meta.associativity == LEFT:
            # (a - b) - c needs nothing, a - (b - c) does; a + (b + c) is fine
            needed = index > 0 and not (meta.associative and has_operator(child, operator))
        else:
            needed = index < last
        parts.append(_parenthesize(format_infix(child), needed))

    separator = meta.symbol if operator is Operator.EXPONENTIATION else f" {meta.symbol} "
    return separator.join(parts)
