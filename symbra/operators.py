"""
Operator metadata for SYMBRA.

Every operator the engine knows about is a member of the closed ``Operator``
enum, and every member has exactly one ``OperatorInfo`` record in
``OPERATORS``. The rewrite rules never hard-code algebraic facts; they ask the
table for an operator's neutral element, inverse, distributive partner and
so on.

    from symbra.operators import Operator

    Operator.ADDITION.info.neutral               # => 0
    Operator.ADDITION.info.distributive_partner  # => Operator.MULTIPLICATION
    Operator.MULTIPLICATION.info.inverse         # => Operator.RECIPROCAL
"""

from enum import Enum
from typing import Dict, Optional


class Operator(Enum):
    """The closed set of operators an expression node may carry."""

    NEGATION = "negation"
    RECIPROCAL = "reciprocal"
    FACTORIAL = "factorial"
    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    MULTIPLICATION = "multiplication"
    DIVISION = "division"
    EXPONENTIATION = "exponentiation"
    LOGARITHM = "logarithm"
    ROOT = "root"

    @property
    def info(self) -> "OperatorInfo":
        """Metadata record for this operator."""
        return OPERATORS[self]

    @property
    def symbol(self) -> str:
        """Symbol used when rendering: "+", "*", "log", ..."""
        return OPERATORS[self].symbol

    def __repr__(self) -> str:
        return f"Operator.{self.name}"


class Arity:
    """
    Operand count requirement of an operator.

    Either an exact count (``Arity(1)``) or a lower bound for the variadic
    operators (``Arity(2, variadic=True)``).
    """

    __slots__ = ('count', 'variadic')

    def __init__(self, count: int, variadic: bool = False):
        self.count = count
        self.variadic = variadic

    def accepts(self, n: int) -> bool:
        """Check whether n operands satisfy this arity."""
        if self.variadic:
            return n >= self.count
        return n == self.count

    def describe(self) -> str:
        """Human readable form: "1", "2" or "at least 2"."""
        if self.variadic:
            return f"at least {self.count}"
        return str(self.count)

    def __eq__(self, other):
        if isinstance(other, Arity):
            return self.count == other.count and self.variadic == other.variadic
        return NotImplemented

    def __hash__(self):
        return hash((self.count, self.variadic))

    def __repr__(self) -> str:
        if self.variadic:
            return f"Arity({self.count}, variadic=True)"
        return f"Arity({self.count})"


UNARY = Arity(1)
BINARY = Arity(2)
VARIADIC = Arity(2, variadic=True)

LEFT = "left"
RIGHT = "right"


class OperatorInfo:
    """Immutable metadata for one operator.

    All fields are required so a new operator cannot silently pick up a
    default it does not actually have.
    """

    __slots__ = (
        'symbol', 'arity', 'precedence', 'associativity', 'commutative',
        'associative', 'distributive_partner', 'neutral', 'inverse',
    )

    def __init__(self, *, symbol: str, arity: Arity, precedence: int,
                 associativity: str, commutative: bool, associative: bool,
                 distributive_partner: Optional[Operator],
                 neutral: Optional[int], inverse: Optional[Operator]):
        if associativity not in (LEFT, RIGHT):
            raise ValueError(f"associativity must be 'left' or 'right', got {associativity!r}")
        object.__setattr__(self, 'symbol', symbol)
        object.__setattr__(self, 'arity', arity)
        object.__setattr__(self, 'precedence', precedence)
        object.__setattr__(self, 'associativity', associativity)
        object.__setattr__(self, 'commutative', commutative)
        object.__setattr__(self, 'associative', associative)
        object.__setattr__(self, 'distributive_partner', distributive_partner)
        object.__setattr__(self, 'neutral', neutral)
        object.__setattr__(self, 'inverse', inverse)

    def __setattr__(self, name, value):
        raise AttributeError("OperatorInfo is read-only")

    def __repr__(self) -> str:
        return (f"OperatorInfo(symbol={self.symbol!r}, arity={self.arity!r}, "
                f"precedence={self.precedence})")


# ============================================================
# Operator Table
# ============================================================

OPERATORS: Dict[Operator, OperatorInfo] = {
    Operator.NEGATION: OperatorInfo(
        symbol="-", arity=UNARY, precedence=30, associativity=RIGHT,
        commutative=False, associative=False,
        distributive_partner=None, neutral=None, inverse=None,
    ),
    Operator.RECIPROCAL: OperatorInfo(
        symbol="recip", arity=UNARY, precedence=30, associativity=RIGHT,
        commutative=False, associative=False,
        distributive_partner=None, neutral=None, inverse=None,
    ),
    Operator.FACTORIAL: OperatorInfo(
        symbol="!", arity=UNARY, precedence=50, associativity=LEFT,
        commutative=False, associative=False,
        distributive_partner=None, neutral=None, inverse=None,
    ),
    Operator.ADDITION: OperatorInfo(
        symbol="+", arity=VARIADIC, precedence=10, associativity=LEFT,
        commutative=True, associative=True,
        distributive_partner=Operator.MULTIPLICATION, neutral=0,
        inverse=Operator.NEGATION,
    ),
    Operator.SUBTRACTION: OperatorInfo(
        symbol="-", arity=VARIADIC, precedence=10, associativity=LEFT,
        commutative=False, associative=False,
        distributive_partner=None, neutral=None, inverse=None,
    ),
    Operator.MULTIPLICATION: OperatorInfo(
        symbol="*", arity=VARIADIC, precedence=20, associativity=LEFT,
        commutative=True, associative=True,
        distributive_partner=Operator.EXPONENTIATION, neutral=1,
        inverse=Operator.RECIPROCAL,
    ),
    Operator.DIVISION: OperatorInfo(
        symbol="/", arity=VARIADIC, precedence=20, associativity=LEFT,
        commutative=False, associative=False,
        distributive_partner=None, neutral=None, inverse=None,
    ),
    Operator.EXPONENTIATION: OperatorInfo(
        symbol="^", arity=BINARY, precedence=40, associativity=RIGHT,
        commutative=False, associative=False,
        distributive_partner=None, neutral=None, inverse=None,
    ),
    Operator.LOGARITHM: OperatorInfo(
        symbol="log", arity=BINARY, precedence=60, associativity=LEFT,
        commutative=False, associative=False,
        distributive_partner=None, neutral=None, inverse=None,
    ),
    Operator.ROOT: OperatorInfo(
        symbol="root", arity=BINARY, precedence=60, associativity=LEFT,
        commutative=False, associative=False,
        distributive_partner=None, neutral=None, inverse=None,
    ),
}


def info(operator: Operator) -> OperatorInfo:
    """Look up the metadata record for an operator."""
    return OPERATORS[operator]


def _check_table() -> None:
    missing = [op.name for op in Operator if op not in OPERATORS]
    if missing:
        raise RuntimeError(f"Operator table has no entry for: {', '.join(missing)}")


_check_table()
