"""Tests for the simplification driver."""

import random

import pytest
from structlog.testing import capture_logs
from symbra import (
    E, Operator, Constant, Symbol, Simplifier, RULE_NAMES,
    simplify, normalize, format_sexpr,
)

ADD = Operator.ADDITION
SUB = Operator.SUBTRACTION
MUL = Operator.MULTIPLICATION
DIV = Operator.DIVISION
NEG = Operator.NEGATION
RECIP = Operator.RECIPROCAL
FACT = Operator.FACTORIAL
POW = Operator.EXPONENTIATION
LOG = Operator.LOGARITHM


def s(expr):
    """Simplify once and render."""
    return format_sexpr(simplify(expr))


def mixed_terms():
    """(x + 2x) + -(7x) + y + 2y + 3y"""
    x, y = E.vars("x", "y")
    return E.op(
        ADD,
        E.op(ADD, x, E.op(MUL, 2, x)),
        E.op(NEG, E.op(MUL, 7, x)),
        y,
        E.op(MUL, 2, y),
        E.op(MUL, 3, y),
    )


def unreduced_products():
    """xy + xy + 2xy, whose collected terms collide again after reduction."""
    xy = E.op(MUL, "x", "y")
    return E.op(ADD, xy, xy, E.op(MUL, 2, "x", "y"))


class TestLeaves:
    """Tests for leaves."""

    def test_leaves_unchanged(self):
        """Constants and symbols come back as they are."""
        x = Symbol("x")
        assert simplify(x) is x
        assert simplify(Constant(7)) == Constant(7)


class TestDoubleNegation:
    """Tests for double negation through the driver."""

    def test_double(self):
        """(- (- x)) => x"""
        assert simplify(E.op(NEG, E.op(NEG, "x"))) == Symbol("x")

    def test_triple(self):
        """(- (- (- x))) => (- x)"""
        assert s(E.op(NEG, E.op(NEG, E.op(NEG, "x")))) == "(- x)"

    def test_quadruple(self):
        """Post-order reduction removes every pair."""
        expr = E.op(NEG, E.op(NEG, E.op(NEG, E.op(NEG, "x"))))
        assert simplify(expr) == Symbol("x")


class TestSubtraction:
    """Tests for subtraction elimination through the driver."""

    def test_constants(self):
        """2 - 3 => 2 + (-3)"""
        assert s(E.op(SUB, 2, 3)) == "(+ 2 (- 3))"

    def test_self_cancels(self):
        """x - x => 0"""
        assert simplify(E.op(SUB, "x", "x")) == Constant(0)

    def test_several_subtrahends(self):
        """a - b - c => a + -1 * (b + c)"""
        assert s(E.op(SUB, "a", "b", "c")) == "(+ a (* -1 (+ b c)))"

    def test_subtracting_negation(self):
        """a - (-b) => a + b"""
        assert s(E.op(SUB, "a", E.op(NEG, "b"))) == "(+ a b)"

    def test_like_terms(self):
        """3x - x => 2x"""
        x = Symbol("x")
        assert s(E.op(SUB, E.op(MUL, 3, x), x)) == "(* 2 x)"

    def test_net_minus_one(self):
        """x - 2x => -1 * x"""
        x = Symbol("x")
        assert s(E.op(SUB, x, E.op(MUL, 2, x))) == "(* -1 x)"
        assert s(E.op(ADD, x, E.op(NEG, E.op(MUL, 2, x)))) == "(* -1 x)"

    def test_symbol_subtrahend(self):
        """a - b => a + -1 * b"""
        assert s(E.op(SUB, "a", "b")) == "(+ a (* -1 b))"


class TestNeutralElement:
    """Tests for neutral element removal through the driver."""

    def test_add_zero(self):
        """x + 0 => x"""
        assert simplify(E.op(ADD, "x", 0)) == Symbol("x")

    def test_mul_one(self):
        """y * 1 => y"""
        assert simplify(E.op(MUL, "y", 1)) == Symbol("y")

    def test_keeps_other_operands(self):
        """x + y + 0 => x + y"""
        assert s(E.op(ADD, "x", "y", 0)) == "(+ x y)"

    def test_all_neutral(self):
        """0 + 0 => 0 and 1 * 1 => 1"""
        assert simplify(E.op(ADD, 0, 0)) == Constant(0)
        assert simplify(E.op(MUL, 1, 1)) == Constant(1)

    def test_zero_not_removed_from_product(self):
        """0 is not neutral for multiplication."""
        assert s(E.op(MUL, "x", 0)) == "(* x 0)"


class TestTermCollection:
    """Tests for flattening and term collection through the driver."""

    def test_nested_sum(self):
        """(x + x) + x => 3x"""
        x = Symbol("x")
        assert s(E.op(ADD, E.op(ADD, x, x), x)) == "(* 3 x)"

    def test_full_cancellation(self):
        """x + (-x) => 0"""
        x = Symbol("x")
        assert simplify(E.op(ADD, x, E.op(NEG, x))) == Constant(0)

    def test_multiplicative_cancellation(self):
        """x * (1/x) => 1"""
        x = Symbol("x")
        assert simplify(E.op(MUL, x, E.op(RECIP, x))) == Constant(1)

    def test_mixed_terms(self):
        """(x + 2x) - 7x + y + 2y + 3y => -4x + 6y"""
        assert s(mixed_terms()) == "(+ (* -4 x) (* 6 y))"

    def test_mixed_terms_operands(self):
        """The collected operands are exactly -4x and 6y."""
        result = simplify(mixed_terms())
        assert result.operator is ADD
        assert set(result.operands) == {E.op(MUL, -4, "x"), E.op(MUL, 6, "y")}

    def test_powers(self):
        """x * x * x => x^3"""
        x = Symbol("x")
        assert s(E.op(MUL, x, x, x)) == "(^ x 3)"

    def test_products_flatten_and_collect(self):
        """(x * y) * (x * 2) => x^2 * y * 2"""
        expr = E.op(MUL, E.op(MUL, "x", "y"), E.op(MUL, "x", 2))
        assert s(expr) == "(* (^ x 2) y 2)"

    def test_reciprocal_power(self):
        """x * 1/x^3 => x^-2"""
        x = Symbol("x")
        assert s(E.op(MUL, x, E.op(RECIP, E.op(POW, x, 3)))) == "(^ x -2)"

    def test_distinct_terms_unchanged(self):
        """x + y has nothing to collect."""
        assert s(E.op(ADD, "x", "y")) == "(+ x y)"

    def test_scaled_product_is_flattened(self):
        """xy + xy => 2 * x * y rather than 2 * (x * y)."""
        xy = E.op(MUL, "x", "y")
        assert s(E.op(ADD, xy, xy)) == "(* 2 x y)"


class TestOtherOperators:
    """Tests for operators without node rules."""

    def test_children_still_simplified(self):
        """Operands of ^, /, ! and log are reduced."""
        assert s(E.op(POW, E.op(ADD, "x", 0), 2)) == "(^ x 2)"
        assert s(E.op(DIV, E.op(NEG, E.op(NEG, "x")), "y")) == "(/ x y)"
        assert s(E.op(FACT, E.op(ADD, "n", 0))) == "(! n)"
        assert s(E.op(LOG, 2, E.op(MUL, "x", "x"))) == "(log 2 (^ x 2))"

    def test_node_unchanged(self):
        """Already reduced nodes without a rule are returned as-is."""
        expr = E.op(DIV, "x", "y", "z")
        assert simplify(expr) is expr


class TestPurity:
    """Tests that simplify does not modify its argument."""

    def test_argument_untouched(self):
        """The original tree still renders the same after simplify."""
        expr = mixed_terms()
        before = format_sexpr(expr)
        simplify(expr)
        assert format_sexpr(expr) == before

    def test_rejects_non_expression(self):
        """Only Expressions can be simplified."""
        with pytest.raises(TypeError):
            simplify(["+", "x", 0])


class TestCollidingTerms:
    """Tests for collected terms that meet again once reduced."""

    def test_constants_not_collected(self):
        """1 + 1 + 2 keeps its constants."""
        assert s(E.op(ADD, 1, 1, 2)) == "(+ 1 1 2)"

    def test_scaled_products_merge(self):
        """xy + xy + 2xy + z collects in a single call."""
        xy = E.op(MUL, "x", "y")
        expr = E.op(ADD, xy, xy, E.op(MUL, 2, "x", "y"), "z")
        assert s(expr) == "(+ (* 2 2 x y) z)"

    def test_unreduced_products(self):
        """The two 2xy terms built in one round merge in the next."""
        assert s(unreduced_products()) == "(* 2 2 x y)"

    def test_constant_powers(self):
        """Powers of constants are opaque factors."""
        expr = E.op(NEG, E.op(MUL, 3, 3, E.op(POW, 3, 2)))
        assert s(expr) == "(- (* 3 3 (^ 3 2)))"


def random_tree(rng, depth):
    """Build a random tree over constants, symbols and both partner pairs."""
    if depth == 0 or rng.random() < 0.25:
        return E(rng.choice([0, 1, 2, 3, -1, "x", "y"]))
    operator = rng.choice([ADD, SUB, MUL, NEG, RECIP, POW])
    if operator in (NEG, RECIP):
        count = 1
    elif operator is POW:
        count = 2
    else:
        count = rng.randint(2, 4)
    return E.op(operator, *[random_tree(rng, depth - 1) for _ in range(count)])


class TestIdempotence:
    """Tests that a second pass leaves simplified results alone."""

    @pytest.mark.parametrize("build", [
        lambda: E.op(NEG, E.op(NEG, "x")),
        lambda: E.op(SUB, 2, 3),
        lambda: E.op(SUB, "a", "b", "c"),
        lambda: E.op(SUB, "x", E.op(MUL, 2, "x")),
        lambda: E.op(ADD, E.op(ADD, "x", "x"), "x"),
        lambda: E.op(ADD, "x", E.op(NEG, "x")),
        lambda: E.op(MUL, "x", "x", "x"),
        lambda: E.op(MUL, "x", E.op(RECIP, E.op(POW, "x", 3))),
        lambda: E.op(MUL, E.op(MUL, "x", "y"), E.op(MUL, "x", 2)),
        lambda: E.op(ADD, 1, 1, 2),
        lambda: E.op(ADD, E.op(MUL, "x", "y"), E.op(MUL, "x", "y"),
                     E.op(MUL, 2, "x", "y"), "z"),
        lambda: E.op(NEG, E.op(MUL, 3, 3, E.op(POW, 3, 2))),
        mixed_terms,
        unreduced_products,
    ])
    def test_second_pass_is_noop(self, build):
        """simplify(simplify(e)) renders like simplify(e)."""
        once = simplify(build())
        twice = simplify(once)
        assert format_sexpr(twice) == format_sexpr(once)

    @pytest.mark.parametrize("seed", range(10))
    def test_random_trees(self, seed):
        """Idempotence holds on generated trees."""
        rng = random.Random(seed)
        for _ in range(100):
            expr = random_tree(rng, depth=4)
            once = simplify(expr)
            assert format_sexpr(simplify(once)) == format_sexpr(once), format_sexpr(expr)


class TestNormalize:
    """Tests for fixed-point normalization."""

    def test_simplified_tree_is_fixed_point(self):
        """normalize() stops once a pass changes nothing."""
        result = normalize(unreduced_products())
        assert format_sexpr(result) == "(* 2 2 x y)"
        assert simplify(result) == result

    def test_matches_simplify(self):
        """A single pass already reaches the fixed point."""
        rng = random.Random(7)
        for _ in range(20):
            expr = random_tree(rng, depth=3)
            assert normalize(expr) == simplify(expr)

    def test_already_normal(self):
        """A normalized tree comes back unchanged."""
        x = Symbol("x")
        assert normalize(x) is x

    def test_step_limit(self):
        """normalize() stops after max_steps passes and logs a warning."""
        with capture_logs() as logs:
            result = normalize(E.op(ADD, "x", 0), max_steps=1)
        assert result == Symbol("x")
        events = [entry for entry in logs if entry["event"] == "normalize_step_limit"]
        assert len(events) == 1
        assert events[0]["log_level"] == "warning"
        assert events[0]["max_steps"] == 1

    def test_converged_logged(self):
        """Convergence is logged at debug level."""
        with capture_logs() as logs:
            normalize(E.op(ADD, "x", 0))
        events = [entry for entry in logs if entry["event"] == "normalize_converged"]
        assert len(events) == 1
        assert events[0]["passes"] == 2

    def test_trace(self):
        """normalize() can return a trace across passes."""
        result, trace = Simplifier().normalize(unreduced_products(), trace=True)
        assert trace.final == result
        assert trace.rule_counts()["term-collection"] >= 2


class TestSimplifierConfig:
    """Tests for Simplifier configuration."""

    def test_callable(self):
        """engine(expr) is engine.simplify(expr)."""
        engine = Simplifier()
        expr = E.op(ADD, "x", 0)
        assert engine(expr) == engine.simplify(expr) == Symbol("x")

    def test_rules_in_dispatch_order(self):
        """All rules are active by default."""
        assert Simplifier().rules == list(RULE_NAMES)

    def test_disable_term_collection(self):
        """Without term collection sums are only flattened."""
        engine = Simplifier(disabled_rules=["term-collection"])
        x = Symbol("x")
        assert format_sexpr(engine(E.op(ADD, E.op(ADD, x, x), x))) == "(+ x x x)"

    def test_disable_flatten(self):
        """Without flattening nested sums count as their own base."""
        engine = Simplifier().disable_rule("associative-flatten")
        expr = E.op(ADD, E.op(ADD, "x", "y"), "x")
        assert format_sexpr(engine(expr)) == "(+ (+ x y) x)"
        assert s(expr) == "(+ (* 2 x) y)"

    def test_disable_double_negation(self):
        """Disabled rules never fire."""
        engine = Simplifier(disabled_rules=["double-negation"])
        expr = E.op(NEG, E.op(NEG, "x"))
        assert engine(expr) == expr

    def test_disable_subtraction(self):
        """Subtraction stays when its rule is off."""
        engine = Simplifier(disabled_rules=["subtraction-elimination"])
        assert format_sexpr(engine(E.op(SUB, 2, 3))) == "(- 2 3)"

    def test_disable_neutral(self):
        """Zero becomes an ordinary term when neutral removal is off."""
        engine = Simplifier(disabled_rules=["neutral-element"])
        assert format_sexpr(engine(E.op(ADD, "x", 0))) == "(+ x 0)"

    def test_enable_rule(self):
        """enable_rule() restores a disabled rule."""
        engine = Simplifier(disabled_rules=["double-negation"])
        assert "double-negation" not in engine.rules
        assert engine.enable_rule("double-negation") is engine
        assert engine(E.op(NEG, E.op(NEG, "x"))) == Symbol("x")

    def test_unknown_rule(self):
        """Unknown rule names are rejected."""
        with pytest.raises(ValueError, match="Unknown rule"):
            Simplifier(disabled_rules=["constant-folding"])
        with pytest.raises(ValueError):
            Simplifier().enable_rule("nope")

    def test_invalid_max_steps(self):
        """max_steps must be positive."""
        with pytest.raises(ValueError):
            Simplifier(max_steps=0)

    def test_repr(self):
        """Simplifier has a sensible repr."""
        assert "Simplifier" in repr(Simplifier())
