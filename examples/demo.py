#!/usr/bin/env python3
"""
SYMBRA Feature Demonstration

This script demonstrates the major features of the SYMBRA library.
"""

from symbra import (
    E, Operator, Simplifier,
    simplify, normalize, try_build,
    format_sexpr, format_infix,
)

ADD = Operator.ADDITION
SUB = Operator.SUBTRACTION
MUL = Operator.MULTIPLICATION
NEG = Operator.NEGATION
RECIP = Operator.RECIPROCAL


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def show(expr, result):
    print(f"  {format_sexpr(expr)} => {format_sexpr(result)}")
    print(f"  {format_infix(expr)} => {format_infix(result)}")


def demo_basic_usage():
    """Demonstrate the individual rewrite rules."""
    section("Basic Usage")

    x, y = E.vars("x", "y")
    examples = [
        E.op(NEG, E.op(NEG, x)),
        E.op(SUB, 2, 3),
        E.op(ADD, x, 0),
        E.op(MUL, y, 1),
        E.op(ADD, E.op(ADD, x, x), x),
        E.op(MUL, x, x, E.op(RECIP, y)),
    ]

    for expr in examples:
        show(expr, simplify(expr))


def demo_term_collection():
    """Demonstrate collecting like terms."""
    section("Term Collection")

    x, y = E.vars("x", "y")
    expr = E.op(
        ADD,
        E.op(ADD, x, E.op(MUL, 2, x)),
        E.op(NEG, E.op(MUL, 7, x)),
        y,
        E.op(MUL, 2, y),
        E.op(MUL, 3, y),
    )
    show(expr, simplify(expr))


def demo_construction_errors():
    """Demonstrate arity checking and error propagation."""
    section("Construction Errors")

    inner = try_build(NEG, [])
    outer = try_build(ADD, [inner, "x"])
    print(f"  inner: {inner}")
    print(f"  outer is inner: {outer is inner}")


def demo_tracing():
    """Demonstrate rewrite tracing and fixed-point normalization."""
    section("Tracing")

    xy = E.op(MUL, "x", "y")
    expr = E.op(ADD, xy, xy, E.op(MUL, 2, "x", "y"))

    result, trace = Simplifier().simplify(expr, trace=True)
    print(trace.format("chain"))
    print(f"  {trace.summary()}")

    print(f"  normalized: {format_sexpr(normalize(expr))}")


if __name__ == "__main__":
    demo_basic_usage()
    demo_term_collection()
    demo_construction_errors()
    demo_tracing()
