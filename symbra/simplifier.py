"""
Simplification driver for SYMBRA.

The driver walks a tree post-order: every operand is simplified before the
rule for its parent fires. The rule is chosen by the parent's operator:

    NEGATION                  double-negation
    SUBTRACTION               subtraction-elimination
    ADDITION, MULTIPLICATION  neutral-element, associative-flatten,
                              term-collection (in that order)
    anything else             no rule

Expressions are immutable, so simplify returns the rewritten tree and leaves
its argument alone:

    from symbra import E, Operator, simplify

    x = E.var("x")
    expr = E.op(Operator.ADDITION, E.op(Operator.ADDITION, x, x), x)
    str(simplify(expr))    # => "(* 3 x)"

Addition and multiplication nodes repeat their three rules until term
collection stops changing the operand list, so a second simplify call leaves
the result alone. normalize() repeats simplify until the rendered form
stops changing.

Tracing:
    result, trace = Simplifier().simplify(expr, trace=True)
    print(trace.format("rules"))   # term-collection -> term-collection
"""

from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

import structlog

from . import rules
from .expression import Expression, OperatorExpression, format_sexpr
from .operators import Operator

logger = structlog.get_logger()

DOUBLE_NEGATION = "double-negation"
SUBTRACTION_ELIMINATION = "subtraction-elimination"
NEUTRAL_ELEMENT = "neutral-element"
ASSOCIATIVE_FLATTEN = "associative-flatten"
TERM_COLLECTION = "term-collection"

# Dispatch order
RULE_NAMES: Tuple[str, ...] = (
    DOUBLE_NEGATION,
    SUBTRACTION_ELIMINATION,
    NEUTRAL_ELEMENT,
    ASSOCIATIVE_FLATTEN,
    TERM_COLLECTION,
)

DEFAULT_MAX_STEPS = 1000


class RewriteStep:
    """A single rule application in a rewriting trace."""

    def __init__(self, rule: str, before: Expression, after: Expression):
        self.rule = rule
        self.before = before
        self.after = after

    def __repr__(self) -> str:
        return f"{self.rule}: {format_sexpr(self.before)} → {format_sexpr(self.after)}"


class RewriteTrace:
    """
    A trace of all rule applications that changed a node.

    Provides multiple formatting options:
        - Default repr: verbose multi-line format
        - format("compact"): single line showing rule chain
        - format("rules"): just the rule names applied
        - format("chain"): expression after every step
    """

    def __init__(self, initial: Optional[Expression] = None):
        self.steps: List[RewriteStep] = []
        self.initial = initial
        self.final: Optional[Expression] = None

    def add_step(self, step: RewriteStep):
        self.steps.append(step)

    def format(self, style: str = "verbose") -> str:
        """
        Format the trace in different styles.

        Args:
            style: One of "verbose", "compact", "rules", "chain"

        Returns:
            Formatted string representation of the trace.
        """
        if style == "compact":
            return (f"{format_sexpr(self.initial)} --[{', '.join(self.rules_applied())}]--> "
                    f"{format_sexpr(self.final)}")

        elif style == "rules":
            applied = self.rules_applied()
            return " -> ".join(applied) if applied else "(no rules applied)"

        elif style == "chain":
            parts = [format_sexpr(self.initial)]
            for step in self.steps:
                parts.append(f"  --({step.rule})-->")
                parts.append(format_sexpr(step.after))
            return "\n".join(parts)

        elif style == "verbose":
            return repr(self)

        raise ValueError(f"Unknown trace style: {style}. "
                         f"Valid options: verbose, compact, rules, chain")

    def __repr__(self) -> str:
        lines = [f"Initial: {format_sexpr(self.initial)}"]
        for i, step in enumerate(self.steps, 1):
            lines.append(f"  {i}. {step}")
        lines.append(f"Final: {format_sexpr(self.final)}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        """Iterate over rewrite steps."""
        return iter(self.steps)

    def __bool__(self) -> bool:
        """True if any rewriting was done."""
        return len(self.steps) > 0

    def rule_counts(self) -> Dict[str, int]:
        """Count how many times each rule was applied."""
        counts: Dict[str, int] = {}
        for step in self.steps:
            counts[step.rule] = counts.get(step.rule, 0) + 1
        return counts

    def rules_applied(self) -> List[str]:
        """Get list of rule names in order of application."""
        return [step.rule for step in self.steps]

    def summary(self) -> str:
        """Get a brief summary of the rewriting."""
        if not self.steps:
            return "No rewriting performed"
        counts = self.rule_counts()
        most_used = max(counts.items(), key=lambda x: x[1])
        return (f"{len(self.steps)} steps using {len(counts)} unique rules. "
                f"Most used: {most_used[0]} ({most_used[1]}x)")


class Simplifier:
    """
    Configurable simplification engine.

    Example:
        engine = Simplifier(max_steps=50)
        engine.disable_rule("term-collection")

        result = engine(expr)
        result, trace = engine.simplify(expr, trace=True)
        result = engine.normalize(expr)
    """

    def __init__(self, max_steps: int = DEFAULT_MAX_STEPS,
                 disabled_rules: Iterable[str] = ()):
        """
        Initialize a Simplifier.

        Args:
            max_steps: Upper bound on simplify passes made by normalize().
            disabled_rules: Names of rules that must never fire.
        """
        if max_steps < 1:
            raise ValueError(f"max_steps must be positive, got {max_steps}")
        self.max_steps = max_steps
        self._disabled: Set[str] = set()
        for name in disabled_rules:
            self.disable_rule(name)

    # ============================================================
    # Rule Switches
    # ============================================================

    @staticmethod
    def _check_rule(name: str) -> None:
        if name not in RULE_NAMES:
            raise ValueError(f"Unknown rule: {name}. "
                             f"Valid options: {', '.join(RULE_NAMES)}")

    def disable_rule(self, name: str) -> 'Simplifier':
        """Stop a rule from firing."""
        self._check_rule(name)
        self._disabled.add(name)
        return self

    def enable_rule(self, name: str) -> 'Simplifier':
        """Allow a previously disabled rule to fire again."""
        self._check_rule(name)
        self._disabled.discard(name)
        return self

    @property
    def rules(self) -> List[str]:
        """Names of the active rules in dispatch order."""
        return [name for name in RULE_NAMES if name not in self._disabled]

    def _enabled(self, name: str) -> bool:
        return name not in self._disabled

    # ============================================================
    # Driver
    # ============================================================

    def simplify(self, expr: Expression, trace: bool = False
                 ) -> Union[Expression, Tuple[Expression, RewriteTrace]]:
        """
        Apply one bottom-up pass of the rewrite rules.

        Args:
            expr: Expression to simplify (not modified)
            trace: If True, return (result, trace) tuple

        Returns:
            Simplified expression, or (expression, trace) if trace=True
        """
        if not isinstance(expr, Expression):
            raise TypeError(f"Expected an Expression, got {type(expr).__name__}")
        if not trace:
            return self._simplify(expr, None)
        trace_obj = RewriteTrace(initial=expr)
        result = self._simplify(expr, trace_obj)
        trace_obj.final = result
        return result, trace_obj

    def normalize(self, expr: Expression, trace: bool = False
                  ) -> Union[Expression, Tuple[Expression, RewriteTrace]]:
        """
        Simplify repeatedly until the rendered form stops changing.

        Stops after max_steps passes even if the tree is still changing.
        """
        if not isinstance(expr, Expression):
            raise TypeError(f"Expected an Expression, got {type(expr).__name__}")
        trace_obj = RewriteTrace(initial=expr) if trace else None

        current = expr
        rendered = format_sexpr(current)
        for passes in range(1, self.max_steps + 1):
            result = self._simplify(current, trace_obj)
            text = format_sexpr(result)
            if text == rendered:
                logger.debug("normalize_converged", passes=passes, result=text)
                break
            current, rendered = result, text
        else:
            logger.warning("normalize_step_limit", max_steps=self.max_steps,
                           result=rendered)

        if trace_obj is None:
            return current
        trace_obj.final = current
        return current, trace_obj

    def _simplify(self, expr: Expression, trace: Optional[RewriteTrace]) -> Expression:
        if expr.is_leaf():
            return expr
        operands = [self._simplify(operand, trace) for operand in expr.operands]
        if any(new is not old for new, old in zip(operands, expr.operands)):
            expr = OperatorExpression(expr.operator, operands)
        return self._reduce(expr, trace)

    def _reduce(self, node: Expression, trace: Optional[RewriteTrace]) -> Expression:
        """Apply the rule for node's operator; its operands are already simplified."""
        if node.is_leaf():
            return node
        operator = node.operator

        if operator is Operator.NEGATION:
            if not self._enabled(DOUBLE_NEGATION):
                return node
            result = rules.double_negation(node)
            self._record(trace, DOUBLE_NEGATION, node, result)
            return result

        if operator is Operator.SUBTRACTION:
            if not self._enabled(SUBTRACTION_ELIMINATION):
                return node
            result = rules.eliminate_subtraction(
                node, rewrite=lambda fresh: self._reduce(fresh, trace)
            )
            self._record(trace, SUBTRACTION_ELIMINATION, node, result)
            return result

        if operator in (Operator.ADDITION, Operator.MULTIPLICATION):
            return self._reduce_associative(node, trace)

        return node

    def _reduce_associative(self, node: OperatorExpression,
                            trace: Optional[RewriteTrace]) -> Expression:
        """
        Run neutral-element, flatten and term-collection over node's operands.

        Reduced partner terms can share a base with other terms or splice
        into the parent, so the pipeline repeats until collection leaves the
        operand list alone.
        """
        operator = node.operator
        operands = list(node.operands)
        current: Expression = node

        while True:
            if self._enabled(NEUTRAL_ELEMENT):
                operands = rules.remove_neutral(operator, operands)
                current = self._record_list(trace, NEUTRAL_ELEMENT, current, operator, operands)

            if self._enabled(ASSOCIATIVE_FLATTEN):
                operands = rules.flatten(operator, operands)
                current = self._record_list(trace, ASSOCIATIVE_FLATTEN, current, operator, operands)

            if not self._enabled(TERM_COLLECTION):
                return rules.assemble(operator, operands)

            terms = rules.collect_terms(
                operator, operands, rewrite=lambda fresh: self._reduce(fresh, trace)
            )
            result = rules.assemble(operator, terms)
            self._record(trace, TERM_COLLECTION, current, result)
            if terms == operands:
                return result
            operands, current = terms, result

    def _record_list(self, trace: Optional[RewriteTrace], rule: str, before: Expression,
                     operator: Operator, operands: List[Expression]) -> Expression:
        if trace is None:
            return before
        after = rules.assemble(operator, operands)
        self._record(trace, rule, before, after)
        return after

    @staticmethod
    def _record(trace: Optional[RewriteTrace], rule: str,
                before: Expression, after: Expression) -> None:
        if trace is not None and after != before:
            trace.add_step(RewriteStep(rule, before, after))

    def __call__(self, expr: Expression, **kwargs):
        """Make engine callable: engine(expr) is shorthand for engine.simplify(expr)."""
        return self.simplify(expr, **kwargs)

    def __repr__(self) -> str:
        return f"Simplifier({len(self.rules)} rules, max_steps={self.max_steps})"


_default = Simplifier()


def simplify(expr: Expression) -> Expression:
    """Apply one bottom-up pass of every rewrite rule to expr."""
    return _default.simplify(expr)


def normalize(expr: Expression, max_steps: int = DEFAULT_MAX_STEPS) -> Expression:
    """Simplify expr until its rendered form reaches a fixed point."""
    return Simplifier(max_steps=max_steps).normalize(expr)
