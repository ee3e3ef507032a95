"""Plain English explanation of condition trees."""

from __future__ import annotations

from kondition._core import (
    And,
    Condition,
    Guard,
    Leaf,
    MapEntry,
    Not,
    Or,
    Throwing,
    Transform,
    _flatten_and_chain,
    _flatten_or_chain,
)
from kondition._retry import Retry
from kondition._sequences import (
    AnyOrderMatch,
    OrderedMatch,
    Quantifier,
    SubsequenceMatch,
)

# =============================================================================
# Explain Function
# =============================================================================


def explain(condition: Condition) -> str:
    """
    Generate a plain English explanation of what a condition checks.

    Args:
        condition: The condition to explain

    Returns:
        Human-readable explanation string

    Example:
        rule = is_none() | (has("name").equal_to("Bob") & ~has("age").equal_to(3))
        print(explain(rule))

        # Output:
        # Check passes if ANY of:
        #   • Check: <None>
        #   • ALL of:
        #     • Require: not <None>
        #       • name:
        #         • Check: <Bob>
        #     • NOT: age <3>
    """
    output_lines: list[str] = []

    # Stack: (condition, depth); children pushed in reverse to keep order
    stack: list[tuple[Condition, int]] = [(condition, 0)]

    while stack:
        cond, depth = stack.pop()
        indent = "  " * depth
        bullet = "• " if depth > 0 else ""
        children: list[Condition] = []

        if isinstance(cond, Leaf):
            output_lines.append(f"{indent}{bullet}Check: {cond.description}")

        elif isinstance(cond, And):
            children = _flatten_and_chain(cond)
            header = "Check passes if ALL of:" if depth == 0 else f"{indent}{bullet}ALL of:"
            output_lines.append(header)

        elif isinstance(cond, Or):
            children = _flatten_or_chain(cond)
            header = "Check passes if ANY of:" if depth == 0 else f"{indent}{bullet}ANY of:"
            output_lines.append(header)

        elif isinstance(cond, Not):
            output_lines.append(f"{indent}{bullet}NOT: {cond.inner}")

        elif isinstance(cond, Guard):
            output_lines.append(f"{indent}{bullet}Require: {cond.requirement}")
            children = [cond.condition]

        elif isinstance(cond, Transform):
            if cond.name:
                output_lines.append(f"{indent}{bullet}{cond.name}:")
                children = [cond.condition]
            else:
                # Unnamed steps are transparent
                stack.append((cond.condition, depth))

        elif isinstance(cond, MapEntry):
            output_lines.append(f"{indent}{bullet}Entry {cond.key}:")
            children = [cond.condition]

        elif isinstance(cond, Throwing):
            output_lines.append(f"{indent}{bullet}Raises: {cond.condition}")

        elif isinstance(cond, Quantifier):
            quantity = "Some" if cond.kind == "exists" else "Every"
            output_lines.append(f"{indent}{bullet}{quantity} {cond.element_name} matches:")
            children = [cond.condition]

        elif isinstance(cond, OrderedMatch):
            if cond.full and cond.exact:
                header = f"Exactly these {cond.element_name}s in order:"
            elif cond.exact:
                header = f"{cond.element_name}s starting in order with:"
            else:
                header = f"{cond.element_name}s containing in order:"
            output_lines.append(f"{indent}{bullet}{header}")
            children = list(cond.conditions)

        elif isinstance(cond, AnyOrderMatch):
            if cond.only:
                header = f"Only these {cond.element_name}s, in any order:"
            elif cond.full and cond.exact:
                header = f"Exactly these {cond.element_name}s in any order:"
            elif cond.exact:
                header = f"{cond.element_name}s starting in any order with:"
            else:
                header = f"{cond.element_name}s containing in any order:"
            output_lines.append(f"{indent}{bullet}{header}")
            children = list(cond.conditions)

        elif isinstance(cond, SubsequenceMatch):
            output_lines.append(
                f"{indent}{bullet}{cond.element_name}s containing subsequence:"
            )
            children = list(cond.conditions)

        elif isinstance(cond, Retry):
            output_lines.append(
                f"{indent}{bullet}Retry up to {cond.max_attempts}x: {cond.condition}"
            )

        # Fallback
        else:
            output_lines.append(f"{indent}{bullet}{cond}")

        for child in reversed(children):
            stack.append((child, depth + 1))

    return "\n".join(output_lines)
