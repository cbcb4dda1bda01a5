"""
Directive compilation.

Turns a RuleSet into a policy string. There are two join formats, and each
is part of its consumer's byte-exact output:

    live serving:  "default-src 'self';script-src 'self';"
    environment:   "default-src 'self'; script-src 'self'"

Both keep the rule set's declaration order and emit one clause per directive,
even when its resolved origins are empty.
"""

from cspforge.resolver import compute_origin_for_environment
from cspforge.schema import RuleSet


def compute_development_directive(rules: RuleSet) -> str:
    """
    Compile the policy served by the live request pipeline.

    Every directive resolves without an environment, so only plain strings
    and `default` entries are used.
    """
    return "".join(
        f"{directive} {compute_origin_for_environment(value)};"
        for directive, value in rules.items()
    )


def compute_directive_for_environment(
    rules: RuleSet,
    environment: str | None = None,
) -> str:
    """
    Compile the policy for one deployment environment.

    Args:
        rules: The rule set to compile
        environment: Environment whose overrides apply

    Returns:
        "<directive> <origins>" clauses joined by "; ", no trailing separator
    """
    return "; ".join(
        f"{directive} {compute_origin_for_environment(value, environment)}"
        for directive, value in rules.items()
    )
