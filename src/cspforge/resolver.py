"""
Origin resolution for a single directive.

A directive's origins are either a plain string, used in every environment,
or an EnvironmentOrigins map whose `default` applies wherever no override
exists for the requested environment.
"""

from cspforge.schema import OriginValue


def compute_origin_for_environment(
    origin: OriginValue,
    environment: str | None = None,
) -> str:
    """
    Resolve a directive's origins for an environment.

    Args:
        origin: Plain origins string or per-environment map
        environment: Target environment, or None for "no environment"

    Returns:
        The override for `environment` if one exists, else the default.
        Plain strings are returned unchanged.
    """
    if isinstance(origin, str):
        return origin

    override = origin.get(environment)
    return override if override is not None else origin.default
