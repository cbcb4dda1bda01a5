"""
Nonce generation and substitution.

Rules may contain a nonce placeholder such as `'nonce-{RANDOM}'`. For live
serving, a fresh nonce is generated once and substituted into the rules
before compilation. The same nonce is handed to the page renderer so inline
scripts can carry it.

Only values containing the literal `nonce-<placeholder>` pattern are
rewritten. Within an environment map, only `default` and the configured
development entry are candidates; other environment overrides are left as
written.
"""

import base64
import secrets

from cspforge.schema import EnvironmentOrigins, OriginValue, RuleSet

NONCE_BYTES = 16


def generate_nonce() -> str:
    """Return 16 random bytes, base64 encoded (24 characters)."""
    return base64.b64encode(secrets.token_bytes(NONCE_BYTES)).decode("ascii")


def nonce_pattern(placeholder: str) -> str:
    return f"nonce-{placeholder}"


def has_nonce_placeholder(value: str, placeholder: str) -> bool:
    """Return True if `value` contains `nonce-<placeholder>`."""
    return nonce_pattern(placeholder) in value


def replace_nonce_placeholder(value: str, placeholder: str, nonce: str) -> str:
    """Replace every occurrence of `placeholder` in `value` with `nonce`."""
    return value.replace(placeholder, nonce)


def _substitute_value(
    value: OriginValue,
    nonce: str,
    placeholder: str,
    development_key: str | None,
) -> OriginValue:
    if isinstance(value, str):
        if has_nonce_placeholder(value, placeholder):
            return replace_nonce_placeholder(value, placeholder, nonce)
        return value

    environments = dict(value.environments)
    if development_key is not None:
        development = environments.get(development_key)
        if development is not None and has_nonce_placeholder(development, placeholder):
            environments[development_key] = replace_nonce_placeholder(development, placeholder, nonce)

    default = value.default
    if has_nonce_placeholder(default, placeholder):
        default = replace_nonce_placeholder(default, placeholder, nonce)

    if default == value.default and environments == value.environments:
        return value
    return EnvironmentOrigins(default=default, environments=environments)


def substitute_nonce(
    rules: RuleSet,
    nonce: str,
    placeholder: str,
    development_key: str | None = None,
) -> RuleSet:
    """
    Substitute a nonce into a rule set.

    Args:
        rules: Rule set to substitute into (not modified)
        nonce: Secret token
        placeholder: Marker to replace, e.g. "{RANDOM}"
        development_key: Environment override that is also substituted

    Returns:
        A new RuleSet with the same directives in the same order
    """
    return {
        directive: _substitute_value(value, nonce, placeholder, development_key)
        for directive, value in rules.items()
    }
