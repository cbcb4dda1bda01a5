"""
Schema definitions for cspforge.

This module defines the Pydantic models and type aliases used throughout cspforge:
- EnvironmentOrigins / OriginValue: What a single directive allows
- RuleSet: Directive -> OriginValue, in declaration order
- ReportType: Enforcing vs. report-only policies
- NonceConfiguration: Placeholder marker for nonce substitution
- CspConfig: A complete YAML configuration file

Design Decisions:
    - Models are immutable (frozen=True) and reject unknown fields
    - Rule sets are plain dicts so their declaration order is preserved
    - A missing `default` or an unknown directive raises a ConfigurationError
      while the configuration is built, never during resolution
"""

from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from cspforge.directives import is_known_directive
from cspforge.errors import ConfigFileError, MissingDefaultOriginError, UnknownDirectiveError


DEFAULT_RULES_PATH = "content-security-policy/csp-configuration.yaml"
DEFAULT_OUTPUT_DIR = "content-security-policy/configurations"


# =============================================================================
# Enums
# =============================================================================


class ReportType(str, Enum):
    """
    Whether a policy is enforced or only reported.

    STRICT is the default: browsers block violations.
    REPORT only reports violations to the report endpoint.
    """

    REPORT = "report"
    STRICT = "strict"


# =============================================================================
# Origin Models
# =============================================================================


class EnvironmentOrigins(BaseModel):
    """
    Origins for one directive, overridable per environment.

    The serialized form is a flat mapping, as written in a rules file:

        script-src:
          default: "'self'"
          production: "'self' https://cdn.example.com"

    Attributes:
        default: Origins used when no override matches the environment
        environments: Environment name -> override origins
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    default: str = Field(
        ...,
        description="Fallback origins when no environment override matches",
    )
    environments: dict[str, str] = Field(
        default_factory=dict,
        description="Per-environment origin overrides",
    )

    @model_validator(mode="before")
    @classmethod
    def split_flat_mapping(cls, data: Any) -> Any:
        """Accept {default: ..., <env>: ...} by moving overrides under `environments`."""
        if not isinstance(data, Mapping):
            return data
        if set(data) <= {"default", "environments"} and isinstance(data.get("environments"), Mapping):
            return data
        overrides = {key: value for key, value in data.items() if key != "default"}
        result: dict[str, Any] = {"environments": overrides}
        if "default" in data:
            result["default"] = data["default"]
        return result

    def get(self, environment: str | None) -> str | None:
        """Return the override for `environment`, or None if there is none."""
        if environment is None:
            return None
        return self.environments.get(environment)

    def to_mapping(self) -> dict[str, str]:
        """Return the flat serialized form."""
        return {"default": self.default, **self.environments}


OriginValue = Union[str, EnvironmentOrigins]

# Directive -> origins. Dict insertion order is the output order.
RuleSet = dict[str, OriginValue]


def parse_origin(directive: str, value: Any) -> OriginValue:
    """
    Validate a single directive's value.

    Raises:
        MissingDefaultOriginError: If an environment map has no `default`
        ConfigurationError: If the value is neither a string nor a mapping
    """
    # YAML `directive:` with no value, e.g. upgrade-insecure-requests
    if value is None:
        return ""
    if isinstance(value, (str, EnvironmentOrigins)):
        return value
    if isinstance(value, Mapping):
        if "default" not in value:
            raise MissingDefaultOriginError(directive=directive)
        try:
            return EnvironmentOrigins.model_validate(value)
        except ValidationError as e:
            raise ConfigFileError(
                message=f"Invalid origins for {directive}: {e}",
                directive=directive,
                underlying_error=str(e),
            ) from e
    raise ConfigFileError(
        message=f"Origins for {directive} must be a string or a mapping, got {type(value).__name__}",
        directive=directive,
    )


def parse_rules(raw: Mapping[str, Any]) -> RuleSet:
    """
    Validate a raw mapping (from YAML or Python) into a RuleSet.

    Args:
        raw: Directive -> string or {default: ..., <env>: ...}

    Returns:
        A new RuleSet in the same order as `raw`

    Raises:
        UnknownDirectiveError: If a key is not a CSP directive
        MissingDefaultOriginError: If an environment map has no `default`
    """
    rules: RuleSet = {}
    for directive, value in raw.items():
        if not is_known_directive(directive):
            raise UnknownDirectiveError(directive=directive)
        rules[directive] = parse_origin(directive, value)
    return rules


# =============================================================================
# Configuration Models
# =============================================================================


class NonceConfiguration(BaseModel):
    """
    Nonce substitution settings for live serving.

    Attributes:
        nonce_template: Placeholder marker written in rules, e.g. "{RANDOM}"
        development_key: Environment whose override is also substituted
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    nonce_template: str = Field(
        ...,
        description="Placeholder replaced by the generated nonce",
        min_length=1,
    )
    development_key: str | None = Field(
        default=None,
        description="Environment override that also receives the nonce",
    )


class CspConfig(BaseModel):
    """
    A complete cspforge configuration file.

    Attributes:
        rules: The CSP rule set
        report_type: Enforcing (strict) or report-only (report)
        environments: Environments to generate artifacts for, in order
        rules_path: File whose changes trigger regeneration
        output_dir: Directory artifacts are written to
        nonces: Nonce settings for live serving (None disables substitution)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    rules: RuleSet = Field(
        default_factory=dict,
        description="Directive -> origins",
    )
    report_type: ReportType = Field(
        default=ReportType.STRICT,
        description="Report mode",
    )
    environments: list[str] = Field(
        default_factory=list,
        description="Target environments for artifact generation",
    )
    rules_path: str | None = Field(
        default=None,
        description="Rules source file watched for changes",
    )
    output_dir: str = Field(
        default=DEFAULT_OUTPUT_DIR,
        description="Artifact output directory",
        min_length=1,
    )
    nonces: NonceConfiguration | None = Field(
        default=None,
        description="Nonce substitution settings",
    )

    @field_validator("rules", mode="before")
    @classmethod
    def validate_rules(cls, v: Any) -> Any:
        """Validate directives and environment maps eagerly."""
        if v is None:
            return {}
        if not isinstance(v, Mapping):
            msg = "rules must be a mapping of directive to origins"
            raise ValueError(msg)
        return parse_rules(v)

    @field_validator("environments")
    @classmethod
    def dedupe_environments(cls, v: list[str]) -> list[str]:
        """Environments form a set; keep first occurrence order."""
        return list(dict.fromkeys(v))


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def load_config(path: Path | str) -> CspConfig:
    """
    Load a configuration from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated CspConfig object

    Raises:
        ConfigFileError: If the file can't be read or doesn't match the schema
        ConfigurationError: If the rules are invalid
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigFileError(path=str(path), underlying_error=str(e)) from e

    return load_config_from_string(content, source=str(path))


def load_config_from_string(content: str, source: str = "<string>") -> CspConfig:
    """Load a configuration from a YAML string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigFileError(path=source, underlying_error=str(e)) from e

    try:
        return CspConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigFileError(path=source, underlying_error=str(e)) from e


def load_rules(path: Path | str) -> RuleSet:
    """Load only the rule set from a configuration file."""
    return load_config(path).rules
