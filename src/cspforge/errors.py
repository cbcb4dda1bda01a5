"""
Exception hierarchy for cspforge.

All cspforge exceptions inherit from CspForgeError, allowing callers to catch
all cspforge-specific exceptions with a single except clause.

Exception Categories:
    - ConfigurationError: Rule set or config file is invalid (fatal at startup)
    - ArtifactWriteError: A configuration artifact could not be written

Design Principles:
    - All errors have error codes for programmatic handling
    - All errors include context (directive, environment, path where applicable)
    - All errors provide actionable suggestions where possible
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Configuration errors: 1xxx
ERROR_CONFIG_INVALID = 1001
ERROR_CONFIG_MISSING_DEFAULT = 1002
ERROR_CONFIG_UNKNOWN_DIRECTIVE = 1003
ERROR_CONFIG_FILE = 1004

# Generation errors: 2xxx
ERROR_ARTIFACT_WRITE = 2001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class CspForgeError(Exception):
    """
    Base exception for all cspforge errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


@dataclass
class ConfigurationError(CspForgeError):
    """
    Raised when a rule set or configuration is invalid.

    Configuration errors are fatal: they surface while the configuration is
    being built, before any header is served or artifact written.

    Attributes:
        directive: The directive the error relates to (if applicable)
    """

    directive: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        self.context["directive"] = self.directive


@dataclass
class MissingDefaultOriginError(ConfigurationError):
    """Raised when an environment map has no `default` entry."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Environment origins for {self.directive} have no 'default' entry"
        if self.code == 0:
            self.code = ERROR_CONFIG_MISSING_DEFAULT
        if not self.suggestion:
            self.suggestion = "Add a 'default' key used when no environment matches"
        super().__post_init__()


@dataclass
class UnknownDirectiveError(ConfigurationError):
    """Raised when a rule set names a directive outside the CSP vocabulary."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unknown CSP directive: {self.directive}"
        if self.code == 0:
            self.code = ERROR_CONFIG_UNKNOWN_DIRECTIVE
        if not self.suggestion:
            self.suggestion = "Check the directive spelling against cspforge.directives.DIRECTIVES"
        super().__post_init__()


@dataclass
class ConfigFileError(ConfigurationError):
    """Raised when a configuration file cannot be read or validated."""

    path: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid configuration file {self.path}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONFIG_FILE
        super().__post_init__()
        self.context.update({
            "path": self.path,
            "underlying_error": self.underlying_error,
        })


# =============================================================================
# Generation Errors
# =============================================================================


@dataclass
class ArtifactWriteError(CspForgeError):
    """
    Raised when an environment's artifact cannot be written.

    The generator never lets this escape a generation pass; it is recorded
    on the environment's GenerationResult and logged.
    """

    environment: str = ""
    path: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"Failed to write CSP configuration for {self.environment} "
                f"at {self.path}: {self.underlying_error}"
            )
        if self.code == 0:
            self.code = ERROR_ARTIFACT_WRITE
        if not self.suggestion:
            self.suggestion = "Check that the output directory is writable"
        self.context.update({
            "environment": self.environment,
            "path": self.path,
            "underlying_error": self.underlying_error,
        })
