"""
Configuration file generation and the regeneration trigger.

The generator compiles the rule set once per target environment and writes
one artifact per environment:

    content-security-policy/configurations/csp-configuration.<env>.txt

It runs once at startup and again whenever a change notification names the
rules source file or the project's build configuration (pyproject.toml).
Any other notification is ignored.

Failure Handling:
    A write failure for one environment is logged and recorded on that
    environment's GenerationResult; the remaining environments still run.
    Nothing raised here reaches the live-serving path.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from cspforge.artifact import artifact_path, compute_configuration_file_content
from cspforge.compiler import compute_directive_for_environment
from cspforge.errors import ArtifactWriteError, ConfigurationError
from cspforge.headers import header_name_for_report_type
from cspforge.schema import DEFAULT_OUTPUT_DIR, DEFAULT_RULES_PATH, ReportType, RuleSet

BUILD_CONFIGURATION_FILE = "pyproject.toml"

_logger = logging.getLogger(__name__)


class ArtifactWriter(Protocol):
    """Write capability used by the generator."""

    def ensure_directory(self, path: Path) -> None: ...

    def write_text(self, path: Path, content: str) -> None: ...


class FileSystemArtifactWriter:
    """Writes artifacts to the local filesystem as UTF-8 text."""

    def ensure_directory(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def write_text(self, path: Path, content: str) -> None:
        path.write_text(content, encoding="utf-8")


@dataclass(frozen=True)
class GenerationResult:
    """
    Outcome of generating one environment's artifact.

    Attributes:
        environment: The environment generated
        path: Where the artifact was (or would have been) written
        success: Whether the artifact was written
        error: The write failure, if any
    """

    environment: str
    path: Path
    success: bool
    error: ArtifactWriteError | None = None


class ConfigurationFileGenerator:
    """
    Generates per-environment CSP artifacts and regenerates them on change.

    Usage:
        generator = ConfigurationFileGenerator(rules, ["staging", "production"])
        generator.start()
        ...
        generator.handle_change("content-security-policy/csp-configuration.yaml")

    Attributes:
        rules: Rule set compiled on each pass
        environments: Target environments, in generation order
        report_type: Selects the header name
        rules_path: Rules source file watched for changes
        output_dir: Directory artifacts are written to
    """

    def __init__(
        self,
        rules: RuleSet,
        environments: Iterable[str],
        report_type: ReportType | str | None = None,
        rules_path: Path | str | None = None,
        output_dir: Path | str = DEFAULT_OUTPUT_DIR,
        writer: ArtifactWriter | None = None,
        logger: logging.Logger | None = None,
        rules_loader: Callable[[], RuleSet] | None = None,
    ) -> None:
        """
        Initialize the generator.

        Args:
            rules: Rule set to compile
            environments: Target environments (duplicates are dropped)
            report_type: "report" or "strict" (default)
            rules_path: Rules source file; defaults to DEFAULT_RULES_PATH
            output_dir: Artifact directory
            writer: Write capability; defaults to the local filesystem
            logger: Logger for success/failure messages
            rules_loader: Re-reads the rules before each pass, if given
        """
        self.rules = rules
        self.environments = list(dict.fromkeys(environments))
        self.report_type = report_type
        self.rules_path = Path(rules_path or DEFAULT_RULES_PATH)
        self.output_dir = Path(output_dir)
        self._writer = writer or FileSystemArtifactWriter()
        self._logger = logger or _logger
        self._rules_loader = rules_loader

    @property
    def watched_names(self) -> frozenset[str]:
        """Base names whose change triggers regeneration."""
        return frozenset({self.rules_path.name, BUILD_CONFIGURATION_FILE})

    def should_regenerate(self, changed_path: Path | str) -> bool:
        """Return True if a change to `changed_path` requires regeneration."""
        return Path(changed_path).name in self.watched_names

    def start(self) -> list[GenerationResult]:
        """Generate every environment's artifact on process start."""
        return self.generate_files()

    def handle_change(self, changed_path: Path | str) -> bool:
        """
        Handle one change notification.

        Returns:
            True if the change triggered a regeneration pass
        """
        if not self.should_regenerate(changed_path):
            return False

        self._logger.debug("Change detected in %s, regenerating CSP configuration files", changed_path)
        self.generate_files()
        return True

    def generate_files(self) -> list[GenerationResult]:
        """Generate the artifact for every environment, in order."""
        if self._rules_loader is not None:
            try:
                self.rules = self._rules_loader()
            except ConfigurationError as e:
                self._logger.error("❌ Invalid CSP rules, keeping previous configuration files: %s", e)
                return []

        header_name = header_name_for_report_type(self.report_type)
        return [
            self.generate_file_for_environment(header_name, environment)
            for environment in self.environments
        ]

    def generate_file_for_environment(
        self,
        header_name: str,
        environment: str,
    ) -> GenerationResult:
        """
        Compile and write one environment's artifact.

        Write failures are logged and returned, never raised.
        """
        directive = compute_directive_for_environment(self.rules, environment)
        path = artifact_path(self.output_dir, environment)

        try:
            self._writer.ensure_directory(self.output_dir)
            content = compute_configuration_file_content(header_name, directive)
            self._writer.write_text(path, content)
        except OSError as e:
            error = ArtifactWriteError(
                environment=environment,
                path=str(path),
                underlying_error=str(e),
            )
            self._logger.error(
                "❌ Error generating CSP configuration file for environment %s: %s",
                environment,
                error.message,
            )
            return GenerationResult(environment=environment, path=path, success=False, error=error)

        self._logger.info(
            "✅ CSP configuration file generated successfully for environment: %s at path: %s",
            environment,
            path,
        )
        return GenerationResult(environment=environment, path=path, success=True)
