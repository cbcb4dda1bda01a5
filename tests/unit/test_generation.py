"""
Unit tests for configuration file generation and the regeneration trigger.

Tests cover:
- One artifact per environment at a deterministic path
- Watch-set matching on base names
- Per-environment failure isolation
- Idempotent regeneration
- Reloading rules before each pass
"""

import logging
from pathlib import Path

import pytest

from cspforge.errors import MissingDefaultOriginError
from cspforge.generation import (
    BUILD_CONFIGURATION_FILE,
    ConfigurationFileGenerator,
    FileSystemArtifactWriter,
)
from cspforge.schema import DEFAULT_RULES_PATH, EnvironmentOrigins, RuleSet


class RecordingWriter:
    """In-memory writer that can fail for chosen environments."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.files: dict[Path, str] = {}
        self.ensured: list[Path] = []

    def ensure_directory(self, path: Path) -> None:
        self.ensured.append(path)

    def write_text(self, path: Path, content: str) -> None:
        for environment in self.fail_for:
            if path.name == f"csp-configuration.{environment}.txt":
                raise PermissionError(f"Permission denied: {path}")
        self.files[path] = content


@pytest.fixture
def rules() -> RuleSet:
    return {
        "default-src": "'self'",
        "script-src": EnvironmentOrigins(
            default="'self'",
            environments={"production": "'self' https://p.example.com"},
        ),
    }


@pytest.fixture
def writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def generator(rules: RuleSet, writer: RecordingWriter) -> ConfigurationFileGenerator:
    return ConfigurationFileGenerator(
        rules,
        ["staging", "production"],
        rules_path="content-security-policy/csp.yaml",
        output_dir="out",
        writer=writer,
    )


class TestGenerateFiles:
    """Tests for generate_files."""

    def test_one_artifact_per_environment(
        self, generator: ConfigurationFileGenerator, writer: RecordingWriter
    ) -> None:
        results = generator.generate_files()
        assert [r.environment for r in results] == ["staging", "production"]
        assert all(r.success for r in results)
        assert set(writer.files) == {
            Path("out/csp-configuration.staging.txt"),
            Path("out/csp-configuration.production.txt"),
        }

    def test_artifact_content(
        self, generator: ConfigurationFileGenerator, writer: RecordingWriter
    ) -> None:
        generator.generate_files()
        content = writer.files[Path("out/csp-configuration.production.txt")]
        assert content == (
            "# Nginx configuration\n"
            "add_header Content-Security-Policy \"default-src 'self'; "
            "script-src 'self' https://p.example.com\";\n"
            "\n"
            "# Apache configuration\n"
            "Header set Content-Security-Policy \"default-src 'self'; "
            "script-src 'self' https://p.example.com\"\n"
        )

    def test_report_header(self, rules: RuleSet, writer: RecordingWriter) -> None:
        generator = ConfigurationFileGenerator(
            rules, ["staging"], report_type="report", output_dir="out", writer=writer
        )
        generator.generate_files()
        content = writer.files[Path("out/csp-configuration.staging.txt")]
        assert "add_header Content-Security-Policy-Report-Only " in content

    def test_ensures_directory_before_writes(
        self, generator: ConfigurationFileGenerator, writer: RecordingWriter
    ) -> None:
        generator.generate_files()
        assert writer.ensured == [Path("out"), Path("out")]

    def test_duplicate_environments_dropped(self, rules: RuleSet, writer: RecordingWriter) -> None:
        generator = ConfigurationFileGenerator(rules, ["staging", "staging"], writer=writer)
        assert generator.environments == ["staging"]

    def test_no_environments(self, rules: RuleSet, writer: RecordingWriter) -> None:
        generator = ConfigurationFileGenerator(rules, [], writer=writer)
        assert generator.generate_files() == []
        assert writer.files == {}

    def test_idempotent(
        self, generator: ConfigurationFileGenerator, writer: RecordingWriter
    ) -> None:
        generator.generate_files()
        first = dict(writer.files)
        generator.generate_files()
        assert writer.files == first

    def test_writes_real_files(self, rules: RuleSet, temp_dir: Path) -> None:
        output_dir = temp_dir / "nested" / "configurations"
        generator = ConfigurationFileGenerator(
            rules, ["staging"], output_dir=output_dir, writer=FileSystemArtifactWriter()
        )
        results = generator.generate_files()
        path = output_dir / "csp-configuration.staging.txt"
        assert results[0].path == path
        assert path.read_text(encoding="utf-8").startswith("# Nginx configuration\n")


class TestFailureIsolation:
    """A failing environment must not block the others."""

    def test_failure_does_not_stop_others(self, rules: RuleSet) -> None:
        writer = RecordingWriter(fail_for={"staging"})
        generator = ConfigurationFileGenerator(
            rules, ["staging", "production"], output_dir="out", writer=writer
        )
        results = generator.generate_files()

        assert results[0].success is False
        assert results[0].error is not None
        assert results[0].error.environment == "staging"
        assert "Permission denied" in results[0].error.underlying_error
        assert results[1].success is True
        assert Path("out/csp-configuration.production.txt") in writer.files

    def test_failure_logged(self, rules: RuleSet, caplog: pytest.LogCaptureFixture) -> None:
        writer = RecordingWriter(fail_for={"staging"})
        log = logging.getLogger("test.generation")
        generator = ConfigurationFileGenerator(
            rules, ["staging", "production"], output_dir="out", writer=writer, logger=log
        )
        with caplog.at_level(logging.INFO, logger="test.generation"):
            generator.generate_files()

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "❌" in errors[0].getMessage()
        assert "staging" in errors[0].getMessage()

        infos = [r for r in caplog.records if r.levelno == logging.INFO]
        assert len(infos) == 1
        assert "✅" in infos[0].getMessage()
        assert "production" in infos[0].getMessage()
        assert "csp-configuration.production.txt" in infos[0].getMessage()

    def test_directory_failure_isolated(self, rules: RuleSet) -> None:
        class NoDirectoryWriter(RecordingWriter):
            def ensure_directory(self, path: Path) -> None:
                raise OSError("read-only filesystem")

        generator = ConfigurationFileGenerator(
            rules, ["staging", "production"], writer=NoDirectoryWriter()
        )
        results = generator.generate_files()
        assert [r.success for r in results] == [False, False]


class TestRegenerationTrigger:
    """Tests for should_regenerate and handle_change."""

    def test_default_rules_path(self, rules: RuleSet) -> None:
        generator = ConfigurationFileGenerator(rules, ["staging"])
        assert generator.rules_path == Path(DEFAULT_RULES_PATH)
        assert generator.watched_names == {"csp-configuration.yaml", BUILD_CONFIGURATION_FILE}

    def test_rules_file_matches(self, generator: ConfigurationFileGenerator) -> None:
        assert generator.should_regenerate("/project/content-security-policy/csp.yaml")

    def test_base_name_comparison_only(self, generator: ConfigurationFileGenerator) -> None:
        assert generator.should_regenerate("/somewhere/else/csp.yaml")

    def test_build_configuration_matches(self, generator: ConfigurationFileGenerator) -> None:
        assert generator.should_regenerate("/project/pyproject.toml")

    def test_other_files_ignored(self, generator: ConfigurationFileGenerator) -> None:
        assert not generator.should_regenerate("/project/src/app.py")
        assert not generator.should_regenerate("/project/csp.yaml.bak")

    def test_matching_change_regenerates_all(
        self, generator: ConfigurationFileGenerator, writer: RecordingWriter
    ) -> None:
        assert generator.handle_change("content-security-policy/csp.yaml") is True
        assert len(writer.files) == 2

    def test_other_change_does_no_io(
        self, generator: ConfigurationFileGenerator, writer: RecordingWriter
    ) -> None:
        assert generator.handle_change("src/app.py") is False
        assert writer.files == {}
        assert writer.ensured == []

    def test_start_generates(
        self, generator: ConfigurationFileGenerator, writer: RecordingWriter
    ) -> None:
        results = generator.start()
        assert len(results) == 2
        assert len(writer.files) == 2

    def test_each_notification_regenerates(
        self, generator: ConfigurationFileGenerator, writer: RecordingWriter
    ) -> None:
        generator.handle_change("csp.yaml")
        generator.handle_change("pyproject.toml")
        assert len(writer.ensured) == 4


class TestRulesLoader:
    """Tests for reloading rules before each pass."""

    def test_reloaded_rules_used(self, writer: RecordingWriter) -> None:
        versions = iter([{"default-src": "'self'"}, {"default-src": "'none'"}])
        generator = ConfigurationFileGenerator(
            {}, ["staging"], output_dir="out", writer=writer, rules_loader=lambda: next(versions)
        )
        path = Path("out/csp-configuration.staging.txt")

        generator.start()
        assert "default-src 'self'" in writer.files[path]

        generator.handle_change("pyproject.toml")
        assert "default-src 'none'" in writer.files[path]

    def test_invalid_rules_keep_previous_files(
        self, writer: RecordingWriter, caplog: pytest.LogCaptureFixture
    ) -> None:
        def broken_loader() -> RuleSet:
            raise MissingDefaultOriginError(directive="script-src")

        log = logging.getLogger("test.generation.loader")
        generator = ConfigurationFileGenerator(
            {}, ["staging"], writer=writer, rules_loader=broken_loader, logger=log
        )
        with caplog.at_level(logging.ERROR, logger="test.generation.loader"):
            results = generator.generate_files()

        assert results == []
        assert writer.files == {}
        assert any("script-src" in r.getMessage() for r in caplog.records)
