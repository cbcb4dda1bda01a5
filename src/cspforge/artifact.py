"""
Artifact formatting for external web servers.

An artifact holds the same header twice: once as an Nginx `add_header`
directive and once as an Apache `Header set` directive.
"""

from pathlib import Path

ARTIFACT_FILENAME_TEMPLATE = "csp-configuration.{environment}.txt"


def compute_configuration_file_content(header_name: str, directive: str) -> str:
    """
    Render the artifact text for a header and compiled policy.

    Args:
        header_name: e.g. "Content-Security-Policy"
        directive: Compiled policy string

    Returns:
        Newline-terminated text with an Nginx block, a blank line,
        then an Apache block
    """
    nginx_header = f'add_header {header_name} "{directive}";'
    apache_header = f'Header set {header_name} "{directive}"'
    return f"# Nginx configuration\n{nginx_header}\n\n# Apache configuration\n{apache_header}\n"


def artifact_path(output_dir: Path | str, environment: str) -> Path:
    """Return where the artifact for `environment` is written."""
    return Path(output_dir) / ARTIFACT_FILENAME_TEMPLATE.format(environment=environment)
