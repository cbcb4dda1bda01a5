"""
cspforge - Compile Content Security Policy rules for every environment.

cspforge resolves a declarative, per-environment CSP rule set into:
- A live response header, with an optional per-process nonce
- Nginx and Apache configuration snippets, one file per environment,
  regenerated whenever the rules change

Example usage:
    $ cspforge generate --config csp.yaml
    $ cspforge watch --config csp.yaml
    $ cspforge header --config csp.yaml
"""

__version__ = "0.1.0"
__author__ = "cspforge Contributors"

from cspforge.compiler import compute_development_directive, compute_directive_for_environment
from cspforge.generation import ConfigurationFileGenerator
from cspforge.headers import header_name_for_report_type
from cspforge.proxy import CspMiddleware, CspProxy
from cspforge.resolver import compute_origin_for_environment
from cspforge.schema import EnvironmentOrigins, NonceConfiguration, ReportType, parse_rules

__all__ = [
    "__version__",
    "__author__",
    "ConfigurationFileGenerator",
    "CspMiddleware",
    "CspProxy",
    "EnvironmentOrigins",
    "NonceConfiguration",
    "ReportType",
    "compute_development_directive",
    "compute_directive_for_environment",
    "compute_origin_for_environment",
    "header_name_for_report_type",
    "parse_rules",
]
