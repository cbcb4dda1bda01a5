"""
The closed vocabulary of Content Security Policy directives.

Directives are grouped the way the CSP Level 3 specification groups them.
Some names appear in more than one group (e.g. `sandbox`, `report-to`);
DIRECTIVES is their union.
"""

RESOURCE_DIRECTIVES = frozenset({
    "default-src",
    "script-src",
    "style-src",
    "connect-src",
    "object-src",
    "img-src",
    "frame-src",
    "child-src",
    "font-src",
    "manifest-src",
    "media-src",
    "report-to",
    "sandbox",
    "script-src-attr",
    "script-src-elem",
    "style-src-attr",
    "style-src-elem",
    "upgrade-insecure-requests",
    "worker-src",
    "fenced-frame-src",
})

DOCUMENT_DIRECTIVES = frozenset({"base-uri", "sandbox"})

NAVIGATION_DIRECTIVES = frozenset({"form-action", "frame-ancestors"})

REPORTING_DIRECTIVES = frozenset({"report-to"})

OTHER_DIRECTIVES = frozenset({
    "require-trusted-types-for",
    "trusted-types",
    "upgrade-insecure-requests",
})

DEPRECATED_DIRECTIVES = frozenset({"block-all-mixed-content", "report-uri"})

DIRECTIVES = (
    RESOURCE_DIRECTIVES
    | DOCUMENT_DIRECTIVES
    | NAVIGATION_DIRECTIVES
    | REPORTING_DIRECTIVES
    | OTHER_DIRECTIVES
    | DEPRECATED_DIRECTIVES
)


def is_known_directive(name: str) -> bool:
    """Return True if `name` is a CSP directive cspforge accepts."""
    return name in DIRECTIVES


def is_deprecated_directive(name: str) -> bool:
    return name in DEPRECATED_DIRECTIVES
