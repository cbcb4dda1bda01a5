"""Header name selection by report type."""

from enum import Enum

from cspforge.schema import ReportType


class HeaderName(str, Enum):
    """Protocol header names for CSP."""

    CONTENT_SECURITY_POLICY = "Content-Security-Policy"
    CONTENT_SECURITY_POLICY_REPORT_ONLY = "Content-Security-Policy-Report-Only"


HEADER_NAME_BY_REPORT_TYPE: dict[ReportType, HeaderName] = {
    ReportType.REPORT: HeaderName.CONTENT_SECURITY_POLICY_REPORT_ONLY,
    ReportType.STRICT: HeaderName.CONTENT_SECURITY_POLICY,
}


def header_name_for_report_type(report_type: ReportType | str | None = None) -> str:
    """
    Return the header name for a report type.

    Args:
        report_type: "report", "strict", or None (treated as "strict")

    Raises:
        ValueError: If `report_type` is not a known report type
    """
    report_type = ReportType(report_type or ReportType.STRICT)
    return HEADER_NAME_BY_REPORT_TYPE[report_type].value
