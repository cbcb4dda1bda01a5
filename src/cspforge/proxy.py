"""
Live serving of the CSP header.

CspProxy computes the header for a running server: the nonce (if nonces are
configured) is generated once per instance and substituted into the rules up
front, so computing the header per request is pure and cannot fail.

CspMiddleware attaches that header to every HTTP response of an ASGI app and
exposes the nonce to the app as `scope["state"]["csp_nonce"]`.
"""

from collections.abc import Callable, MutableMapping
from typing import Any

from cspforge.compiler import compute_development_directive
from cspforge.headers import header_name_for_report_type
from cspforge.nonce import generate_nonce, substitute_nonce
from cspforge.schema import NonceConfiguration, ReportType, RuleSet


class CspProxy:
    """
    Computes the live CSP header.

    Usage:
        proxy = CspProxy(rules, nonces=NonceConfiguration(nonce_template="{RANDOM}"))
        response.headers[proxy.header_name] = proxy.header_value()

    Attributes:
        rules: Rule set after nonce substitution
        header_name: Header name for the configured report type
        nonce: The generated nonce, or None when nonces are not configured
    """

    def __init__(
        self,
        rules: RuleSet,
        report_type: ReportType | str | None = None,
        nonces: NonceConfiguration | None = None,
        nonce_factory: Callable[[], str] = generate_nonce,
    ) -> None:
        self.header_name = header_name_for_report_type(report_type)
        self.nonce: str | None = None

        if nonces is not None:
            self.nonce = nonce_factory()
            rules = substitute_nonce(
                rules,
                self.nonce,
                nonces.nonce_template,
                nonces.development_key,
            )
        self.rules = rules
        self._header_value = compute_development_directive(self.rules)

    def header_value(self) -> str:
        """Return the compiled policy string."""
        return self._header_value

    def apply(self, headers: MutableMapping[str, str]) -> None:
        """Set the CSP header on a response's header mapping."""
        headers[self.header_name] = self._header_value


class CspMiddleware:
    """
    ASGI middleware adding the CSP header to every HTTP response.

    Non-HTTP scopes (lifespan, websocket) pass through untouched.
    """

    def __init__(self, app: Callable[..., Any], proxy: CspProxy) -> None:
        self.app = app
        self.proxy = proxy
        self._raw_header = (
            proxy.header_name.lower().encode("latin-1"),
            proxy.header_value().encode("latin-1"),
        )

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if self.proxy.nonce is not None:
            scope.setdefault("state", {})["csp_nonce"] = self.proxy.nonce

        async def send_with_csp(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                name = self._raw_header[0]
                headers = [
                    (key, value)
                    for key, value in message.get("headers", [])
                    if key.lower() != name
                ]
                headers.append(self._raw_header)
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_with_csp)
