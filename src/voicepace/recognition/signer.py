"""HMAC-SHA256 URL signing for the dictation WebSocket endpoint.

The service authenticates the WebSocket upgrade through query parameters:
``authorization`` (base64 of an api_key/signature header string), ``date``
(RFC 1123 HTTP-date) and ``host``. The signature covers the host, the date
and the HTTP request line, so a URL is only valid for a few minutes.
"""

import base64
import hashlib
import hmac
from datetime import datetime, timezone
from email.utils import format_datetime
from urllib.parse import urlencode, urlsplit

from ..exceptions import ConfigurationError
from .types import Credentials

DEFAULT_SERVICE_URL = "wss://iat-api.xfyun.cn/v2/iat"
SIGNATURE_ALGORITHM = "hmac-sha256"
SIGNED_HEADERS = "host date request-line"


def http_date(now: datetime) -> str:
    """Format a datetime as an HTTP-date (``Mon, 01 Jan 2024 00:00:00 GMT``)."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return format_datetime(now.astimezone(timezone.utc), usegmt=True)


def sign(
    credentials: Credentials,
    service_host: str,
    request_line: str,
    now: datetime,
    service_url: str = DEFAULT_SERVICE_URL,
) -> str:
    """Build the signed connection URL.

    Args:
        credentials: Validated credentials (api_key/api_secret are used)
        service_host: Host header value covered by the signature
        request_line: HTTP request line, e.g. ``GET /v2/iat HTTP/1.1``
        now: Signing time; injected so signing is deterministic
        service_url: Base URL the query parameters are appended to

    Returns:
        The service URL with ``authorization``, ``date`` and ``host`` appended

    Raises:
        ConfigurationError: If the credentials are incomplete

    """
    if credentials is None:
        raise ConfigurationError("Cannot sign a connection URL without credentials")
    credentials.validate()

    date = http_date(now)
    signature_origin = f"host: {service_host}\ndate: {date}\n{request_line}"
    digest = hmac.new(
        credentials.api_secret.encode("utf-8"),
        signature_origin.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    signature = base64.b64encode(digest).decode("ascii")

    authorization_origin = (
        f'api_key="{credentials.api_key}", algorithm="{SIGNATURE_ALGORITHM}", '
        f'headers="{SIGNED_HEADERS}", signature="{signature}"'
    )
    authorization = base64.b64encode(authorization_origin.encode("utf-8")).decode("ascii")

    query = urlencode({"authorization": authorization, "date": date, "host": service_host})
    return f"{service_url}?{query}"


class AuthSigner:
    """Signs connection URLs for one service endpoint.

    The host and request line are derived from the service URL, so pointing
    the signer at a different path (e.g. a regional endpoint) keeps the
    signature consistent with the URL actually dialled.
    """

    def __init__(self, service_url: str = DEFAULT_SERVICE_URL):
        parts = urlsplit(service_url)
        if parts.scheme not in ("ws", "wss") or not parts.hostname:
            raise ConfigurationError(f"Invalid service URL: {service_url!r}")
        self.service_url = service_url
        self.host = parts.netloc
        self.request_line = f"GET {parts.path or '/'} HTTP/1.1"

    def sign(self, credentials: Credentials, now: datetime | None = None) -> str:
        if now is None:
            now = datetime.now(timezone.utc)
        return sign(credentials, self.host, self.request_line, now, service_url=self.service_url)
