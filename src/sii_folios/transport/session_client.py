"""HTTP session client for the SII portal.

One ``SessionClient`` serves exactly one workflow run: it owns the cookie jar
that carries the portal session from step to step, presents the client
certificate on every HTTPS connection and never follows redirects or retries
a request on its own.
"""

import ssl
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.ssl_ import create_urllib3_context

from sii_folios.config.schema import TransportConfig
from sii_folios.logging_audit.logger import get_logger

logger = get_logger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Encoding": "gzip, deflate",
}

Timeout = Union[float, tuple[float, float]]


class TLS12Adapter(HTTPAdapter):
    """Force TLS 1.2+ for HTTPS connections.

    Custom requests adapter that enforces minimum TLS 1.2 for all HTTPS
    connections to the portal. Mounted without retries: a portal step that
    fails is reported, never replayed.

    Example:
        >>> session = requests.Session()
        >>> session.mount('https://', TLS12Adapter())
    """

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("max_retries", 0)
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        """Initialize connection pool with TLS 1.2+ enforcement.

        Args:
            *args: Positional arguments for pool manager
            **kwargs: Keyword arguments for pool manager

        Returns:
            Initialized pool manager with TLS 1.2+ context
        """
        context = create_urllib3_context()
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        kwargs["ssl_context"] = context
        return super().init_poolmanager(*args, **kwargs)


@dataclass(frozen=True)
class RawResponse:
    """Transport-level response handed to the workflow.

    Attributes:
        status_code: HTTP status code
        content: Raw body bytes
        text: Body decoded as text
        headers: Response headers
        url: Final request URL (including query string)
    """

    status_code: int
    content: bytes = field(repr=False)
    text: str = field(repr=False)
    headers: Mapping[str, str] = field(default_factory=dict, repr=False)
    url: str = ""

    @classmethod
    def from_requests(cls, response: requests.Response) -> "RawResponse":
        return cls(
            status_code=response.status_code,
            content=response.content,
            text=response.text,
            headers=dict(response.headers),
            url=response.url,
        )


class SessionClient:
    """Cookie-carrying HTTP client for one portal session.

    Attributes:
        session: Underlying requests session (cookie jar, TLS settings)
        default_timeout: (connect, read) timeout used when a call gives none

    Example:
        >>> with SessionClient(config.transport, cert=staged.requests_cert) as client:
        ...     response = client.get(login_url, query={"rut": "12345678"})
        ...     response.status_code
        200
    """

    def __init__(
        self,
        transport: TransportConfig,
        cert: Optional[tuple[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the session client.

        Args:
            transport: Transport configuration (TLS verification, timeouts)
            cert: (cert_path, key_path) of the staged client certificate
            session: Pre-built session (tests); a new one is created if None
        """
        self.session = session or requests.Session()
        self.session.mount("https://", TLS12Adapter())
        self.session.mount("http://", HTTPAdapter(max_retries=0))
        self.session.headers.update(DEFAULT_HEADERS)
        self.session.verify = transport.verify_tls
        if cert is not None:
            self.session.cert = cert

        self.default_timeout: tuple[float, float] = (
            transport.timeout_connect,
            transport.timeout_read,
        )

        if not transport.verify_tls:
            logger.warning(
                "TLS certificate verification is DISABLED. "
                "This should only be used for development against a local portal."
            )

    def get(
        self,
        url: str,
        query: Optional[Mapping[str, Any]] = None,
        timeout: Optional[Timeout] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> RawResponse:
        """Send a GET request without following redirects.

        Args:
            url: Absolute URL
            query: Query string parameters
            timeout: Seconds or (connect, read) tuple
            headers: Extra headers for this request

        Returns:
            RawResponse

        Raises:
            requests.Timeout: If the portal does not answer in time
            requests.RequestException: On connection or TLS errors
        """
        response = self.session.get(
            url,
            params=query,
            headers=headers,
            timeout=timeout or self.default_timeout,
            allow_redirects=False,
        )
        logger.debug(f"GET {response.url} -> {response.status_code}")
        return RawResponse.from_requests(response)

    def post_form(
        self,
        url: str,
        query: Optional[Mapping[str, Any]] = None,
        form_fields: Optional[Mapping[str, Any]] = None,
        timeout: Optional[Timeout] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> RawResponse:
        """Send a form-encoded POST request without following redirects.

        Args:
            url: Absolute URL
            query: Query string parameters
            form_fields: Form body fields (application/x-www-form-urlencoded)
            timeout: Seconds or (connect, read) tuple
            headers: Extra headers for this request

        Returns:
            RawResponse

        Raises:
            requests.Timeout: If the portal does not answer in time
            requests.RequestException: On connection or TLS errors
        """
        response = self.session.post(
            url,
            params=query,
            data=form_fields,
            headers=headers,
            timeout=timeout or self.default_timeout,
            allow_redirects=False,
        )
        logger.debug(f"POST {response.url} -> {response.status_code}")
        return RawResponse.from_requests(response)

    def close(self) -> None:
        """Close the session and drop its cookies."""
        self.session.cookies.clear()
        self.session.close()

    def __enter__(self) -> "SessionClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
