"""HTTP transport used by the backend adapters."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import httpx

from floaty.errors import InvalidResponseError


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class HttpResponse:
    """Status code and raw body of a completed request."""
    status: int
    body: str

    def json(self) -> Any:
        """Decode the body as JSON, an empty body decodes to an empty dict."""
        if not self.body.strip():
            return {}
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise InvalidResponseError(f"HTTP {self.status}: response is not valid JSON: {self.body}") from e

    def is_json(self) -> bool:
        """True when the body parses as JSON."""
        try:
            json.loads(self.body)
        except ValueError:
            return False
        return True


class HttpClient:
    """Thin synchronous client bound to one service URL."""

    def __init__(
        self,
        base_url: str,
        verbose: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
        token: Optional[str] = None,
        auth: Optional[Tuple[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the client."""
        self.base_url = base_url.rstrip("/") + "/"
        self.verbose = verbose
        self.transport = transport
        self.headers: Dict[str, str] = {}
        if token:
            self.headers["X-AUTH-TOKEN"] = token
        self.auth = auth
        self.timeout = timeout

    def request(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[Any] = None,
    ) -> HttpResponse:
        """Send a request and return its status and body verbatim.

        Dicts and lists are sent as JSON. Transport failures propagate as
        ``httpx.HTTPError``; no retries are attempted.
        """
        request_headers = dict(self.headers)
        request_headers.update(headers or {})

        content = None
        if body is not None:
            if isinstance(body, (dict, list)):
                content = json.dumps(body)
                request_headers.setdefault("Content-Type", "application/json")
            else:
                content = str(body)

        url = path.lstrip("/")
        if self.verbose:
            logger.info(f"{method} {self.base_url}{url}")

        with httpx.Client(
            transport=self.transport,
            base_url=self.base_url,
            auth=self.auth,
            timeout=self.timeout,
            follow_redirects=False,
        ) as client:
            response = client.request(method, url, headers=request_headers, content=content)

        if self.verbose:
            logger.info(f"HTTP {response.status_code} {response.text}")
        return HttpResponse(status=response.status_code, body=response.text)

    def get(self, path: str, **kwargs: Any) -> HttpResponse:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> HttpResponse:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> HttpResponse:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> HttpResponse:
        return self.request("DELETE", path, **kwargs)
