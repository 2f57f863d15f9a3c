import re
from dataclasses import dataclass, field

import httpx
from pydantic import TypeAdapter, ValidationError

from bitbucket_cloud_client.auth import Auth, authorization_header
from bitbucket_cloud_client.errors import (
    APIError,
    BodyReadError,
    CredentialError,
    ErrorBody,
    RequestConstructionError,
    TransportError,
)
from bitbucket_cloud_client.observer import NullObserver, RequestObserver

BITBUCKET_ENDPOINT = "https://api.bitbucket.org/"

# RFC 7230 token characters.
_METHOD_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")

# A JSON null body decodes to an empty error document.
_error_body = TypeAdapter(ErrorBody | None)


def build_http_client(
    timeout: float = 30.0, transport: httpx.BaseTransport | None = None
) -> httpx.Client:
    return httpx.Client(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        transport=transport,
    )


def _api_error(endpoint: str, response: httpx.Response) -> APIError:
    try:
        body = _error_body.validate_json(response.content)
    except ValidationError:
        # Not the usual error document, keep the raw body as the message.
        return APIError(response.status_code, endpoint, response.text, response=response)
    if body is None:
        body = ErrorBody()
    message = body.error.message if body.error and body.error.message else ""
    return APIError(
        response.status_code, endpoint, message, type=body.type, response=response
    )


@dataclass(frozen=True)
class BitbucketClient:
    """Authenticated access to the Bitbucket Cloud REST API.

    Every verb funnels through `do`, which returns the response for a 2xx
    status and raises a `BitbucketError` subclass otherwise. At most one
    authentication mechanism is configured, so there is nothing to merge.
    """

    http_client: httpx.Client = field(default_factory=build_http_client)
    auth: Auth | None = None
    base_url: str = BITBUCKET_ENDPOINT
    observer: RequestObserver = field(default_factory=NullObserver)

    def __enter__(self) -> "BitbucketClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.http_client.close()

    def do(
        self,
        method: str,
        endpoint: str,
        payload: bytes | None = None,
        add_json_header: bool = True,
    ) -> httpx.Response:
        """Send one request to `base_url + endpoint` and check its status.

        Raises:
            RequestConstructionError: the method or URL is malformed.
            CredentialError: the token source failed; nothing was sent.
            TransportError: the exchange could not be completed.
            BodyReadError: the response body could not be read.
            APIError: the status code is outside 2xx; the response is attached.
        """
        url = self.base_url + endpoint
        if not isinstance(method, str) or not _METHOD_RE.fullmatch(method):
            raise RequestConstructionError(f"invalid method {method!r} for {url}")
        try:
            request = self.http_client.build_request(method, url, content=payload)
        except (httpx.InvalidURL, ValueError, TypeError) as exc:
            raise RequestConstructionError(f"cannot build {method} {url}: {exc}") from exc

        try:
            header = authorization_header(self.auth)
        except CredentialError as exc:
            self.observer.on_error(request, exc)
            raise
        if header is not None:
            request.headers["Authorization"] = header

        if payload is not None and add_json_header:
            # Some endpoints (default reviewers) reject the header, hence the flag.
            request.headers["Content-Type"] = "application/json"

        request.headers["Connection"] = "close"

        self.observer.before_send(request)
        try:
            response = self.http_client.send(request, stream=True)
        except httpx.RequestError as exc:
            # Covers connection failures as well as redirect loops.
            error = TransportError(f"{method} {url}: {exc}")
            self.observer.on_error(request, error)
            raise error from exc

        try:
            response.read()
        except (httpx.HTTPError, httpx.StreamError) as exc:
            response.close()
            error = BodyReadError(f"{method} {url}: {exc}")
            self.observer.on_error(request, error)
            raise error from exc
        self.observer.after_receive(request, response)

        if not 200 <= response.status_code <= 299:
            api_error = _api_error(endpoint, response)
            self.observer.on_error(request, api_error)
            raise api_error
        return response

    def get(self, endpoint: str) -> httpx.Response:
        return self.do("GET", endpoint, None, True)

    def post(self, endpoint: str, payload: bytes) -> httpx.Response:
        return self.do("POST", endpoint, payload, True)

    def post_non_json(self, endpoint: str, payload: bytes) -> httpx.Response:
        return self.do("POST", endpoint, payload, False)

    def put(self, endpoint: str, payload: bytes) -> httpx.Response:
        return self.do("PUT", endpoint, payload, True)

    def put_only(self, endpoint: str) -> httpx.Response:
        return self.do("PUT", endpoint, None, True)

    def delete(self, endpoint: str) -> httpx.Response:
        return self.do("DELETE", endpoint, None, True)
