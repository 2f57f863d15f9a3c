import httpx
from pydantic import BaseModel


class BitbucketError(Exception):
    """Base class for every failure raised by the request layer."""


class RequestConstructionError(BitbucketError):
    """The outbound request could not be built (bad method or URL)."""


class CredentialError(BitbucketError):
    """The token source could not produce a token."""


class TransportError(BitbucketError):
    """The request never completed: connection, TLS or timeout failure."""


class BodyReadError(BitbucketError):
    """The response body could not be read."""


class ErrorDetail(BaseModel):
    message: str | None = None


class ErrorBody(BaseModel):
    """Shape of a Bitbucket failure payload: {"error": {"message": ...}, "type": ...}"""

    error: ErrorDetail | None = None
    type: str | None = None


class APIError(BitbucketError):
    """Bitbucket answered with a status code outside 2xx."""

    def __init__(
        self,
        status_code: int,
        endpoint: str,
        message: str = "",
        type: str | None = None,
        response: httpx.Response | None = None,
    ) -> None:
        super().__init__(status_code, endpoint, message)
        self.status_code = status_code
        self.endpoint = endpoint
        self.message = message
        self.type = type
        self.response = response

    def __str__(self) -> str:
        return f"API Error: {self.status_code} {self.endpoint} {self.message}"
