"""Authentication variants for Bitbucket Cloud requests.

A client carries at most one of these. `authorization_header` turns the
variant into the value of the `Authorization` header; for a dynamic token
the token source is asked for a fresh token on every call.
"""

import base64
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from bitbucket_cloud_client.errors import CredentialError


@dataclass(frozen=True)
class Token:
    access_token: str
    token_type: str = "Bearer"

    def type(self) -> str:
        # OAuth2 servers send "bearer" in lower case; an empty type means Bearer.
        if not self.token_type or self.token_type.lower() == "bearer":
            return "Bearer"
        return self.token_type

    def header_value(self) -> str:
        return f"{self.type()} {self.access_token}"


@runtime_checkable
class TokenSource(Protocol):
    def token(self) -> Token: ...


@dataclass(frozen=True)
class BasicAuth:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"BasicAuth(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class StaticToken:
    value: str

    def __repr__(self) -> str:
        return "StaticToken(value='***')"


@dataclass(frozen=True)
class DynamicToken:
    source: TokenSource


Auth = BasicAuth | StaticToken | DynamicToken


def basic_auth_header(username: str, password: str) -> str:
    credentials = f"{username}:{password}".encode()
    return "Basic " + base64.b64encode(credentials).decode("ascii")


def authorization_header(auth: Auth | None) -> str | None:
    """Return the `Authorization` header value for `auth`, or None.

    Raises CredentialError when a dynamic token source fails.
    """
    match auth:
        case None:
            return None
        case BasicAuth(username=username, password=password):
            return basic_auth_header(username, password)
        case StaticToken(value=value):
            return f"Bearer {value}"
        case DynamicToken(source=source):
            try:
                token = source.token()
            except Exception as exc:
                raise CredentialError(f"token source failed: {exc}") from exc
            return token.header_value()
    raise TypeError(f"unsupported auth type: {type(auth).__name__}")


def describe(auth: Auth | None) -> str:
    """Short, secret-free label for the active mechanism."""
    match auth:
        case BasicAuth(username=username):
            return f"basic ({username})"
        case StaticToken():
            return "token"
        case DynamicToken():
            return "token source"
    return "none"
