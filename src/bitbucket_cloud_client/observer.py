import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)


class RequestObserver(Protocol):
    """Hooks the client calls around every exchange.

    `on_error` receives every failure that has a request to report:
    credential, transport, body-read and API errors. A RequestConstructionError
    is raised before any request exists and skips the observer.
    """

    def before_send(self, request: httpx.Request) -> None: ...

    def after_receive(self, request: httpx.Request, response: httpx.Response) -> None: ...

    def on_error(self, request: httpx.Request, error: Exception) -> None: ...


class NullObserver:
    def before_send(self, request: httpx.Request) -> None:
        pass

    def after_receive(self, request: httpx.Request, response: httpx.Response) -> None:
        pass

    def on_error(self, request: httpx.Request, error: Exception) -> None:
        pass


class LoggingObserver:
    """Logs requests and responses, bodies included. Authorization is never logged."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    def before_send(self, request: httpx.Request) -> None:
        self.log.debug("Sending request to %s %s", request.method, request.url)
        if request.content:
            self.log.debug("With payload %s", request.content.decode(errors="replace"))

    def after_receive(self, request: httpx.Request, response: httpx.Response) -> None:
        self.log.debug(
            "Resp: %s %s -> %s", request.method, request.url, response.status_code
        )
        if not response.is_success:
            self.log.debug("Resp Body: %s", response.text)

    def on_error(self, request: httpx.Request, error: Exception) -> None:
        self.log.warning("%s %s failed: %s", request.method, request.url, error)
