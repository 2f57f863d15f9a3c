import logging

import httpx
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from bitbucket_cloud_client.auth import Auth, BasicAuth, DynamicToken, StaticToken, TokenSource
from bitbucket_cloud_client.observer import LoggingObserver, NullObserver
from bitbucket_cloud_client.services.bitbucket_client import (
    BITBUCKET_ENDPOINT,
    BitbucketClient,
    build_http_client,
)

logger = logging.getLogger(__name__)


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BITBUCKET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = Field(default=BITBUCKET_ENDPOINT)
    username: str | None = Field(default=None)
    # App password or API token used with `username`.
    password: SecretStr | None = Field(default=None)
    token: SecretStr | None = Field(default=None)
    timeout_seconds: float = Field(default=30.0, gt=0)
    debug: bool = Field(default=False)

    def resolve_auth(self, token_source: TokenSource | None = None) -> Auth | None:
        """Pick one mechanism: token source, then static token, then basic credentials."""
        candidates: list[tuple[str, Auth]] = []
        if token_source is not None:
            candidates.append(("token source", DynamicToken(token_source)))
        if self.token is not None:
            candidates.append(("token", StaticToken(self.token.get_secret_value())))
        if self.username and self.password is not None:
            candidates.append(
                ("basic", BasicAuth(self.username, self.password.get_secret_value()))
            )
        if not candidates:
            return None
        if len(candidates) > 1:
            ignored = ", ".join(name for name, _ in candidates[1:])
            logger.warning(
                "Several authentication mechanisms configured, using %s and ignoring %s",
                candidates[0][0],
                ignored,
            )
        return candidates[0][1]


def build_client(
    config: AppConfig,
    token_source: TokenSource | None = None,
    transport: httpx.BaseTransport | None = None,
) -> BitbucketClient:
    return BitbucketClient(
        http_client=build_http_client(config.timeout_seconds, transport=transport),
        auth=config.resolve_auth(token_source),
        base_url=config.api_url,
        observer=LoggingObserver() if config.debug else NullObserver(),
    )
