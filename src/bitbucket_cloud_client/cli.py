import logging
from pathlib import Path

import typer

from bitbucket_cloud_client.auth import describe
from bitbucket_cloud_client.config import AppConfig, build_client
from bitbucket_cloud_client.errors import APIError, BitbucketError
from bitbucket_cloud_client.services.bitbucket_client import BitbucketClient

app = typer.Typer(help="Bitbucket Cloud request layer", no_args_is_help=True)
auth_app = typer.Typer(help="Authentication commands")
api_app = typer.Typer(help="Raw API requests, endpoints are relative to the API URL")

app.add_typer(auth_app, name="auth")
app.add_typer(api_app, name="api")


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Log every request and response"),
) -> None:
    config = AppConfig()
    if debug:
        config = config.model_copy(update={"debug": True})
    if config.debug:
        logging.basicConfig(level=logging.DEBUG, format="[%(levelname)s] %(message)s")
    ctx.obj = config


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.obj if isinstance(ctx.obj, AppConfig) else AppConfig()


def _payload(data: str | None, data_file: Path | None) -> bytes | None:
    if data is not None and data_file is not None:
        raise typer.BadParameter("use either --data or --data-file, not both")
    if data_file is not None:
        return data_file.read_bytes()
    if data is not None:
        return data.encode()
    return None


def _run(ctx: typer.Context, call) -> None:
    client: BitbucketClient = build_client(_config(ctx))
    with client:
        try:
            response = call(client)
        except APIError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(1) from exc
        except BitbucketError as exc:
            typer.echo(f"Request failed: {exc}", err=True)
            raise typer.Exit(2) from exc
    typer.echo(response.text)


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    config = _config(ctx)
    typer.echo(f"Target Bitbucket: {config.api_url}")
    typer.echo(f"Authentication: {describe(config.resolve_auth())}")


@api_app.command("get")
def api_get(ctx: typer.Context, endpoint: str) -> None:
    _run(ctx, lambda client: client.get(endpoint))


@api_app.command("delete")
def api_delete(ctx: typer.Context, endpoint: str) -> None:
    _run(ctx, lambda client: client.delete(endpoint))


@api_app.command("put-only")
def api_put_only(ctx: typer.Context, endpoint: str) -> None:
    _run(ctx, lambda client: client.put_only(endpoint))


@api_app.command("post")
def api_post(
    ctx: typer.Context,
    endpoint: str,
    data: str = typer.Option(None, "--data", "-d", help="Request body"),
    data_file: Path = typer.Option(None, "--data-file", exists=True, dir_okay=False),
) -> None:
    payload = _payload(data, data_file)
    _run(ctx, lambda client: client.post(endpoint, payload))


@api_app.command("post-non-json")
def api_post_non_json(
    ctx: typer.Context,
    endpoint: str,
    data: str = typer.Option(None, "--data", "-d", help="Request body"),
    data_file: Path = typer.Option(None, "--data-file", exists=True, dir_okay=False),
) -> None:
    payload = _payload(data, data_file)
    _run(ctx, lambda client: client.post_non_json(endpoint, payload))


@api_app.command("put")
def api_put(
    ctx: typer.Context,
    endpoint: str,
    data: str = typer.Option(None, "--data", "-d", help="Request body"),
    data_file: Path = typer.Option(None, "--data-file", exists=True, dir_okay=False),
) -> None:
    payload = _payload(data, data_file)
    _run(ctx, lambda client: client.put(endpoint, payload))


if __name__ == "__main__":
    app()
