import httpx
import pytest
from typer.testing import CliRunner

from bitbucket_cloud_client import cli
from bitbucket_cloud_client.cli import app
from bitbucket_cloud_client.config import build_client


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("API_URL", "USERNAME", "PASSWORD", "TOKEN", "TIMEOUT_SECONDS", "DEBUG"):
        monkeypatch.delenv(f"BITBUCKET_{name}", raising=False)


@pytest.fixture
def requests_seen(monkeypatch: pytest.MonkeyPatch) -> list[httpx.Request]:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/missing"):
            return httpx.Response(404, json={"error": {"message": "Repository not found"}})
        if request.url.path.endswith("/down"):
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, text='{"uuid": "{1234}"}')

    def build_mocked(config, token_source=None):
        return build_client(config, token_source, transport=httpx.MockTransport(handler))

    monkeypatch.setattr(cli, "build_client", build_mocked)
    return seen


def test_auth_status_smoke() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["auth", "status"])
    assert result.exit_code == 0
    assert "Target Bitbucket" in result.stdout
    assert "Authentication: none" in result.stdout


def test_auth_status_hides_secrets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BITBUCKET_USERNAME", "alice")
    monkeypatch.setenv("BITBUCKET_PASSWORD", "hunter2")

    result = CliRunner().invoke(app, ["auth", "status"])

    assert result.exit_code == 0
    assert "Authentication: basic (alice)" in result.stdout
    assert "hunter2" not in result.stdout


def test_api_get_prints_body(requests_seen: list[httpx.Request]) -> None:
    result = CliRunner().invoke(app, ["api", "get", "2.0/user"])

    assert result.exit_code == 0
    assert '{"uuid": "{1234}"}' in result.stdout
    assert requests_seen[0].method == "GET"


def test_api_post_non_json_sends_plain_body(requests_seen: list[httpx.Request]) -> None:
    result = CliRunner().invoke(
        app, ["api", "post-non-json", "2.0/repositories/team/repo/hooks", "--data", "raw"]
    )

    assert result.exit_code == 0
    assert requests_seen[0].content == b"raw"
    assert "Content-Type" not in requests_seen[0].headers


def test_api_put_reads_data_file(requests_seen: list[httpx.Request], tmp_path) -> None:
    body = tmp_path / "body.json"
    body.write_text('{"name": "repo"}', encoding="utf-8")

    result = CliRunner().invoke(
        app, ["api", "put", "2.0/repositories/team/repo", "--data-file", str(body)]
    )

    assert result.exit_code == 0
    assert requests_seen[0].content == b'{"name": "repo"}'
    assert requests_seen[0].headers["Content-Type"] == "application/json"


def test_api_error_exits_with_status_one(requests_seen: list[httpx.Request]) -> None:
    result = CliRunner().invoke(app, ["api", "delete", "2.0/repositories/team/missing"])

    assert result.exit_code == 1
    assert "API Error: 404 2.0/repositories/team/missing Repository not found" in result.output


def test_transport_error_exits_with_status_two(requests_seen: list[httpx.Request]) -> None:
    result = CliRunner().invoke(app, ["api", "put-only", "2.0/down"])

    assert result.exit_code == 2
    assert "Request failed" in result.output
