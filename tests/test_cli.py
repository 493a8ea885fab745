import httpx
import pytest
from click.testing import CliRunner

from ingestion_orchestrator.cli.main import _parse_item_id, cli

pytestmark = pytest.mark.usefixtures("detach_cli_handlers")

RUN_FAST = ["--cooldown", "0", "--latency", "0", "--poll-interval", "0.01"]


@pytest.fixture
def runner():
    return CliRunner()


def test_run_drains_submission_in_process(runner):
    result = runner.invoke(cli, ["-l", "CRITICAL", "run", "1", "2", "3", "4", "--priority", "HIGH"] + RUN_FAST)

    assert result.exit_code == 0, result.output
    assert "Submission ID:" in result.output
    assert "[completed] completed completed" in result.output
    assert "Priority: HIGH" in result.output


def test_run_exits_non_zero_when_a_batch_fails(runner, monkeypatch):
    monkeypatch.setenv("INGESTION_FETCH_FAILURE_RATE", "1")

    result = runner.invoke(cli, ["-l", "CRITICAL", "run", "a"] + RUN_FAST)

    assert result.exit_code == 1
    assert "[failed] failed" in result.output
    assert "error:" in result.output


def test_submit_posts_ids_to_server(runner, monkeypatch):
    sent = {}

    def fake_post(url, json, timeout):
        sent.update(url=url, json=json)
        return httpx.Response(200, json={"submission_id": "abc-123"}, request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx, "post", fake_post)

    result = runner.invoke(cli, ["-l", "CRITICAL", "submit", "1", "two", "--priority", "LOW",
                                 "--url", "http://server.test/"])

    assert result.exit_code == 0, result.output
    assert "Submission ID: abc-123" in result.output
    assert sent == {"url": "http://server.test/ingest", "json": {"ids": [1, "two"], "priority": "LOW"}}


def test_submit_reports_unreachable_server(runner):
    result = runner.invoke(cli, ["-l", "CRITICAL", "submit", "1", "--url", "http://127.0.0.1:9"])

    assert result.exit_code == 1


def test_status_reports_server_error(runner, monkeypatch):
    def fake_get(url, timeout):
        body = {"error_code": "NOT_FOUND", "message": "Submission nope not found"}
        return httpx.Response(404, json=body, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx, "get", fake_get)

    result = runner.invoke(cli, ["-l", "CRITICAL", "status", "nope"])

    assert result.exit_code == 1
    assert "Submission nope not found" in result.output


def test_invalid_configuration_is_reported(runner, monkeypatch):
    monkeypatch.setenv("INGESTION_BATCH_SIZE", "0")

    result = runner.invoke(cli, ["run", "1"])

    assert result.exit_code == 1
    assert "batch_size" in result.output


@pytest.mark.parametrize("raw, expected", [("7", 7), ("-3", -3), ("abc", "abc"), ("1.5", "1.5")])
def test_numeric_ids_are_sent_as_integers(raw, expected):
    assert _parse_item_id(raw) == expected


def test_submit_reports_non_json_error_page(runner, monkeypatch):
    def fake_post(url, json, timeout):
        return httpx.Response(502, text="<html>Bad Gateway</html>", request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx, "post", fake_post)

    result = runner.invoke(cli, ["-l", "CRITICAL", "submit", "1"])

    assert result.exit_code == 1
    assert "HTTP 502: <html>Bad Gateway</html>" in result.output


def test_status_reports_non_json_error_page(runner, monkeypatch):
    def fake_get(url, timeout):
        return httpx.Response(502, text="Bad Gateway", request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx, "get", fake_get)

    result = runner.invoke(cli, ["-l", "CRITICAL", "status", "abc"])

    assert result.exit_code == 1
    assert "HTTP 502: Bad Gateway" in result.output
