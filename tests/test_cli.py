"""CLI tests for the Solr maintenance commands."""

import json
import os
from pathlib import Path
from typing import Any

import httpx
import respx
from click.testing import CliRunner

from solrsync.cli import cli

BASE_URL = "http://127.0.0.1:8982/solr"


def _env() -> dict[str, Any]:
    return {key: None for key in os.environ if key.startswith("SOLRSYNC__")}


def _invoke(tmp_path: Path, *args: str, **kwargs: Any) -> Any:
    runner = CliRunner()
    return runner.invoke(cli, ["--config", str(tmp_path / "config.yaml"), *args], env=_env(), **kwargs)


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Maintain and query the Solr index" in result.output
    for command in ("ping", "commit", "optimize", "delete-all", "select", "config"):
        assert command in result.output


def test_ping_reports_json_status(tmp_path: Path) -> None:
    with respx.mock:
        respx.head(url__startswith=BASE_URL).mock(return_value=httpx.Response(200))
        result = _invoke(tmp_path, "ping", "--json")

    assert result.exit_code == 0
    assert json.loads(result.output) == {"url": BASE_URL, "responds": True}


def test_ping_exits_non_zero_when_unreachable(tmp_path: Path) -> None:
    with respx.mock:
        respx.head(url__startswith=BASE_URL).mock(side_effect=httpx.ConnectError("refused"))
        result = _invoke(tmp_path, "ping")

    assert result.exit_code == 1
    assert "not responding" in result.output


def test_host_and_port_overrides_change_target(tmp_path: Path) -> None:
    with respx.mock:
        route = respx.post("http://solr.internal:8983/solr/update").mock(
            return_value=httpx.Response(200)
        )
        result = _invoke(tmp_path, "--host", "solr.internal", "--port", "8983", "commit", "--json")

    assert result.exit_code == 0
    assert route.called
    assert json.loads(result.output) == {"status": "ok", "action": "commit"}


def test_commit_passes_wait_flags(tmp_path: Path) -> None:
    with respx.mock:
        route = respx.post(f"{BASE_URL}/update").mock(return_value=httpx.Response(200))
        result = _invoke(tmp_path, "commit", "--no-wait-flush")

    assert result.exit_code == 0
    assert "commit succeeded" in result.output
    assert route.calls[0].request.content == b'<commit waitFlush="false"/>'


def test_delete_removes_each_id(tmp_path: Path) -> None:
    with respx.mock:
        route = respx.post(f"{BASE_URL}/update").mock(return_value=httpx.Response(200))
        result = _invoke(tmp_path, "delete", "Widget-1", "Widget-2", "--json")

    assert result.exit_code == 0
    assert json.loads(result.output)["ids"] == ["Widget-1", "Widget-2"]
    bodies = [call.request.content for call in route.calls]
    assert bodies == [
        b"<delete><id>Widget-1</id></delete>",
        b"<delete><id>Widget-2</id></delete>",
        b"<commit/>",
    ]


def test_delete_all_requires_confirmation(tmp_path: Path) -> None:
    with respx.mock:
        route = respx.post(f"{BASE_URL}/update").mock(return_value=httpx.Response(200))
        declined = _invoke(tmp_path, "delete-all", "solr_type:Widget", input="n\n")

        assert declined.exit_code != 0
        assert not route.called

        accepted = _invoke(tmp_path, "delete-all", "solr_type:Widget", "--yes")

    assert accepted.exit_code == 0
    assert route.calls[0].request.content == b"<delete><query>solr_type:Widget</query></delete>"


def test_select_renders_table(tmp_path: Path) -> None:
    payload = {
        "responseHeader": {"status": 0, "QTime": 1},
        "response": {"numFound": 1, "start": 0, "docs": [{"solr_id": ["Widget-1"], "score": 1.0}]},
    }
    with respx.mock:
        route = respx.get(f"{BASE_URL}/select").mock(return_value=httpx.Response(200, json=payload))
        result = _invoke(tmp_path, "select", "title:lamp", "--fq", "solr_type:Widget", "--rows", "5")

    assert result.exit_code == 0
    assert "1 document(s) found" in result.output
    assert "Widget-1" in result.output
    params = route.calls[0].request.url.params
    assert params["q"] == "title:lamp"
    assert params.get_list("fq") == ["solr_type:Widget"]
    assert params["rows"] == "5"


def test_select_json_outputs_raw_response(tmp_path: Path) -> None:
    payload = {
        "responseHeader": {"status": 0},
        "response": {"numFound": 0, "start": 0, "docs": []},
    }
    with respx.mock:
        respx.get(f"{BASE_URL}/select").mock(return_value=httpx.Response(200, json=payload))
        result = _invoke(tmp_path, "select", "*:*", "--json")

    assert result.exit_code == 0
    assert json.loads(result.output) == payload


def test_connection_failure_emits_json_error(tmp_path: Path) -> None:
    with respx.mock:
        respx.post(f"{BASE_URL}/update").mock(side_effect=httpx.ConnectError("refused"))
        result = _invoke(tmp_path, "optimize", "--json")

    assert result.exit_code == 1
    error = json.loads(result.output)["error"]
    assert error["code"] == "connection_error"
    assert error["details"] == {"url": f"{BASE_URL}/update"}


def test_response_error_without_json_is_reported(tmp_path: Path) -> None:
    with respx.mock:
        respx.get(f"{BASE_URL}/select").mock(
            return_value=httpx.Response(400, text="<pre>undefined field colour</pre>")
        )
        result = _invoke(tmp_path, "select", "colour:red")

    assert result.exit_code == 1
    assert "undefined field colour" in result.output
