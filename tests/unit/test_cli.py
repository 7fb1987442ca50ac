"""
Tests for the command-line interface.
"""

import json
import re
from unittest.mock import patch

import pytest

from soundflare_trace import cli
from soundflare_trace.utils import settings
from soundflare_trace.utils.settings import Settings


@pytest.fixture(autouse=True)
def default_settings():
    """Keep the user's settings file out of CLI tests."""
    settings._settings = Settings()
    yield settings._settings
    settings._settings = None


@pytest.fixture
def export_file(tmp_path, three_turn_rows):
    path = tmp_path / "spans.json"
    path.write_text(json.dumps({"spans": three_turn_rows}))
    return path


class TestDump:
    def test_text_output(self, export_file, capsys):
        code = cli.main(["dump", "--json", str(export_file), "--trace", "tk_test", "--page-size", "2"])

        out = capsys.readouterr().out
        assert code == 0
        assert out.splitlines()[0] == "Trace tk_test: 7 span(s), 3 turn(s), 4 page(s)"
        assert "[turn-2-user_turn] user_turn  3 span(s), 190.0 ms" in out
        assert "    llm_request  (420.0 ms)" in out

    def test_json_output(self, export_file, capsys):
        cli.main(["dump", "--json", str(export_file), "--trace", "tk_test", "--format", "json"])

        payload = json.loads(capsys.readouterr().out)
        assert payload["status"]["state"] == "complete"
        assert payload["status"]["total_count"] == 7
        assert [t["type"] for t in payload["turns"]] == [
            "session_management",
            "user_turn",
            "assistant_turn",
        ]

    def test_spans_before_first_turn_are_reported(self, tmp_path, capsys, span_builder):
        path = tmp_path / "spans.json"
        path.write_text(json.dumps(span_builder.add("warmup").turn("user_turn").rows()))

        cli.main(["dump", "--json", str(path), "--trace", "tk_test"])

        assert "(1 span(s) before the first turn not shown)" in capsys.readouterr().out

    def test_unknown_trace(self, export_file, capsys):
        cli.main(["dump", "--json", str(export_file), "--trace", "tk_missing"])

        assert "(no conversation turns)" in capsys.readouterr().out

    def test_missing_source_is_an_error(self, capsys):
        code = cli.main(["dump", "--trace", "tk_test"])

        assert code == 1
        assert "No span source" in capsys.readouterr().err

    def test_unreadable_export_is_an_error(self, tmp_path, capsys):
        code = cli.main(["dump", "--json", str(tmp_path / "nope.json"), "--trace", "tk"])

        assert code == 1
        assert "Cannot read span export" in capsys.readouterr().err

    def test_rest_source(self, mock_aioresponse, three_turn_rows, capsys):
        url = re.compile(r"^https://db\.example\.com/soundflare_spans(\?.*)?$")
        mock_aioresponse.get(url, payload=three_turn_rows)
        mock_aioresponse.head(url, headers={"Content-Range": "0-6/7"})

        code = cli.main(["dump", "--rest", "https://db.example.com", "--trace", "tk_test"])

        assert code == 0
        assert "3 turn(s)" in capsys.readouterr().out

    def test_rest_url_from_settings(
        self, mock_aioresponse, three_turn_rows, default_settings, capsys
    ):
        default_settings.rest_base_url = "https://db.example.com/rest/v1"
        url = re.compile(r"^https://db\.example\.com/rest/v1/soundflare_spans(\?.*)?$")
        mock_aioresponse.get(url, payload=three_turn_rows)
        mock_aioresponse.head(url, headers={"Content-Range": "0-6/7"})

        code = cli.main(["dump", "--trace", "tk_test"])

        assert code == 0
        assert "Trace tk_test: 7 span(s), 3 turn(s)" in capsys.readouterr().out

    def test_local_source_wins_over_settings_rest_url(
        self, export_file, default_settings, capsys
    ):
        default_settings.rest_base_url = "https://db.example.com/rest/v1"

        with patch.object(cli, "RestSpanSource") as rest_cls:
            code = cli.main(["dump", "--json", str(export_file), "--trace", "tk_test"])

        assert code == 0
        rest_cls.assert_not_called()
        assert "3 turn(s)" in capsys.readouterr().out


class TestServe:
    def test_serve_uses_settings_defaults(self, export_file, default_settings):
        default_settings.api_port = 20001

        with patch("soundflare_trace.api.TraceAPIServer") as server_cls:
            cli.main(["serve", "--json", str(export_file)])

        _, kwargs = server_cls.call_args
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 20001
        assert kwargs["page_size"] == 50
        server_cls.return_value.serve_forever.assert_called_once()
