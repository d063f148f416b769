"""
Tests for the command-line front end.
"""
from unittest.mock import patch

from cli import alttext as cli
from tests.conftest import make_response


class TestRun:
    def test_account(self, client, session):
        session.request.return_value = make_response(200, {"name": "Test", "usage": 1, "usage_limit": 5})
        args = cli.build_parser().parse_args(["account"])
        assert "Credits: 4 remaining (1 used of 5)" in cli.run(args, client)

    def test_generate_from_url(self, client, session):
        session.request.return_value = make_response(200, {"asset_id": "a1", "alt_text": "A tree"})
        args = cli.build_parser().parse_args(["generate", "--image-url", "https://example.com/t.jpg", "--lang", "en"])

        assert cli.run(args, client) == "Asset ID: a1\nAlt text: A tree"

    def test_list(self, client, session):
        session.request.return_value = make_response(200, {"images": []})
        args = cli.build_parser().parse_args(["list", "--page", "2"])

        cli.run(args, client)
        assert session.request.call_args.kwargs["params"] == {"page": "2"}


class TestMain:
    def test_missing_key(self, monkeypatch, capsys):
        monkeypatch.delenv("ALTTEXT_API_KEY", raising=False)
        with patch.object(cli, "load_env_file"):
            assert cli.main(["account"]) == 1
        assert "ALTTEXT_API_KEY" in capsys.readouterr().err

    def test_api_error_exit_code(self, monkeypatch, capsys, client, session):
        monkeypatch.setenv("ALTTEXT_API_KEY", "k")
        session.request.return_value = make_response(401, {"error": "Invalid API key", "error_code": "unauthorized"})
        with patch.object(cli, "load_env_file"), patch.object(cli.AltTextClient, "from_settings", return_value=client):
            assert cli.main(["account"]) == 1
        assert "Error (401): Invalid API key" in capsys.readouterr().err
