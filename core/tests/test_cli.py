"""Tests for the command line front end."""
import sys
from unittest.mock import patch

import httpx
import pytest
from loguru import logger
from typer.testing import CliRunner

from conftest import API, INVALID_BODY
from posadmin.api.client import SessionClient
from posadmin.cli import app

runner = CliRunner()

SESSION_BODY = {
    "user": {"sub": "u1", "email": "admin@example.com", "permissions": ["a"], "allowAllBrands": True},
    "brands": [{"id": "b1", "name": "Burgers"}],
}


@pytest.fixture
def cli_client(api, state):
    def factory(**_options):
        return SessionClient(API, state=state, settings={}, transport=api.transport())

    with patch("posadmin.cli.SessionClient", side_effect=factory):
        yield
    # The CLI points loguru at the runner's captured stderr.
    logger.remove()
    logger.add(sys.stderr)


class TestCli:
    def test_get_prints_json(self, api, cli_client):
        api.route("GET", "/orders", lambda r: httpx.Response(200, json={"orders": []}))
        result = runner.invoke(app, ["get", "/orders"])
        assert result.exit_code == 0
        assert '"orders"' in result.output

    def test_get_request_failed(self, api, cli_client):
        api.route("GET", "/orders", lambda r: httpx.Response(500, text="boom"))
        result = runner.invoke(app, ["get", "/orders"])
        assert result.exit_code == 1
        assert "HTTP 500" in result.output

    def test_session_expired_exit_code(self, api, cli_client, state):
        api.route("GET", "/orders", lambda r: httpx.Response(401, json=INVALID_BODY))
        result = runner.invoke(app, ["get", "/orders"])
        assert result.exit_code == 2
        assert "posadmin login" in result.output
        assert "accessToken" not in state

    def test_brand_shows_current(self, cli_client):
        result = runner.invoke(app, ["brand"])
        assert result.exit_code == 0
        assert "ALL" in result.output

    def test_brand_select(self, api, cli_client, state):
        api.route("GET", "/session", lambda r: httpx.Response(200, json=SESSION_BODY))
        result = runner.invoke(app, ["brand", "b1"])
        assert result.exit_code == 0
        assert state.get("selectedBrandId") == "b1"

    def test_brand_select_unknown(self, api, cli_client, state):
        api.route("GET", "/session", lambda r: httpx.Response(200, json=SESSION_BODY))
        result = runner.invoke(app, ["brand", "zz"])
        assert result.exit_code == 1
        assert "selectedBrandId" not in state

    def test_logout(self, api, cli_client, state):
        result = runner.invoke(app, ["logout"])
        assert result.exit_code == 0
        assert "accessToken" not in state
        assert len(api.calls_to("/auth/logout")) == 1

    def test_login_failure(self, api, cli_client):
        api.route("POST", "/auth/login", lambda r: httpx.Response(401, json={"error": "Invalid credentials"}))
        result = runner.invoke(app, ["login", "--email", "a@b.c", "--password", "nope-nope"])
        assert result.exit_code == 1
        assert "Invalid credentials" in result.output
