"""HTTP-level tests for the FastAPI application and the CLI entry point."""

import asyncio
import json
import logging

import httpx
import pytest
from fastapi.testclient import TestClient

from shorty import cli
from shorty.core.exceptions import PersistenceError
from shorty.core.setting import Settings
from shorty.main import create_app


class TestHTTPSurface:
    """Test the routes through FastAPI's TestClient."""

    def test_welcome(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "testserver/add/short=url" in response.text

    def test_add_then_redirect(self, client):
        response = client.get("/add/abc=example.com")
        assert response.status_code == 200
        assert response.text == "Successfully added redirect abc -> http://example.com"

        response = client.get("/abc", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "http://example.com"

    def test_add_with_scheme_keeps_path(self, client, store):
        response = client.get("/add/x=http://foo.com/bar")
        assert response.status_code == 200
        assert store.lookup("x") == (True, "http://foo.com/bar")

    def test_add_keeps_query_string(self, client, store):
        client.get("/add/s=example.com/search?q=1")
        assert store.lookup("s") == (True, "http://example.com/search?q=1")

    def test_add_keeps_percent_escapes(self, client, store):
        response = client.get("/add/s=example.com/a%2Fb%20c%25d")
        assert response.status_code == 200
        assert store.lookup("s") == (True, "http://example.com/a%2Fb%20c%25d")

        response = client.get("/s", follow_redirects=False)
        assert response.headers["location"] == "http://example.com/a%2Fb%20c%25d"

    def test_add_malformed(self, client):
        response = client.get("/add/bad-no-equals")
        assert response.status_code == 400
        assert "use /add/from=to" in response.text

    def test_delete_never_added(self, client):
        response = client.get("/delete/abc")
        assert response.status_code == 200
        assert response.text == "Successfully deleted redirect abc"

    def test_delete_then_miss(self, client):
        client.get("/add/abc=example.com")
        client.get("/delete/abc")
        response = client.get("/abc", follow_redirects=False)
        assert response.status_code == 404

    def test_not_found(self, client):
        response = client.get("/nonexistent")
        assert response.status_code == 404
        assert "nonexistent" in response.text

    def test_list(self, client, redirect_file):
        client.get("/add/abc=example.com")
        client.get("/add/gh=https://github.com")
        response = client.get("/list")
        assert response.status_code == 200
        assert response.text == redirect_file.read_text()
        assert json.loads(response.text) == {
            "abc": "http://example.com",
            "gh": "https://github.com",
        }

    def test_list_serves_file_bytes_verbatim(self, client, redirect_file):
        client.get("/add/abc=example.com")
        redirect_file.write_bytes(b"{\"abc\": \"caf\xe9\"}")
        response = client.get("/list")
        assert response.status_code == 200
        assert response.content == b"{\"abc\": \"caf\xe9\"}"

    def test_list_before_any_write(self, client):
        response = client.get("/list")
        assert response.status_code == 400

    def test_docs_paths_are_short_names(self, client):
        assert client.get("/docs").status_code == 404

    def test_process_time_header(self, client):
        response = client.get("/")
        assert "x-process-time" in response.headers

    def test_access_log_names_route(self, client, caplog):
        client.get("/add/abc=example.com")
        with caplog.at_level(logging.INFO, logger="shorty.access"):
            client.get("/abc", follow_redirects=False)
            client.get("/list")

        messages = [record.getMessage() for record in caplog.records if record.name == "shorty.access"]
        assert any("/abc redirect abc -> http://example.com 302" in message for message in messages)
        assert any("/list list 200" in message for message in messages)

    def test_persistence_failure_is_500(self, broken_store):
        with TestClient(create_app(store=broken_store)) as client:
            response = client.get("/add/abc=example.com")
        assert response.status_code == 500
        assert response.text.startswith("Failed adding redirect")


@pytest.mark.asyncio
async def test_concurrent_adds_over_http(store):
    """Concurrent requests for distinct keys all land in the mapping and the file."""
    app = create_app(store=store)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        responses = await asyncio.gather(
            *(client.get(f"/add/k{i}=site{i}.example.com") for i in range(25))
        )
        assert all(response.status_code == 200 for response in responses)

        listing = await client.get("/list")

    expected = {f"k{i}": f"http://site{i}.example.com" for i in range(25)}
    assert store.to_dict() == expected
    assert json.loads(listing.text) == expected


class TestStartup:
    """Test configuration and fatal startup errors."""

    def test_create_app_loads_configured_file(self, redirect_file):
        redirect_file.write_text(json.dumps({"gh": "https://github.com"}))
        app = create_app(Settings(REDIRECT_FILE=str(redirect_file)))
        assert app.state.store.lookup("gh") == (True, "https://github.com")

    def test_create_app_with_corrupt_file_raises(self, redirect_file):
        redirect_file.write_text("corrupt")
        with pytest.raises(PersistenceError):
            create_app(Settings(REDIRECT_FILE=str(redirect_file)))

    def test_cli_exits_on_corrupt_file(self, redirect_file, monkeypatch):
        redirect_file.write_text("corrupt")
        monkeypatch.setattr(cli.uvicorn, "run", lambda *args, **kwargs: pytest.fail("server must not start"))
        assert cli.main(["--redirFile", str(redirect_file)]) == 1

    def test_cli_exits_on_undecodable_file(self, redirect_file, monkeypatch):
        redirect_file.write_bytes(b'{"a": "\xff"}')
        monkeypatch.setattr(cli.uvicorn, "run", lambda *args, **kwargs: pytest.fail("server must not start"))
        assert cli.main(["--redirFile", str(redirect_file)]) == 1

    def test_cli_flags_override_settings(self, redirect_file, monkeypatch):
        calls = {}

        def fake_run(app, host, port, log_level):
            calls.update(app=app, host=host, port=port, log_level=log_level)

        monkeypatch.setattr(cli.uvicorn, "run", fake_run)
        assert cli.main(["--redirFile", str(redirect_file), "--port", "9090", "--host", "127.0.0.1"]) == 0
        assert calls["port"] == 9090
        assert calls["host"] == "127.0.0.1"
        assert calls["app"].state.store.path == str(redirect_file)

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("REDIRECT_FILE", raising=False)
        monkeypatch.delenv("PORT", raising=False)
        parsed = cli.parse_args([])
        app_settings = cli.build_settings(parsed)
        assert app_settings.REDIRECT_FILE == "redirs.json"
        assert app_settings.PORT == 8080
