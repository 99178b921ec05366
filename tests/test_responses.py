"""Tests for handing passes over to the caller's own HTTP clients."""
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from passslot.api.responses import PKPASS_MEDIA_TYPE, pkpass_response
from passslot.schemas.passes import Pass


PKPASS_DATA = b"PK\x03\x04signed-pass-archive"


@pytest.fixture
def app(engine) -> FastAPI:
    """A small web app serving passes through the PassSlot client."""
    app = FastAPI()

    @app.get("/download")
    def download():
        return engine.output_pass(Pass(passTypeIdentifier="p", serialNumber="s"), "ticket.pkpass")

    @app.get("/raw")
    def raw():
        return engine.output_pass(PKPASS_DATA)

    @app.get("/open")
    def open_pass():
        return engine.redirect_to_pass(Pass(passTypeIdentifier="p", serialNumber="s"))

    return app


@pytest_asyncio.fixture
async def web_client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def test_pkpass_response_headers():
    response = pkpass_response(PKPASS_DATA, "boarding.pkpass")

    assert response.body == PKPASS_DATA
    assert response.headers["pragma"] == "no-cache"
    assert response.headers["content-type"] == PKPASS_MEDIA_TYPE
    assert response.headers["content-length"] == str(len(PKPASS_DATA))
    assert response.headers["content-disposition"] == 'attachment; filename="boarding.pkpass"'


@pytest.mark.asyncio
async def test_output_pass_downloads_first(web_client, api):
    api.reply(200, content=PKPASS_DATA, content_type=PKPASS_MEDIA_TYPE)

    response = await web_client.get("/download")

    assert response.status_code == 200
    assert response.content == PKPASS_DATA
    assert response.headers["content-disposition"] == 'attachment; filename="ticket.pkpass"'
    assert api.last.url.path == "/v1/passes/p/s"


@pytest.mark.asyncio
async def test_output_pass_with_raw_bytes(web_client, api):
    response = await web_client.get("/raw")

    assert response.content == PKPASS_DATA
    assert response.headers["content-disposition"] == 'attachment; filename="pass.pkpass"'
    assert api.requests == []


@pytest.mark.asyncio
async def test_redirect_to_pass(web_client, api):
    api.reply(200, json_body={"url": "https://d.pslot.io/xyz"})

    response = await web_client.get("/open")

    assert response.status_code == 302
    assert response.headers["location"] == "https://d.pslot.io/xyz"
