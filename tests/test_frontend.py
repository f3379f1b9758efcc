"""Static front-end serving with index.html fallback."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from grindlink.main import create_app


@pytest_asyncio.fixture()
async def site_client(settings, tmp_path):
    dist = tmp_path / "dist"
    (dist / "assets").mkdir(parents=True)
    (dist / "index.html").write_text("<html>board</html>")
    (dist / "assets" / "app.js").write_text("console.log('hi')")
    (tmp_path / "secret.txt").write_text("nope")

    app = create_app(settings.model_copy(update={"static_dir": str(dist)}))
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


@pytest.mark.asyncio
async def test_root_serves_index(site_client):
    r = await site_client.get("/")
    assert r.status_code == 200
    assert "board" in r.text


@pytest.mark.asyncio
async def test_asset_served(site_client):
    r = await site_client.get("/assets/app.js")
    assert r.status_code == 200
    assert "console.log" in r.text


@pytest.mark.asyncio
async def test_client_route_falls_back_to_index(site_client):
    r = await site_client.get("/boards/users")
    assert "board" in r.text


@pytest.mark.asyncio
async def test_no_escape_from_static_dir(site_client):
    r = await site_client.get("/../secret.txt")
    assert "nope" not in r.text


@pytest.mark.asyncio
async def test_api_routes_still_win(site_client):
    assert (await site_client.get("/api/users")).json() == []
    r = await site_client.get("/api/nothing-here")
    assert r.status_code == 404
