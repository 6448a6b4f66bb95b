"""Tests for the HTTP layer: status codes, payload shapes and error masking."""

import re
from urllib.parse import quote

import httpx
import pytest
from fastapi import HTTPException

from codeclip.errors import StorageError
from codeclip.models.clipboard import (
    ClipboardCreate,
    ClipboardDelete,
    ClipboardUpdate,
)


# ── Endpoint functions called directly ──────────────────────────────────────


class TestClipboardEndpoints:
    async def test_create_and_open(self, installed_store):
        from codeclip.routers.clipboard import create, open_by_share_code

        created = await create(ClipboardCreate(content="hello"))
        assert created["accessType"] == "edit"
        assert created["viewCode"] is None

        opened = await open_by_share_code(created["shareCode"])
        assert opened["content"] == "hello"
        assert opened["isEditable"] is True

    async def test_create_empty_content_is_400(self, installed_store):
        from codeclip.routers.clipboard import create

        with pytest.raises(HTTPException) as exc_info:
            await create(ClipboardCreate(content=""))
        assert exc_info.value.status_code == 400

    async def test_create_unknown_access_type_is_400(self, installed_store):
        from codeclip.routers.clipboard import create

        with pytest.raises(HTTPException) as exc_info:
            await create(ClipboardCreate(content="x", accessType="everyone"))
        assert exc_info.value.status_code == 400

    async def test_unknown_codes_are_404(self, installed_store):
        from codeclip.routers.clipboard import open_by_share_code, open_by_view_code

        for endpoint, code in ((open_by_share_code, "0000!"), (open_by_view_code, "00000")):
            with pytest.raises(HTTPException) as exc_info:
                await endpoint(code)
            assert exc_info.value.status_code == 404

    async def test_expired_is_410(self, installed_store, clock):
        from codeclip.routers.clipboard import create, open_by_share_code, update

        created = await create(ClipboardCreate(content="hello"))
        clock.advance(minutes=31)

        with pytest.raises(HTTPException) as exc_info:
            await open_by_share_code(created["shareCode"])
        assert exc_info.value.status_code == 410

        with pytest.raises(HTTPException) as exc_info:
            await update(created["id"], ClipboardUpdate(content="x", shareCode=created["shareCode"]))
        assert exc_info.value.status_code == 410

    async def test_update_and_delete_mask_which_credential_failed(self, installed_store):
        from codeclip.routers.clipboard import create, delete, update

        created = await create(ClipboardCreate(content="hello"))

        details = []
        for clipboard_id, code in ((created["id"], "0000!"), (created["id"] + 50, created["shareCode"])):
            with pytest.raises(HTTPException) as exc_info:
                await update(clipboard_id, ClipboardUpdate(content="x", shareCode=code))
            assert exc_info.value.status_code == 404
            details.append(exc_info.value.detail)

            with pytest.raises(HTTPException) as exc_info:
                await delete(clipboard_id, ClipboardDelete(shareCode=code))
            assert exc_info.value.status_code == 404
            details.append(exc_info.value.detail)

        assert len(set(details)) == 1

    async def test_storage_fault_is_opaque_500(self, installed_store, monkeypatch):
        from codeclip.routers.clipboard import open_by_share_code

        async def broken(code):
            raise StorageError("disk I/O error at /secret/path")

        monkeypatch.setattr(installed_store.storage, "get_by_share_code", broken)
        with pytest.raises(HTTPException) as exc_info:
            await open_by_share_code("1234!")
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Internal server error"

    async def test_collision_exhaustion_is_503(self, installed_store, monkeypatch):
        from codeclip.errors import DuplicateKeyError
        from codeclip.routers.clipboard import create

        async def always_taken(**fields):
            raise DuplicateKeyError("view_code")

        monkeypatch.setattr(installed_store.storage, "insert", always_taken)
        with pytest.raises(HTTPException) as exc_info:
            await create(ClipboardCreate(content="hello"))
        assert exc_info.value.status_code == 503


class TestHealth:
    async def test_health_reports_counts(self, installed_store):
        from codeclip.routers.health import health_check

        await installed_store.create("a", "edit")
        result = await health_check()
        assert result["status"] == "ok"
        assert result["storage"] in ("memory", "sqlite")
        assert result["clipboards"] == 1
        assert result["expired"] == 0

    async def test_health_without_store_is_503(self):
        import codeclip.services.clipboard_service as service
        from codeclip.routers.health import health_check

        previous = service._store
        service._store = None
        try:
            response = await health_check()
        finally:
            service._store = previous
        assert response.status_code == 503


# ── Full HTTP round trips through the ASGI app ──────────────────────────────


@pytest.fixture
async def client(installed_store):
    from codeclip.main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestHTTP:
    async def test_edit_lifecycle(self, client):
        resp = await client.post("/api/clipboard", json={"content": "hello", "accessType": "edit"})
        assert resp.status_code == 200
        body = resp.json()
        assert re.fullmatch(r"\d{4}[!@#$%^&*?]", body["shareCode"])
        assert body["viewCode"] is None
        assert body["expiryAt"] is not None

        share_path = f"/api/clipboard/share/{quote(body['shareCode'], safe='')}"
        resp = await client.get(share_path)
        assert resp.status_code == 200
        assert resp.json()["content"] == "hello"

        resp = await client.put(
            f"/api/clipboard/{body['id']}",
            json={"content": "world", "shareCode": body["shareCode"]},
        )
        assert resp.status_code == 200
        assert resp.json()["content"] == "world"

        resp = await client.get(share_path)
        assert resp.json()["content"] == "world"

        resp = await client.request(
            "DELETE", f"/api/clipboard/{body['id']}", json={"shareCode": body["shareCode"]}
        )
        assert resp.status_code == 200

        resp = await client.get(share_path)
        assert resp.status_code == 404

    async def test_view_mode(self, client):
        resp = await client.post(
            "/api/clipboard", json={"content": "read only", "accessType": "view", "expiryHours": 3}
        )
        body = resp.json()
        assert body["shareCode"] is None
        assert body["expiryAt"] is None

        resp = await client.get(f"/api/clipboard/view/{body['viewCode']}")
        assert resp.status_code == 200
        opened = resp.json()
        assert opened["isEditable"] is False
        assert "shareCode" not in opened

    async def test_private_mode(self, client):
        resp = await client.post("/api/clipboard", json={"content": "secret", "accessType": "private"})
        body = resp.json()
        assert body["shareCode"] is None
        assert body["viewCode"] is None

    async def test_missing_content_is_400(self, client):
        resp = await client.post("/api/clipboard", json={"accessType": "edit"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Content is required"

    async def test_put_empty_content_is_400(self, client):
        resp = await client.put("/api/clipboard/1", json={"content": "", "shareCode": "1234!"})
        assert resp.status_code == 400

    async def test_delete_without_share_code_is_404(self, client):
        created = (await client.post("/api/clipboard", json={"content": "x"})).json()
        resp = await client.request("DELETE", f"/api/clipboard/{created['id']}", json={})
        assert resp.status_code == 404

    async def test_huge_id_is_404(self, client):
        created = (await client.post("/api/clipboard", json={"content": "x"})).json()
        path = "/api/clipboard/99999999999999999999"

        resp = await client.put(path, json={"content": "y", "shareCode": created["shareCode"]})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Clipboard not found or access denied"

        resp = await client.request("DELETE", path, json={"shareCode": created["shareCode"]})
        assert resp.status_code == 404

    async def test_expired_is_410(self, client, clock):
        created = (await client.post("/api/clipboard", json={"content": "x", "expiryHours": 1})).json()
        clock.advance(hours=1)
        resp = await client.get(f"/api/clipboard/share/{quote(created['shareCode'], safe='')}")
        assert resp.status_code == 410
        assert resp.json()["detail"] == "Clipboard has expired"

    async def test_health(self, client):
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
