import pytest


pytestmark = pytest.mark.asyncio


async def test_upload_url_then_upload(client, create_user, auth_header_factory, store):
    me, pw = await create_user()
    headers = await auth_header_factory(me.username, pw)

    url_resp = await client.post("/api/v1/storage/upload-url", headers=headers)
    assert url_resp.status_code == 200
    upload_url = url_resp.json()["data"]["uploadUrl"]
    assert upload_url.startswith("http://testserver/api/v1/storage/upload/")

    resp = await client.post(upload_url, content=b"\x00\x01audio", headers={"Content-Type": "audio/mpeg"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["sizeBytes"] == 7

    obj = await store.get(data["storageId"], owner_id=me.id)
    assert obj.content_type == "audio/mpeg"


async def test_upload_url_requires_auth(client):
    resp = await client.post("/api/v1/storage/upload-url")
    assert resp.status_code == 401


async def test_upload_with_bad_token(client):
    resp = await client.post("/api/v1/storage/upload/not-a-token", content=b"abc")
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UPLOAD_FAILED"


async def test_empty_upload_rejected(client, create_user, auth_header_factory):
    me, pw = await create_user()
    headers = await auth_header_factory(me.username, pw)
    upload_url = (await client.post("/api/v1/storage/upload-url", headers=headers)).json()["data"]["uploadUrl"]

    resp = await client.post(upload_url, content=b"")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "UPLOAD_FAILED"


async def test_upload_url_is_single_use(client, create_user, auth_header_factory):
    me, pw = await create_user()
    headers = await auth_header_factory(me.username, pw)
    upload_url = (await client.post("/api/v1/storage/upload-url", headers=headers)).json()["data"]["uploadUrl"]

    first = await client.post(upload_url, content=b"chunk-1", headers={"Content-Type": "audio/m4a"})
    assert first.status_code == 200

    again = await client.post(upload_url, content=b"chunk-2", headers={"Content-Type": "audio/m4a"})
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "UPLOAD_FAILED"
