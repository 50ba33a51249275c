"""Document API tests.

Tests cover:
1. CRUD lifecycle for the owner
2. Ownership isolation: another user's document is indistinguishable
   from a missing one
3. Listing order (most recently updated first) and the type filter
4. The knowledge-page tree: parent validation, cycles, re-parenting
"""

import uuid

import pytest

from tests.conftest import auth_headers


async def _create(client, token, **fields):
    body = {"title": "Untitled", **fields}
    r = await client.post("/api/documents", json=body, headers=auth_headers(token))
    assert r.status_code == 201, r.text
    return r.json()["data"]


# ═══════════════════════════════════════════════════════════
# Lifecycle
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_owner_lifecycle_and_isolation(client, make_user):
    """Alice creates, lists and deletes; Bob can't touch her document."""
    alice, alice_token = await make_user(email="alice@example.com", password="hunter22")
    _, bob_token = await make_user(email="bob@example.com")

    r = await client.post(
        "/api/documents",
        json={"title": "Notes", "content": "hello"},
        headers=auth_headers(alice_token),
    )
    assert r.status_code == 201
    doc = r.json()["data"]
    assert doc["ownerId"] == alice["id"]
    assert doc["type"] == "normal"
    assert doc["tags"] == []
    assert doc["parentId"] is None
    assert doc["createdAt"] == doc["updatedAt"]

    r = await client.get("/api/documents", headers=auth_headers(alice_token))
    assert [d["id"] for d in r.json()["data"]] == [doc["id"]]

    r = await client.delete(f"/api/documents/{doc['id']}", headers=auth_headers(bob_token))
    assert r.status_code == 404

    r = await client.delete(f"/api/documents/{doc['id']}", headers=auth_headers(alice_token))
    assert r.status_code == 200
    assert r.json()["data"]["message"] == "Document deleted successfully"

    r = await client.get(f"/api/documents/{doc['id']}", headers=auth_headers(alice_token))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_other_users_document_looks_missing(client, make_user):
    _, alice_token = await make_user()
    _, bob_token = await make_user()
    doc = await _create(client, alice_token, title="Private")

    missing = await client.get(f"/api/documents/{uuid.uuid4()}", headers=auth_headers(bob_token))
    foreign = await client.get(f"/api/documents/{doc['id']}", headers=auth_headers(bob_token))
    assert missing.status_code == foreign.status_code == 404
    assert missing.json() == foreign.json()

    r = await client.put(
        f"/api/documents/{doc['id']}",
        json={"title": "Hijacked"},
        headers=auth_headers(bob_token),
    )
    assert r.status_code == 404

    r = await client.get("/api/documents", headers=auth_headers(bob_token))
    assert r.json()["data"] == []

    r = await client.get(f"/api/documents/{doc['id']}", headers=auth_headers(alice_token))
    assert r.json()["data"]["title"] == "Private"


@pytest.mark.asyncio
async def test_update_document(client, make_user):
    _, token = await make_user()
    doc = await _create(client, token, title="Draft", content="v1", tags=["a"])

    r = await client.put(
        f"/api/documents/{doc['id']}",
        json={"content": "v2", "tags": ["a", "b"]},
        headers=auth_headers(token),
    )
    assert r.status_code == 200
    updated = r.json()["data"]
    assert updated["title"] == "Draft"
    assert updated["content"] == "v2"
    assert updated["tags"] == ["a", "b"]
    assert updated["createdAt"] == doc["createdAt"]
    assert updated["updatedAt"] > doc["updatedAt"]


@pytest.mark.asyncio
async def test_create_validation(client, make_user):
    _, token = await make_user()

    r = await client.post("/api/documents", json={"title": ""}, headers=auth_headers(token))
    assert r.status_code == 400

    r = await client.post(
        "/api/documents",
        json={"title": "Bad", "type": "secret"},
        headers=auth_headers(token),
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_bad_id_is_400(client, make_user):
    _, token = await make_user()
    r = await client.get("/api/documents/not-a-uuid", headers=auth_headers(token))
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_most_recently_updated_first(client, make_user):
    _, token = await make_user()
    first = await _create(client, token, title="first")
    second = await _create(client, token, title="second")

    r = await client.get("/api/documents", headers=auth_headers(token))
    assert [d["title"] for d in r.json()["data"]] == ["second", "first"]

    await client.put(
        f"/api/documents/{first['id']}", json={"content": "touched"}, headers=auth_headers(token)
    )
    r = await client.get("/api/documents", headers=auth_headers(token))
    assert [d["id"] for d in r.json()["data"]] == [first["id"], second["id"]]


@pytest.mark.asyncio
async def test_list_filter_by_type(client, make_user):
    _, token = await make_user()
    await _create(client, token, title="plain")
    page = await _create(client, token, title="wiki", type="knowledge")

    r = await client.get(
        "/api/documents", params={"type": "knowledge"}, headers=auth_headers(token)
    )
    assert [d["id"] for d in r.json()["data"]] == [page["id"]]

    r = await client.get("/api/documents", params={"type": "bogus"}, headers=auth_headers(token))
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# Knowledge tree
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_children_and_parent_filter(client, make_user):
    _, token = await make_user()
    root = await _create(client, token, title="root", type="knowledge")
    child = await _create(client, token, title="child", type="knowledge", parentId=root["id"])
    await _create(client, token, title="loose")

    r = await client.get(f"/api/documents/{root['id']}/children", headers=auth_headers(token))
    assert [d["id"] for d in r.json()["data"]] == [child["id"]]

    r = await client.get(
        "/api/documents", params={"parentId": root["id"]}, headers=auth_headers(token)
    )
    assert [d["id"] for d in r.json()["data"]] == [child["id"]]


@pytest.mark.asyncio
async def test_parent_must_belong_to_caller(client, make_user):
    _, alice_token = await make_user()
    _, bob_token = await make_user()
    alice_doc = await _create(client, alice_token, title="alice's")

    r = await client.post(
        "/api/documents",
        json={"title": "sneaky", "parentId": alice_doc["id"]},
        headers=auth_headers(bob_token),
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Parent document not found"


@pytest.mark.asyncio
async def test_cycles_rejected(client, make_user):
    _, token = await make_user()
    a = await _create(client, token, title="a")
    b = await _create(client, token, title="b", parentId=a["id"])
    c = await _create(client, token, title="c", parentId=b["id"])

    r = await client.put(
        f"/api/documents/{a['id']}", json={"parentId": c["id"]}, headers=auth_headers(token)
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Document cannot be its own ancestor"

    r = await client.put(
        f"/api/documents/{a['id']}", json={"parentId": a["id"]}, headers=auth_headers(token)
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_parent_can_be_cleared(client, make_user):
    _, token = await make_user()
    a = await _create(client, token, title="a")
    b = await _create(client, token, title="b", parentId=a["id"])

    r = await client.put(
        f"/api/documents/{b['id']}", json={"parentId": None}, headers=auth_headers(token)
    )
    assert r.status_code == 200
    assert r.json()["data"]["parentId"] is None


@pytest.mark.asyncio
async def test_delete_moves_children_to_root(client, make_user):
    _, token = await make_user()
    parent = await _create(client, token, title="parent")
    child = await _create(client, token, title="child", parentId=parent["id"])

    r = await client.delete(f"/api/documents/{parent['id']}", headers=auth_headers(token))
    assert r.status_code == 200

    r = await client.get(f"/api/documents/{child['id']}", headers=auth_headers(token))
    assert r.status_code == 200
    assert r.json()["data"]["parentId"] is None


@pytest.mark.asyncio
async def test_root_filter(client, make_user):
    _, token = await make_user()
    root = await _create(client, token, title="root", type="knowledge")
    await _create(client, token, title="child", type="knowledge", parentId=root["id"])
    loose = await _create(client, token, title="loose")

    r = await client.get("/api/documents", params={"root": "true"}, headers=auth_headers(token))
    assert {d["id"] for d in r.json()["data"]} == {root["id"], loose["id"]}

    r = await client.get(
        "/api/documents",
        params={"root": "true", "type": "knowledge"},
        headers=auth_headers(token),
    )
    assert [d["id"] for d in r.json()["data"]] == [root["id"]]

    r = await client.get(
        "/api/documents",
        params={"root": "true", "parentId": root["id"]},
        headers=auth_headers(token),
    )
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# Representation
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_reloaded_document_is_identical(client, make_user, db_session):
    """Timestamps keep their UTC offset after a round-trip through the DB."""
    _, token = await make_user()
    doc = await _create(client, token, title="stable")
    assert doc["createdAt"].endswith("Z")

    # Drop the identity map so the next read comes from the database
    db_session.expunge_all()

    r = await client.get(f"/api/documents/{doc['id']}", headers=auth_headers(token))
    assert r.json()["data"] == doc

    r = await client.get("/api/documents", headers=auth_headers(token))
    assert r.json()["data"] == [doc]
