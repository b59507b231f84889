from datetime import datetime

from sqlalchemy import select

from wedding_api.models import GuestbookEntry
from wedding_api.utils.auth import is_bcrypt_hash, verify_password
from wedding_api.utils.timeutils import format_guestbook_date


def post_entry(client, name="Minji", password="1234", content="Congratulations!"):
    response = client.post("/api/guestbook", json={"name": name, "password": password, "content": content})
    assert response.status_code == 200, response.text
    return response


def only_entry_id(client):
    entries = client.get("/api/guestbook").json()["data"]
    assert len(entries) == 1
    return entries[0]["id"]


def test_create_and_list_entry(client, run_db):
    response = post_entry(client, name="  Minji ", content=" Happy wedding ")

    assert response.json() == {"success": True}

    listing = client.get("/api/guestbook")
    entries = listing.json()["data"]
    assert listing.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert len(entries) == 1
    assert entries[0]["name"] == "Minji"
    assert entries[0]["content"] == "Happy wedding"
    assert "password" not in entries[0]

    async def stored(db):
        return (await db.execute(select(GuestbookEntry))).scalar_one()

    row = run_db(stored)
    assert is_bcrypt_hash(row.password)
    assert verify_password("1234", row.password)
    assert entries[0]["created_at"] == format_guestbook_date(row.created_at)


def test_entries_are_newest_first(client, run_db):
    async def seed(db):
        db.add_all([
            GuestbookEntry(name="old", password="x", content="first", created_at=datetime(2025, 1, 1, 9, 0)),
            GuestbookEntry(name="new", password="x", content="second", created_at=datetime(2025, 1, 2, 9, 0)),
        ])
        await db.commit()

    run_db(seed)
    entries = client.get("/api/guestbook").json()["data"]

    assert [e["name"] for e in entries] == ["new", "old"]
    assert entries[0]["created_at"] == "2025. 01. 02 18:00"


def test_create_rejects_blank_and_oversized_fields(client):
    assert client.post("/api/guestbook", json={"name": "  ", "password": "1", "content": "hi"}).status_code == 400
    assert client.post("/api/guestbook", json={"name": "a", "password": "", "content": "hi"}).status_code == 400
    assert client.post(
        "/api/guestbook", json={"name": "a", "password": "1", "content": "x" * 1001}
    ).status_code == 400
    assert client.post("/api/guestbook", json={"name": "a" * 51, "password": "1", "content": "hi"}).status_code == 400


def test_delete_with_wrong_password_keeps_entry(client):
    post_entry(client, password="right")
    entry_id = only_entry_id(client)

    response = client.delete("/api/guestbook", params={"id": entry_id, "password": "wrong"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Password does not match"}
    assert only_entry_id(client) == entry_id


def test_delete_with_right_password(client):
    post_entry(client, password="right")
    entry_id = only_entry_id(client)

    response = client.delete("/api/guestbook", params={"id": entry_id, "password": "right"})

    assert response.status_code == 200
    assert client.get("/api/guestbook").json()["data"] == []


def test_delete_requires_id_and_password(client):
    assert client.delete("/api/guestbook", params={"id": 1}).status_code == 400
    assert client.delete("/api/guestbook", params={"password": "x"}).status_code == 400


def test_delete_unknown_entry(client):
    response = client.delete("/api/guestbook", params={"id": 404, "password": "x"})

    assert response.status_code == 404


def test_legacy_plaintext_password_is_accepted_and_rehashed(client, run_db):
    async def seed(db):
        entry = GuestbookEntry(name="legacy", password="plain-pw", content="old entry")
        db.add(entry)
        await db.commit()
        return entry.id

    entry_id = run_db(seed)

    assert client.delete("/api/guestbook", params={"id": entry_id, "password": "nope"}).status_code == 401
    assert client.delete("/api/guestbook", params={"id": entry_id, "password": "plain-pw"}).status_code == 200

    async def stored(db):
        return (await db.execute(select(GuestbookEntry).where(GuestbookEntry.id == entry_id))).scalar_one()

    row = run_db(stored)
    assert row.deleted_at is not None
    assert is_bcrypt_hash(row.password)


def test_admin_listing_and_delete(admin_client):
    post_entry(admin_client)
    entries = admin_client.get("/api/admin/guestbook").json()["data"]
    entry_id = entries[0]["id"]

    assert admin_client.delete(f"/api/admin/guestbook/{entry_id}").status_code == 200
    assert admin_client.get("/api/guestbook").json()["data"] == []
    assert admin_client.delete(f"/api/admin/guestbook/{entry_id}").status_code == 404


def test_admin_endpoints_require_session(client):
    assert client.get("/api/admin/guestbook").status_code == 401
    assert client.delete("/api/admin/guestbook/1").status_code == 401
