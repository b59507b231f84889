import asyncio

from wedding_api.database import get_db
from wedding_api.main import app
from wedding_api.routes import gallery as gallery_routes
from wedding_api.config import settings


class BrokenSession:
    async def execute(self, *args, **kwargs):
        raise RuntimeError("database unavailable")

    async def rollback(self):
        pass


def register(client, filename, image_type="gallery"):
    response = client.post("/api/gallery", json={"filename": filename, "image_type": image_type})
    assert response.status_code == 200, response.text
    return response.json()["data"]


def test_empty_gallery(client):
    response = client.get("/api/gallery")

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": []}


def test_gallery_degrades_to_empty_list_when_database_fails(client):
    async def broken_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = broken_db
    response = client.get("/api/gallery")

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": []}


def test_gallery_degrades_to_empty_list_on_query_timeout(client, monkeypatch):
    async def slow_listing(db):
        await asyncio.sleep(1)
        return []

    monkeypatch.setattr(settings, "DB_QUERY_TIMEOUT", 0.05)
    monkeypatch.setattr(gallery_routes.gallery_service, "list_gallery_images", slow_listing)
    response = client.get("/api/gallery")

    assert response.json() == {"success": True, "data": []}


def test_mutations_require_admin_session(client):
    assert client.post("/api/gallery", json={"filename": "images/a.jpg"}).status_code == 401
    assert client.delete("/api/gallery", params={"id": 1}).status_code == 401
    assert client.put("/api/admin/gallery", json={"sortedIds": [1]}).status_code == 401
    assert client.delete("/api/admin/gallery/1").status_code == 401

    body = client.post("/api/gallery", json={"filename": "images/a.jpg"}).json()
    assert body == {"success": False, "error": "Unauthorized"}


def test_register_and_list_in_display_order(admin_client):
    register(admin_client, "images/gallery_1.jpg")
    register(admin_client, "images/gallery_2.jpg")
    main = register(admin_client, "images/main_1.jpg", "main")

    items = admin_client.get("/api/gallery").json()["data"]

    assert [item["filename"] for item in items] == [
        "images/main_1.jpg", "images/gallery_1.jpg", "images/gallery_2.jpg",
    ]
    assert items[0]["id"] == main["id"]
    assert items[0]["url"] == "/uploads/images/main_1.jpg"
    assert items[0]["order_index"] is None
    assert [item["order_index"] for item in items[1:]] == [1, 2]


def test_only_one_main_image_is_listed(admin_client):
    register(admin_client, "images/main_1.jpg", "main")
    register(admin_client, "images/main_2.jpg", "main")

    items = admin_client.get("/api/gallery").json()["data"]
    mains = [item for item in items if item["image_type"] == "main"]

    assert len(mains) == 1
    assert mains[0]["filename"] == "images/main_2.jpg"


def test_register_rejects_invalid_image_type(admin_client):
    response = admin_client.post("/api/gallery", json={"filename": "images/a.jpg", "image_type": "banner"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_reorder(admin_client):
    ids = [register(admin_client, f"images/gallery_{n}.jpg")["id"] for n in range(3)]
    new_order = [ids[2], ids[0], ids[1]]

    response = admin_client.put("/api/admin/gallery", json={"sortedIds": new_order})

    assert response.status_code == 200
    assert response.json()["data"] == {"sortedIds": new_order, "count": 3}
    items = admin_client.get("/api/gallery").json()["data"]
    assert [(item["id"], item["order_index"]) for item in items] == [
        (ids[2], 1), (ids[0], 2), (ids[1], 3),
    ]


def test_reorder_unknown_id_is_not_found(admin_client):
    image_id = register(admin_client, "images/gallery_1.jpg")["id"]

    response = admin_client.put("/api/admin/gallery", json={"sortedIds": [image_id, 4242]})

    assert response.status_code == 404
    assert "4242" in response.json()["error"]


def test_reorder_rejects_duplicates_and_main_images(admin_client):
    main_id = register(admin_client, "images/main_1.jpg", "main")["id"]
    gallery_id = register(admin_client, "images/gallery_1.jpg")["id"]

    assert admin_client.put("/api/admin/gallery", json={"sortedIds": [gallery_id, gallery_id]}).status_code == 400
    assert admin_client.put("/api/admin/gallery", json={"sortedIds": []}).status_code == 400
    assert admin_client.put("/api/admin/gallery", json={"sortedIds": [main_id]}).status_code == 400


def test_delete_by_query_removes_row_and_file(admin_client, upload_dir):
    path = upload_dir / "images" / "gallery_1.jpg"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"jpeg")
    image_id = register(admin_client, "images/gallery_1.jpg")["id"]

    response = admin_client.delete("/api/gallery", params={"id": image_id})

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert admin_client.get("/api/gallery").json()["data"] == []
    assert not path.exists()


def test_delete_requires_id(admin_client):
    response = admin_client.delete("/api/gallery")

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "ID is required"}


def test_admin_delete_unknown_image(admin_client):
    response = admin_client.delete("/api/admin/gallery/999")

    assert response.status_code == 404
    assert response.json()["error"] == "Image not found"


def test_admin_delete_twice(admin_client):
    image_id = register(admin_client, "images/gallery_1.jpg")["id"]

    assert admin_client.delete(f"/api/admin/gallery/{image_id}").status_code == 200
    assert admin_client.delete(f"/api/admin/gallery/{image_id}").status_code == 404
