import pytest

from wedding_api.services import file_store
from wedding_api.services.file_store import ForbiddenFileTypeError, UnsafePathError


@pytest.fixture
def stored_image(upload_dir):
    path = upload_dir / "images" / "gallery_1.jpg"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"\xff\xd8\xff\xe0 fake jpeg")
    return path


def test_serves_stored_image_with_long_cache(client, stored_image):
    response = client.get("/api/uploads/images/gallery_1.jpg")

    assert response.status_code == 200
    assert response.content == stored_image.read_bytes()
    assert response.headers["content-type"] == "image/jpeg"
    assert response.headers["cache-control"] == "public, max-age=31536000, immutable"


def test_missing_file_is_404(client, upload_dir):
    response = client.get("/api/uploads/images/nope.jpg")

    assert response.status_code == 404


def test_disallowed_extension_is_403(client, upload_dir):
    (upload_dir / "notes.txt").write_text("secret")

    assert client.get("/api/uploads/notes.txt").status_code == 403


@pytest.mark.parametrize("path", [
    "..%2F..%2Fetc%2Fpasswd.jpg",
    "images%2F..%2F..%2Fsecret.jpg",
    "..%5Csecret.jpg",
])
def test_traversal_attempts_are_rejected(client, upload_dir, path):
    response = client.get(f"/api/uploads/{path}")

    assert response.status_code in (400, 403)


@pytest.mark.parametrize("path", ["../secret.jpg", "images/../../secret.jpg", "images//a.jpg", "a\\b.jpg"])
def test_resolve_servable_file_rejects_unsafe_segments(upload_dir, path):
    with pytest.raises(UnsafePathError):
        file_store.resolve_servable_file(path)


def test_resolve_servable_file_rejects_symlink_out_of_root(upload_dir, tmp_path):
    outside = tmp_path / "outside.jpg"
    outside.write_bytes(b"jpeg")
    (upload_dir / "link.jpg").symlink_to(outside)

    with pytest.raises(ForbiddenFileTypeError):
        file_store.resolve_servable_file("link.jpg")


def test_resolve_servable_file_rejects_extension(upload_dir):
    with pytest.raises(ForbiddenFileTypeError):
        file_store.resolve_servable_file("images/script.js")


def test_symlink_to_non_image_inside_root_is_403(client, upload_dir):
    (upload_dir / "notes.txt").write_text("secret")
    (upload_dir / "notes.jpg").symlink_to(upload_dir / "notes.txt")

    response = client.get("/api/uploads/notes.jpg")

    assert response.status_code == 403
    with pytest.raises(ForbiddenFileTypeError):
        file_store.resolve_servable_file("notes.jpg")
