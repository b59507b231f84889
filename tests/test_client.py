import pytest
import requests

from wedding_api.client import ApiError, WeddingApiClient
from wedding_api.utils.response_cache import ResponseCache


class FakeResponse:
    def __init__(self, body, status_code=200):
        self._body = body
        self.status_code = status_code
        self.text = str(body)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if isinstance(self._body, str):
            raise ValueError("not json")
        return self._body


class FakeSession:
    def __init__(self):
        self.calls = []
        self.responses = []

    def queue(self, item):
        self.responses.append(item)

    def _next(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)

    def request(self, method, url, **kwargs):
        return self._next(method, url, kwargs)


class FakeClock:
    now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def api(session, clock):
    return WeddingApiClient("http://wedding.test/", cache=ResponseCache(ttl=300, clock=clock), session=session)


GALLERY = [
    {"id": 3, "image_type": "main", "filename": "images/main_1.jpg"},
    {"id": 1, "image_type": "gallery", "filename": "images/gallery_1.jpg"},
]


def test_get_is_cached(api, session):
    session.queue(FakeResponse({"success": True, "data": GALLERY}))

    assert api.get_gallery() == GALLERY
    assert api.get_gallery() == GALLERY
    assert len(session.calls) == 1
    assert session.calls[0][1] == "http://wedding.test/api/gallery"
    assert session.calls[0][2]["timeout"] == 10


def test_force_refresh_bypasses_cache(api, session):
    session.queue(FakeResponse({"success": True, "data": GALLERY}))
    session.queue(FakeResponse({"success": True, "data": []}))

    api.get_gallery()

    assert api.get_gallery(force_refresh=True) == []


def test_timeout_falls_back_to_stale_data(api, session, clock):
    session.queue(FakeResponse({"success": True, "data": GALLERY}))
    api.get_gallery()

    clock.now += 600
    session.queue(requests.Timeout())

    assert api.get_gallery() == GALLERY


def test_timeout_without_cache_raises(api, session):
    session.queue(requests.Timeout())

    with pytest.raises(requests.Timeout):
        api.get_contacts()


def test_main_image(api, session):
    session.queue(FakeResponse({"success": True, "data": GALLERY}))

    assert api.get_main_image()["id"] == 3


def test_error_envelope_raises_api_error(api, session):
    session.queue(FakeResponse({"success": False, "error": "Password does not match"}, status_code=401))

    with pytest.raises(ApiError) as exc_info:
        api.delete_guestbook(1, "wrong")

    assert str(exc_info.value) == "Password does not match"
    assert exc_info.value.status_code == 401
    assert session.calls[0][2]["params"] == {"id": 1, "password": "wrong"}


def test_non_json_response_raises_api_error(api, session):
    session.queue(FakeResponse("<html>Bad gateway</html>", status_code=502))

    with pytest.raises(ApiError):
        api.get_guestbook()


def test_posting_invalidates_guestbook_cache(api, session):
    session.queue(FakeResponse({"success": True, "data": [{"id": 1}]}))
    session.queue(FakeResponse({"success": True}))
    session.queue(FakeResponse({"success": True, "data": [{"id": 2}, {"id": 1}]}))

    api.get_guestbook()
    api.post_guestbook("Minji", "1234", "Congrats")

    assert [entry["id"] for entry in api.get_guestbook()] == [2, 1]
    assert session.calls[1][0] == "POST"
    assert session.calls[1][2]["json"] == {"name": "Minji", "password": "1234", "content": "Congrats"}


def test_non_object_json_body_raises_api_error(api, session):
    session.queue(FakeResponse([1, 2, 3]))
    session.queue(FakeResponse(42, status_code=500))

    with pytest.raises(ApiError):
        api.get_gallery()
    with pytest.raises(ApiError) as exc_info:
        api.get_contacts()
    assert exc_info.value.status_code == 500


def test_cached_null_data_is_a_cache_hit(api, session, clock):
    session.queue(FakeResponse({"success": True, "data": None}))

    assert api.get_contacts() is None
    assert api.get_contacts() is None
    assert len(session.calls) == 1

    clock.now += 600
    session.queue(requests.Timeout())
    assert api.get_contacts() is None
