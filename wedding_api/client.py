"""
HTTP client for the wedding invitation API.
Used by tooling and server-side renderers that need the page data.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from wedding_api.utils.response_cache import ResponseCache, request_signature

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10  # seconds

_MISSING = object()


class ApiError(Exception):
    """Raised when the API answers with success=false or a non-JSON error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class WeddingApiClient:
    """
    Thin client over the REST endpoints.

    GET responses are cached per request signature. When a refresh times out,
    the last cached body is returned if there is one.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        cache: Optional[ResponseCache] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache if cache is not None else ResponseCache()
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _unwrap(self, response: requests.Response) -> Any:
        try:
            body = response.json()
        except ValueError:
            raise ApiError(f"HTTP {response.status_code}: {response.text[:200]}", response.status_code)

        if not isinstance(body, dict):
            raise ApiError(f"HTTP {response.status_code}: unexpected response body", response.status_code)
        if not response.ok or not body.get("success", False):
            raise ApiError(body.get("error") or f"HTTP {response.status_code}", response.status_code)
        return body.get("data")

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None, force_refresh: bool = False) -> Any:
        key = request_signature("GET", path, params)
        if not force_refresh:
            cached = self.cache.get(key, _MISSING)
            if cached is not _MISSING:
                logger.debug(f"Using cached data for: {key}")
                return cached

        try:
            response = self.session.get(
                self._url(path),
                params=params,
                timeout=self.timeout,
                headers={"Cache-Control": "no-cache", "Pragma": "no-cache"},
            )
        except requests.Timeout:
            stale = self.cache.get_stale(key, _MISSING)
            if stale is not _MISSING:
                logger.warning(f"Request timeout for {key}, returning cached data")
                return stale
            logger.error(f"Request timeout for {key}")
            raise

        data = self._unwrap(response)
        self.cache.set(key, data)
        return data

    def _send(self, method: str, path: str, invalidate: str, **kwargs) -> Any:
        response = self.session.request(method, self._url(path), timeout=self.timeout, **kwargs)
        data = self._unwrap(response)
        self.cache.invalidate(f"GET {invalidate}")
        return data

    def get_gallery(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        return self._get("/api/gallery", force_refresh=force_refresh)

    def get_main_image(self, force_refresh: bool = False) -> Optional[Dict[str, Any]]:
        """The current main (cover) image, if any."""
        for image in self.get_gallery(force_refresh=force_refresh):
            if image.get("image_type") == "main":
                return image
        return None

    def get_guestbook(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        return self._get("/api/guestbook", force_refresh=force_refresh)

    def get_contacts(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        return self._get("/api/contacts", force_refresh=force_refresh)

    def post_guestbook(self, name: str, password: str, content: str) -> None:
        self._send(
            "POST", "/api/guestbook", invalidate="/api/guestbook",
            json={"name": name, "password": password, "content": content},
        )

    def delete_guestbook(self, entry_id: int, password: str) -> None:
        self._send(
            "DELETE", "/api/guestbook", invalidate="/api/guestbook",
            params={"id": entry_id, "password": password},
        )

    def login(self, username: str, password: str) -> Dict[str, Any]:
        """Log in as admin; the session cookie is kept on the underlying session."""
        return self._send(
            "POST", "/api/admin/login", invalidate="/api/admin",
            json={"username": username, "password": password},
        )
