# Typed Python client for the EstateFinder HTTP API.
# Wraps an httpx.Client (a FastAPI TestClient works too) and keeps an AppStore in sync.
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel

from .. import schemas
from .cache import QueryCache
from .query_params import SearchFilters, to_query_params
from .store import AppStore

logger = logging.getLogger("estatefinder.client")

SEARCH_NAMESPACE = "properties"


class ApiClientError(Exception):
    """Non-2xx response; message is the API's {"error": ...} text when present."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _body(payload: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_unset=True, by_alias=True)
    return dict(payload)


class EstateFinderClient:
    def __init__(self, http: httpx.Client, store: Optional[AppStore] = None, cache: Optional[QueryCache] = None):
        self.http = http
        self.store = store if store is not None else AppStore()
        self.cache = cache if cache is not None else QueryCache()

    @classmethod
    def connect(cls, base_url: str, store: Optional[AppStore] = None, timeout: float = 10.0) -> "EstateFinderClient":
        return cls(httpx.Client(base_url=base_url, timeout=timeout), store=store)

    def close(self) -> None:
        self.http.close()

    # ----------------
    # Transport
    # ----------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = False,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[httpx.QueryParams] = None,
    ) -> Any:
        headers = {}
        if auth and self.store.auth_state.token:
            headers["Authorization"] = f"Bearer {self.store.auth_state.token}"

        resp = self.http.request(method, path, json=json, params=params, headers=headers)
        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = None
            message = body.get("error") if isinstance(body, dict) else None
            message = message or resp.text or resp.reason_phrase
            self.store.add_notification("error", message)
            logger.debug("client.error", extra={"path": path, "status": resp.status_code})
            raise ApiClientError(resp.status_code, message)
        return resp.json()

    # ----------------
    # Auth and profile
    # ----------------
    def register(self, payload: Union[schemas.RegisterRequest, Dict[str, Any]]) -> schemas.AuthResponse:
        data = schemas.AuthResponse.model_validate(self._request("POST", "/api/auth/register", json=_body(payload)))
        self.store.set_auth_state(data.token, data.user)
        return data

    def login(self, email: str, password: str) -> schemas.AuthResponse:
        data = schemas.AuthResponse.model_validate(
            self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        )
        self.store.set_auth_state(data.token, data.user)
        return data

    def logout(self) -> None:
        self.store.clear_auth_state()
        self.cache.invalidate()

    def request_password_reset(self, email: str) -> str:
        data = self._request("POST", "/api/auth/password_resets", json={"email": email})
        self.store.add_notification("info", data["message"])
        return data["message"]

    def get_profile(self) -> schemas.UserRead:
        return schemas.UserRead.model_validate(self._request("GET", "/api/auth/profile", auth=True))

    def update_profile(self, payload: Union[schemas.ProfileUpdate, Dict[str, Any]]) -> schemas.UserRead:
        user = schemas.UserRead.model_validate(self._request("PUT", "/api/auth/profile", auth=True, json=_body(payload)))
        self.store.add_notification("success", "Profile updated successfully")
        return user

    # ----------------
    # Listings
    # ----------------
    def search_listings(self, filters: Optional[SearchFilters] = None, refresh: bool = False) -> List[schemas.ListingSummary]:
        """Search published listings; results are cached per distinct filter set and mirrored into the store."""
        filters = filters if filters is not None else self.store.search_filters
        params = to_query_params(filters)
        self.store.set_search_filters(filters)

        def _load() -> List[schemas.ListingSummary]:
            rows = self._request("GET", "/api/properties", params=params)
            return [schemas.ListingSummary.model_validate(r) for r in rows]

        key = QueryCache.key_for(SEARCH_NAMESPACE, dict(params.multi_items()))
        return self.cache.fetch(key, _load, refresh=refresh)

    def get_listing(self, listing_id: int) -> schemas.ListingDetail:
        return schemas.ListingDetail.model_validate(self._request("GET", f"/api/properties/{listing_id}"))

    def create_listing(self, payload: Union[schemas.ListingPayload, Dict[str, Any]]) -> schemas.ListingRead:
        data = self._request("POST", "/api/properties", auth=True, json=_body(payload))
        self.cache.invalidate(SEARCH_NAMESPACE)
        self.store.add_notification("success", "Listing created successfully")
        return schemas.ListingRead.model_validate(data)

    def update_listing(
        self, listing_id: int, payload: Union[schemas.ListingPayload, Dict[str, Any]]
    ) -> schemas.ListingRead:
        data = self._request("PUT", f"/api/properties/{listing_id}", auth=True, json=_body(payload))
        self.cache.invalidate(SEARCH_NAMESPACE)
        self.store.add_notification("success", "Listing updated successfully")
        return schemas.ListingRead.model_validate(data)

    def delete_listing(self, listing_id: int) -> str:
        data = self._request("DELETE", f"/api/properties/{listing_id}", auth=True)
        self.cache.invalidate(SEARCH_NAMESPACE)
        self.store.add_notification("success", data["message"])
        return data["message"]

    # ----------------
    # Inquiries and favorites
    # ----------------
    def submit_inquiry(self, payload: Union[schemas.InquiryCreate, Dict[str, Any]]) -> schemas.InquiryRead:
        data = self._request("POST", "/api/inquiries", auth=True, json=_body(payload))
        self.store.add_notification("success", "Inquiry sent")
        return schemas.InquiryRead.model_validate(data)

    def list_favorites(self) -> List[schemas.FavoriteRead]:
        return [schemas.FavoriteRead.model_validate(r) for r in self._request("GET", "/api/favorites", auth=True)]

    def add_favorite(self, listing_id: int) -> schemas.FavoriteRead:
        data = self._request("POST", "/api/favorites", auth=True, json={"property_listing_id": listing_id})
        return schemas.FavoriteRead.model_validate(data)

    def remove_favorite(self, favorite_id: int) -> str:
        return self._request("DELETE", f"/api/favorites/{favorite_id}", auth=True)["message"]

    # ----------------
    # Agent and admin dashboards
    # ----------------
    def agent_inquiries(self) -> List[schemas.InquiryRead]:
        return [schemas.InquiryRead.model_validate(r) for r in self._request("GET", "/api/agent/inquiries", auth=True)]

    def agent_listings(self) -> List[schemas.ListingSummary]:
        return [schemas.ListingSummary.model_validate(r) for r in self._request("GET", "/api/agent/listings", auth=True)]

    def admin_users(self) -> List[schemas.UserRead]:
        return [schemas.UserRead.model_validate(r) for r in self._request("GET", "/api/admin/users", auth=True)]

    def admin_listings(self, status: Optional[str] = None) -> List[schemas.ListingRead]:
        params = httpx.QueryParams({"status": status}) if status else None
        rows = self._request("GET", "/api/admin/listings", auth=True, params=params)
        return [schemas.ListingRead.model_validate(r) for r in rows]

    def moderate_listing(self, listing_id: int, status: str) -> schemas.ListingRead:
        data = self._request("PUT", f"/api/admin/listings/{listing_id}", auth=True, json={"status": status})
        self.cache.invalidate(SEARCH_NAMESPACE)
        return schemas.ListingRead.model_validate(data)
