import asyncio
import os
from time import monotonic
from typing import Any

import httpx

from household_budget.core import settings
from household_budget.logger import get_logger

logger = get_logger(__name__)


class HouseholdAPIError(RuntimeError):
    """The household store could not be read."""


class HouseholdClient:
    """Read-only client for the household app's family and budget endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        family_cache_ttl: float | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = (base_url or os.getenv("HOUSEHOLD_API_URL") or "").rstrip("/") or None
        self.token = token or os.getenv("HOUSEHOLD_API_TOKEN")
        self.timeout = timeout
        self._client = client
        self._client_lock = asyncio.Lock()
        self._cache_lock = asyncio.Lock()
        self._family_cache: dict[str, tuple[float, dict[str, Any]]] = {}
        if family_cache_ttl is None:
            family_cache_ttl = settings.get_env_float(
                "HOUSEHOLD_FAMILY_TTL",
                settings.DEFAULT_FAMILY_TTL_SECONDS,
            )
        self._family_cache_ttl = max(0.0, family_cache_ttl)

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient(timeout=self.timeout)
                self._client = client
            return client

    async def _get_json(self, path: str) -> Any:
        client = await self._get_client()
        response = await client.get(f"{self.base_url}{path}", headers=self.headers)
        response.raise_for_status()
        return response.json()

    def _cached_family(self, family_id: str, *, allow_stale: bool = False) -> dict[str, Any] | None:
        if self._family_cache_ttl <= 0:
            return None
        entry = self._family_cache.get(family_id)
        if entry is None:
            return None
        expires_at, family = entry
        if not allow_stale and monotonic() >= expires_at:
            return None
        return family

    async def get_family(self, family_id: str, *, raise_on_error: bool = False) -> dict[str, Any] | None:
        """Fetch a family profile; ``None`` when it does not exist."""
        if not self.configured:
            logger.error("[STORE] HOUSEHOLD_API_URL not configured.")
            if raise_on_error:
                raise HouseholdAPIError("Household store not configured")
            return None

        async with self._cache_lock:
            cached = self._cached_family(family_id)
        if cached is not None:
            return cached

        try:
            family = await self._get_json(f"/api/families/{family_id}")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            return await self._family_fallback(family_id, exc, raise_on_error)
        except httpx.HTTPError as exc:
            return await self._family_fallback(family_id, exc, raise_on_error)

        if not isinstance(family, dict):
            return None
        if self._family_cache_ttl > 0:
            async with self._cache_lock:
                self._family_cache[family_id] = (monotonic() + self._family_cache_ttl, family)
        return family

    async def _family_fallback(
        self,
        family_id: str,
        exc: Exception,
        raise_on_error: bool,
    ) -> dict[str, Any] | None:
        logger.error("[STORE] Error fetching family %s: %s", family_id, exc)
        async with self._cache_lock:
            stale = self._cached_family(family_id, allow_stale=True)
        if stale is not None:
            logger.warning("[STORE] Serving cached profile for family %s.", family_id)
            return stale
        if raise_on_error:
            raise HouseholdAPIError(f"Failed to fetch family {family_id}") from exc
        return None

    async def _get_rows(
        self,
        family_id: str,
        resource: str,
        path: str,
        *,
        raise_on_error: bool,
    ) -> list[dict[str, Any]]:
        if not self.configured:
            logger.error("[STORE] HOUSEHOLD_API_URL not configured.")
            if raise_on_error:
                raise HouseholdAPIError("Household store not configured")
            return []

        try:
            data = await self._get_json(path)
        except httpx.HTTPError as exc:
            logger.error("[STORE] Error fetching %s for family %s: %s", resource, family_id, exc)
            if raise_on_error:
                raise HouseholdAPIError(f"Failed to fetch {resource} for family {family_id}") from exc
            return []

        if isinstance(data, dict):
            data = data.get("data", [])
        if not isinstance(data, list):
            logger.warning("[STORE] Unexpected %s payload for family %s.", resource, family_id)
            return []
        logger.debug("[STORE] Fetched %d %s row(s) for family %s.", len(data), resource, family_id)
        return data

    async def get_income(self, family_id: str, *, raise_on_error: bool = False) -> list[dict[str, Any]]:
        return await self._get_rows(
            family_id, "income", f"/api/families/{family_id}/budget/income", raise_on_error=raise_on_error
        )

    async def get_expenses(self, family_id: str, *, raise_on_error: bool = False) -> list[dict[str, Any]]:
        return await self._get_rows(
            family_id, "expenses", f"/api/families/{family_id}/budget/expenses", raise_on_error=raise_on_error
        )

    async def get_events(self, family_id: str, *, raise_on_error: bool = False) -> list[dict[str, Any]]:
        """Calendar events for the family, as stored."""
        return await self._get_rows(
            family_id, "events", f"/api/families/{family_id}/events", raise_on_error=raise_on_error
        )
