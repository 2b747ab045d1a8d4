from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

import httpx

from .errors import DecodeError, ServiceUnavailableError
from .logging_utils import log_event
from .models import decode_directory
from .settings import settings


class BuildingDirectory:
    """Short building names mapped to display names, fetched once from ``/get-map``."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self._client = client
        self._entries: Mapping[str, str] = MappingProxyType({})
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def entries(self) -> Mapping[str, str]:
        return self._entries

    async def load(self) -> Mapping[str, str]:
        if self._loaded:
            return self._entries

        own_client = self._client is None
        client = self._client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.request_timeout_s, connect=settings.connect_timeout_s),
            trust_env=False,
            headers={"accept": "application/json"},
        )
        url = f"{self.base_url}/get-map"
        try:
            try:
                resp = await client.get(url)
            except httpx.DecodingError as e:
                log_event("directory_load_failed", url=url, error=type(e).__name__)
                raise ServiceUnavailableError("The building list could not be read.") from e
            except httpx.RequestError as e:
                log_event("directory_load_failed", url=url, error=type(e).__name__)
                raise ServiceUnavailableError("There was an error contacting the server.") from e

            if resp.status_code != 200:
                log_event("directory_load_failed", url=url, status=resp.status_code)
                raise ServiceUnavailableError(
                    f"The status is wrong! Expected: 200, Was: {resp.status_code}",
                    status=resp.status_code,
                )

            try:
                entries = _decode(resp)
            except DecodeError as e:
                log_event("directory_load_failed", url=url, error=str(e))
                raise ServiceUnavailableError("The building list could not be read.") from e
        finally:
            if own_client:
                await client.aclose()

        self._entries = MappingProxyType(entries)
        self._loaded = True
        log_event("directory_loaded", url=url, building_count=len(entries))
        return self._entries

    def contains(self, short_name: str) -> bool:
        return short_name in self._entries

    def display_name(self, short_name: str) -> str:
        try:
            return self._entries[short_name]
        except KeyError:
            raise KeyError(f"unknown building: {short_name}") from None

    def options(self) -> list[tuple[str, str]]:
        """(value, label) pairs for a selection control, in load order."""
        return list(self._entries.items())


def _decode(resp: httpx.Response) -> dict[str, str]:
    try:
        payload = resp.json()
    except ValueError as e:
        raise DecodeError("get-map body is not JSON") from e
    return decode_directory(payload)
