from __future__ import annotations

from collections.abc import Mapping

import httpx

from .errors import DecodeError, ServerError, TransportError, ValidationError
from .logging_utils import log_event
from .models import UNSELECTED, Path, RenderPoints, decode_path, render_points
from .settings import settings


def _is_concrete(selection: str) -> bool:
    return bool(selection.strip()) and selection != UNSELECTED


def validate_selection(
    start: str | None,
    end: str | None,
    *,
    known: Mapping[str, str] | None = None,
) -> tuple[str, str]:
    """Return ``(start, end)`` when both name real places, else raise ValidationError.

    ``known`` restricts names to a loaded directory; an empty or missing
    mapping only checks for the placeholder.
    """
    if start is None or end is None or not (_is_concrete(start) and _is_concrete(end)):
        raise ValidationError("Make sure to choose a starting location and/or destination!")
    if known:
        unknown = [name for name in (start, end) if name not in known]
        if unknown:
            raise ValidationError(
                f"Unknown location: {', '.join(unknown)}",
                reason_code="selection_unknown",
            )
    return start, end


class PathQueryClient:
    """Fetches a route between two buildings from the pathfinding service."""

    render_points = staticmethod(render_points)

    def __init__(
        self,
        *,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.base_url).rstrip("/")
        timeout = timeout_s if timeout_s is not None else settings.request_timeout_s

        # trust_env=False keeps proxy env vars away from a campus-local server.
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=min(timeout, settings.connect_timeout_s)),
            trust_env=False,
            headers={"accept": "application/json"},
            transport=transport,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> PathQueryClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def query(
        self,
        start: str | None,
        end: str | None,
        *,
        known: Mapping[str, str] | None = None,
    ) -> Path:
        start, end = validate_selection(start, end, known=known)

        url = f"{self.base_url}/find-path"
        log_event("path_query_started", start=start, end=end)
        try:
            resp = await self._client.get(url, params={"start": start, "end": end})
        except httpx.DecodingError as e:
            # Body arrived but its content-encoding could not be undone.
            log_event("path_query_failed", start=start, end=end, error=type(e).__name__)
            raise DecodeError("find-path body could not be decoded") from e
        except httpx.RequestError as e:
            # httpx exceptions can stringify to "" (e.g. some timeouts), so include the type.
            msg = str(e).strip()
            detail = f"{type(e).__name__}: {msg}" if msg else type(e).__name__
            log_event("path_query_failed", start=start, end=end, error=detail)
            raise TransportError(f"find-path request failed (base={self.base_url}): {detail}") from e

        if resp.status_code != 200:
            log_event("path_query_failed", start=start, end=end, status=resp.status_code)
            raise ServerError(resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            log_event("path_query_failed", start=start, end=end, error="body_not_json")
            raise DecodeError("find-path body is not JSON") from e

        try:
            path = decode_path(payload)
        except DecodeError as e:
            log_event("path_query_failed", start=start, end=end, error=str(e))
            raise

        log_event(
            "path_query_succeeded",
            start=start,
            end=end,
            segment_count=len(path),
            total_cost=path.total_cost,
        )
        return path

    async def query_points(
        self,
        start: str | None,
        end: str | None,
        *,
        known: Mapping[str, str] | None = None,
    ) -> RenderPoints:
        return render_points(await self.query(start, end, known=known))
