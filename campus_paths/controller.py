from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace

from .directory import BuildingDirectory
from .errors import CampusPathsError, ServiceUnavailableError, ValidationError
from .logging_utils import log_event
from .models import UNSELECTED, Coordinate, RenderPoints, render_points
from .path_client import PathQueryClient, validate_selection
from .renderer import MapCanvasRenderer

Notify = Callable[[str], None]


@dataclass(frozen=True)
class Selection:
    start: str = UNSELECTED
    end: str = UNSELECTED


class PathViewController:
    """Owns the displayed path and turns user actions into queries and redraws.

    Failures never propagate out of the user actions: each one becomes exactly
    one notice and the path on screen stays as it was.
    """

    def __init__(
        self,
        *,
        client: PathQueryClient,
        renderer: MapCanvasRenderer,
        directory: BuildingDirectory | None = None,
        notify: Notify | None = None,
    ) -> None:
        self._client = client
        self._renderer = renderer
        self._directory = directory
        self._notify_cb = notify

        self._selection = Selection()
        self._points: RenderPoints = ()
        self._request_seq = 0
        self.notices: list[str] = []

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def current_points(self) -> RenderPoints:
        return self._points

    def select_start(self, short_name: str) -> Selection:
        self._selection = replace(self._selection, start=short_name)
        return self._selection

    def select_end(self, short_name: str) -> Selection:
        self._selection = replace(self._selection, end=short_name)
        return self._selection

    def on_path_computed(self, points: Sequence[Coordinate]) -> None:
        self._points = tuple(points)
        self._renderer.set_path(self._points)

    async def load_directory(self) -> Mapping[str, str]:
        if self._directory is None:
            return {}
        try:
            return await self._directory.load()
        except ServiceUnavailableError as e:
            self._notify(e)
            return self._directory.entries

    async def find_path(self) -> RenderPoints | None:
        """Query the selected route and display it; None when nothing changed."""
        known = self._known_buildings()
        try:
            start, end = validate_selection(self._selection.start, self._selection.end, known=known)
        except ValidationError as e:
            self._notify(e)
            return None

        self._request_seq += 1
        token = self._request_seq
        try:
            path = await self._client.query(start, end, known=known)
        except CampusPathsError as e:
            if token != self._request_seq:
                self._discard(token, start, end, outcome=e.reason_code)
                return None
            self._notify(e)
            return None

        if token != self._request_seq:
            self._discard(token, start, end, outcome="ok")
            return None

        points = render_points(path)
        self.on_path_computed(points)
        return points

    def clear(self) -> None:
        # Responses still in flight belong to the old selection.
        self._request_seq += 1
        self._selection = Selection()
        log_event("path_cleared")
        self.on_path_computed(())

    def _known_buildings(self) -> Mapping[str, str] | None:
        if self._directory is None or not self._directory.loaded:
            return None
        return self._directory.entries

    def _discard(self, token: int, start: str, end: str, *, outcome: str) -> None:
        log_event(
            "path_response_discarded",
            token=token,
            latest_token=self._request_seq,
            start=start,
            end=end,
            outcome=outcome,
        )

    def _notify(self, err: CampusPathsError) -> None:
        notice = err.notice
        self.notices.append(notice)
        log_event("user_notice", reason_code=err.reason_code, notice=notice, detail=str(err))
        if self._notify_cb is not None:
            self._notify_cb(notice)
