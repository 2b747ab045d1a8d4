from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from campus_paths.errors import DecodeError, ServerError, TransportError, ValidationError
from campus_paths.models import UNSELECTED, Path
from campus_paths.path_client import PathQueryClient, validate_selection

BASE = "http://campus.test"

TWO_SEGMENTS: dict[str, Any] = {
    "path": [
        {"start": {"x": 10, "y": 20}, "end": {"x": 30, "y": 40}, "cost": 5},
        {"start": {"x": 30, "y": 40}, "end": {"x": 50, "y": 60}, "cost": 3},
    ]
}


class _Recorder:
    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _client(recorder: _Recorder) -> PathQueryClient:
    return PathQueryClient(base_url=BASE, transport=httpx.MockTransport(recorder))


async def _query(client: PathQueryClient, start: str, end: str, **kwargs: Any) -> Path:
    async with client:
        return await client.query(start, end, **kwargs)


def test_query_sends_start_and_end_and_preserves_order() -> None:
    recorder = _Recorder(httpx.Response(200, json=TWO_SEGMENTS))
    path = asyncio.run(_query(_client(recorder), "BAG", "CSE"))

    assert len(recorder.requests) == 1
    req = recorder.requests[0]
    assert req.method == "GET"
    assert req.url.path == "/find-path"
    assert req.url.params["start"] == "BAG"
    assert req.url.params["end"] == "CSE"

    assert [seg.start.as_tuple() for seg in path.segments] == [(10, 20), (30, 40)]
    points = PathQueryClient.render_points(path)
    assert [p.as_tuple() for p in points] == [(10, 20), (30, 40), (50, 60)]


def test_query_points_for_same_start_and_end_is_empty() -> None:
    recorder = _Recorder(httpx.Response(200, json={"path": []}))

    async def _run() -> tuple:
        async with _client(recorder) as client:
            return await client.query_points("BAG", "BAG")

    assert asyncio.run(_run()) == ()


@pytest.mark.parametrize(
    "start,end",
    [(UNSELECTED, "CSE"), ("BAG", UNSELECTED), (UNSELECTED, UNSELECTED), ("", "CSE"), ("  ", "CSE")],
)
def test_query_with_unselected_location_makes_no_request(start: str, end: str) -> None:
    recorder = _Recorder(httpx.Response(200, json=TWO_SEGMENTS))
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(_query(_client(recorder), start, end))

    assert recorder.requests == []
    assert excinfo.value.reason_code == "selection_incomplete"


def test_query_with_unknown_building_makes_no_request() -> None:
    recorder = _Recorder(httpx.Response(200, json=TWO_SEGMENTS))
    known = {"BAG": "Bagley Hall", "CSE": "Paul G. Allen Center"}
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(_query(_client(recorder), "BAG", "XYZ", known=known))

    assert recorder.requests == []
    assert excinfo.value.reason_code == "selection_unknown"
    assert "XYZ" in str(excinfo.value)


def test_validate_selection_without_directory_only_checks_placeholder() -> None:
    assert validate_selection("BAG", "XYZ") == ("BAG", "XYZ")
    assert validate_selection("BAG", "XYZ", known={}) == ("BAG", "XYZ")
    with pytest.raises(ValidationError):
        validate_selection(None, "XYZ")


def test_query_non_200_raises_server_error_without_parsing_body() -> None:
    recorder = _Recorder(httpx.Response(404, content=b"<html>not json</html>"))
    with pytest.raises(ServerError) as excinfo:
        asyncio.run(_query(_client(recorder), "BAG", "CSE"))

    assert excinfo.value.status == 404
    assert "404" in excinfo.value.notice
    assert len(recorder.requests) == 1


def test_query_connect_failure_raises_transport_error() -> None:
    request = httpx.Request("GET", f"{BASE}/find-path")
    recorder = _Recorder(httpx.ConnectError("name resolution failed", request=request))
    with pytest.raises(TransportError) as excinfo:
        asyncio.run(_query(_client(recorder), "BAG", "CSE"))

    assert "ConnectError" in str(excinfo.value)
    assert excinfo.value.notice == "There was an error contacting the server."


def test_query_timeout_raises_transport_error() -> None:
    request = httpx.Request("GET", f"{BASE}/find-path")
    recorder = _Recorder(httpx.ReadTimeout("", request=request))
    with pytest.raises(TransportError) as excinfo:
        asyncio.run(_query(_client(recorder), "BAG", "CSE"))

    assert "ReadTimeout" in str(excinfo.value)


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={"path": [{"start": {"x": 1, "y": 2}}]}),
        httpx.Response(200, json=["path"]),
    ],
)
def test_query_malformed_payload_raises_decode_error(response: httpx.Response) -> None:
    recorder = _Recorder(response)
    with pytest.raises(DecodeError):
        asyncio.run(_query(_client(recorder), "BAG", "CSE"))


def test_client_strips_trailing_slash_from_base_url() -> None:
    recorder = _Recorder(httpx.Response(200, json={"path": []}))
    client = PathQueryClient(base_url=f"{BASE}/", transport=httpx.MockTransport(recorder))
    asyncio.run(_query(client, "BAG", "CSE"))
    assert str(recorder.requests[0].url).startswith(f"{BASE}/find-path?")


def test_query_corrupt_content_encoding_raises_decode_error() -> None:
    recorder = _Recorder(httpx.Response(200, headers={"content-encoding": "gzip"}, content=b"not gzip"))
    with pytest.raises(DecodeError) as excinfo:
        asyncio.run(_query(_client(recorder), "BAG", "CSE"))

    assert isinstance(excinfo.value.__cause__, httpx.DecodingError)
