from __future__ import annotations

REASON_CODES: frozenset[str] = frozenset(
    {
        "selection_incomplete",
        "selection_unknown",
        "transport_failed",
        "server_status",
        "payload_invalid",
        "directory_unavailable",
    }
)


class CampusPathsError(RuntimeError):
    """Base for every failure surfaced to the user as a notice."""

    reason_code: str = "transport_failed"

    def __init__(self, message: str, *, reason_code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if reason_code is not None:
            self.reason_code = normalize_reason_code(reason_code, default=self.reason_code)

    def __str__(self) -> str:
        return self.message

    @property
    def notice(self) -> str:
        return self.message


class ValidationError(CampusPathsError):
    reason_code = "selection_incomplete"


class TransportError(CampusPathsError):
    reason_code = "transport_failed"

    @property
    def notice(self) -> str:
        return "There was an error contacting the server."


class ServerError(CampusPathsError):
    reason_code = "server_status"

    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = int(status)
        super().__init__(message or f"The status is wrong! Expected: 200, Was: {self.status}")


class DecodeError(CampusPathsError):
    reason_code = "payload_invalid"

    @property
    def notice(self) -> str:
        return "The server returned a path that could not be read."


class ServiceUnavailableError(CampusPathsError):
    reason_code = "directory_unavailable"

    def __init__(self, message: str, *, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


def normalize_reason_code(reason_code: str, *, default: str = "transport_failed") -> str:
    code = str(reason_code or "").strip()
    if code in REASON_CODES:
        return code
    return default
