from typing import Optional


class UpstreamError(Exception):
    """A primary upstream source could not deliver streams."""

    def __init__(self, source: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message
        self.status = status


class UpstreamRateLimited(UpstreamError):
    """The local limiter refused a fetch against a primary source."""

    def __init__(self, source: str) -> None:
        super().__init__(source, "rate limited", status=429)


def error_payload(code: int, message: str, details: Optional[dict] = None) -> dict:
    payload = {"ok": False, "error": message, "code": code}
    if details:
        payload["details"] = details
    return payload
