from __future__ import annotations

from typing import Optional


class HarvestError(RuntimeError):
    """Base class for failures raised while harvesting."""


class TransportError(HarvestError):
    """The server answered with a non-success status, or the request never completed."""

    def __init__(self, url: str, status_code: Optional[int] = None, detail: Optional[str] = None) -> None:
        self.url = url
        self.status_code = status_code
        if status_code is not None:
            msg = f"HTTP Error: {status_code} for {url}"
        else:
            msg = f"HTTP Request Error for {url}: {detail or 'no response'}"
        super().__init__(msg)


class DecodeError(HarvestError):
    """The response body could not be parsed in the expected format."""

    def __init__(self, url: str, detail: str) -> None:
        self.url = url
        super().__init__(f"Parsing Error for {url}: {detail}")


class MissingFieldError(HarvestError):
    """A decoded entity lacks a required key. Scoped to that entity."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"missing field: {field}")


class MalformedItemError(HarvestError):
    """A catalog item lacks a required sub-node. Scoped to that item."""

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"item has no '{selector}' node")
