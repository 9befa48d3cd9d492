"""
Service exceptions.

    Xml2JsonError (base)
    ├── InputError
    │   ├── EmptyPayloadError
    │   ├── PayloadTooLargeError
    │   ├── UnsupportedMediaTypeError
    │   └── MalformedXMLError
    └── RemoteFetchError

A missing invoice root is not an exception: the mapper reports it as
{"ok": False, "error": ...}.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class Xml2JsonError(Exception):
    """Base class; `status_code` is the HTTP status the API answers with."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InputError(Xml2JsonError):
    pass


class EmptyPayloadError(InputError):
    def __init__(self, message: str = "Empty body"):
        super().__init__(message)


class PayloadTooLargeError(InputError):
    status_code = 413

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Payload too large: {size} bytes (limit {limit})",
            {"size": size, "limit": limit},
        )


class UnsupportedMediaTypeError(InputError):
    status_code = 415

    def __init__(self, content_type: str):
        super().__init__(
            f"Unsupported Content-Type: {content_type or '(none)'}; send text/* or an XML media type",
            {"content_type": content_type},
        )


class MalformedXMLError(InputError):
    """The XML could not be parsed into a tree."""

    def __init__(self, reason: str):
        super().__init__(reason or "Parse error", {"reason": reason})


class RemoteFetchError(Xml2JsonError):
    def __init__(self, url: str, reason: str):
        super().__init__(f"Could not fetch XML from {url}: {reason}", {"url": url, "reason": reason})


__all__ = [
    "Xml2JsonError",
    "InputError",
    "EmptyPayloadError",
    "PayloadTooLargeError",
    "UnsupportedMediaTypeError",
    "MalformedXMLError",
    "RemoteFetchError",
]
