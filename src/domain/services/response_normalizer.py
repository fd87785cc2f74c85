"""Extract the edited image URL from an edit service response.

The edit service has returned its payload in several shapes over time, so the
response is probed with an ordered list of extractors. Each extractor takes the
decoded JSON body and returns a URL or ``None``; the first non-empty string
wins.
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

Extractor = Callable[[Any], str | None]


def _string(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _get(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None


def from_message_list(body: Any) -> str | None:
    """``{"message": [{"image": url}, ...]}``"""
    message = _get(body, "message")
    if isinstance(message, list) and message:
        return _string(_get(message[0], "image"))
    return None


def from_message_object(body: Any) -> str | None:
    """``{"message": {"image": url}}``"""
    return _string(_get(_get(body, "message"), "image"))


def from_image(body: Any) -> str | None:
    return _string(_get(body, "image"))


def from_edited_image_url(body: Any) -> str | None:
    return _string(_get(body, "edited_image_url"))


def from_result(body: Any) -> str | None:
    """``{"result": url}`` or ``{"result": {"image": url}}``"""
    result = _get(body, "result")
    return _string(result) or _string(_get(result, "image"))


EXTRACTORS: tuple[Extractor, ...] = (
    from_message_list,
    from_message_object,
    from_image,
    from_edited_image_url,
    from_result,
)


def extract_edited_image_url(
    body: Any, extractors: tuple[Extractor, ...] = EXTRACTORS
) -> str | None:
    for extractor in extractors:
        url = extractor(body)
        if url:
            return url
    return None
