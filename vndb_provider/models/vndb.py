"""Raw VNDB API record models.

VNDB responses are untrusted input: every field may be missing, null or of
an unexpected type. ``VisualNovelRecord.from_json`` keeps whatever is usable
and drops the rest so the mapper can validate required fields before it
builds any output.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class NamedEntry:
    """A nested ``{id, name}`` entry such as a developer or tag."""
    id: str
    name: str


@dataclass(frozen=True)
class VisualNovelRecord:
    """One visual novel entry from the ``/vn`` endpoint."""
    id: str | None = None
    title: str | None = None
    image_url: str | None = None
    released: str | None = None
    description: str | None = None
    rating: float | None = None
    length_minutes: int | None = None
    devstatus: int | None = None
    screenshot_urls: list[str] = field(default_factory=list)
    developers: list[NamedEntry] = field(default_factory=list)
    tags: list[NamedEntry] = field(default_factory=list)
    extlink_urls: list[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any) -> "VisualNovelRecord":
        """Build a record from one element of a ``results`` array."""
        if not isinstance(data, dict):
            return cls()

        image = data.get("image")
        image_url = image.get("url") if isinstance(image, dict) else None

        return cls(
            id=_as_id(data.get("id")),
            title=_as_str(data.get("title")),
            image_url=_as_str(image_url),
            released=_as_str(data.get("released")),
            description=_as_str(data.get("description")),
            rating=_as_float(data.get("rating")),
            length_minutes=_as_int(data.get("length_minutes")),
            devstatus=_as_int(data.get("devstatus")),
            screenshot_urls=_collect_urls(data.get("screenshots")),
            developers=_collect_named(data.get("developers")),
            tags=_collect_named(data.get("tags")),
            extlink_urls=_collect_urls(data.get("extlinks")),
        )


@dataclass(frozen=True)
class FilterResponse:
    """Envelope returned by VNDB filter queries."""
    results: list[VisualNovelRecord]
    more: bool = False

    @classmethod
    def from_json(cls, data: Any) -> "FilterResponse":
        """Parse a decoded response body; a missing ``results`` list means no results."""
        if not isinstance(data, dict):
            return cls(results=[])
        raw_results = data.get("results")
        if not isinstance(raw_results, list):
            raw_results = []
        return cls(
            results=[VisualNovelRecord.from_json(item) for item in raw_results],
            more=bool(data.get("more", False)),
        )


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _as_id(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        return str(value)
    return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _collect_urls(items: Any) -> list[str]:
    if not isinstance(items, list):
        return []
    return [
        item["url"]
        for item in items
        if isinstance(item, dict) and isinstance(item.get("url"), str)
    ]


def _collect_named(items: Any) -> list[NamedEntry]:
    if not isinstance(items, list):
        return []
    entries = []
    for item in items:
        if not isinstance(item, dict):
            continue
        entry_id = _as_id(item.get("id"))
        name = _as_str(item.get("name"))
        if entry_id is None or name is None:
            continue
        entries.append(NamedEntry(id=entry_id, name=name))
    return entries
