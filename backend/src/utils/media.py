"""
Media reference helpers.

Images and videos are stored as public URLs produced by the upload
collaborator. Inline ``data:`` URIs are never persisted: they bloat the
records and bypass the upload pipeline.
"""

import re
from typing import Iterable, List, Optional
from urllib.parse import parse_qs, urlparse

_YOUTUBE_ID = re.compile(r"^[a-zA-Z0-9_-]{11}$")
_YOUTUBE_PATH_MARKERS = ("embed", "shorts", "live", "watch")


def is_inline_data(value: Optional[str]) -> bool:
    """True for ``data:`` URIs."""
    return bool(value) and value.strip().lower().startswith("data:")


def clean_media_list(values: Optional[Iterable]) -> List[str]:
    """
    Normalize a list of media URLs.

    Drops non-strings, blanks, inline data URIs and duplicates; keeps order.
    """
    cleaned: List[str] = []
    for value in values or []:
        if not isinstance(value, str):
            continue
        value = value.strip()
        if not value or is_inline_data(value) or value in cleaned:
            continue
        cleaned.append(value)
    return cleaned


def merge_media(*lists: Optional[Iterable[str]]) -> List[str]:
    """Concatenate media lists, dropping duplicates and keeping first-seen order."""
    merged: List[str] = []
    for values in lists:
        for value in clean_media_list(values):
            if value not in merged:
                merged.append(value)
    return merged


def extract_youtube_id(value: Optional[str]) -> Optional[str]:
    """
    Extract the video id from a YouTube link or bare id.

    Supports youtu.be/<id>, youtube.com/watch?v=<id> and the
    /embed/, /shorts/, /live/ path forms.
    """
    raw = (value or "").strip()
    if not raw:
        return None
    if _YOUTUBE_ID.match(raw):
        return raw

    parsed = urlparse(raw)
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]

    if host == "youtu.be":
        candidate = parsed.path.lstrip("/").split("/")[0]
        return candidate if _YOUTUBE_ID.match(candidate) else None

    if host == "youtube.com" or host.endswith(".youtube.com"):
        watch_id = parse_qs(parsed.query).get("v", [None])[0]
        if watch_id and _YOUTUBE_ID.match(watch_id):
            return watch_id

        segments = [s for s in parsed.path.split("/") if s]
        for index, segment in enumerate(segments[:-1]):
            if segment in _YOUTUBE_PATH_MARKERS:
                candidate = segments[index + 1]
                return candidate if _YOUTUBE_ID.match(candidate) else None

    return None


def normalize_youtube_url(value: Optional[str]) -> Optional[str]:
    """Canonical watch URL for a YouTube link, or None if not recognized."""
    video_id = extract_youtube_id(value)
    return f"https://www.youtube.com/watch?v={video_id}" if video_id else None


def normalize_video_url(value: str) -> Optional[str]:
    """
    Normalize an external video link.

    YouTube links become canonical watch URLs; other http(s) links are kept
    as given. Anything else returns None.
    """
    youtube = normalize_youtube_url(value)
    if youtube:
        return youtube
    parsed = urlparse((value or "").strip())
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return value.strip()
    return None
