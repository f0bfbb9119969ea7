"""YouTube helpers — identifier parsing, oEmbed title lookup, Data API duration.

The title lookup only enriches the generation prompt and the duration
lookup only feeds the headless widget; both return ``None`` on failure
instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
import re
from urllib.parse import parse_qs, urlparse

import httpx

from .config import get_config

logger = logging.getLogger(__name__)

_BARE_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")


def _is_youtube_host(host: str) -> bool:
    """Check if host is a youtube.com domain (including subdomains like www.youtube.com)."""
    host = host.lower().split(":", 1)[0]
    return host == "youtube.com" or host.endswith(".youtube.com")


def _is_youtu_be_host(host: str) -> bool:
    """Check if host is the youtu.be short-link domain."""
    host = host.lower().split(":", 1)[0]
    return host in {"youtu.be", "www.youtu.be"}


def _video_id_from_parsed(parsed) -> str | None:
    host = parsed.netloc.lower().split(":", 1)[0]
    if _is_youtu_be_host(host):
        return parsed.path.strip("/").split("/", 1)[0] or None

    if not _is_youtube_host(host):
        return None

    video_id = parse_qs(parsed.query).get("v", [None])[0]
    if video_id:
        return video_id

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) >= 2 and parts[0] in {"shorts", "embed", "live", "v"}:
        return parts[1]
    return None


def extract_video_id(text: str) -> str:
    """Return the video ID named by *text*.

    Accepts a bare 11-character ID, youtube.com watch/shorts/embed/live
    URLs and youtu.be short links. Scheme-less URLs are tolerated.

    Raises:
        ValueError: If no video ID can be extracted.
    """
    candidate = text.strip().replace("\\", "")
    if _BARE_ID.match(candidate):
        return candidate
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    vid = _video_id_from_parsed(urlparse(candidate))
    if not vid:
        raise ValueError(f"Not a YouTube URL: {text}")
    vid = vid.split("&")[0].split("?")[0]
    if not _BARE_ID.match(vid):
        raise ValueError(f"Could not extract video ID from URL: {text}")
    return vid


def watch_url(video_id: str) -> str:
    """Canonical ``https://www.youtube.com/watch?v=ID`` URL."""
    return f"https://www.youtube.com/watch?v={video_id}"


async def fetch_video_title(video_id: str) -> str | None:
    """Resolve the public title of *video_id* through an oEmbed endpoint.

    Returns:
        The title, or None when the endpoint fails, times out, or reports an error.
    """
    cfg = get_config()
    try:
        async with httpx.AsyncClient(timeout=cfg.title_lookup_timeout) as client:
            resp = await client.get(cfg.oembed_endpoint, params={"url": watch_url(video_id)})
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("oEmbed title lookup failed for %s: %s", video_id, exc)
        return None

    if not isinstance(data, dict) or data.get("error") or not data.get("title"):
        logger.info("oEmbed returned no title for %s", video_id)
        return None
    return str(data["title"])


def _parse_iso8601_duration(duration: str | None) -> int:
    """Parse ISO 8601 duration (PT4M13S) into total seconds."""
    match = re.match(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?", duration or "")
    if not match:
        return 0
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)
    return hours * 3600 + minutes * 60 + seconds


class YouTubeClient:
    """Singleton YouTube Data API v3 client."""

    _service = None

    @classmethod
    def get(cls):
        """Get or create the YouTube API service (lazy singleton)."""
        if cls._service is None:
            from googleapiclient.discovery import build

            cfg = get_config()
            cls._service = build(
                "youtube", "v3", developerKey=cfg.youtube_api_key, cache_discovery=False,
            )
        return cls._service

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._service = None

    @classmethod
    async def video_duration(cls, video_id: str) -> int | None:
        """Return the video length in seconds, or None when unknown.

        Skipped entirely when no YOUTUBE_API_KEY is configured.
        """
        if not get_config().youtube_api_key:
            return None

        def _fetch():
            return cls.get().videos().list(part="contentDetails", id=video_id).execute()

        try:
            resp = await asyncio.to_thread(_fetch)
        except Exception as exc:
            logger.warning("YouTube Data API duration lookup failed for %s: %s", video_id, exc)
            return None

        items = resp.get("items", [])
        if not items:
            return None
        seconds = _parse_iso8601_duration(items[0].get("contentDetails", {}).get("duration"))
        return seconds or None
