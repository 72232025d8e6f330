import logging
import os
from typing import Optional
from urllib.parse import ParseResult, parse_qs

import requests
from pydantic import ValidationError

from app.schemas.schemas import ExtractedMetadata

logger = logging.getLogger(__name__)

OEMBED_ENDPOINT = "https://www.youtube.com/oembed"
OEMBED_TIMEOUT = float(os.getenv("OEMBED_TIMEOUT", "5"))


def is_youtube_host(hostname: str) -> bool:
    hostname = hostname.lower()
    return (
        hostname == "youtube.com"
        or hostname.endswith(".youtube.com")
        or hostname == "youtu.be"
    )


def youtube_video_id(parsed: ParseResult) -> Optional[str]:
    """
    Returns the video id of a watch URL (``?v=<id>``) or a youtu.be short link
    (``/<id>``), or None when the URL carries no id.
    """
    hostname = (parsed.hostname or "").lower()
    if hostname == "youtu.be":
        video_id = parsed.path.lstrip("/").split("/")[0]
    else:
        video_id = parse_qs(parsed.query).get("v", [""])[0]
    return video_id.strip() or None


def fetch_youtube_oembed(video_id: str, timeout: float = OEMBED_TIMEOUT) -> Optional[ExtractedMetadata]:
    """
    Looks a video up through YouTube's public oEmbed endpoint.
    Returns None on any failure so the caller can fall back to scraping the page.
    """
    try:
        response = requests.get(
            OEMBED_ENDPOINT,
            params={"url": f"https://www.youtube.com/watch?v={video_id}", "format": "json"},
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.warning("YouTube oEmbed request failed for %s: %s", video_id, e)
        return None

    if not response.ok:
        logger.warning("YouTube oEmbed returned %s for %s", response.status_code, video_id)
        return None

    try:
        data = response.json()
    except ValueError:
        logger.warning("YouTube oEmbed returned malformed JSON for %s", video_id)
        return None
    if not isinstance(data, dict):
        logger.warning("YouTube oEmbed returned unexpected payload for %s", video_id)
        return None

    author = data.get("author_name")
    try:
        return ExtractedMetadata(
            title=data.get("title") or "YouTube Video",
            description=f"Video by {author}" if author else "",
            thumbnail_url=data.get("thumbnail_url") or "",
            source_domain="youtube.com",
            prep_time=None,
            cuisine_type=None,
        )
    except ValidationError:
        logger.warning("YouTube oEmbed payload for %s has unexpected field types", video_id)
        return None
