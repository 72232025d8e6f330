import json
import logging
import os
from typing import Any, Callable, Iterator, List, Optional
from urllib.parse import ParseResult, urlparse

import requests
from bs4 import BeautifulSoup

from app.schemas.schemas import ExtractedMetadata
from app.utils.youtube_utils import fetch_youtube_oembed, is_youtube_host, youtube_video_id

logger = logging.getLogger(__name__)

SCRAPE_TIMEOUT = float(os.getenv("SCRAPE_TIMEOUT", "10"))
UNTITLED = "Untitled Recipe"
FORBIDDEN_HOST_CHARS = set(' \t\n\r<>^|\\"%')

# Sent with every page fetch; some recipe sites block obvious bots.
BROWSER_HEADERS = {
    "User-Agent": ("Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                   "AppleWebKit/537.36 (KHTML, like Gecko) "
                   "Chrome/120.0.0.0 Safari/537.36"),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


class ScrapeError(Exception):
    """Base class for errors reported back to the client of /scrape-recipe."""
    status_code = 500
    code = "internal_error"
    message = "Failed to scrape recipe metadata"

    def __init__(self, message: Optional[str] = None, *, url: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.url = url
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        if self.url is not None:
            body["url"] = self.url
        return body


class MissingURLError(ScrapeError):
    status_code = 400
    code = "missing_url"
    message = "URL is required"


class InvalidURLError(ScrapeError):
    status_code = 422
    code = "invalid_url"
    message = "Invalid URL"


class UpstreamFetchError(ScrapeError):
    status_code = 502
    code = "upstream_fetch_failed"

    def __init__(self, status: int, *, url: Optional[str] = None, details: Optional[str] = None):
        super().__init__(f"Failed to fetch URL: {status}", url=url, details=details)
        self.status = status

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["status"] = self.status
        return body


class UpstreamEmptyResponseError(ScrapeError):
    status_code = 502
    code = "upstream_empty_response"
    message = "Received empty response from URL"


class UnexpectedScrapeError(ScrapeError):
    pass


def parse_recipe_url(url: Optional[str]) -> ParseResult:
    """Validates that ``url`` is an absolute http(s) URL with a hostname."""
    if url is None or not url.strip():
        raise MissingURLError()
    try:
        parsed = urlparse(url.strip())
        parsed.port  # raises ValueError for a non-numeric or out-of-range port
    except ValueError:
        raise InvalidURLError()
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InvalidURLError()
    if any(char in FORBIDDEN_HOST_CHARS for char in parsed.hostname):
        raise InvalidURLError()
    try:
        requests.Request("GET", parsed.geturl()).prepare()
    except (requests.RequestException, ValueError):
        raise InvalidURLError()
    return parsed


def source_domain_for(hostname: str) -> str:
    if hostname.startswith("www."):
        return hostname[len("www."):]
    return hostname


def fetch_html(url: str, timeout: float = SCRAPE_TIMEOUT) -> str:
    response = requests.get(url, headers=BROWSER_HEADERS, timeout=timeout)
    if not response.ok:
        logger.error("Failed to fetch %s: %s %s", url, response.status_code, response.reason)
        raise UpstreamFetchError(
            response.status_code,
            url=url,
            details=f"{response.status_code} {response.reason or ''}".strip(),
        )
    html = response.text
    if not html:
        logger.error("Empty HTML response from %s", url)
        raise UpstreamEmptyResponseError(url=url, details="Response body was empty")
    return html


# Field sources. Each one returns a value or None; a field takes the first
# non-blank value from its ordered list of sources.

FieldSource = Callable[[BeautifulSoup], Optional[str]]


def meta_property(prop: str) -> FieldSource:
    def source(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one(f'meta[property="{prop}"]')
        return tag.get("content") if tag else None
    return source


def meta_name(name: str) -> FieldSource:
    def source(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one(f'meta[name="{name}"]')
        return tag.get("content") if tag else None
    return source


def title_tag(soup: BeautifulSoup) -> Optional[str]:
    tag = soup.select_one("title")
    return tag.get_text() if tag else None


TITLE_SOURCES: List[FieldSource] = [meta_property("og:title"), meta_name("twitter:title"), title_tag]
DESCRIPTION_SOURCES: List[FieldSource] = [
    meta_property("og:description"),
    meta_name("twitter:description"),
    meta_name("description"),
]
THUMBNAIL_SOURCES: List[FieldSource] = [meta_property("og:image"), meta_name("twitter:image")]


def first_value(soup: BeautifulSoup, sources: List[FieldSource]) -> Optional[str]:
    for source in sources:
        value = source(soup)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_json_ld_block(text: Optional[str]) -> Optional[Any]:
    """Parses one JSON-LD script body. Returns None when it is empty or not valid JSON."""
    if not text or not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def parse_json_ld_blocks(soup: BeautifulSoup) -> List[Any]:
    blocks = []
    for script in soup.select('script[type="application/ld+json"]'):
        data = parse_json_ld_block(script.string or script.get_text())
        if data is None:
            logger.debug("Skipping unparseable JSON-LD block")
            continue
        blocks.append(data)
    return blocks


def _walk_json_ld(data: Any) -> Iterator[dict]:
    # Objects in document order, descending into top-level arrays and @graph.
    if isinstance(data, list):
        for item in data:
            yield from _walk_json_ld(item)
    elif isinstance(data, dict):
        yield data
        if "@graph" in data:
            yield from _walk_json_ld(data["@graph"])


def is_recipe_schema(obj: dict) -> bool:
    schema_type = obj.get("@type")
    if isinstance(schema_type, str):
        return schema_type == "Recipe"
    if isinstance(schema_type, list):
        return "Recipe" in schema_type
    return False


def find_recipe_schema(blocks: List[Any]) -> Optional[dict]:
    for block in blocks:
        for obj in _walk_json_ld(block):
            if is_recipe_schema(obj):
                return obj
    return None


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, list):
        parts = [item.strip() for item in value if isinstance(item, str) and item.strip()]
        return ", ".join(parts) or None
    return None


def metadata_from_html(html: str, source_domain: str) -> ExtractedMetadata:
    soup = BeautifulSoup(html, "html.parser")

    prep_time = None
    cuisine_type = None
    recipe_schema = find_recipe_schema(parse_json_ld_blocks(soup))
    if recipe_schema:
        prep_time = _as_text(recipe_schema.get("prepTime")) or _as_text(recipe_schema.get("totalTime"))
        cuisine_type = _as_text(recipe_schema.get("recipeCuisine"))

    return ExtractedMetadata(
        title=first_value(soup, TITLE_SOURCES) or UNTITLED,
        description=first_value(soup, DESCRIPTION_SOURCES) or "",
        thumbnail_url=first_value(soup, THUMBNAIL_SOURCES) or "",
        source_domain=source_domain,
        prep_time=prep_time,
        cuisine_type=cuisine_type,
    )


def extract_metadata(url: Optional[str]) -> ExtractedMetadata:
    """
    Builds a best-effort summary of a recipe URL.

    YouTube links are looked up through oEmbed first; if that yields nothing
    the page itself is fetched and its Open Graph, Twitter Card, plain meta
    tags and JSON-LD Recipe data are read.
    Raises a ScrapeError subclass for invalid input and upstream failures.
    """
    parsed = parse_recipe_url(url)
    hostname = parsed.hostname

    if is_youtube_host(hostname):
        video_id = youtube_video_id(parsed)
        if video_id:
            metadata = fetch_youtube_oembed(video_id)
            if metadata is not None:
                logger.info("YouTube oEmbed metadata for %s: %s", url, metadata.model_dump())
                return metadata
        logger.info("Falling back to page scraping for %s", url)

    html = fetch_html(parsed.geturl())
    metadata = metadata_from_html(html, source_domain_for(hostname))
    logger.info("Scraped metadata for %s: %s", url, metadata.model_dump())
    return metadata


def fallback_metadata(parsed: ParseResult) -> ExtractedMetadata:
    return ExtractedMetadata(title=UNTITLED, source_domain=source_domain_for(parsed.hostname or ""))


def extract_metadata_or_fallback(url: str) -> ExtractedMetadata:
    """Like extract_metadata, but returns a minimal record instead of raising once the URL parses."""
    parsed = parse_recipe_url(url)
    try:
        return extract_metadata(url)
    except Exception as e:
        logger.warning("Metadata extraction failed for %s, using fallback: %s", url, e)
        return fallback_metadata(parsed)
