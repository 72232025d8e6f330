"""Tests for the YouTube oEmbed lookup and its fallback to page scraping."""

from unittest.mock import patch
from urllib.parse import urlparse

import pytest
import requests

from app.utils.scraping_utils import extract_metadata
from app.utils.youtube_utils import fetch_youtube_oembed, is_youtube_host, youtube_video_id

OEMBED_GET = "app.utils.youtube_utils.requests.get"

OEMBED_PAYLOAD = {
    "title": "Best Ever Lasagna",
    "author_name": "Chef Sam",
    "thumbnail_url": "https://i.ytimg.com/vi/abc123/hqdefault.jpg",
}


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.youtube.com/watch?v=abc123", "abc123"),
        ("https://m.youtube.com/watch?v=abc123&t=42", "abc123"),
        ("https://youtu.be/abc123", "abc123"),
        ("https://youtu.be/abc123?t=10", "abc123"),
        ("https://www.youtube.com/channel/xyz", None),
        ("https://youtu.be/", None),
    ],
)
def test_youtube_video_id(url, expected) -> None:
    assert youtube_video_id(urlparse(url)) == expected


def test_is_youtube_host() -> None:
    assert is_youtube_host("www.youtube.com")
    assert is_youtube_host("youtu.be")
    assert not is_youtube_host("notyoutube.com")
    assert not is_youtube_host("example.com")


@pytest.mark.parametrize("url", ["https://www.youtube.com/watch?v=abc123", "https://youtu.be/abc123"])
def test_oembed_success_short_circuits_page_fetch(url, make_response) -> None:
    with patch(OEMBED_GET, return_value=make_response(json_data=OEMBED_PAYLOAD)) as get:
        metadata = extract_metadata(url)

    assert get.call_count == 1
    _, kwargs = get.call_args
    assert kwargs["params"]["url"] == "https://www.youtube.com/watch?v=abc123"
    assert kwargs["timeout"] == 5
    assert metadata.title == "Best Ever Lasagna"
    assert metadata.description == "Video by Chef Sam"
    assert metadata.thumbnail_url == OEMBED_PAYLOAD["thumbnail_url"]
    assert metadata.source_domain == "youtube.com"
    assert metadata.prep_time is None
    assert metadata.cuisine_type is None


def test_oembed_defaults_for_sparse_payload(make_response) -> None:
    with patch(OEMBED_GET, return_value=make_response(json_data={})):
        metadata = fetch_youtube_oembed("abc123")
    assert metadata.title == "YouTube Video"
    assert metadata.description == ""
    assert metadata.thumbnail_url == ""


@pytest.mark.parametrize(
    "outcome",
    ["timeout", "status", "malformed", "not_object", "bad_types"],
)
def test_oembed_failures_are_absent(outcome, make_response) -> None:
    responses = {
        "status": make_response(status_code=404),
        "malformed": make_response(text="<html>"),
        "not_object": make_response(json_data=["a", "b"]),
        "bad_types": make_response(json_data={"title": {"nested": True}}),
    }
    if outcome == "timeout":
        patcher = patch(OEMBED_GET, side_effect=requests.Timeout("timed out"))
    else:
        patcher = patch(OEMBED_GET, return_value=responses[outcome])
    with patcher:
        assert fetch_youtube_oembed("abc123") is None


def test_oembed_failure_falls_through_to_page_scrape(make_response) -> None:
    html = (
        '<html><head><meta property="og:title" content="Lasagna (page)">'
        '<meta property="og:image" content="https://i.ytimg.com/page.jpg"></head></html>'
    )

    def fake_get(url, **kwargs):
        if "oembed" in url:
            raise requests.ConnectionError("offline")
        return make_response(text=html)

    with patch(OEMBED_GET, side_effect=fake_get) as get:
        metadata = extract_metadata("https://www.youtube.com/watch?v=abc123")

    assert get.call_count == 2
    assert metadata.title == "Lasagna (page)"
    assert metadata.thumbnail_url == "https://i.ytimg.com/page.jpg"
    assert metadata.source_domain == "youtube.com"


def test_youtube_url_without_id_skips_oembed(make_response) -> None:
    with patch(OEMBED_GET, return_value=make_response(text="<title>Channel</title>")) as get:
        metadata = extract_metadata("https://www.youtube.com/@somechef")

    assert get.call_count == 1
    assert get.call_args.args[0] == "https://www.youtube.com/@somechef"
    assert metadata.title == "Channel"
