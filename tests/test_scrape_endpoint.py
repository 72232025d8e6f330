"""Tests for POST /scrape-recipe and its error responses."""

from unittest.mock import patch

import pytest
import requests

PAGE_GET = "app.utils.scraping_utils.requests.get"

RECIPE_PAGE = """
<html>
<head>
  <title>Weeknight Pad Thai | Example Kitchen</title>
  <meta property="og:title" content="Weeknight Pad Thai">
  <meta property="og:description" content="Ready in half an hour.">
  <meta property="og:image" content="https://www.example.com/padthai.jpg">
  <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "Recipe", "name": "Pad Thai",
     "prepTime": "PT20M", "totalTime": "PT30M", "recipeCuisine": "Thai"}
  </script>
</head>
<body></body>
</html>
"""


def test_scrape_recipe_success(client, make_response) -> None:
    with patch(PAGE_GET, return_value=make_response(text=RECIPE_PAGE)):
        response = client.post("/scrape-recipe", json={"url": "https://www.example.com/pad-thai"})

    assert response.status_code == 200
    assert response.json() == {
        "title": "Weeknight Pad Thai",
        "description": "Ready in half an hour.",
        "thumbnail_url": "https://www.example.com/padthai.jpg",
        "source_domain": "example.com",
        "prep_time": "PT20M",
        "cuisine_type": "Thai",
    }


def test_missing_url(client) -> None:
    with patch(PAGE_GET) as get:
        response = client.post("/scrape-recipe", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "URL is required", "code": "missing_url"}
    get.assert_not_called()


def test_invalid_url(client) -> None:
    with patch(PAGE_GET) as get:
        response = client.post("/scrape-recipe", json={"url": "definitely not a url"})
    assert response.status_code == 422
    assert response.json() == {"error": "Invalid URL", "code": "invalid_url"}
    get.assert_not_called()


def test_upstream_fetch_failure(client, make_response) -> None:
    with patch(PAGE_GET, return_value=make_response(status_code=404)):
        response = client.post("/scrape-recipe", json={"url": "https://example.com/gone"})
    body = response.json()
    assert response.status_code == 502
    assert body["code"] == "upstream_fetch_failed"
    assert body["error"] == "Failed to fetch URL: 404"
    assert body["status"] == 404
    assert body["url"] == "https://example.com/gone"


def test_upstream_empty_response(client, make_response) -> None:
    with patch(PAGE_GET, return_value=make_response(status_code=200, text="")):
        response = client.post("/scrape-recipe", json={"url": "https://example.com/empty"})
    body = response.json()
    assert response.status_code == 502
    assert body["code"] == "upstream_empty_response"
    assert body["error"] == "Received empty response from URL"


def test_unexpected_failure_is_reported_with_details(client) -> None:
    with patch(PAGE_GET, side_effect=requests.Timeout("read timed out")):
        response = client.post("/scrape-recipe", json={"url": "https://slow.example.com/recipe"})
    body = response.json()
    assert response.status_code == 500
    assert body["code"] == "internal_error"
    assert body["error"] == "Failed to scrape recipe metadata"
    assert body["details"] == "read timed out"
    assert body["url"] == "https://slow.example.com/recipe"


@pytest.mark.parametrize(
    "url",
    ["http://exa mple.com/recipe", "http://example.com:abc/recipe", "http://example.com:99999/r"],
)
def test_malformed_host_or_port_is_invalid_url(client, url) -> None:
    with patch(PAGE_GET) as get:
        response = client.post("/scrape-recipe", json={"url": url})
    assert response.status_code == 422
    assert response.json()["code"] == "invalid_url"
    get.assert_not_called()
