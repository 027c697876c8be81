"""Tests for request classification."""

from __future__ import annotations

import pytest

from cacheworker.classifier import (
    classify,
    is_document_request,
    is_image_url,
    is_streaming_url,
)
from cacheworker.models import (
    DEFAULT_RADIO_IMAGES,
    DEFAULT_STREAMING_DOMAINS,
    RequestClass,
    RoutesConfig,
)


@pytest.fixture
def routes() -> RoutesConfig:
    return RoutesConfig()


# ------------------------------------------------------------------ #
# Streaming
# ------------------------------------------------------------------ #


class TestStreaming:
    @pytest.mark.parametrize("domain", DEFAULT_STREAMING_DOMAINS)
    def test_every_streaming_domain(self, routes: RoutesConfig, domain: str) -> None:
        assert classify(f"https://{domain}/live", "GET", routes) is RequestClass.STREAMING

    @pytest.mark.parametrize("suffix", ["logo.png", "index.html", "now.json", "cover.JPG"])
    def test_streaming_wins_over_extension(self, routes: RoutesConfig, suffix: str) -> None:
        url = f"https://playerservices.streamtheworld.com/{suffix}"
        assert classify(url, "GET", routes) is RequestClass.STREAMING

    def test_substring_match_in_path(self, routes: RoutesConfig) -> None:
        """Domains match anywhere in the URL, as the reference list is substring-based."""
        url = "https://proxy.example/?u=streaming.lamega.com.co/stream"
        assert is_streaming_url(url, routes)

    def test_custom_domains(self) -> None:
        routes = RoutesConfig(streaming_domains=["live.example.com"])
        assert classify("https://live.example.com/a.mp3", "GET", routes) is RequestClass.STREAMING
        assert classify("https://streaming.rcnradio.com/a", "GET", routes) is RequestClass.OTHER


# ------------------------------------------------------------------ #
# Images
# ------------------------------------------------------------------ #


class TestImage:
    @pytest.mark.parametrize("ext", ["png", "jpg", "jpeg", "svg", "gif", "webp"])
    def test_known_extensions(self, routes: RoutesConfig, ext: str) -> None:
        assert classify(f"https://cdn.example/a.{ext}", "GET", routes) is RequestClass.IMAGE

    @pytest.mark.parametrize("url", ["https://cdn.example/A.PNG", "https://cdn.example/b.WebP"])
    def test_extension_case_insensitive(self, routes: RoutesConfig, url: str) -> None:
        assert classify(url, "GET", routes) is RequestClass.IMAGE

    @pytest.mark.parametrize("url", DEFAULT_RADIO_IMAGES)
    def test_radio_images(self, routes: RoutesConfig, url: str) -> None:
        assert classify(url, "GET", routes) is RequestClass.IMAGE

    def test_radio_image_with_query_string(self, routes: RoutesConfig) -> None:
        url = DEFAULT_RADIO_IMAGES[0] + "?width=200"
        assert is_image_url(url, routes)

    def test_extension_must_be_at_end(self, routes: RoutesConfig) -> None:
        assert not is_image_url("https://cdn.example/a.png.txt", routes)

    def test_image_regardless_of_method(self, routes: RoutesConfig) -> None:
        assert classify("https://cdn.example/a.gif", "POST", routes) is RequestClass.IMAGE


# ------------------------------------------------------------------ #
# Documents
# ------------------------------------------------------------------ #


class TestDocument:
    @pytest.mark.parametrize(
        "url",
        [
            "https://radio.example/",
            "https://radio.example/index.html",
            "https://radio.example/data/stations.json",
            "https://radio.example/manifest.json?v=3",
        ],
    )
    def test_get_documents(self, routes: RoutesConfig, url: str) -> None:
        assert classify(url, "GET", routes) is RequestClass.DOCUMENT

    def test_lowercase_method(self, routes: RoutesConfig) -> None:
        assert classify("https://radio.example/index.html", "get", routes) is RequestClass.DOCUMENT

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "HEAD"])
    def test_non_get_is_other(self, routes: RoutesConfig, method: str) -> None:
        assert classify("https://radio.example/index.html", method, routes) is RequestClass.OTHER

    def test_unparsable_url_is_not_document(self) -> None:
        assert is_document_request("http://radio.example:abc/index.html", "GET") is False


# ------------------------------------------------------------------ #
# Other
# ------------------------------------------------------------------ #


class TestOther:
    @pytest.mark.parametrize(
        "url",
        [
            "https://radio.example/app.js",
            "https://radio.example/styles.css",
            "https://radio.example/api/stations",
            "https://radio.example/about",
        ],
    )
    def test_falls_through(self, routes: RoutesConfig, url: str) -> None:
        assert classify(url, "GET", routes) is RequestClass.OTHER

    def test_total_over_garbage(self, routes: RoutesConfig) -> None:
        assert classify("not a url at all", "BREW", routes) is RequestClass.OTHER
