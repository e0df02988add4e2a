from __future__ import annotations

import httpx
import pytest

from hookurl import resource_identifier


@pytest.mark.parametrize(
    ("left", "right"),
    [
        ("https://example.org/a?x=1", "https://example.org/a?x=2"),
        ("https://example.org/a#top", "https://example.org/a"),
        ("HTTPS://Example.ORG/a", "https://example.org/a"),
        ("https://example.org:443/a", "https://example.org/a"),
        ("https://user:pw@example.org/a", "https://example.org/a"),
        ("https://example.org", "https://example.org/"),
    ],
)
def test_equivalent_targets_share_identity(left, right):
    assert resource_identifier(left) == resource_identifier(right)


@pytest.mark.parametrize(
    ("left", "right"),
    [
        ("https://example.org/a", "http://example.org/a"),
        ("https://example.org/a", "https://example.org/b"),
        ("https://example.org/a", "https://example.org:8443/a"),
        ("https://example.org/a", "https://api.example.org/a"),
    ],
)
def test_distinct_targets_have_distinct_identity(left, right):
    assert resource_identifier(left) != resource_identifier(right)


def test_identity_ignores_method_and_accepts_requests():
    get = httpx.Request("GET", "https://example.org/items")
    post = httpx.Request("POST", "https://example.org/items", content=b"{}")

    assert resource_identifier(get) == resource_identifier(post) == "https://example.org/items"
    assert resource_identifier(httpx.URL("https://example.org:8443/x")) == "https://example.org:8443/x"


def test_file_urls_keep_their_path():
    assert resource_identifier("file:///tmp/report.csv") == "file:///tmp/report.csv"
