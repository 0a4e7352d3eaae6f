"""Tests for image extraction and the trusted-domain filter."""

from __future__ import annotations

from urllib.parse import urlparse

from harare_metro.core.types import ImageCandidate, RawItem
from harare_metro.fetch.images import extract_image, is_image_url, is_trusted_host

TRUSTED = ["herald.co.zw", "wp.com"]
LINK = "https://www.herald.co.zw/news/story"


def test_media_candidate_wins_over_inline_images():
    item = RawItem(
        title="Story with several images",
        description_html='<img src="https://www.herald.co.zw/inline.jpg">',
        media=[ImageCandidate(url="https://www.herald.co.zw/media.jpg", kind="media", typed=True)],
    )
    assert extract_image(item, LINK, TRUSTED) == "https://www.herald.co.zw/media.jpg"


def test_untrusted_candidate_is_skipped_for_trusted_fallback():
    item = RawItem(
        title="Story with an untrusted lead image",
        description_html='<p><img src="https://i0.wp.com/www.herald.co.zw/ok.jpg"></p>',
        media=[ImageCandidate(url="https://tracker.example.com/pixel.jpg", kind="media", typed=True)],
    )
    assert extract_image(item, LINK, TRUSTED) == "https://i0.wp.com/www.herald.co.zw/ok.jpg"


def test_protocol_relative_and_relative_urls_are_resolved():
    protocol_relative = RawItem(title="Protocol relative image", content_html='<img src="//i1.wp.com/a.png">')
    assert extract_image(protocol_relative, LINK, TRUSTED) == "https://i1.wp.com/a.png"

    relative = RawItem(title="Root relative image here", content_html='<img src="/wp-content/b.png">')
    assert extract_image(relative, LINK, TRUSTED) == "https://www.herald.co.zw/wp-content/b.png"


def test_og_image_and_bare_urls():
    og = RawItem(
        title="Open graph image story",
        content_html='<meta property="og:image" content="https://www.herald.co.zw/og.jpg">',
    )
    assert extract_image(og, LINK, TRUSTED) == "https://www.herald.co.zw/og.jpg"

    bare = RawItem(title="Bare image url in text", description_html="See https://www.herald.co.zw/pic.webp for more")
    assert extract_image(bare, LINK, TRUSTED) == "https://www.herald.co.zw/pic.webp"


def test_untyped_candidate_needs_image_extension():
    item = RawItem(
        title="Untyped image field value",
        media=[ImageCandidate(url="https://www.herald.co.zw/page.html", kind="image")],
    )
    assert extract_image(item, LINK, TRUSTED) is None


def test_lookalike_hosts_are_not_trusted():
    assert is_trusted_host("www.herald.co.zw", TRUSTED)
    assert is_trusted_host("herald.co.zw", TRUSTED)
    assert not is_trusted_host("herald.co.zw.evil.com", TRUSTED)
    assert not is_trusted_host("evilherald.co.zw", TRUSTED)
    assert not is_trusted_host("", TRUSTED)


def test_returned_images_are_always_trusted():
    candidates = [
        "https://evil.example.com/a.jpg",
        "https://herald.co.zw.evil.com/b.jpg",
        "http://www.herald.co.zw/c.jpg",
        "//cdn.attacker.net/d.png",
        "javascript:alert(1)",
        "/relative/e.gif",
    ]
    for url in candidates:
        item = RawItem(title="Soundness check item", description_html=f'<img src="{url}">')
        result = extract_image(item, LINK, TRUSTED)
        if result is not None:
            assert is_trusted_host(urlparse(result).hostname or "", TRUSTED)


def test_no_candidates_returns_none():
    assert extract_image(RawItem(title="Nothing to see here"), LINK, TRUSTED) is None


def test_is_image_url():
    assert is_image_url("https://x.co.zw/a.JPG")
    assert is_image_url("https://x.co.zw/a.png?w=300")
    assert is_image_url("https://x.co.zw/render?format=webp")
    assert not is_image_url("https://x.co.zw/article")
    assert not is_image_url(None)
