import unittest

import aiohttp

from newsroll.core.images import extract_og_image, fetch_og_image, remove_duplicate_image, resolve_image


class PageClient:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    async def fetch_bytes(self, url, *, headers=None, timeout=None, max_tries=None):
        self.calls.append((url, timeout, max_tries))
        page = self.pages.get(url)
        if page is None:
            raise aiohttp.ClientError(f"unreachable: {url}")
        return page


class TestResolveImage(unittest.TestCase):
    def test_media_content_image(self):
        item = {"media:content": {"url": "https://cdn.x.com/a.jpg", "medium": "image"}}
        self.assertEqual(resolve_image(item), "https://cdn.x.com/a.jpg")

    def test_non_image_media_skipped_for_enclosure(self):
        item = {
            "media:content": {"url": "https://cdn.x.com/v.mp4", "type": "video/mp4"},
            "enclosure": {"url": "https://cdn.x.com/e.jpg", "type": "image/jpeg"},
        }
        self.assertEqual(resolve_image(item), "https://cdn.x.com/e.jpg")

    def test_media_group(self):
        item = {"media:group": {"media:content": [
            {"url": "https://cdn.x.com/g1.jpg", "medium": "image"},
            {"url": "https://cdn.x.com/g2.jpg", "medium": "image"},
        ]}}
        self.assertEqual(resolve_image(item), "https://cdn.x.com/g1.jpg")

    def test_thumbnail_before_embedded_html(self):
        item = {
            "media:thumbnail": {"url": "https://cdn.x.com/t.jpg"},
            "description": '<img src="https://cdn.x.com/d.jpg">',
        }
        self.assertEqual(resolve_image(item), "https://cdn.x.com/t.jpg")

    def test_lazy_embedded_image_resolved_against_link(self):
        item = {"content:encoded": '<p><img data-src="/lazy.jpg"></p>'}
        self.assertEqual(resolve_image(item, "https://src.com/post/1"), "https://src.com/lazy.jpg")

    def test_first_resolvable_candidate_wins(self):
        item = {"media:thumbnail": {"url": "not a url"}, "image": "https://cdn.x.com/i.jpg"}
        self.assertEqual(resolve_image(item), "https://cdn.x.com/i.jpg")

    def test_no_candidates(self):
        self.assertIsNone(resolve_image({"title": "Nothing here", "description": "Plain text only"}))


class TestOgImage(unittest.IsolatedAsyncioTestCase):
    def test_extract_relative_og_image(self):
        page = '<html><head><meta property="og:image" content="/img.png"></head></html>'
        self.assertEqual(extract_og_image(page, "https://src.com/article"), "https://src.com/img.png")

    def test_twitter_card_fallback(self):
        page = '<html><head><meta name="twitter:image" content="https://cdn.src.com/t.png"></head></html>'
        self.assertEqual(extract_og_image(page, "https://src.com/article"), "https://cdn.src.com/t.png")

    async def test_fetch_og_image(self):
        client = PageClient({
            "https://src.com/article": b'<html><head><meta property="og:image" content="/img.png"></head></html>',
        })
        image = await fetch_og_image(client, "https://src.com/article", timeout=8, max_tries=2)
        self.assertEqual(image, "https://src.com/img.png")
        self.assertEqual(client.calls, [("https://src.com/article", 8, 2)])

    async def test_fetch_failure_yields_none(self):
        client = PageClient({})
        with self.assertLogs("newsroll.core.images", level="WARNING"):
            self.assertIsNone(await fetch_og_image(client, "https://src.com/missing"))

    async def test_non_http_page_not_fetched(self):
        client = PageClient({})
        self.assertIsNone(await fetch_og_image(client, "#"))
        self.assertEqual(client.calls, [])


class TestRemoveDuplicateImage(unittest.TestCase):
    def test_removes_wrapper_holding_only_the_image(self):
        content = '<figure><img src="https://cdn.x.com/a.jpg"/></figure><p>Body text</p>'
        self.assertEqual(remove_duplicate_image(content, "https://cdn.x.com/a.jpg"), "<p>Body text</p>")

    def test_keeps_wrapper_with_caption(self):
        content = ('<figure><img src="https://cdn.x.com/a.jpg"/><figcaption>Cap</figcaption></figure>'
                   '<p>Body</p>')
        self.assertEqual(
            remove_duplicate_image(content, "https://cdn.x.com/a.jpg"),
            "<figure><figcaption>Cap</figcaption></figure><p>Body</p>",
        )

    def test_relative_source_compared_after_resolution(self):
        content = '<a href="/full"><img src="/a.jpg"/></a><p>Body</p>'
        self.assertEqual(
            remove_duplicate_image(content, "https://src.com/a.jpg", "https://src.com/post"),
            "<p>Body</p>",
        )

    def test_different_image_kept(self):
        content = '<img src="https://cdn.x.com/other.jpg"/><p>Body</p>'
        self.assertEqual(remove_duplicate_image(content, "https://cdn.x.com/a.jpg"), content)

    def test_image_beyond_leading_window_kept(self):
        content = "<p>" + "x" * 400 + '</p><img src="https://cdn.x.com/a.jpg"/>'
        self.assertEqual(remove_duplicate_image(content, "https://cdn.x.com/a.jpg"), content)


if __name__ == "__main__":
    unittest.main()
