import unittest

from newsroll.utils.urls import (
    is_http_url,
    normalize_source_link_for_dedupe,
    resolve_url,
    strip_query_params,
)


class TestDedupeNormalization(unittest.TestCase):
    def test_tracking_params_and_trailing_slash_are_equivalent(self):
        a = normalize_source_link_for_dedupe("https://x.com/a?utm_source=y&b=2")
        b = normalize_source_link_for_dedupe("https://x.com/a/?b=2")
        self.assertEqual(a, "https://x.com/a?b=2")
        self.assertEqual(a, b)

    def test_query_sorted_and_fragment_dropped(self):
        self.assertEqual(
            normalize_source_link_for_dedupe("https://x.com/p?z=1&a=2#frag"),
            "https://x.com/p?a=2&z=1",
        )

    def test_root_path_kept(self):
        self.assertEqual(normalize_source_link_for_dedupe("https://x.com"), "https://x.com/")
        self.assertEqual(normalize_source_link_for_dedupe("https://x.com/"), "https://x.com/")

    def test_non_http_links(self):
        self.assertIsNone(normalize_source_link_for_dedupe(None))
        self.assertIsNone(normalize_source_link_for_dedupe("#"))
        self.assertIsNone(normalize_source_link_for_dedupe("ftp://x.com/file"))


class TestResolveUrl(unittest.TestCase):
    def test_protocol_relative(self):
        self.assertEqual(resolve_url("//cdn.x.com/i.png"), "https://cdn.x.com/i.png")

    def test_root_relative_uses_origin(self):
        self.assertEqual(resolve_url("/img.png", "https://src.com/a/b"), "https://src.com/img.png")

    def test_path_relative_uses_full_url(self):
        self.assertEqual(resolve_url("img.png", "https://src.com/a/b"), "https://src.com/a/img.png")

    def test_unresolvable(self):
        self.assertIsNone(resolve_url("img.png"))
        self.assertIsNone(resolve_url(""))
        self.assertIsNone(resolve_url("data:image/png;base64,AAAA", "https://src.com/"))


class TestUrlHelpers(unittest.TestCase):
    def test_is_http_url(self):
        self.assertTrue(is_http_url("https://example.com/x"))
        self.assertTrue(is_http_url("HTTP://example.com"))
        self.assertFalse(is_http_url("/relative"))
        self.assertFalse(is_http_url("mailto:someone@example.com"))
        self.assertFalse(is_http_url(None))

    def test_strip_query_params(self):
        self.assertEqual(
            strip_query_params("https://x.com/a?utm_source=t&id=3", ["utm_source"]),
            "https://x.com/a?id=3",
        )


if __name__ == "__main__":
    unittest.main()
