import unittest

from newsroll.core.images import resolve_image
from newsroll.fetchers.xml import (
    FeedParseError,
    declare_missing_prefixes,
    find_items,
    parse_feed_document,
    replace_html_entities,
)

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Example</title>
    <item>
      <title>First</title>
      <guid isPermaLink="false">abc-1</guid>
      <description><![CDATA[<p>Hello <b>world</b></p>]]></description>
      <media:content url="https://cdn.example.com/1.jpg" medium="image"/>
    </item>
    <item>
      <title>Second</title>
      <category>One</category>
      <category>Two</category>
    </item>
  </channel>
</rss>"""

ATOM = """<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom</title>
  <entry>
    <title type="html">Entry &amp;amp; more</title>
    <link rel="alternate" type="text/html" href="https://a.com/x"/>
    <content type="xhtml"><div xmlns="http://www.w3.org/1999/xhtml"><p>Hi</p></div></content>
  </entry>
</feed>"""

UNDECLARED_PREFIXES = """<rss version="2.0">
  <channel>
    <item>
      <title>Sloppy feed story</title>
      <link>https://a.com/1</link>
      <content:encoded><![CDATA[<p>Body text</p>]]></content:encoded>
      <media:content url="https://c.com/x.jpg" medium="image"/>
      <dc:creator>Reporter</dc:creator>
    </item>
  </channel>
</rss>"""

RDF = """<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#" xmlns="http://purl.org/rss/1.0/">
  <channel rdf:about="https://a.com/"><title>RDF</title></channel>
  <item rdf:about="https://a.com/1">
    <title>R1</title>
    <link>https://a.com/1</link>
  </item>
</rdf:RDF>"""


class TestParseFeedDocument(unittest.TestCase):
    def test_rss_items(self):
        items = find_items(parse_feed_document(RSS))
        self.assertEqual([item["title"] for item in items], ["First", "Second"])

    def test_attributes_and_text_share_a_node(self):
        first = find_items(parse_feed_document(RSS))[0]
        self.assertEqual(first["guid"], {"isPermaLink": "false", "#text": "abc-1"})

    def test_cdata_kept_as_markup(self):
        first = find_items(parse_feed_document(RSS))[0]
        self.assertEqual(first["description"], "<p>Hello <b>world</b></p>")

    def test_prefixed_keys(self):
        first = find_items(parse_feed_document(RSS))[0]
        self.assertEqual(first["media:content"]["url"], "https://cdn.example.com/1.jpg")
        self.assertEqual(first["media:content"]["medium"], "image")

    def test_repeated_children_become_list(self):
        second = find_items(parse_feed_document(RSS))[1]
        self.assertEqual(second["category"], ["One", "Two"])

    def test_atom_entry(self):
        entries = find_items(parse_feed_document(ATOM))
        self.assertEqual(len(entries), 1)
        entry = entries[0]
        self.assertEqual(entry["link"]["href"], "https://a.com/x")
        self.assertEqual(entry["title"]["type"], "html")
        self.assertIn("<p>Hi</p>", entry["content"]["#text"])

    def test_rdf_single_item_wrapped_in_list(self):
        document = parse_feed_document(RDF)
        self.assertIn("rdf:RDF", document)
        items = find_items(document)
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["link"], "https://a.com/1")

    def test_undeclared_prefixes_keep_prefixed_keys(self):
        item = find_items(parse_feed_document(UNDECLARED_PREFIXES))[0]
        self.assertEqual(item["media:content"], {"url": "https://c.com/x.jpg", "medium": "image"})
        self.assertEqual(item["content:encoded"], "<p>Body text</p>")
        self.assertEqual(item["dc:creator"], "Reporter")
        self.assertNotIn("content", item)
        self.assertNotIn("creator", item)

    def test_undeclared_media_content_resolves_image(self):
        item = find_items(parse_feed_document(UNDECLARED_PREFIXES))[0]
        self.assertEqual(resolve_image(item, item["link"]), "https://c.com/x.jpg")

    def test_declared_prefixes_left_alone(self):
        self.assertEqual(declare_missing_prefixes(RSS), RSS)

    def test_html_entities_survive_parsing(self):
        document = parse_feed_document(
            "<rss><channel><item><title>Hello&nbsp;world&mdash;again</title>"
            "<description>Fish &amp; chips</description></item></channel></rss>"
        )
        item = find_items(document)[0]
        self.assertEqual(item["title"], "Hello\u00a0world\u2014again")
        self.assertEqual(item["description"], "Fish & chips")

    def test_replace_html_entities(self):
        self.assertEqual(replace_html_entities("a&nbsp;b &amp; &lt;c&gt; &bogus;"), "a&#160;b &amp; &lt;c&gt; &bogus;")

    def test_no_items(self):
        self.assertEqual(find_items(parse_feed_document("<rss><channel></channel></rss>")), [])

    def test_empty_document(self):
        with self.assertRaises(FeedParseError):
            parse_feed_document("")


if __name__ == "__main__":
    unittest.main()
