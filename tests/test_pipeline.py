import tempfile
import unittest
from pathlib import Path

from newsroll.config import PipelineSettings
from newsroll.core.article import ArticleCandidate, NewsSource
from newsroll.core.dedup import Deduplicator
from newsroll.core.pipeline import Pipeline
from newsroll.core.store import ArticleStore


def make_candidate(article_id, date, category="Technology", source="Src"):
    return ArticleCandidate(
        id=article_id,
        title=f"Headline {article_id} {date}",
        summary="A summary that is long enough",
        date=date,
        source=source,
        category=category,
        image_url=None,
        link=f"/technology/{article_id}",
        source_link=f"https://{source.lower()}.example.com/{article_id}/{date}",
        fetched_at=date,
    )


class StubFetcher:
    def __init__(self, results):
        self.results = results
        self.calls = []

    async def fetch_source(self, source, *, categories_only=False, fetch_images=True):
        self.calls.append((source.name, categories_only, fetch_images))
        result = self.results[source.name]
        if isinstance(result, BaseException):
            raise result
        return list(result)


SOURCES = [
    NewsSource(name="alpha", feed_url="https://alpha.example.com/rss"),
    NewsSource(name="beta", feed_url="https://beta.example.com/rss"),
    NewsSource(name="gamma", feed_url="https://gamma.example.com/rss"),
]


class TestPipeline(unittest.IsolatedAsyncioTestCase):
    def results(self):
        return {
            "alpha": [
                make_candidate("a1", "2024-06-01T10:00:00.000Z", source="alpha"),
                make_candidate("a2", "2024-06-03T10:00:00.000Z", source="alpha"),
            ],
            "beta": RuntimeError("source exploded"),
            "gamma": [make_candidate("g1", "2024-06-02T10:00:00.000Z", category="Science", source="gamma")],
        }

    async def test_failed_source_does_not_cancel_others(self):
        pipeline = Pipeline(StubFetcher(self.results()))
        with self.assertLogs("newsroll.core.pipeline", level="ERROR"):
            result = await pipeline.run(SOURCES)
        self.assertEqual(len(result.articles), 3)
        self.assertIsNone(result.stats)

    async def test_sorted_newest_first(self):
        result = await Pipeline(StubFetcher(self.results())).run(SOURCES)
        self.assertEqual([a.id for a in result.articles], ["a2", "g1", "a1"])

    async def test_limit(self):
        result = await Pipeline(StubFetcher(self.results())).run(SOURCES, limit=2)
        self.assertEqual([a.id for a in result.articles], ["a2", "g1"])

    async def test_default_cap(self):
        pipeline = Pipeline(StubFetcher(self.results()), settings=PipelineSettings(default_processing_cap=1))
        result = await pipeline.run(SOURCES)
        self.assertEqual([a.id for a in result.articles], ["a2"])

    async def test_colliding_ids_get_dupfix(self):
        fetcher = StubFetcher({
            "alpha": [make_candidate("x-src", "2024-06-01T10:00:00.000Z", source="alpha")],
            "beta": [make_candidate("x-src", "2024-06-01T10:00:00.000Z", source="beta")],
            "gamma": [],
        })
        result = await Pipeline(fetcher).run(SOURCES)
        self.assertEqual(sorted(a.id for a in result.articles), ["x-src", "x-src-dupfix1"])

    async def test_options_passed_to_fetcher(self):
        fetcher = StubFetcher({"alpha": [], "beta": [], "gamma": []})
        await Pipeline(fetcher).run(SOURCES, fetch_images=False)
        self.assertEqual(sorted(fetcher.calls), [("alpha", False, False), ("beta", False, False), ("gamma", False, False)])

    async def test_categories_only(self):
        fetcher = StubFetcher({
            "alpha": [
                make_candidate("a1", "2024-06-01T10:00:00.000Z", category="Sports"),
                make_candidate("a2", "2024-06-02T10:00:00.000Z", category="Sports"),
            ],
            "beta": [make_candidate("b1", "2024-06-01T10:00:00.000Z", category="Science")],
            "gamma": [],
        })
        result = await Pipeline(fetcher).run(SOURCES, categories_only=True)
        self.assertEqual(result.categories, ["Sports", "Science"])
        self.assertEqual(result.articles, [])

    async def test_persist_requires_deduplicator(self):
        with self.assertRaises(ValueError):
            await Pipeline(StubFetcher(self.results())).run(SOURCES, persist=True)

    async def test_persist(self):
        with tempfile.TemporaryDirectory() as tmp:
            store = ArticleStore(Path(tmp) / "articles.db")
            pipeline = Pipeline(StubFetcher(self.results()), Deduplicator(store))
            with self.assertLogs("newsroll.core.pipeline", level="ERROR"):
                first = await pipeline.run(SOURCES, persist=True)
                second = await pipeline.run(SOURCES, persist=True)

            self.assertEqual(first.stats.newly_added_count, 3)
            self.assertEqual(second.stats.newly_added_count, 0)
            self.assertEqual(second.stats.skipped_by_source_link, 3)
            self.assertEqual(store.count(), 3)

    async def test_persist_empty_run(self):
        with tempfile.TemporaryDirectory() as tmp:
            pipeline = Pipeline(
                StubFetcher({"alpha": [], "beta": [], "gamma": []}),
                Deduplicator(ArticleStore(Path(tmp) / "articles.db")),
            )
            result = await pipeline.run(SOURCES, persist=True)
        self.assertEqual(result.stats.newly_added_count, 0)
        self.assertEqual(result.articles, [])


if __name__ == "__main__":
    unittest.main()
