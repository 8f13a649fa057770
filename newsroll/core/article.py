"""
Article data model for Newsroll.
"""
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class NewsSource:
    """
    A configured feed to pull articles from.
    """
    name: str
    feed_url: str
    default_category: Optional[str] = None
    enable_image_fallback: bool = False


@dataclass
class ArticleCandidate:
    """
    A normalized article produced by the pipeline before persistence.
    """
    id: str
    title: str
    summary: str
    date: str
    source: str
    category: str
    image_url: Optional[str]
    link: str
    source_link: str
    fetched_at: str
    content: Optional[str] = None


@dataclass
class PersistedArticle(ArticleCandidate):
    """
    An article as stored, with its storage key and first-insert timestamp.
    """
    created_at: Optional[str] = None
    pk: Optional[int] = None


@dataclass
class ArticleUpdateStats:
    newly_added_count: int = 0
    processed_in_batch: int = 0
    skipped_by_source_link: int = 0
    skipped_by_title: int = 0

    def describe(self) -> str:
        return (
            f"Processed: {self.processed_in_batch}, "
            f"Skipped (Link): {self.skipped_by_source_link}, "
            f"Skipped (Title): {self.skipped_by_title}"
        )


@dataclass
class WriteError:
    index: int
    article_id: Optional[str]
    message: str


@dataclass
class BulkWriteResult:
    inserted_count: int = 0
    upserted_count: int = 0
    matched_count: int = 0
    write_errors: List[WriteError] = field(default_factory=list)


@dataclass
class FetchArticlesResult:
    articles: List[ArticleCandidate] = field(default_factory=list)
    stats: Optional[ArticleUpdateStats] = None
    categories: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict:
        return asdict(self)
