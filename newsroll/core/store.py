"""
SQLite article storage for Newsroll.
"""
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Union

from newsroll.config import get_config
from newsroll.core.article import ArticleCandidate, BulkWriteResult, PersistedArticle, WriteError
from newsroll.core.extract import to_iso

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY = timedelta(days=2)

ARTICLE_COLUMNS = (
    'id', 'title', 'summary', 'content', 'date', 'source', 'category',
    'image_url', 'link', 'source_link', 'fetched_at',
)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS articles (
        pk INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        title TEXT NOT NULL,
        summary TEXT,
        content TEXT,
        date TEXT NOT NULL,
        source TEXT,
        category TEXT,
        image_url TEXT,
        link TEXT,
        source_link TEXT,
        fetched_at TEXT,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS article_created_at_idx ON articles (created_at)",
    "CREATE INDEX IF NOT EXISTS article_date_idx ON articles (date DESC)",
    "CREATE INDEX IF NOT EXISTS article_category_idx ON articles (category)",
    "CREATE INDEX IF NOT EXISTS article_category_date_idx ON articles (category, date DESC)",
]

UPSERT_SQL = f"""
    INSERT INTO articles ({', '.join(ARTICLE_COLUMNS)}, created_at)
    VALUES ({', '.join('?' for _ in ARTICLE_COLUMNS)}, ?)
    ON CONFLICT(id) DO UPDATE SET
        {', '.join(f'{col} = excluded.{col}' for col in ARTICLE_COLUMNS if col != 'id')}
"""


def _now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


class ArticleStore:
    """
    Persists articles keyed by their pipeline-assigned ID.

    The schema is created on first use; call ensure_schema() at startup to
    surface database problems early. Without a path, storage.database from
    the global configuration is used.
    """
    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path or get_config('storage.database', 'data/articles.db'))
        self._schema_ready = False

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        self.ensure_schema()
        with self._connect() as conn:
            yield conn

    def ensure_schema(self) -> None:
        """Create the articles table and its indexes if they do not exist."""
        if self._schema_ready:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
        self._schema_ready = True
        logger.debug(f"Article schema ready in {self.db_path}")

    def find_existing(self) -> List[Dict[str, Optional[str]]]:
        """
        Titles and source links of every stored article.
        """
        with self.connection() as conn:
            rows = conn.execute("SELECT title, source_link FROM articles").fetchall()
        return [{'title': row['title'], 'source_link': row['source_link']} for row in rows]

    def bulk_upsert(self, articles: Sequence[ArticleCandidate]) -> BulkWriteResult:
        """
        Insert or update articles by ID, each independently of the others.

        created_at is set on insert only; every other field is overwritten.

        Args:
            articles: Articles to write

        Returns:
            Counts of new and updated rows plus per-article write errors
        """
        result = BulkWriteResult()
        created_at = _now_iso()

        with self.connection() as conn:
            for index, article in enumerate(articles):
                try:
                    exists = conn.execute(
                        "SELECT 1 FROM articles WHERE id = ?", (article.id,)
                    ).fetchone() is not None
                    values = tuple(getattr(article, col) for col in ARTICLE_COLUMNS)
                    conn.execute(UPSERT_SQL, values + (created_at,))
                except sqlite3.Error as e:
                    result.write_errors.append(WriteError(index, getattr(article, 'id', None), str(e)))
                    continue
                if exists:
                    result.matched_count += 1
                else:
                    result.upserted_count += 1

        return result

    def get(self, article_id: str) -> Optional[PersistedArticle]:
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM articles WHERE id = ?", (article_id,)).fetchone()
        if row is None:
            return None
        return PersistedArticle(**{key: row[key] for key in row.keys()})

    def count(self) -> int:
        with self.connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0]

    def purge_expired(self, max_age: timedelta = DEFAULT_EXPIRY) -> int:
        """
        Delete articles first stored more than max_age ago.

        Returns:
            Number of deleted articles
        """
        cutoff = to_iso(datetime.now(timezone.utc) - max_age)
        with self.connection() as conn:
            deleted = conn.execute("DELETE FROM articles WHERE created_at < ?", (cutoff,)).rowcount
        if deleted:
            logger.info(f"Purged {deleted} expired articles from {self.db_path}")
        return deleted
