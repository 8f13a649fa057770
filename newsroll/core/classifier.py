"""
Rule-based mapping of raw feed categories and titles to display categories.

Rules are evaluated strictly in table order. For each rule the raw category
keywords are tried first, then the title keywords; the first match that is
not vetoed by the rule's exclusion wins. Keyword matching is plain substring
containment on lowercased text.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

TECHNOLOGY = 'Technology'
BUSINESS = 'Business & Finance'
SPORTS = 'Sports'
POLITICS = 'Politics'
ENTERTAINMENT = 'Entertainment'
SCIENCE = 'Science'
WORLD = 'World News'
INDIA = 'India News'
LIFESTYLE = 'Life & Style'
TOP_NEWS = 'Top News'
GENERAL = 'General'

DISPLAY_CATEGORIES = (
    TECHNOLOGY, BUSINESS, SPORTS, POLITICS, ENTERTAINMENT, SCIENCE,
    WORLD, INDIA, LIFESTYLE, TOP_NEWS, GENERAL,
)

TECH_RAW = (
    'tech', 'gadget', 'internet', 'software', 'hardware', 'ai', 'artificial intelligence', 'crypto',
    'digital', 'startup', 'app', 'computing', 'innovation', 'programming', 'data', 'cloud',
    'cybersecurity', 'mobile', 'wearable', 'vr', 'ar',
)
TECH_TITLE = (
    ' tech', 'software', 'hardware', ' ai', ' app ', 'developer', 'algorithm', 'data breach',
    'cybersecurity', 'platform', 'online', 'website', 'user interface', 'user experience',
    'gadget review', 'latest smartphone', 'coding language', 'machine learning',
)

SPORTS_RAW = (
    'sports', 'cricket', 'football', 'soccer', 'tennis', 'ipl', 'olympic', 'nba', 'mls', 'esports',
    'f1', 'motogp', 'athletics', 'badminton', 'hockey', 'rugby', 'golf', 'wrestling', 'boxing',
    'formula 1', 'e-sports', 'gaming competition',
)
SPORTS_TITLE = (
    'cricket score', 'ipl match', 'football game', 'tennis tournament', 'olympic medal',
    'nba playoffs', 'world cup qualifier', 'grand slam event', 'batsman', 'bowler', 'goal',
    'league table', 'championship game', 'fixture schedule', 'match report', 'final score',
    'athlete', 'sports update', 'team lineup',
)
SPORTS_TITLE_STRONG = (
    'cricket', 'ipl final', 'football match', 'tennis open', 'olympic games', 'nba championship',
    'world cup soccer', 'grand prix racing',
)

BUSINESS_RAW = (
    'business', 'finance', 'stock', 'market', 'economic', 'economy', 'compan', 'industr', 'bank',
    'invest', 'corporate', 'earnings', 'ipo', 'merger', 'acquisition', 'trade', 'commerce',
    'financial', 'nse', 'bse', 'sensex', 'nifty', 'cryptocurrency business',
)
BUSINESS_TITLE = (
    'sensex', 'nifty', 'ipo', 'startup funding', 'quarterly result', 'profit', 'loss', 'gdp',
    'inflation', 'interest rate', 'budget', 'fiscal policy', 'monetary policy', 'shares', 'stocks',
    'commodities', 'forex', 'bull market', 'bear market', 'economic growth', 'recession',
    'company shares', 'market trends',
)

POLITICS_RAW = (
    'politic', 'election', 'government', 'parliament', 'minister', 'democracy', 'legislature',
    'ballot', 'campaign', 'diplomacy', 'geopolitics', 'public policy', 'political party',
)
POLITICS_TITLE = (
    'election result', 'prime minister', 'modi', 'rahul gandhi', 'parliament session', 'bill passed',
    'policy debate', 'international summit', 'treaty negotiation', 'geopolitical tension',
    'vote count', 'political rally', 'mp', 'mla', 'chief minister', 'cabinet meeting',
    'government scheme',
)

ENTERTAINMENT_RAW = (
    'entertainment', 'movie', 'film', 'music', 'bollywood', 'hollywood', 'celebrity', 'tv',
    'web series', 'cinema', 'arts', 'culture', 'showbiz', 'box office', 'gossip', 'ott platform',
)
ENTERTAINMENT_TITLE = (
    'box office collection', 'movie review', 'film trailer', 'album release', 'concert tour',
    'award ceremony', 'actor interview', 'actress lifestyle', 'director announcement',
    'series finale date', 'ott platform release', 'celebrity news', 'film release',
)

SCIENCE_RAW = (
    'science', 'space', 'health research', 'scientific discover', 'astronomy', 'physics', 'biology',
    'chemistry', 'medicine research', 'environment science', 'archaeology', 'paleontology',
    'innovation in science', 'research article',
)
SCIENCE_TITLE = (
    'nasa mission', 'isro launch', 'spacex flight', 'mars rover', 'black hole discovery',
    'clinical trial results', 'vaccine development', 'fossil find', 'dinosaur era',
    'climate change report', 'quantum computing breakthrough', 'dna sequencing',
    'scientific breakthrough', 'research paper', 'new species',
)

WORLD_RAW = (
    'world', 'global', 'international', 'asia news', 'europe news', 'africa news', 'america news',
    'un session', 'nato meeting', 'foreign affairs discussion', 'international conflict',
)
WORLD_TITLE = (
    'war in', 'global summit on', 'international relations update', 'united nations resolution',
    'conflict between', 'treaty signing between', 'foreign minister meets', 'ukraine crisis',
    'middle east peace',
)

INDIA_RAW = (
    'india', 'national', 'delhi', 'mumbai', 'bengaluru', 'kolkata', 'chennai', 'hyderabad', 'pune',
    'state news', 'indian affairs', 'bharat', 'indian government',
)
INDIA_TITLE = (
    'india', 'delhi', 'mumbai', 'bengaluru', 'kolkata', 'chennai', 'hyderabad', 'pune', 'bharat',
)

LIFESTYLE_RAW = (
    'life', 'style', 'fashion', 'food', 'travel', 'wellness', 'horoscope', 'recipe', 'well-being',
    'home decor', 'garden tips', 'parenting advice', 'relationships guide', 'beauty trends',
    'health tips',
)
LIFESTYLE_TITLE = (
    'fashion week highlights', 'easy recipe for', 'travel guide to', 'yoga benefits',
    'meditation techniques', 'daily zodiac forecast', 'parenting hacks', 'home makeover ideas',
    'latest beauty products', 'healthy eating habits',
)

TOP_NEWS_RAW = ('top stor', 'latest news', 'breaking news', 'headlines')

GENERIC_RAW_MARKERS = ('news', 'general', 'headlines', 'top stor')
INDIA_NAMES = ('india', 'bharat')

# (lowercased raw category, lowercased title) -> True to veto the match
Exclusion = Callable[[str, str], bool]


def has_keywords(keywords: Sequence[str], text: str) -> bool:
    return any(keyword in text for keyword in keywords)


def is_generic(raw: str) -> bool:
    return raw == '' or has_keywords(GENERIC_RAW_MARKERS, raw)


def _strong_sports_title(raw: str, title: str) -> bool:
    return has_keywords(SPORTS_TITLE_STRONG, title)


def _match_with_tech(raw: str, title: str) -> bool:
    return 'match' in title and (has_keywords(TECH_RAW, raw) or has_keywords(TECH_TITLE, title))


def _lifestyle_with_tech_or_business(raw: str, title: str) -> bool:
    return 'lifestyle' in raw and (has_keywords(TECH_RAW, raw) or has_keywords(BUSINESS_RAW, raw))


def _health_with_business(raw: str, title: str) -> bool:
    return 'health' in raw and (has_keywords(BUSINESS_RAW, raw) or 'market' in raw)


def _india_in_raw(raw: str, title: str) -> bool:
    return has_keywords(INDIA_NAMES, raw)


def _india_in_raw_or_title(raw: str, title: str) -> bool:
    return has_keywords(INDIA_NAMES, raw) or has_keywords(INDIA_NAMES, title)


def _tech_or_business_raw(raw: str, title: str) -> bool:
    return has_keywords(TECH_RAW, raw) or has_keywords(BUSINESS_RAW, raw)


def _tech_or_business_title(raw: str, title: str) -> bool:
    return has_keywords(TECH_TITLE, title) or has_keywords(BUSINESS_TITLE, title)


@dataclass(frozen=True)
class CategoryRule:
    """
    One row of the classification table.

    title_scope decides when title keywords may be used at all: None means
    always, otherwise the raw category must be generic or contain one of the
    listed fragments (an empty tuple means generic only).
    """
    category: str
    raw_keywords: Tuple[str, ...] = ()
    title_keywords: Tuple[str, ...] = ()
    title_scope: Optional[Tuple[str, ...]] = ()
    raw_exclusion: Optional[Exclusion] = None
    title_exclusion: Optional[Exclusion] = None

    def matches_raw(self, raw: str, title: str) -> bool:
        if not has_keywords(self.raw_keywords, raw):
            return False
        return not (self.raw_exclusion and self.raw_exclusion(raw, title))

    def matches_title(self, raw: str, title: str) -> bool:
        if not has_keywords(self.title_keywords, title):
            return False
        if self.title_scope is not None and not (is_generic(raw) or has_keywords(self.title_scope, raw)):
            return False
        return not (self.title_exclusion and self.title_exclusion(raw, title))


CATEGORY_RULES = (
    CategoryRule(TECHNOLOGY, TECH_RAW, TECH_TITLE, title_scope=None,
                 raw_exclusion=_strong_sports_title, title_exclusion=_strong_sports_title),
    CategoryRule(SPORTS, SPORTS_RAW, SPORTS_TITLE, title_scope=('sport',),
                 title_exclusion=_match_with_tech),
    CategoryRule(BUSINESS, BUSINESS_RAW, BUSINESS_TITLE, title_scope=('business', 'finance')),
    CategoryRule(POLITICS, POLITICS_RAW, POLITICS_TITLE, title_scope=('politic',)),
    CategoryRule(ENTERTAINMENT, ENTERTAINMENT_RAW, ENTERTAINMENT_TITLE, title_scope=('entertainment',),
                 raw_exclusion=_lifestyle_with_tech_or_business),
    CategoryRule(SCIENCE, SCIENCE_RAW, SCIENCE_TITLE, title_scope=('science',),
                 raw_exclusion=_health_with_business),
    CategoryRule(WORLD, WORLD_RAW, WORLD_TITLE, title_scope=None,
                 raw_exclusion=_india_in_raw, title_exclusion=_india_in_raw_or_title),
    CategoryRule(INDIA, INDIA_RAW, INDIA_TITLE, title_scope=()),
    CategoryRule(LIFESTYLE, LIFESTYLE_RAW, LIFESTYLE_TITLE, title_scope=('lifestyle',),
                 raw_exclusion=_tech_or_business_raw, title_exclusion=_tech_or_business_title),
    CategoryRule(TOP_NEWS, TOP_NEWS_RAW),
)


def classify(raw_category: Optional[str], title: Optional[str] = '') -> str:
    """
    Map a raw feed category and an article title to a display category.

    Args:
        raw_category: Category string as found in the feed (or source default)
        title: Article title

    Returns:
        One of DISPLAY_CATEGORIES
    """
    raw = (raw_category or '').lower()
    lowered_title = (title or '').lower()

    for rule in CATEGORY_RULES:
        if rule.matches_raw(raw, lowered_title) or rule.matches_title(raw, lowered_title):
            return rule.category

    for category in DISPLAY_CATEGORIES:
        if category.lower() == raw:
            return category

    return GENERAL
