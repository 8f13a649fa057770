import unittest

from newsroll.core.classifier import (
    BUSINESS,
    CATEGORY_RULES,
    DISPLAY_CATEGORIES,
    ENTERTAINMENT,
    GENERAL,
    INDIA,
    LIFESTYLE,
    SCIENCE,
    SPORTS,
    TECHNOLOGY,
    TOP_NEWS,
    classify,
)


class TestClassifier(unittest.TestCase):
    def test_rule_order(self):
        self.assertEqual(
            [rule.category for rule in CATEGORY_RULES],
            [
                "Technology", "Sports", "Business & Finance", "Politics", "Entertainment",
                "Science", "World News", "India News", "Life & Style", "Top News",
            ],
        )

    def test_sports_raw_category_beats_ai_title(self):
        self.assertEqual(classify("Sports", "AI chip makers sponsor league"), SPORTS)

    def test_strong_sports_title_vetoes_technology_rule(self):
        # The Technology rule is vetoed; only the direct name match is left
        self.assertEqual(classify("Technology", "Cricket World Cup final live"), TECHNOLOGY)

    def test_raw_keyword_match(self):
        self.assertEqual(classify("Bollywood", "Star attends premiere"), ENTERTAINMENT)

    def test_title_keywords_apply_to_generic_raw_category(self):
        self.assertEqual(classify("", "Sensex jumps 500 points"), BUSINESS)

    def test_india_titles_excluded_from_world_news(self):
        self.assertEqual(classify("News", "War in the region escalates in India"), INDIA)

    def test_top_news_raw_keywords(self):
        self.assertEqual(classify("Top Stories", "Something happened"), TOP_NEWS)

    def test_direct_name_match(self):
        self.assertEqual(classify("Top News", "Plain title words"), TOP_NEWS)

    def test_general_fallback(self):
        self.assertEqual(classify("Unknownthing", "Plain title words"), GENERAL)
        self.assertEqual(classify(None, None), GENERAL)

    def test_always_returns_display_category(self):
        for raw in ("Sports", "Economy", "", "Travel", "Delhi", "Weird"):
            self.assertIn(classify(raw, "Some headline here"), DISPLAY_CATEGORIES)


def rule_for(category):
    return next(rule for rule in CATEGORY_RULES if rule.category == category)


class TestExclusions(unittest.TestCase):
    def test_match_with_tech_title_vetoes_sports(self):
        # Technology is vetoed by "cricket", Sports by "match" next to "online"
        self.assertEqual(classify("News", "Cricket final score match on online platform"), GENERAL)
        self.assertEqual(classify("News", "Cricket final score on online platform"), SPORTS)

    def test_health_with_business_vetoes_science(self):
        science = rule_for(SCIENCE)
        self.assertFalse(science.matches_raw("space health finance", ""))
        self.assertFalse(science.matches_raw("space health market", ""))
        self.assertTrue(science.matches_raw("space health", ""))
        self.assertEqual(classify("Space Health", "Plain title words"), SCIENCE)
        # Business keywords claim the raw category first
        self.assertEqual(classify("Space Health Finance", "Plain title words"), BUSINESS)

    def test_lifestyle_with_tech_vetoes_entertainment(self):
        title = "Cricket stars attend film gala"
        self.assertEqual(classify("Film Lifestyle Digital", title), GENERAL)
        self.assertEqual(classify("Film Lifestyle", title), ENTERTAINMENT)

    def test_lifestyle_with_business_vetoes_entertainment(self):
        entertainment = rule_for(ENTERTAINMENT)
        self.assertFalse(entertainment.matches_raw("film lifestyle business", ""))
        self.assertTrue(entertainment.matches_raw("film lifestyle", ""))
        self.assertTrue(entertainment.matches_raw("film business", ""))

    def test_tech_raw_vetoes_lifestyle(self):
        title = "Cricket fans plan trips"
        self.assertEqual(classify("Travel Digital", title), GENERAL)
        self.assertEqual(classify("Travel", title), LIFESTYLE)

    def test_business_raw_vetoes_lifestyle(self):
        lifestyle = rule_for(LIFESTYLE)
        self.assertFalse(lifestyle.matches_raw("travel business", ""))
        self.assertTrue(lifestyle.matches_raw("travel", ""))

    def test_tech_or_business_title_vetoes_lifestyle(self):
        self.assertEqual(classify("News", "Cricket night: easy recipe for snacks sold online"), GENERAL)
        self.assertEqual(classify("News", "Cricket night: easy recipe for snacks"), LIFESTYLE)
        lifestyle = rule_for(LIFESTYLE)
        self.assertFalse(lifestyle.matches_title("news", "easy recipe for profit"))
        self.assertTrue(lifestyle.matches_title("news", "easy recipe for soup"))


if __name__ == "__main__":
    unittest.main()
