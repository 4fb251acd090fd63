import pytest

from app.schemas import PageCategory
from app.services.page_classifier import CATEGORY_RULES, PageClassifier, PageSignals


@pytest.mark.parametrize("word_count", [0, 50, 1500, 5000])
def test_root_is_main_navigation_with_full_importance(word_count):
    classifier = PageClassifier()

    category, importance = classifier.classify_and_score(
        "https://example.com/", "Welcome to Example", "some content", word_count
    )

    assert category == PageCategory.MAIN_NAVIGATION
    assert importance == 1.0


@pytest.mark.parametrize(
    "url, title, content, expected",
    [
        ("https://x.com/ueber-uns", "Über uns", "", PageCategory.MAIN_NAVIGATION),
        ("https://x.com/api/v1/users", "Users", "", PageCategory.API_DOCUMENTATION),
        ("https://x.com/quickstart", "Start", "", PageCategory.GETTING_STARTED),
        ("https://x.com/tutorials/first", "First steps", "", PageCategory.TUTORIAL),
        ("https://x.com/reference/cli", "CLI", "", PageCategory.REFERENCE),
        ("https://x.com/blog/launch", "Launch", "", PageCategory.BLOG),
        ("https://x.com/privacy", "Privacy policy", "", PageCategory.LEGAL),
        ("https://x.com/guide/setup", "Setup", "plain text", PageCategory.DOCUMENTATION),
    ],
)
def test_classification_rules(url, title, content, expected):
    assert PageClassifier().classify(url, title, content) == expected


def test_first_matching_rule_wins():
    # Matches both the navigation and the blog rule
    category = PageClassifier().classify("https://x.com/blog/team", "Our team", "")

    assert category == PageCategory.MAIN_NAVIGATION


def test_rules_are_independently_testable():
    signals = PageSignals.from_page("https://x.com/legal/terms", "Terms", "")
    matching = [rule.name for rule in CATEGORY_RULES if rule.matches(signals)]

    assert matching == ["legal"]


def test_depth_penalty_is_gentler_for_navigation_pages():
    classifier = PageClassifier()

    nav = classifier.score("https://x.com/a/b/team", "Team", 100, PageCategory.MAIN_NAVIGATION)
    blog = classifier.score("https://x.com/a/b/post", "Post", 100, PageCategory.BLOG)

    assert nav == pytest.approx(0.95 * 0.85)
    assert blog == pytest.approx(0.3 * 0.7)


@pytest.mark.parametrize(
    "url, depth",
    [
        ("https://x.com", 0),
        ("https://x.com/", 0),
        ("https://x.com/docs", 1),
        ("https://x.com/docs/setup/", 3),
        ("https://x.com/search?q=a/b", 2),
    ],
)
def test_path_depth_counts_every_slash_after_host(url, depth):
    assert PageClassifier.path_depth(url) == depth


def test_trailing_slash_deepens_the_penalty():
    classifier = PageClassifier()

    docs = classifier.score("https://x.com/docs/setup/", "Setup", 100, PageCategory.DOCUMENTATION)
    about = classifier.score("https://x.com/about/", "About", 100, PageCategory.MAIN_NAVIGATION)

    assert docs == pytest.approx(0.6 * 0.7)
    assert about == pytest.approx(0.95 * 0.9)


def test_long_pages_and_important_titles_are_boosted():
    classifier = PageClassifier()

    base = classifier.score("https://x.com/docs", "Docs", 100, PageCategory.DOCUMENTATION)
    long_page = classifier.score("https://x.com/docs", "Docs", 2500, PageCategory.DOCUMENTATION)
    guide = classifier.score("https://x.com/docs", "User guide", 100, PageCategory.DOCUMENTATION)

    assert long_page == pytest.approx(base + 0.2)
    assert guide == pytest.approx(base + 0.1)


def test_unknown_category_uses_default_weight_and_clamps():
    classifier = PageClassifier()

    assert classifier.score("https://x.com/page", "Page", 10, "Unknown") == pytest.approx(0.45)
    assert classifier.score("https://x.com/a", "Tutorial guide", 5000, PageCategory.GETTING_STARTED) == 1.0


def test_classify_and_score_is_deterministic():
    classifier = PageClassifier()
    args = ("https://x.com/docs/tutorial/intro", "Intro tutorial", "step-by-step", 1200)

    assert classifier.classify_and_score(*args) == classifier.classify_and_score(*args)
