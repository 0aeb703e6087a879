import pytest

from type_mapping.classifier import KeywordClassifier


@pytest.fixture
def classifier():
    return KeywordClassifier()


@pytest.mark.parametrize("name, expected", [
    ("国产剧", "tv"),
    ("纪录片", "documentary"),
    ("记录片", "documentary"),
    ("动作片", "movie"),
    ("日韩动漫", "anime"),
    ("大陆综艺", "variety"),
    ("足球", "sport"),
    ("伦理片", "adult"),
    ("短剧", "tv"),
])
def test_known_names(classifier, name, expected):
    assert classifier.classify(name) == expected


def test_unknown_name_is_unmapped(classifier):
    assert classifier.classify("完全未知类别XYZ") == ""
    assert classifier.classify("") == ""


def test_first_declared_category_wins(classifier):
    # "动画片" hits movie's keyword and anime's "动画"; movie is declared first
    assert classifier.classify("动画片") == "movie"
    # "喜剧" (movie) and "综艺" (variety) both match
    assert classifier.classify("喜剧综艺") == "movie"


def test_matching_is_case_insensitive():
    classifier = KeywordClassifier([("sport", ("NBA",))])
    assert classifier.classify("nba 直播") == "sport"
    assert classifier.classify("Nba") == "sport"


def test_deterministic(classifier):
    assert {classifier.classify("欧美剧") for _ in range(20)} == {"tv"}


def test_custom_rules_replace_table():
    classifier = KeywordClassifier([("kids", ("少儿",))])
    assert classifier.classify("少儿动画") == "kids"
    assert classifier.classify("国产剧") == ""


def test_extended_appends_after_defaults(classifier):
    extended = classifier.extended([("kids", ("少儿",))])
    assert extended.classify("少儿节目") == "kids"
    # Built-in anime rule still wins over the appended kids rule
    assert extended.classify("少儿动漫") == "anime"
    assert classifier.classify("少儿节目") == ""
