"""
Heuristic classification of native category names into global types.

The orchestrator only depends on the Classifier interface, so the keyword
table below can be swapped for anything that maps a name to a type code.
"""

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

Rule = Tuple[str, Sequence[str]]

# Evaluated top to bottom, first hit wins: "动画片" resolves to movie, not anime.
DEFAULT_RULES: Tuple[Rule, ...] = (
    ("movie", ("电影", "动作", "喜剧", "爱情", "科幻", "恐怖", "剧情", "战争", "理论", "动画片")),
    ("tv", ("连续剧", "国产剧", "香港剧", "韩国剧", "台湾剧", "日本剧", "海外剧", "泰国剧", "欧美剧", "短剧")),
    ("variety", ("综艺", "娱乐")),
    ("anime", ("动漫", "动画", "日韩动漫", "欧美动漫", "港台动漫", "海外动漫")),
    ("documentary", ("纪录片", "记录片")),
    ("sport", ("体育", "足球", "篮球", "网球", "斯诺克")),
    ("adult", ("福利", "伦理")),
)

UNMAPPED = ""


class Classifier(ABC):
    """Maps a source's category name to a global type id, or "" if unknown."""

    @abstractmethod
    def classify(self, name: str) -> str:
        pass


class KeywordClassifier(Classifier):
    """
    Case-insensitive substring matcher over ordered keyword sets.

    Example:
        classifier = KeywordClassifier()
        classifier.classify("国产剧")   # -> "tv"
        classifier.classify("XYZ")      # -> ""
    """

    def __init__(self, rules: Sequence[Rule] = DEFAULT_RULES):
        self._rules = tuple(
            (type_id, tuple(keyword.lower() for keyword in keywords))
            for type_id, keywords in rules
        )

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def extended(self, extra_rules: Sequence[Rule]) -> "KeywordClassifier":
        """New classifier with ``extra_rules`` evaluated after the current ones."""
        return KeywordClassifier(self._rules + tuple(extra_rules))

    def classify(self, name: str) -> str:
        lowered = (name or "").lower()
        if not lowered:
            return UNMAPPED
        for type_id, keywords in self._rules:
            if any(keyword in lowered for keyword in keywords):
                return type_id
        return UNMAPPED
