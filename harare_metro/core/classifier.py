"""
Keyword-based article classification.

Assigns each article a category, a priority flag, a 0-10 relevance score
and a short keyword list, using the category keyword map and priority
keyword list from the catalogue. Matching is case-insensitive substring
matching throughout.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from .types import CATCH_ALL_CATEGORY, Classification

MAX_RELEVANCE = 10
MAX_KEYWORDS = 5


class ArticleClassifier:
    """Classifies article text against configured keyword lists.

    Matching ignores case; keywords are reported with the spelling they
    were configured with.

    Attributes:
        category_keywords: Ordered mapping of category -> keywords. Iteration
                           order decides ties between equally matching categories.
        priority_keywords: Keywords that mark an article as editorially important
        catch_all: Category assigned when nothing matches
    """

    def __init__(
        self,
        category_keywords: Mapping[str, Sequence[str]],
        priority_keywords: Sequence[str],
        catch_all: str = CATCH_ALL_CATEGORY,
    ):
        self.category_keywords = {category: list(keywords) for category, keywords in category_keywords.items()}
        self.priority_keywords = list(priority_keywords)
        self.catch_all = catch_all
        self._category_terms = {
            category: _terms(keywords) for category, keywords in self.category_keywords.items()
        }
        self._priority_terms = _terms(self.priority_keywords)

    def classify(self, text: str, title: str) -> Classification:
        """Classify one article.

        Args:
            text: Cleaned article text (title plus excerpt)
            title: Cleaned article title

        Returns:
            Classification with a category that is never empty
        """
        content = text.lower()
        category = self.detect_category(content)
        return Classification(
            category=category,
            priority=self.is_priority(content),
            relevance_score=self.relevance_score(content, title),
            keywords=self.extract_keywords(content, category),
        )

    def detect_category(self, content: str) -> str:
        """Pick the category with the strictly highest keyword match count."""
        content = content.lower()
        best = self.catch_all
        best_matches = 0
        for category, terms in self._category_terms.items():
            if category == self.catch_all:
                continue
            matches = sum(1 for _, term in terms if term in content)
            if matches > best_matches:
                best_matches = matches
                best = category
        return best

    def is_priority(self, content: str) -> bool:
        content = content.lower()
        return any(term in content for _, term in self._priority_terms)

    def relevance_score(self, content: str, title: str) -> int:
        """Score priority keyword hits: 3 when the keyword is also in the title, else 1.

        The total is capped at MAX_RELEVANCE.
        """
        content = content.lower()
        title = title.lower()
        score = 0
        for _, term in self._priority_terms:
            if term in content:
                score += 3 if term in title else 1
        return min(score, MAX_RELEVANCE)

    def extract_keywords(self, content: str, category: str) -> list[str]:
        """Return up to five matched keywords, priority first, then longest first."""
        content = content.lower()
        found: list[str] = []
        seen: set[str] = set()
        for keyword, term in self._category_terms.get(category, []) + self._priority_terms:
            if term in content and term not in seen:
                seen.add(term)
                found.append(keyword)
        priority = set(self.priority_keywords)
        # sorted() is stable, so equal keys keep discovery order
        ranked = sorted(found, key=lambda k: (k not in priority, -len(k)))
        return ranked[:MAX_KEYWORDS]


def _terms(keywords: Sequence[str]) -> list[tuple[str, str]]:
    """Pair each configured keyword with its lowercase matching form."""
    return [(keyword, keyword.lower()) for keyword in keywords]
