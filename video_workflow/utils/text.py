"""
Text utilities: speaking-time estimates and keyword extraction.
"""

import math
import re
from collections import Counter
from typing import List, Set


def word_count(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def estimate_duration(text: str, words_per_minute: int = 150) -> int:
    """
    Estimate spoken duration in whole seconds, rounded up.

    A 150-word script at 150 words per minute is exactly 60 seconds.
    """
    return math.ceil(word_count(text) * 60 / words_per_minute)


def image_prompt_count(duration: float, minimum: int = 5, seconds_per_image: int = 30) -> int:
    """Number of images for a script: one per `seconds_per_image`, never below `minimum`."""
    return max(minimum, math.ceil(duration / seconds_per_image))


class KeywordExtractor:
    """
    Extracts keywords from text using rule-based methods.

    Used to build the tag list for a published video from its script.
    """

    STOP_WORDS: Set[str] = {
        'a', 'an', 'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
        'is', 'are', 'was', 'were', 'be', 'been', 'being', 'have', 'has', 'had', 'do', 'does',
        'did', 'will', 'would', 'should', 'could', 'can', 'may', 'might', 'must', 'shall',
        'this', 'that', 'these', 'those', 'my', 'your', 'our', 'their',
        'i', 'you', 'he', 'she', 'it', 'we', 'they', 'me', 'him', 'her', 'us', 'them',
        'what', 'which', 'who', 'whom', 'whose', 'where', 'when', 'why', 'how',
        'all', 'any', 'both', 'each', 'few', 'more', 'most', 'other', 'some', 'such',
        'no', 'nor', 'not', 'only', 'own', 'same', 'so', 'than', 'too', 'very',
        'let', "let's", 'don\'t', 'also', 'just', 'into', 'from', 'about', 'over', 'out',
    }

    # Filler that shows up in every script and makes poor tags
    SCRIPT_NOISE: Set[str] = {
        'welcome', 'video', 'thank', 'thanks', 'watching', 'subscribe', 'like', 'share',
        'friend', 'helpful', 'minutes', 'today', 'next', 'first', 'course', 'ever',
    }

    def __init__(self, max_keywords: int = 5):
        """
        Args:
            max_keywords: Maximum number of keywords to return
        """
        self.max_keywords = max_keywords

    def extract_keywords(self, text: str) -> List[str]:
        """
        Extract keywords from text.

        Args:
            text: Input text to extract keywords from

        Returns:
            Keywords ordered by score (up to max_keywords)
        """
        if not text or not text.strip():
            return []

        tokens = self._tokenize(self._clean_text(text))
        filtered = self._filter_tokens(tokens)
        scores = self._score_tokens(filtered, text)

        # Stable order for equal scores: first appearance
        first_seen = {}
        for pos, token in enumerate(filtered):
            first_seen.setdefault(token, pos)
        ranked = sorted(scores.items(), key=lambda x: (-x[1], first_seen[x[0]]))
        return [keyword for keyword, _ in ranked[:self.max_keywords]]

    def _clean_text(self, text: str) -> str:
        """Remove punctuation except hyphens and apostrophes, lowercase."""
        text = re.sub(r'[^\w\s\'-]', ' ', text)
        text = re.sub(r'\s+', ' ', text)
        return text.strip().lower()

    def _tokenize(self, text: str) -> List[str]:
        return [token.strip("'-") for token in text.split()]

    def _filter_tokens(self, tokens: List[str]) -> List[str]:
        filtered = []
        for token in tokens:
            if token in self.STOP_WORDS or token in self.SCRIPT_NOISE:
                continue
            if len(token) < 3:
                continue
            if token.isdigit():
                continue
            filtered.append(token)
        return filtered

    def _score_tokens(self, tokens: List[str], original_text: str) -> dict:
        scores = Counter(tokens)
        for token in list(scores):
            score = float(scores[token])
            # Longer words are likely more specific
            if len(token) > 6:
                score *= 1.5
            if self._appears_capitalized(token, original_text):
                score *= 1.2
            scores[token] = score
        return dict(scores)

    def _appears_capitalized(self, word: str, text: str) -> bool:
        pattern = r'\b' + re.escape(word.capitalize()) + r'\b'
        return bool(re.search(pattern, text))
