"""
SocialHub Backend: Trending Topic Ranking
===========================================

What:  Pure ranking of keywords over a snapshot of recent posts.
Who:   SearchService.trending_topics() materializes the snapshot (posts from
       the trending window with their like counts) and calls this function.

Scoring:
    text is lowercased and split into word tokens (\\b\\w+\\b); only words
    longer than 3 characters count. Every occurrence of a word in a post adds
    (likes + 1) to that word's weight, so an unliked post still counts once.

    Example:
        [("apple banana", 1), ("apple apple", 3)]
        apple  = 2 + 4 + 4 = 10
        banana = 2
"""

import re
from collections import Counter
from typing import Iterable, List, Tuple

from socialhub.schemas.post import TrendingTopic

WORD_PATTERN = re.compile(r"\b\w+\b")
MIN_KEYWORD_LENGTH = 4


def rank_trending_topics(
    snapshot: Iterable[Tuple[str, int]],
    limit: int = 10,
) -> List[TrendingTopic]:
    """
    Ranks keywords by summed weight.

    Args:
        snapshot: (post text, like count) pairs
        limit:    Maximum number of topics returned

    Returns:
        Topics ordered by weight DESC, ties broken by keyword ASC
    """
    weights: Counter = Counter()
    for text, likes in snapshot:
        weight = (likes or 0) + 1
        for word in WORD_PATTERN.findall((text or "").lower()):
            if len(word) >= MIN_KEYWORD_LENGTH:
                weights[word] += weight

    ranked = sorted(weights.items(), key=lambda item: (-item[1], item[0]))
    return [TrendingTopic(keyword=word, weight=weight) for word, weight in ranked[:limit]]
