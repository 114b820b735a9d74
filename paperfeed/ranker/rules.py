"""Hard exclusion rules from a user's profile."""

from collections.abc import Iterable


def should_exclude_paper(
    paper_topics: Iterable[str],
    excluded_topics: Iterable[str],
    excluded_keywords: Iterable[str],
    paper_text: str,
) -> bool:
    """Check whether a paper matches any exclusion rule.

    Args:
        paper_topics: Topics assigned by enrichment.
        excluded_topics: Topics the user never wants to see.
        excluded_keywords: Keywords matched case-insensitively against the text.
        paper_text: Title and abstract.

    Returns:
        True if the paper matches at least one rule.
    """
    excluded = set(excluded_topics)
    if any(topic in excluded for topic in paper_topics):
        return True

    lower_text = paper_text.lower()
    return any(kw.lower() in lower_text for kw in excluded_keywords if kw)
