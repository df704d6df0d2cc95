"""
Tokenization for activity text.

One tokenizer serves both clustering algorithms; each passes its own
stopword set. Thematic clustering keeps hyphenated terms whole, feature
clustering splits on every non-word character.
"""

import re
from typing import Iterable, Optional

# Common English function words plus conventional commit verbs.
STOP_WORDS = frozenset("""
a an and are as at be by for from has he in is it its of on that the to was
were will with this but they have had what when where who which why how all
each every both can could may might must shall should would just now then
there here also only very really quite rather some any many much few more
most less least than such other another same different new old good bad big
small large short long high low right wrong true false yes no not never always
often sometimes usually generally specifically particularly actually certainly
definitely probably possibly maybe perhaps like well even though although
because since while during after before until ago later earlier soon whose
whom these those i me my myself you your yourself him his himself she her
hers herself itself we us our ourselves them their themselves one ones
someone somebody something everyone everybody everything nobody nothing none
anybody anything either neither little changing
add added adding adds fix fixed fixes fixing update updated updates updating
remove removed removes bump bumped
""".split())

# Tuned for commit titles: short, verb-led, already prefix-stripped.
FEATURE_STOP_WORDS = frozenset([
    "the", "and", "for", "add", "fix", "update", "remove", "delete", "change",
    "new", "use", "with", "from", "into", "that", "this", "has", "have", "was",
    "were", "are", "been",
])

# Applied in order, each at most once.
COMMIT_PREFIXES = [
    re.compile(rf"^{kind}(\([^)]+\))?:\s*", re.IGNORECASE)
    for kind in ("feat", "fix", "chore", "docs", "style", "refactor", "test", "ci", "build", "perf")
] + [re.compile(r"^\[[^\]]+\]\s*")]

MIN_TOKEN_LENGTH = 3

_NON_TERM_CHARS = re.compile(r"[^a-z0-9\s-]")
_NON_WORD_CHARS = re.compile(r"[^a-z0-9_]+")


def tokenize(
    text: str,
    stopwords: Iterable[str] = STOP_WORDS,
    keep_hyphens: bool = True,
    limit: Optional[int] = None,
) -> list[str]:
    """
    Turn free text into a normalized term sequence.

    Args:
        text: Raw text (title + description)
        stopwords: Terms to drop
        keep_hyphens: If True, strip punctuation except hyphens and split
            on whitespace; if False, split on any non-word character
        limit: Keep only the first N surviving tokens

    Returns:
        Lowercased terms of at least 3 characters, in text order
    """
    if not isinstance(stopwords, (set, frozenset)):
        stopwords = frozenset(stopwords)

    lowered = text.lower()
    if keep_hyphens:
        pieces = _NON_TERM_CHARS.sub(" ", lowered).split()
    else:
        pieces = _NON_WORD_CHARS.split(lowered)

    tokens = [
        word for word in pieces
        if len(word) >= MIN_TOKEN_LENGTH and word not in stopwords
    ]
    if limit is not None:
        tokens = tokens[:limit]
    return tokens


def normalize_title(title: str) -> str:
    """Lowercase a commit title and strip conventional-commit prefixes and [tags]."""
    normalized = title.lower()
    for prefix in COMMIT_PREFIXES:
        normalized = prefix.sub("", normalized, count=1)
    return normalized.strip()


def extract_keywords(title: str, limit: int = 10, unique: bool = True) -> list[str]:
    """
    Keywords for feature clustering: first `limit` tokens of the
    normalized title, duplicates dropped unless `unique` is False.
    """
    tokens = tokenize(
        normalize_title(title),
        stopwords=FEATURE_STOP_WORDS,
        keep_hyphens=False,
        limit=limit,
    )
    if not unique:
        return tokens
    return list(dict.fromkeys(tokens))


def capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]
