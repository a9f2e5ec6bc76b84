"""Pure text helpers shared by the cache matchers and provider clients."""

import re

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_REPEAT_RE = re.compile(r"(.)\1+")
_LEADING_ARTICLES_RE = re.compile(r"^(?:(?:the|a|an)(?:\s+|$))+")
_BULLET_RE = re.compile(r"(^|\n)[ \t]*\*[ \t]+")


def normalize_prompt(text: str) -> str:
    """Reduce a prompt to a canonical form for cache comparison.

    Steps: trim and lowercase, punctuation to spaces, collapse whitespace,
    collapse any run of a repeated character ("sooo" -> "so"), strip
    leading articles, drop repeated words keeping the first occurrence.

    The collapsing is aggressive ("too" becomes "to") and can merge
    distinct prompts; the lexical threshold is tuned with that in mind.

    Args:
        text: Raw prompt

    Returns:
        Normalized prompt (idempotent)
    """
    out = _PUNCTUATION_RE.sub(" ", text.strip().lower())
    out = _WHITESPACE_RE.sub(" ", out).strip()
    out = _REPEAT_RE.sub(r"\1", out)

    stripped = _LEADING_ARTICLES_RE.sub("", out)
    if stripped:
        out = stripped

    seen: set[str] = set()
    words: list[str] = []
    for word in out.split(" "):
        if word and word not in seen:
            seen.add(word)
            words.append(word)
    return " ".join(words)


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance with unit insert/delete/substitute costs."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    # Two-row dynamic programming
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Edit-distance similarity in [0, 1]: (maxlen - distance) / maxlen."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def strip_bullet_markers(text: str) -> str:
    """Remove markdown "* " bullets at line starts, then trim."""
    return _BULLET_RE.sub(r"\1", text).strip()
