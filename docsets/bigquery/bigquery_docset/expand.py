"""Expansion of bracketed syntax titles into the keyword phrases they denote.

A title such as ``[INNER|LEFT] JOIN`` or ``FULL [OUTER] JOIN`` describes
several concrete phrases; ``expand`` yields each of them.
"""

import itertools
import re

_TOKEN_RE = re.compile(r"\w+|\[.*?\]|\S+")


def _choices(token):
    if token.startswith("[") and "|" in token:
        return [alt.strip() for alt in token.strip("[]").split("|")]
    if token.startswith("["):
        return ["", token.strip("[]").strip()]
    return [token]


def expand(syntax):
    """Yield every phrase described by *syntax*, in left-to-right order.

    Duplicates are yielded as often as they arise; callers rely on the
    index's uniqueness constraint to collapse them.

    >>> list(expand("FULL [OUTER] JOIN"))
    ['FULL JOIN', 'FULL OUTER JOIN']
    """
    choices = [_choices(token) for token in _TOKEN_RE.findall(syntax)]
    for words in itertools.product(*choices):
        yield " ".join(word for word in words if word)
