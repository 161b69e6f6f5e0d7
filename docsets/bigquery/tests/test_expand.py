import pytest

from bigquery_docset.expand import expand


@pytest.mark.parametrize("syntax, expected", [
    ("[A|B] C", ["A C", "B C"]),
    ("A [B] C", ["A C", "A B C"]),
    ("SELECT", ["SELECT"]),
    ("FOR SYSTEM_TIME AS OF", ["FOR SYSTEM_TIME AS OF"]),
    ("FULL [OUTER] JOIN", ["FULL JOIN", "FULL OUTER JOIN"]),
    ("[INNER|LEFT|] JOIN", ["INNER JOIN", "LEFT JOIN", "JOIN"]),
    ("A [B | C] D", ["A B D", "A C D"]),
    ("[x y] z", ["z", "x y z"]),
    ("[A] [B]", ["", "B", "A", "A B"]),
])
def test_expand(syntax, expected):
    assert list(expand(syntax)) == expected


def test_expand_keeps_duplicates():
    assert list(expand("[A|A] B")) == ["A B", "A B"]


def test_expand_is_lazy_and_restartable():
    first = expand("[A|B] C")
    assert next(first) == "A C"
    assert list(expand("[A|B] C")) == ["A C", "B C"]
    assert list(first) == ["B C"]
