"""Unit tests for the text classifiers in bigquery_docset.rules."""

import pytest

from bigquery_docset import rules
from bigquery_docset.errors import ClassificationError

DOC = "bigquery/docs/reference/standard-sql/"


@pytest.mark.parametrize("text, expected", [
    ("ABS(X)", "ABS"),
    ("NET.IP_NET_MASK(num_output_bytes, prefix_length)", "NET.IP_NET_MASK"),
    ("HLL_COUNT.MERGE(sketch)", "HLL_COUNT.MERGE"),
    ("CASE expr WHEN expr_to_match THEN result END", "CASE"),
    ("CASE WHEN condition THEN result END", "CASE WHEN"),
    ("FOO~BAR", None),
    ("abs(x)", None),
])
def test_function_name(text, expected):
    assert rules.function_name(text) == expected


@pytest.mark.parametrize("text, expected", [
    ("INT64", "INT64"),
    ("BIGNUMERIC", "BIGNUMERIC"),
    ("ARRAY<T>", None),
    ("int64", None),
])
def test_type_name(text, expected):
    assert rules.type_name(text) == expected


@pytest.mark.parametrize("syntax, expected", [
    ("X + Y", ["+"]),
    ("X <= Y", ["<="]),
    ("X != Y", ["!="]),
    ("~X", ["~ (Unary)"]),
    ("-X", ["- (Unary)"]),
    ("X [NOT] LIKE Y", ["LIKE", "NOT LIKE"]),
    ("X [NOT] BETWEEN Y AND Z", ["BETWEEN", "NOT BETWEEN"]),
    ("X IS [NOT] NULL", ["IS"]),
    ("expression IS TRUE", []),
    ("X", None),
    ("X [NOT]", None),
])
def test_operator_names(syntax, expected):
    assert rules.operator_names(syntax) == expected


@pytest.mark.parametrize("syntax, expected", [
    ("expression_1 IS [NOT] DISTINCT FROM expression_2", "IS [NOT] DISTINCT FROM"),
    ("expression_1 IS [NOT] LIKE expression_2", "IS [NOT] LIKE"),
    ("no operator here", None),
])
def test_syntax_operator(syntax, expected):
    assert rules.syntax_operator(syntax) == expected


@pytest.mark.parametrize("text, expected", [
    ("AND", "AND"),
    ("NOT", "NOT"),
    ("TRUE", ""),
    ("BOOL", ""),
    ("XOR", None),
])
def test_logical_operator(text, expected):
    assert rules.logical_operator(text) == expected


def test_option_name_trims_trailing_text():
    assert rules.option_name("friendly_name") == ("friendly_name", False)
    assert rules.option_name("expiration_timestamp TIMESTAMP") == ("expiration_timestamp", True)


def test_window_frame_keywords_skip_and():
    syntax = "{ ROWS | RANGE }\nBETWEEN start AND end\nUNBOUNDED FOLLOWING\nCURRENT ROW"
    assert rules.window_frame_keywords(syntax) == [
        "ROWS", "RANGE", "BETWEEN", "UNBOUNDED FOLLOWING", "CURRENT ROW",
    ]


def test_normalize_space_keeps_non_breaking_spaces():
    assert rules.normalize_space("  SELECT\n\t statement ") == "SELECT statement"
    assert rules.normalize_space("a\xa0b") == "a\xa0b"


@pytest.mark.parametrize("title, heading, expected", [
    ("ABS", "h3", ("Function", ["ABS"])),
    ("JSON_EXTRACT or JSON_EXTRACT_SCALAR", "h3", ("Function", ["JSON_EXTRACT", "JSON_EXTRACT_SCALAR"])),
    ("KEYS.NEW_KEYSET", "h3", ("Function", ["KEYS.NEW_KEYSET"])),
    ("IN operators", "h3", ("Operator", ["IN"])),
    ("EXISTS operator", "h3", ("Operator", ["EXISTS"])),
    ("COUNT expr", "h3", ("Function", ["COUNT"])),
    ("OVER", "h6", ("Query", ["OVER"])),
    ("Casting", "h2", None),
    ("Arithmetic operators", "h2", None),
])
def test_classify_function_title(title, heading, expected):
    assert rules.classify_function_title(title, heading) == expected


@pytest.mark.parametrize("title, expected", [
    ("SELECT statement", ("Statement", ["SELECT"])),
    ("CREATE EXTERNAL TABLE statement", ("Statement", ["CREATE EXTERNAL TABLE"])),
    ("GROUP BY clause", ("Query", ["GROUP BY"])),
    ("WITH Clause", ("Query", ["WITH"])),
    ("INSERT statement and UPDATE statement", ("Statement", ["INSERT", "UPDATE"])),
    ("UNNEST operator", ("Operator", ["UNNEST"])),
    ("DISTINCT keyword", ("Query", ["DISTINCT"])),
    ("Select statement", None),
    ("SELECT list", None),
])
def test_classify_statement_title(title, expected):
    assert rules.classify_statement_title(title) == expected


@pytest.mark.parametrize("title, expected", [
    ("INSERT and UPDATE statements", ("Statement", ["INSERT", "UPDATE"])),
    ("GROUP BY and HAVING clauses", ("Query", ["GROUP BY", "HAVING"])),
    ("LIMIT and OFFSET clause", ("Query", ["LIMIT", "OFFSET"])),
    ("DML Statements", ("Query", ["DML"])),
    ("Statements and Clauses", None),
    ("INSERT examples", None),
])
def test_classify_mixed_title(title, expected):
    assert rules.classify_mixed_title(title) == expected


@pytest.mark.parametrize("title, expected", [
    ("CREATE TABLE", ("Statement", ["CREATE TABLE"])),
    ("DROP [TABLE] FUNCTION", ("Statement", ["DROP FUNCTION", "DROP TABLE FUNCTION"])),
    ("FULL [OUTER] JOIN", ("Query", ["FULL JOIN", "FULL OUTER JOIN"])),
    ("[INNER|CROSS] JOIN", ("Query", ["INNER JOIN", "CROSS JOIN"])),
    ("UNION", ("Query", ["UNION"])),
    ("FOR SYSTEM_TIME AS OF", ("Query", ["FOR SYSTEM_TIME AS OF"])),
    ("Joins", None),
    ("SELECT *", None),
])
def test_classify_expandable_title(title, expected):
    assert rules.classify_expandable_title(title, DOC + "query-syntax.html") == expected


def test_classify_expandable_title_on_ml_pages_gives_options():
    path = DOC + "bigqueryml-syntax-create.html"
    assert rules.classify_expandable_title("MODEL_TYPE", path) == ("Option", ["MODEL_TYPE"])


def test_classify_expandable_title_rejects_unknown_directives():
    path = DOC + "data-definition-language.html"
    with pytest.raises(ClassificationError) as excinfo:
        rules.classify_expandable_title("ALTER VIEW", path)
    assert excinfo.value.path == path
    assert excinfo.value.text == "ALTER VIEW"
    assert "Unknown directive" in str(excinfo.value)
