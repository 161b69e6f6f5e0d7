"""Text classifiers for headings, table cells and syntax snippets.

Each function here looks only at a string and returns what it denotes:
a name, a list of names, an ``(entry_type, names)`` pair, or ``None`` when
the text does not have the expected shape.  DOM traversal lives in
:mod:`bigquery_docset.extract`.
"""

import posixpath
import re

from .errors import ClassificationError
from .expand import expand

# Function names: ABS, NET.IP_NET_MASK, HLL_COUNT.MERGE, KEYS.NEW_KEYSET
_FN_WORD = r"[A-Z][A-Z0-9]*(?:[_.][A-Z0-9]+)*"
_FN_NAME = rf"{_FN_WORD}(?: {_FN_WORD})*"
# Upper-case keyword runs: SELECT, GROUP BY, CREATE EXTERNAL TABLE
_WORDS = r"[A-Z]+(?: [A-Z]+)*"
# Keywords allowing underscores: SYSTEM_TIME
_KEYWORD = r"(?:[A-Z]+_)*[A-Z]+"

_FN_NAME_RE = re.compile(_FN_NAME)
_FUNCTION_CALL_RE = re.compile(rf"({_FN_WORD})\(")
_CASE_RE = re.compile(r"(CASE(?: WHEN)?) ")
_TYPE_RE = re.compile(r"[A-Z][A-Z0-9]*")
_WORDS_RE = re.compile(_WORDS)
_CAPS_RE = re.compile(r"[A-Z]+")
_CLASS_WORD_RE = re.compile(r"([sS]tatement|[kK]eyword|[cC]lause)s?")
_SYNTAX_OPERATOR_RE = re.compile(r"\b[A-Z]+(?: \[?[A-Z]+\]?)+")
_PLACEHOLDER_RE = re.compile(r"\b[XYZ]\b")
_OPTION_GARBAGE_RE = re.compile(r"\A(\S+)\s.+", re.S)
_XML_SPACE_RE = re.compile(r"[ \t\r\n]+")

FUNCTION_TITLE_RE = re.compile(
    rf"{_FN_NAME}(?: (?:and|or) {_FN_NAME})*(?: (?P<thing>operators?|expr))?"
)
STATEMENT_TITLE_RE = re.compile(
    rf"(?P<words>{_WORDS}) (?P<kind>statement|keyword|[cC]lause|operator)"
    rf"(?: and {_WORDS} (?P=kind))?"
)
EXPANDABLE_TITLE_RE = re.compile(
    rf"(?:{_KEYWORD} )*(?:\[{_KEYWORD}(?:\|{_KEYWORD})*\] )?{_KEYWORD}"
)
OPERATOR_GROUP_RE = re.compile(r"(?:Arithmetic|Bitwise|Logical|Comparison) operators")
SYNTAX_OPERATOR_TITLE_RE = re.compile(r"(?:LIKE|IS DISTINCT FROM) operator")
OPTION_LIST_TITLE_RE = re.compile(r"\w+_option_list")
SUBQUERY_TITLE_RE = re.compile(r"([A-Z]{2,}) subqueries\b")
PROCEDURAL_TITLE_RE = re.compile(r"[A-Z]{2,}\b")

STATEMENT_LEADERS_RE = re.compile(r"(?:SELECT|CREATE|DROP|ASSERT)\b")
QUERY_TITLES = frozenset({
    "UNION", "INTERSECT", "EXCEPT", "FOR SYSTEM_TIME AS OF", "ROWS", "RANGE", "OPTIONS",
})

LOGICAL_OPERATORS = frozenset({"AND", "OR", "NOT"})
LOGICAL_NON_OPERATORS = frozenset({"TRUE", "FALSE", "NULL", "BOOL"})


def normalize_space(text):
    """Collapse runs of XML whitespace into single spaces and trim."""
    return _XML_SPACE_RE.sub(" ", text).strip(" \t\r\n")


def function_name(text):
    """Return the function a syntax cell such as ``ABS(X)`` documents."""
    m = _FUNCTION_CALL_RE.match(text) or _CASE_RE.match(text)
    return m.group(1) if m else None


def type_name(text):
    """Return *text* if it is a bare type identifier like ``INT64``."""
    return text if _TYPE_RE.fullmatch(text) else None


def syntax_operator(syntax):
    """Extract ``IS [NOT] DISTINCT FROM``-style operators from a syntax block."""
    m = _SYNTAX_OPERATOR_RE.search(syntax)
    return m.group(0) if m else None


def operator_names(syntax):
    """Return the operator names documented by an operator table cell.

    ``X + Y`` gives ``['+']``, ``~X`` gives ``['~ (Unary)']`` and
    ``X [NOT] LIKE Y`` gives both ``LIKE`` and ``NOT LIKE``.  Cells without
    an ``X`` operand are not operator syntax and give an empty list;
    ``None`` means the cell has an operand but no recognizable operator.
    """
    if not re.search(r"\bX\b", syntax):
        return []
    words = _PLACEHOLDER_RE.sub("", syntax).split()
    if not words:
        return None
    op = words[0]
    if op == "[NOT]":
        if len(words) < 2:
            return None
        return [words[1], f"NOT {words[1]}"]
    if syntax.startswith(op):
        return [f"{op} (Unary)"]
    return [op]


def logical_operator(text):
    """Classify a code span listed under *Logical operators*.

    Returns the operator name, ``""`` for known literals that are not
    operators, or ``None`` for anything else.
    """
    if text in LOGICAL_OPERATORS:
        return text
    if text in LOGICAL_NON_OPERATORS:
        return ""
    return None


def option_name(text):
    """Return ``(name, trimmed)`` for an option cell, dropping trailing text."""
    m = _OPTION_GARBAGE_RE.match(text)
    if m:
        return m.group(1), True
    return text, False


def window_frame_keywords(syntax):
    """Return the keyword runs of the window frame clause syntax."""
    return [words for words in _WORDS_RE.findall(syntax) if words != "AND"]


def _caps_runs(tokens):
    runs, run = [], []
    for token in tokens:
        if _CAPS_RE.fullmatch(token):
            run.append(token)
        elif run:
            runs.append(" ".join(run))
            run = []
    if run:
        runs.append(" ".join(run))
    return runs


def classify_function_title(title, heading_name):
    """Classify headings that simply name functions or operators.

    ``JSON_EXTRACT or JSON_EXTRACT_SCALAR`` names two functions, ``IN
    operators`` an operator.  Function-like titles under ``h6`` document
    query clauses.
    """
    m = FUNCTION_TITLE_RE.fullmatch(title)
    if not m:
        return None
    thing = m.group("thing") or ""
    if thing.startswith("operator"):
        entry_type = "Operator"
    elif heading_name == "h6":
        entry_type = "Query"
    else:
        entry_type = "Function"
    return entry_type, _FN_NAME_RE.findall(title)


def classify_statement_title(title):
    """Classify ``SELECT statement``, ``WITH clause``, ``UNNEST operator``..."""
    m = STATEMENT_TITLE_RE.fullmatch(title)
    if not m:
        return None
    entry_type = {"statement": "Statement", "operator": "Operator"}.get(m.group("kind"), "Query")
    return entry_type, _caps_runs(title.split(" "))


def classify_mixed_title(title):
    """Classify titles mixing keyword runs with class words.

    ``INSERT and UPDATE statements`` or ``GROUP BY and HAVING clauses``:
    every token must be an upper-case word, ``and``, or a class word, with
    at least one of each kind.  The last class word decides the type.
    """
    tokens = title.split(" ")
    class_words = []
    for token in tokens:
        m = _CLASS_WORD_RE.fullmatch(token)
        if m:
            class_words.append(m.group(1))
        elif token != "and" and not _CAPS_RE.fullmatch(token):
            return None
    names = _caps_runs(tokens)
    if not class_words or not names:
        return None
    entry_type = "Statement" if class_words[-1] == "statement" else "Query"
    return entry_type, names


def classify_expandable_title(title, path):
    """Classify keyword titles with an optional bracket group.

    ``FULL [OUTER] JOIN`` expands to every phrase it denotes.  Titles that
    are neither statements nor query clauses are only accepted on
    BigQuery ML pages, where they name model options.
    """
    if not EXPANDABLE_TITLE_RE.fullmatch(title):
        return None
    if STATEMENT_LEADERS_RE.match(title):
        entry_type = "Statement"
    elif re.search(r"\bJOIN\Z", title) or title in QUERY_TITLES:
        entry_type = "Query"
    elif posixpath.basename(path).startswith("bigqueryml-"):
        entry_type = "Option"
    else:
        raise ClassificationError(path, "Unknown directive", title)
    return entry_type, list(expand(title))
