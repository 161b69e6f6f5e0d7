"""Index entry extraction from rewritten reference pages.

Every page goes through the same steps: offline rewriting, registration of
its ``h1`` as a Section, and a page handler chosen by file name.  Handlers
walk headings and tables, registering entries through :class:`Page`, which
both inserts the Dash anchor into the document and records the row in the
search index.

Heading handlers are driven by ordered rule tables.  The first rule whose
matcher accepts a heading's title wins; unless the rule says otherwise the
heading is then also registered as a Section.
"""

import logging
import posixpath
import re
from pathlib import Path
from typing import Any, Callable, NamedTuple

from bs4 import BeautifulSoup

from . import rules
from .anchors import make_anchor
from .config import DOCS_RELPATH
from .errors import ClassificationError
from .rewrite import preprocess

log = logging.getLogger(__name__)

ALL_HEADINGS = "h2[id], h3[id], h4[id], h5[id], h6[id]"

FUNCTION_PAGES = frozenset({
    "conversion_rules.html",
    "conditional_expressions.html",
    "operators.html",
    "table-functions-built-in.html",
})


class Page:
    """A parsed document and the index it registers entries into."""

    def __init__(self, path, soup, index):
        self.path = path
        self.soup = soup
        self.index = index
        self.basename = posixpath.basename(path)
        self.entries = 0

    def add(self, node, entry_type, name):
        """Register *name* as *entry_type*, anchored at *node*."""
        anchor, url = make_anchor(self.path, entry_type, name)
        node.insert(0, self.soup.new_tag("a", attrs={"name": anchor, "class": "dashAnchor"}))
        self.index.insert(name, entry_type, url)
        self.entries += 1

    def fail(self, message, text):
        raise ClassificationError(self.path, message, text)


class HeadingRule(NamedTuple):
    match: Callable[[Page, Any, str], Any]
    apply: Callable[[Page, Any, str, Any], None]
    section: bool = True


# ── DOM helpers ────────────────────────────────────────────────────────────────

def text_of(node):
    return rules.normalize_space(node.get_text())


def header_label(table, position=1):
    """Return the text of the *position*-th ``th`` in the table's header row."""
    thead = table.find("thead", recursive=False)
    tr = thead.find("tr", recursive=False) if thead else None
    if tr is None:
        return None
    cells = tr.find_all("th", recursive=False)
    if len(cells) < position:
        return None
    return text_of(cells[position - 1])


def tables_headed(soup, labels):
    return [table for table in soup.find_all("table") if header_label(table) in labels]


def body_rows(table):
    rows = table.select(":scope > tbody > tr")
    if rows:
        return rows
    return [tr for tr in table.find_all("tr", recursive=False) if tr.find("td", recursive=False)]


def cell(tr, position):
    cells = tr.find_all("td", recursive=False)
    return cells[position - 1] if len(cells) >= position else None


def following_table(h):
    """Return the first table at or inside a sibling following *h*."""
    for sibling in h.find_next_siblings():
        if sibling.name == "table":
            return sibling
        table = sibling.find("table")
        if table is not None:
            return table
    return None


def following_code_block(page, h):
    pre = h.find_next_sibling("pre")
    code = pre.find("code", recursive=False) if pre else None
    if code is None:
        page.fail("No syntax block after", text_of(h))
    return code


def nested_list_items(h, prefix):
    """Yield sub-items of list entries starting with *prefix* after *h*."""
    for sibling in h.find_next_siblings():
        for li in sibling.find_all("li"):
            if text_of(li).startswith(prefix):
                for ul in li.find_all("ul", recursive=False):
                    yield from ul.find_all("li", recursive=False)


def in_selector_tabs(h):
    return any("ds-selector-tabs" in " ".join(p.get("class") or []) for p in h.parents)


# ── Rule building blocks ───────────────────────────────────────────────────────

def titled(*titles):
    return lambda page, h, title: title in titles


def matching(pattern):
    return lambda page, h, title: pattern.fullmatch(title)


def nothing(page, h, title, match):
    pass


def register(entry_type, name):
    def apply(page, h, title, match):
        page.add(h, entry_type, name.format(title=title))
    return apply


def register_all(page, h, title, result):
    entry_type, names = result
    for name in names:
        page.add(h, entry_type, name)


def scan_headings(page, selector, heading_rules, skip=None):
    for h in page.soup.select(selector):
        if skip is not None and skip(h):
            continue
        title = text_of(h)
        section = True
        for rule in heading_rules:
            match = rule.match(page, h, title)
            if match:
                rule.apply(page, h, title, match)
                section = rule.section
                break
        if section:
            page.add(h, "Section", title)


# ── Function and operator pages ───────────────────────────────────────────────

def syntax_operator(page, h, title, match):
    code = following_code_block(page, h)
    op = rules.syntax_operator(code.get_text())
    if op is None:
        page.fail("Unknown operator syntax", code.get_text())
    page.add(h, "Operator", op)


def logical_operators(page, h, title, match):
    p = h.find_next_sibling("p")
    if p is None:
        return
    for code in p.find_all("code", recursive=False):
        text = code.get_text()
        op = rules.logical_operator(text)
        if op is None:
            page.fail("Unknown logical operator", text)
        if op:
            page.add(h, "Operator", op)


def operator_group(page, h, title, match):
    table = following_table(h)
    if table is None:
        return
    for tr in body_rows(table):
        td = cell(tr, 2)
        if td is None:
            continue
        for code in td.find_all("code", recursive=False):
            syntax = text_of(code)
            names = rules.operator_names(syntax)
            if names is None:
                page.fail("Unknown operator", syntax)
            for name in names:
                page.add(h, "Operator", name)


def subscript_operator(page, h, title, match):
    page.add(h, "Operator", f"[] ({title})")
    for li in nested_list_items(h, "position_keyword(index):"):
        code = li.find("code", recursive=False)
        name = rules.function_name(code.get_text()) if code else None
        if name:
            page.add(h, "Function", name)


def quantified_like(page, h, title, match):
    for li in nested_list_items(h, "quantifier:"):
        code = li.find("code")
        m = re.match(r"[A-Z]+", code.get_text()) if code else None
        if m:
            page.add(h, "Operator", f"LIKE {m.group(0)}")


def unknown_section(page, h, title, match):
    page.fail("Unknown section", title)


FUNCTION_PAGE_RULES = (
    HeadingRule(matching(rules.SYNTAX_OPERATOR_TITLE_RE), syntax_operator),
    HeadingRule(
        lambda page, h, title: rules.classify_function_title(title, h.name),
        register_all,
        section=False,
    ),
    HeadingRule(titled("Logical operators"), logical_operators),
    HeadingRule(matching(rules.OPERATOR_GROUP_RE), operator_group),
    HeadingRule(titled("Field access operator"), register("Operator", ".")),
    HeadingRule(titled("Array subscript operator", "Struct subscript operator"), subscript_operator),
    HeadingRule(titled("JSON subscript operator"), register("Operator", "[] ({title})")),
    HeadingRule(titled("Date arithmetics operators", "Interval arithmetic operators"), nothing),
    HeadingRule(titled("Quantified LIKE operator"), quantified_like),
    HeadingRule(titled("Concatenation operator"), register("Operator", "||")),
    HeadingRule(lambda page, h, title: re.search(r" operators?\Z", title), unknown_section),
    HeadingRule(titled("Casting"), register("Function", "CAST")),
    HeadingRule(titled("Safe casting"), register("Function", "SAFE_CAST")),
)


def function_page(page):
    for table in tables_headed(page.soup, ("Syntax", "Function")):
        for tr in body_rows(table):
            td = cell(tr, 1)
            if td is None:
                continue
            text = text_of(td)
            name = rules.function_name(text)
            if name is None:
                page.fail("Unknown function", text)
            page.add(td, "Function", name)

    scan_headings(page, ALL_HEADINGS, FUNCTION_PAGE_RULES)


# ── Statement and query pages ─────────────────────────────────────────────────

def sql_syntax(page, h, title, match):
    if page.basename == "query-syntax.html":
        page.add(h, "Statement", "SELECT")


def _is_option_table(table):
    for tr in table.find_all("tr"):
        th = tr.find("th", recursive=False)
        if th is not None and text_of(th) in ("Options", "NAME"):
            return True
    return False


def option_list(page, h, title, match):
    for e in h.find_next_siblings():
        if re.fullmatch(r"h[1-6]", e.name) and e.name <= h.name:
            break
        if e.name != "table" or not _is_option_table(e):
            continue
        for tr in e.find_all("tr"):
            td = tr.find("td", recursive=False)
            code = td.find("code", recursive=False) if td else None
            if code is None:
                continue
            name, trimmed = rules.option_name(text_of(code))
            if trimmed:
                log.warning("%s: garbage found in option %s", page.path, text_of(code))
            page.add(td, "Option", name)


def window_frame(page, h, title, match):
    code = following_code_block(page, h)
    for query in rules.window_frame_keywords(code.get_text()):
        page.add(code, "Query", query)


STATEMENT_PAGE_RULES = (
    HeadingRule(titled("SQL syntax"), sql_syntax),
    HeadingRule(titled("Syntax"), nothing, section=False),
    HeadingRule(matching(rules.OPTION_LIST_TITLE_RE), option_list),
    HeadingRule(titled("Defining the window frame clause"), window_frame),
    HeadingRule(lambda page, h, title: rules.classify_statement_title(title), register_all),
    HeadingRule(lambda page, h, title: rules.classify_mixed_title(title), register_all),
    HeadingRule(lambda page, h, title: rules.classify_expandable_title(title, page.path), register_all),
)


def statement_page(page):
    scan_headings(page, ALL_HEADINGS, STATEMENT_PAGE_RULES, skip=in_selector_tabs)


# ── Other page shapes ─────────────────────────────────────────────────────────

def index_page(page):
    scan_headings(page, "h2[id]", ())
    h = page.soup.select_one("h3#sql")
    if h is None:
        return
    p = h.find_next_sibling("p")
    if p is None:
        return
    for code in p.find_all("code"):
        directive = text_of(code)
        if directive.startswith("#"):
            page.add(code, "Directive", directive)


DATA_TYPE_RULES = (
    HeadingRule(titled("Format", "Canonical format", "Examples"), nothing, section=False),
)


def data_types_page(page):
    scan_headings(page, ALL_HEADINGS, DATA_TYPE_RULES)

    for h in page.soup.select('h2[id$="-type"]'):
        table = following_table(h)
        if table is None:
            continue
        for tr in body_rows(table):
            td = cell(tr, 1)
            if td is not None:
                page.add(td, "Type", text_of(td))

    for table in tables_headed(page.soup, ("Name",)):
        for tr in body_rows(table):
            td = cell(tr, 1)
            if td is None:
                continue
            for code in td.find_all("code", recursive=False):
                text = text_of(code)
                name = rules.type_name(text)
                if name is None:
                    page.fail("Unknown type", text)
                page.add(td, "Type", name)


PROCEDURAL_RULES = (
    HeadingRule(
        lambda page, h, title: rules.PROCEDURAL_TITLE_RE.match(title),
        lambda page, h, title, match: page.add(h, "Statement", title),
        section=False,
    ),
)


def procedural_page(page):
    scan_headings(page, "h2[id], h3[id]", PROCEDURAL_RULES)


def sections_page(page):
    scan_headings(page, ALL_HEADINGS, ())


SUBQUERY_RULES = (
    HeadingRule(
        lambda page, h, title: rules.SUBQUERY_TITLE_RE.match(title),
        lambda page, h, title, match: page.add(h, "Query", match.group(1)),
        section=False,
    ),
    HeadingRule(
        lambda page, h, title: re.match(r"Array subqueries\b", title),
        register("Query", "ARRAY"),
        section=False,
    ),
)


def subqueries_page(page):
    scan_headings(page, "h2[id], h3[id]", SUBQUERY_RULES)


def summary_page(page):
    # functions-and-operators.html repeats the per-topic function pages.
    pass


def is_function_page(basename):
    return bool(re.search(r"(?:utility-|_)functions\.html\Z", basename)) or basename in FUNCTION_PAGES


PAGE_HANDLERS = (
    (lambda basename: basename == "index.html", index_page),
    (lambda basename: basename == "data-types.html", data_types_page),
    (lambda basename: basename == "functions-and-operators.html", summary_page),
    (is_function_page, function_page),
    (lambda basename: basename == "procedural-language.html", procedural_page),
    (lambda basename: basename == "aead-encryption-concepts.html", sections_page),
    (lambda basename: basename == "subqueries.html", subqueries_page),
)


def handler_for(basename):
    for matches, handler in PAGE_HANDLERS:
        if matches(basename):
            return handler
    return statement_page


# ── Driver ─────────────────────────────────────────────────────────────────────

def extract_entries(page):
    """Register the page's h1 and run its page handler."""
    h1 = page.soup.find("h1")
    if h1 is not None:
        page.add(h1, "Section", text_of(h1))
    handler_for(page.basename)(page)
    return page.entries


def index_document(root, path, index, bad_hrefs=None):
    """Rewrite and index the document at *path* (relative to *root*)."""
    file = Path(root) / path
    soup = BeautifulSoup(file.read_text(encoding="utf-8"), "lxml")
    preprocess(soup, path, Path(root), bad_hrefs)
    page = Page(path, soup, index)
    count = extract_entries(page)
    file.write_text(str(soup), encoding="utf-8")
    log.debug("%s: %d entries", path, count)
    return count


def document_paths(root):
    """Return the mirror-relative paths of every reference page, sorted."""
    docs = Path(root) / DOCS_RELPATH
    return sorted(p.relative_to(root).as_posix() for p in docs.glob("*.html"))


def index_documents(root, index):
    """Index every reference page under *root*; return the entry count."""
    bad_hrefs = set()
    paths = document_paths(root)
    total = 0
    for path in paths:
        total += index_document(root, path, index, bad_hrefs)
    log.info("Indexed %d entries from %d documents", total, len(paths))
    return total
