import pytest
from bs4 import BeautifulSoup

from bigquery_docset.config import DOCS_RELPATH
from bigquery_docset.rewrite import find_last_updated, preprocess, rewrite_links, route_to

PAGE = DOCS_RELPATH + "index.html"


@pytest.fixture
def mirror(tmp_path):
    docs = tmp_path / DOCS_RELPATH
    docs.mkdir(parents=True)
    for name in ("index.html", "functions.html", "query-syntax.html"):
        (docs / name).write_text("<html></html>", encoding="utf-8")
    (docs / "guide").mkdir()
    (docs / "guide" / "index.html").write_text("<html></html>", encoding="utf-8")
    return tmp_path


def rewritten(mirror, href):
    soup = BeautifulSoup(f'<html><body><a href="{href}">x</a></body></html>', "lxml")
    rewrite_links(soup, PAGE, mirror)
    return soup.a["href"]


@pytest.mark.parametrize("base, target, expected", [
    ("https://h/a/b/page.html", "https://h/a/b/other.html", "other.html"),
    ("https://h/a/b/page.html", "https://h/a/c/x.html", "../c/x.html"),
    ("https://h/a/b/page.html", "https://h/a/b/page.html#frag", "#frag"),
    ("https://h/a/b/page.html", "https://h/a/b/guide/", "guide/"),
    ("https://h/a/b/page.html", "https://other/x.html", "https://other/x.html"),
    ("https://h/a/b/page.html", "http://h/a/b/x.html", "http://h/a/b/x.html"),
])
def test_route_to(base, target, expected):
    assert route_to(base, target) == expected


@pytest.mark.parametrize("href, expected", [
    ("functions", "functions.html"),
    ("functions.html#abs", "functions.html#abs"),
    ("query-syntax.md", "query-syntax.html"),
    ("guide/", "guide/index.html"),
    ("#frag", "#frag"),
    ("/bigquery/sql-reference/", "index.html"),
    ("/bigquery/docs/other", "https://cloud.google.com/bigquery/docs/other"),
    ("https://example.com/x", "https://example.com/x"),
    ("mailto:someone@example.com", "mailto:someone@example.com"),
])
def test_rewrite_links(mirror, href, expected):
    assert rewritten(mirror, href) == expected


def test_rewrite_links_reports_bad_urls_once(mirror, caplog):
    bad_hrefs = set()
    for _ in range(2):
        soup = BeautifulSoup('<a href="http://[bad">x</a>', "lxml")
        rewrite_links(soup, PAGE, mirror, bad_hrefs)
        assert soup.a["href"] == "http://[bad"
    assert bad_hrefs == {"http://[bad"}
    assert len([r for r in caplog.records if r.levelname == "WARNING"]) == 1


def test_rewrite_links_drops_external_stylesheets(mirror):
    soup = BeautifulSoup(
        '<html><head><link rel="stylesheet" href="https://fonts.example.com/css">'
        '<link rel="stylesheet" href="functions.html"></head></html>',
        "lxml",
    )
    rewrite_links(soup, PAGE, mirror)
    assert [link["href"] for link in soup.find_all("link")] == ["functions.html"]


def test_find_last_updated():
    soup = BeautifulSoup(
        "<devsite-content-footer><p>Content is licensed.</p>"
        "<p>Last updated 2024-03-05 UTC.</p></devsite-content-footer>",
        "lxml",
    )
    assert find_last_updated(soup) == "2024-03-05"
    assert find_last_updated(BeautifulSoup("<p>Last updated 2024-03-05</p>", "lxml")) is None


def test_preprocess(mirror):
    soup = BeautifulSoup(
        "<html><head>"
        '<meta charset="utf-8"><meta name="description" content="x">'
        '<meta name="viewport" content="width=device-width">'
        '<script src="app.js"></script><link rel="canonical" href="https://x/">'
        "</head><body>"
        "<header>Site chrome</header>"
        '<article class="devsite-article">'
        '<nav class="devsite-breadcrumb-list">Crumbs</nav>'
        "<h1>Standard SQL</h1><devsite-feedback>Helpful?</devsite-feedback>"
        "</article>"
        "<devsite-content-footer><p>Last updated 2024-03-05 UTC.</p></devsite-content-footer>"
        "</body></html>",
        "lxml",
    )
    assert preprocess(soup, PAGE, mirror) == "2024-03-05"

    assert [m.attrs for m in soup.find_all("meta")] == [
        {"charset": "utf-8"},
        {"name": "viewport", "content": "width=device-width"},
    ]
    assert soup.find("script") is None
    assert soup.find("header") is None
    assert soup.find("nav") is None
    assert soup.find("devsite-feedback") is None
    assert soup.body.h1.get_text() == "Standard SQL"
    assert [link["href"] for link in soup.head.find_all("link")] == ["common.css"]
    stamp = soup.body.find("span", itemprop="datePublished")
    assert stamp["content"] == "2024-03-05T00:00:00Z"
