import pytest
from bs4 import BeautifulSoup

from bigquery_docset.config import DOCS_RELPATH
from bigquery_docset.extract import Page
from bigquery_docset.index import SearchIndex


@pytest.fixture
def index(tmp_path):
    with SearchIndex(tmp_path / "docSet.dsidx", create=True) as idx:
        yield idx


@pytest.fixture
def make_page(index):
    """Build a Page for *body* as if it were the named reference document."""
    def make(body, filename="query-syntax.html"):
        html = f"<html><head><title>Test</title></head><body>{body}</body></html>"
        return Page(DOCS_RELPATH + filename, BeautifulSoup(html, "lxml"), index)
    return make


@pytest.fixture
def entries(index):
    """Return the (name, type) pairs currently in the index."""
    def collect():
        return {(name, entry_type) for name, entry_type, _ in index.rows()}
    return collect
