"""Build constants and environment-driven settings."""

import os
from pathlib import Path
from urllib.parse import urljoin, urlsplit

PACKAGE_DIR = Path(__file__).parent.resolve()

DOCSET_NAME = "BigQuery Standard SQL"
DOCSET = f"{DOCSET_NAME.replace(' ', '_')}.docset"
DOCSET_ARCHIVE = f"{DOCSET_NAME.replace(' ', '_')}.tgz"
ROOT_RELPATH = "Contents/Resources/Documents"
INDEX_RELPATH = "Contents/Resources/docSet.dsidx"

DOCS_URL = "https://cloud.google.com/bigquery/docs/reference/standard-sql/"
HOST_URL = urljoin(DOCS_URL, "/")
# Mirror directory as laid out by wget (one folder per host).
DOCS_DIR = Path(urlsplit(DOCS_URL).netloc)
# Documents path relative to the mirror root, e.g. "bigquery/docs/.../standard-sql/".
DOCS_RELPATH = urlsplit(DOCS_URL).path.lstrip("/")

ICON_SITE_URL = "https://cloudplatform-jp.googleblog.com/2015/04/google-bigquery.html"
ICON_TITLE = "Google BigQuery"
ICON_FILE = Path("icon.png")
ICON_SIZE = (64, 64)

COMMON_CSS = PACKAGE_DIR / "common.css"
COMMON_CSS_URL = urljoin(DOCS_URL, COMMON_CSS.name)
FETCH_LOG = "wget.log"

WGET_REJECT_REGEX = (
    r"\?hl=|\?_gl=|://cloud\.google\.com/images/"
    r"(artwork|backgrounds|home|icons|logos)/|\.md$"
)

DUC_OWNER = "knu"
DUC_REPO = f"git@github.com:{DUC_OWNER}/Dash-User-Contributions.git"
DUC_OWNER_UPSTREAM = "Kapeli"
DUC_REPO_UPSTREAM = f"https://github.com/{DUC_OWNER_UPSTREAM}/Dash-User-Contributions.git"
DUC_WORKDIR = Path("Dash-User-Contributions")
DUC_BRANCH = "bigquery"

# (tag, attribute) pairs whose URLs are rewritten to point into the mirror.
URI_ATTRS = (
    ("a", "href"),
    ("img", "src"),
    ("link", "href"),
    ("script", "src"),
)

# Candidate suffixes probed, in order, when mapping a URL onto a local file.
FILE_SUFFIXES = ("", "/index.html", ".html")

# Site paths that only redirect to the reference root.
INDEX_ALIASES = frozenset({"bigquery/sql-reference"})


def build_version():
    """Return the version forced through ``BUILD_VERSION``, if any."""
    return os.environ.get("BUILD_VERSION") or None


def previous_version_override():
    """Return the diff baseline forced through ``PREVIOUS_VERSION``, if any."""
    return os.environ.get("PREVIOUS_VERSION") or None
