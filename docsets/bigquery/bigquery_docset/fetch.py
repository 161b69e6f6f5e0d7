"""Mirroring of the reference site and download of the docset icon."""

import gzip
import io
import logging
import re
import subprocess
from pathlib import Path
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from PIL import Image

from .config import (
    DOCS_DIR,
    DOCS_URL,
    FETCH_LOG,
    ICON_FILE,
    ICON_SITE_URL,
    ICON_SIZE,
    ICON_TITLE,
    WGET_REJECT_REGEX,
)
from .errors import DocsetError

log = logging.getLogger(__name__)

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

_GZIP_MAGIC = b"\x1f\x8b"
_DOCTYPE_RE = re.compile(rb"<!DOCTYPE html>", re.I)


def _wget(workdir, *args):
    options = [
        "-nv", "--append-output", FETCH_LOG, "-N", "-p", "-E",
        f"--reject-regex={WGET_REJECT_REGEX}",
    ]
    try:
        result = subprocess.run(["wget", *options, *args], cwd=workdir, check=False)
    except FileNotFoundError:
        log.error("wget not found. Please install wget:")
        log.error("  Ubuntu/Debian: sudo apt-get install wget")
        log.error("  macOS: brew install wget")
        raise
    if result.returncode != 0:
        # wget exits non-zero for any 404 among page requisites.
        log.warning("wget exited with status %d; see %s", result.returncode, FETCH_LOG)


def fetch_docs(workdir):
    """Mirror the reference into ``<workdir>/cloud.google.com``."""
    workdir = Path(workdir)
    log.info("Downloading %s", DOCS_URL)
    _wget(workdir, DOCS_URL)
    _wget(workdir, "-r", "--no-parent", urljoin(DOCS_URL, "query-syntax"))
    normalize_mirror(workdir / DOCS_DIR)


def normalize_mirror(mirror):
    """Decompress gzip'd files and give HTML files an ``.html`` suffix.

    Google serves some assets gzip-encoded even when asked for identity
    encoding, and wget saves them as-is.
    """
    for path in sorted(p for p in Path(mirror).rglob("*") if p.is_file()):
        with open(path, "rb") as fh:
            head = fh.read(2)
        if head == _GZIP_MAGIC:
            log.info("Uncompressing %s", path)
            with gzip.open(path, "rb") as fh:
                data = fh.read()
            path.write_bytes(data)

        if path.suffix == ".html":
            continue
        with open(path, "rb") as fh:
            head = fh.read(255)
        if _DOCTYPE_RE.search(head):
            suffixed = path.with_name(path.name + ".html")
            if suffixed.is_file():
                path.unlink()
            else:
                path.rename(suffixed)


def fetch_icon(dest=ICON_FILE):
    """Download the BigQuery logo and save it as a 64x64 PNG at *dest*."""
    resp = requests.get(ICON_SITE_URL, timeout=30, headers=_HEADERS)
    resp.raise_for_status()
    soup = BeautifulSoup(resp.text, "lxml")
    img = soup.find("img", title=ICON_TITLE)
    if img is None or not img.get("src"):
        raise DocsetError(f"No image titled {ICON_TITLE!r} found at {ICON_SITE_URL}")

    image_url = urljoin(ICON_SITE_URL, img["src"])
    log.info("Downloading icon from %s", image_url)
    resp = requests.get(image_url, timeout=60, headers=_HEADERS)
    resp.raise_for_status()

    with Image.open(io.BytesIO(resp.content)) as image:
        image.convert("RGBA").resize(ICON_SIZE, Image.LANCZOS).save(dest, "PNG")
    log.info("Saved icon to %s", dest)
