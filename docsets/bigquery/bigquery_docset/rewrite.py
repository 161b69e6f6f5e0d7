"""Offline rewriting of mirrored devsite pages.

Everything here mutates a parsed page in place before entries are extracted
from it: site chrome and scripts are dropped, links are pointed at the local
mirror, and the shared stylesheet is attached.
"""

import logging
import posixpath
import re
from urllib.parse import urljoin, urlsplit, urlunsplit

from .config import COMMON_CSS_URL, DOCS_URL, FILE_SUFFIXES, HOST_URL, INDEX_ALIASES, URI_ATTRS

log = logging.getLogger(__name__)

_DATE_RE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")


def route_to(base, target):
    """Return *target* as a URL relative to *base* when both share a host."""
    b, t = urlsplit(base), urlsplit(target)
    if (b.scheme, b.netloc) != (t.scheme, t.netloc):
        return target
    target_path = t.path or "/"
    if target_path == (b.path or "/") and (t.query or t.fragment):
        rel = ""
    else:
        rel = posixpath.relpath(target_path, posixpath.dirname(b.path) or "/")
        if target_path.endswith("/") and not rel.endswith("/"):
            rel += "/"
    return urlunsplit(("", "", rel, t.query, t.fragment))


def document_url(path):
    """Return the public URL a mirrored document *path* was fetched from."""
    return urljoin(HOST_URL, path)


def find_last_updated(soup):
    """Return the ``YYYY-MM-DD`` date in the devsite footer, if present."""
    for p in soup.select("devsite-content-footer p"):
        text = p.get_text()
        if text.startswith("Last updated "):
            m = _DATE_RE.search(text)
            return m.group(1) if m else None
    return None


def strip_metadata(soup):
    """Drop scripts, non-stylesheet links and all but the essential metas."""
    for meta in soup.find_all("meta"):
        if not (meta.has_attr("charset") or meta.get("name") == "viewport"):
            meta.decompose()
    for script in soup.find_all("script"):
        script.decompose()
    for link in soup.find_all("link"):
        if " ".join(link.get("rel") or []) != "stylesheet":
            link.decompose()


def _local_target(parts, root):
    """Map an on-host URL onto the mirror under *root*, or return None."""
    localpath = parts.path.lstrip("/")
    if localpath.endswith("/"):
        localpath = localpath[:-1]

    if localpath in INDEX_ALIASES:
        return parts._replace(path=urlsplit(urljoin(DOCS_URL, "index.html")).path)

    for suffix in FILE_SUFFIXES:
        candidate = (localpath + suffix).lstrip("/")
        if candidate and (root / candidate).is_file():
            path = parts.path[:-1] if parts.path.endswith("/") else parts.path
            return parts._replace(path=path + suffix)
    return None


def rewrite_links(soup, path, root, bad_hrefs=None):
    """Point every URL attribute at the local mirror where possible.

    URLs that resolve to a file under *root* become relative to the
    document; everything else is made absolute so it still resolves once
    the page is read from inside the docset.  Unparsable URLs are left
    untouched and reported once per distinct href through *bad_hrefs*.
    """
    if bad_hrefs is None:
        bad_hrefs = set()
    uri = document_url(path)
    host = urlsplit(HOST_URL)

    for tag, attr in URI_ATTRS:
        for e in soup.select(f"{tag}[{attr}]"):
            href = e[attr]
            try:
                parts = urlsplit(urljoin(uri, href))
            except ValueError as exc:
                if href not in bad_hrefs:
                    bad_hrefs.add(href)
                    log.warning("%s in %s", exc, path)
                continue
            if parts.scheme not in ("http", "https"):
                continue

            if parts.path.endswith(".md"):
                parts = parts._replace(path=parts.path[: -len(".md")])

            if (parts.scheme, parts.netloc) != (host.scheme, host.netloc):
                e[attr] = urlunsplit(parts)
                continue

            local = _local_target(parts, root)
            if local is None:
                e[attr] = urlunsplit(parts)
            else:
                e[attr] = route_to(uri, urlunsplit(local))

    for link in soup.find_all("link", href=lambda h: h and "//" in h):
        link.decompose()


def simplify(soup):
    """Reduce the body to the devsite article and drop feedback widgets."""
    article = soup.select_one("article.devsite-article")
    body = soup.body
    if article is not None and body is not None:
        article.extract()
        body.clear()
        for child in list(article.contents):
            body.append(child)

    for e in soup.select(".devsite-breadcrumb-list"):
        e.decompose()
    for e in soup.select("devsite-feedback, devsite-hats-survey, devsite-thumb-rating"):
        e.decompose()


def add_stylesheet(soup, path):
    """Attach the shared ``common.css`` to the page's head."""
    head = soup.head
    if head is None:
        head = soup.new_tag("head")
        (soup.html or soup).insert(0, head)
    head.append(
        soup.new_tag(
            "link",
            attrs={"rel": "stylesheet", "href": route_to(document_url(path), COMMON_CSS_URL)},
        )
    )


def stamp_published(soup, date):
    """Record *date* as a machine-readable ``datePublished`` marker."""
    body = soup.body or soup
    body.append(
        soup.new_tag(
            "span",
            attrs={"itemprop": "datePublished", "content": f"{date}T00:00:00Z"},
        )
    )


def preprocess(soup, path, root, bad_hrefs=None):
    """Apply every offline rewrite to the page at mirror-relative *path*."""
    last_updated = find_last_updated(soup)

    strip_metadata(soup)
    rewrite_links(soup, path, root, bad_hrefs)
    simplify(soup)
    add_stylesheet(soup, path)

    if last_updated:
        stamp_published(soup, last_updated)
    return last_updated
