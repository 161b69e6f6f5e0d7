"""Building, archiving, diffing and publishing the docset."""

import json
import logging
import os
import plistlib
import shutil
import subprocess
import sys
import tarfile
import tempfile
from datetime import datetime
from pathlib import Path

from bs4 import BeautifulSoup

from .config import (
    COMMON_CSS,
    DOCS_DIR,
    DOCS_RELPATH,
    DOCS_URL,
    DOCSET,
    DOCSET_ARCHIVE,
    DOCSET_NAME,
    DUC_BRANCH,
    DUC_OWNER,
    DUC_REPO,
    DUC_REPO_UPSTREAM,
    DUC_WORKDIR,
    FETCH_LOG,
    ICON_FILE,
    INDEX_RELPATH,
    ROOT_RELPATH,
    build_version,
    previous_version_override,
)
from .errors import VersionError
from .extract import document_paths, index_documents
from .fetch import fetch_docs, fetch_icon
from .index import SearchIndex, dump_index
from .rewrite import find_last_updated
from .sanity import validate

log = logging.getLogger(__name__)


# ── Versions ──────────────────────────────────────────────────────────────────

def published_date(soup):
    """Return the ``YYYY-MM-DD`` publication date recorded in a page."""
    stamp = soup.find(attrs={"itemprop": "datePublished", "content": True})
    if stamp is not None:
        return stamp["content"][:10]
    return find_last_updated(soup)


def extract_version(docs_root):
    """Return the latest publication date of the documents as ``YYYY.MM.DD``."""
    version = ""
    for path in document_paths(docs_root):
        soup = BeautifulSoup((Path(docs_root) / path).read_text(encoding="utf-8"), "lxml")
        date = published_date(soup)
        if date:
            version = max(version, datetime.strptime(date, "%Y-%m-%d").strftime("%Y.%m.%d"))
    return version


def version_key(version):
    return tuple(int(part) for part in version.split("."))


def current_version(workdir):
    version = build_version() or extract_version(Path(workdir) / DOCSET / ROOT_RELPATH)
    if not version:
        raise VersionError("Version unknown")
    return version


def previous_version(workdir):
    """Return the newest version under ``versions/`` older than the current one."""
    override = previous_version_override()
    if override:
        return override
    current = version_key(current_version(workdir))
    older = [
        path.parent.name
        for path in Path(workdir).glob(f"versions/*/{DOCSET}")
        if version_key(path.parent.name) < current
    ]
    if not older:
        raise VersionError("No previous version found")
    return max(older, key=version_key)


def built_docset(workdir):
    version = build_version()
    if version:
        return Path(workdir) / "versions" / version / DOCSET
    return Path(workdir) / DOCSET


def previous_docset(workdir, version=None):
    return Path(workdir) / "versions" / (version or previous_version(workdir)) / DOCSET


# ── Build ─────────────────────────────────────────────────────────────────────

def write_info_plist(contents_dir):
    """Write the ``Info.plist`` required by Dash."""
    plist = {
        "CFBundleIdentifier": "bigquery",
        "CFBundleName": DOCSET_NAME,
        "DocSetPlatformFamily": "bigquery",
        "isDashDocset": True,
        "isJavaScriptEnabled": False,
        "dashIndexFilePath": f"{DOCS_RELPATH}index.html",
        "DashDocSetFamily": "dashtoc",
        "DashDocSetFallbackURL": DOCS_URL,
    }
    with open(Path(contents_dir) / "Info.plist", "wb") as fh:
        plistlib.dump(plist, fh)


def _skip_ds_store(tarinfo):
    return None if os.path.basename(tarinfo.name) == ".DS_Store" else tarinfo


def make_archive(docset, archive):
    log.info("Creating archive: %s", archive)
    with tarfile.open(str(archive), "w:gz") as tar:
        tar.add(str(docset), arcname=Path(docset).name, filter=_skip_ds_store)
    log.info("Archive created: %s (%.1f MB)", archive, Path(archive).stat().st_size / 1_000_000)


def sync_tree(src, dest):
    """Make *dest* an exact copy of *src*, minus ``.DS_Store`` files."""
    if dest.exists():
        shutil.rmtree(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(src, dest, ignore=shutil.ignore_patterns(".DS_Store"))


def build(workdir):
    """Build the docset from the mirror in *workdir* and archive it."""
    workdir = Path(workdir)
    docset = workdir / DOCSET
    archive = workdir / DOCSET_ARCHIVE

    if not (workdir / DOCS_DIR).is_dir():
        fetch_docs(workdir)
    if not (workdir / ICON_FILE).is_file():
        fetch_icon(workdir / ICON_FILE)

    if docset.exists():
        shutil.rmtree(docset)
    archive.unlink(missing_ok=True)

    docs_root = docset / ROOT_RELPATH
    docs_root.mkdir(parents=True)
    write_info_plist(docset / "Contents")
    shutil.copy2(workdir / ICON_FILE, docset / ICON_FILE.name)
    shutil.copytree(workdir / DOCS_DIR, docs_root, dirs_exist_ok=True)

    version = build_version() or extract_version(docs_root)
    if not version:
        raise VersionError("Version unknown")
    log.info("Generating docset for %s %s", DOCSET_NAME, version)

    shutil.copy2(COMMON_CSS, docs_root / DOCS_RELPATH / COMMON_CSS.name)

    log.info("Indexing documents")
    with SearchIndex(docset / INDEX_RELPATH, create=True) as index:
        index_documents(docs_root, index)
        index.commit()
        log.info("Performing sanity check")
        validate(index)

    make_archive(docset, archive)
    sync_tree(docset, workdir / "versions" / version / DOCSET)
    log.info("Finished creating %s %s", DOCSET, version)
    return version


# ── Dump and diff ─────────────────────────────────────────────────────────────

def _diff(args, out):
    result = subprocess.run(["diff", *args], capture_output=True, text=True, check=False)
    if result.returncode > 1:
        log.warning("diff failed: %s", result.stderr.strip())
    out.write(result.stdout)
    out.flush()


def diff_index(workdir, out=None, previous=None):
    """Write a unified diff of the previous and the built index to *out*."""
    out = out or sys.stdout
    old_docset = previous_docset(workdir, previous)
    new_docset = built_docset(workdir)
    with tempfile.TemporaryDirectory() as tmp:
        old_txt = Path(tmp) / "old.txt"
        new_txt = Path(tmp) / "new.txt"
        with open(old_txt, "w", encoding="utf-8") as fh:
            dump_index(old_docset, fh)
        with open(new_txt, "w", encoding="utf-8") as fh:
            dump_index(new_docset, fh)
        out.write("Diff in document indexes:\n")
        _diff(["-U3", str(old_txt), str(new_txt)], out)


def diff_docs(workdir, out=None):
    """Write a recursive diff of the previous and the built documents to *out*."""
    out = out or sys.stdout
    old_root = previous_docset(workdir) / ROOT_RELPATH
    new_root = built_docset(workdir) / ROOT_RELPATH
    out.write("Diff in document files:\n")
    _diff(["-rNU3", "-x", "*.js", "-x", "*.css", "-x", "*.svg", str(old_root), str(new_root)], out)


# ── Publishing ────────────────────────────────────────────────────────────────

def git(*args, cwd, check=True):
    return subprocess.run(["git", *args], cwd=cwd, check=check)


def update_docset_json(path, version, archive):
    """Record *version* in a Dash-User-Contributions ``docset.json``.

    Returns the updated ``specific_versions`` list, newest first.
    """
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    data["version"] = version
    entry = {"version": version, "archive": archive}
    versions = [entry] + [v for v in data.get("specific_versions", []) if v != entry]
    data["specific_versions"] = versions
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=4, ensure_ascii=False)
        fh.write("\n")
    return versions


def ensure_contrib_repo(workdir):
    repo = Path(workdir) / DUC_WORKDIR
    if not repo.is_dir():
        git("clone", DUC_REPO, str(repo), cwd=workdir)
        git("remote", "add", "upstream", DUC_REPO_UPSTREAM, cwd=repo)
        git("remote", "update", "upstream", cwd=repo)
    return repo


def push(workdir):
    """Commit the built archive to the contributions fork and push it."""
    workdir = Path(workdir)
    version = extract_version(workdir / DOCSET / ROOT_RELPATH)
    if not version:
        raise VersionError("Version unknown")
    repo = ensure_contrib_repo(workdir)
    target = repo / "docsets" / Path(DOCSET).stem

    log.info("Resetting the working directory")
    git("remote", "update", cwd=target)
    if git("rev-parse", "--verify", "--quiet", DUC_BRANCH, cwd=target, check=False).returncode == 0:
        git("checkout", DUC_BRANCH, cwd=target)
        git("reset", "--hard", "upstream/master", cwd=target)
    else:
        git("checkout", "-b", DUC_BRANCH, "upstream/master", cwd=target)

    archive = target / DOCSET_ARCHIVE
    versioned_archive = target / "versions" / version / DOCSET_ARCHIVE
    shutil.copy2(workdir / DOCSET_ARCHIVE, archive)
    versioned_archive.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(archive, versioned_archive)

    docset_json = target / "docset.json"
    log.info("Updating %s", docset_json)
    specific_versions = update_docset_json(
        docset_json, version, versioned_archive.relative_to(target).as_posix()
    )

    if git("diff", "--exit-code", "--quiet", docset_json.name, cwd=target, check=False).returncode == 0:
        log.info("Nothing to commit.")
        return False

    git("diff", docset_json.name, cwd=target)
    git(
        "add",
        *(p.relative_to(target).as_posix() for p in (archive, versioned_archive, docset_json)),
        cwd=target,
    )
    git("commit", "-m", f"Update {DOCSET_NAME} docset to {version}", cwd=target)
    git("push", "-fu", "origin", f"{DUC_BRANCH}:{DUC_BRANCH}", cwd=target)

    if len(specific_versions) > 1:
        last_version = specific_versions[1]["version"]
        log.info("Diff to the latest version %s:", last_version)
        diff_index(workdir, previous=last_version)

    log.info(
        "New docset is committed and pushed to %s:%s. To send a PR, go to %s/compare/master...%s:%s?expand=1",
        DUC_OWNER, DUC_BRANCH, DUC_REPO_UPSTREAM.removesuffix(".git"), DUC_OWNER, DUC_BRANCH,
    )
    return True


def clean(workdir):
    """Delete fetched and generated files."""
    workdir = Path(workdir)
    for name in (DOCS_DIR, ICON_FILE, DOCSET, DOCSET_ARCHIVE, FETCH_LOG):
        path = workdir / name
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
