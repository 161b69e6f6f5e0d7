"""Dash anchor identifiers (``//apple_ref/cpp/<type>/<name>``)."""

from urllib.parse import quote_plus


def _encode(s):
    # Form-component encoding: only A-Z a-z 0-9 * - . _ stay literal.
    return quote_plus(s, safe="*").replace("~", "%7E").replace("+", "%20")


def anchor_id(entry_type, name):
    """Return the anchor name Dash uses to locate *name* of *entry_type*."""
    return f"//apple_ref/cpp/{_encode(entry_type)}/{_encode(name)}"


def make_anchor(path, entry_type, name):
    """Return ``(anchor, path#anchor)`` for an entry found in document *path*."""
    anchor = anchor_id(entry_type, name)
    return anchor, f"{path}#{anchor}"
