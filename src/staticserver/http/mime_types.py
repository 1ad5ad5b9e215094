"""
=============================================================================
CONTENT-TYPE CLASSIFICATION
=============================================================================

Maps a file's extension to the MIME type sent in the Content-Type header.

=============================================================================
HOW CLASSIFICATION WORKS
=============================================================================

    ┌────────────────────────────────────────────────────────────────────┐
    │                    EXTENSION → MIME TYPE                           │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   /srv/site/index.html     suffix "html"   →  text/html             │
    │   /srv/site/old.htm        suffix "htm"    →  text/html             │
    │   /srv/site/data.json      suffix "json"   →  application/json      │
    │   /srv/site/style.css      suffix "css"    →  text/css              │
    │   /srv/site/app.js         suffix "js"     →  text/javascript       │
    │   /srv/site/README         (no suffix)     →  text/plain            │
    │   /srv/site/photo.png      (not in table)  →  text/plain            │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

Rules:

1. ONLY THE EXTENSION COUNTS. File contents are never sniffed.

2. MATCHING IS CASE-SENSITIVE. "INDEX.HTML" is classified as text/plain.
   To serve upper-case extensions, add them to MIME_TYPES explicitly.

3. UNKNOWN MEANS text/plain. There is no octet-stream fallback; anything
   outside the table is presented as plain text.

4. EXTEND, DON'T INFER. New types go into the table below. The platform
   `mimetypes` registry is intentionally not consulted, so the server
   answers the same way on every machine.

=============================================================================
"""

from pathlib import PurePath
from typing import Union


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Keys are extensions WITHOUT the leading dot, matched case-sensitively.
#
# =============================================================================

MIME_TYPES = {
    "html": "text/html",
    "htm": "text/html",
    "json": "application/json",
    "css": "text/css",
    "js": "text/javascript",
}

DEFAULT_MIME_TYPE = "text/plain"

# Type used for generated directory listings
LISTING_MIME_TYPE = "text/html"


def get_extension(path: Union[str, PurePath]) -> str:
    """
    Return the extension of the last path component, without the dot.

    Dotfiles have no extension (".bashrc" → ""), matching pathlib.

    Examples:
        >>> get_extension("/a/b/data.json")
        'json'
        >>> get_extension("archive.tar.gz")
        'gz'
        >>> get_extension("Makefile")
        ''
    """
    return PurePath(path).suffix[1:]


def get_content_type(path: Union[str, PurePath]) -> str:
    """
    Classify a file by its extension.

    Args:
        path: Filesystem path (or bare name) of the file being served.

    Returns:
        The MIME type for the Content-Type header.

    Examples:
        >>> get_content_type("index.html")
        'text/html'
        >>> get_content_type("INDEX.HTML")
        'text/plain'
        >>> get_content_type("notes")
        'text/plain'
    """
    return MIME_TYPES.get(get_extension(path), DEFAULT_MIME_TYPE)
