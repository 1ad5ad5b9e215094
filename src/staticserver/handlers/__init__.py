"""
Request handlers: path resolution, directory rendering and static file
serving.

    from staticserver.handlers import StaticFileHandler

    handler = StaticFileHandler("./public", index_filename="index.html")
    response = handler.handle(request)
"""

from .resolver import (
    PathResolver,
    PathEscapeError,
    FileTarget,
    DirectoryTarget,
    NotFound,
    IllegalPath,
    Resolution,
)
from .listing import DirectoryRenderer, Listing
from .static import StaticFileHandler

__all__ = [
    "PathResolver",
    "PathEscapeError",
    "FileTarget",
    "DirectoryTarget",
    "NotFound",
    "IllegalPath",
    "Resolution",
    "DirectoryRenderer",
    "Listing",
    "StaticFileHandler",
]
