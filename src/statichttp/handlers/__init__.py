"""
=============================================================================
FILESYSTEM HANDLERS
=============================================================================

Turns a validated request path into file content.

    PathResolver   request path  ──►  ResolvedTarget (with index fallback)
    ContentLoader  file path     ──►  LoadedContent (bytes + "html"/"plain")

Both report failure with FileLoadError, which carries the HTTP status the
client should get (403, 404 or 400).

=============================================================================
USAGE
=============================================================================

    from statichttp.handlers import PathResolver, ContentLoader

    resolver = PathResolver("/srv/www")
    loader = ContentLoader()

    target = resolver.resolve("/")            # → /srv/www/index.html
    content = loader.load(target.path)
    content.content_type                      # → "html"

=============================================================================
"""

from .static import (
    DEFAULT_INDEX_FILES,
    ContentLoader,
    FileLoadError,
    LoadedContent,
    PathResolver,
    ResolvedTarget,
)

__all__ = [
    "DEFAULT_INDEX_FILES",
    "ContentLoader",
    "FileLoadError",
    "LoadedContent",
    "PathResolver",
    "ResolvedTarget",
]
