"""Core constants: cache key prefixes and shared literal values.

Single source of truth for cache key structure and object-store
conventions (folder delimiter, marker content type).
"""

# Cache key prefixes (kind:<object key>[:<extra>])
CACHE_PREFIX_LISTING = "listing"
CACHE_PREFIX_SEARCH = "search"
CACHE_PREFIX_STAT = "stat"
CACHE_PREFIX_STATS = "stats"

# Delimiter for composite cache keys
CACHE_KEY_SEP = ":"

# Object store conventions
PATH_DELIMITER = "/"
FOLDER_CONTENT_TYPE = "application/x-directory"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
