"""
Cache key generation for upstream resources.

Keys are namespaced by resource so that identical URLs fetched for different
purposes never share an entry.
"""

STATIONS = "stations"
LOCATIONS = "loc"
RAILCARDS = "railcards"
FARES = "fares"
POSTCODES = "postcode"


def upstream_cache_key(resource: str, url: str) -> str:
    """Generate the cache key for a fully-qualified upstream URL.

    Args:
        resource: Resource namespace such as ``fares`` or ``loc``
        url: Upstream URL including its query string

    Returns:
        Standardized cache key string
    """
    return f"{resource}:{url}"


def postcode_cache_key(normalized_postcode: str) -> str:
    """Generate the cache key for a normalized postcode lookup."""
    return f"{POSTCODES}:{normalized_postcode}"
