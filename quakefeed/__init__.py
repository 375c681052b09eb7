"""quakefeed - resilient earthquake feed aggregation for Thailand.

Fetches recent earthquakes from the Thai Meteorological Department RSS feed
and the USGS GeoJSON feed, normalizes both into one record schema, and
serves a merged, filtered, time-ordered list backed by a TTL cache.
"""

__version__ = "1.0.0"
