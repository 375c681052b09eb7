"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Earthquake record model and ordering
- Timestamp resolution
- Approximate distance and admission tiers
- Location localization
- Agency (TMD) and global (USGS) feed parsing
- Sample data

All functions here are deterministic and have no I/O.
"""

from quakefeed.core.earthquake import EarthquakeRecord, Source, merge_records
from quakefeed.core.geo import approximate_distance
from quakefeed.core.admission import AdmissionPolicy, AdmissionTier, admit
from quakefeed.core.locations import localize_agency_title, localize_global_place
from quakefeed.core.agency_feed import parse_agency_feed
from quakefeed.core.global_feed import parse_global_feed
from quakefeed.core.samples import sample_records

__all__ = [
    # Earthquake
    "EarthquakeRecord",
    "Source",
    "merge_records",
    # Geo
    "approximate_distance",
    # Admission
    "AdmissionPolicy",
    "AdmissionTier",
    "admit",
    # Locations
    "localize_agency_title",
    "localize_global_place",
    # Feeds
    "parse_agency_feed",
    "parse_global_feed",
    # Samples
    "sample_records",
]
