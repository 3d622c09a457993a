"""Coverage resolver — coverage-area ids → canonical state codes.

Vendors declare coverage as CoverageArea ids; projects carry a state. The
resolver turns the former into a set of 2-letter codes the matcher can
compare against the latter.

Usage:
    resolver = CoverageResolver(store)
    resolver.resolve(vendor.coverage_area_ids)   # {"TX", "OK"}
    normalize_state("texas")                     # "TX"

Resolution is memoised per resolver instance. A routing pass builds one
resolver, so vendors sharing coverage areas cost a single query each.
"""

import logging

from marketplace.models.catalog import CoverageArea

logger = logging.getLogger(__name__)


US_STATES = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "DC": "District of Columbia",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
}

_NAME_TO_CODE = {name.lower(): code for code, name in US_STATES.items()}


def normalize_state(value):
    """Return the canonical 2-letter code for a state code or name, else None.

    Case and surrounding whitespace are ignored: "tx", " TX ", "Texas" and
    "TEXAS" all give "TX".
    """
    if not value:
        return None
    cleaned = " ".join(str(value).split())
    if not cleaned:
        return None
    upper = cleaned.upper()
    if upper in US_STATES:
        return upper
    return _NAME_TO_CODE.get(cleaned.lower())


class CoverageResolver:
    def __init__(self, store):
        self.store = store
        self._cache = {}  # coverage_area_id -> state code (or None)

    def resolve(self, coverage_area_ids):
        """Return the set of state codes covered by the given area ids.

        Empty or None input returns an empty set without touching the store.
        Unknown ids are ignored.
        """
        ids = {cid for cid in (coverage_area_ids or []) if cid}
        if not ids:
            return set()

        missing = ids - self._cache.keys()
        if missing:
            areas = self.store.find(CoverageArea, id=missing)
            for area in areas:
                self._cache[area.id] = normalize_state(area.state)
            for cid in missing - {a.id for a in areas}:
                logger.debug(f"Coverage area {cid} not found; ignoring.")
                self._cache[cid] = None

        return {self._cache[cid] for cid in ids if self._cache.get(cid)}
