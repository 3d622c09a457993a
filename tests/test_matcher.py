"""Tests for the matcher and the coverage resolver.

The matcher tests use plain stand-ins for projects and vendors and a
counting resolver, so they never touch the database.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from marketplace.services import matcher
from marketplace.services.coverage_resolver import CoverageResolver, normalize_state


class CountingResolver:
    def __init__(self, mapping):
        self.mapping = mapping
        self.calls = 0

    def resolve(self, coverage_area_ids):
        self.calls += 1
        states = set()
        for cid in coverage_area_ids:
            states |= self.mapping.get(cid, set())
        return states


def _project(category="it", state="TX"):
    return SimpleNamespace(service_category_id=category, project_state=state)


def _vendor(services=("it",), areas=("houston",), approved=True):
    return SimpleNamespace(
        is_approved=approved,
        service_ids=set(services),
        coverage_area_ids=list(areas),
    )


@pytest.fixture
def resolver():
    return CountingResolver({"houston": {"TX"}, "la": {"CA"}, "okc": {"OK"}})


class TestMatch:
    def test_service_and_location_match(self, resolver):
        result = matcher.match(_project(), _vendor(), resolver)
        assert result.is_match is True
        assert result.reasons == [matcher.SERVICE_MATCH, matcher.LOCATION_MATCH]
        assert result.score == 100

    def test_location_miss_keeps_service_reason(self, resolver):
        result = matcher.match(_project(state="CA"), _vendor(areas=("houston",)), resolver)
        assert result.is_match is False
        assert result.reasons == [matcher.SERVICE_MATCH]
        assert result.score == 50

    def test_service_miss_skips_coverage_lookup(self, resolver):
        result = matcher.match(_project(category="cleaning"), _vendor(), resolver)
        assert result.is_match is False
        assert result.reasons == []
        assert resolver.calls == 0

    def test_unapproved_vendor_never_matches(self, resolver):
        result = matcher.match(_project(), _vendor(approved=False), resolver)
        assert result.is_match is False
        assert resolver.calls == 0

    def test_approval_flip_changes_outcome(self, resolver):
        vendor = _vendor()
        assert matcher.match(_project(), vendor, resolver).is_match is True
        vendor.is_approved = False
        assert matcher.match(_project(), vendor, resolver).is_match is False

    def test_state_name_and_case_are_normalised(self, resolver):
        assert matcher.match(_project(state="texas"), _vendor(), resolver).is_match
        assert matcher.match(_project(state=" tx "), _vendor(), resolver).is_match

    def test_multiple_coverage_areas(self, resolver):
        vendor = _vendor(areas=("la", "okc"))
        assert matcher.match(_project(state="OK"), vendor, resolver).is_match
        assert not matcher.match(_project(state="TX"), vendor, resolver).is_match

    def test_vendor_without_coverage(self, resolver):
        result = matcher.match(_project(), _vendor(areas=()), resolver)
        assert result.is_match is False

    def test_custom_points(self, resolver):
        result = matcher.match(_project(), _vendor(), resolver, points=10)
        assert result.score == 20

    def test_unknown_state_is_no_match(self, resolver):
        result = matcher.match(_project(state="Atlantis"), _vendor(), resolver)
        assert result.is_match is False
        assert resolver.calls == 0


class TestNormalizeState:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("TX", "TX"),
            ("tx", "TX"),
            ("Texas", "TX"),
            ("  new   york ", "NY"),
            ("District of Columbia", "DC"),
            ("", None),
            (None, None),
            ("Ontario", None),
        ],
    )
    def test_normalize(self, value, expected):
        assert normalize_state(value) == expected


class TestCoverageResolver:
    def test_empty_input_does_no_io(self):
        store = MagicMock()
        resolver = CoverageResolver(store)
        assert resolver.resolve([]) == set()
        assert resolver.resolve(None) == set()
        store.find.assert_not_called()

    def test_resolves_and_caches(self):
        store = MagicMock()
        store.find.return_value = [
            SimpleNamespace(id="a1", state="tx"),
            SimpleNamespace(id="a2", state="California"),
        ]
        resolver = CoverageResolver(store)

        assert resolver.resolve(["a1", "a2"]) == {"TX", "CA"}
        assert resolver.resolve(["a2", "a1"]) == {"TX", "CA"}
        assert store.find.call_count == 1

    def test_unknown_ids_are_ignored(self):
        store = MagicMock()
        store.find.return_value = [SimpleNamespace(id="a1", state="TX")]
        resolver = CoverageResolver(store)

        assert resolver.resolve(["a1", "missing"]) == {"TX"}
        assert resolver.resolve(["missing"]) == set()
        assert store.find.call_count == 1

    def test_against_database(self, store, seed_data):
        resolver = CoverageResolver(store)
        states = resolver.resolve([seed_data["houston_id"], seed_data["la_id"]])
        assert states == {"TX", "CA"}
