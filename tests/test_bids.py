"""Tests for bid submission and bid listings."""

from decimal import Decimal

import pytest

from marketplace.errors import (
    AuthorizationError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from marketplace.extensions import db
from marketplace.models.activity import ProjectActivity
from marketplace.models.bid import Bid
from marketplace.models.project import Project
from marketplace.services import bid_service, lifecycle_service, routing_service


class TestSubmitBid:
    def test_first_bid_creates_row_and_advances(self, store, seed_data, published_project):
        vendor_id = seed_data["vendor_a_id"]
        bid = bid_service.submit_bid(
            store, published_project, vendor_id, 5000, "3 weeks", vendor_id,
            notes="Includes after-hours cutover.",
        )
        db.session.commit()

        assert bid.status == "submitted"
        assert bid.bid_amount == Decimal("5000.00")
        assert bid.proposed_timeline == "3 weeks"

        routing = routing_service.get_routing(store, published_project, vendor_id)
        assert routing.status == "bid_submitted"

        project = store.get(Project, published_project)
        assert project.status == "in_review"
        assert store.count(ProjectActivity, project_id=published_project, action="bid_submitted") == 1
        assert store.count(ProjectActivity, project_id=published_project, action="in_review") == 1

    def test_update_in_place_with_existing_bid_id(self, store, seed_data, published_project):
        vendor_id = seed_data["vendor_a_id"]
        bid = bid_service.submit_bid(store, published_project, vendor_id, "5000", "3 weeks", vendor_id)
        db.session.commit()
        bid_id = bid.id

        updated = bid_service.submit_bid(
            store, published_project, vendor_id, "4500.50", "2 weeks", vendor_id,
            existing_bid_id=bid_id,
        )
        db.session.commit()

        assert updated.id == bid_id
        assert updated.bid_amount == Decimal("4500.50")
        assert updated.proposed_timeline == "2 weeks"
        assert store.count(Bid, project_id=published_project, vendor_id=vendor_id) == 1
        assert store.count(ProjectActivity, project_id=published_project, action="bid_updated") == 1
        # second bid does not re-transition the project
        assert store.count(ProjectActivity, project_id=published_project, action="in_review") == 1

    def test_resubmit_without_bid_id_is_rejected(self, store, seed_data, published_project):
        vendor_id = seed_data["vendor_a_id"]
        bid = bid_service.submit_bid(store, published_project, vendor_id, "5000", "3 weeks", vendor_id)
        db.session.commit()

        with pytest.raises(PreconditionError) as exc:
            bid_service.submit_bid(store, published_project, vendor_id, "6000", "4 weeks", vendor_id)
        assert exc.value.details == {"existing_bid_id": bid.id}
        assert store.count(Bid, project_id=published_project) == 1

    @pytest.mark.parametrize("amount", [0, -10, "abc", "", None, True, "NaN"])
    def test_invalid_amount(self, store, seed_data, published_project, amount):
        vendor_id = seed_data["vendor_a_id"]
        with pytest.raises(ValidationError):
            bid_service.submit_bid(store, published_project, vendor_id, amount, "3 weeks", vendor_id)

    def test_amount_with_currency_formatting(self):
        assert bid_service.parse_amount("$5,000") == Decimal("5000.00")

    @pytest.mark.parametrize("timeline", ["", "   ", None, "<b></b>"])
    def test_timeline_required(self, store, seed_data, published_project, timeline):
        vendor_id = seed_data["vendor_a_id"]
        with pytest.raises(ValidationError):
            bid_service.submit_bid(store, published_project, vendor_id, 100, timeline, vendor_id)

    def test_unrouted_vendor_cannot_bid(self, store, seed_data, published_project):
        vendor_id = seed_data["vendor_b_id"]
        with pytest.raises(PreconditionError):
            bid_service.submit_bid(store, published_project, vendor_id, 100, "1 week", vendor_id)

    def test_interested_vendor_can_bid(self, store, seed_data, published_project):
        vendor_id = seed_data["vendor_b_id"]
        routing_service.express_interest(store, published_project, vendor_id, vendor_id)
        bid = bid_service.submit_bid(store, published_project, vendor_id, 900, "10 days", vendor_id)
        assert bid.status == "submitted"
        routing = routing_service.get_routing(store, published_project, vendor_id)
        assert routing.status == "bid_submitted"

    def test_declined_vendor_cannot_bid(self, store, seed_data, published_project):
        vendor_id = seed_data["vendor_a_id"]
        lifecycle_service.decline_or_withdraw(store, published_project, vendor_id, vendor_id)
        with pytest.raises(PreconditionError):
            bid_service.submit_bid(store, published_project, vendor_id, 100, "1 week", vendor_id)

    def test_cannot_bid_for_someone_else(self, store, seed_data, published_project):
        with pytest.raises(AuthorizationError):
            bid_service.submit_bid(
                store, published_project, seed_data["vendor_a_id"], 100, "1 week",
                seed_data["vendor_b_id"],
            )

    def test_cannot_bid_on_draft(self, store, seed_data, make_project):
        project_id = make_project()
        vendor_id = seed_data["vendor_a_id"]
        with pytest.raises(PreconditionError):
            bid_service.submit_bid(store, project_id, vendor_id, 100, "1 week", vendor_id)

    def test_unknown_existing_bid_id(self, store, seed_data, published_project):
        vendor_id = seed_data["vendor_a_id"]
        with pytest.raises(NotFoundError):
            bid_service.submit_bid(
                store, published_project, vendor_id, 100, "1 week", vendor_id,
                existing_bid_id="does-not-exist",
            )

    def test_notes_are_sanitised(self, store, seed_data, published_project):
        vendor_id = seed_data["vendor_a_id"]
        bid = bid_service.submit_bid(
            store, published_project, vendor_id, 100, "1 week", vendor_id,
            notes="<script>alert(1)</script>Fast turnaround",
        )
        assert "<script>" not in bid.response_notes
        assert "Fast turnaround" in bid.response_notes


class TestBidListings:
    def test_vendor_sees_own_bids(self, store, seed_data, published_project):
        vendor_id = seed_data["vendor_a_id"]
        bid_service.submit_bid(store, published_project, vendor_id, 5000, "3 weeks", vendor_id)
        db.session.commit()

        bids = bid_service.list_bids_for_vendor(store, vendor_id, vendor_id)
        assert len(bids) == 1
        assert bids[0].project.id == published_project

        with pytest.raises(AuthorizationError):
            bid_service.list_bids_for_vendor(store, vendor_id, seed_data["vendor_b_id"])

    def test_owner_sees_bids_with_vendor_labels(self, store, seed_data, published_project):
        vendor_id = seed_data["vendor_a_id"]
        bid_service.submit_bid(store, published_project, vendor_id, 5000, "3 weeks", vendor_id)
        db.session.commit()

        bids = bid_service.list_bids_for_project(
            store, published_project, seed_data["business_id"]
        )
        assert len(bids) == 1
        assert bids[0]["vendor_profile"]["company_name"] == "Alpha IT"

        with pytest.raises(AuthorizationError):
            bid_service.list_bids_for_project(
                store, published_project, seed_data["other_business_id"]
            )
