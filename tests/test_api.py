"""HTTP tests — auth, the project/lead/admin blueprints, headers and CLI.

One test client is shared per test; switching users is just logging in
again as someone else.
"""

import pytest
from werkzeug.security import generate_password_hash

from marketplace.extensions import db
from marketplace.models.bid import Bid
from marketplace.models.project import Project
from marketplace.models.routing import ProjectRouting
from marketplace.models.user import User
from marketplace.models.vendor import VendorProfile


def _login(client, email, password):
    return client.post("/auth/login", json={"email": email, "password": password})


@pytest.fixture
def as_user(client, seed_data):
    def _as(email):
        response = _login(client, email, seed_data["password"])
        assert response.status_code == 200, response.get_json()
        return client

    return _as


class TestAuth:
    def test_login_and_me(self, client, seed_data):
        response = _login(client, "owner@acme.test", seed_data["password"])
        assert response.status_code == 200
        assert response.get_json()["user"]["role"] == "business"

        me = client.get("/auth/me").get_json()
        assert me["user"]["email"] == "owner@acme.test"

    def test_bad_password(self, client, seed_data):
        response = _login(client, "owner@acme.test", "wrong")
        assert response.status_code == 401
        assert response.get_json()["ok"] is False

    def test_missing_fields(self, client, seed_data):
        response = client.post("/auth/login", json={"email": "owner@acme.test"})
        assert response.status_code == 400

    def test_deactivated_user(self, client, seed_data):
        user = db.session.get(User, seed_data["business_id"])
        user.is_active = False
        db.session.commit()
        response = _login(client, "owner@acme.test", seed_data["password"])
        assert response.status_code == 403

    def test_anonymous_gets_json_401(self, client, seed_data):
        response = client.get("/api/projects")
        assert response.status_code == 401
        assert response.get_json() == {"ok": False, "error": "Authentication required."}

    def test_vendor_me_includes_profile(self, as_user):
        client = as_user("a@vendor.test")
        me = client.get("/auth/me").get_json()
        assert me["user"]["vendor_profile"]["company_name"] == "Alpha IT"

    def test_csrf_token_endpoint(self, client):
        response = client.get("/auth/csrf-token")
        assert response.status_code == 200
        assert response.get_json()["csrf_token"]


class TestProjectFlow:
    def _create_and_publish(self, client, **overrides):
        body = {
            "title": "Office network refresh",
            "service_category": "IT Services",
            "project_state": "TX",
            "budget_min": 3000,
            "budget_max": 8000,
        }
        body.update(overrides)
        created = client.post("/api/projects", json=body)
        assert created.status_code == 201, created.get_json()
        project_id = created.get_json()["project"]["id"]
        assert created.get_json()["project"]["status"] == "draft"

        published = client.post(f"/api/projects/{project_id}/publish")
        assert published.status_code == 200, published.get_json()
        return project_id, published.get_json()

    def test_publish_routes_tx_project(self, as_user, seed_data):
        client = as_user("owner@acme.test")
        project_id, body = self._create_and_publish(client)

        assert body["project"]["status"] == "open"
        assert body["routing"]["ok"] is True
        assert body["routing"]["matched_vendors"] == 1
        assert body["routing"]["matched"][0]["vendor_id"] == seed_data["vendor_a_id"]

        routed = {r.vendor_id: r.status for r in ProjectRouting.query.filter_by(project_id=project_id)}
        assert routed == {seed_data["vendor_a_id"]: "routed"}

    def test_bid_assign_complete(self, as_user, seed_data):
        client = as_user("owner@acme.test")
        project_id, _ = self._create_and_publish(client)

        # Vendor A sees the lead and bids $5,000 / "3 weeks"
        client = as_user("a@vendor.test")
        leads = client.get("/api/leads").get_json()["leads"]
        assert [lead["project_id"] for lead in leads] == [project_id]

        response = client.post(
            f"/api/leads/{project_id}/bids",
            json={"bid_amount": 5000, "proposed_timeline": "3 weeks"},
        )
        assert response.status_code == 201, response.get_json()
        bid = response.get_json()["bid"]
        assert bid["status"] == "submitted"
        assert bid["bid_amount"] == 5000.0

        routing = ProjectRouting.query.filter_by(
            project_id=project_id, vendor_id=seed_data["vendor_a_id"]
        ).first()
        assert routing.status == "bid_submitted"

        # Business assigns vendor A
        client = as_user("owner@acme.test")
        response = client.post(
            f"/api/projects/{project_id}/assign",
            json={"vendor_id": seed_data["vendor_a_id"]},
        )
        assert response.status_code == 200, response.get_json()
        assert response.get_json()["project"]["status"] == "selected"
        assert response.get_json()["project"]["selected_vendor_id"] == seed_data["vendor_a_id"]

        # Vendor A marks it complete
        client = as_user("a@vendor.test")
        response = client.post(f"/api/leads/{project_id}/complete")
        assert response.status_code == 200
        assert response.get_json()["project_status"] == "completed"

        assert db.session.get(Project, project_id).status == "completed"

    def test_update_bid_over_http(self, as_user, seed_data):
        client = as_user("owner@acme.test")
        project_id, _ = self._create_and_publish(client)

        client = as_user("a@vendor.test")
        first = client.post(
            f"/api/leads/{project_id}/bids",
            json={"bid_amount": "5000", "proposed_timeline": "3 weeks"},
        ).get_json()["bid"]

        duplicate = client.post(
            f"/api/leads/{project_id}/bids",
            json={"bid_amount": "4000", "proposed_timeline": "3 weeks"},
        )
        assert duplicate.status_code == 409
        assert duplicate.get_json()["details"]["existing_bid_id"] == first["id"]

        updated = client.post(
            f"/api/leads/{project_id}/bids",
            json={
                "bid_amount": "4000",
                "proposed_timeline": "2 weeks",
                "existing_bid_id": first["id"],
            },
        )
        assert updated.status_code == 200
        assert updated.get_json()["bid"]["bid_amount"] == 4000.0
        assert Bid.query.filter_by(project_id=project_id).count() == 1

    def test_second_assignment_conflict(self, as_user, seed_data):
        client = as_user("owner@acme.test")
        project_id, _ = self._create_and_publish(client)

        client = as_user("b@vendor.test")
        assert client.post(f"/api/leads/{project_id}/interest").status_code == 200

        client = as_user("owner@acme.test")
        first = client.post(
            f"/api/projects/{project_id}/assign", json={"vendor_id": seed_data["vendor_a_id"]}
        )
        assert first.status_code == 200
        second = client.post(
            f"/api/projects/{project_id}/assign", json={"vendor_id": seed_data["vendor_b_id"]}
        )
        assert second.status_code == 409
        assert second.get_json()["ok"] is False

    def test_validation_error_is_400(self, as_user):
        client = as_user("owner@acme.test")
        response = client.post(
            "/api/projects",
            json={"title": "x", "service_category": "IT Services", "project_state": "Narnia"},
        )
        assert response.status_code == 400
        assert "state" in response.get_json()["error"]

    def test_vendor_cannot_create_project(self, as_user):
        client = as_user("a@vendor.test")
        response = client.post(
            "/api/projects",
            json={"title": "x", "service_category": "IT Services", "project_state": "TX"},
        )
        assert response.status_code == 403

    def test_not_found_is_404(self, as_user):
        client = as_user("owner@acme.test")
        response = client.get("/api/projects/does-not-exist")
        assert response.status_code == 404
        assert response.get_json()["ok"] is False

    def test_cancel_and_delete(self, as_user):
        client = as_user("owner@acme.test")
        project_id, _ = self._create_and_publish(client)

        response = client.post(f"/api/projects/{project_id}/cancel", json={"reason": "On hold"})
        assert response.get_json()["project"]["status"] == "cancelled"

        activity = client.get(f"/api/projects/{project_id}/activity").get_json()["activity"]
        assert [a["action"] for a in activity].count("cancelled") == 1

        response = client.delete(f"/api/projects/{project_id}")
        assert response.status_code == 200
        assert db.session.get(Project, project_id) is None

    def test_decline_over_http(self, as_user, seed_data):
        client = as_user("owner@acme.test")
        project_id, _ = self._create_and_publish(client)

        client = as_user("a@vendor.test")
        response = client.post(f"/api/leads/{project_id}/decline")
        assert response.status_code == 200
        assert response.get_json()["project_status"] == "open"
        assert client.get("/api/leads?status=declined").get_json()["leads"][0]["project_id"] == project_id

    def test_available_projects(self, as_user):
        client = as_user("owner@acme.test")
        project_id, _ = self._create_and_publish(client)

        client = as_user("b@vendor.test")
        projects = client.get("/api/leads/available").get_json()["projects"]
        assert [p["id"] for p in projects] == [project_id]


class TestVendorsAndAdmin:
    def test_catalog(self, as_user):
        client = as_user("a@vendor.test")
        categories = client.get("/api/catalog/service-categories").get_json()
        assert {c["name"] for c in categories["service_categories"]} == {
            "IT Services",
            "Commercial Cleaning",
        }
        areas = client.get("/api/catalog/coverage-areas?state=texas").get_json()
        assert [a["region"] for a in areas["coverage_areas"]] == ["Houston"]

    def test_update_capabilities(self, as_user, seed_data):
        client = as_user("b@vendor.test")
        response = client.put(
            "/api/vendors/me/capabilities",
            json={"coverage_area_ids": [seed_data["houston_id"]]},
        )
        assert response.status_code == 200
        areas = response.get_json()["vendor"]["coverage_areas"]
        assert [a["state"] for a in areas] == ["TX"]

    def test_vendor_onboarding(self, as_user, seed_data):
        db.session.add(
            User(
                email="d@vendor.test",
                password_hash=generate_password_hash(seed_data["password"]),
                full_name="Delta Networks",
                role="vendor",
            )
        )
        db.session.commit()
        client = as_user("d@vendor.test")
        assert client.get("/api/vendors/me").status_code == 404

        response = client.post(
            "/api/vendors/me",
            json={
                "company_name": "Delta Networks",
                "service_ids": [seed_data["it_id"]],
                "coverage_area_ids": [seed_data["houston_id"]],
            },
        )
        assert response.status_code == 201
        vendor = response.get_json()["vendor"]
        assert vendor["is_approved"] is False
        assert vendor["contact_email"] == "d@vendor.test"

        assert client.get("/api/vendors/me").status_code == 200
        again = client.post("/api/vendors/me", json={"company_name": "Delta"})
        assert again.status_code == 400

    def test_onboarding_requires_vendor_role(self, as_user):
        client = as_user("owner@acme.test")
        response = client.post("/api/vendors/me", json={"company_name": "Acme"})
        assert response.status_code == 403

    def test_admin_projects_and_stats(self, as_user, seed_data):
        client = as_user("owner@acme.test")
        created = client.post(
            "/api/projects",
            json={"title": "Helpdesk", "service_category": "IT Services", "project_state": "TX"},
        ).get_json()["project"]
        client.post(f"/api/projects/{created['id']}/publish")

        client = as_user("admin@marketplace.test")
        projects = client.get("/api/admin/projects").get_json()["projects"]
        assert [p["business_name"] for p in projects] == ["Acme Logistics"]
        assert projects[0]["routed_vendors"] == 1

        stats = client.get("/api/admin/stats").get_json()
        assert stats["ok"] is True
        assert stats["metrics"]["open_projects"] == 1
        assert stats["metrics"]["match_rate"] == 100.0

        client = as_user("owner@acme.test")
        assert client.get("/api/admin/stats").status_code == 403

    def test_update_capabilities_unknown_id(self, as_user):
        client = as_user("b@vendor.test")
        response = client.put(
            "/api/vendors/me/capabilities", json={"service_ids": ["nope"]}
        )
        assert response.status_code == 400

    def test_admin_approval(self, as_user, seed_data):
        client = as_user("admin@marketplace.test")
        response = client.post(
            f"/api/admin/vendors/{seed_data['vendor_c_id']}/approval",
            json={"approved": True},
        )
        assert response.status_code == 200
        assert response.get_json()["vendor"]["is_approved"] is True

        pending = client.get("/api/admin/vendors?approved=false").get_json()["vendors"]
        assert pending == []

    def test_admin_routes_require_admin(self, as_user, seed_data):
        client = as_user("owner@acme.test")
        response = client.post(
            f"/api/admin/vendors/{seed_data['vendor_c_id']}/approval",
            json={"approved": True},
        )
        assert response.status_code == 403
        assert db.session.get(VendorProfile, _profile_id(seed_data["vendor_c_id"])).is_approved is False

    def test_admin_reroute_and_overview(self, as_user, seed_data):
        client = as_user("owner@acme.test")
        created = client.post(
            "/api/projects",
            json={"title": "Helpdesk", "service_category": "IT Services", "project_state": "TX"},
        ).get_json()["project"]
        client.post(f"/api/projects/{created['id']}/publish")

        client = as_user("admin@marketplace.test")
        response = client.post(f"/api/admin/projects/{created['id']}/reroute")
        assert response.status_code == 200
        assert response.get_json()["routing"]["new_records"] == 0

        overview = client.get(f"/api/admin/routing?project_id={created['id']}").get_json()
        assert len(overview["routing"]) == 1
        assert overview["routing"][0]["project"]["title"] == "Helpdesk"


def _profile_id(user_id):
    return VendorProfile.query.filter_by(user_id=user_id).first().id


class TestSecurityHeaders:
    def test_headers_present(self, client):
        response = client.get("/health")
        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"
        assert "frame-ancestors 'none'" in response.headers.get("Content-Security-Policy")

    def test_no_hsts_in_debug(self, client):
        response = client.get("/health")
        assert response.headers.get("Strict-Transport-Security") is None

    def test_json_404(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert response.get_json()["ok"] is False
        assert response.headers.get("X-Content-Type-Options") == "nosniff"


class TestCli:
    def test_approve_vendor(self, app, seed_data):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["approve-vendor", "c@vendor.test"])
        assert result.exit_code == 0, result.output
        assert "now approved" in result.output

        result = runner.invoke(args=["approve-vendor", "c@vendor.test", "--revoke"])
        assert result.exit_code == 0
        assert "not approved" in result.output

    def test_approve_unknown_email(self, app, seed_data):
        result = app.test_cli_runner().invoke(args=["approve-vendor", "ghost@nowhere.test"])
        assert result.exit_code != 0

    def test_seed_demo_is_rerunnable(self, app, db_session):
        runner = app.test_cli_runner()
        assert runner.invoke(args=["seed-demo"]).exit_code == 0
        assert runner.invoke(args=["seed-demo"]).exit_code == 0
        assert User.query.filter_by(role="admin").count() == 1
        assert VendorProfile.query.filter_by(is_approved=True).count() == 1
