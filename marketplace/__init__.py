import os
import logging

import click
from flask import Flask, jsonify
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException
from werkzeug.security import generate_password_hash

from marketplace.config import config_by_name
from marketplace.errors import MarketplaceError
from marketplace.extensions import db, migrate, login_manager, csrf, limiter
from marketplace.store import RecordStore, get_store


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from marketplace import models  # noqa: F401

    # --- Data store handed to every service call ---
    app.extensions["record_store"] = RecordStore(db.session)

    # --- Register blueprints ---
    from marketplace.blueprints.auth import auth_bp
    from marketplace.blueprints.projects import projects_bp
    from marketplace.blueprints.leads import leads_bp
    from marketplace.blueprints.vendors import vendors_bp
    from marketplace.blueprints.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(vendors_bp)
    app.register_blueprint(admin_bp)

    # --- Health check ---
    @app.route("/health")
    def health():
        return jsonify(ok=True)

    # --- Error handlers ---
    register_error_handlers(app)

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = (
            "camera=(), microphone=(), geolocation=(), payment=()"
        )
        # JSON-only API: nothing should ever be rendered or framed
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none';"
        )
        response.headers["Cache-Control"] = "no-store"
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))

    return app


def register_error_handlers(app):
    """Every error leaves the API as {"ok": false, "error": ...}."""

    @app.errorhandler(MarketplaceError)
    def marketplace_error(e):
        db.session.rollback()
        if e.status_code >= 500:
            app.logger.error(f"{type(e).__name__}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(OperationalError)
    def database_unavailable(e):
        db.session.rollback()
        app.logger.error(f"Database error: {e}")
        return jsonify(ok=False, error="The data store is unavailable. Try again shortly."), 503

    @app.errorhandler(HTTPException)
    def http_error(e):
        if e.code >= 500:
            db.session.rollback()
        return jsonify(ok=False, error=e.description), e.code

    @app.errorhandler(500)
    def server_error(e):
        db.session.rollback()
        return jsonify(ok=False, error="Internal server error."), 500


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-demo")
    @click.option("--password", default="demo1234", help="Password for demo users")
    def seed_demo(password):
        """Create catalog rows, an admin, a demo business and a demo vendor.

        Safe to re-run: existing rows are left alone.

        Usage:
            flask seed-demo
            flask seed-demo --password s3cret
        """
        from marketplace.models.catalog import CoverageArea, ServiceCategory
        from marketplace.models.user import User
        from marketplace.models.vendor import VendorProfile

        # --- 1. Service categories ---
        categories = {}
        for name, description in DEMO_CATEGORIES:
            category = ServiceCategory.query.filter_by(name=name).first()
            if category is None:
                category = ServiceCategory(name=name, description=description)
                db.session.add(category)
            categories[name] = category

        # --- 2. Coverage areas ---
        areas = {}
        for state, region, zip_codes in DEMO_COVERAGE_AREAS:
            area = CoverageArea.query.filter_by(state=state, region=region).first()
            if area is None:
                area = CoverageArea(state=state, region=region, zip_codes=zip_codes)
                db.session.add(area)
            areas[(state, region)] = area
        db.session.flush()

        # --- 3. Users ---
        def ensure_user(email, role, full_name, company_name=None):
            user = User.query.filter_by(email=email).first()
            if user is None:
                user = User(
                    email=email,
                    password_hash=generate_password_hash(password),
                    full_name=full_name,
                    role=role,
                    company_name=company_name,
                )
                db.session.add(user)
                db.session.flush()
                click.echo(f"Created {role} user: {email}")
            return user

        ensure_user("admin@marketplace.local", "admin", "Admin")
        ensure_user(
            "owner@acme-logistics.local", "business", "Dana Reyes", "Acme Logistics"
        )
        vendor = ensure_user(
            "sales@lonestar-it.local", "vendor", "Sam Ortiz", "Lone Star IT"
        )

        # --- 4. Approved demo vendor profile ---
        if vendor.vendor_profile is None:
            profile = VendorProfile(
                user_id=vendor.id,
                company_name="Lone Star IT",
                contact_email=vendor.email,
                is_approved=True,
            )
            profile.services = [categories["IT Services"]]
            profile.coverage_areas = [areas[("TX", "Houston")], areas[("TX", "Dallas")]]
            db.session.add(profile)

        db.session.commit()

        click.echo("")
        click.echo("=" * 60)
        click.echo("Demo data ready")
        click.echo("=" * 60)
        click.echo(f"  Categories:     {len(categories)}")
        click.echo(f"  Coverage areas: {len(areas)}")
        click.echo(f"  Password for all demo users: {password}")
        click.echo("=" * 60)

    @app.cli.command("approve-vendor")
    @click.argument("email")
    @click.option("--revoke", is_flag=True, help="Revoke approval instead.")
    def approve_vendor(email, revoke):
        """Approve (or revoke) a vendor for lead routing.

        Usage:
            flask approve-vendor sales@vendor.com
            flask approve-vendor sales@vendor.com --revoke
        """
        from marketplace.models.user import User
        from marketplace.services import vendor_service

        admin = _cli_admin()
        vendor = User.query.filter_by(email=email.lower().strip()).first()
        if vendor is None:
            raise click.ClickException(f"No user with email {email}.")

        try:
            profile = vendor_service.set_approval(
                get_store(), vendor.id, not revoke, admin.id
            )
        except MarketplaceError as e:
            db.session.rollback()
            raise click.ClickException(e.message)
        db.session.commit()
        state = "approved" if profile.is_approved else "not approved"
        click.echo(f"{profile.company_name} is now {state}.")

    @app.cli.command("reroute-project")
    @click.argument("project_id")
    def reroute_project(project_id):
        """Re-run the routing pass for an open project.

        Usage:
            flask reroute-project <project-uuid>
        """
        from marketplace.services import routing_service

        admin = _cli_admin()
        try:
            outcome = routing_service.reroute_project(get_store(), project_id, admin.id)
        except MarketplaceError as e:
            db.session.rollback()
            raise click.ClickException(e.message)
        db.session.commit()
        click.echo(
            f"Project {project_id}: {len(outcome.matched)} matched, "
            f"{outcome.new_records} new routing records."
        )
        for m in outcome.matched:
            click.echo(f"  - {m.company_name} (score {m.score})")


def _cli_admin():
    """CLI commands act as the first admin account."""
    from marketplace.models.user import User

    admin = User.query.filter_by(role="admin", is_active=True).first()
    if admin is None:
        raise click.ClickException("No admin user exists. Run `flask seed-demo` first.")
    return admin


DEMO_CATEGORIES = [
    ("IT Services", "Managed IT, helpdesk and network support"),
    ("Cybersecurity", "Security assessments and monitoring"),
    ("Commercial Cleaning", "Office and facility cleaning"),
    ("Facilities Maintenance", "HVAC, electrical and general upkeep"),
    ("Digital Marketing", "SEO, paid media and content"),
]

DEMO_COVERAGE_AREAS = [
    ("TX", "Houston", ["77001", "77002", "77003"]),
    ("TX", "Dallas", ["75201", "75202"]),
    ("TX", "Austin", ["78701", "78702"]),
    ("CA", "Los Angeles", ["90001", "90012"]),
    ("CA", "San Francisco", ["94102", "94103"]),
    ("NY", "New York City", ["10001", "10002"]),
    ("FL", "Miami", ["33101", "33109"]),
]
