from flask import Flask, jsonify
from config import Config
from routes import (
    health_bp, auth_bp, students_bp, tutor_bp, bookings_bp, tickets_bp, payments_bp, webhook_bp, audit_bp,
)

from models import db
from flask_migrate import Migrate
from utils.seed import seed_roles
from utils.auth_context import load_current_user
from security.csrf import csrf_protect

BLUEPRINTS = (
    health_bp, auth_bp, students_bp, tutor_bp, bookings_bp, tickets_bp, payments_bp, webhook_bp, audit_bp,
)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Register routes
    for bp in BLUEPRINTS:
        app.register_blueprint(bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    with app.app_context():
        # tests and local sqlite runs skip `flask db upgrade`
        if app.config.get("CREATE_TABLES_ON_START"):
            db.create_all()
        seed_roles()

    # order matters: CSRF needs g.user
    app.before_request(load_current_user)
    app.before_request(csrf_protect)

    @app.errorhandler(404)
    def _not_found(_err):
        return jsonify(error="Not found"), 404

    @app.errorhandler(405)
    def _method_not_allowed(_err):
        return jsonify(error="Method not allowed"), 405

    @app.errorhandler(500)
    def _server_error(err):
        db.session.rollback()
        app.logger.error("unhandled error: %s", err)
        return jsonify(error="Internal server error"), 500

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
import click
from models.user import User, Role
from utils.audit import log_event
from utils.roles import ADMIN
from utils.seed import seed_demo_data

def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Grant ADMIN to an existing account (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        if not user.has_role(ADMIN):
            user.roles.append(Role.query.filter_by(name=ADMIN).one())
            db.session.commit()
            log_event("ADMIN_GRANT", user_id=user.id, entity="user", entity_id=user.id)

        click.echo(f"{user.email} promoted to ADMIN")

    @app.cli.command("seed-demo")
    @click.option("--days", default=7, show_default=True, help="Days of tutor shifts to create")
    def seed_demo(days):
        """Create demo parent/student/tutor accounts and open shifts."""
        summary = seed_demo_data(days=days)
        click.echo(f"parent={summary['parent']} tutor={summary['tutor']} shifts_created={summary['shifts_created']}")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
