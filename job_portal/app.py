"""
Flask application for the Job Portal.

Job seekers register, browse and search postings; employers post jobs.
Pages are rendered server-side with Jinja2 templates.

Stack: Flask + MongoDB (pymongo) + bcrypt
"""

import logging
import os
import sys
import time
import traceback
from dataclasses import dataclass
from typing import Optional

from flask import (
    Flask,
    abort,
    current_app,
    flash,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    send_from_directory,
    url_for,
)
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from . import __version__ as APP_VERSION
from .auth_routes import auth_bp
from .config import PortalConfig
from .errors import JobValidationError, UploadError
from .jobs import JobRegistry
from .repositories import Repositories, build_repositories
from .sessions import (
    ANONYMOUS,
    SESSION_LIFETIME,
    SessionManager,
    current_principal,
    login_required,
    with_principal,
)
from .uploads import ALLOWED_TYPES, MAX_UPLOAD_BYTES, UploadHandler

logger = logging.getLogger(__name__)

HOME_FEATURES = [
    {"icon": "search", "title": "Easy Job Search", "description": "Find relevant jobs instantly"},
    {"icon": "file-upload", "title": "Quick Apply", "description": "One-click application process"},
    {"icon": "bell", "title": "Job Alerts", "description": "Get notified about new opportunities"},
]

CONTACT_INFO = {
    "email": "support@jobportal.com",
    "phone": "+1 (555) 123-4567",
    "address": "123 Job Street, Career City",
}

# Room for the multipart envelope around a maximum-size file
REQUEST_OVERHEAD_BYTES = 1024 * 1024


@dataclass
class PortalServices:
    """Everything the route handlers need, stored in app.extensions."""
    config: PortalConfig
    repositories: Repositories
    sessions: SessionManager
    uploads: UploadHandler
    registry: JobRegistry


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def _services() -> PortalServices:
    return current_app.extensions["job_portal"]


def create_app(
    config: Optional[PortalConfig] = None,
    repositories: Optional[Repositories] = None,
) -> Flask:
    """
    Build the Flask application.

    Args:
        config: Portal configuration (loaded from the environment if None)
        repositories: Store bundle (built from config if None, which
            connects to MongoDB)
    """
    config = config or PortalConfig.from_env()
    configure_logging(config.log_level)

    if repositories is None:
        repositories = build_repositories(config)

    app = Flask(__name__)
    app.secret_key = config.session_secret

    # Cookie security settings
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SECURE"] = config.is_production
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["PERMANENT_SESSION_LIFETIME"] = SESSION_LIFETIME
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES + REQUEST_OVERHEAD_BYTES

    app.extensions["job_portal"] = PortalServices(
        config=config,
        repositories=repositories,
        sessions=SessionManager(repositories.sessions, repositories.users),
        uploads=UploadHandler(config.upload_root),
        registry=JobRegistry(repositories.jobs, repositories.applications),
    )

    app.register_blueprint(auth_bp)
    _register_request_logging(app)
    _register_routes(app)
    _register_error_handlers(app)

    @app.context_processor
    def inject_globals():
        """Inject version and current user into all templates."""
        principal = current_principal()
        return {
            "version": APP_VERSION,
            "current_user": principal.user.to_public_dict() if principal.is_authenticated else None,
        }

    return app


def _register_request_logging(app: Flask) -> None:

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.get("request_started")
        if started is not None:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.info(f"{request.method} {request.full_path.rstrip('?')} - {duration_ms:.0f}ms")
        return response


def _register_routes(app: Flask) -> None:

    @app.route("/")
    @with_principal
    def index(principal):
        """Home page: jobs visible to the current principal."""
        jobs = _services().registry.jobs_for(principal)
        return render_template(
            "index.html",
            jobs=jobs,
            page_title="Welcome to Job Portal",
            features=HOME_FEATURES,
        )

    @app.route("/about")
    def about():
        """About page with user/job/application counts."""
        services = _services()
        return render_template(
            "about.html",
            page_title="About Us",
            stats=services.registry.counts(services.repositories.users),
        )

    @app.route("/contact", methods=["GET"])
    def contact():
        return render_template("contact.html", page_title="Contact Us", contact_info=CONTACT_INFO)

    @app.route("/contact", methods=["POST"])
    def contact_submit():
        """
        Accept a contact message.

        Sending is simulated: the message is logged, not delivered.
        """
        name = request.form.get("name", "").strip()
        email = request.form.get("email", "").strip()
        message = request.form.get("message", "").strip()
        if not email or not message:
            flash("Email and message are required", "error")
            return redirect(url_for("contact"))

        logger.info(f"Contact message from {name or 'anonymous'} <{email}> ({len(message)} chars)")
        flash("Message sent successfully!", "success")
        return redirect(url_for("contact"))

    @app.route("/employer/post-job", methods=["GET"])
    @login_required
    def post_job(principal):
        return render_template("post_job.html", page_title="Post a Job")

    @app.route("/employer/post-job", methods=["POST"])
    @login_required
    def post_job_submit(principal):
        """Validate and create a job posting owned by the principal."""
        try:
            _services().registry.post(principal.user.id, request.form)
        except JobValidationError as e:
            for error in e.errors:
                flash(error, "error")
            return redirect(url_for("post_job"))

        flash("Job posted successfully!", "success")
        return redirect(url_for("list_jobs"))

    @app.route("/jobs", methods=["GET"])
    def list_jobs():
        """
        Search and paginate jobs.

        Query Parameters:
            search: Substring of title or description
            location: Substring of location
            page: Page number (default: 1)
        """
        search = request.args.get("search", "")
        location = request.args.get("location", "")
        jobs, pagination = _services().registry.search(
            search=search,
            location=location,
            page=request.args.get("page", 1),
        )
        return render_template(
            "jobs.html",
            jobs=jobs,
            page_title="Browse Jobs",
            pagination=pagination,
            current_search=search,
            current_location=location,
        )

    @app.route("/dashboard")
    @login_required
    def dashboard(principal):
        return render_template(
            "dashboard.html",
            user=principal.user.to_public_dict(),
            page_title="Your Dashboard",
        )

    @app.route("/uploads/<subdir>/<path:filename>")
    def uploaded_file(subdir: str, filename: str):
        """Serve an uploaded avatar or resume."""
        if subdir not in ALLOWED_TYPES:
            abort(404)
        return send_from_directory(_services().config.upload_root / subdir, filename)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Public liveness check."""
        return jsonify({"status": "healthy", "version": APP_VERSION})


def _register_error_handlers(app: Flask) -> None:

    def _upload_failed(message: str):
        flash(f"File upload error: {message}", "error")
        return redirect(request.referrer or url_for("auth.register"))

    @app.errorhandler(UploadError)
    def handle_upload_error(e: UploadError):
        logger.warning(f"Rejected upload: {e.message}")
        return _upload_failed(e.message)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_request_too_large(e):
        logger.warning("Rejected upload: request body over limit")
        return _upload_failed("File too large")

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        if e.code == 404:
            return render_template("error.html", error="Page not found", page_title="404 Not Found"), 404
        return render_template("error.html", error=e.description, page_title="Error"), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.path}: {e}")
        # The session store may be what failed; render the page signed out
        g.principal = ANONYMOUS
        production = _services().config.is_production
        return render_template(
            "error.html",
            error="Something went wrong!" if production else str(e),
            stack=None if production else "".join(traceback.format_exception(type(e), e, e.__traceback__)),
            page_title="Error",
        ), 500


# ============================================================================
# Application Entry Point
# ============================================================================

def main() -> None:
    config = PortalConfig.from_env()
    configure_logging(config.log_level)

    try:
        repositories = build_repositories(config)
    except PyMongoError as e:
        logger.error(f"MongoDB connection error: {e}")
        sys.exit(1)

    app = create_app(config, repositories)
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    logger.info(f"Job Portal running at http://localhost:{config.port}")
    app.run(host="0.0.0.0", port=config.port, debug=debug)


if __name__ == "__main__":
    main()
