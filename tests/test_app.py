"""
Route tests for the job portal Flask app.

Runs against in-memory repositories (see conftest.py).
"""

import io
from dataclasses import replace

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from job_portal.app import create_app, main
from job_portal.config import AppEnv
from job_portal.models import DEFAULT_AVATAR
from job_portal.sessions import ANONYMOUS, SESSION_KEY

TEST_PASSWORD = "pw123456"


def _register(client, **overrides):
    data = {
        "name": "Alice",
        "email": "alice@x.com",
        "password": "pw123456",
        "confirmPassword": "pw123456",
        "role": "jobseeker",
    }
    data.update(overrides)
    return client.post("/auth/register", data=data, content_type="multipart/form-data")


def _job_form(**overrides):
    form = {
        "title": "Backend Engineer",
        "company": "Acme",
        "description": "Build and run our services.",
        "requirements": "Python",
        "location": "Berlin",
    }
    form.update(overrides)
    return form


def _uploaded_files(config):
    if not config.upload_root.exists():
        return []
    return [p for p in config.upload_root.rglob("*") if p.is_file()]


class TestPublicPages:

    def test_home(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert b"Welcome to Job Portal" in response.data
        assert b"Easy Job Search" in response.data

    def test_about_counts(self, client, services, employer):
        services.registry.post(employer.id, _job_form())

        response = client.get("/about")

        assert response.status_code == 200
        assert services.registry.counts(services.repositories.users) == {
            "users": 1, "jobs": 1, "applications": 0,
        }

    def test_contact_page(self, client):
        response = client.get("/contact")
        assert b"support@jobportal.com" in response.data

    def test_contact_submit(self, client):
        response = client.post(
            "/contact",
            data={"name": "Bob", "email": "bob@x.com", "message": "Hello"},
            follow_redirects=True,
        )
        assert b"Message sent successfully!" in response.data

    def test_contact_requires_message(self, client):
        response = client.post("/contact", data={"email": "bob@x.com"}, follow_redirects=True)
        assert b"Email and message are required" in response.data

    def test_health(self, client):
        response = client.get("/health")
        assert response.get_json()["status"] == "healthy"

    def test_unknown_route_renders_404(self, client):
        response = client.get("/no/such/page")
        assert response.status_code == 404
        assert b"Page not found" in response.data


class TestRegistration:

    def test_register_then_duplicate(self, client, repositories):
        response = _register(client)
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/auth/login")

        user = repositories.users.find_by_email("alice@x.com")
        assert user is not None
        assert user.password != "pw123456"

        response = _register(client, email="ALICE@x.com", name="Alice 2")
        assert response.headers["Location"].endswith("/auth/register")
        assert repositories.users.count() == 1

        page = client.get("/auth/register")
        assert b"Email already registered" in page.data

    def test_success_message(self, client):
        response = _register(client, email="Alice@X.com")
        page = client.get(response.headers["Location"])
        assert b"Registration successful! You can now log in" in page.data

    def test_password_mismatch(self, client, repositories):
        response = _register(client, confirmPassword="different")

        assert response.headers["Location"].endswith("/auth/register")
        assert repositories.users.count() == 0
        assert b"Passwords do not match" in client.get("/auth/register").data

    def test_register_with_avatar(self, client, repositories, config):
        response = _register(client, avatar=(io.BytesIO(b"\x89PNG"), "me.png", "image/png"))

        assert response.status_code == 302
        user = repositories.users.find_by_email("alice@x.com")
        assert user.avatar.startswith("/uploads/avatars/")
        assert user.avatar.endswith("-me.png")

        served = client.get(user.avatar)
        assert served.status_code == 200
        assert served.data == b"\x89PNG"

    def test_disallowed_avatar_type(self, client, repositories, config):
        response = _register(client, avatar=(io.BytesIO(b"%PDF"), "cv.pdf", "application/pdf"))

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/auth/register")
        assert repositories.users.count() == 0
        assert _uploaded_files(config) == []
        assert b"File upload error: Invalid file type" in client.get("/auth/register").data

    def test_avatar_removed_when_registration_fails(self, client, repositories, config):
        _register(
            client,
            confirmPassword="different",
            avatar=(io.BytesIO(b"\x89PNG"), "me.png", "image/png"),
        )

        assert repositories.users.count() == 0
        assert _uploaded_files(config) == []

    def test_uploads_outside_known_dirs_not_served(self, client):
        assert client.get("/uploads/secrets/x.png").status_code == 404


class TestLoginLogout:

    def test_login_resolves_to_user(self, client, services, employer):
        response = client.post("/auth/login", data={"email": "ERIN@acme.com", "password": TEST_PASSWORD})

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/")
        with client.session_transaction() as sess:
            session_id = sess[SESSION_KEY]

        principal = services.sessions.resolve_session(session_id)
        assert principal.user.id == employer.id

        dashboard = client.get("/dashboard")
        assert dashboard.status_code == 200
        assert b"Erin Employer" in dashboard.data

    def test_bad_password(self, client, employer):
        response = client.post("/auth/login", data={"email": employer.email, "password": "nope"})

        assert response.headers["Location"].endswith("/auth/login")
        assert b"Incorrect email or password" in client.get("/auth/login").data
        with client.session_transaction() as sess:
            assert SESSION_KEY not in sess

    def test_unknown_email_same_message(self, client):
        client.post("/auth/login", data={"email": "ghost@x.com", "password": "whatever"})
        assert b"Incorrect email or password" in client.get("/auth/login").data

    def test_logout_invalidates_session(self, authenticated_client, services):
        with authenticated_client.session_transaction() as sess:
            session_id = sess[SESSION_KEY]

        response = authenticated_client.get("/auth/logout")

        assert response.status_code == 302
        assert services.sessions.resolve_session(session_id) is ANONYMOUS

    def test_stale_cookie_is_anonymous(self, authenticated_client):
        with authenticated_client.session_transaction() as sess:
            stale_id = sess[SESSION_KEY]
        authenticated_client.get("/auth/logout")

        # Replay the old session id
        with authenticated_client.session_transaction() as sess:
            sess[SESSION_KEY] = stale_id

        response = authenticated_client.get("/dashboard")
        assert response.headers["Location"].endswith("/auth/login")

    def test_login_rotates_session(self, authenticated_client, services, employer):
        with authenticated_client.session_transaction() as sess:
            first_id = sess[SESSION_KEY]

        authenticated_client.post("/auth/login", data={"email": employer.email, "password": TEST_PASSWORD})

        with authenticated_client.session_transaction() as sess:
            second_id = sess[SESSION_KEY]
        assert second_id != first_id
        assert services.sessions.resolve_session(first_id) is ANONYMOUS

    def test_session_cookie_is_http_only(self, client, employer):
        response = client.post("/auth/login", data={"email": employer.email, "password": TEST_PASSWORD})
        cookie = response.headers["Set-Cookie"]
        assert "HttpOnly" in cookie
        assert "Secure" not in cookie


class TestProtectedPages:

    @pytest.mark.parametrize("path", ["/dashboard", "/employer/post-job"])
    def test_anonymous_redirected_to_login(self, client, path):
        response = client.get(path)

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/auth/login")
        assert b"Please sign in to continue" in client.get("/auth/login").data

    def test_anonymous_cannot_post_job(self, client, repositories):
        response = client.post("/employer/post-job", data=_job_form())

        assert response.headers["Location"].endswith("/auth/login")
        assert repositories.jobs.count() == 0

    def test_post_job_form(self, authenticated_client):
        assert authenticated_client.get("/employer/post-job").status_code == 200


class TestJobs:

    def test_post_job(self, authenticated_client, repositories, employer):
        response = authenticated_client.post("/employer/post-job", data=_job_form())

        assert response.headers["Location"].endswith("/jobs")
        assert repositories.jobs.count() == 1
        page = authenticated_client.get("/jobs")
        assert b"Job posted successfully!" in page.data
        assert b"Backend Engineer" in page.data

    def test_short_title_rejected(self, authenticated_client, repositories):
        response = authenticated_client.post("/employer/post-job", data=_job_form(title="Go"))

        assert response.headers["Location"].endswith("/employer/post-job")
        assert repositories.jobs.count() == 0
        page = authenticated_client.get("/employer/post-job")
        assert b"Title must be at least 3 characters" in page.data

    def test_all_validation_errors_flashed(self, authenticated_client):
        authenticated_client.post("/employer/post-job", data={"title": "", "company": "", "description": ""})
        page = authenticated_client.get("/employer/post-job")

        assert b"Title must be at least 3 characters" in page.data
        assert b"Company name is required" in page.data
        assert b"Description must be at least 10 characters" in page.data

    def test_second_page_of_results(self, client, services, employer):
        for i in range(25):
            services.registry.post(employer.id, _job_form(title=f"Position {i:02d}"))

        response = client.get("/jobs?page=2")

        assert response.status_code == 200
        for i in range(10, 20):
            assert f"Position {i:02d}".encode() in response.data
        assert b"Position 09" not in response.data
        assert b"Position 20" not in response.data
        assert b"Page 2 of 3" in response.data
        assert b"Previous" in response.data
        assert b"Next" in response.data

    def test_search_and_location(self, client, services, employer):
        services.registry.post(employer.id, _job_form(title="Python Developer", location="Berlin"))
        services.registry.post(employer.id, _job_form(title="Python Developer II", location="Paris"))

        response = client.get("/jobs?search=PYTHON&location=paris")

        assert b"Python Developer II" in response.data
        assert b"Berlin" not in response.data

    def test_invalid_page_treated_as_first(self, client):
        assert client.get("/jobs?page=-3").status_code == 200
        assert client.get("/jobs?page=abc").status_code == 200

    def test_home_shows_own_jobs_when_signed_in(self, authenticated_client, services, employer):
        services.registry.post(employer.id, _job_form(title="Mine"))
        services.registry.post("someone-else", _job_form(title="Theirs"))

        page = authenticated_client.get("/")

        assert b"Mine" in page.data
        assert b"Theirs" not in page.data

    def test_home_shows_all_jobs_when_anonymous(self, client, services, employer):
        services.registry.post(employer.id, _job_form(title="Mine"))
        services.registry.post("someone-else", _job_form(title="Theirs"))

        page = client.get("/")

        assert b"Mine" in page.data
        assert b"Theirs" in page.data


class TestErrorHandling:

    def test_unexpected_error_shows_details_in_development(self, client, services, mocker):
        mocker.patch.object(services.registry, "counts", side_effect=RuntimeError("database exploded"))

        response = client.get("/about")

        assert response.status_code == 500
        assert b"database exploded" in response.data
        assert b"Traceback" in response.data

    def test_unexpected_error_is_generic_in_production(self, client, services, mocker):
        services.config.env = AppEnv.PRODUCTION
        mocker.patch.object(services.registry, "counts", side_effect=RuntimeError("database exploded"))

        response = client.get("/about")

        assert response.status_code == 500
        assert b"Something went wrong!" in response.data
        assert b"database exploded" not in response.data

    def test_session_store_failure_still_renders_error_page(self, app, authenticated_client, services, mocker):
        app.config["TESTING"] = False
        mocker.patch.object(services.sessions, "resolve_session", side_effect=RuntimeError("db down"))

        response = authenticated_client.get("/")

        assert response.status_code == 500
        assert b"db down" in response.data
        assert b"Traceback" in response.data

    def test_session_store_failure_is_generic_in_production(self, app, authenticated_client, services, mocker):
        app.config["TESTING"] = False
        services.config.env = AppEnv.PRODUCTION
        mocker.patch.object(services.sessions, "resolve_session", side_effect=RuntimeError("db down"))

        response = authenticated_client.get("/dashboard")

        assert response.status_code == 500
        assert b"Something went wrong!" in response.data
        assert b"db down" not in response.data

    def test_avatar_removed_when_store_fails(self, app, client, repositories, config, mocker):
        app.config["TESTING"] = False
        mocker.patch.object(repositories.users, "insert", side_effect=RuntimeError("db down"))

        response = _register(client, avatar=(io.BytesIO(b"\x89PNG"), "me.png", "image/png"))

        assert response.status_code == 500
        assert _uploaded_files(config) == []

    def test_oversized_request_flashes_upload_error(self, client, repositories, config):
        big = io.BytesIO(b"\0" * (7 * 1024 * 1024))

        response = _register(client, avatar=(big, "huge.png", "image/png"))

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/auth/register")
        assert repositories.users.count() == 0
        assert _uploaded_files(config) == []
        assert b"File upload error: File too large" in client.get("/auth/register").data


class TestProductionSettings:

    def test_session_cookie_is_secure(self, config, repositories, employer):
        app = create_app(replace(config, env=AppEnv.PRODUCTION), repositories)

        with app.test_client() as client:
            response = client.post("/auth/login", data={"email": employer.email, "password": TEST_PASSWORD})

        cookie = response.headers["Set-Cookie"]
        assert "Secure" in cookie
        assert "HttpOnly" in cookie
        assert "SameSite=Lax" in cookie

    def test_default_avatar_is_served(self, client):
        assert client.get(DEFAULT_AVATAR).status_code == 200


class TestMain:

    def test_exits_when_database_unreachable(self, config, mocker):
        mocker.patch("job_portal.app.PortalConfig.from_env", return_value=config)
        mocker.patch(
            "job_portal.app.build_repositories",
            side_effect=ServerSelectionTimeoutError("localhost:27017: connection refused"),
        )
        run = mocker.patch("flask.Flask.run")

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        run.assert_not_called()

    def test_runs_on_configured_port(self, config, repositories, mocker):
        mocker.patch("job_portal.app.PortalConfig.from_env", return_value=replace(config, port=8080))
        mocker.patch("job_portal.app.build_repositories", return_value=repositories)
        run = mocker.patch("flask.Flask.run")

        main()

        run.assert_called_once()
        assert run.call_args.kwargs["port"] == 8080
