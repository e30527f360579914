"""
WSGI entry point for the Job Portal.

Exposes the Flask app for a WSGI server, e.g.:

    gunicorn job_portal.wsgi:app
"""

from .app import create_app

app = create_app()
