"""Smoke test to verify testing infrastructure is working."""


def test_app_imports():
    """The API module should import and expose the FastAPI app."""
    from services.podcast_api.main import app

    paths = {route.path for route in app.routes}
    assert {"/podcasts", "/podcasts/{podcast_id}", "/health_check"} <= paths


def test_python_version():
    """Verify Python version meets requirements."""
    import sys

    assert sys.version_info >= (3, 11), "Python 3.11 or higher required"
