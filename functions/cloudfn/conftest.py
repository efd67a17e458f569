"""Shared pytest fixtures for cloudfn tests."""
import flask
import pytest

from cloudfn.http_utils import FnHttper


@pytest.fixture
def app():
    """Bare Flask app for building request contexts."""
    return flask.Flask(__name__)


@pytest.fixture
def httper():
    """CORS policy allowing a single origin."""
    return FnHttper(["a.com"])
