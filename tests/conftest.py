import os

# Point the app at an in-memory database before it is imported.
os.environ['CALENDAR_DATABASE_URI'] = 'sqlite://'

import pytest

from app import app as flask_app
from models import db


@pytest.fixture
def app():
    flask_app.config['TESTING'] = True
    flask_app.extensions.pop('event_catalogue', None)
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()
    flask_app.extensions.pop('event_catalogue', None)


@pytest.fixture
def client(app):
    return app.test_client()
