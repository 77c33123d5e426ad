import os
import sys
import pytest

# Ensure the backend root (containing the `resultboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from resultboard import create_app, db


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    HOME_UTC_OFFSET_MIN = 330
    HOME_CACHE_MAX_AGE = 60
    IMPORT_DEFAULT_TIME = '03:40 PM'
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import resultboard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def auth_client(flask_app):
    from resultboard.models import User
    user = User(username='editor')
    user.set_password('password')
    db.session.add(user)
    db.session.commit()

    test_client = flask_app.test_client()
    res = test_client.post('/login', json={'username': 'editor', 'password': 'password'})
    assert res.status_code == 200
    return test_client


@pytest.fixture()
def make_game(flask_app):
    from resultboard.models import Game

    def _make(code, order_index, name=None, default_time='', is_active=True):
        game = Game(code=code, name=name or code, order_index=order_index,
                    default_time=default_time, is_active=is_active)
        db.session.add(game)
        db.session.commit()
        return game

    return _make
