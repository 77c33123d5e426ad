from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=flask_app.config.get('CORS_ORIGINS', []))

    # Import and register blueprints here
    from resultboard.main import main
    flask_app.register_blueprint(main)

    from resultboard.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/v1/games')

    from resultboard.api.results import results
    flask_app.register_blueprint(results, url_prefix='/api/v1/results')

    _register_error_handlers(flask_app)

    # Flask-Login user loader
    from resultboard.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required', 'code': 'unauthorized'}), 401

    _register_cli(flask_app)

    return flask_app


def _register_error_handlers(flask_app):
    from resultboard.errors import ResultBoardError, StoreUnavailable

    @flask_app.errorhandler(ResultBoardError)
    def handle_domain_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @flask_app.errorhandler(SQLAlchemyError)
    def handle_store_error(exc):
        db.session.rollback()
        flask_app.logger.exception(f"[store-error] {type(exc).__name__}")
        err = StoreUnavailable()
        return jsonify(err.to_dict()), err.status_code


def _register_cli(flask_app):

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from resultboard.services.importer import seed_default_games
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            count = seed_default_games()
            print(f'Database has been reset and seeded with {count} games!')

    @click.command('seed-games')
    def seed_games_command():
        """Replaces the game catalog with the default games."""
        from resultboard.services.importer import seed_default_games
        with flask_app.app_context():
            count = seed_default_games()
            print(f'Seeded {count} games')

    @click.command('create-user')
    @click.argument('username')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
    def create_user_command(username, password):
        """Adds a user that may edit games and results."""
        from resultboard.models import User
        with flask_app.app_context():
            if User.query.filter_by(username=username).first():
                raise click.ClickException(f'User {username} already exists')
            user = User(username=username)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            print(f'User {username} created')

    @click.command('import-matrix')
    @click.argument('year', type=int)
    @click.argument('month', type=int)
    @click.argument('csv_path', type=click.Path(exists=True, dir_okay=False))
    def import_matrix_command(year, month, csv_path):
        """Imports a month of results from a DATE,<CODE>,... matrix CSV."""
        from resultboard.services.importer import import_matrix_file
        with flask_app.app_context():
            stats = import_matrix_file(csv_path, year, month)
            print(f"Done. Upserted: {stats['upserted']}, Updated: {stats['updated']}, Skipped: {stats['skipped']}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_games_command)
    flask_app.cli.add_command(create_user_command)
    flask_app.cli.add_command(import_matrix_command)
