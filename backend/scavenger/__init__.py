from flask import Flask, current_app, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException
import os
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
# Players join from phones on the LAN, so any origin may connect
socketio = SocketIO(cors_allowed_origins='*', async_mode=None)

COORDINATOR_KEY = 'round_coordinator'
MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'migrations')


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db, directory=MIGRATIONS_DIR)
    CORS(flask_app, supports_credentials=True)

    socketio.init_app(flask_app, cors_allowed_origins='*')

    # Hash the shared secret once; logins are checked against the hash
    password = flask_app.config.get('APP_PASSWORD')
    if password and len(password.encode('utf-8')) > 72:
        flask_app.logger.error('APP_PASSWORD is longer than 72 bytes, which bcrypt cannot hash; logins are disabled')
        password = None
    flask_app.config['APP_PASSWORD_HASH'] = bcrypt.generate_password_hash(password) if password else None

    os.makedirs(flask_app.config['UPLOAD_FOLDER'], exist_ok=True)

    from scavenger.main import main
    flask_app.register_blueprint(main)

    from scavenger.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api')

    from scavenger.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from scavenger.models import Player

    @login_manager.user_loader
    def load_user(user_id):
        return Player(user_id)

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        if isinstance(exc, HTTPException):
            return exc
        flask_app.logger.exception(f"[error] unhandled exception: {exc}")
        return jsonify({'error': 'Internal server error'}), 500

    # Schema comes from migrations: `flask db upgrade`
    coordinator = _build_coordinator(flask_app)
    flask_app.extensions[COORDINATOR_KEY] = coordinator

    @click.command('leaderboard-reset')
    def leaderboard_reset_command():
        """Deletes every leaderboard entry."""
        with flask_app.app_context():
            coordinator.leaderboard.reset()
            print('Leaderboard has been reset!')

    @click.command('leaderboard-show')
    def leaderboard_show_command():
        """Prints the leaderboard, highest score first."""
        with flask_app.app_context():
            board = coordinator.leaderboard.read_sorted()
            if not board:
                print('Leaderboard is empty.')
            for rank, row in enumerate(board, start=1):
                print(f"{rank:>3}. {row['username']:<24} {row['score']}")

    flask_app.cli.add_command(leaderboard_reset_command)
    flask_app.cli.add_command(leaderboard_show_command)

    return flask_app


def _build_coordinator(flask_app):
    from scavenger.services.hunt import (
        ClassificationGateway,
        LeaderboardStore,
        RoundCoordinator,
        RoundTimers,
        SocketIOChannel,
    )

    cfg = flask_app.config
    # Timers stay queued in tests unless explicitly enabled
    if cfg.get('TESTING') and not cfg.get('ENABLE_SCHEDULER_IN_TESTS'):
        timers = RoundTimers(logger=flask_app.logger)
    else:
        timers = RoundTimers(spawn=socketio.start_background_task, sleep=socketio.sleep, logger=flask_app.logger)

    return RoundCoordinator(
        gateway=ClassificationGateway.from_config(cfg, logger=flask_app.logger),
        leaderboard=LeaderboardStore(
            write_attempts=cfg.get('LEADERBOARD_WRITE_ATTEMPTS', 3),
            retry_delay=float(cfg.get('LEADERBOARD_RETRY_DELAY_SEC', 0.05)),
            sleep=socketio.sleep,
            logger=flask_app.logger,
        ),
        channel=SocketIOChannel(socketio, namespace='/'),
        timers=timers,
        items=cfg.get('ITEMS'),
        intermission_sec=float(cfg.get('INTERMISSION_SEC', 10)),
        skip_grace_sec=float(cfg.get('SKIP_GRACE_SEC', 3)),
        logger=flask_app.logger,
    )


def get_coordinator(flask_app=None):
    return (flask_app or current_app).extensions[COORDINATOR_KEY]
