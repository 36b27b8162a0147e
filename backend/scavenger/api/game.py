import os
import tempfile
from flask import Blueprint, jsonify, request, current_app
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.utils import secure_filename
from scavenger import bcrypt, get_coordinator
from scavenger.models import Player, clean_username

# bcrypt refuses anything longer
PASSWORD_MAX_BYTES = 72

game = Blueprint('game', __name__)


def _check_shared_password(password) -> bool:
    password_hash = current_app.config.get('APP_PASSWORD_HASH')
    if not password_hash or not isinstance(password, str):
        return False
    if len(password.encode('utf-8')) > PASSWORD_MAX_BYTES:
        return False
    return bcrypt.check_password_hash(password_hash, password)


@game.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    username = clean_username(data.get('username'))
    if not username or not _check_shared_password(data.get('password')):
        return jsonify({'error': 'Invalid credentials'}), 401
    login_user(Player(username), remember=True)
    return jsonify({'username': username})


@game.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@game.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({'success': True, 'user': current_user.to_dict()})


@game.route('/current-item', methods=['GET'])
def current_item():
    return jsonify(get_coordinator().snapshot())


@game.route('/leaderboard', methods=['GET'])
def leaderboard():
    return jsonify(get_coordinator().leaderboard.read_sorted())


def _store_upload(image) -> str:
    """Write the uploaded photo to a private temp file and return its path."""
    _, ext = os.path.splitext(secure_filename(image.filename or ''))
    fd, path = tempfile.mkstemp(suffix=ext, dir=current_app.config['UPLOAD_FOLDER'])
    with os.fdopen(fd, 'wb') as fh:
        image.save(fh)
    return path


def _discard_upload(path: str) -> None:
    try:
        os.remove(path)
    except OSError as exc:
        current_app.logger.error(f"[upload-cleanup] failed to delete {path}: {exc}")


@game.route('/upload', methods=['POST'])
def upload():
    image = request.files.get('image')
    username = request.form.get('username') or ''
    if not username.strip() and current_user.is_authenticated:
        username = current_user.username
    username = clean_username(username)
    target_label = (request.form.get('targetLabel') or '').strip()

    if image is None or not username:
        return jsonify({'success': False, 'error': 'image and username are required'}), 400

    try:
        path = _store_upload(image)
    except OSError as exc:
        current_app.logger.error(f"[upload-error] could not store photo from {username}: {exc}")
        return jsonify({'success': False, 'error': 'Upload failed'}), 500

    try:
        with open(path, 'rb') as fh:
            image_bytes = fh.read()
        outcome = get_coordinator().submit_photo(username, target_label, image_bytes)
    finally:
        _discard_upload(path)

    return jsonify(outcome.to_dict())
