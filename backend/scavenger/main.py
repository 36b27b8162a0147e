import os
from flask import Blueprint, abort, current_app, jsonify, send_from_directory

main = Blueprint('main', __name__)


def _client_build_path():
    return os.path.abspath(current_app.config.get('CLIENT_BUILD_PATH') or '')


@main.route('/', defaults={'path': ''})
@main.route('/<path:path>')
def index(path):
    # API routes that fall through here are genuinely unknown
    if path == 'api' or path.startswith('api/'):
        abort(404)
    build = _client_build_path()
    if path and os.path.isfile(os.path.join(build, path)):
        return send_from_directory(build, path)
    if os.path.isfile(os.path.join(build, 'index.html')):
        return send_from_directory(build, 'index.html')
    return jsonify({'message': 'Welcome to the scavenger hunt server!'})
