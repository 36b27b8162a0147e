from flask import request, current_app
from flask_socketio import emit
from scavenger import socketio, get_coordinator
from scavenger.models import USERNAME_MAX_LENGTH, clean_username


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")
    # Late joiners get presence and vote progress without waiting for a change
    get_coordinator().sync_client(_get_sid())


def handle_disconnect(reason=None):
    username = get_coordinator().unregister_connection(_get_sid())
    current_app.logger.info(f"[disconnect] sid={_get_sid()} user={username}")


def handle_register_user(data):
    # Accept the bare username the web client sends, or {'username': ...}
    username = clean_username(data.get('username') if isinstance(data, dict) else data)
    if not username:
        emit('error', {'message': f'username is required (at most {USERNAME_MAX_LENGTH} characters)'})
        return
    get_coordinator().register_player(_get_sid(), username)


def handle_vote_skip(data=None):
    coordinator = get_coordinator()
    username = coordinator.username_for(_get_sid())
    if not username:
        return
    coordinator.vote_skip(username)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the default namespace."""
    socketio.on_event('connect', handle_connect, namespace='/')
    socketio.on_event('disconnect', handle_disconnect, namespace='/')
    socketio.on_event('registerUser', handle_register_user, namespace='/')
    socketio.on_event('voteSkip', handle_vote_skip, namespace='/')
