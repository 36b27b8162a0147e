ONLINE_USERS = 'onlineUsers'
SKIP_STATUS = 'skipStatus'
ROUND_STARTED = 'roundStarted'
ROUND_ENDED = 'roundEnded'
ROUND_SKIPPED = 'roundSkipped'
LEADERBOARD_UPDATED = 'leaderboardUpdated'


class SocketIOChannel:
    """Outbound events for every connected client, over Flask-SocketIO.

    The coordinator only knows ``emit(event, payload, to=None)``; anything
    with that method can stand in for this channel.
    """

    def __init__(self, socketio, namespace='/'):
        self.socketio = socketio
        self.namespace = namespace

    def emit(self, event, payload, to=None):
        # socketio.emit works outside request context, so background timers can use it
        self.socketio.emit(event, payload, namespace=self.namespace, to=to)
