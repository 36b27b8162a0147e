from scavenger import socketio
from conftest import ScriptedGateway


def _events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received() if pkt['name'] == name]


def _latest(packets, name):
    matching = [pkt['args'][0] for pkt in packets if pkt['name'] == name]
    return matching[-1] if matching else None


def test_connect_receives_presence_and_skip_status(sio_client):
    assert sio_client.is_connected()
    received = sio_client.get_received()
    assert _latest(received, 'onlineUsers') == []
    assert _latest(received, 'skipStatus') == {'votes': 0, 'needed': 0}


def test_register_user_broadcasts_presence(flask_app, sio_client):
    other = socketio.test_client(flask_app)
    sio_client.get_received()
    other.get_received()

    sio_client.emit('registerUser', 'alice')
    other.emit('registerUser', {'username': 'bob'})
    received = sio_client.get_received()
    assert _latest(received, 'onlineUsers') == ['alice', 'bob']
    assert _latest(received, 'skipStatus') == {'votes': 0, 'needed': 2}

    other.disconnect()
    received = sio_client.get_received()
    assert _latest(received, 'onlineUsers') == ['alice']
    assert _latest(received, 'skipStatus') == {'votes': 0, 'needed': 1}


def test_register_without_username_is_an_error(sio_client):
    sio_client.get_received()
    sio_client.emit('registerUser', '   ')
    errors = _events(sio_client, 'error')
    assert errors == [{'message': 'username is required (at most 64 characters)'}]


def test_register_rejects_overlong_username(sio_client, app_coordinator):
    sio_client.get_received()
    sio_client.emit('registerUser', 'x' * 65)
    assert len(_events(sio_client, 'error')) == 1
    assert app_coordinator.online_usernames() == []


def test_vote_skip_requires_registration(sio_client, app_coordinator):
    sio_client.get_received()
    sio_client.emit('voteSkip')
    assert sio_client.get_received() == []
    assert app_coordinator.snapshot()['active'] is True


def test_unanimous_vote_skips_round(flask_app, sio_client, app_coordinator):
    other = socketio.test_client(flask_app)
    sio_client.emit('registerUser', 'alice')
    other.emit('registerUser', 'bob')
    sio_client.get_received()

    sio_client.emit('voteSkip')
    sio_client.emit('voteSkip')
    received = sio_client.get_received()
    assert _latest(received, 'skipStatus') == {'votes': 1, 'needed': 2}
    assert _latest(received, 'roundSkipped') is None

    other.emit('voteSkip')
    received = sio_client.get_received()
    assert _latest(received, 'roundSkipped') == {
        'item': {'label': 'Notebook', 'hint': 'Lines, pages, and notes.'},
        'roundId': 1,
    }

    app_coordinator.timers.run_pending()
    received = sio_client.get_received()
    assert _latest(received, 'roundStarted')['roundId'] == 2
    assert _latest(received, 'skipStatus') == {'votes': 0, 'needed': 2}
    other.disconnect()


def test_win_round_trip(client, sio_client, app_coordinator):
    import io

    sio_client.emit('registerUser', 'alice')
    sio_client.get_received()
    app_coordinator.gateway = ScriptedGateway(matched=True, confidence=0.82)

    res = client.post('/api/upload', data={
        'username': 'alice',
        'targetLabel': 'Notebook',
        'image': (io.BytesIO(b'jpeg'), 'note.jpg'),
    }, content_type='multipart/form-data')
    assert res.get_json()['matched'] is True

    received = sio_client.get_received()
    names = [pkt['name'] for pkt in received]
    assert names.index('leaderboardUpdated') < names.index('roundEnded')
    ended = _latest(received, 'roundEnded')
    assert ended['winner'] == 'alice'
    assert ended['item']['label'] == 'Notebook'
    assert ended['roundId'] == 1
    assert ended['leaderboard'] == [{'username': 'alice', 'score': 1}]

    app_coordinator.timers.run_pending()
    assert _latest(sio_client.get_received(), 'roundStarted')['roundId'] == 2
