from scavenger import create_app, socketio, get_coordinator

app = create_app()

if __name__ == '__main__':
    # First round starts with the server, not with every `flask` CLI call
    get_coordinator(app).start_round()
    # Use SocketIO server to enable websockets
    socketio.run(app, host='0.0.0.0', port=app.config['PORT'], allow_unsafe_werkzeug=True)
