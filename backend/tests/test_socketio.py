def _events(client, name):
    return [msg['args'][0] for msg in client.get_received() if msg['name'] == name]


def test_create_and_join_over_socketio(sio_factory):
    alice = sio_factory()
    bob = sio_factory()

    ack = alice.emit('create_room', {'roomId': 'sock1', 'playerName': 'Alice'}, callback=True)
    assert ack == {'ok': True}
    created = _events(alice, 'room_created')
    assert created[0]['roomId'] == 'SOCK1'
    assert created[0]['isCreator'] is True

    ack = bob.emit('join_room', {'roomId': 'SOCK1', 'playerName': 'Bob'}, callback=True)
    assert ack == {'ok': True}

    updates = _events(alice, 'room_update')
    assert [p['name'] for p in updates[-1]['players']] == ['Alice', 'Bob']
    assert _events(bob, 'room_update')


def test_join_errors_go_to_caller_only(sio_factory):
    alice = sio_factory()
    carol = sio_factory()
    alice.emit('create_room', {'roomId': 'sock2', 'playerName': 'Alice'}, callback=True)
    alice.get_received()

    ack = carol.emit('join_room', {'roomId': 'sock2', 'playerName': 'Alice'}, callback=True)
    assert ack == {'ok': False, 'error': 'name_taken'}
    assert _events(carol, 'name_taken')[0]['error'] == 'name_taken'
    assert alice.get_received() == []

    ack = carol.emit('join_room', {'roomId': 'nope', 'playerName': 'Carol'}, callback=True)
    assert ack == {'ok': False, 'error': 'room_not_found'}


def test_game_starts_and_ends_on_disconnect(flask_app, sio_factory):
    alice = sio_factory()
    bob = sio_factory()
    alice.emit('create_room', {'roomId': 'sock3', 'playerName': 'Alice'}, callback=True)
    bob.emit('join_room', {'roomId': 'sock3', 'playerName': 'Bob'}, callback=True)

    alice.emit('toggle_ready', {'roomId': 'sock3'}, callback=True)
    bob.emit('toggle_ready', {'roomId': 'sock3'}, callback=True)

    received = alice.get_received()
    started = [m['args'][0] for m in received if m['name'] == 'game_started']
    assert started and started[0]['round'] == 1
    assert _events(bob, 'game_started')

    ack = alice.emit('submit_prompt', {'roomId': 'sock3', 'prompt': 'red car'}, callback=True)
    assert ack == {'ok': True}
    submitted = _events(bob, 'prompt_submitted')
    assert submitted[0]['imageUrl']

    bob.disconnect()
    finished = _events(alice, 'game_finished')
    assert finished[0]['winner']['name'] == 'Alice'

    room = flask_app.extensions['imprompt'].store.get('SOCK3')
    assert room.game_state == 'finished'
