from dicegame import socketio


def _received(sio):
    return sio.get_received('/ws')


def _payloads(packets, name):
    return [pkt['args'][0] for pkt in packets if pkt['name'] == name]


def _last_state(packets):
    states = _payloads(packets, 'game_state')
    assert states, [pkt['name'] for pkt in packets]
    return states[-1]


def _create(sio, name='Ann', **extra):
    sio.emit('create_game', {'playerName': name, **extra}, namespace='/ws')
    packets = _received(sio)
    created = _payloads(packets, 'game_created')[0]
    return created['gameId'], created['playerId'], _last_state(packets)


def _join(sio, code, name):
    sio.emit('join_game', {'gameId': code, 'playerName': name}, namespace='/ws')
    return _received(sio)


def test_connect_ack(flask_app):
    sio = socketio.test_client(flask_app, namespace='/ws')
    assert sio.is_connected('/ws')
    assert any(pkt['name'] == 'connected' for pkt in _received(sio))
    sio.disconnect(namespace='/ws')


def test_ping_pong(make_sio):
    sio = make_sio()
    sio.emit('ping', {'n': 1}, namespace='/ws')
    assert _payloads(_received(sio), 'pong') == [{'n': 1}]


def test_create_game_acks_and_broadcasts(make_sio):
    ann = make_sio()
    code, pid, state = _create(ann, maxPlayers=2, wagerEnabled=True, wagerAmount=5)
    assert state['id'] == code
    assert state['phase'] == 'waiting'
    assert state['maxPlayers'] == 2
    assert state['pot'] == 5
    assert state['players'][0]['id'] == pid
    assert state['players'][0]['isHost'] is True


def test_join_broadcasts_to_whole_room(make_sio):
    ann, bo = make_sio(), make_sio()
    code, _, _ = _create(ann)
    packets = _join(bo, code.lower(), 'Bo')
    joined = _payloads(packets, 'game_joined')[0]
    assert joined['gameId'] == code
    assert [p['name'] for p in _last_state(packets)['players']] == ['Ann', 'Bo']
    assert [p['name'] for p in _last_state(_received(ann))['players']] == ['Ann', 'Bo']


def test_errors_go_only_to_caller(make_sio):
    ann, bo, cy = make_sio(), make_sio(), make_sio()
    code, _, _ = _create(ann)
    _join(bo, code, 'Bo')
    _received(ann)

    packets = _join(cy, code, 'BO')
    assert _payloads(packets, 'error') == [{'kind': 'invalid_name', 'message': 'That name is taken.'}]
    assert _payloads(packets, 'game_state') == []
    assert _received(ann) == []


def test_join_unknown_room(make_sio):
    bo = make_sio()
    packets = _join(bo, 'NOPE42', 'Bo')
    assert _payloads(packets, 'error')[0]['kind'] == 'room_not_found'


def test_malformed_events_are_ignored(make_sio):
    ann = make_sio()
    ann.emit('create_game', {'maxPlayers': 2}, namespace='/ws')
    ann.emit('create_game', 'garbage', namespace='/ws')
    ann.emit('roll_dice', namespace='/ws')
    ann.emit('toggle_keep', {'dieIndex': 'two'}, namespace='/ws')
    assert _received(ann) == []


def test_full_round_over_sockets(make_sio, rng):
    ann, bo = make_sio(), make_sio()
    code, ann_id, _ = _create(ann, maxPlayers=2)
    _join(bo, code, 'Bo')
    _received(ann)

    bo.emit('start_game', namespace='/ws')
    assert _received(bo) == []

    ann.emit('start_game', namespace='/ws')
    state = _last_state(_received(bo))
    assert state['phase'] == 'playing'
    assert state['currentTurn']['playerId'] == ann_id

    bo.emit('roll_dice', namespace='/ws')
    assert _payloads(_received(bo), 'error')[0]['kind'] == 'not_your_turn'

    ann.emit('end_turn', namespace='/ws')
    assert _payloads(_received(ann), 'error')[0]['kind'] == 'must_roll_first'

    rng.push(1, 4, 6, 6, 6, 6)
    ann.emit('roll_dice', namespace='/ws')
    ann.emit('toggle_keep', {'dieIndex': 0}, namespace='/ws')
    ann.emit('toggle_keep', {'dieIndex': 1}, namespace='/ws')
    rng.push(2, 2, 2, 2)
    ann.emit('roll_dice', namespace='/ws')
    turn = _last_state(_received(ann))['currentTurn']
    assert turn['dice'] == [1, 4, 2, 2, 2, 2]
    assert turn['keptIndices'] == [0, 1]
    ann.emit('end_turn', namespace='/ws')

    rng.push(3, 3, 3, 3, 3, 3)
    bo.emit('roll_dice', namespace='/ws')
    bo.emit('end_turn', namespace='/ws')
    state = _last_state(_received(bo))
    assert state['phase'] == 'finished'
    assert state['winner'] == 'Ann'
    assert state['roundHistory'][0]['number'] == 1

    ann.emit('play_again', namespace='/ws')
    state = _last_state(_received(ann))
    assert state['phase'] == 'playing'
    assert state['players'][0]['wins'] == 1


def test_payout_handle_saved(make_sio):
    ann = make_sio()
    _create(ann)
    ann.emit('set_payout_handle', {'handle': '@ann'}, namespace='/ws')
    packets = _received(ann)
    assert _payloads(packets, 'payout_handle_saved') == [{'handle': 'ann'}]
    assert _last_state(packets)['players'][0]['payoutHandle'] == 'ann'


def test_disconnect_mid_turn_advances_room(make_sio, flask_app):
    ann, bo, cy = make_sio(), make_sio(), make_sio()
    code, _, _ = _create(ann)
    _join(bo, code, 'Bo')
    _join(cy, code, 'Cy')
    ann.emit('start_game', namespace='/ws')
    ann.emit('roll_dice', namespace='/ws')
    _received(bo)

    ann.disconnect(namespace='/ws')
    packets = _received(bo)
    assert _payloads(packets, 'player_left') == [{'name': 'Ann'}]
    state = _last_state(packets)
    assert state['players'][0]['disconnected'] is True
    assert state['currentPlayerIndex'] == 1
    assert state['currentTurn']['playerId'] == state['players'][1]['id']

    session = flask_app.extensions['dice_registry'].find(code)
    assert [(r.name, r.score, r.qualified) for r in session.pending_results] == [('Ann', 0, False)]


def test_switching_rooms_releases_old_seat(make_sio, flask_app):
    ann, bo = make_sio(), make_sio()
    code, _, _ = _create(ann)
    _join(bo, code, 'Bo')
    _received(ann)

    _create(bo, 'Bo')
    packets = _received(ann)
    assert _payloads(packets, 'player_left') == [{'name': 'Bo'}]
    assert _last_state(packets)['players'][1]['disconnected'] is True


def test_returning_to_a_released_room_is_refused(make_sio, flask_app):
    ann, bo, cy = make_sio(), make_sio(), make_sio()
    room_a, ann_id, _ = _create(ann)
    _join(bo, room_a, 'Bo')
    _join(cy, room_a, 'Cy')
    room_b, _, _ = _create(ann, 'Ann')
    _received(bo)

    packets = _join(ann, room_a, 'Ann')
    assert _payloads(packets, 'game_joined') == []
    assert _payloads(packets, 'error') == [{'kind': 'invalid_name', 'message': 'That name is taken.'}]

    ann.emit('start_game', namespace='/ws')
    assert _payloads(_received(ann), 'error')[0]['kind'] == 'not_enough_players'
    assert _received(bo) == []

    registry = flask_app.extensions['dice_registry']
    session_a = registry.find(room_a)
    assert session_a.phase == 'waiting'
    assert session_a.get_player(ann_id).disconnected is True
    assert registry.room_for(ann_id) == room_b
    assert registry.find(room_b).get_player(ann_id).disconnected is False


def test_payout_ack_matches_broadcast(make_sio):
    ann, bo = make_sio(), make_sio()
    code, _, _ = _create(ann)
    _join(bo, code, 'Bo')
    _received(ann)

    bo.emit('set_payout_handle', {'handle': ' @bo-pays '}, namespace='/ws')
    packets = _received(bo)
    ack = _payloads(packets, 'payout_handle_saved')
    assert ack == [{'handle': 'bo-pays'}]
    assert _last_state(packets)['players'][1]['payoutHandle'] == ack[0]['handle']
    assert _last_state(_received(ann))['players'][1]['payoutHandle'] == 'bo-pays'
