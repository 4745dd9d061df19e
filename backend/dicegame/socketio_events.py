from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from dicegame import socketio
from dicegame.commands import Disconnect, parse_command
from dicegame.errors import GameError


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _registry():
    return current_app.extensions['dice_registry']


def _namespace() -> str:
    return current_app.config.get('SOCKETIO_NAMESPACE', '/ws')


def _broadcast_state(state) -> None:
    # Use socketio.emit so this also works while the sender is disconnecting
    socketio.emit('game_state', state, to=state['id'], namespace=_namespace())


def _emit_error(err: GameError) -> None:
    emit('error', err.to_dict())


def _player_entry(state, sid: str):
    return next((p for p in state['players'] if p['id'] == sid), None)


def _release_seat(sid: str) -> None:
    """Mark the caller disconnected in whatever room it was bound to."""
    registry = _registry()
    code = registry.unbind(sid)
    if not code:
        return
    try:
        state = registry.execute(code, sid, Disconnect())
    except GameError:
        return
    if state is None:
        return
    name = _player_entry(state, sid)['name']
    current_app.logger.info(f"[leave] room={code} player={sid} name={name}")
    leave_room(code)
    socketio.emit('player_left', {'name': name}, to=code, namespace=_namespace())
    _broadcast_state(state)


def _dispatch(event: str, data):
    """Route a room-scoped event to the caller's current session.

    Returns the broadcast snapshot, or None when nothing changed.
    """
    command = parse_command(event, data)
    if command is None:
        return None
    sid = _get_sid()
    code = _registry().room_for(sid)
    if not code:
        return None
    try:
        state = _registry().execute(code, sid, command)
    except GameError as err:
        current_app.logger.info(f"[reject] room={code} player={sid} event={event} kind={err.kind.value}")
        _emit_error(err)
        return None
    if state is None:
        return None
    current_app.logger.debug(f"[{event}] room={code} player={sid}")
    _broadcast_state(state)
    return state


def handle_connect(auth=None):
    emit('connected', {'message': f'Connected to {_namespace()}'})


def handle_disconnect(reason=None):
    _release_seat(_get_sid())


def handle_create_game(data=None):
    command = parse_command('create_game', data)
    if command is None:
        return
    sid = _get_sid()
    registry = _registry()
    try:
        code, session = registry.create(sid, command)
    except GameError as err:
        _emit_error(err)
        return
    if registry.room_for(sid):
        _release_seat(sid)
    registry.bind(sid, code)
    join_room(code)
    current_app.logger.info(
        f"[create] room={code} host={sid} max_players={session.max_players} wager={session.wager_enabled}"
    )
    emit('game_created', {'gameId': code, 'playerId': sid})
    _broadcast_state(registry.snapshot(code))


def handle_join_game(data=None):
    command = parse_command('join_game', data)
    if command is None:
        return
    sid = _get_sid()
    registry = _registry()
    session = registry.find(command.room_code)
    code = session.code if session else command.room_code
    try:
        state = registry.execute(code, sid, command)
    except GameError as err:
        current_app.logger.info(f"[reject] room={code} player={sid} event=join_game kind={err.kind.value}")
        _emit_error(err)
        return
    previous = registry.room_for(sid)
    if previous and previous != code:
        _release_seat(sid)
    registry.bind(sid, code)
    join_room(code)
    current_app.logger.info(f"[join] room={code} player={sid}")
    emit('game_joined', {'gameId': code, 'playerId': sid})
    _broadcast_state(state or registry.snapshot(code))


def handle_start_game(data=None):
    _dispatch('start_game', data)


def handle_roll_dice(data=None):
    _dispatch('roll_dice', data)


def handle_toggle_keep(data=None):
    _dispatch('toggle_keep', data)


def handle_end_turn(data=None):
    _dispatch('end_turn', data)


def handle_play_again(data=None):
    _dispatch('play_again', data)


def handle_set_payout_handle(data=None):
    state = _dispatch('set_payout_handle', data)
    player = _player_entry(state, _get_sid()) if state else None
    if player:
        emit('payout_handle_saved', {'handle': player['payoutHandle']})


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'create_game': handle_create_game,
        'join_game': handle_join_game,
        'start_game': handle_start_game,
        'roll_dice': handle_roll_dice,
        'toggle_keep': handle_toggle_keep,
        'end_turn': handle_end_turn,
        'play_again': handle_play_again,
        'set_payout_handle': handle_set_payout_handle,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace=namespace)
