"""Turn and round state machine for a single room.

``apply`` is the only way a session changes. It validates a command
against the session phase and the caller, mutates the session in place
and returns the fresh snapshot. Rejections raise ``GameError`` before
anything is touched; commands that make no sense for the caller (a guest
pressing start, toggling an empty die) return ``None`` and are dropped.

Callers must hold the session's lock, see ``SessionRegistry.execute``.
"""

import random

from dicegame.commands import (
    Disconnect,
    EndTurn,
    JoinRoom,
    PlayAgain,
    RollDice,
    SetPayoutHandle,
    StartRound,
    ToggleKeep,
)
from dicegame.errors import ErrorKind, GameError
from dicegame.models import (
    DICE_COUNT,
    MIN_ROOM_SIZE,
    PHASE_FINISHED,
    PHASE_PLAYING,
    PHASE_WAITING,
    Player,
    RoundHistoryEntry,
    RoundResult,
    Turn,
    normalize_name,
    normalize_payout_handle,
)

from .scoring import score_dice, select_round_winner

_default_rng = random.SystemRandom()


def roll_die(rng) -> int:
    return rng.randint(1, 6)


def apply(session, caller_id, command, rng=None, min_players=MIN_ROOM_SIZE):
    handler = _HANDLERS.get(type(command))
    if handler is None:
        return None
    changed = handler(session, caller_id, command, rng or _default_rng, min_players)
    return session.to_dict() if changed else None


# ---- Turn helpers ----

def _open_turn(session) -> None:
    session.current_turn = Turn(player_id=session.players[session.current_player_index].id)


def _skip_disconnected(session) -> None:
    while (
        session.current_player_index < len(session.players)
        and session.players[session.current_player_index].disconnected
    ):
        session.current_player_index += 1


def _advance(session) -> None:
    """Move to the next connected player, or close the round."""
    session.current_player_index += 1
    _skip_disconnected(session)
    if session.current_player_index >= len(session.players):
        _complete_round(session)
    else:
        _open_turn(session)


def _complete_round(session) -> None:
    winner = select_round_winner(session.players)
    if winner:
        winner.wins += 1
    session.winner = winner.name if winner else None
    session.round_history.append(RoundHistoryEntry(
        number=len(session.round_history) + 1,
        results=list(session.pending_results),
        winner=session.winner,
    ))
    session.pending_results = []
    session.current_turn = None
    session.phase = PHASE_FINISHED


def _require_turn_owner(session, caller_id) -> Turn:
    if session.phase != PHASE_PLAYING:
        raise GameError(ErrorKind.GAME_IN_PROGRESS, 'Game is not in progress.')
    turn = session.current_turn
    if turn is None or turn.player_id != caller_id:
        raise GameError(ErrorKind.NOT_YOUR_TURN)
    return turn


# ---- Command handlers ----

def _join(session, caller_id, command, rng, min_players) -> bool:
    if session.phase != PHASE_WAITING:
        raise GameError(ErrorKind.GAME_IN_PROGRESS)
    existing = session.get_player(caller_id)
    if existing:
        # A released seat stays released
        if existing.disconnected:
            raise GameError(ErrorKind.INVALID_NAME, 'That name is taken.')
        return False
    # Disconnected players keep their seat
    if len(session.players) >= session.max_players:
        raise GameError(ErrorKind.ROOM_FULL)
    name = normalize_name(command.player_name)
    if not name:
        raise GameError(ErrorKind.INVALID_NAME)
    if session.has_name(name):
        raise GameError(ErrorKind.INVALID_NAME, 'That name is taken.')
    session.players.append(Player(id=caller_id, name=name))
    return True


def _begin_round(session, caller_id, expected_phase, min_players) -> bool:
    player = session.get_player(caller_id)
    if not player or not player.is_host:
        return False
    if session.phase != expected_phase:
        raise GameError(ErrorKind.GAME_IN_PROGRESS)
    if len(session.active_players) < min_players:
        raise GameError(ErrorKind.NOT_ENOUGH_PLAYERS, f'Need at least {min_players} players.')

    session.phase = PHASE_PLAYING
    session.winner = None
    session.pending_results = []
    for p in session.players:
        p.score = None
        p.qualified = False
    session.current_player_index = 0
    _skip_disconnected(session)
    _open_turn(session)
    return True


def _start(session, caller_id, command, rng, min_players) -> bool:
    return _begin_round(session, caller_id, PHASE_WAITING, min_players)


def _play_again(session, caller_id, command, rng, min_players) -> bool:
    return _begin_round(session, caller_id, PHASE_FINISHED, min_players)


def _roll(session, caller_id, command, rng, min_players) -> bool:
    turn = _require_turn_owner(session, caller_id)
    if turn.rolls_used >= turn.max_rolls:
        raise GameError(ErrorKind.NO_ROLLS_LEFT)
    turn.dice = [
        value if i in turn.kept_indices else roll_die(rng)
        for i, value in enumerate(turn.dice)
    ]
    turn.rolls_used += 1
    return True


def _toggle_keep(session, caller_id, command, rng, min_players) -> bool:
    turn = _require_turn_owner(session, caller_id)
    if turn.rolls_used == 0:
        raise GameError(ErrorKind.MUST_ROLL_FIRST)
    index = command.die_index
    if not 0 <= index < DICE_COUNT or turn.dice[index] is None:
        return False
    if index in turn.kept_indices:
        turn.kept_indices.remove(index)
    else:
        turn.kept_indices.append(index)
    return True


def _end_turn(session, caller_id, command, rng, min_players) -> bool:
    turn = _require_turn_owner(session, caller_id)
    if turn.rolls_used == 0:
        raise GameError(ErrorKind.MUST_ROLL_FIRST)
    player = session.players[session.current_player_index]
    result = score_dice(turn.dice)
    player.score = result.score
    player.qualified = result.qualified
    session.pending_results.append(RoundResult(
        name=player.name,
        score=result.score,
        qualified=result.qualified,
        dice=list(turn.dice),
    ))
    _advance(session)
    return True


def _set_payout_handle(session, caller_id, command, rng, min_players) -> bool:
    player = session.get_player(caller_id)
    if not player:
        return False
    player.payout_handle = normalize_payout_handle(command.handle)
    return True


def _disconnect(session, caller_id, command, rng, min_players) -> bool:
    player = session.get_player(caller_id)
    if not player or player.disconnected:
        return False
    player.disconnected = True
    turn = session.current_turn
    if session.phase == PHASE_PLAYING and turn is not None and turn.player_id == caller_id:
        # Leaving mid-turn forfeits the round
        session.pending_results.append(RoundResult(
            name=player.name,
            score=0,
            qualified=False,
            dice=list(turn.dice),
        ))
        _advance(session)
    return True


_HANDLERS = {
    JoinRoom: _join,
    StartRound: _start,
    PlayAgain: _play_again,
    RollDice: _roll,
    ToggleKeep: _toggle_keep,
    EndTurn: _end_turn,
    SetPayoutHandle: _set_payout_handle,
    Disconnect: _disconnect,
}
