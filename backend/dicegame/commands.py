"""Player commands.

Each inbound Socket.IO event is parsed into one of these before it
reaches the game engine. ``parse_command`` returns ``None`` for unknown
events and malformed payloads, which callers drop without replying.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class CreateRoom:
    player_name: str
    max_players: Any = None
    wager_enabled: bool = False
    wager_amount: Any = None


@dataclass(frozen=True)
class JoinRoom:
    room_code: str
    player_name: str


@dataclass(frozen=True)
class StartRound:
    pass


@dataclass(frozen=True)
class RollDice:
    pass


@dataclass(frozen=True)
class ToggleKeep:
    die_index: int


@dataclass(frozen=True)
class EndTurn:
    pass


@dataclass(frozen=True)
class PlayAgain:
    pass


@dataclass(frozen=True)
class SetPayoutHandle:
    handle: Optional[str]


@dataclass(frozen=True)
class Disconnect:
    pass


Command = Union[
    CreateRoom, JoinRoom, StartRound, RollDice, ToggleKeep,
    EndTurn, PlayAgain, SetPayoutHandle, Disconnect,
]


def _as_dict(data) -> dict:
    return data if isinstance(data, dict) else {}


def parse_command(event: str, data=None) -> Optional[Command]:
    payload = _as_dict(data)
    if event == 'create_game':
        name = payload.get('playerName')
        if not isinstance(name, str):
            return None
        return CreateRoom(
            player_name=name,
            max_players=payload.get('maxPlayers'),
            wager_enabled=bool(payload.get('wagerEnabled')),
            wager_amount=payload.get('wagerAmount'),
        )
    if event == 'join_game':
        code = payload.get('gameId')
        name = payload.get('playerName')
        if not isinstance(code, str):
            return None
        return JoinRoom(room_code=code, player_name=name if isinstance(name, str) else '')
    if event == 'toggle_keep':
        index = payload.get('dieIndex')
        # bool is an int subclass; reject it explicitly
        if not isinstance(index, int) or isinstance(index, bool):
            return None
        return ToggleKeep(die_index=index)
    if event == 'set_payout_handle':
        handle = payload.get('handle')
        return SetPayoutHandle(handle=handle if isinstance(handle, str) else None)
    simple = {
        'start_game': StartRound,
        'roll_dice': RollDice,
        'end_turn': EndTurn,
        'play_again': PlayAgain,
    }.get(event)
    return simple() if simple else None
