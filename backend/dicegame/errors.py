from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    ROOM_NOT_FOUND = 'room_not_found'
    GAME_IN_PROGRESS = 'game_in_progress'
    NOT_YOUR_TURN = 'not_your_turn'
    NO_ROLLS_LEFT = 'no_rolls_left'
    MUST_ROLL_FIRST = 'must_roll_first'
    NOT_ENOUGH_PLAYERS = 'not_enough_players'
    INVALID_NAME = 'invalid_name'
    ROOM_FULL = 'room_full'


DEFAULT_MESSAGES = {
    ErrorKind.ROOM_NOT_FOUND: 'Room not found. Check the code.',
    ErrorKind.GAME_IN_PROGRESS: 'Game already in progress.',
    ErrorKind.NOT_YOUR_TURN: 'Not your turn.',
    ErrorKind.NO_ROLLS_LEFT: 'No rolls left. End your turn.',
    ErrorKind.MUST_ROLL_FIRST: 'Roll at least once first.',
    ErrorKind.NOT_ENOUGH_PLAYERS: 'Need at least 2 players.',
    ErrorKind.INVALID_NAME: 'Enter a name.',
    ErrorKind.ROOM_FULL: 'Room is full.',
}


class GameError(Exception):
    """A rejected player action. Session state is left untouched."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    def to_dict(self):
        return {'kind': self.kind.value, 'message': self.message}
