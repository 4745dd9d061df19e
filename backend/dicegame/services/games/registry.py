import math
import threading
from typing import Dict, Optional, Tuple

from dicegame.commands import CreateRoom
from dicegame.errors import ErrorKind, GameError
from dicegame.models import (
    MAX_ROOM_SIZE,
    MIN_ROOM_SIZE,
    GameSession,
    Player,
    generate_room_code,
    normalize_name,
)

from .engine import apply


def _clamp_max_players(raw, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError, OverflowError):
        value = default
    return min(max(MIN_ROOM_SIZE, value), MAX_ROOM_SIZE)


def _clamp_wager(raw, default: float, minimum: float) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        value = 0.0
    # NaN, infinities and zero fall back to the default stake
    if not value or not math.isfinite(value):
        value = default
    return max(minimum, value)


class SessionRegistry:
    """Owns every live room, keyed by room code.

    Sessions are never removed; they live until the process exits. Each
    session has its own lock so commands against one room run one at a
    time, while different rooms proceed independently.
    """

    def __init__(self, code_length: int = 6, min_players: int = MIN_ROOM_SIZE,
                 default_max_players: int = 3, default_wager: float = 1.0,
                 min_wager: float = 0.01, rng=None):
        self.code_length = code_length
        self.min_players = min_players
        self.default_max_players = default_max_players
        self.default_wager = default_wager
        self.min_wager = min_wager
        self.rng = rng
        self._sessions: Dict[str, GameSession] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._sid_to_code: Dict[str, str] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config, rng=None) -> 'SessionRegistry':
        return cls(
            code_length=int(config.get('ROOM_CODE_LENGTH', 6)),
            min_players=int(config.get('MIN_PLAYERS', MIN_ROOM_SIZE)),
            default_max_players=int(config.get('DEFAULT_MAX_PLAYERS', 3)),
            default_wager=float(config.get('DEFAULT_WAGER_AMOUNT', 1)),
            min_wager=float(config.get('MIN_WAGER_AMOUNT', 0.01)),
            rng=rng,
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def codes(self):
        with self._lock:
            return sorted(self._sessions)

    # ---- Sessions ----

    def create(self, creator_id: str, command: CreateRoom) -> Tuple[str, GameSession]:
        name = normalize_name(command.player_name)
        if not name:
            raise GameError(ErrorKind.INVALID_NAME)
        with self._lock:
            code = generate_room_code(self._sessions, length=self.code_length)
            session = GameSession(
                code=code,
                max_players=_clamp_max_players(command.max_players, self.default_max_players),
                wager_enabled=bool(command.wager_enabled),
                wager_amount=_clamp_wager(command.wager_amount, self.default_wager, self.min_wager),
                players=[Player(id=creator_id, name=name, is_host=True)],
            )
            self._sessions[code] = session
            self._locks[code] = threading.RLock()
        return code, session

    def find(self, room_code) -> Optional[GameSession]:
        if not isinstance(room_code, str):
            return None
        return self._sessions.get(room_code.strip().upper())

    def snapshot(self, room_code) -> Optional[dict]:
        session = self.find(room_code)
        if session is None:
            return None
        with self._locks[session.code]:
            return session.to_dict()

    def execute(self, room_code, caller_id: str, command):
        """Run ``command`` against a room, serialised with every other command on it."""
        session = self.find(room_code)
        if session is None:
            raise GameError(ErrorKind.ROOM_NOT_FOUND)
        with self._locks[session.code]:
            return apply(session, caller_id, command, rng=self.rng, min_players=self.min_players)

    # ---- Connection index ----

    def bind(self, sid: str, room_code: str) -> None:
        with self._lock:
            self._sid_to_code[sid] = room_code

    def room_for(self, sid: str) -> Optional[str]:
        return self._sid_to_code.get(sid)

    def unbind(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._sid_to_code.pop(sid, None)
