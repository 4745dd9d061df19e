"""In-memory game models.

Nothing here is persisted: a session lives for as long as the process
that created it. ``GameSession.to_dict`` is the snapshot broadcast to
every member of a room after each change.
"""

import random
import string
from dataclasses import dataclass, field
from typing import Dict, List, Optional

DICE_COUNT = 6
MAX_ROLLS = 3
NAME_MAX_LENGTH = 20
PAYOUT_HANDLE_MAX_LENGTH = 50
MIN_ROOM_SIZE = 2
MAX_ROOM_SIZE = 4

PHASE_WAITING = 'waiting'
PHASE_PLAYING = 'playing'
PHASE_FINISHED = 'finished'

# No 0/O or 1/I so codes read back unambiguously
ROOM_CODE_ALPHABET = ''.join(
    c for c in string.ascii_uppercase + string.digits if c not in '0O1I'
)

_sysrand = random.SystemRandom()


def generate_room_code(taken, length=6):
    """Generate a short room code not present in ``taken``."""
    while True:
        code = ''.join(_sysrand.choices(ROOM_CODE_ALPHABET, k=length))
        if code not in taken:
            return code


def normalize_name(raw) -> str:
    if not isinstance(raw, str):
        return ''
    return raw.strip()[:NAME_MAX_LENGTH]


def normalize_payout_handle(raw) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    handle = raw.strip()
    if handle.startswith('@'):
        handle = handle[1:]
    return handle[:PAYOUT_HANDLE_MAX_LENGTH] or None


@dataclass
class Player:
    id: str
    name: str
    is_host: bool = False
    score: Optional[int] = None
    qualified: bool = False
    wins: int = 0
    disconnected: bool = False
    payout_handle: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'qualified': self.qualified,
            'wins': self.wins,
            'isHost': self.is_host,
            'disconnected': self.disconnected,
            'payoutHandle': self.payout_handle,
        }


@dataclass
class Turn:
    player_id: str
    dice: List[Optional[int]] = field(default_factory=lambda: [None] * DICE_COUNT)
    kept_indices: List[int] = field(default_factory=list)
    rolls_used: int = 0
    max_rolls: int = MAX_ROLLS

    @property
    def rolls_left(self) -> int:
        return self.max_rolls - self.rolls_used

    def to_dict(self) -> Dict:
        return {
            'playerId': self.player_id,
            'dice': list(self.dice),
            'keptIndices': list(self.kept_indices),
            'rollsUsed': self.rolls_used,
            'maxRolls': self.max_rolls,
        }


@dataclass
class RoundResult:
    name: str
    score: int
    qualified: bool
    dice: List[Optional[int]]

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'score': self.score,
            'qualified': self.qualified,
            'dice': list(self.dice),
        }


@dataclass
class RoundHistoryEntry:
    number: int
    results: List[RoundResult]
    winner: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'number': self.number,
            'results': [r.to_dict() for r in self.results],
            'winner': self.winner,
        }


@dataclass
class GameSession:
    code: str
    max_players: int = 3
    wager_enabled: bool = False
    wager_amount: float = 1.0
    phase: str = PHASE_WAITING
    players: List[Player] = field(default_factory=list)
    current_player_index: int = 0
    current_turn: Optional[Turn] = None
    pending_results: List[RoundResult] = field(default_factory=list)
    round_history: List[RoundHistoryEntry] = field(default_factory=list)
    winner: Optional[str] = None

    @property
    def host(self) -> Optional[Player]:
        return next((p for p in self.players if p.is_host), None)

    @property
    def active_players(self) -> List[Player]:
        return [p for p in self.players if not p.disconnected]

    @property
    def pot(self):
        if not self.wager_enabled:
            return 0
        return len(self.active_players) * self.wager_amount

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def has_name(self, name: str) -> bool:
        folded = name.casefold()
        return any(p.name.casefold() == folded for p in self.players)

    def to_dict(self) -> Dict:
        return {
            'id': self.code,
            'phase': self.phase,
            'maxPlayers': self.max_players,
            'wagerEnabled': self.wager_enabled,
            'wagerAmount': self.wager_amount,
            'pot': self.pot,
            'players': [p.to_dict() for p in self.players],
            'currentPlayerIndex': self.current_player_index,
            'currentTurn': self.current_turn.to_dict() if self.current_turn else None,
            'roundHistory': [h.to_dict() for h in self.round_history],
            'winner': self.winner,
        }
