from collections import namedtuple
from typing import Iterable, Optional

ScoreResult = namedtuple('ScoreResult', ['qualified', 'score'])

QUALIFIERS = (1, 4)


def score_dice(dice: Iterable[Optional[int]]) -> ScoreResult:
    """Score a finished set of dice.

    A set qualifies when it holds at least one 1 and at least one 4. One
    of each is set aside and the other dice are summed, so a qualified
    six-die hand scores between 4 and 24. Unset slots never count.
    """
    rest = [d for d in dice if d is not None]
    if not all(q in rest for q in QUALIFIERS):
        return ScoreResult(False, 0)
    for q in QUALIFIERS:
        rest.remove(q)
    return ScoreResult(True, sum(rest))


def select_round_winner(players):
    """Return the qualified player with the highest score.

    Ties go to whoever comes first in turn order. Returns None when
    nobody qualified.
    """
    best = None
    for p in players:
        if not p.qualified:
            continue
        if best is None or p.score > best.score:
            best = p
    return best
