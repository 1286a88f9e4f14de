from __future__ import annotations

import math
from typing import Iterable, List

from confpulse.models.badge import LeaderboardEntry
from confpulse.models.participant import Participant


def rank_participants(participants: Iterable[Participant]) -> List[LeaderboardEntry]:
    """Rank by points, highest first.

    ``sorted`` is stable, so participants with equal points keep the order in
    which the store enumerated them.
    """
    ordered = sorted(participants, key=lambda p: p.total_points or 0, reverse=True)
    return [
        LeaderboardEntry(
            rank=index + 1,
            code=p.code,
            points=p.total_points or 0,
            name=p.name,
            badges=list(p.badges),
        )
        for index, p in enumerate(ordered)
    ]


def rank_of(entries: Iterable[LeaderboardEntry], participant_code: str) -> int:
    """1-based rank of ``participant_code``, 0 when absent."""
    for entry in entries:
        if entry.code == participant_code:
            return entry.rank
    return 0


def top_fraction_threshold(total_participants: int, fraction: float) -> int:
    return math.ceil(total_participants * fraction)


def is_in_top_fraction(rank: int, total_participants: int, fraction: float) -> bool:
    return 0 < rank <= top_fraction_threshold(total_participants, fraction)
