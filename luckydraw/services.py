from __future__ import annotations

import logging
import random
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, List, Optional

from django.conf import settings

from hr_suite.session_store import load_state, save_state
from roster.store import Participant

logger = logging.getLogger(__name__)

WINNERS_KIND = "winners"

SPIN_MIN_STEPS = 40
SPIN_MAX_STEPS = 59
SPIN_START_DELAY_MS = 50
SPIN_DELAY_STEP_MS = 10
SPIN_SLOWDOWN_AFTER = 0.7


class NoEligibleParticipantsError(Exception):
    """Raised when the eligible pool is empty."""


@dataclass(frozen=True, slots=True)
class Winner:
    id: str
    name: str
    prize: str
    timestamp: int

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_payload(cls, item: Any) -> Optional["Winner"]:
        if not isinstance(item, dict):
            return None
        try:
            return cls(
                id=str(item["id"]),
                name=str(item["name"]),
                prize=str(item.get("prize") or default_prize()),
                timestamp=int(item["timestamp"]),
            )
        except (KeyError, TypeError, ValueError):
            return None


@dataclass(frozen=True, slots=True)
class SpinFrame:
    index: int
    delay_ms: int


@dataclass(slots=True)
class DrawResult:
    winner: Winner
    pool: List[Participant]
    frames: List[SpinFrame] = field(default_factory=list)


def default_prize() -> str:
    return getattr(settings, "HRSUITE_DEFAULT_PRIZE", "Lucky Prize")


def now_ms() -> int:
    return int(time.time() * 1000)


def spin_frames(pool_size: int, winner_index: int, rng: random.Random) -> List[SpinFrame]:
    """Build the highlight sequence the client animates before revealing the winner.

    The highlight advances one slot per frame, slowing down over the last
    stretch, and the final frame always rests on ``winner_index``.
    """
    steps = rng.randint(SPIN_MIN_STEPS, SPIN_MAX_STEPS)
    start = (winner_index - steps) % pool_size
    frames: List[SpinFrame] = []
    delay = SPIN_START_DELAY_MS
    for step in range(1, steps + 1):
        if step > steps * SPIN_SLOWDOWN_AFTER:
            delay += SPIN_DELAY_STEP_MS
        frames.append(SpinFrame(index=(start + step) % pool_size, delay_ms=delay))
    return frames


class DrawEngine:
    """Uniform lucky draw over a roster with an optional no-repeat rule.

    The engine reads the roster but never modifies it. Winners accumulate in
    :attr:`winners`, most recent first.
    """

    def __init__(
        self,
        participants: Iterable[Participant],
        winners: Iterable[Winner] = (),
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._participants = list(participants)
        self.winners: List[Winner] = list(winners)
        self._rng = rng or random.Random()

    def eligible_pool(self, exclude_winners: bool = True) -> List[Participant]:
        if not exclude_winners:
            return list(self._participants)
        won = {winner.id for winner in self.winners}
        return [p for p in self._participants if p.id not in won]

    def draw(self, prize: str = "", *, exclude_winners: bool = True) -> DrawResult:
        """Pick one eligible participant uniformly at random and record the win."""
        pool = self.eligible_pool(exclude_winners)
        if not pool:
            raise NoEligibleParticipantsError("No eligible participants are available for the draw.")

        index = self._rng.randrange(len(pool))
        chosen = pool[index]
        winner = Winner(
            id=chosen.id,
            name=chosen.name,
            prize=(prize or "").strip() or default_prize(),
            timestamp=now_ms(),
        )
        self.winners.insert(0, winner)
        return DrawResult(winner=winner, pool=pool, frames=spin_frames(len(pool), index, self._rng))

    def clear_winners(self) -> None:
        self.winners = []


def winners_from_payload(payload: Any) -> List[Winner]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        logger.warning("Stored winner history is %s, not a list; starting empty.", type(payload).__name__)
        return []
    winners = [Winner.from_payload(item) for item in payload]
    return [winner for winner in winners if winner is not None]


def winners_to_payload(winners: Iterable[Winner]) -> List[dict[str, Any]]:
    return [winner.to_payload() for winner in winners]


def load_winners(client, code: str) -> List[Winner]:
    return winners_from_payload(load_state(client, WINNERS_KIND, code))


def save_winners(client, code: str, winners: Iterable[Winner]) -> None:
    save_state(client, WINNERS_KIND, code, winners_to_payload(winners))
