from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, dataclass
from typing import Any, Iterable, List

from hr_suite.session_store import load_state, save_state

logger = logging.getLogger(__name__)

ROSTER_KIND = "roster"


@dataclass(frozen=True, slots=True)
class Participant:
    id: str
    name: str

    def to_payload(self) -> dict[str, str]:
        return asdict(self)


class Roster:
    """Ordered participants of one event session.

    Order is insertion order. Duplicate names are allowed and reported through
    :meth:`name_frequency`; they are only removed by an explicit call to
    :meth:`deduplicate_by_name`.
    """

    def __init__(self, participants: Iterable[Participant] = ()) -> None:
        self._participants: List[Participant] = []
        self.replace(participants)

    def __len__(self) -> int:
        return len(self._participants)

    def __iter__(self):
        return iter(self._participants)

    @property
    def participants(self) -> List[Participant]:
        return list(self._participants)

    def ids(self) -> set[str]:
        return {participant.id for participant in self._participants}

    def replace(self, new_list: Iterable[Participant]) -> None:
        participants = list(new_list)
        ids = [participant.id for participant in participants]
        if len(ids) != len(set(ids)):
            raise ValueError("Participant ids must be unique within a roster.")
        self._participants = participants

    def extend(self, participants: Iterable[Participant]) -> None:
        self.replace([*self._participants, *participants])

    def remove_by_id(self, participant_id: str) -> bool:
        remaining = [p for p in self._participants if p.id != participant_id]
        removed = len(remaining) != len(self._participants)
        self._participants = remaining
        return removed

    def clear_all(self) -> None:
        self._participants = []

    def name_frequency(self) -> dict[str, int]:
        return dict(Counter(participant.name for participant in self._participants))

    def duplicate_names(self) -> set[str]:
        return {name for name, count in self.name_frequency().items() if count > 1}

    def has_duplicates(self) -> bool:
        return bool(self.duplicate_names())

    def deduplicate_by_name(self) -> int:
        """Keep the first participant per name; return how many were dropped."""
        seen: set[str] = set()
        unique: List[Participant] = []
        for participant in self._participants:
            if participant.name in seen:
                continue
            seen.add(participant.name)
            unique.append(participant)
        removed = len(self._participants) - len(unique)
        self._participants = unique
        return removed

    def to_payload(self) -> list[dict[str, str]]:
        return [participant.to_payload() for participant in self._participants]

    @classmethod
    def from_payload(cls, payload: Any) -> "Roster":
        """Rebuild a roster from stored JSON, skipping anything malformed."""
        if payload is None:
            return cls()
        if not isinstance(payload, list):
            logger.warning("Stored roster is %s, not a list; starting empty.", type(payload).__name__)
            return cls()

        participants: List[Participant] = []
        seen_ids: set[str] = set()
        for item in payload:
            if not isinstance(item, dict):
                continue
            participant_id = item.get("id")
            name = item.get("name")
            if not isinstance(participant_id, str) or not isinstance(name, str):
                continue
            if not participant_id or participant_id in seen_ids:
                continue
            seen_ids.add(participant_id)
            participants.append(Participant(id=participant_id, name=name))

        if len(participants) != len(payload):
            logger.warning(
                "Dropped %d malformed or repeated roster entries while loading.",
                len(payload) - len(participants),
            )
        return cls(participants)


def load_roster(client, code: str) -> Roster:
    return Roster.from_payload(load_state(client, ROSTER_KIND, code))


def save_roster(client, code: str, roster: Roster) -> None:
    save_state(client, ROSTER_KIND, code, roster.to_payload())
