from __future__ import annotations

import logging
import math
import random
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from hr_suite.session_store import load_state, save_state
from hr_suite.text_generation import fallback_team_names
from roster.store import Participant

logger = logging.getLogger(__name__)

GROUPS_KIND = "groups"


class EmptyRosterError(Exception):
    """Raised when grouping is requested for an empty roster."""


@dataclass(slots=True)
class Group:
    id: str
    name: str
    members: List[Participant]

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "members": [member.to_payload() for member in self.members],
        }


@dataclass(slots=True)
class GroupingBatch:
    """One grouping run; a new run replaces the stored batch wholesale."""

    id: str
    group_size: int
    theme: str
    groups: List[Group] = field(default_factory=list)
    names_source: str = "fallback"

    @property
    def member_count(self) -> int:
        return sum(len(group.members) for group in self.groups)

    def to_payload(self) -> dict[str, Any]:
        return {
            "batch_id": self.id,
            "group_size": self.group_size,
            "theme": self.theme,
            "names_source": self.names_source,
            "group_count": len(self.groups),
            "member_count": self.member_count,
            "groups": [group.to_payload() for group in self.groups],
        }

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["GroupingBatch"]:
        if not isinstance(payload, dict):
            return None
        try:
            groups = [
                Group(
                    id=str(group["id"]),
                    name=str(group["name"]),
                    members=[Participant(id=str(m["id"]), name=str(m["name"])) for m in group["members"]],
                )
                for group in payload["groups"]
            ]
            return cls(
                id=str(payload["batch_id"]),
                group_size=int(payload["group_size"]),
                theme=str(payload.get("theme", "")),
                groups=groups,
                names_source=str(payload.get("names_source", "fallback")),
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding malformed grouping: %s", exc)
            return None


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def shuffled(participants: Iterable[Participant], rng: Optional[random.Random] = None) -> List[Participant]:
    """Return an unbiased (Fisher-Yates) permutation of ``participants``."""
    items = list(participants)
    (rng or random).shuffle(items)
    return items


def group_count(total: int, group_size: int) -> int:
    return math.ceil(total / group_size)


def partition(items: Sequence[Participant], group_size: int) -> List[List[Participant]]:
    """Split ``items`` into contiguous runs of ``group_size``; the last may be shorter."""
    if group_size < 1:
        raise ValueError("group_size must be at least 1.")
    return [list(items[start:start + group_size]) for start in range(0, len(items), group_size)]


def resolve_names(generated: Sequence[Any], count: int) -> List[str]:
    """Take generated names slot by slot, filling gaps with ``Team n``."""
    fallback = fallback_team_names(count)
    names = []
    for index in range(count):
        candidate = generated[index] if index < len(generated) else None
        if isinstance(candidate, str) and candidate.strip():
            names.append(candidate.strip())
        else:
            names.append(fallback[index])
    return names


def build_batch(
    participants: Iterable[Participant],
    group_size: int,
    theme: str = "",
    *,
    rng: Optional[random.Random] = None,
) -> GroupingBatch:
    """Shuffle the roster and partition it into fallback-named groups."""
    roster = list(participants)
    if not roster:
        raise EmptyRosterError("Import participants before grouping.")

    chunks = partition(shuffled(roster, rng), group_size)
    names = fallback_team_names(len(chunks))
    groups = [Group(id=_new_id(), name=name, members=chunk) for name, chunk in zip(names, chunks)]
    return GroupingBatch(id=_new_id(), group_size=group_size, theme=theme, groups=groups)


def apply_names(batch: GroupingBatch, generated: Sequence[Any]) -> bool:
    """Rename groups from ``generated``; return True if any generated name was used."""
    names = resolve_names(generated, len(batch.groups))
    fallback = fallback_team_names(len(batch.groups))
    for group, name in zip(batch.groups, names):
        group.name = name
    used_generated = names != fallback
    batch.names_source = "generated" if used_generated else "fallback"
    return used_generated


def load_batch(client, code: str) -> Optional[GroupingBatch]:
    payload = load_state(client, GROUPS_KIND, code)
    if payload is None:
        return None
    return GroupingBatch.from_payload(payload)


def save_batch(client, code: str, batch: GroupingBatch) -> None:
    save_state(client, GROUPS_KIND, code, batch.to_payload())
