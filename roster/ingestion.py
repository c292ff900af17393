"""Turn pasted text or uploaded name lists into participant records."""

from __future__ import annotations

import re
import uuid
from typing import Iterable, List

from .store import Participant

SEPARATORS = re.compile(r"[\n,]+")

ALLOWED_EXTENSIONS = (".csv", ".txt")

SAMPLE_NAMES = (
    "王小明", "李美玲", "張家豪", "陳怡君", "林俊宏",
    "黃雅婷", "吳志偉", "劉淑芬", "蔡宗翰", "楊佩珊",
    "許文傑", "鄭惠如", "謝承恩", "郭靜宜", "洪冠廷",
    "曾詩涵", "邱建良", "廖家瑜", "賴柏翰", "周欣怡",
)


def split_names(text: str) -> List[str]:
    """Split on newlines and commas, trim, and drop empty tokens."""
    if not text:
        return []
    return [token.strip() for token in SEPARATORS.split(text) if token.strip()]


def new_participant_id(taken: set[str]) -> str:
    while True:
        candidate = uuid.uuid4().hex[:12]
        if candidate not in taken:
            taken.add(candidate)
            return candidate


def build_participants(names: Iterable[str], existing_ids: Iterable[str] = ()) -> List[Participant]:
    taken = set(existing_ids)
    return [Participant(id=new_participant_id(taken), name=name) for name in names]


def parse_participants(text: str, existing_ids: Iterable[str] = ()) -> List[Participant]:
    """Parse ``text`` into new participants whose ids avoid ``existing_ids``."""
    return build_participants(split_names(text), existing_ids)


def sample_participants(existing_ids: Iterable[str] = ()) -> List[Participant]:
    return build_participants(SAMPLE_NAMES, existing_ids)


def decode_upload(raw: bytes) -> str:
    """Decode an uploaded roster file; a UTF-8 byte-order mark is tolerated."""
    return raw.decode("utf-8-sig")


def has_allowed_extension(filename: str) -> bool:
    return (filename or "").lower().endswith(ALLOWED_EXTENSIONS)
