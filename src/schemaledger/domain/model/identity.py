"""Identity pairs: a local numeric id plus a globally unique uid."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from schemaledger.domain.errors import IdentityExhaustedError, InvalidIdentityError

MAX_ID: Final[int] = 2**32 - 1
MAX_UID: Final[int] = 2**64 - 1
UNSET_UID: Final[int] = 0


@dataclass(frozen=True, slots=True)
class IdUid:
    """Immutable ``(id, uid)`` pair, rendered as ``"<id>:<uid>"``.

    ``id`` is unique among siblings under the same parent and only ever grows;
    ``uid`` is unique across the whole document, retired uids included.
    The all-zero pair means "unset" and renders as an empty string.
    """

    id: int = 0
    uid: int = 0

    @classmethod
    def parse(cls, value: str) -> IdUid:
        text = value.strip()
        if not text:
            return UNSET
        id_part, sep, uid_part = text.partition(":")
        if not sep or not id_part.isdigit() or not uid_part.isdigit():
            raise InvalidIdentityError(f"invalid id:uid value {value!r}")
        pair = cls(int(id_part), int(uid_part))
        if pair == UNSET:
            return UNSET
        pair.validate()
        return pair

    @property
    def is_set(self) -> bool:
        return self.id != 0 or self.uid != UNSET_UID

    def validate(self) -> None:
        if not 0 < self.id <= MAX_ID:
            raise InvalidIdentityError(f"id out of range in {self.id}:{self.uid}")
        if not UNSET_UID < self.uid <= MAX_UID:
            raise InvalidIdentityError(f"uid out of range in {self.id}:{self.uid}")

    def next_id(self) -> int:
        """Return the local id following this one."""
        if self.id >= MAX_ID:
            raise IdentityExhaustedError(f"local id counter exhausted at {self}")
        return self.id + 1

    def with_uid(self, uid: int) -> IdUid:
        pair = IdUid(self.id, uid)
        pair.validate()
        return pair

    def __str__(self) -> str:
        if not self.is_set:
            return ""
        return f"{self.id}:{self.uid}"


UNSET: Final[IdUid] = IdUid()


def latest(current: IdUid, candidate: IdUid) -> IdUid:
    """Return whichever pair carries the larger local id (counters never go back)."""

    if candidate.id > current.id:
        return candidate
    return current
