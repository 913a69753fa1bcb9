"""Collision-free uid generation for one reconciliation run."""

from __future__ import annotations

import random
from logging import getLogger
from typing import TYPE_CHECKING, Final

from schemaledger.domain.errors import IdentityExhaustedError

from .identity import UNSET_UID

if TYPE_CHECKING:
    from .document import ModelDocument

log = getLogger(__name__)

MAX_GENERATE_ATTEMPTS: Final[int] = 1000
# positive signed 64-bit range so engines with signed longs read uids unchanged
UID_BITS: Final[int] = 63


class UidPool:
    """Hands out uids distinct from every uid the document has ever known.

    The known set is the document's active identities (entities, properties,
    indexes, relations and the ``last*Id`` counters), its four retired lists,
    and everything this pool issued earlier in the run.
    """

    def __init__(self, document: ModelDocument, *, rng: random.Random | None = None) -> None:
        self._document = document
        self._rng = rng or random.SystemRandom()
        self._issued: set[int] = set()

    @property
    def issued(self) -> frozenset[int]:
        return frozenset(self._issued)

    def contains(self, uid: int) -> bool:
        return uid in self._issued or uid in self._document.all_uids()

    def generate(self) -> int:
        known = self._document.all_uids() | self._issued
        for _ in range(MAX_GENERATE_ATTEMPTS):
            uid = self._rng.getrandbits(UID_BITS)
            if uid == UNSET_UID or uid in known:
                continue
            self._issued.add(uid)
            return uid
        raise IdentityExhaustedError(
            f"could not generate a unique uid after {MAX_GENERATE_ATTEMPTS} attempts"
        )
