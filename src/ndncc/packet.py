from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional

from .name import Name


class NackCode(IntEnum):
    NORMAL_INTEREST = 0
    NACK_LOOP = 10
    NACK_CONGESTION = 11
    NACK_GIVEUP_PIT = 12


# NACK codes which tell the receiving node a downstream path answered in vain
IN_VAIN_NACK_CODES = frozenset(
    [NackCode.NACK_LOOP, NackCode.NACK_CONGESTION, NackCode.NACK_GIVEUP_PIT]
)


@dataclass(frozen=True)
class Interest:
    name: Name
    nonce: int
    lifetime: float
    nack: NackCode = NackCode.NORMAL_INTEREST
    hop_count: Optional[int] = None

    @property
    def is_nack(self) -> bool:
        return self.nack != NackCode.NORMAL_INTEREST

    def with_nack(self, nack: NackCode) -> "Interest":
        return replace(self, nack=nack)

    def without_nack(self) -> "Interest":
        return replace(self, nack=NackCode.NORMAL_INTEREST)

    def with_hop_count(self, hop_count: Optional[int]) -> "Interest":
        return replace(self, hop_count=hop_count)


@dataclass(frozen=True)
class ContentObject:
    name: Name
    payload_size: int
    hop_count: Optional[int] = None

    def with_hop_count(self, hop_count: Optional[int]) -> "ContentObject":
        return replace(self, hop_count=hop_count)


def increment_hop_count(hop_count: Optional[int]) -> Optional[int]:
    if hop_count is None:
        return None
    return hop_count + 1
