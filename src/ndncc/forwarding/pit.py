from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional, Set

from ..face import Face
from ..name import Name
from ..packet import Interest
from ..scheduler import Scheduler, TimerHandle


@dataclass
class IncomingRecord:
    arrival_time: float
    retx_count: int = 1


@dataclass
class OutgoingRecord:
    face: Face
    sent_time: float
    retx_count: int = 1
    waiting_in_vain: bool = False


class PitEntry:
    """
    A pending interest: where it came from, and which paths of its route it
    was forwarded on, keyed by path index in the route's FIB entry.
    """

    def __init__(self, *, name: Name, route: Name) -> None:
        self.expires_at: Optional[float] = None
        self.incoming: Dict[Face, IncomingRecord] = {}
        self.name = name
        self.outgoing: Dict[int, OutgoingRecord] = {}
        self.route = route

        self._expire_handle: Optional[TimerHandle] = None
        self._nonces: Set[int] = set()

    @property
    def max_retx_count(self) -> int:
        return max((record.retx_count for record in self.incoming.values()), default=0)

    def add_incoming(self, face: Face, *, now: float) -> IncomingRecord:
        record = self.incoming.get(face)
        if record is None:
            record = self.incoming[face] = IncomingRecord(arrival_time=now)
        else:
            record.arrival_time = now
            record.retx_count += 1
        return record

    def add_nonce(self, nonce: int) -> bool:
        """
        Remember `nonce`, returning `False` if it was already seen.
        """
        if nonce in self._nonces:
            return False
        self._nonces.add(nonce)
        return True

    def add_outgoing(self, index: int, face: Face, *, now: float) -> OutgoingRecord:
        record = self.outgoing.get(index)
        if record is None:
            record = self.outgoing[index] = OutgoingRecord(face=face, sent_time=now)
        else:
            record.retx_count += 1
            record.sent_time = now
            record.waiting_in_vain = False
        return record

    def are_all_outgoing_in_vain(self) -> bool:
        return all(record.waiting_in_vain for record in self.outgoing.values())

    def clear_incoming(self) -> None:
        self.incoming.clear()

    def clear_outgoing(self) -> None:
        self.outgoing.clear()

    def has_outgoing(self, index: int) -> bool:
        return index in self.outgoing

    def outgoing_index_of(self, face: Face) -> Optional[int]:
        for index, record in self.outgoing.items():
            if record.face is face:
                return index
        return None

    def remove_incoming(self, face: Face) -> None:
        self.incoming.pop(face, None)

    def set_waiting_in_vain(self, index: int) -> None:
        self.outgoing[index].waiting_in_vain = True


class Pit:
    """
    Pending interest table, keyed by exact name.

    Each entry expires once the longest lifetime of the interests it
    aggregates has elapsed, at which point `on_timeout` is called with the
    entry before it is erased.
    """

    def __init__(
        self, *, scheduler: Scheduler, on_timeout: Callable[[PitEntry], None]
    ) -> None:
        self._entries: Dict[Name, PitEntry] = {}
        self._on_timeout = on_timeout
        self._scheduler = scheduler

    def __contains__(self, name: Name) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[PitEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def create(self, interest: Interest, *, route: Name) -> PitEntry:
        entry = PitEntry(name=interest.name, route=route)
        self._entries[interest.name] = entry
        return entry

    def erase(self, entry: PitEntry) -> None:
        self._scheduler.cancel(entry._expire_handle)
        entry._expire_handle = None
        if self._entries.get(entry.name) is entry:
            del self._entries[entry.name]

    def lookup(self, name: Name) -> Optional[PitEntry]:
        return self._entries.get(name)

    def update_lifetime(self, entry: PitEntry, lifetime: float) -> None:
        """
        Extend the lifetime of `entry` so it lives at least `lifetime` more
        seconds.
        """
        expires_at = self._scheduler.now() + lifetime
        if entry.expires_at is not None and expires_at <= entry.expires_at:
            return

        entry.expires_at = expires_at
        self._scheduler.cancel(entry._expire_handle)
        entry._expire_handle = self._scheduler.schedule(
            lifetime, self._expire, entry
        )

    def _expire(self, entry: PitEntry) -> None:
        entry._expire_handle = None
        self._on_timeout(entry)
        self.erase(entry)
