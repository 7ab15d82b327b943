from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from ..face import Face
from ..name import Name

K_INITIAL_CWND = 1
K_MINIMUM_CWND = 1


@dataclass
class PathCandidate:
    face: Face
    cost: int
    cwnd: int


class FibEntry:
    """
    The candidate paths towards a name prefix.

    Paths are only ever appended, so a path's index is stable for the
    lifetime of the entry and pending interests can refer to paths by index.
    """

    def __init__(
        self, prefix: Name, *, initial_cwnd: int = K_INITIAL_CWND, cwnd_step: int = 1
    ) -> None:
        self.cwnd_step = cwnd_step
        self.initial_cwnd = initial_cwnd
        self.paths: List[PathCandidate] = []
        self.prefix = prefix

    @property
    def total_cwnd(self) -> int:
        return sum(path.cwnd for path in self.paths)

    def add_path(self, face: Face, cost: int) -> int:
        index = self.index_of(face)
        if index is not None:
            self.paths[index].cost = cost
            return index

        cwnd = max(self.initial_cwnd, K_MINIMUM_CWND)
        self.paths.append(PathCandidate(face=face, cost=cost, cwnd=cwnd))
        return len(self.paths) - 1

    def decrease_cwnd(self, index: int) -> int:
        path = self.paths[index]
        path.cwnd = max(path.cwnd - self.cwnd_step, K_MINIMUM_CWND)
        return path.cwnd

    def increase_cwnd(self, index: int) -> int:
        path = self.paths[index]
        path.cwnd += self.cwnd_step
        return path.cwnd

    def index_of(self, face: Face) -> Optional[int]:
        for index, path in enumerate(self.paths):
            if path.face is face:
                return index
        return None


class Fib:
    """
    Forwarding information base: name prefixes and their candidate paths.
    """

    def __init__(
        self, *, initial_cwnd: int = K_INITIAL_CWND, cwnd_step: int = 1
    ) -> None:
        self.cwnd_step = cwnd_step
        self.initial_cwnd = initial_cwnd
        self._entries: Dict[Name, FibEntry] = {}

    def __getitem__(self, prefix: Name) -> FibEntry:
        return self._entries[prefix]

    def __iter__(self) -> Iterator[FibEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def add_route(self, prefix: Name, face: Face, cost: int = 1) -> FibEntry:
        entry = self._entries.get(prefix)
        if entry is None:
            entry = FibEntry(
                prefix, initial_cwnd=self.initial_cwnd, cwnd_step=self.cwnd_step
            )
            self._entries[prefix] = entry
        entry.add_path(face, cost)
        return entry

    def longest_prefix_match(self, name: Name) -> Optional[FibEntry]:
        for prefix in name.prefixes():
            entry = self._entries.get(prefix)
            if entry is not None:
                return entry
        return None
