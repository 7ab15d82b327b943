from typing import Iterable, Iterator, Tuple, Union


class Name:
    """
    A hierarchical name such as ``/prefix1/42``.

    Names are immutable and hashable so they can key the FIB and the PIT.
    """

    __slots__ = ("_components",)

    def __init__(self, components: Iterable[str] = ()) -> None:
        self._components: Tuple[str, ...] = tuple(components)

    @classmethod
    def parse(cls, value: str) -> "Name":
        return cls(component for component in value.split("/") if component)

    def append(self, component: Union[str, int]) -> "Name":
        return Name(self._components + (str(component),))

    def is_prefix_of(self, other: "Name") -> bool:
        return other._components[: len(self._components)] == self._components

    def prefixes(self) -> Iterator["Name"]:
        """
        Yield the prefixes of this name, longest first, down to ``/``.
        """
        for length in range(len(self._components), -1, -1):
            yield Name(self._components[:length])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Name):
            return NotImplemented
        return self._components == other._components

    def __getitem__(self, index: int) -> str:
        return self._components[index]

    def __hash__(self) -> int:
        return hash(self._components)

    def __iter__(self) -> Iterator[str]:
        return iter(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __repr__(self) -> str:
        return "Name(%r)" % str(self)

    def __str__(self) -> str:
        return "/" + "/".join(self._components)
