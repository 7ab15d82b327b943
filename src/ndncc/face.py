import abc
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Protocol

from .packet import ContentObject, Interest


@dataclass
class FaceCounters:
    in_interests: int = 0
    out_interests: int = 0
    in_nacks: int = 0
    out_nacks: int = 0
    in_data: int = 0
    out_data: int = 0
    dropped_interests: int = 0

    def reset(self) -> None:
        for field_name in self.__dataclass_fields__:
            setattr(self, field_name, 0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProtocolHandler(Protocol):
    def on_data(self, in_face: "Face", data: ContentObject) -> None: ...

    def on_interest(self, in_face: "Face", interest: Interest) -> None: ...


class Face(abc.ABC):
    """
    An endpoint through which a node exchanges packets with an application
    or with a neighbouring node.
    """

    def __init__(self, *, name: str) -> None:
        self.counters = FaceCounters()
        self.is_up = True
        self.name = name
        self._handler: Optional[ProtocolHandler] = None

    def __repr__(self) -> str:
        return "<%s %s>" % (self.__class__.__name__, self.name)

    def register_protocol_handler(self, handler: ProtocolHandler) -> None:
        self._handler = handler

    def receive_data(self, data: ContentObject) -> None:
        self.counters.in_data += 1
        if self._handler is not None:
            self._handler.on_data(self, data)

    def receive_interest(self, interest: Interest) -> None:
        if interest.is_nack:
            self.counters.in_nacks += 1
        else:
            self.counters.in_interests += 1
        if self._handler is not None:
            self._handler.on_interest(self, interest)

    def send_data(self, data: ContentObject) -> bool:
        if not self.is_up:
            return False
        self.counters.out_data += 1
        return self._send_data(data)

    def send_interest(self, interest: Interest) -> bool:
        """
        Send an interest or a NACK, returning `False` if it was dropped.
        """
        if not self.is_up:
            return False
        if interest.is_nack:
            self.counters.out_nacks += 1
        else:
            self.counters.out_interests += 1
        return self._send_interest(interest)

    @abc.abstractmethod
    def _send_data(self, data: ContentObject) -> bool: ...

    @abc.abstractmethod
    def _send_interest(self, interest: Interest) -> bool: ...
