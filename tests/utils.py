import logging
import os
from typing import List, Tuple

from ndncc.face import Face
from ndncc.packet import ContentObject, Interest
from ndncc.rtt import RttEstimator


class RecordingFace(Face):
    """
    A face which remembers what was sent through it.

    When `accept` is False the face refuses every packet.
    """

    def __init__(self, name: str = "face", *, accept: bool = True) -> None:
        super().__init__(name=name)
        self.accept = accept
        self.sent_data: List[ContentObject] = []
        self.sent_interests: List[Interest] = []

    @property
    def sent_nacks(self) -> List[Interest]:
        return [interest for interest in self.sent_interests if interest.is_nack]

    def _send_data(self, data: ContentObject) -> bool:
        if not self.accept:
            return False
        self.sent_data.append(data)
        return True

    def _send_interest(self, interest: Interest) -> bool:
        if not self.accept:
            return False
        self.sent_interests.append(interest)
        return True


class RecordingHandler:
    def __init__(self) -> None:
        self.data: List[Tuple[Face, ContentObject]] = []
        self.interests: List[Tuple[Face, Interest]] = []

    def on_data(self, in_face: Face, data: ContentObject) -> None:
        self.data.append((in_face, data))

    def on_interest(self, in_face: Face, interest: Interest) -> None:
        self.interests.append((in_face, interest))


class RecordingTransport:
    """
    Stands in for the application face of a node.
    """

    def __init__(self) -> None:
        self.data: List[ContentObject] = []
        self.interests: List[Interest] = []

    def send_data(self, data: ContentObject) -> bool:
        self.data.append(data)
        return True

    def send_interest(self, interest: Interest) -> bool:
        self.interests.append(interest)
        return True


class RecordingRttEstimator(RttEstimator):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.acked: List[Tuple[int, float]] = []
        self.sent: List[Tuple[int, float, bool]] = []

    def on_acked(self, seq, *, now):
        self.acked.append((seq, now))
        return super().on_acked(seq, now=now)

    def on_sent(self, seq, *, now, rtt_eligible=True):
        self.sent.append((seq, now, rtt_eligible))
        super().on_sent(seq, now=now, rtt_eligible=rtt_eligible)


if os.environ.get("NDNCC_DEBUG"):
    logging.basicConfig(level=logging.DEBUG)
