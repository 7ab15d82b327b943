import logging
from typing import Any, Optional, Protocol, Tuple

from .packet import ContentObject, Interest

logger = logging.getLogger("ndncc.app")


class AppLoggerAdapter(logging.LoggerAdapter):
    def process(self, msg: str, kwargs: Any) -> Tuple[str, Any]:
        return "[%s] %s" % (self.extra["id"], msg), kwargs


class AppTransport(Protocol):
    def send_data(self, data: ContentObject) -> bool: ...

    def send_interest(self, interest: Interest) -> bool: ...


class App:
    """
    Base class for applications attached to a node through an application
    face.

    Packets are only delivered while the application is active.
    """

    def __init__(self, *, name: str) -> None:
        self._active = False
        self._face: Optional[AppTransport] = None
        self._logger = AppLoggerAdapter(logger, {"id": name})

    @property
    def active(self) -> bool:
        return self._active

    def attach(self, face: AppTransport) -> None:
        self._face = face

    def start(self) -> None:
        if self._face is None:
            raise RuntimeError("Application is not attached to a face")
        self._active = True
        self._logger.info("Application started")

    def stop(self) -> None:
        self._active = False
        self._logger.info("Application stopped")

    def on_content_object(self, data: ContentObject) -> None:
        self._logger.debug("Dropping content object %s", data.name)

    def on_interest(self, interest: Interest) -> None:
        self._logger.debug("Dropping interest %s", interest.name)

    def on_nack(self, interest: Interest) -> None:
        self._logger.debug("Dropping NACK %s", interest.name)
