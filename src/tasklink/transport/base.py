"""Transport interface.

This is the (small) contract that connector implementations should follow.
It lives outside :mod:`tasklink.protocol` so the protocol remains
transport-agnostic.

Operations that can legitimately be "not yet true" return a flag rather than
raising: a negative acknowledgement makes :meth:`Connector.publish` return
False, and a missing result makes :meth:`Connector.fetch_result` return
``(None, False)``. Only genuine faults raise.
"""

from __future__ import annotations

import ssl
from abc import ABC, abstractmethod
from typing import Any, Mapping, NamedTuple, Optional, Tuple

from ..config import Connection
from ..exceptions import TaskLinkError


# Transport agnostic exceptions

class TransportError(TaskLinkError):
    """Base class for all transport-layer errors."""


class TransportConnectionError(TransportError, ConnectionError):
    """The transport could not establish or maintain a connection."""


class NoTransportAvailable(TransportError):
    """No installed connector satisfies the request."""


class Delivery(NamedTuple):
    """A result message as retrieved from a backend.

    ``raw`` is whatever the underlying library returned, ``body`` the
    message body as bytes.
    """

    raw: Any
    body: bytes


class Connector(ABC):
    """Minimal contract for a broker/backend connector.

    A connector instance may keep per-connection state (open channels, for
    example), and is never shared between a client and its result handles.
    """

    kind: str = ''
    tls: bool = True

    @abstractmethod
    def connect(self, connection: Connection) -> Any:
        """Establish and return a live connection described by *connection*.

        Raises :class:`TransportConnectionError` on network or authentication
        failure. There is no implicit retry.
        """

    @abstractmethod
    def publish(self, live: Any, connection: Connection, body: bytes,
                properties: Mapping[str, Any]) -> bool:
        """Publish *body* to ``connection.exchange``.

        The routing key and delivery properties come from *properties*.
        Returns False if the broker negatively acknowledged the message.
        """

    @abstractmethod
    def fetch_result(self, live: Any, task_id: str,
                     expire: float = 0) -> Tuple[Optional[Delivery], bool]:
        """Look up the result for *task_id*.

        Returns ``(delivery, True)`` when a result is present, and
        ``(None, False)`` while the task is still pending.
        """

    def close(self, live: Any) -> None:
        """Tear down the live connection. Closing twice is harmless."""


def ssl_context(ssl_options: Mapping[str, Any]) -> ssl.SSLContext:
    """Build a client :class:`ssl.SSLContext` from a connection's TLS options.

    Recognized options are ``cafile``, ``certfile``, ``keyfile`` and
    ``verify`` (default True). Unknown options are ignored.
    """

    context = ssl.create_default_context(cafile=ssl_options.get('cafile'))

    certfile = ssl_options.get('certfile')
    if certfile:
        context.load_cert_chain(certfile, ssl_options.get('keyfile'))

    if not ssl_options.get('verify', True):
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


def result_queue(task_id: str) -> str:
    """Name of the AMQP queue holding the result for *task_id*."""
    return task_id.replace('-', '')
