"""Transport layer implementations.

Connectors are registered by *kind*. The kind for a given connection is
resolved once, when a :class:`tasklink.Client` or
:class:`tasklink.AsyncResult` is built: an explicit kind is used as-is, and
``'auto'`` is handed to a selection strategy. The default strategy,
:func:`select`, picks the most preferred installed AMQP connector; tests and
applications can pass their own.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
from typing import Callable, Dict, Iterable, NamedTuple, Optional

from ..config import Connection
from .base import (
    Connector,
    Delivery,
    NoTransportAvailable,
    TransportConnectionError,
    TransportError,
)

logger = logging.getLogger(__name__)

AUTO = 'auto'


class _Entry(NamedTuple):
    factory: Callable[[], Connector]
    tls: bool
    auto: bool
    requires: Optional[str]


registry: Dict[str, _Entry] = {}

# Preference order for automatic selection. Redis speaks a different wire
# protocol than the default AMQP broker, so it is never picked implicitly.

preference = ['rabbitmq', 'amqp']


def register(kind: str, factory: Callable[[], Connector], tls: bool = True,
             auto: bool = True, requires: Optional[str] = None) -> None:
    """Make *factory* available as connector *kind*.

    *tls* declares whether the connector can speak TLS, *auto* whether it
    may be chosen by :func:`select`, and *requires* names the library that
    must be importable for the connector to be considered installed.
    """

    registry[kind] = _Entry(factory, tls, auto, requires)


def unregister(kind: str) -> None:
    registry.pop(kind, None)


def installed(kind: str) -> bool:
    """Default environment probe: is the library behind *kind* importable?"""

    try:
        entry = registry[kind]
    except KeyError:
        return False

    if entry.requires is None:
        return True

    try:
        return importlib.util.find_spec(entry.requires) is not None
    except (ImportError, ValueError):
        return False


def select(require_tls: bool = False,
           probe: Callable[[str], bool] = installed,
           order: Optional[Iterable[str]] = None) -> str:
    """Return the preferred installed connector kind.

    Candidates are considered in *order* (default :data:`preference`,
    followed by any other auto-selectable registered kinds); the first one
    that is registered, auto-selectable, TLS capable when *require_tls* is
    set, and reported present by *probe* wins.
    """

    if order is None:
        order = list(preference)
        for kind in registry:
            if kind not in order:
                order.append(kind)

    for kind in order:
        try:
            entry = registry[kind]
        except KeyError:
            continue

        if not entry.auto:
            continue
        if require_tls and not entry.tls:
            continue
        if not probe(kind):
            continue

        logger.debug("selected connector %r (require_tls=%s)", kind, require_tls)
        return kind

    if require_tls:
        raise NoTransportAvailable("no TLS-capable connector is installed")
    raise NoTransportAvailable("no connector is installed; install pika or amqp")


def resolve(connection: Connection,
            selector: Callable[..., str] = select) -> Connection:
    """Return *connection* with a concrete connector kind.

    An explicit kind must be registered; ``'auto'`` is replaced with the
    result of ``selector(require_tls=connection.tls)``.
    """

    kind = connection.connector

    if kind == AUTO:
        kind = selector(require_tls=connection.tls)
        return connection.replace(connector=kind)

    if kind not in registry:
        raise NoTransportAvailable("unknown connector: %r" % (kind,))

    if connection.tls and not registry[kind].tls:
        raise NoTransportAvailable("connector %r does not support TLS" % (kind,))

    return connection


def get(kind: str) -> Connector:
    """Return a new connector instance of the given *kind*."""

    try:
        entry = registry[kind]
    except KeyError:
        raise NoTransportAvailable("unknown connector: %r" % (kind,)) from None

    return entry.factory()


def _lazy(module: str, name: str = 'Connector') -> Callable[[], Connector]:
    """Defer importing a connector module, and its third-party library,
    until a connector of that kind is actually requested."""

    def factory() -> Connector:
        loaded = importlib.import_module(module, __name__)
        return getattr(loaded, name)()

    return factory


register('rabbitmq', _lazy('.rabbitmq'), requires='pika')
register('amqp', _lazy('.amqp'), requires='amqp')
register('redis', _lazy('.redis'), auto=False, requires='redis')
