"""Redis connector backed by redis-py.

Uses the layout a Celery worker expects from a Redis broker and result
backend: task messages are kombu envelopes pushed onto a list named by the
routing key, and results are JSON documents stored under
``celery-task-meta-<task id>``.
"""

from __future__ import annotations

import base64
import logging
import uuid
from typing import Any, Mapping, Optional, Tuple

import redis
import redis.exceptions

from .. import json
from ..config import Connection
from ..exceptions import ConfigurationError
from ..protocol import fields
from .base import (
    Connector as BaseConnector,
    Delivery,
    TransportConnectionError,
    TransportError,
)

logger = logging.getLogger(__name__)


def database(vhost: str) -> int:
    """Map an AMQP-style virtual host onto a Redis database number."""

    vhost = vhost.strip('/')
    if vhost == '':
        return 0

    try:
        return int(vhost)
    except ValueError:
        raise ConfigurationError(f"redis database must be a number, not {vhost!r}") from None


def result_key(task_id: str) -> str:
    return fields.RESULT_KEY_PREFIX + task_id


def envelope(connection: Connection, body: bytes, properties: Mapping[str, Any]) -> bytes:
    """Wrap a task message *body* the way kombu's Redis transport does."""

    delivery_info = {
        'exchange': connection.exchange,
        'routing_key': properties['routing_key'],
    }

    message_properties = {
        'body_encoding': 'base64',
        'delivery_info': delivery_info,
        'delivery_mode': properties.get('delivery_mode', fields.DELIVERY_TRANSIENT),
        'delivery_tag': str(uuid.uuid4()),
        'priority': 0,
    }

    message = {
        'body': base64.b64encode(body).decode('ascii'),
        'content-encoding': properties['content_encoding'],
        'content-type': properties['content_type'],
        'headers': {},
        'properties': message_properties,
    }

    return json.dumps(message)


class Connector(BaseConnector):
    """Publish and fetch over a redis-py client."""

    kind = 'redis'
    tls = True

    def connect(self, connection: Connection) -> redis.Redis:
        logger.debug("connecting to %r", connection)

        kwargs: dict = dict()
        kwargs['host'] = connection.host
        kwargs['port'] = connection.port
        kwargs['db'] = database(connection.vhost)

        if connection.login:
            kwargs['username'] = connection.login
        if connection.password:
            kwargs['password'] = connection.password

        if connection.tls:
            options = connection.ssl_options
            kwargs['ssl'] = True
            kwargs['ssl_ca_certs'] = options.get('cafile')
            kwargs['ssl_certfile'] = options.get('certfile')
            kwargs['ssl_keyfile'] = options.get('keyfile')
            if options.get('verify', True):
                kwargs['ssl_cert_reqs'] = 'required'
            else:
                kwargs['ssl_cert_reqs'] = 'none'
                kwargs['ssl_check_hostname'] = False

        live = redis.Redis(**kwargs)

        # redis-py connects lazily; ping so that an unreachable server or bad
        # credentials fail here rather than on first use.

        try:
            live.ping()
        except redis.exceptions.RedisError as e:
            raise TransportConnectionError(
                f"cannot connect to redis at {connection.host}:{connection.port}: {e!r}"
            ) from e

        return live

    def publish(self, live: redis.Redis, connection: Connection,
                body: bytes, properties: Mapping[str, Any]) -> bool:

        routing_key = properties['routing_key']
        message = envelope(connection, body, properties)

        try:
            length = live.lpush(routing_key, message)
        except redis.exceptions.ConnectionError as e:
            raise TransportConnectionError(f"lost connection while publishing: {e!r}") from e
        except redis.exceptions.RedisError as e:
            raise TransportError(f"redis error while publishing: {e!r}") from e

        return bool(length)

    def fetch_result(self, live: redis.Redis, task_id: str,
                     expire: float = 0) -> Tuple[Optional[Delivery], bool]:

        try:
            body = live.get(result_key(task_id))
        except redis.exceptions.ConnectionError as e:
            raise TransportConnectionError(f"lost connection while fetching {task_id}: {e!r}") from e
        except redis.exceptions.RedisError as e:
            raise TransportError(f"redis error while fetching {task_id}: {e!r}") from e

        if body is None:
            return None, False

        return Delivery(body, body), True

    def close(self, live: redis.Redis) -> None:
        if live is not None:
            live.close()
