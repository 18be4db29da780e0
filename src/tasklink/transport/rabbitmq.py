"""RabbitMQ connector backed by pika.

Task messages go to the configured direct exchange; results are read from
the per-task reply queue that the Celery AMQP result backend routes through
the ``celeryresults`` exchange.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple

import pika
import pika.exceptions

from ..config import Connection
from .base import (
    Connector as BaseConnector,
    Delivery,
    TransportConnectionError,
    TransportError,
    result_queue,
    ssl_context,
)

logger = logging.getLogger(__name__)


def _params(connection: Connection) -> pika.ConnectionParameters:
    credentials = pika.PlainCredentials(connection.login, connection.password)

    ssl_options = None
    if connection.tls:
        options = connection.ssl_options
        server_hostname = options.get('server_hostname', connection.host)
        ssl_options = pika.SSLOptions(ssl_context(options), server_hostname)

    return pika.ConnectionParameters(
        host=connection.host,
        port=connection.port,
        virtual_host=connection.vhost,
        credentials=credentials,
        ssl_options=ssl_options,
        heartbeat=600,
        blocked_connection_timeout=300,
    )


class Connector(BaseConnector):
    """Publish and fetch over a blocking pika connection."""

    kind = 'rabbitmq'
    tls = True

    def __init__(self) -> None:
        self._channel = None
        self._exchange = None

    def connect(self, connection: Connection) -> pika.BlockingConnection:
        logger.debug("connecting to %r", connection)
        try:
            live = pika.BlockingConnection(_params(connection))
        except pika.exceptions.AMQPError as e:
            raise TransportConnectionError(
                f"cannot connect to AMQP broker at {connection.host}:{connection.port}: {e!r}"
            ) from e

        self._exchange = connection.result_exchange
        return live

    def publish(self, live: pika.BlockingConnection, connection: Connection,
                body: bytes, properties: Mapping[str, Any]) -> bool:

        routing_key = properties['routing_key']
        basic = pika.BasicProperties(
            content_type=properties['content_type'],
            content_encoding=properties['content_encoding'],
            delivery_mode=properties.get('delivery_mode'),
        )

        try:
            channel = live.channel()
            channel.confirm_delivery()
            channel.exchange_declare(
                exchange=connection.exchange, exchange_type='direct', durable=True
            )
            channel.queue_declare(queue=connection.binding, durable=True)
            channel.queue_bind(
                queue=connection.binding,
                exchange=connection.exchange,
                routing_key=connection.binding,
            )

            # With publisher confirms enabled a negative acknowledgement
            # surfaces as an exception; anything else means the broker took it.

            try:
                channel.basic_publish(
                    exchange=connection.exchange,
                    routing_key=routing_key,
                    body=body,
                    properties=basic,
                    mandatory=True,
                )
            except (pika.exceptions.NackError, pika.exceptions.UnroutableError):
                logger.warning("broker rejected message for routing key %r", routing_key)
                return False
            finally:
                if channel.is_open:
                    channel.close()

        except pika.exceptions.AMQPConnectionError as e:
            raise TransportConnectionError(f"lost connection while publishing: {e!r}") from e
        except pika.exceptions.AMQPChannelError as e:
            raise TransportError(f"channel error while publishing: {e!r}") from e

        return True

    def fetch_result(self, live: pika.BlockingConnection, task_id: str,
                     expire: float = 0) -> Tuple[Optional[Delivery], bool]:

        queue = result_queue(task_id)

        try:
            channel = self._result_channel(live, queue, expire)
            method, properties, body = channel.basic_get(queue=queue, auto_ack=True)

            if method is None:
                return None, False

            # The result queue exists for this one message; remove it
            # rather than waiting for it to expire.

            channel.queue_delete(queue=queue)
            self._channel = None
            channel.close()

        except pika.exceptions.AMQPConnectionError as e:
            raise TransportConnectionError(f"lost connection while fetching {task_id}: {e!r}") from e
        except pika.exceptions.AMQPChannelError as e:
            self._channel = None
            raise TransportError(f"channel error while fetching {task_id}: {e!r}") from e

        return Delivery((method, properties, body), body), True

    def _result_channel(self, live: pika.BlockingConnection, queue: str, expire: float):
        """Open and bind the result channel on first use, then reuse it."""

        channel = self._channel
        if channel is not None and channel.is_open:
            return channel

        arguments = None
        if expire:
            arguments = {'x-expires': int(expire * 1000)}

        channel = live.channel()
        channel.exchange_declare(
            exchange=self._exchange, exchange_type='direct', durable=True
        )
        channel.queue_declare(
            queue=queue, durable=True, auto_delete=True, arguments=arguments
        )
        channel.queue_bind(queue=queue, exchange=self._exchange, routing_key=queue)

        self._channel = channel
        return channel

    def close(self, live: pika.BlockingConnection) -> None:
        self._channel = None
        if live is not None and live.is_open:
            live.close()
