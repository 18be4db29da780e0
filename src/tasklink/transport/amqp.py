"""RabbitMQ connector backed by py-amqp.

Same exchange and queue layout as the pika connector, for environments
where py-amqp (the library underneath Celery itself) is what's installed.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any, Dict, Mapping, Optional, Tuple

import amqp
import amqp.exceptions

from ..config import Connection
from .base import (
    Connector as BaseConnector,
    Delivery,
    TransportConnectionError,
    TransportError,
    result_queue,
)

logger = logging.getLogger(__name__)


def _sslopts(connection: Connection) -> Dict[str, Any]:
    options = connection.ssl_options

    sslopts: Dict[str, Any] = dict()
    sslopts['server_hostname'] = options.get('server_hostname', connection.host)

    if options.get('verify', True):
        sslopts['cert_reqs'] = ssl.CERT_REQUIRED
    else:
        sslopts['cert_reqs'] = ssl.CERT_NONE

    for name, key in (('cafile', 'ca_certs'), ('certfile', 'certfile'), ('keyfile', 'keyfile')):
        value = options.get(name)
        if value:
            sslopts[key] = value

    return sslopts


class Connector(BaseConnector):
    """Publish and fetch over a py-amqp connection."""

    kind = 'amqp'
    tls = True

    def __init__(self) -> None:
        self._channel = None
        self._exchange = None

    def connect(self, connection: Connection) -> amqp.Connection:
        logger.debug("connecting to %r", connection)

        ssl_option: Any = False
        if connection.tls:
            ssl_option = _sslopts(connection)

        live = amqp.Connection(
            host=f"{connection.host}:{connection.port}",
            userid=connection.login,
            password=connection.password,
            virtual_host=connection.vhost,
            ssl=ssl_option,
        )

        try:
            live.connect()
        except (OSError, amqp.exceptions.AMQPError) as e:
            raise TransportConnectionError(
                f"cannot connect to AMQP broker at {connection.host}:{connection.port}: {e!r}"
            ) from e

        self._exchange = connection.result_exchange
        return live

    def publish(self, live: amqp.Connection, connection: Connection,
                body: bytes, properties: Mapping[str, Any]) -> bool:

        routing_key = properties['routing_key']

        message_properties = dict()
        message_properties['content_type'] = properties['content_type']
        message_properties['content_encoding'] = properties['content_encoding']
        if properties.get('delivery_mode'):
            message_properties['delivery_mode'] = properties['delivery_mode']

        message = amqp.Message(body, **message_properties)

        try:
            channel = live.channel()
            channel.exchange_declare(
                connection.exchange, 'direct', durable=True, auto_delete=False
            )
            channel.queue_declare(queue=connection.binding, durable=True, auto_delete=False)
            channel.queue_bind(
                queue=connection.binding,
                exchange=connection.exchange,
                routing_key=connection.binding,
            )

            # basic_publish_confirm() enables publisher confirms on first use
            # and blocks until the broker acknowledges the message. An
            # unroutable mandatory message is returned before that ack
            # arrives.

            returned = list()

            def on_return(exc, exchange, routing_key, message):
                returned.append(exc)

            channel.events['basic_return'].add(on_return)

            try:
                channel.basic_publish_confirm(
                    message, exchange=connection.exchange,
                    routing_key=routing_key, mandatory=True,
                )
            except amqp.exceptions.MessageNacked:
                logger.warning("broker rejected message for routing key %r", routing_key)
                return False
            finally:
                if channel.is_open:
                    channel.close()

            if returned:
                logger.warning("no queue bound for routing key %r: %s", routing_key, returned[0])
                return False

        except (amqp.exceptions.ConnectionError, OSError) as e:
            raise TransportConnectionError(f"lost connection while publishing: {e!r}") from e
        except amqp.exceptions.ChannelError as e:
            raise TransportError(f"channel error while publishing: {e!r}") from e

        return True

    def fetch_result(self, live: amqp.Connection, task_id: str,
                     expire: float = 0) -> Tuple[Optional[Delivery], bool]:

        queue = result_queue(task_id)

        try:
            channel = self._result_channel(live, queue, expire)
            message = channel.basic_get(queue=queue, no_ack=True)

            if message is None:
                return None, False

            channel.queue_delete(queue=queue)
            self._channel = None
            channel.close()

        except (amqp.exceptions.ConnectionError, OSError) as e:
            raise TransportConnectionError(f"lost connection while fetching {task_id}: {e!r}") from e
        except amqp.exceptions.ChannelError as e:
            self._channel = None
            raise TransportError(f"channel error while fetching {task_id}: {e!r}") from e

        return Delivery(message, message.body), True

    def _result_channel(self, live: amqp.Connection, queue: str, expire: float):
        channel = self._channel
        if channel is not None and channel.is_open:
            return channel

        arguments = None
        if expire:
            arguments = {'x-expires': int(expire * 1000)}

        channel = live.channel()
        channel.exchange_declare(self._exchange, 'direct', durable=True, auto_delete=False)
        channel.queue_declare(
            queue=queue, durable=True, auto_delete=True, arguments=arguments
        )
        channel.queue_bind(queue=queue, exchange=self._exchange, routing_key=queue)

        self._channel = channel
        return channel

    def close(self, live: amqp.Connection) -> None:
        self._channel = None
        if live is not None and live.connected:
            live.close()
