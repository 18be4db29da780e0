""" Implementation of the :class:`Client`, the entry point for submitting
    tasks to Celery workers by way of a message broker.
"""

import logging

from . import config
from . import transport
from .exceptions import ConfigurationError, PublishError, TaskLinkError
from .protocol import fields
from .protocol import message as protocol_message
from .result import AsyncResult

logger = logging.getLogger(__name__)


class Client:
    """ A :class:`Client` publishes tasks to a *broker*, and hands out
        :class:`tasklink.AsyncResult` instances that read results from a
        *backend*. Both may be a :class:`tasklink.config.Connection`, a
        dictionary of connection options, or a broker URL; any missing
        option takes its documented default (see
        :data:`tasklink.config.defaults`).

        If the *backend* is not specified the broker doubles as the result
        backend, and the very same :class:`tasklink.config.Connection`
        instance is used for both roles. If neither a *broker* nor any
        keyword *options* are provided, the connection options are read from
        the environment (see :func:`tasklink.config.environment`).

        The broker connection is established immediately. The backend is
        only contacted by the result handles, each of which establishes its
        own connection.

        The *selector* chooses a connector kind for any connection whose
        connector is 'auto'; the default is :func:`tasklink.transport.select`.
    """

    def __init__(self, broker=None, backend=None, selector=transport.select, **options):

        if broker is None:
            if options:
                broker = options
            else:
                broker = config.environment()
        elif options:
            raise ConfigurationError('pass either a broker or keyword connection options, not both')

        broker = config.normalize(broker)
        broker = transport.resolve(broker, selector)

        if backend is None:
            backend = broker
        else:
            backend = config.normalize(backend)
            backend = transport.resolve(backend, selector)

        self.broker = broker
        self.backend = backend
        self.selector = selector

        self.connector = transport.get(broker.connector)
        self.live = self.connector.connect(broker)

        logger.info("connected to broker %r", broker)


    def __repr__(self):
        return 'Client(broker=%r, backend=%r)' % (self.broker, self.backend)


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    def close(self):
        """ Release the broker connection. Result handles already created
            are unaffected.
        """

        live = self.live
        self.live = None

        if live is not None:
            self.connector.close(live)


    def submit(self, task, arguments=None, create_handle=True, routing_key=fields.ROUTING_KEY):
        """ Post a task to the broker. The *task* is the name known to the
            workers, prefixed with its module name (like 'tasks.add' for the
            function add() in tasks.py). The *arguments* are a sequence for a
            positional call, or a mapping for a keyword call; see
            :func:`tasklink.protocol.message.split_arguments` for exactly how
            that distinction is made.

            Returns an :class:`tasklink.AsyncResult` for the new task, or just
            True if *create_handle* is False; in the latter case there is no
            way to retrieve the task result later.

            A broker rejection raises :class:`tasklink.exceptions.PublishError`.
            The task should then be assumed to not have been accepted. There
            is no automatic retry.
        """

        if self.live is None:
            raise TaskLinkError('client is closed')

        args, kwargs = protocol_message.split_arguments(arguments)

        id = protocol_message.task_id()
        message = protocol_message.TaskMessage(id, task, args, kwargs, self.broker.persistent_messages)

        body = message.encode()
        properties = message.properties(routing_key)

        logger.debug("publishing %r to %s/%s", message, self.broker.exchange, routing_key)

        success = self.connector.publish(self.live, self.broker, body, properties)

        if not success:
            error = 'broker rejected task %s (%s)' % (task, id)
            raise PublishError(error, id, task, arguments)

        logger.info("submitted task %s (%s)", task, id)

        if create_handle:
            return AsyncResult(id, self.backend, task, arguments, self.selector)
        else:
            return True

    post_task = submit


    def result(self, id, task_name=None, task_args=None):
        """ Return a new :class:`tasklink.AsyncResult` for a task previously
            submitted with the identifier *id*.
        """

        return AsyncResult.rehydrate(id, self.backend, task_name, task_args, self.selector)


# end of class Client


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
