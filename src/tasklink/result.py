""" The :class:`AsyncResult` tracks a single submitted task, and is the only
    way to learn its outcome. A result is fetched from the backend at most
    once: after the first successful fetch the decoded envelope is cached,
    and all further queries are answered locally.
"""

import logging
import time

from . import transport
from .config import normalize
from .exceptions import PrematureAccess, ResultTimeout, TaskFailed, TaskLinkError
from .protocol import fields
from .protocol.message import Result

logger = logging.getLogger(__name__)


class AsyncResult:
    """ The :class:`AsyncResult` is normally returned by
        :func:`tasklink.Client.submit`; to pick up a task submitted
        elsewhere, or before a process restart, use :func:`rehydrate`.

        A connection to the result backend is established as soon as the
        instance is created. Each instance owns its own connection; the
        *connection* descriptor itself may be shared.

        :ivar id: The task identifier.
        :ivar connection: The :class:`tasklink.config.Connection` describing
                          the result backend.
        :ivar task_name: The task name, retained for diagnostics.
        :ivar task_args: The task arguments, retained for diagnostics.
    """

    def __init__(self, id, connection, task_name=None, task_args=None, selector=transport.select):

        connection = normalize(connection)
        connection = transport.resolve(connection, selector)

        self.id = id
        self.connection = connection
        self.task_name = task_name
        self.task_args = task_args

        self._delivery = None
        self._body = None

        self.connector = transport.get(connection.connector)
        self.live = self.connector.connect(connection)


    @classmethod
    def rehydrate(cls, id, connection, task_name=None, task_args=None, selector=transport.select):
        """ Rebuild a handle for a previously submitted task, given its *id*
            and the *connection* describing its result backend. The backend
            connection is established immediately.
        """

        logger.debug("rehydrating result handle for task %s", id)
        return cls(id, connection, task_name, task_args, selector)


    def __repr__(self):
        # No backend access here; report only what is already cached.

        if self._body is None:
            state = fields.PENDING
        else:
            state = self._body.status

        return '<AsyncResult: %s %s>' % (self.id, state)


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    def close(self):
        """ Release the backend connection. The cached result, if any,
            remains available.
        """

        live = self.live
        self.live = None

        if live is not None:
            self.connector.close(live)


    def get_id(self):
        return self.id


    def is_ready(self):
        """ Return True if the task result is available. Once this returns
            True it always will, without contacting the backend again.
        """

        if self._body is not None:
            return True

        if self.live is None:
            raise TaskLinkError('result handle for task %s is closed' % (self.id,))

        delivery, found = self.connector.fetch_result(self.live, self.id, self.connection.result_expire)

        if not found:
            return False

        body = Result.decode(delivery.body)

        # A PENDING envelope carries no outcome; keep polling.

        if body.status == fields.PENDING:
            return False

        self._delivery = delivery
        self._body = body

        logger.debug("task %s resolved: %s", self.id, body.status)
        return True

    ready = is_ready


    def _resolved(self, what):
        if self._body is None:
            raise PrematureAccess('called %s before task %s was ready' % (what, self.id))

        return self._body


    def get_status(self):
        """ Return the task status: 'SUCCESS', 'FAILURE', etc. Only valid
            after :func:`is_ready` has returned True.
        """

        return self._resolved('get_status').status


    def get_result(self):
        """ Return the task result. For a failed task this is the worker's
            description of the exception, not a local exception. Only valid
            after :func:`is_ready` has returned True.
        """

        return self._resolved('get_result').result


    def get_traceback(self):
        """ Return the worker-side traceback for a task that did not succeed.
            Only valid after :func:`is_ready` has returned True.
        """

        return self._resolved('get_traceback').traceback


    def get_envelope(self):
        """ Return the raw message, as retrieved by the transport, that
            carried the task result.
        """

        self._resolved('get_envelope')
        return self._delivery.raw


    def is_success(self):
        return self.get_status() == fields.SUCCESS

    successful = is_success


    def failed(self):
        return self.is_ready() and not self.is_success()


    def get_state(self):
        """ Return the task state, checking the backend if necessary. This
            is 'PENDING' until a result is available.
        """

        if self.is_ready():
            return self.get_status()
        else:
            return fields.PENDING


    @property
    def state(self):
        return self.get_state()

    status = state


    @property
    def result(self):
        """ The task result, or None if it is not yet available. """

        if self.is_ready():
            return self.get_result()
        else:
            return None


    def get(self, timeout=10, propagate=False, interval=0.5):
        """ Wait until the task is ready, and return its result. Polls the
            backend every *interval* seconds until *timeout* seconds have
            elapsed since the call began, at which point a
            :class:`tasklink.exceptions.ResultTimeout` is raised. A *timeout*
            of None waits indefinitely.

            The result is returned for both successful and failed tasks;
            inspect :func:`get_status` to tell them apart. If *propagate*
            is True a failed task raises
            :class:`tasklink.exceptions.TaskFailed` instead.
        """

        if timeout is None:
            deadline = None
        else:
            deadline = time.monotonic() + timeout

        # The last sleep is trimmed to end at the deadline, so that the final
        # check happens just as the timeout expires.

        ready = self.is_ready()
        while not ready:
            if deadline is None:
                delay = interval
            else:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                delay = min(interval, remaining)

            time.sleep(delay)
            ready = self.is_ready()

        if not ready:
            message = 'task %s(%r) did not return after %g seconds' % (self.task_name, self.task_args, timeout)
            raise ResultTimeout(message, self.id, self.task_name, self.task_args, timeout)

        if propagate and self.get_status() == fields.FAILURE:
            message = 'task %s (%s) failed: %r' % (self.task_name, self.id, self.get_result())
            raise TaskFailed(message, self.id, self.task_name, self.task_args, self.get_result(), self.get_traceback())

        return self.get_result()

    wait = get


    def forget(self):
        """ Forget about (and possibly remove the result of) this task.
            This client has no way to delete stored results; this is a no-op.
        """


    def revoke(self):
        """ Send a revoke signal to all workers. This client has no way to
            reach workers directly; this is a no-op.
        """


# end of class AsyncResult


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
