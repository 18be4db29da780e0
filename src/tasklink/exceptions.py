""" Exceptions raised by the task client. Every exception carries enough
    context (task id, task name, arguments, timeout) to be diagnosed without
    re-deriving client state. Transport-level exceptions live in
    :mod:`tasklink.transport.base` and share the same base class.
"""


class TaskLinkError(Exception):
    """ Base class for all tasklink errors. """


class ConfigurationError(TaskLinkError, ValueError):
    """ Invalid or ambiguous arguments, such as task arguments that are
        neither a sequence nor a mapping, or an unknown connection option.
    """


class ProtocolError(TaskLinkError):
    """ A result envelope arrived that does not follow the expected
        layout or status vocabulary.
    """


class PrematureAccess(TaskLinkError):
    """ A status, result, or traceback was requested before the task result
        was known to be ready.
    """


class _TaskError(TaskLinkError):

    def __init__(self, message, task_id=None, task_name=None, task_args=None):
        TaskLinkError.__init__(self, message)
        self.task_id = task_id
        self.task_name = task_name
        self.task_args = task_args


class PublishError(_TaskError):
    """ The broker refused the task message; the caller must assume the task
        was not accepted.
    """


class ResultTimeout(_TaskError, TimeoutError):
    """ Emitted by :func:`tasklink.result.AsyncResult.get` when no result
        arrives before the requested timeout.
    """

    def __init__(self, message, task_id=None, task_name=None, task_args=None, timeout=None):
        _TaskError.__init__(self, message, task_id, task_name, task_args)
        self.timeout = timeout


class TaskFailed(_TaskError):
    """ The remote task finished with a FAILURE status. Only raised when the
        caller explicitly asks for failures to propagate.
    """

    def __init__(self, message, task_id=None, task_name=None, task_args=None, result=None, traceback=None):
        _TaskError.__init__(self, message, task_id, task_name, task_args)
        self.result = result
        self.traceback = traceback


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
