""" A class representation of the messages exchanged with Celery workers:
    the :class:`TaskMessage` published to the broker, and the :class:`Result`
    envelope a worker leaves behind in the result backend.
"""

import collections.abc
import random
import uuid

from .. import json
from ..exceptions import ConfigurationError, ProtocolError
from . import fields


def task_id():
    """ Return a new, globally unique task identifier. The identifier is a
        version 1 UUID: the time component comes from the local clock, the
        clock sequence and the node are random, so no hardware address leaks
        onto the wire.
    """

    node = random.getrandbits(48) | 0x010000000000
    return str(uuid.uuid1(node=node))



def split_arguments(arguments):
    """ Interpret *arguments* as either positional or keyword arguments,
        never both. A list or tuple is always positional. A mapping whose
        keys are exactly the integers 0 through n-1, in that order, is also
        positional; any other mapping is taken as keyword arguments in its
        entirety. None is treated as an empty argument list.

        Returns an (args, kwargs) tuple, where args is a list and kwargs is
        a dictionary. At least one of the two will be empty.
    """

    if arguments is None:
        return list(), dict()

    if isinstance(arguments, (str, bytes)):
        raise ConfigurationError('task arguments should be a sequence or a mapping, not a string')

    if isinstance(arguments, (list, tuple)):
        return list(arguments), dict()

    if isinstance(arguments, collections.abc.Mapping):
        keys = list(arguments.keys())

        # bool and float keys compare equal to small integers; only real
        # integers count.

        positional = all(type(key) is int for key in keys)

        if positional and keys == list(range(len(keys))):
            args = list()
            for key in keys:
                args.append(arguments[key])
            return args, dict()

        return list(), dict(arguments)

    raise ConfigurationError('task arguments should be a sequence or a mapping, not ' + type(arguments).__name__)



def keywords(kwargs):
    """ Return a copy of *kwargs* with every key converted to a string, the
        only key type a JSON object or a Python keyword argument can have.
    """

    converted = dict()
    for key, value in kwargs.items():
        if key is None:
            key = 'null'
        elif isinstance(key, bool):
            key = 'true' if key else 'false'
        elif not isinstance(key, str):
            key = str(key)
        converted[key] = value

    return converted



class TaskMessage:
    """ The :class:`TaskMessage` is the body of a single task submission.
        The fields mirror the JSON document put on the wire: the task *id*,
        the dotted *task* name known to the workers, and the positional
        *args* and keyword *kwargs* for the invocation.

        :ivar persistent: Whether the broker should persist the message.
    """

    def __init__(self, id, task, args=None, kwargs=None, persistent=False):

        if args is None:
            args = list()

        if kwargs is None:
            kwargs = dict()

        self.id = id
        self.task = task
        self.args = list(args)
        self.kwargs = keywords(kwargs)
        self.persistent = persistent

        self._encoded = None


    def __repr__(self):
        return 'TaskMessage(%s, %s, args=%r, kwargs=%r)' % (self.id, self.task, self.args, self.kwargs)


    def encode(self):
        ''' Return the JSON encoding of this message as bytes. Calling this
            method multiple times will return the cached encoding rather than
            generate it anew.
        '''

        if self._encoded:
            return self._encoded

        body = dict()
        body['id'] = self.id
        body['task'] = self.task
        body['args'] = self.args
        body['kwargs'] = self.kwargs

        try:
            encoded = json.dumps(body)
        except (json.EncodeError, TypeError, ValueError, OverflowError) as e:
            raise ConfigurationError('task arguments cannot be encoded as JSON: ' + str(e)) from e

        self._encoded = encoded
        return encoded


    def properties(self, routing_key=fields.ROUTING_KEY):
        """ Return the delivery properties for this message, as a dictionary
            understood by every :class:`tasklink.transport.base.Connector`.
        """

        properties = dict()
        properties['content_type'] = fields.CONTENT_TYPE
        properties['content_encoding'] = fields.CONTENT_ENCODING
        properties['immediate'] = False
        properties['routing_key'] = routing_key

        if self.persistent:
            properties['delivery_mode'] = fields.DELIVERY_PERSISTENT

        return properties


# end of class TaskMessage



class Result:
    """ The decoded result envelope for a single task. The *status* is one
        of the states in :data:`tasklink.protocol.fields.STATES`; the *result*
        is whatever the task returned, or a description of the exception it
        raised; *traceback* is only set for failed tasks. Any other fields
        the worker included are retained in the *extra* dictionary.
    """

    def __init__(self, status, result=None, traceback=None, extra=None):

        if status not in fields.STATES:
            raise ProtocolError('unknown task status: ' + repr(status))

        if extra is None:
            extra = dict()

        self.status = status
        self.result = result
        self.traceback = traceback
        self.extra = extra


    def __repr__(self):
        return 'Result(%s, %r)' % (self.status, self.result)


    @classmethod
    def decode(cls, body):
        """ Build a :class:`Result` from the raw *body* of a result message.
        """

        try:
            decoded = json.loads(body)
        except (json.DecodeError, ValueError, TypeError) as e:
            raise ProtocolError('result envelope is not valid JSON: ' + str(e)) from e

        if not isinstance(decoded, dict):
            raise ProtocolError('result envelope is not a JSON object')

        try:
            status = decoded.pop('status')
        except KeyError:
            raise ProtocolError('result envelope has no status')

        result = decoded.pop('result', None)
        traceback = decoded.pop('traceback', None)

        return cls(status, result, traceback, decoded)


# end of class Result


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
