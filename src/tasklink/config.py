""" Connection parameters for brokers and result backends. A
    :class:`Connection` is built once, never modified, and shared by
    reference between a :class:`tasklink.Client` and every
    :class:`tasklink.AsyncResult` it creates.
"""

from __future__ import annotations

import dataclasses
import os
import types
import urllib.parse
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigurationError
from .protocol import fields


# The documented default for every connection option. Any option not
# provided by the caller takes the value listed here.

defaults = {
    'host': 'localhost',
    'login': 'guest',
    'password': 'guest',
    'vhost': '/',
    'exchange': 'celery',
    'binding': 'celery',
    'port': 5672,
    'connector': 'auto',
    'persistent_messages': False,
    'result_expire': 0,
    'ssl_options': {},
    'result_exchange': fields.RESULT_EXCHANGE,
}

_ENV_PREFIX = 'TASKLINK_'
_REDIS_PORT = 6379
_AMQPS_PORT = 5671


@dataclasses.dataclass(frozen=True)
class Connection:
    """ Immutable description of a broker or result backend. Build instances
        with :func:`normalize` rather than directly, so that every field is
        populated and validated.
    """

    host: str
    login: str
    password: str
    vhost: str
    exchange: str
    binding: str
    port: int
    connector: str
    persistent_messages: bool
    result_expire: float
    ssl_options: Mapping[str, Any]
    result_exchange: str

    @property
    def tls(self) -> bool:
        return bool(self.ssl_options)

    def replace(self, **changes) -> 'Connection':
        return dataclasses.replace(self, **changes)

    def __repr__(self) -> str:
        # Keep the password out of logs and tracebacks.
        return 'Connection(%s://%s@%s:%s%s, exchange=%r, binding=%r)' % (
            self.connector, self.login, self.host, self.port,
            self.vhost, self.exchange, self.binding)


def normalize(options: Optional[Mapping[str, Any]] = None) -> Connection:
    """ Return a complete :class:`Connection` for the possibly partial
        dictionary of *options*, filling in any omitted option from
        :data:`defaults`. A :class:`Connection` is returned as-is, and a
        string is interpreted as a broker URL via :func:`parse_url`.
    """

    if isinstance(options, Connection):
        return options

    if options is None:
        options = dict()
    elif isinstance(options, str):
        options = parse_url(options)

    unknown = set(options) - set(defaults)
    if unknown:
        unknown = ', '.join(sorted(unknown))
        raise ConfigurationError('unknown connection options: ' + unknown)

    values = dict()
    for name, default in defaults.items():
        try:
            value = options[name]
        except KeyError:
            value = default

        # connector=False is accepted as a synonym for 'auto'.

        if value is None or (name == 'connector' and value is False):
            value = default

        values[name] = value

    try:
        values['port'] = int(values['port'])
        values['result_expire'] = float(values['result_expire'])
    except (TypeError, ValueError) as e:
        raise ConfigurationError('invalid connection option: ' + str(e)) from e

    if values['port'] <= 0 or values['port'] > 65535:
        raise ConfigurationError('port out of range: ' + str(values['port']))

    if values['result_expire'] < 0:
        raise ConfigurationError('result_expire cannot be negative')

    values['persistent_messages'] = bool(values['persistent_messages'])
    values['ssl_options'] = types.MappingProxyType(dict(values['ssl_options']))
    values['connector'] = str(values['connector']).lower()

    return Connection(**values)



def parse_url(url: str) -> Dict[str, Any]:
    """ Translate a broker URL into a dictionary of connection options.
        Recognized schemes are amqp, amqps and pyamqp for RabbitMQ, redis
        and rediss for Redis. The secure variants enable TLS with server
        certificate verification.
    """

    parsed = urllib.parse.urlsplit(url)
    scheme = parsed.scheme.lower()

    options: Dict[str, Any] = dict()

    if scheme in ('amqp', 'amqps'):
        pass
    elif scheme == 'pyamqp':
        options['connector'] = 'amqp'
    elif scheme in ('redis', 'rediss'):
        options['connector'] = 'redis'
        options['port'] = _REDIS_PORT
        options['login'] = ''
        options['password'] = ''
    else:
        raise ConfigurationError('unsupported broker URL scheme: ' + repr(parsed.scheme))

    if scheme in ('amqps', 'rediss'):
        options['ssl_options'] = {'verify': True}

    if scheme == 'amqps':
        options['port'] = _AMQPS_PORT

    if parsed.hostname:
        options['host'] = parsed.hostname

    try:
        port = parsed.port
    except ValueError as e:
        raise ConfigurationError('invalid port in broker URL: ' + str(e)) from e

    if port is not None:
        options['port'] = port

    if parsed.username is not None:
        options['login'] = urllib.parse.unquote(parsed.username)

    if parsed.password is not None:
        options['password'] = urllib.parse.unquote(parsed.password)

    # The AMQP virtual host is the path with the leading slash removed; an
    # empty path means the default virtual host. For Redis the path is the
    # database number.

    path = parsed.path
    if path.startswith('/'):
        path = path[1:]

    if path:
        options['vhost'] = urllib.parse.unquote(path)

    return options



def environment(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """ Collect connection options from environment variables. The URL in
        ``TASKLINK_BROKER_URL``, if any, is applied first; individual
        ``TASKLINK_<OPTION>`` variables, such as ``TASKLINK_HOST`` or
        ``TASKLINK_PERSISTENT_MESSAGES``, override it.
    """

    if environ is None:
        environ = os.environ

    options: Dict[str, Any] = dict()

    url = environ.get(_ENV_PREFIX + 'BROKER_URL')
    if url:
        options.update(parse_url(url))

    for name in defaults:
        if name == 'ssl_options':
            continue

        try:
            value = environ[_ENV_PREFIX + name.upper()]
        except KeyError:
            continue

        if name == 'persistent_messages':
            value = value.strip().lower() in ('1', 'true', 'yes', 'on')

        options[name] = value

    ssl_options = dict()
    for name in ('cafile', 'certfile', 'keyfile', 'server_hostname'):
        try:
            ssl_options[name] = environ[_ENV_PREFIX + 'SSL_' + name.upper()]
        except KeyError:
            pass

    if ssl_options:
        ssl_options.setdefault('verify', True)
        options['ssl_options'] = ssl_options

    return options


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
