""" Python client for Celery. This includes submitting tasks to a message
    broker for execution by remote workers, and retrieving their results
    from a result backend.
"""

# Utility components.

from . import json
from . import exceptions

# Submodules used by multiple other components.

from . import protocol
from . import config
from . import transport

# Primary public-facing interfaces.

from .client import Client
from .result import AsyncResult

from .exceptions import (
    ConfigurationError,
    PrematureAccess,
    ProtocolError,
    PublishError,
    ResultTimeout,
    TaskFailed,
    TaskLinkError,
)
from .transport import NoTransportAvailable, TransportConnectionError, TransportError

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
