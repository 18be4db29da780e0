from . import fields
from . import message


"""
tasklink Protocol Layer
=======================

This package defines the Celery messaging protocol as seen from a client:
the task message published to a broker, and the result envelope read back
from a result backend. It knows nothing about how bytes reach the broker.

The protocol layer MUST NOT depend on any transport implementation
(e.g. pika, py-amqp, redis).

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

User Code
    │
    ▼
Client / AsyncResult (client.py, result.py)
    High-level semantic API
    - submit()
    - get()
    - is_ready()

    │
    ▼
Message Model (message.py)
    - TaskMessage: id, task, args, kwargs, delivery properties
    - Result: status, result, traceback
    - task_id(), split_arguments()

    │
    ▼
Field Vocabulary (fields.py)
    Status names, content type, default routing names

---------------------------------------------------------------------

Below the Protocol Layer (for context)
--------------------------------------

Transport Layer
    Moves bytes
    - pika (RabbitMQ)
    - py-amqp (RabbitMQ)
    - redis

---------------------------------------------------------------------
"""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
