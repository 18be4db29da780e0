"""Protocol constants.

Keep these in one place to avoid stringly-typed message handling.
"""

# Task states, as reported by the worker side. Case sensitive.

PENDING = "PENDING"
STARTED = "STARTED"
RETRY = "RETRY"
FAILURE = "FAILURE"
SUCCESS = "SUCCESS"

STATES = frozenset((PENDING, STARTED, RETRY, FAILURE, SUCCESS))

# Task message properties.

CONTENT_TYPE = "application/json"
CONTENT_ENCODING = "UTF-8"
DELIVERY_PERSISTENT = 2
DELIVERY_TRANSIENT = 1

# Default routing.

ROUTING_KEY = "celery"
RESULT_EXCHANGE = "celeryresults"
RESULT_KEY_PREFIX = "celery-task-meta-"
