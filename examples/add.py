""" Submit a task to a Celery worker and wait for its result. The worker
    side is the stock Celery tutorial:

        # tasks.py
        from celery import Celery
        app = Celery('tasks', broker='pyamqp://guest@localhost//', backend='rpc://')

        @app.task
        def add(x, y):
            return x + y

    Run this script with an optional broker URL as its only argument; if
    none is given the TASKLINK_* environment variables are used.
"""

import logging
import sys

import tasklink


def main():

    logging.basicConfig(level=logging.INFO)

    if len(sys.argv) > 1:
        client = tasklink.Client(sys.argv[1])
    else:
        client = tasklink.Client()

    with client:
        positional = client.submit('tasks.add', [2, 2])
        keywords = client.submit('tasks.add', {'x': 3, 'y': 4})

        for result in (positional, keywords):
            try:
                value = result.get(timeout=10, propagate=True)
            except tasklink.ResultTimeout as e:
                print('timed out: %s' % (e,))
                continue

            print('%s -> %r' % (result.id, value))
            result.close()


if __name__ == '__main__':
    main()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
