import pytest

import tasklink
from tasklink.transport.base import Connector, Delivery


class MemoryServer:
    """ Stand-in for a broker and result backend. Everything published is
        appended to *published*; results are served from *results*, keyed
        by task id.
    """

    def __init__(self):
        self.published = list()
        self.results = dict()
        self.delays = dict()
        self.nack = False
        self.connects = list()
        self.fetches = list()
        self.closed = 0


    def store(self, task_id, status, result=None, traceback=None):
        body = dict(status=status, result=result, traceback=traceback)
        self.results[task_id] = tasklink.json.dumps(body)



class MemoryConnector(Connector):

    kind = 'memory'
    tls = False

    def __init__(self, server):
        self.server = server


    def connect(self, connection):
        self.server.connects.append(connection)
        return self.server


    def publish(self, live, connection, body, properties):
        if live.nack:
            return False

        live.published.append((connection, body, dict(properties)))
        return True


    def fetch_result(self, live, task_id, expire=0):
        live.fetches.append(task_id)

        remaining = live.delays.get(task_id, 0)
        if remaining > 0:
            live.delays[task_id] = remaining - 1
            return None, False

        try:
            body = live.results[task_id]
        except KeyError:
            return None, False

        return Delivery(body, body), True


    def close(self, live):
        live.closed += 1



@pytest.fixture
def server():
    server = MemoryServer()
    tasklink.transport.register('memory', lambda: MemoryConnector(server), tls=False, auto=False)

    yield server

    tasklink.transport.unregister('memory')


@pytest.fixture
def client(server):
    client = tasklink.Client(connector='memory')
    yield client
    client.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
