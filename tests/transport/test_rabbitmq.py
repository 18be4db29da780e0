import pytest

pika = pytest.importorskip('pika')
import pika.exceptions

import tasklink


class FakeChannel:

    def __init__(self, broker):
        self.broker = broker
        self.is_open = True
        self.confirming = False
        self.calls = list()


    def confirm_delivery(self):
        self.confirming = True


    def exchange_declare(self, exchange, exchange_type, durable):
        self.calls.append(('exchange_declare', exchange, exchange_type, durable))


    def queue_declare(self, queue, **kwargs):
        self.calls.append(('queue_declare', queue, kwargs))


    def queue_bind(self, queue, exchange, routing_key):
        self.calls.append(('queue_bind', queue, exchange, routing_key))


    def queue_delete(self, queue):
        self.calls.append(('queue_delete', queue))
        self.broker.queues.pop(queue, None)


    def basic_publish(self, exchange, routing_key, body, properties, mandatory):
        if self.broker.nack:
            raise pika.exceptions.NackError([])

        self.broker.published.append((exchange, routing_key, body, properties, mandatory))


    def basic_get(self, queue, auto_ack):
        self.calls.append(('basic_get', queue, auto_ack))
        try:
            body = self.broker.queues[queue]
        except KeyError:
            return None, None, None

        return object(), pika.BasicProperties(), body


    def close(self):
        self.is_open = False



class FakeBroker:

    def __init__(self):
        self.nack = False
        self.refuse = False
        self.published = list()
        self.queues = dict()
        self.channels = list()
        self.parameters = list()


    def BlockingConnection(self, parameters):
        broker = self

        if self.refuse:
            raise pika.exceptions.AMQPConnectionError('Connection refused')

        class FakeConnection:

            is_open = True

            def channel(self):
                channel = FakeChannel(broker)
                broker.channels.append(channel)
                return channel

            def close(self):
                self.is_open = False

        self.parameters.append(parameters)
        return FakeConnection()



@pytest.fixture
def broker(monkeypatch):
    import tasklink.transport.rabbitmq as rabbitmq_transport

    broker = FakeBroker()
    monkeypatch.setattr(rabbitmq_transport.pika, 'BlockingConnection', broker.BlockingConnection)
    return broker


@pytest.fixture
def connector():
    return tasklink.transport.get('rabbitmq')


def publish(connector, live, connection, persistent=False):
    message = tasklink.protocol.message.TaskMessage('abc', 'tasks.add', [1, 2], {}, persistent)
    return connector.publish(live, connection, message.encode(), message.properties('celery'))


def test_parameters(broker, connector):

    connection = tasklink.config.normalize(dict(host='mq.example.com', vhost='jobs', login='worker'))
    connector.connect(connection)

    parameters = broker.parameters[0]
    assert parameters.host == 'mq.example.com'
    assert parameters.port == 5672
    assert parameters.virtual_host == 'jobs'
    assert parameters.credentials.username == 'worker'
    assert parameters.ssl_options is None


def test_connect_refused(broker, connector):

    broker.refuse = True

    with pytest.raises(tasklink.TransportConnectionError):
        connector.connect(tasklink.config.normalize())


def test_publish(broker, connector):

    connection = tasklink.config.normalize(dict(persistent_messages=True))
    live = connector.connect(connection)

    assert publish(connector, live, connection, persistent=True) == True

    exchange, routing_key, body, properties, mandatory = broker.published[0]
    assert exchange == 'celery'
    assert routing_key == 'celery'
    assert mandatory == True
    assert properties.content_type == 'application/json'
    assert properties.content_encoding == 'UTF-8'
    assert properties.delivery_mode == 2
    assert tasklink.json.loads(body)['args'] == [1, 2]

    channel = broker.channels[0]
    assert channel.confirming == True
    assert channel.is_open == False


def test_publish_nacked(broker, connector):

    broker.nack = True
    connection = tasklink.config.normalize()
    live = connector.connect(connection)

    assert publish(connector, live, connection) == False


def test_fetch(broker, connector):

    connection = tasklink.config.normalize(dict(result_expire=30))
    live = connector.connect(connection)

    delivery, found = connector.fetch_result(live, 'a-b-c', connection.result_expire)
    assert delivery is None
    assert found == False

    channel = broker.channels[0]
    assert channel.calls[0] == ('exchange_declare', 'celeryresults', 'direct', True)
    assert channel.calls[1][2]['arguments'] == {'x-expires': 30000}

    broker.queues['abc'] = b'{"status": "SUCCESS", "result": 3}'

    delivery, found = connector.fetch_result(live, 'a-b-c', connection.result_expire)
    assert found == True
    assert delivery.body == b'{"status": "SUCCESS", "result": 3}'
    assert ('queue_delete', 'abc') in channel.calls
    assert len(broker.channels) == 1


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
