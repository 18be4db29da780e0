import json
import tasklink


def test_json_encode_and_decode():
    encode_and_decode(json.dumps, json.loads, dump_is_bytes=False)


def test_tasklink_encode_and_decode():
    encode_and_decode(tasklink.json.dumps, tasklink.json.loads)


def test_unicode_is_utf8():
    encoded = tasklink.json.dumps({'name': 'café'})
    assert isinstance(encoded, bytes)

    decoded = tasklink.json.loads(encoded)
    assert decoded['name'] == 'café'
    assert 'café'.encode('utf-8') in encoded or b'\\u00e9' in encoded


def encode_and_decode(dumps, loads, dump_is_bytes=True):

    input_dictionary = dict()
    input_dictionary['args'] = [1, 2, 3, 'a', 'b', None, 'c', 'z']
    input_dictionary['kwargs'] = {'one': 1, 'two': 2}
    input_dictionary['none'] = None
    input_dictionary['true'] = True
    input_dictionary['false'] = False

    encoded = dumps(input_dictionary)

    if dump_is_bytes:
        assert isinstance(encoded, bytes)
    else:
        assert isinstance(encoded, str)

    # It won't do to compare the encoded JSON against a pre-set notion of
    # what the encoded output should look like, as there is variance in
    # the handling of whitespace between the different modules used here.

    decoded = loads(encoded)
    assert isinstance(decoded, dict)
    assert decoded == input_dictionary


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
