''' JSON encoding for task messages and result envelopes. The fastest
    available library is used: msgspec, then orjson, then the standard
    library. Whichever is chosen, :func:`dumps` returns UTF-8 bytes,
    accepts non-string mapping keys, and raises :data:`EncodeError` (or a
    TypeError) for values it cannot represent; :func:`loads` raises
    :data:`DecodeError` for malformed input.
'''

msgspec = None
orjson = None
json = None

try:
    import msgspec
except ImportError:
    pass

if msgspec is None:
    try:
        import orjson
    except ImportError:
        pass

if msgspec is None and orjson is None:
    import json


def orjson_dumps(value):
    # orjson rejects integer mapping keys unless asked; msgspec and the
    # standard library convert them to strings unprompted.
    return orjson.dumps(value, option=orjson.OPT_NON_STR_KEYS)


def json_dumps(value):
    encoded = json.dumps(value, ensure_ascii=False, separators=(',', ':'))
    return encoded.encode('utf-8')


if msgspec is not None:
    encoder = msgspec.json.Encoder()
    decoder = msgspec.json.Decoder()
    dumps = encoder.encode
    loads = decoder.decode
    EncodeError = msgspec.EncodeError
    DecodeError = msgspec.DecodeError
elif orjson is not None:
    dumps = orjson_dumps
    loads = orjson.loads
    EncodeError = orjson.JSONEncodeError
    DecodeError = orjson.JSONDecodeError
else:
    dumps = json_dumps
    loads = json.loads
    EncodeError = ValueError
    DecodeError = json.JSONDecodeError

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
