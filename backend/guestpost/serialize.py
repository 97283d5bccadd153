# guestpost/serialize.py
from bson import ObjectId


def _convert(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _convert(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_convert(v) for v in value]
    return value


def serialize_doc(doc, hidden=()):
    """Mongo document -> JSON friendly dict with `_id` renamed to `id`."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key in hidden:
            continue
        if key == "_id":
            out["id"] = str(value)
        else:
            out[key] = _convert(value)
    return out


def serialize_list(docs, hidden=()):
    return [serialize_doc(doc, hidden) for doc in docs]
