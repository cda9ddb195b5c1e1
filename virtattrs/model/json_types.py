import json

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator


def is_text_type(type_) -> bool:
    """
    True for "large text" column types (Text, UnicodeText, ...) and for
    decorated types whose underlying implementation is one of them
    """
    if isinstance(type_, TypeDecorator):
        type_ = type_.impl
    return isinstance(type_, Text)


class JsonEncodedDict(TypeDecorator):
    """
    Stores a dict as JSON in a text column.

    An empty or NULL column comes back as None so that callers can decide
    how to materialize an empty mapping.

    Paired with MutableDict, which only tracks top level changes: in place
    changes to nested lists or dicts do not mark the column dirty.
    """

    impl = Text
    cache_ok = True

    @classmethod
    def wrapping(cls, original_type):
        """
        Build a codec which keeps the DDL of an existing text column type
        (UnicodeText, Text(length), ...)
        """
        if isinstance(original_type, cls):
            return original_type
        json_type = cls()
        if isinstance(original_type, TypeDecorator):
            original_type = original_type.impl
        json_type.impl = original_type
        return json_type

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return json.dumps(dict(value))

    def process_result_value(self, value, dialect):
        if not value:
            return None
        return json.loads(value)
