"""
Persisted virtual attributes.

Lets a mapped class declare "virtual attributes" which behave like ordinary
columns (readable, writable, usable in constructors and validated by
schemas) but are stored together, as a JSON mapping, in one otherwise-unused
text column.  Rather than:

    verification.custom_data = {}
    verification.custom_data["street"] = "123 Main St."

you can simply do:

    verification.street = "123 Main St."

Subclasses sharing a base table via single table inheritance can each define
their own attribute set without touching the database schema:

    class Verification(PersistedVirtualAttributesMixin, RecordStoreObject):
        __tablename__ = "verification"
        ...
        custom_data: Mapped[Optional[dict]] = mapped_column(Text())
        response_data: Mapped[Optional[dict]] = mapped_column(Text())

    @virtual_attributes(in_="custom_data", attributes=["street", "city"])
    @virtual_attributes(in_="response_data", attributes=["verification_status"])
    class AddressVerification(Verification):
        __mapper_args__ = {"polymorphic_identity": "address"}

Values only reach the database through the normal session flush, which
serializes the whole mapping.

Only assignments to the attributes themselves mark the store column dirty.
Changing a nested value in place (`verification.tags.append("x")`) is not
tracked, so assign a new value instead (`verification.tags = tags + ["x"]`).
"""
import keyword
from typing import Dict, List

from sqlalchemy import inspect
from sqlalchemy.ext.mutable import MutableDict

from virtattrs.model.json_types import JsonEncodedDict, is_text_type
from virtattrs.util.exceptions import CollisionError, ConfigurationError, SchemaError

import virtattrs.util.virtattrs_logger

logging = virtattrs.util.virtattrs_logger.get_logger()

REGISTRY_ATTR = "_virtual_attribute_registry"


class VirtualAttributeRegistry(object):
    """
    Per-class record of the virtual attributes declared on a model and the
    store columns holding them. Append only.
    """

    def __init__(self):
        self.stores: List[str] = []
        self.attributes: List[str] = []
        self.by_store: Dict[str, List[str]] = {}
        # store columns already switched over to the json mapping codec
        self.serialized_stores = set()

    def copy(self):
        registry = VirtualAttributeRegistry()
        registry.stores = list(self.stores)
        registry.attributes = list(self.attributes)
        registry.by_store = {
            store: list(names) for store, names in self.by_store.items()
        }
        registry.serialized_stores = set(self.serialized_stores)
        return registry

    def already_defined(self, names):
        """Names which are registered already, or repeated within `names`"""
        seen = set(self.attributes)
        clashes = []
        for name in names:
            if name in seen and name not in clashes:
                clashes.append(name)
            seen.add(name)
        return clashes

    def register(self, store_column: str, names):
        if store_column not in self.stores:
            self.stores.append(store_column)
        self.by_store.setdefault(store_column, []).extend(names)
        self.attributes.extend(names)


def get_registry(cls) -> VirtualAttributeRegistry:
    """
    Return the registry in effect for `cls`, which may be inherited from a
    parent class. Callers must not modify it.
    """
    for klass in cls.__mro__:
        registry = klass.__dict__.get(REGISTRY_ATTR)
        if registry is not None:
            return registry
    return VirtualAttributeRegistry()


def _own_registry(cls) -> VirtualAttributeRegistry:
    # subclasses start from a copy of the inherited registry so their
    # declarations never leak back into the parent or sibling classes
    registry = cls.__dict__.get(REGISTRY_ATTR)
    if registry is None:
        registry = get_registry(cls).copy()
        setattr(cls, REGISTRY_ATTR, registry)
    return registry


class VirtualAttribute(object):
    """
    Descriptor reading and writing one key of the mapping held in a store column
    """

    def __init__(self, store_column: str, name: str):
        self.store_column = store_column
        self.name = name

    def __repr__(self):
        return f"VirtualAttribute({self.store_column!r}, {self.name!r})"

    def _mapping(self, obj):
        store = getattr(obj, self.store_column)
        if not store:
            # assigning goes through the MutableDict coercion, so read it back
            setattr(obj, self.store_column, {})
            store = getattr(obj, self.store_column)
        return store

    def __get__(self, obj, owner=None):
        if obj is None:
            return self
        return self._mapping(obj).get(self.name)

    def __set__(self, obj, value):
        self._mapping(obj)[self.name] = value

    def __delete__(self, obj):
        store = self._mapping(obj)
        if self.name not in store:
            raise AttributeError(
                f"virtual attribute '{self.name}' is not set on {type(obj).__name__}"
            )
        del store[self.name]


def _column_key(store_column):
    # allow Model.custom_data as well as "custom_data"
    if hasattr(store_column, "key"):
        return store_column.key
    return store_column


def _normalize_attributes(attributes):
    if attributes is None:
        return []
    if isinstance(attributes, str):
        attributes = [attributes]
    names = list(attributes)
    for name in names:
        if not isinstance(name, str) or not name.isidentifier():
            raise ConfigurationError(f"invalid virtual attribute name: {name!r}")
        if keyword.iskeyword(name) or name.startswith("_"):
            raise ConfigurationError(f"invalid virtual attribute name: {name!r}")
    return names


def persist_virtual_attributes(target_class, store_column=None, attributes=None, **opts):
    """
    Declare `attributes` as virtual attributes of `target_class`, stored
    in the text column `store_column`.

    `store_column` may also be given as `in_` (or `in`) for more semantic
    invocations. This can be called several times per model, as long as each
    call uses unique attribute names. Calls may share a store column.

    All checks happen before anything is changed, so a failing call leaves
    the class exactly as it was.
    """
    in_column = opts.pop("in_", None)
    if in_column is None:
        in_column = opts.pop("in", None)
    else:
        opts.pop("in", None)
    if opts:
        raise ConfigurationError(f"unknown options: {sorted(opts)}")

    store_column = _column_key(store_column if store_column is not None else in_column)
    if not store_column:
        raise ConfigurationError("no store column provided")
    new_attributes = _normalize_attributes(attributes)
    if not new_attributes:
        raise ConfigurationError("no virtual attributes provided")

    mapper = inspect(target_class, raiseerr=False)
    if mapper is None or not hasattr(mapper, "columns"):
        raise ConfigurationError(f"{target_class!r} is not a mapped class")

    # then ensure the column exists...
    column = mapper.columns.get(store_column)
    if column is None:
        raise SchemaError(f"no such column: {store_column}")
    # ... and it's a text column
    if not is_text_type(column.type):
        raise SchemaError(f"{store_column} is not a text column")

    # finally, make sure the attributes don't already exist
    physical_names = set(mapper.columns.keys()) | {c.name for c in mapper.columns}
    existing_columns = [name for name in new_attributes if name in physical_names]
    if existing_columns:
        raise CollisionError(
            f"cannot create virtual attributes (columns already exist): {existing_columns}",
            existing_columns,
        )
    # relationships, methods, declarative base attributes, ...
    # mapper.attrs is avoided since it would configure mappers mid-declaration
    existing_members = [
        name
        for name in new_attributes
        if hasattr(target_class, name)
        and not isinstance(getattr(target_class, name), VirtualAttribute)
    ]
    if existing_members:
        raise CollisionError(
            f"cannot create virtual attributes (class members already exist): {existing_members}",
            existing_members,
        )
    existing_attributes = get_registry(target_class).already_defined(new_attributes)
    if existing_attributes:
        raise CollisionError(
            f"cannot create virtual attributes (already defined): {existing_attributes}",
            existing_attributes,
        )

    registry = _own_registry(target_class)
    if store_column not in registry.serialized_stores:
        column.type = JsonEncodedDict.wrapping(column.type)
        MutableDict.associate_with_attribute(getattr(target_class, store_column))
        registry.serialized_stores.add(store_column)

    for name in new_attributes:
        setattr(target_class, name, VirtualAttribute(store_column, name))
    registry.register(store_column, new_attributes)

    logging.debug(
        f"{target_class.__name__} persisting virtual attributes {new_attributes} in {store_column}"
    )


def virtual_attributes(store_column=None, attributes=None, **opts):
    """
    Class decorator form of persist_virtual_attributes(), decorators may be stacked
    """

    def decorate(cls):
        persist_virtual_attributes(cls, store_column, attributes, **opts)
        return cls

    return decorate


class PersistedVirtualAttributesMixin(object):
    """
    Mixin for mapped classes which declare virtual attributes.

    To list persisted attributes, either all or just those stored in a
    particular column, try some combination of custom_attributes(),
    custom_attribute_stores() and custom_attributes_by_store().
    """

    @classmethod
    def persist_virtual_attributes(cls, store_column=None, attributes=None, **opts):
        persist_virtual_attributes(cls, store_column, attributes, **opts)

    @classmethod
    def custom_attributes(cls) -> List[str]:
        return list(get_registry(cls).attributes)

    @classmethod
    def custom_attribute_stores(cls) -> List[str]:
        return list(get_registry(cls).stores)

    @classmethod
    def custom_attributes_by_store(cls) -> Dict[str, List[str]]:
        return {
            store: list(names) for store, names in get_registry(cls).by_store.items()
        }

    def virtual_attribute_is_set(self, name: str) -> bool:
        """
        Distinguishes an attribute that was never set from one explicitly set
        to None, both of which read back as None
        """
        for store, names in get_registry(type(self)).by_store.items():
            if name in names:
                return name in (getattr(self, store) or {})
        raise AttributeError(f"'{name}' is not a virtual attribute of {type(self).__name__}")
