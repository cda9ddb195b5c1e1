from marshmallow import fields
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema

from virtattrs.model.virtual_attributes import get_registry
from virtattrs.util.exceptions import ConfigurationError


def virtual_attribute_schema(
    model,
    required=(),
    validators=None,
    load_instance=True,
    exclude_stores=True,
):
    """
    Returns a SQLAlchemyAutoSchema subclass for `model` which also dumps,
    loads and validates its virtual attributes as if they were real columns.

    `required` lists virtual attributes that must be present when loading,
    `validators` maps a virtual attribute name to a marshmallow validator
    (or list of validators).

    The store columns themselves are excluded by default, so the virtual
    attributes show up flat in the serialized dict.
    """
    registry = get_registry(model)
    validators = validators or {}
    unknown = [
        name
        for name in list(required) + list(validators)
        if name not in registry.attributes
    ]
    if unknown:
        raise ConfigurationError(
            f"not virtual attributes of {model.__name__}: {sorted(set(unknown))}"
        )

    attrs = {}
    for name in registry.attributes:
        attrs[name] = fields.Raw(
            required=name in required,
            allow_none=name not in required,
            validate=validators.get(name),
        )

    class Meta:
        """
        Metadata mapping for marshmallow-sqlalchemy serialization
        """

    Meta.model = model
    Meta.load_instance = load_instance
    if exclude_stores:
        Meta.exclude = tuple(registry.stores)
    attrs["Meta"] = Meta

    return type(f"{model.__name__}Schema", (SQLAlchemyAutoSchema,), attrs)
