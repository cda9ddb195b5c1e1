from sqlalchemy.orm import DeclarativeBase


class RecordStoreObject(DeclarativeBase):
    """
    Parent class for models that can be stored in the record store.

    DeclarativeBase brings in SQLAlchemy database mapping via Annotated Declarative
    Tables https://docs.sqlalchemy.org/en/20/orm/declarative_tables.html#orm-declarative-mapped-column

    The default declarative constructor is kept so that virtual attributes
    can be passed as keyword arguments along with real columns, i.e.
    `AddressVerification(user_name="bob", street="123 Main St.")`

    This class is also used in database initialization to get the table
    mappings of all of the objects to be stored so that it can construct the
    tables
    """
