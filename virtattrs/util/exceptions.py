class VirtualAttributeError(Exception):
    """
    Base class for errors raised while declaring virtual attributes on a model.
    These are raised at class definition time, never from the accessors.
    """


class ConfigurationError(VirtualAttributeError, ValueError):
    """The caller did not supply enough (or valid) configuration"""


class SchemaError(VirtualAttributeError):
    """The requested store column is missing or is not a text column"""


class CollisionError(VirtualAttributeError):
    """
    Virtual attribute names clash with real columns or with
    previously declared virtual attributes
    """

    def __init__(self, message, names):
        super().__init__(message)
        self.names = list(names)
