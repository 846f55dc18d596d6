"""
Exception types for eventfn
"""


class EventFnError(Exception):
    """Base class for all eventfn errors"""


class DispatchError(EventFnError):
    """Raised when the dispatch table cannot satisfy a request"""


class DuplicateKindError(DispatchError):
    """A kind was registered twice"""

    def __init__(self, kind: str):
        super().__init__(f"Function kind already registered: {kind!r}")
        self.kind = kind


class UnknownKindError(DispatchError):
    """A kind was resolved that has no registered handler"""

    def __init__(self, kind: str):
        super().__init__(f"No function registered for kind: {kind!r}")
        self.kind = kind


class DispatchTableFrozenError(DispatchError):
    """Registration attempted after the table was frozen"""

    def __init__(self, kind: str):
        super().__init__(f"Cannot register {kind!r}: dispatch table is frozen")
        self.kind = kind


class MalformedPayloadError(EventFnError, ValueError):
    """A trigger payload could not be decoded"""


class ConfigError(EventFnError, ValueError):
    """Invalid configuration value"""
