"""
Dispatch table and trigger decorators for eventfn

Decorated functions are registered in the process-wide dispatch table at
import time. The runtime freezes the table before serving, after which it
is read-only for the lifetime of the process.
"""

import importlib
import logging
import sys
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from .errors import DispatchTableFrozenError, DuplicateKindError, UnknownKindError
from .types import FunctionEntry, TriggerType

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class DispatchTable:
    """Maps a function kind to its registered handler"""

    def __init__(self) -> None:
        self._entries: Dict[str, FunctionEntry] = {}
        self._view: Optional[Mapping[str, FunctionEntry]] = None

    @property
    def frozen(self) -> bool:
        return self._view is not None

    def register(
        self,
        kind: str,
        handler: Callable,
        trigger_type: TriggerType,
        path: Optional[str] = None,
        methods: Optional[List[str]] = None,
    ) -> FunctionEntry:
        """Register a handler under `kind`.

        Raises:
            DuplicateKindError: If `kind` is already registered
            DispatchTableFrozenError: If the table has been frozen
        """
        if self.frozen:
            raise DispatchTableFrozenError(kind)
        if kind in self._entries:
            raise DuplicateKindError(kind)

        entry = FunctionEntry(
            name=kind,
            handler=handler,
            trigger_type=trigger_type,
            path=path,
            methods=[m.upper() for m in methods] if methods else ["GET", "POST"],
            module=getattr(handler, "__module__", None),
        )
        self._entries[kind] = entry
        logger.debug(f"Registered {trigger_type.value} function {kind}")
        return entry

    def resolve(self, kind: str) -> FunctionEntry:
        """Look up the entry for `kind`. Raises UnknownKindError if absent."""
        entries = self._view if self._view is not None else self._entries
        try:
            return entries[kind]
        except KeyError:
            raise UnknownKindError(kind) from None

    def freeze(self) -> None:
        """Make the table read-only. Idempotent."""
        if self._view is None:
            self._view = MappingProxyType(dict(self._entries))

    def entries(self) -> List[FunctionEntry]:
        return list((self._view if self._view is not None else self._entries).values())

    def names(self) -> List[str]:
        return [entry.name for entry in self.entries()]

    def __contains__(self, kind: object) -> bool:
        return kind in (self._view if self._view is not None else self._entries)

    def __len__(self) -> int:
        return len(self.entries())


# Process-wide table populated by the decorators below
_default_table = DispatchTable()


def get_default_table() -> DispatchTable:
    return _default_table


def _trigger(
    trigger_type: TriggerType,
    _func: Optional[F],
    name: Optional[str],
    table: Optional[DispatchTable],
    **options: Any,
) -> Callable:
    def decorator(func: F) -> F:
        target = table if table is not None else _default_table
        entry = target.register(name or func.__name__, func, trigger_type, **options)
        func._eventfn_entry = entry  # type: ignore
        return func

    if _func is not None:
        return decorator(_func)
    return decorator


def http_trigger(
    _func: Optional[F] = None,
    *,
    name: Optional[str] = None,
    path: Optional[str] = None,
    methods: Optional[List[str]] = None,
    table: Optional[DispatchTable] = None,
) -> Callable:
    """
    Register an HTTP-triggered function.

    The handler receives a NameInput and answers with a plain-text body.

    Args:
        name: Kind to register under (defaults to the function name)
        path: URL path (defaults to "/<name>")
        methods: Allowed HTTP methods (default: ["GET", "POST"])
        table: Dispatch table to register in (defaults to the process table)

    Example:
        @http_trigger(methods=["GET"])
        def hello(request, context):
            return f"Hello {request.name}!"
    """
    return _trigger(TriggerType.HTTP, _func, name, table, path=path, methods=methods)


def message_trigger(
    _func: Optional[F] = None,
    *,
    name: Optional[str] = None,
    table: Optional[DispatchTable] = None,
) -> Callable:
    """
    Register a function triggered by a Pub/Sub style message.

    The handler receives a MessageInput whose `name` is the base64-decoded
    message body ("World" when the body is empty).
    """
    return _trigger(TriggerType.MESSAGE, _func, name, table)


def storage_trigger(
    _func: Optional[F] = None,
    *,
    name: Optional[str] = None,
    table: Optional[DispatchTable] = None,
) -> Callable:
    """Register a function triggered by storage object changes (receives a StorageObject)"""
    return _trigger(TriggerType.STORAGE, _func, name, table)


def event_trigger(
    _func: Optional[F] = None,
    *,
    name: Optional[str] = None,
    table: Optional[DispatchTable] = None,
) -> Callable:
    """Register a generic background function (receives an EventInput)"""
    return _trigger(TriggerType.EVENT, _func, name, table)


def discover_functions(
    source_dir: str,
    module_name: str = "functions",
    table: Optional[DispatchTable] = None,
) -> List[FunctionEntry]:
    """
    Import a functions module or package so its decorators register.

    Args:
        source_dir: Directory containing the module
        module_name: Dotted module or package name to import
        table: Table to list afterwards (defaults to the process table)

    Returns:
        Entries registered in the table

    Raises:
        FileNotFoundError: If neither a package nor a module is found
    """
    source = str(Path(source_dir).resolve())
    if source not in sys.path:
        sys.path.insert(0, source)

    rel = Path(*module_name.split("."))
    package_dir = Path(source) / rel
    module_file = Path(source) / rel.with_suffix(".py")
    if not package_dir.is_dir() and not module_file.exists():
        raise FileNotFoundError(f"Functions module not found: {package_dir}")

    importlib.import_module(module_name)
    logger.info(f"Loaded module: {module_name}")

    target = table if table is not None else _default_table
    return target.entries()
