"""Language-neutral statements that make up a synthesized release protocol.

The synthesizer only decides *what* happens and in which order; rendering
into source text is left to an emitter.
"""

from dataclasses import dataclass
from enum import Enum


class OperationKind(str, Enum):
    GUARD_DECLARATION = "guard_declaration"
    FINALIZER = "finalizer"
    SYNC_ENTRY = "sync_entry"
    SYNC_HOOK = "sync_hook"
    ASYNC_ENTRY = "async_entry"
    ASYNC_CORE = "async_core"


@dataclass(frozen=True)
class CheckGuard:
    """Return early when the instance is already released."""


@dataclass(frozen=True)
class CheckFinalizerSuppressed:
    """Return early when explicit release already suppressed the finalizer."""


@dataclass(frozen=True)
class ReleaseMember:
    name: str


@dataclass(frozen=True)
class AsyncReleaseMember:
    """Await async release when the value supports it, else release it synchronously."""

    name: str


@dataclass(frozen=True)
class CallHook:
    name: str
    awaited: bool = False


@dataclass(frozen=True)
class ClearMember:
    name: str


@dataclass(frozen=True)
class SetReleased:
    pass


@dataclass(frozen=True)
class IfExplicit:
    body: tuple["Statement", ...]


@dataclass(frozen=True)
class DelegateToHook:
    explicit: bool


@dataclass(frozen=True)
class AwaitAsyncCore:
    pass


@dataclass(frozen=True)
class SuppressFinalizer:
    pass


@dataclass(frozen=True)
class CallBaseHook:
    """Forward the ``explicit`` flag to the base class hook."""


@dataclass(frozen=True)
class AwaitBaseCore:
    pass


@dataclass(frozen=True)
class SuppressErrors:
    body: tuple["Statement", ...]


Statement = (
    CheckGuard
    | CheckFinalizerSuppressed
    | ReleaseMember
    | AsyncReleaseMember
    | CallHook
    | ClearMember
    | SetReleased
    | IfExplicit
    | DelegateToHook
    | AwaitAsyncCore
    | SuppressFinalizer
    | CallBaseHook
    | AwaitBaseCore
    | SuppressErrors
)


@dataclass(frozen=True)
class Operation:
    kind: OperationKind
    body: tuple[Statement, ...]
    overrides_base: bool = False

    @property
    def is_async(self) -> bool:
        return self.kind in (OperationKind.ASYNC_ENTRY, OperationKind.ASYNC_CORE)


def walk(statements: tuple[Statement, ...]) -> list[Statement]:
    """Flatten nested statement blocks in execution order."""
    flat: list[Statement] = []
    for statement in statements:
        flat.append(statement)
        if isinstance(statement, IfExplicit | SuppressErrors):
            flat.extend(walk(statement.body))
    return flat
