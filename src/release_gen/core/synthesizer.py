"""Turn a generation plan into ordered release operations.

Operations come out in a fixed order: guard declaration, finalizer, sync
entry point, extensible sync hook, async entry point, async core.  Members
are released, cleared and dispatched in declaration order; hooks of one
role run in declaration order.

Sync phase ordering (non-sealed hook)::

    guard -> [explicit: members, sync hooks] -> finalize hooks -> clear -> set guard -> base hook

The async core mirrors it without the explicit branch and awaits the base
core last, so the most-derived class releases its resources first.
"""

import logging

from release_gen.core.planner import GenerationPlan
from release_gen.core.statements import (
    AsyncReleaseMember,
    AwaitAsyncCore,
    AwaitBaseCore,
    CallBaseHook,
    CallHook,
    CheckFinalizerSuppressed,
    CheckGuard,
    ClearMember,
    DelegateToHook,
    IfExplicit,
    Operation,
    OperationKind,
    ReleaseMember,
    SetReleased,
    Statement,
    SuppressErrors,
    SuppressFinalizer,
)

logger = logging.getLogger(__name__)


def _release_members(plan: GenerationPlan) -> list[Statement]:
    return [ReleaseMember(name) for name in plan.member_names]


def _async_release_members(plan: GenerationPlan) -> list[Statement]:
    return [AsyncReleaseMember(name) for name in plan.member_names]


def _clear_members(plan: GenerationPlan) -> list[Statement]:
    return [ClearMember(name) for name in plan.member_names]


def _hooks(names: tuple[str, ...], awaited: bool = False) -> list[Statement]:
    return [CallHook(name, awaited=awaited) for name in names]


def _finalizer(plan: GenerationPlan) -> Operation:
    if plan.is_sealed:
        body: list[Statement] = [
            CheckGuard(),
            SuppressErrors(tuple(_hooks(plan.finalize_hooks))),
            SetReleased(),
        ]
    else:
        body = [
            CheckFinalizerSuppressed(),
            SuppressErrors((DelegateToHook(explicit=False),)),
        ]
    return Operation(OperationKind.FINALIZER, tuple(body))


def _sync_entry(plan: GenerationPlan) -> Operation:
    if plan.is_sealed:
        body: list[Statement] = [
            CheckGuard(),
            *_release_members(plan),
            *_hooks(plan.sync_hooks),
            *_hooks(plan.finalize_hooks),
            *_clear_members(plan),
            SetReleased(),
        ]
    else:
        body = [DelegateToHook(explicit=True), SuppressFinalizer()]
    return Operation(OperationKind.SYNC_ENTRY, tuple(body))


def _sync_hook(plan: GenerationPlan) -> Operation:
    body: list[Statement] = [CheckGuard()]
    explicit_body = [*_release_members(plan), *_hooks(plan.sync_hooks)]
    if explicit_body:
        body.append(IfExplicit(tuple(explicit_body)))
    body.extend(_hooks(plan.finalize_hooks))
    body.extend(_clear_members(plan))
    body.append(SetReleased())
    if plan.chain_sync_to_base:
        body.append(CallBaseHook())
    return Operation(OperationKind.SYNC_HOOK, tuple(body), overrides_base=plan.chain_sync_to_base)


def _async_entry(plan: GenerationPlan) -> Operation:
    if plan.is_sealed:
        body: list[Statement] = [
            CheckGuard(),
            *_async_release_members(plan),
            *_hooks(plan.async_hooks, awaited=True),
            *_hooks(plan.sync_hooks),
            *_clear_members(plan),
            *_hooks(plan.finalize_hooks),
            SetReleased(),
        ]
    else:
        body = [
            CheckGuard(),
            AwaitAsyncCore(),
            DelegateToHook(explicit=False),
            SuppressFinalizer(),
        ]
    return Operation(OperationKind.ASYNC_ENTRY, tuple(body))


def _async_core(plan: GenerationPlan) -> Operation:
    body: list[Statement] = [
        *_async_release_members(plan),
        *_hooks(plan.async_hooks, awaited=True),
        *_hooks(plan.sync_hooks),
        *_clear_members(plan),
    ]
    if plan.chain_async_to_base:
        body.append(AwaitBaseCore())
    return Operation(OperationKind.ASYNC_CORE, tuple(body), overrides_base=plan.chain_async_to_base)


def synthesize(plan: GenerationPlan) -> list[Operation]:
    """Return the operations that implement ``plan``, in emission order."""
    operations = [Operation(OperationKind.GUARD_DECLARATION, ())]

    if plan.needs_finalizer:
        operations.append(_finalizer(plan))
    if plan.emit_own_sync_entry_point:
        operations.append(_sync_entry(plan))
    if plan.emit_extensible_sync_hook:
        operations.append(_sync_hook(plan))

    if plan.needs_async_surface:
        if plan.emit_own_async_entry_point:
            operations.append(_async_entry(plan))
        if plan.emit_extensible_async_core:
            operations.append(_async_core(plan))

    logger.debug(
        "%s: synthesized %s",
        plan.qualified_name,
        ", ".join(operation.kind.value for operation in operations),
    )
    return operations
