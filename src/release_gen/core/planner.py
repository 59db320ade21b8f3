import logging
from dataclasses import dataclass

from release_gen.config import GeneratorSettings
from release_gen.core.classifier import IncludedMember, classify_members, validate_identifier
from release_gen.core.errors import ModelError
from release_gen.models import ClassModel, HookRole, InclusionPolicy

logger = logging.getLogger(__name__)

GUARD_NAME = "__released"


@dataclass(frozen=True)
class GenerationPlan:
    class_name: str
    namespace: str
    is_sealed: bool
    members: tuple[IncludedMember, ...]
    sync_hooks: tuple[str, ...]
    finalize_hooks: tuple[str, ...]
    async_hooks: tuple[str, ...]
    needs_async_surface: bool
    needs_finalizer: bool
    emit_own_sync_entry_point: bool
    emit_own_async_entry_point: bool
    emit_extensible_sync_hook: bool
    emit_extensible_async_core: bool
    chain_sync_to_base: bool
    chain_async_to_base: bool
    guard_name: str = GUARD_NAME

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.class_name}" if self.namespace else self.class_name

    @property
    def member_names(self) -> list[str]:
        return [name for member in self.members for name in member.names]


def _validate_identity(model: ClassModel) -> None:
    validate_identifier(model.name, "class")
    if model.namespace:
        for segment in model.namespace.split("."):
            validate_identifier(segment, "namespace")
    for hook in model.hook_methods:
        validate_identifier(hook.name, f"{hook.role.value} hook")


def _check_capabilities(model: ClassModel, needs_async_surface: bool, settings: GeneratorSettings) -> None:
    name = model.qualified_name
    if not model.implements_sync_release and not model.implements_async_release:
        raise ModelError(f"{name} declares neither sync nor async release; it is not a release candidate")
    if model.base_implements_sync_release and not model.implements_sync_release:
        raise ModelError(f"{name} inherits sync release from its base but claims not to implement it")
    if model.base_implements_async_release and not model.implements_async_release:
        raise ModelError(f"{name} inherits async release from its base but claims not to implement it")
    if model.is_sealed and (model.base_implements_sync_release or model.base_implements_async_release):
        raise ModelError(f"{name} is sealed but its base already implements release; it cannot extend the chain")
    if needs_async_surface and not settings.async_release:
        raise ModelError(f"{name} needs async release but the target environment has async release disabled")


def plan_generation(
    model: ClassModel,
    members: list[IncludedMember],
    settings: GeneratorSettings | None = None,
) -> GenerationPlan:
    """Derive the generation plan for ``model`` from its classified members."""
    resolved_settings = settings or GeneratorSettings()
    _validate_identity(model)

    needs_async_surface = model.implements_async_release or any(m.supports_async_release for m in members)
    _check_capabilities(model, needs_async_surface, resolved_settings)

    async_hooks = tuple(model.hooks(HookRole.ASYNC))
    if async_hooks and not needs_async_surface:
        logger.warning(
            "%s: async hooks %s are never invoked because the class has no async release surface",
            model.qualified_name,
            ", ".join(async_hooks),
        )

    finalize_hooks = tuple(model.hooks(HookRole.FINALIZE))
    plan = GenerationPlan(
        class_name=model.name,
        namespace=model.namespace,
        is_sealed=model.is_sealed,
        members=tuple(members),
        sync_hooks=tuple(model.hooks(HookRole.SYNC)),
        finalize_hooks=finalize_hooks,
        async_hooks=async_hooks,
        needs_async_surface=needs_async_surface,
        needs_finalizer=bool(finalize_hooks),
        emit_own_sync_entry_point=not model.base_implements_sync_release,
        emit_own_async_entry_point=needs_async_surface and not model.base_implements_async_release,
        emit_extensible_sync_hook=not model.is_sealed,
        emit_extensible_async_core=not model.is_sealed,
        chain_sync_to_base=model.base_implements_sync_release,
        chain_async_to_base=model.base_implements_async_release,
    )
    logger.debug("%s: planned %s", model.qualified_name, plan)
    return plan


def build_plan(
    model: ClassModel,
    settings: GeneratorSettings | None = None,
    policy: InclusionPolicy | None = None,
) -> GenerationPlan:
    return plan_generation(model, classify_members(model, policy), settings)
