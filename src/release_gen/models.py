from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MemberKind(str, Enum):
    FIELD = "field"
    PROPERTY = "property"
    CLASS_VAR = "class_var"


class HookRole(str, Enum):
    SYNC = "sync"
    FINALIZE = "finalize"
    ASYNC = "async"


class InclusionPolicy(str, Enum):
    OPT_IN = "opt_in"
    OPT_OUT = "opt_out"


class MemberCandidate(BaseModel):
    """A field or property declared on a candidate class.

    A field group may bind several names that share one declared type.
    """

    model_config = ConfigDict(frozen=True)

    names: tuple[str, ...] = Field(min_length=1)
    kind: MemberKind = MemberKind.FIELD
    declared_type_supports_sync_release: bool = False
    declared_type_supports_async_release: bool = False
    explicit_include: bool = False
    explicit_exclude: bool = False
    settable: bool = True


class HookMethod(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    role: HookRole


class ClassModel(BaseModel):
    """Normalized description of one class that owns releasable resources."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str = ""
    is_sealed: bool = False
    release_all: bool = False
    implements_sync_release: bool = True
    implements_async_release: bool = False
    base_implements_sync_release: bool = False
    base_implements_async_release: bool = False
    candidate_members: tuple[MemberCandidate, ...] = ()
    hook_methods: tuple[HookMethod, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    @property
    def policy(self) -> InclusionPolicy:
        return InclusionPolicy.OPT_OUT if self.release_all else InclusionPolicy.OPT_IN

    def hooks(self, role: HookRole) -> list[str]:
        """Return the names of hooks with ``role`` in declaration order."""
        return [hook.name for hook in self.hook_methods if hook.role == role]


class ClassModelSet(BaseModel):
    classes: list[ClassModel]


class EmittedUnit(BaseModel):
    model_config = ConfigDict(frozen=True)

    qualified_name: str
    module: str
    path: str
    text: str
