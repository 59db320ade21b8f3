import re

from release_gen.config import MIXIN_SUFFIX
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
    walk,
)
from release_gen.models import EmittedUnit

_INDENT = "    "

_CLOSE_HELPER = [
    "def _close_member(value: Any) -> None:",
    '    close = getattr(value, "close", None)',
    "    if callable(close):",
    "        close()",
]

_ACLOSE_HELPER = [
    "async def _aclose_member(value: Any) -> None:",
    '    aclose = getattr(value, "aclose", None)',
    "    if callable(aclose):",
    "        await aclose()",
    "    else:",
    "        _close_member(value)",
]

_SIGNATURES = {
    OperationKind.FINALIZER: "def __del__(self) -> None:",
    OperationKind.SYNC_ENTRY: "def close(self) -> None:",
    OperationKind.SYNC_HOOK: "def _release(self, explicit: bool) -> None:",
    OperationKind.ASYNC_ENTRY: "async def aclose(self) -> None:",
    OperationKind.ASYNC_CORE: "async def _aclose_core(self) -> None:",
}

_DOCSTRINGS = {
    OperationKind.SYNC_ENTRY: "Release owned resources. Calling it again has no effect.",
    OperationKind.SYNC_HOOK: "Release resources; ``explicit`` is false on the finalizer path. Subclasses extend this hook.",
    OperationKind.ASYNC_ENTRY: "Release owned resources asynchronously. Calling it again has no effect.",
    OperationKind.ASYNC_CORE: "Release resources asynchronously. Subclasses extend this hook.",
}


def snake_case(name: str) -> str:
    spaced = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", spaced).lower()


def mixin_name(class_name: str) -> str:
    return f"{class_name}{MIXIN_SUFFIX}"


def attribute_name(class_name: str, name: str) -> str:
    """Return the attribute that ``name`` refers to inside the user's class body.

    Private names are mangled with the user's class, not with the mixin that reads them.
    """
    owner = class_name.lstrip("_")
    if owner and name.startswith("__") and not name.endswith("__"):
        return f"_{owner}{name}"
    return name


def unit_location(plan: GenerationPlan) -> tuple[str, str]:
    """Return ``(module, path)`` of the generated file, placed beside the class's module."""
    package = plan.namespace.split(".")[:-1] if plan.namespace else []
    stem = f"{snake_case(plan.class_name)}_release"
    module = ".".join([*package, stem])
    path = "/".join([*package, f"{stem}.py"])
    return module, path


class PythonEmitter:
    """Render synthesized operations as a Python module holding a release mixin."""

    def emit(self, plan: GenerationPlan, operations: list[Operation]) -> EmittedUnit:
        module, path = unit_location(plan)
        return EmittedUnit(
            qualified_name=plan.qualified_name,
            module=module,
            path=path,
            text=self.render(plan, operations),
        )

    def render(self, plan: GenerationPlan, operations: list[Operation]) -> str:
        statements = [s for operation in operations for s in walk(operation.body)]
        uses_async_release = any(isinstance(s, AsyncReleaseMember) for s in statements)
        uses_release = uses_async_release or any(isinstance(s, ReleaseMember) for s in statements)
        uses_suppress = any(isinstance(s, SuppressErrors) for s in statements)
        tracks_finalizer = any(isinstance(s, SuppressFinalizer | CheckFinalizerSuppressed) for s in statements)

        lines = [f"# Generated by release-gen from {plan.qualified_name}. Do not edit."]
        imports = []
        if uses_suppress:
            imports.append("import contextlib")
        if uses_release:
            imports.append("from typing import Any")
        if imports:
            lines.extend(imports)

        if uses_release:
            lines.extend(["", "", *_CLOSE_HELPER])
        if uses_async_release:
            lines.extend(["", "", *_ACLOSE_HELPER])

        lines.extend(["", "", f"class {mixin_name(plan.class_name)}:"])
        sealed_note = " Sealed: the class must not be subclassed." if plan.is_sealed else ""
        lines.append(f'{_INDENT}"""Release protocol for ``{plan.qualified_name}``.{sealed_note}"""')

        for operation in operations:
            if operation.kind is OperationKind.GUARD_DECLARATION:
                lines.append("")
                lines.append(f"{_INDENT}{plan.guard_name} = False")
                if tracks_finalizer:
                    lines.append(f"{_INDENT}_finalizer_suppressed = False")
                continue
            lines.append("")
            lines.extend(self._render_operation(plan, operation))

        return "\n".join(lines) + "\n"

    def _render_operation(self, plan: GenerationPlan, operation: Operation) -> list[str]:
        lines = [f"{_INDENT}{_SIGNATURES[operation.kind]}"]
        docstring = _DOCSTRINGS.get(operation.kind)
        if docstring:
            lines.append(f'{_INDENT * 2}"""{docstring}"""')
        body = self._render_block(plan, operation.body, depth=2)
        if not body and not docstring:
            body = [f"{_INDENT * 2}pass"]
        lines.extend(body)
        return lines

    def _render_block(self, plan: GenerationPlan, statements: tuple[Statement, ...], depth: int) -> list[str]:
        lines: list[str] = []
        for statement in statements:
            lines.extend(self._render_statement(plan, statement, depth))
        return lines

    def _render_statement(self, plan: GenerationPlan, statement: Statement, depth: int) -> list[str]:
        pad = _INDENT * depth
        guard = f"self.{plan.guard_name}"

        def attr(name: str) -> str:
            return attribute_name(plan.class_name, name)

        match statement:
            case CheckGuard():
                return [f"{pad}if {guard}:", f"{pad}{_INDENT}return"]
            case CheckFinalizerSuppressed():
                return [f"{pad}if self._finalizer_suppressed:", f"{pad}{_INDENT}return"]
            case ReleaseMember(name=name):
                return [f'{pad}_close_member(getattr(self, "{attr(name)}", None))']
            case AsyncReleaseMember(name=name):
                return [f'{pad}await _aclose_member(getattr(self, "{attr(name)}", None))']
            case CallHook(name=name, awaited=True):
                return [f"{pad}await self.{attr(name)}()"]
            case CallHook(name=name):
                return [f"{pad}self.{attr(name)}()"]
            case ClearMember(name=name):
                return [f"{pad}self.{attr(name)} = None"]
            case SetReleased():
                return [f"{pad}{guard} = True"]
            case IfExplicit(body=body):
                return [f"{pad}if explicit:", *self._render_block(plan, body, depth + 1)]
            case SuppressErrors(body=body):
                inner = self._render_block(plan, body, depth + 1) or [f"{pad}{_INDENT}pass"]
                return [f"{pad}with contextlib.suppress(Exception):", *inner]
            case DelegateToHook(explicit=explicit):
                return [f"{pad}self._release({explicit})"]
            case AwaitAsyncCore():
                return [f"{pad}await self._aclose_core()"]
            case SuppressFinalizer():
                return [f"{pad}self._finalizer_suppressed = True"]
            case CallBaseHook():
                return [f"{pad}super()._release(explicit)"]
            case AwaitBaseCore():
                return [f"{pad}await super()._aclose_core()"]
        raise TypeError(f"Unsupported statement: {statement!r}")
