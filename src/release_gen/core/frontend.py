"""Build ``ClassModel`` records from Python sources with tree-sitter.

Only top-level classes are considered.  A class becomes a candidate when it
lists its own generated mixin (``<Name>Release``) among its bases; every
other scanned class still contributes capability facts, so members typed
with it and subclasses of it resolve correctly.
"""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from tree_sitter import Node
from tree_sitter_language_pack import get_parser

from release_gen.config import (
    ASYNC_HOOK_MARKER,
    EXCLUDE_MARKER,
    FINALIZE_HOOK_MARKER,
    INCLUDE_MARKER,
    MIXIN_SUFFIX,
    RELEASE_ALL_MARKER,
    SEALED_MARKER,
    SYNC_HOOK_MARKER,
    GeneratorSettings,
)
from release_gen.core.classifier import classify_members
from release_gen.core.errors import ModelError, ReleaseGenError, SourceError
from release_gen.core.pipeline import GenerationFailure
from release_gen.models import ClassModel, HookMethod, HookRole, MemberCandidate, MemberKind

logger = logging.getLogger(__name__)

GENERATED_HEADER = "# Generated by release-gen"

_HOOK_ROLES = {
    SYNC_HOOK_MARKER: HookRole.SYNC,
    FINALIZE_HOOK_MARKER: HookRole.FINALIZE,
    ASYNC_HOOK_MARKER: HookRole.ASYNC,
}
_PROPERTY_DECORATORS = {"property": False, "cached_property": True}
_OPTIONAL_WRAPPERS = {"Optional", "Final"}


@dataclass(frozen=True)
class TypeFacts:
    type_names: tuple[str, ...]
    include: bool = False
    exclude: bool = False
    class_var: bool = False


@dataclass
class _RawMember:
    name: str
    kind: MemberKind
    type_names: tuple[str, ...]
    include: bool
    exclude: bool
    settable: bool = True


@dataclass
class _ClassInfo:
    name: str
    namespace: str
    bases: list[str]
    decorators: list[str]
    members: list[_RawMember] = field(default_factory=list)
    hooks: list[HookMethod] = field(default_factory=list)
    methods: set[str] = field(default_factory=set)
    async_methods: set[str] = field(default_factory=set)

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    @property
    def is_candidate(self) -> bool:
        return any(_last(base) == f"{self.name}{MIXIN_SUFFIX}" for base in self.bases)


@dataclass
class ScanResult:
    models: list[ClassModel] = field(default_factory=list)
    failures: list[GenerationFailure] = field(default_factory=list)


def _text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def _last(dotted: str) -> str:
    return dotted.strip().rsplit(".", 1)[-1]


def _strip_call(text: str) -> str:
    text = text.strip()
    return text.split("(", 1)[0].strip() if text.endswith(")") else text


def _split_top_level(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for char in text:
        if char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
        if char == separator and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        parts.append(current.strip())
    return parts


def _subscript(text: str) -> tuple[str, list[str]]:
    if text.endswith("]") and "[" in text:
        index = text.index("[")
        return text[:index].strip(), _split_top_level(text[index + 1 : -1], ",")
    return text, []


def analyze_annotation(text: str) -> TypeFacts:
    """Reduce an annotation to its releasable type names and release markers."""
    text = text.strip()
    if len(text) >= 2 and text[0] in "'\"" and text[-1] == text[0]:
        text = text[1:-1].strip()

    union = _split_top_level(text, "|")
    if len(union) > 1:
        parts = [analyze_annotation(part) for part in union if part != "None"]
        return TypeFacts(
            type_names=tuple(name for part in parts for name in part.type_names),
            include=any(part.include for part in parts),
            exclude=any(part.exclude for part in parts),
            class_var=any(part.class_var for part in parts),
        )

    head, args = _subscript(text)
    wrapper = _last(head)
    if wrapper == "Annotated" and args:
        inner = analyze_annotation(args[0])
        markers = {_last(_strip_call(arg)) for arg in args[1:]}
        return TypeFacts(
            type_names=inner.type_names,
            include=inner.include or INCLUDE_MARKER in markers,
            exclude=inner.exclude or EXCLUDE_MARKER in markers,
            class_var=inner.class_var,
        )
    if wrapper == "ClassVar":
        inner = analyze_annotation(args[0]) if args else TypeFacts(type_names=())
        return TypeFacts(inner.type_names, inner.include, inner.exclude, class_var=True)
    if wrapper in _OPTIONAL_WRAPPERS and args:
        return analyze_annotation(args[0])
    if wrapper == "Union" and args:
        return analyze_annotation(" | ".join(args))
    if head == "None":
        return TypeFacts(type_names=())
    return TypeFacts(type_names=(head,))


def _decorators(decorated: Node) -> list[str]:
    names: list[str] = []
    for child in decorated.named_children:
        if child.type != "decorator" or not child.named_children:
            continue
        expression = child.named_children[0]
        if expression.type == "call":
            expression = expression.child_by_field_name("function") or expression
        names.append(_text(expression))
    return names


def _unwrap(node: Node) -> tuple[Node, list[str]]:
    if node.type == "decorated_definition":
        definition = node.child_by_field_name("definition")
        if definition is not None:
            return definition, _decorators(node)
    return node, []


def _bases(class_node: Node) -> list[str]:
    superclasses = class_node.child_by_field_name("superclasses")
    if superclasses is None:
        return []
    bases: list[str] = []
    for child in superclasses.named_children:
        if child.type == "keyword_argument":
            continue
        if child.type == "subscript":
            child = child.child_by_field_name("value") or child
        bases.append(_text(child))
    return bases


def _is_async(function_node: Node) -> bool:
    return any(child.type == "async" for child in function_node.children)


def _annotated_assignment(statement: Node) -> Node | None:
    if statement.type != "expression_statement" or not statement.named_children:
        return None
    assignment = statement.named_children[0]
    if assignment.type != "assignment" or assignment.child_by_field_name("type") is None:
        return None
    return assignment


def _member_from_annotation(name: str, annotation: str) -> _RawMember:
    facts = analyze_annotation(annotation)
    return _RawMember(
        name=name,
        kind=MemberKind.CLASS_VAR if facts.class_var else MemberKind.FIELD,
        type_names=facts.type_names,
        include=facts.include,
        exclude=facts.exclude,
    )


def _iter_self_assignments(block: Node) -> Iterator[_RawMember]:
    for statement in block.named_children:
        if statement.type in ("function_definition", "class_definition", "decorated_definition"):
            continue
        assignment = _annotated_assignment(statement)
        if assignment is not None:
            left = assignment.child_by_field_name("left")
            if left is not None and left.type == "attribute" and _text(left.child_by_field_name("object")) == "self":
                name = _text(left.child_by_field_name("attribute"))
                yield _member_from_annotation(name, _text(assignment.child_by_field_name("type")))
            continue
        yield from _iter_self_assignments(statement)


def _read_class(class_node: Node, decorators: list[str], namespace: str) -> _ClassInfo:
    info = _ClassInfo(
        name=_text(class_node.child_by_field_name("name")),
        namespace=namespace,
        bases=_bases(class_node),
        decorators=decorators,
    )
    body = class_node.child_by_field_name("body")
    if body is None:
        return info

    setters: set[str] = set()
    members: list[_RawMember] = []

    for statement in body.named_children:
        assignment = _annotated_assignment(statement)
        if assignment is not None:
            left = assignment.child_by_field_name("left")
            if left is not None and left.type == "identifier":
                members.append(_member_from_annotation(_text(left), _text(assignment.child_by_field_name("type"))))
            continue

        definition, method_decorators = _unwrap(statement)
        if definition.type != "function_definition":
            continue
        name = _text(definition.child_by_field_name("name"))
        (info.async_methods if _is_async(definition) else info.methods).add(name)
        markers = {_last(decorator) for decorator in method_decorators}

        for marker, role in _HOOK_ROLES.items():
            if marker in markers:
                info.hooks.append(HookMethod(name=name, role=role))

        property_kind = next((d for d in _PROPERTY_DECORATORS if d in markers), None)
        if property_kind is not None:
            facts = analyze_annotation(_text(definition.child_by_field_name("return_type")))
            members.append(
                _RawMember(
                    name=name,
                    kind=MemberKind.PROPERTY,
                    type_names=facts.type_names,
                    include=facts.include or INCLUDE_MARKER in markers,
                    exclude=facts.exclude or EXCLUDE_MARKER in markers,
                    settable=_PROPERTY_DECORATORS[property_kind],
                )
            )
        setters.update(d.split(".", 1)[0] for d in method_decorators if d.endswith(".setter"))

        if name == "__init__":
            init_body = definition.child_by_field_name("body")
            if init_body is not None:
                members.extend(_iter_self_assignments(init_body))

    seen: set[str] = set()
    for member in members:
        if member.name in seen:
            continue
        seen.add(member.name)
        if member.kind is MemberKind.PROPERTY and member.name in setters:
            member.settable = True
        info.members.append(member)
    return info


def read_classes(source: bytes, namespace: str = "") -> list[_ClassInfo]:
    tree = get_parser("python").parse(source)
    classes: list[_ClassInfo] = []
    for child in tree.root_node.named_children:
        definition, decorators = _unwrap(child)
        if definition.type == "class_definition":
            classes.append(_read_class(definition, decorators, namespace))
    return classes


class _Resolver:
    """Answer capability questions across every scanned class."""

    def __init__(self, classes: Sequence[_ClassInfo], settings: GeneratorSettings) -> None:
        self._settings = settings
        self._by_qualified = {info.qualified_name: info for info in classes}
        self._by_name: dict[str, list[_ClassInfo]] = {}
        for info in classes:
            self._by_name.setdefault(info.name, []).append(info)
        self._sync: dict[str, bool] = {}
        self._async: dict[str, bool] = {}
        self._models: dict[str, ClassModel] = {}
        self._in_progress: set[str] = set()

    def lookup(self, type_name: str, near: _ClassInfo | None = None) -> _ClassInfo | None:
        if type_name in self._by_qualified:
            return self._by_qualified[type_name]
        matches = self._by_name.get(_last(type_name), [])
        if near is not None:
            local = [m for m in matches if m.namespace == near.namespace]
            if local:
                return local[0]
        return matches[0] if len(matches) == 1 else None

    def _scanned_bases(self, info: _ClassInfo) -> list[_ClassInfo]:
        own_mixin = f"{info.name}{MIXIN_SUFFIX}"
        bases = []
        for base in info.bases:
            if _last(base) == own_mixin:
                continue
            resolved = self.lookup(base, info)
            if resolved is not None and resolved is not info:
                bases.append(resolved)
        return bases

    def class_supports_sync(self, info: _ClassInfo) -> bool:
        key = info.qualified_name
        if key not in self._sync:
            self._sync[key] = False
            self._sync[key] = (
                info.is_candidate
                or "close" in info.methods
                or any(_last(base) in self._settings.sync_interfaces for base in info.bases)
                or any(base in self._settings.sync_types for base in info.bases)
                or any(self.class_supports_sync(base) for base in self._scanned_bases(info))
            )
        return self._sync[key]

    def declares_async(self, info: _ClassInfo) -> bool:
        """Async capability the class declares or inherits, ignoring its members."""
        return (
            bool({"aclose", "_aclose_core"} & info.async_methods)
            or any(_last(base) in self._settings.async_interfaces for base in info.bases)
            or any(base in self._settings.async_types for base in info.bases)
            or any(self.class_supports_async(base) for base in self._scanned_bases(info))
        )

    def class_supports_async(self, info: _ClassInfo) -> bool:
        key = info.qualified_name
        if key in self._async:
            return self._async[key]
        if key in self._in_progress:
            return False
        self._in_progress.add(key)
        try:
            supported = self.declares_async(info)
            if not supported and info.is_candidate:
                try:
                    members = classify_members(self.build_model(info))
                except ReleaseGenError:
                    members = []
                supported = any(member.supports_async_release for member in members)
        finally:
            self._in_progress.discard(key)
        self._async[key] = supported
        return supported

    def _protocol_sync(self, info: _ClassInfo, seen: frozenset[str] = frozenset()) -> bool:
        if info.qualified_name in seen:
            return False
        seen = seen | {info.qualified_name}
        return (
            info.is_candidate
            or "_release" in info.methods
            or any(self._protocol_sync(base, seen) for base in self._scanned_bases(info))
        )

    def _protocol_async(self, info: _ClassInfo, seen: frozenset[str] = frozenset()) -> bool:
        if info.qualified_name in seen:
            return False
        seen = seen | {info.qualified_name}
        return (
            (info.is_candidate and self.class_supports_async(info))
            or "_aclose_core" in info.async_methods
            or any(self._protocol_async(base, seen) for base in self._scanned_bases(info))
        )

    def type_supports_sync(self, type_names: tuple[str, ...], near: _ClassInfo) -> bool:
        if not type_names:
            return False
        for type_name in type_names:
            if type_name in self._settings.sync_types:
                continue
            resolved = self.lookup(type_name, near)
            if resolved is None or not self.class_supports_sync(resolved):
                return False
        return True

    def type_supports_async(self, type_names: tuple[str, ...], near: _ClassInfo) -> bool:
        if not type_names:
            return False
        for type_name in type_names:
            if type_name in self._settings.async_types:
                continue
            resolved = self.lookup(type_name, near)
            if resolved is None or not self.class_supports_async(resolved):
                return False
        return True

    def _nearest_base(self, info: _ClassInfo) -> _ClassInfo | None:
        own_mixin = f"{info.name}{MIXIN_SUFFIX}"
        seen_mixin = False
        for base in info.bases:
            if _last(base) == own_mixin:
                seen_mixin = True
                continue
            resolved = self.lookup(base, info)
            if resolved is None or resolved is info:
                continue
            if self._protocol_sync(resolved):
                if not seen_mixin:
                    raise ModelError(f"{info.qualified_name}: {own_mixin} must be listed before base {base}")
                return resolved
            if self.class_supports_sync(resolved):
                logger.warning(
                    "%s: base %s defines close() without the _release hook; its close() is shadowed",
                    info.qualified_name,
                    base,
                )
        return None

    def build_model(self, info: _ClassInfo) -> ClassModel:
        key = info.qualified_name
        if key in self._models:
            return self._models[key]

        base = self._nearest_base(info)
        markers = {_last(decorator) for decorator in info.decorators}
        members = tuple(
            MemberCandidate(
                names=(member.name,),
                kind=member.kind,
                declared_type_supports_sync_release=self.type_supports_sync(member.type_names, info),
                declared_type_supports_async_release=self.type_supports_async(member.type_names, info),
                explicit_include=member.include,
                explicit_exclude=member.exclude,
                settable=member.settable,
            )
            for member in info.members
        )
        model = ClassModel(
            name=info.name,
            namespace=info.namespace,
            is_sealed=SEALED_MARKER in markers,
            release_all=RELEASE_ALL_MARKER in markers,
            implements_sync_release=True,
            implements_async_release=self.declares_async(info),
            base_implements_sync_release=base is not None,
            base_implements_async_release=base is not None and self._protocol_async(base),
            candidate_members=members,
            hook_methods=tuple(info.hooks),
        )
        self._models[key] = model
        return model


def module_namespace(path: Path, root: Path) -> str:
    """Return the dotted module path of ``path`` relative to ``root``."""
    try:
        relative = path.relative_to(root) if root.is_dir() else Path(path.name)
    except ValueError:
        relative = Path(path.name)
    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def is_generated(source: bytes) -> bool:
    return source.lstrip().startswith(GENERATED_HEADER.encode("utf-8"))


def build_models(
    sources: Sequence[tuple[bytes, str]],
    settings: GeneratorSettings | None = None,
) -> ScanResult:
    """Build models for every candidate class in ``sources`` (``(source, namespace)`` pairs)."""
    resolved_settings = settings or GeneratorSettings()
    result = ScanResult()
    classes: list[_ClassInfo] = []
    for source, namespace in sources:
        if is_generated(source):
            continue
        try:
            source.decode("utf-8")
        except UnicodeDecodeError as exc:
            label = namespace or "<source>"
            error = SourceError(f"{label} is not valid UTF-8: {exc}")
            logger.warning("Skipping %s: %s", label, error)
            result.failures.append(GenerationFailure(qualified_name=label, kind=error.kind, message=str(error)))
            continue
        classes.extend(read_classes(source, namespace))

    resolver = _Resolver(classes, resolved_settings)
    for info in classes:
        if not info.is_candidate:
            continue
        try:
            result.models.append(resolver.build_model(info))
        except ReleaseGenError as exc:
            logger.warning("Skipping %s: %s", info.qualified_name, exc)
            result.failures.append(
                GenerationFailure(qualified_name=info.qualified_name, kind=exc.kind, message=str(exc))
            )
    logger.info("Found %d candidate class(es) in %d source(s)", len(result.models), len(sources))
    return result


def build_models_from_source(
    source: str,
    namespace: str = "",
    settings: GeneratorSettings | None = None,
) -> ScanResult:
    return build_models([(source.encode("utf-8"), namespace)], settings)
