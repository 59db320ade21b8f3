"""Unit tests for the Python emitter."""

import ast

import pytest

from release_gen.core.pipeline import generate_unit
from release_gen.emit.python import attribute_name, mixin_name, snake_case
from release_gen.models import ClassModel, HookMethod, HookRole, MemberCandidate

_POOL_TEXT = '''\
# Generated by release-gen from app.pool.Pool. Do not edit.
from typing import Any


def _close_member(value: Any) -> None:
    close = getattr(value, "close", None)
    if callable(close):
        close()


class PoolRelease:
    """Release protocol for ``app.pool.Pool``."""

    __released = False
    _finalizer_suppressed = False

    def close(self) -> None:
        """Release owned resources. Calling it again has no effect."""
        self._release(True)
        self._finalizer_suppressed = True

    def _release(self, explicit: bool) -> None:
        """Release resources; ``explicit`` is false on the finalizer path. Subclasses extend this hook."""
        if self.__released:
            return
        if explicit:
            _close_member(getattr(self, "a", None))
        self.a = None
        self.__released = True
'''


def _field(name: str, async_capable: bool = False) -> MemberCandidate:
    return MemberCandidate(
        names=(name,),
        declared_type_supports_sync_release=True,
        declared_type_supports_async_release=async_capable,
    )


class TestNames:
    """Tests for generated module and class names."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Pool", "pool"),
            ("ConnectionPool", "connection_pool"),
            ("HTTPClient", "http_client"),
            ("S3Bucket", "s3_bucket"),
        ],
    )
    def test_snake_case(self, name: str, expected: str) -> None:
        assert snake_case(name) == expected

    def test_mixin_name(self) -> None:
        assert mixin_name("Pool") == "PoolRelease"

    def test_unit_location_follows_namespace(self) -> None:
        unit = generate_unit(ClassModel(name="ConnectionPool", namespace="app.db.pools"))
        assert unit.module == "app.db.connection_pool_release"
        assert unit.path == "app/db/connection_pool_release.py"

    def test_unit_location_without_namespace(self) -> None:
        unit = generate_unit(ClassModel(name="Pool"))
        assert unit.module == "pool_release"
        assert unit.path == "pool_release.py"


class TestRenderedText:
    """Tests for the rendered module text."""

    def test_simple_class(self) -> None:
        model = ClassModel(name="Pool", namespace="app.pool", release_all=True, candidate_members=[_field("a")])
        unit = generate_unit(model)
        assert unit.qualified_name == "app.pool.Pool"
        assert unit.text == _POOL_TEXT

    def test_output_is_deterministic(self) -> None:
        model = ClassModel(
            name="Pool",
            release_all=True,
            candidate_members=[_field("a", True), _field("b")],
            hook_methods=[
                HookMethod(name="_flush", role=HookRole.SYNC),
                HookMethod(name="_drop", role=HookRole.FINALIZE),
            ],
        )
        assert generate_unit(model).text == generate_unit(model.model_copy()).text

    def test_helpers_only_when_used(self) -> None:
        text = generate_unit(ClassModel(name="Pool")).text
        assert "_close_member" not in text
        assert "import contextlib" not in text
        assert "from typing import Any" not in text

    def test_async_helper_and_finalizer_imports(self) -> None:
        model = ClassModel(
            name="Pool",
            release_all=True,
            candidate_members=[_field("a", True)],
            hook_methods=[HookMethod(name="_drop", role=HookRole.FINALIZE)],
        )
        text = generate_unit(model).text
        assert "async def _aclose_member(value: Any) -> None:" in text
        assert "import contextlib" in text
        assert "with contextlib.suppress(Exception):" in text
        assert "async def aclose(self) -> None:" in text
        assert "async def _aclose_core(self) -> None:" in text

    def test_sealed_class_is_documented(self) -> None:
        text = generate_unit(ClassModel(name="Leaf", is_sealed=True)).text
        assert "Sealed: the class must not be subclassed." in text
        assert "def _release" not in text

    def test_derived_class_calls_super(self) -> None:
        model = ClassModel(
            name="Child",
            implements_async_release=True,
            base_implements_sync_release=True,
            base_implements_async_release=True,
        )
        text = generate_unit(model).text
        assert "super()._release(explicit)" in text
        assert "await super()._aclose_core()" in text
        assert "def close(self)" not in text
        assert "async def aclose(self)" not in text

    @pytest.mark.parametrize(
        "model",
        [
            ClassModel(name="Empty"),
            ClassModel(name="Leaf", is_sealed=True, hook_methods=[HookMethod(name="_d", role=HookRole.FINALIZE)]),
            ClassModel(name="Child", implements_async_release=True, base_implements_sync_release=True),
            ClassModel(
                name="Full",
                release_all=True,
                implements_async_release=True,
                candidate_members=[MemberCandidate(names=("x", "y"), declared_type_supports_sync_release=True)],
                hook_methods=[
                    HookMethod(name="_s", role=HookRole.SYNC),
                    HookMethod(name="_f", role=HookRole.FINALIZE),
                    HookMethod(name="_a", role=HookRole.ASYNC),
                ],
            ),
        ],
        ids=["empty", "sealed-finalizer", "derived-async", "full"],
    )
    def test_output_is_valid_python(self, model: ClassModel) -> None:
        ast.parse(generate_unit(model).text)


class TestAttributeName:
    """Private names are mangled with the user's class name."""

    @pytest.mark.parametrize(
        ("class_name", "name", "expected"),
        [
            ("Foo", "__handle", "_Foo__handle"),
            ("_Foo", "__handle", "_Foo__handle"),
            ("Foo", "_handle", "_handle"),
            ("Foo", "handle", "handle"),
            ("Foo", "__dunder__", "__dunder__"),
            ("__", "__handle", "__handle"),
        ],
    )
    def test_attribute_name(self, class_name: str, name: str, expected: str) -> None:
        assert attribute_name(class_name, name) == expected

    def test_rendered_private_member_and_hook(self) -> None:
        model = ClassModel(
            name="Foo",
            release_all=True,
            candidate_members=[_field("__handle")],
            hook_methods=[HookMethod(name="__cleanup", role=HookRole.SYNC)],
        )
        text = generate_unit(model).text
        assert '_close_member(getattr(self, "_Foo__handle", None))' in text
        assert "self._Foo__handle = None" in text
        assert "self._Foo__cleanup()" in text
        assert "self.__handle" not in text
