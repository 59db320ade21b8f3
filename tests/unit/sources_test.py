"""Unit tests for input loading."""

import json
from pathlib import Path

import pytest

from release_gen.core.errors import SourceError
from release_gen.core.sources import collect_python_files, detect_source_kind, load_models, parse_model_document

_MODEL = {"name": "Pool", "namespace": "app", "release_all": True}


class TestDetectSourceKind:
    """Tests for input kind detection."""

    def test_directory(self, tmp_path: Path) -> None:
        assert detect_source_kind(tmp_path) == "directory"

    @pytest.mark.parametrize(("name", "kind"), [("a.py", "python"), ("m.JSON", "json")])
    def test_files(self, tmp_path: Path, name: str, kind: str) -> None:
        assert detect_source_kind(tmp_path / name) == kind

    @pytest.mark.parametrize("name", ["notes.txt", "stubs.pyi"])
    def test_unsupported(self, tmp_path: Path, name: str) -> None:
        with pytest.raises(SourceError, match="Unsupported input"):
            detect_source_kind(tmp_path / name)


class TestParseModelDocument:
    """A JSON document may hold one model, a list, or a ``classes`` object."""

    def test_single_model(self) -> None:
        models = parse_model_document(json.dumps(_MODEL))
        assert [model.qualified_name for model in models] == ["app.Pool"]
        assert models[0].release_all is True

    def test_list(self) -> None:
        models = parse_model_document(json.dumps([_MODEL, {"name": "Other"}]))
        assert [model.name for model in models] == ["Pool", "Other"]

    def test_classes_object(self) -> None:
        models = parse_model_document(json.dumps({"classes": [_MODEL]}))
        assert len(models) == 1

    def test_members_and_hooks(self) -> None:
        document = {
            "name": "Pool",
            "candidate_members": [{"names": ["a", "b"], "declared_type_supports_sync_release": True}],
            "hook_methods": [{"name": "_drop", "role": "finalize"}],
        }
        model = parse_model_document(json.dumps(document))[0]
        assert model.candidate_members[0].names == ("a", "b")
        assert model.hook_methods[0].role.value == "finalize"

    @pytest.mark.parametrize(
        "text",
        ["{not json", json.dumps({"namespace": "app"}), json.dumps({"name": "Pool", "candidate_members": [{}]})],
        ids=["syntax", "missing-name", "empty-member"],
    )
    def test_invalid_documents(self, text: str) -> None:
        with pytest.raises(SourceError, match="Invalid class model document"):
            parse_model_document(text)


class TestLoadModels:
    """Tests for loading from paths."""

    def test_directory_scan(self, tmp_path: Path) -> None:
        package = tmp_path / "app"
        package.mkdir()
        (package / "pool.py").write_text("class Pool(PoolRelease):\n    pass\n")
        (package / "pool_release.py").write_text("# Generated by release-gen from app.pool.Pool. Do not edit.\n")
        (package / "__pycache__").mkdir()
        (package / "__pycache__" / "stale.py").write_text("class Stale(StaleRelease):\n    pass\n")

        scan = load_models([tmp_path])

        assert [model.qualified_name for model in scan.models] == ["app.pool.Pool"]

    def test_collect_python_files_is_sorted(self, tmp_path: Path) -> None:
        (tmp_path / "b.py").write_text("")
        (tmp_path / "a.py").write_text("")
        (tmp_path / "c.txt").write_text("")
        assert [path.name for path in collect_python_files(tmp_path)] == ["a.py", "b.py"]

    def test_mixed_inputs(self, tmp_path: Path) -> None:
        source = tmp_path / "pool.py"
        source.write_text("class Pool(PoolRelease):\n    pass\n")
        document = tmp_path / "models.json"
        document.write_text(json.dumps({"name": "Remote", "namespace": "svc"}))

        scan = load_models([source, document])

        assert [model.qualified_name for model in scan.models] == ["pool.Pool", "svc.Remote"]

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(SourceError, match="File not found"):
            load_models([tmp_path / "missing.py"])

    def test_stub_files_are_not_collected(self, tmp_path: Path) -> None:
        (tmp_path / "pool.py").write_text("class Pool(PoolRelease):\n    pass\n")
        (tmp_path / "pool.pyi").write_text("class Pool(PoolRelease): ...\n")

        scan = load_models([tmp_path])

        assert [model.qualified_name for model in scan.models] == ["pool.Pool"]

    def test_non_utf8_python_file_is_reported(self, tmp_path: Path) -> None:
        (tmp_path / "good.py").write_text("class Pool(PoolRelease):\n    pass\n")
        (tmp_path / "bad.py").write_bytes(b"class Bad(BadRelease):\n    label = 'caf\xe9'\n")

        scan = load_models([tmp_path])

        assert [model.qualified_name for model in scan.models] == ["good.Pool"]
        assert [(failure.qualified_name, failure.kind) for failure in scan.failures] == [("bad", "source")]
        assert "not valid UTF-8" in scan.failures[0].message

    def test_non_utf8_json_document_is_reported(self, tmp_path: Path) -> None:
        good = tmp_path / "good.json"
        good.write_text(json.dumps(_MODEL))
        bad = tmp_path / "bad.json"
        bad.write_bytes(b'{"name": "Caf\xe9"}')

        scan = load_models([bad, good])

        assert [model.qualified_name for model in scan.models] == ["app.Pool"]
        assert [(failure.qualified_name, failure.kind) for failure in scan.failures] == [(str(bad), "source")]
