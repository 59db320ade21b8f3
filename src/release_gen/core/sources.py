import json
import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from release_gen.config import GeneratorSettings
from release_gen.core.errors import SourceError
from release_gen.core.frontend import ScanResult, build_models, module_namespace
from release_gen.core.pipeline import GenerationFailure
from release_gen.models import ClassModel, ClassModelSet

logger = logging.getLogger(__name__)

_SOURCE_KINDS = {
    ".py": "python",
    ".json": "json",
}


def detect_source_kind(path: Path) -> str:
    if path.is_dir():
        return "directory"
    suffix = path.suffix.lower()
    if suffix in _SOURCE_KINDS:
        return _SOURCE_KINDS[suffix]
    raise SourceError(f"Unsupported input: {path} (expected a directory, .py or .json file)")


def parse_model_document(text: str) -> list[ClassModel]:
    """Parse a JSON document holding one class model, a list of them, or ``{"classes": [...]}``."""
    try:
        document = json.loads(text)
        if isinstance(document, list):
            return ClassModelSet.model_validate({"classes": document}).classes
        if isinstance(document, dict) and "classes" in document:
            return ClassModelSet.model_validate(document).classes
        return [ClassModel.model_validate(document)]
    except (json.JSONDecodeError, ValidationError) as exc:
        raise SourceError(f"Invalid class model document: {exc}") from exc


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise SourceError(f"Cannot read {path}: {exc}") from exc


def collect_python_files(path: Path) -> list[Path]:
    return sorted(p for p in path.rglob("*.py") if "__pycache__" not in p.parts)


def load_models(paths: Sequence[str | Path], settings: GeneratorSettings | None = None) -> ScanResult:
    """Load class models from directories, Python files and JSON model documents.

    All Python sources are scanned together so that capability facts resolve
    across files.
    """
    python_sources: list[tuple[bytes, str]] = []
    json_models: list[ClassModel] = []
    unreadable: list[GenerationFailure] = []

    for raw in paths:
        path = Path(raw)
        if not path.exists():
            raise SourceError(f"File not found: {path}")
        kind = detect_source_kind(path)
        if kind == "directory":
            for file_path in collect_python_files(path):
                python_sources.append((_read_bytes(file_path), module_namespace(file_path, path)))
        elif kind == "python":
            python_sources.append((_read_bytes(path), module_namespace(path, path)))
        else:
            try:
                text = _read_bytes(path).decode("utf-8")
            except UnicodeDecodeError as exc:
                error = SourceError(f"{path} is not valid UTF-8: {exc}")
                logger.warning("Skipping %s: %s", path, error)
                unreadable.append(GenerationFailure(qualified_name=str(path), kind=error.kind, message=str(error)))
                continue
            json_models.extend(parse_model_document(text))

    result = build_models(python_sources, settings) if python_sources else ScanResult()
    result.models.extend(json_models)
    result.failures.extend(unreadable)
    logger.info("Loaded %d class model(s) from %d input(s)", len(result.models), len(paths))
    return result
