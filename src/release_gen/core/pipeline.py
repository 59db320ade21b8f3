import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from release_gen.config import GeneratorSettings
from release_gen.core.errors import ReleaseGenError
from release_gen.core.planner import build_plan
from release_gen.core.ports.emitter import Emitter
from release_gen.core.synthesizer import synthesize
from release_gen.emit.python import PythonEmitter
from release_gen.models import ClassModel, EmittedUnit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationFailure:
    qualified_name: str
    kind: str
    message: str


@dataclass
class GenerationReport:
    units: list[EmittedUnit] = field(default_factory=list)
    failures: list[GenerationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def generate_unit(
    model: ClassModel,
    settings: GeneratorSettings | None = None,
    emitter: Emitter | None = None,
) -> EmittedUnit:
    """Run classification, planning, synthesis and emission for one class."""
    plan = build_plan(model, settings)
    operations = synthesize(plan)
    return (emitter or PythonEmitter()).emit(plan, operations)


def _generate_isolated(
    model: ClassModel,
    settings: GeneratorSettings | None,
    emitter: Emitter | None,
) -> EmittedUnit | GenerationFailure:
    try:
        return generate_unit(model, settings, emitter)
    except ReleaseGenError as exc:
        logger.warning("Skipping %s: %s", model.qualified_name, exc)
        return GenerationFailure(qualified_name=model.qualified_name, kind=exc.kind, message=str(exc))


def generate_all(
    models: Sequence[ClassModel],
    settings: GeneratorSettings | None = None,
    emitter: Emitter | None = None,
    jobs: int = 1,
) -> GenerationReport:
    """Generate every class independently; one class failing never affects the others."""
    if jobs > 1:
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            results = list(executor.map(lambda m: _generate_isolated(m, settings, emitter), models))
    else:
        results = [_generate_isolated(model, settings, emitter) for model in models]

    report = GenerationReport()
    for result in results:
        if isinstance(result, GenerationFailure):
            report.failures.append(result)
        else:
            report.units.append(result)

    logger.info("Generated %d unit(s), %d failure(s)", len(report.units), len(report.failures))
    return report
