from typing import Protocol

from release_gen.core.planner import GenerationPlan
from release_gen.core.statements import Operation
from release_gen.models import EmittedUnit


class Emitter(Protocol):
    def emit(self, plan: GenerationPlan, operations: list[Operation]) -> EmittedUnit: ...
