from release_gen.config import GeneratorSettings, get_settings
from release_gen.core.classifier import IncludedMember, classify_members
from release_gen.core.errors import (
    EmissionError,
    MalformedIdentifierError,
    ModelError,
    ReleaseGenError,
    SourceError,
    UnsupportedMemberError,
)
from release_gen.core.frontend import ScanResult, build_models, build_models_from_source
from release_gen.core.pipeline import GenerationFailure, GenerationReport, generate_all, generate_unit
from release_gen.core.planner import GenerationPlan, build_plan, plan_generation
from release_gen.core.sources import load_models
from release_gen.core.synthesizer import synthesize
from release_gen.emit.python import PythonEmitter
from release_gen.models import (
    ClassModel,
    ClassModelSet,
    EmittedUnit,
    HookMethod,
    HookRole,
    InclusionPolicy,
    MemberCandidate,
    MemberKind,
)

__all__ = [
    "ClassModel",
    "ClassModelSet",
    "EmissionError",
    "EmittedUnit",
    "GenerationFailure",
    "GenerationPlan",
    "GenerationReport",
    "GeneratorSettings",
    "HookMethod",
    "HookRole",
    "IncludedMember",
    "InclusionPolicy",
    "MalformedIdentifierError",
    "MemberCandidate",
    "MemberKind",
    "ModelError",
    "PythonEmitter",
    "ReleaseGenError",
    "ScanResult",
    "SourceError",
    "UnsupportedMemberError",
    "build_models",
    "build_models_from_source",
    "build_plan",
    "classify_members",
    "generate_all",
    "generate_unit",
    "get_settings",
    "load_models",
    "plan_generation",
    "synthesize",
]
