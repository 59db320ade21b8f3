import keyword
import logging
from dataclasses import dataclass

from release_gen.core.errors import MalformedIdentifierError, UnsupportedMemberError
from release_gen.models import ClassModel, InclusionPolicy, MemberCandidate, MemberKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncludedMember:
    names: tuple[str, ...]
    kind: MemberKind
    supports_async_release: bool


def validate_identifier(name: str, what: str) -> str:
    if not name.isidentifier() or keyword.iskeyword(name):
        raise MalformedIdentifierError(f"Malformed {what} identifier: {name!r}")
    return name


def _wants_inclusion(member: MemberCandidate, policy: InclusionPolicy) -> bool:
    # Exclusion wins over inclusion under both policies.
    if not member.declared_type_supports_sync_release or member.explicit_exclude:
        return False
    if member.explicit_include:
        return True
    # Opt-out reaches plain fields only; properties and class variables need an explicit include.
    return policy is InclusionPolicy.OPT_OUT and member.kind is MemberKind.FIELD


def classify_members(model: ClassModel, policy: InclusionPolicy | None = None) -> list[IncludedMember]:
    """Select the members of ``model`` that take part in cascading release.

    The result keeps declaration order, which is also the emitted call order.
    ``policy`` defaults to the one implied by the class-level marker.
    """
    resolved_policy = policy if policy is not None else model.policy
    included: list[IncludedMember] = []

    for member in model.candidate_members:
        label = ", ".join(member.names)
        if not _wants_inclusion(member, resolved_policy):
            logger.debug("%s: member %s not included", model.qualified_name, label)
            continue
        if member.kind is MemberKind.CLASS_VAR:
            raise UnsupportedMemberError(
                f"{model.qualified_name}: class variable {label} cannot take part in per-instance release"
            )
        if not member.settable:
            raise UnsupportedMemberError(
                f"{model.qualified_name}: {member.kind.value} {label} has no setter and cannot be cleared"
            )
        for name in member.names:
            validate_identifier(name, "member")

        included.append(
            IncludedMember(
                names=member.names,
                kind=member.kind,
                supports_async_release=member.declared_type_supports_async_release,
            )
        )
        logger.debug(
            "%s: member %s included (async=%s)",
            model.qualified_name,
            label,
            member.declared_type_supports_async_release,
        )

    return included
