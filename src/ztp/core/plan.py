"""Plan builder: resolve a catalog of assertions for one host."""

from dataclasses import dataclass, field
from typing import Any, TypeVar

from ztp.assertions.models import (
    Assertion,
    AssertionBase,
    BinaryRelease,
    CommandRun,
    DesktopSetting,
    DirectoryPresent,
    FileContains,
    FileWithContent,
    GitSetting,
    GroupMembership,
    KernelParameter,
    PackagePresent,
    ServiceEnabled,
    SystemUpdate,
    duplicate_ids,
)
from ztp.assertions.templates import render
from ztp.core.logging import get_logger
from ztp.host.models import Family, HostProfile

logger = get_logger(__name__)


class BuildError(Exception):
    """Raised when a catalog cannot be resolved for a host."""


@dataclass(frozen=True)
class PlanStep:
    """One assertion resolved for a host, ready to execute.

    Attributes:
        index: 1-based position in the plan
        assertion: The assertion this step brings about
        params: Parameters resolved for the host's family
    """

    index: int
    assertion: AssertionBase
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.assertion.id

    @property
    def kind(self) -> str:
        return self.assertion.kind  # type: ignore[attr-defined]

    @property
    def optional(self) -> bool:
        return self.assertion.optional

    @property
    def description(self) -> str:
        return self.assertion.description or self.assertion.id


def host_tokens(profile: HostProfile) -> dict[str, str]:
    """Placeholders every payload and path may use."""
    return {
        "@DISTRO_ID@": profile.distro_id,
        "@CODENAME@": profile.codename,
        "@ARCH@": profile.architecture,
        "@USER@": profile.user,
        "@HOME@": str(profile.home),
    }


def expand_path(path: str, profile: HostProfile) -> str:
    """Expand a leading '~' to the profile's home and replace host tokens."""
    if path == "~" or path.startswith("~/"):
        path = str(profile.home) + path[1:]
    return render(path, host_tokens(profile))


T = TypeVar("T")


def _for_family(value: T | dict[Family, T], family: Family) -> T | None:
    if isinstance(value, dict):
        return value.get(family)
    return value


def _texts(assertion: FileContains | FileWithContent, profile: HostProfile) -> dict[str, str]:
    # Family substitutions win over host tokens of the same name
    return {**host_tokens(profile), **assertion.substitutions.get(profile.family, {})}


def resolve(assertion: AssertionBase, profile: HostProfile) -> dict[str, Any] | None:
    """Resolve the family-specific parameters of an assertion.

    Returns:
        The parameters, or None when the assertion has nothing to do for
        the profile's family
    """
    match assertion:
        case SystemUpdate():
            return {}
        case PackagePresent():
            packages = assertion.distro_packages.get(profile.distro_id) or _for_family(
                assertion.packages, profile.family
            )
            if not packages:
                return None
            return {
                "packages": list(packages),
                "provided_by": assertion.provided_by,
                "refresh": assertion.refresh,
            }
        case ServiceEnabled():
            service = _for_family(assertion.service, profile.family)
            if not service:
                return None
            return {"service": service, "start": assertion.start}
        case GroupMembership():
            return {"group": assertion.group, "user": assertion.user or profile.user}
        case FileContains():
            return {
                "path": expand_path(assertion.path, profile),
                "marker": assertion.marker,
                "block": render(assertion.block, _texts(assertion, profile)),
                "backup": assertion.backup,
            }
        case FileWithContent():
            return {
                "path": expand_path(assertion.path, profile),
                "content": render(assertion.content, _texts(assertion, profile)),
                "mode": assertion.mode,
            }
        case DirectoryPresent():
            return {"path": expand_path(assertion.path, profile), "mode": assertion.mode}
        case CommandRun():
            argv = _for_family(assertion.argv, profile.family)
            if not argv:
                return None
            return {
                "argv": [expand_path(arg, profile) for arg in argv],
                "as_user": assertion.as_user,
                "cwd": expand_path(assertion.cwd, profile) if assertion.cwd else "",
                "creates": expand_path(assertion.creates, profile) if assertion.creates else "",
                "unless": [expand_path(arg, profile) for arg in assertion.unless],
                "requires": list(assertion.requires),
            }
        case GitSetting():
            return {
                "key": assertion.key,
                "value": assertion.value,
                "keep_existing": assertion.keep_existing,
            }
        case DesktopSetting():
            return {
                "file": assertion.file,
                "groups": list(assertion.groups),
                "key": assertion.key,
                "value": assertion.value,
            }
        case BinaryRelease():
            return {
                "binary": assertion.binary,
                "url": render(assertion.url, host_tokens(profile)),
                "version": assertion.version,
                "repository": assertion.repository,
                "fallback_version": assertion.fallback_version,
                "dest": expand_path(assertion.dest, profile),
            }
        case KernelParameter():
            return {"parameter": assertion.parameter, "hint": assertion.hint}

    raise BuildError(f"Unknown assertion kind for '{assertion.id}'")


def _applies(assertion: AssertionBase, profile: HostProfile) -> bool:
    if assertion.desktop_only and not profile.desktop:
        return False
    if assertion.distros and profile.distro_id not in assertion.distros:
        return False
    return True


def build_plan(catalog: list[Assertion], profile: HostProfile) -> list[PlanStep]:
    """Resolve a catalog into an ordered plan for a host.

    Catalog order is kept. Assertions that do not apply to the host
    (desktop-only on a server, restricted to other distributions) are left
    out, as are assertions with no parameters for a family listed in their
    optional_families.

    Args:
        catalog: Ordered assertions
        profile: Host to resolve for

    Returns:
        Plan steps numbered from 1

    Raises:
        BuildError: If ids are duplicated or an assertion cannot be resolved
            for the host's family
    """
    duplicates = duplicate_ids(catalog)
    if duplicates:
        raise BuildError(f"Duplicate assertion ids: {', '.join(duplicates)}")

    steps: list[PlanStep] = []
    for assertion in catalog:
        if not _applies(assertion, profile):
            logger.debug("Assertion does not apply to host", assertion=assertion.id)
            continue

        params = resolve(assertion, profile)
        if params is None:
            if profile.family in assertion.optional_families:
                logger.debug(
                    "Assertion dropped for family",
                    assertion=assertion.id,
                    family=profile.family.value,
                )
                continue
            raise BuildError(
                f"Assertion '{assertion.id}' has no parameters for the "
                f"{profile.family.value} family"
            )

        steps.append(PlanStep(index=len(steps) + 1, assertion=assertion, params=params))

    logger.debug("Built plan", steps=len(steps), host=profile.label)
    return steps
