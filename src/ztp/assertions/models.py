"""Declarative desired-state assertions.

Assertions are pure data. Each one names a piece of state the host should
end up in; the plan builder resolves it for a host profile and a step
handler brings it about. Parameters that differ between distribution
families are given as a table keyed by family, for example::

    PackagePresent(
        id="ssh-server",
        packages={"debian": ["openssh-server"], "arch": ["openssh"]},
        optional_families=["redhat"],
    )
"""

from collections import Counter
from collections.abc import Iterable
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from ztp.host.models import Family


class AssertionBase(BaseModel):
    """Fields shared by every assertion kind.

    Attributes:
        id: Identity of the assertion, unique within a catalog
        description: Human readable summary for plans and reports
        optional: Whether a failure is recoverable (the run continues)
        optional_families: Families for which the assertion may be dropped
            when it has no parameters
        desktop_only: Only applies to hosts with a desktop environment
        distros: Only applies to these distribution ids (empty = all)
        follow_up: Manual action to report once the assertion is applied
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    description: str = ""
    optional: bool = False
    optional_families: tuple[Family, ...] = ()
    desktop_only: bool = False
    distros: tuple[str, ...] = ()
    follow_up: str = ""


class SystemUpdate(AssertionBase):
    """Package metadata refreshed and installed packages upgraded."""

    kind: Literal["system_update"] = "system_update"


class PackagePresent(AssertionBase):
    """Packages installed.

    Attributes:
        packages: Package names, or a table of names per family
        distro_packages: Names for specific distribution ids, used instead
            of the family entry
        provided_by: Executable whose presence on PATH means the packages
            are not needed, for software installed by other means
        refresh: Refresh package metadata before installing
    """

    kind: Literal["package"] = "package"
    packages: tuple[str, ...] | dict[Family, tuple[str, ...]]
    distro_packages: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    provided_by: str = ""
    refresh: bool = False


class ServiceEnabled(AssertionBase):
    """Service enabled at boot and, unless start is false, running."""

    kind: Literal["service"] = "service"
    service: str | dict[Family, str]
    start: bool = True


class GroupMembership(AssertionBase):
    """User belongs to a supplementary group. An empty user means the invoking user."""

    kind: Literal["group"] = "group"
    group: str = Field(min_length=1)
    user: str = ""


class FileContains(AssertionBase):
    """A marker-guarded block appended once to a file."""

    kind: Literal["file_contains"] = "file_contains"
    path: str = Field(min_length=1)
    marker: str = Field(min_length=1)
    block: str
    substitutions: dict[Family, dict[str, str]] = Field(default_factory=dict)
    backup: bool = True

    @model_validator(mode="after")
    def _marker_in_block(self) -> "FileContains":
        if self.marker not in self.block:
            raise ValueError(f"marker '{self.marker}' must appear in the block it guards")
        return self


class FileWithContent(AssertionBase):
    """A file created with the given content if it does not exist."""

    kind: Literal["file"] = "file"
    path: str = Field(min_length=1)
    content: str
    mode: int = Field(0o644, ge=0, le=0o7777)
    substitutions: dict[Family, dict[str, str]] = Field(default_factory=dict)


class DirectoryPresent(AssertionBase):
    """A directory (and its parents) exists."""

    kind: Literal["directory"] = "directory"
    path: str = Field(min_length=1)
    mode: int = Field(0o755, ge=0, le=0o7777)


class CommandRun(AssertionBase):
    """An opaque command, guarded by a path or a probe command when possible.

    Attributes:
        argv: Argument vector, or a table of vectors per family
        as_user: Run as the invoking user instead of root
        cwd: Working directory
        creates: Path whose existence means the command already ran
        unless: Probe command whose success means the command is not needed
        requires: Executables that must be on PATH, otherwise the step is skipped
    """

    kind: Literal["command"] = "command"
    argv: tuple[str, ...] | dict[Family, tuple[str, ...]]
    as_user: bool = False
    cwd: str = ""
    creates: str = ""
    unless: tuple[str, ...] = ()
    requires: tuple[str, ...] = ()


class GitSetting(AssertionBase):
    """A global git configuration value for the invoking user.

    keep_existing leaves any value the user already configured alone.
    """

    kind: Literal["git_config"] = "git_config"
    key: str = Field(min_length=1)
    value: str = Field(min_length=1)
    keep_existing: bool = False


class DesktopSetting(AssertionBase):
    """A KDE configuration key written with kwriteconfig."""

    kind: Literal["desktop_setting"] = "desktop_setting"
    file: str = Field(min_length=1)
    groups: tuple[str, ...] = Field(min_length=1)
    key: str = Field(min_length=1)
    value: str
    desktop_only: bool = True


class BinaryRelease(AssertionBase):
    """A single binary installed from a release archive.

    The url may contain @VERSION@ and @ARCH@. A version of 'latest' is looked
    up from the repository's releases, falling back to fallback_version.
    """

    kind: Literal["binary_release"] = "binary_release"
    binary: str = Field(min_length=1)
    url: str = Field(min_length=1)
    version: str = "latest"
    repository: str = ""
    fallback_version: str = ""
    dest: str = "/usr/local/bin"

    @model_validator(mode="after")
    def _latest_needs_repository(self) -> "BinaryRelease":
        if self.version == "latest" and not self.repository:
            raise ValueError("version 'latest' requires a repository to look it up")
        return self


class KernelParameter(AssertionBase):
    """Advisory check that a kernel command-line parameter is set.

    The engine never edits the boot loader; when the parameter is missing
    the step is skipped and the hint is reported as a follow-up.
    """

    kind: Literal["kernel_parameter"] = "kernel_parameter"
    parameter: str = Field(min_length=1)
    hint: str = ""


Assertion = Annotated[
    SystemUpdate
    | PackagePresent
    | ServiceEnabled
    | GroupMembership
    | FileContains
    | FileWithContent
    | DirectoryPresent
    | CommandRun
    | GitSetting
    | DesktopSetting
    | BinaryRelease
    | KernelParameter,
    Field(discriminator="kind"),
]

CATALOG_ADAPTER: TypeAdapter[list[Assertion]] = TypeAdapter(list[Assertion])


def duplicate_ids(assertions: Iterable[AssertionBase]) -> list[str]:
    """Return assertion ids that occur more than once, in first-seen order."""
    counts = Counter(a.id for a in assertions)
    return [assertion_id for assertion_id, n in counts.items() if n > 1]
