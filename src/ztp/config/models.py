"""Configuration models for ztp using Pydantic."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from ztp.assertions.models import Assertion, duplicate_ids


class Status(str, Enum):
    """Status of the last provisioning run on a machine."""

    PROVISIONING = "provisioning"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ProfileKind(str, Enum):
    """Which kind of host to provision for."""

    AUTO = "auto"
    DESKTOP = "desktop"
    SERVER = "server"


class ConfigOverrides(BaseModel):
    """CLI flag and environment variable overrides for configuration."""

    profile: ProfileKind | None = None
    git_name: str = ""
    git_email: str = ""
    terraform_version: str = ""
    razer: bool = False
    extra_packages: list[str] = Field(default_factory=list)


class GitIdentityConfig(BaseModel):
    """Global git identity for the provisioned user."""

    model_config = {"populate_by_name": True}

    name: str = ""
    email: str = ""
    default_branch: str = Field("main", min_length=1, alias="default-branch")
    pull_rebase: bool = Field(False, alias="pull-rebase")


class TerraformConfig(BaseModel):
    """Terraform and terraform-docs installation."""

    model_config = {"populate_by_name": True}

    version: str = "latest"
    fallback_version: str = Field("1.9.5", alias="fallback-version")
    providers: bool = True
    docs_version: str = Field("0.17.0", alias="docs-version")


DEFAULT_COLLECTIONS = [
    "cisco.ios",
    "cisco.iosxr",
    "cisco.nxos",
    "cisco.asa",
    "community.general",
    "ansible.netcommon",
]

DEFAULT_PYTHON_LIBRARIES = [
    "netmiko",
    "paramiko",
    "jinja2",
    "pyyaml",
    "requests",
    "xmltodict",
    "textfsm",
    "ntc-templates",
    "napalm",
    "nornir",
    "nornir-napalm",
    "nornir-netmiko",
    "netaddr",
    "ciscoconfparse",
    "ttp",
    "pysnmp",
    "pexpect",
]


class AnsibleConfig(BaseModel):
    """Ansible collections and Python network libraries."""

    model_config = {"populate_by_name": True}

    collections: list[str] = Field(default_factory=lambda: DEFAULT_COLLECTIONS.copy())
    python_libraries: list[str] = Field(
        default_factory=lambda: DEFAULT_PYTHON_LIBRARIES.copy(), alias="python-libraries"
    )


class HardwareConfig(BaseModel):
    """Hardware-specific extras."""

    razer: bool = False


class ZtpConfig(BaseModel):
    """Main configuration for ztp."""

    model_config = {"populate_by_name": True}

    profile: ProfileKind = ProfileKind.AUTO
    git: GitIdentityConfig = Field(default_factory=GitIdentityConfig)
    terraform: TerraformConfig = Field(default_factory=TerraformConfig)
    ansible: AnsibleConfig = Field(default_factory=AnsibleConfig)
    hardware: HardwareConfig = Field(default_factory=HardwareConfig)
    extra_packages: list[str] = Field(default_factory=list, alias="extra-packages")
    assertions: list[Assertion] = Field(default_factory=list)

    # Runtime fields
    overrides: ConfigOverrides = Field(default_factory=ConfigOverrides)
    status: Status = Status.PROVISIONING
    verbose: bool = False
    trace: bool = False

    @field_validator("assertions")
    @classmethod
    def _unique_assertion_ids(cls, assertions: list[Assertion]) -> list[Assertion]:
        duplicates = duplicate_ids(assertions)
        if duplicates:
            raise ValueError(f"duplicate assertion ids: {', '.join(duplicates)}")
        return assertions

    @property
    def desktop(self) -> bool | None:
        """The desktop flag to force on the probe, or None to auto-detect."""
        if self.profile == ProfileKind.AUTO:
            return None
        return self.profile == ProfileKind.DESKTOP
