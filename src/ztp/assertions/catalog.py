"""The default provisioning catalog.

Order matters: repositories come before the packages they provide,
packages before their services and groups, tools before the commands that
use them.
"""

import re

from ztp.assertions.models import (
    Assertion,
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
)
from ztp.assertions.templates import (
    ALIAS_BLOCK,
    ALIAS_COMMANDS,
    ALIAS_MARKER,
    ANSIBLE_CFG,
    ANSIBLE_INVENTORY,
    CISCO_BACKUP_PLAYBOOK,
    DOCKER_APT_SOURCE,
    RAZER_BRIGHTNESS_SCRIPT,
    SCAN_NETWORK_SCRIPT,
    TERRAFORM_PROVIDERS,
)
from ztp.config.models import ZtpConfig
from ztp.host.models import Family

DEBIAN, REDHAT, ARCH = Family.DEBIAN, Family.REDHAT, Family.ARCH

BASE_PACKAGES = {
    DEBIAN: [
        "build-essential",
        "git",
        "curl",
        "wget",
        "nano",
        "vim",
        "net-tools",
        "htop",
        "tmux",
        "openssh-server",
        "python3",
        "python3-pip",
        "python3-venv",
        "jq",
        "unzip",
        "rsync",
        "tree",
        "software-properties-common",
        "apt-transport-https",
        "ca-certificates",
        "gnupg",
        "lsb-release",
    ],
    REDHAT: [
        "@development-tools",
        "git",
        "curl",
        "wget",
        "nano",
        "vim",
        "net-tools",
        "htop",
        "tmux",
        "openssh-server",
        "python3",
        "python3-pip",
        "jq",
        "unzip",
        "rsync",
        "tree",
        "dnf-plugins-core",
    ],
    ARCH: [
        "sudo",
        "nano",
        "vim",
        "net-tools",
        "git",
        "base-devel",
        "wget",
        "curl",
        "htop",
        "neofetch",
        "tmux",
        "openssh",
        "linux-headers",
        "python",
        "python-pip",
        "python-virtualenv",
        "jq",
        "unzip",
        "rsync",
        "tree",
    ],
}

CLI_UTILITIES = [
    "screen",
    "zsh",
    "fish",
    "bat",
    "ripgrep",
    "fd-find",
    "ncdu",
    "iotop",
    "sysstat",
    "dstat",
]

DOCKER_CE_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]

# Distributions download.docker.com publishes apt repositories for
DOCKER_APT_DISTROS = ("ubuntu", "debian")

# Other Debian derivatives install the runtime their own archive carries
DISTRO_DOCKER_PACKAGES = ["docker.io", "docker-compose"]

KDE_PACKAGES = [
    "plasma-systemmonitor",
    "kdeplasma-addons",
    "kdeconnect",
    "kate",
    "konsole",
    "dolphin-plugins",
    "filelight",
    "spectacle",
    "okular",
    "plasma-browser-integration",
]

NETWORK_TOOLS = {
    DEBIAN: [
        "nmap",
        "tcpdump",
        "traceroute",
        "dnsutils",
        "whois",
        "iproute2",
        "iputils-ping",
        "iperf3",
        "wireshark-common",
    ],
    REDHAT: [
        "nmap",
        "tcpdump",
        "traceroute",
        "bind-utils",
        "whois",
        "iproute",
        "iputils",
        "iperf3",
        "wireshark-cli",
    ],
    ARCH: [
        "nmap",
        "tcpdump",
        "wireshark-cli",
        "traceroute",
        "bind-tools",
        "whois",
        "iproute2",
        "iputils",
        "iperf3",
    ],
}

# file, groups, key, value
KDE_SETTINGS = [
    ("kcminputrc", ["Libinput", "touchpad"], "TapToClick", "true"),
    ("kcminputrc", ["Libinput", "touchpad"], "NaturalScroll", "true"),
    ("kcminputrc", ["Libinput", "pointer"], "PointerAcceleration", "2"),
    ("kdeglobals", ["General"], "ColorScheme", "BreezeDark"),
    ("plasmashellrc", ["BatteryMonitor"], "showPercentage", "true"),
    ("powermanagementprofilesrc", ["AC", "DimDisplay"], "idleTime", "600000"),
    ("powermanagementprofilesrc", ["Battery", "DimDisplay"], "idleTime", "300000"),
    ("kwinrc", ["Compositing"], "Enabled", "true"),
    ("kwinrc", ["Compositing"], "Backend", "OpenGL"),
    ("kwinrc", ["Compositing"], "GLCore", "true"),
    ("dolphinrc", ["General"], "ShowHiddenFiles", "true"),
    ("dolphinrc", ["PreviewSettings"], "Plugins", "imagethumbnail,jpegthumbnail"),
]

ANSIBLE_DIRS = ["inventory", "playbooks", "roles", "group_vars", "host_vars"]
TERRAFORM_DIRS = ["proxmox", "paloalto", "versa", "cisco"]
WORKSPACE_DIRS = ["scripts", "configs", "backups", "logs", "templates"]

TERRAFORM_URL = (
    "https://releases.hashicorp.com/terraform/@VERSION@/terraform_@VERSION@_linux_@ARCH@.zip"
)
TERRAFORM_DOCS_URL = (
    "https://github.com/terraform-docs/terraform-docs/releases/download/"
    "v@VERSION@/terraform-docs-v@VERSION@-linux-@ARCH@.tar.gz"
)

RAZER_CSTATE_HINT = (
    "If the screen blanks, add intel_idle.max_cstate=4 to GRUB_CMDLINE_LINUX_DEFAULT "
    "in /etc/default/grub, then run: sudo grub-mkconfig -o /boot/grub/grub.cfg"
)


def requirement_name(requirement: str) -> str:
    """Distribution name of a pip requirement such as 'napalm>=4' or 'nornir[all]'."""
    return re.split(r"[\s\[<>=!~;@]", requirement.strip(), maxsplit=1)[0]


def _base() -> list[Assertion]:
    return [
        SystemUpdate(id="system-update", description="Update the system"),
        PackagePresent(
            id="base-packages", description="Install essential packages", packages=BASE_PACKAGES
        ),
        PackagePresent(
            id="cli-utilities",
            description="Install command-line utilities",
            packages=CLI_UTILITIES,
            optional=True,
        ),
    ]


def _docker() -> list[Assertion]:
    return [
        DirectoryPresent(
            id="docker-keyrings",
            description="Create the apt keyrings directory",
            path="/etc/apt/keyrings",
            distros=DOCKER_APT_DISTROS,
        ),
        CommandRun(
            id="docker-key",
            description="Download the Docker repository key",
            argv=[
                "curl",
                "-fsSL",
                "-o",
                "/etc/apt/keyrings/docker.asc",
                "https://download.docker.com/linux/@DISTRO_ID@/gpg",
            ],
            creates="/etc/apt/keyrings/docker.asc",
            distros=DOCKER_APT_DISTROS,
        ),
        CommandRun(
            id="docker-key-dearmor",
            description="Convert the Docker key to a keyring",
            argv=[
                "gpg",
                "--batch",
                "--dearmor",
                "-o",
                "/etc/apt/keyrings/docker.gpg",
                "/etc/apt/keyrings/docker.asc",
            ],
            creates="/etc/apt/keyrings/docker.gpg",
            distros=DOCKER_APT_DISTROS,
        ),
        FileWithContent(
            id="docker-apt-source",
            description="Register the Docker apt source",
            path="/etc/apt/sources.list.d/docker.list",
            content=DOCKER_APT_SOURCE,
            distros=DOCKER_APT_DISTROS,
        ),
        CommandRun(
            id="docker-dnf-repository",
            description="Add the Docker dnf repository",
            argv={
                REDHAT: [
                    "dnf",
                    "config-manager",
                    "--add-repo",
                    "https://download.docker.com/linux/fedora/docker-ce.repo",
                ],
            },
            creates="/etc/yum.repos.d/docker-ce.repo",
            optional_families=(DEBIAN, ARCH),
        ),
        PackagePresent(
            id="container-runtime",
            description="Install the container runtime",
            packages={
                DEBIAN: DISTRO_DOCKER_PACKAGES,
                REDHAT: DOCKER_CE_PACKAGES,
                ARCH: ["docker", "docker-compose"],
            },
            distro_packages={distro: DOCKER_CE_PACKAGES for distro in DOCKER_APT_DISTROS},
            provided_by="docker",
            refresh=True,
        ),
    ]


def _desktop(config: ZtpConfig) -> list[Assertion]:
    assertions: list[Assertion] = [
        PackagePresent(
            id="kde-packages",
            description="Install KDE Plasma enhancements",
            packages={ARCH: KDE_PACKAGES},
            optional=True,
            optional_families=(DEBIAN, REDHAT),
            desktop_only=True,
        ),
    ]

    if config.hardware.razer:
        assertions.append(
            PackagePresent(
                id="razer-packages",
                description="Install OpenRazer",
                packages={ARCH: ["openrazer-meta"]},
                optional=True,
                optional_families=(DEBIAN, REDHAT),
            )
        )

    return assertions


def _services(config: ZtpConfig) -> list[Assertion]:
    assertions: list[Assertion] = [
        ServiceEnabled(id="docker-service", description="Enable Docker", service="docker"),
        ServiceEnabled(
            id="ssh-service",
            description="Enable the SSH server",
            service={DEBIAN: "ssh", REDHAT: "sshd", ARCH: "sshd"},
        ),
    ]

    if config.hardware.razer:
        assertions.append(
            ServiceEnabled(
                id="openrazer-service",
                description="Enable the OpenRazer daemon",
                service="openrazer-daemon",
                optional=True,
            )
        )

    return assertions


def _groups(config: ZtpConfig) -> list[Assertion]:
    assertions: list[Assertion] = [
        GroupMembership(
            id="docker-group", description="Add user to the docker group", group="docker"
        ),
    ]

    if config.hardware.razer:
        assertions += [
            GroupMembership(
                id="input-group",
                description="Add user to the input group",
                group="input",
                optional=True,
            ),
            GroupMembership(
                id="plugdev-group",
                description="Add user to the plugdev group",
                group="plugdev",
                optional=True,
            ),
        ]

    return assertions


def _kde_settings() -> list[Assertion]:
    # Applying the scheme also writes it to kdeglobals, which guards reruns
    assertions: list[Assertion] = [
        CommandRun(
            id="kde-color-scheme",
            description="Apply the Breeze Dark color scheme",
            argv=["plasma-apply-colorscheme", "BreezeDark"],
            as_user=True,
            unless=["grep", "-qs", "^ColorScheme=BreezeDark", "~/.config/kdeglobals"],
            requires=("plasma-apply-colorscheme",),
            optional=True,
            desktop_only=True,
        )
    ]
    for file, groups, key, value in KDE_SETTINGS:
        assertions.append(
            DesktopSetting(
                id=f"kde-{file}-{'-'.join(groups)}-{key}".lower(),
                description=f"Set {key} in {file}",
                file=file,
                groups=groups,
                key=key,
                value=value,
                optional=True,
            )
        )

    return assertions


def _shell(config: ZtpConfig) -> list[Assertion]:
    git = config.git
    assertions: list[Assertion] = [
        FileContains(
            id="bash-aliases",
            description="Add shell aliases to ~/.bashrc",
            path="~/.bashrc",
            marker=ALIAS_MARKER,
            block=ALIAS_BLOCK,
            substitutions=ALIAS_COMMANDS,
        ),
    ]

    # Identity is only managed when configured; there is no prompt
    for field, value in (("name", git.name), ("email", git.email)):
        if value:
            assertions.append(
                GitSetting(
                    id=f"git-user-{field}",
                    description=f"Set the git user {field}",
                    key=f"user.{field}",
                    value=value,
                    keep_existing=True,
                    optional=True,
                )
            )

    return assertions + [
        GitSetting(
            id="git-default-branch",
            description="Set the default git branch",
            key="init.defaultBranch",
            value=git.default_branch,
            optional=True,
        ),
        GitSetting(
            id="git-pull-rebase",
            description="Set the git pull strategy",
            key="pull.rebase",
            value="true" if git.pull_rebase else "false",
            optional=True,
        ),
    ]


def _razer() -> list[Assertion]:
    return [
        KernelParameter(
            id="razer-cstate",
            description="Check the screen blanking kernel parameter",
            parameter="intel_idle.max_cstate=4",
            hint=RAZER_CSTATE_HINT,
            optional=True,
        ),
        FileWithContent(
            id="razer-brightness-script",
            description="Create the keyboard brightness helper",
            path="~/razer-brightness.sh",
            content=RAZER_BRIGHTNESS_SCRIPT,
            mode=0o755,
            optional=True,
            follow_up="For fan control, consider razer-laptop-control from the AUR",
        ),
    ]


def _ansible(config: ZtpConfig) -> list[Assertion]:
    assertions: list[Assertion] = [
        CommandRun(
            id="ansible-ppa",
            description="Add the Ansible PPA",
            argv=["apt-add-repository", "--yes", "--update", "ppa:ansible/ansible"],
            unless=["grep", "-rqs", "ansible/ansible", "/etc/apt/sources.list.d"],
            requires=("apt-add-repository",),
            distros=("ubuntu",),
            optional=True,
        ),
        PackagePresent(
            id="ansible",
            description="Install Ansible",
            packages={DEBIAN: ["ansible"], REDHAT: ["ansible"], ARCH: ["ansible", "ansible-core"]},
        ),
    ]

    for collection in config.ansible.collections:
        namespace, _, name = collection.partition(".")
        assertions.append(
            CommandRun(
                id=f"ansible-collection-{collection}",
                description=f"Install the {collection} collection",
                argv=["ansible-galaxy", "collection", "install", collection],
                as_user=True,
                creates=f"~/.ansible/collections/ansible_collections/{namespace}/{name}",
                requires=("ansible-galaxy",),
                optional=True,
            )
        )

    if config.ansible.python_libraries:
        libraries = config.ansible.python_libraries
        pip = ["pip3", "install", "--user", *libraries]
        assertions.append(
            CommandRun(
                id="python-network-libraries",
                description="Install Python network automation libraries",
                argv={
                    DEBIAN: pip,
                    REDHAT: pip,
                    ARCH: ["pip", "install", "--user", "--break-system-packages", *pip[3:]],
                },
                as_user=True,
                # pip show fails when any of the distributions is missing
                unless=["python3", "-m", "pip", "show", *map(requirement_name, libraries)],
                optional=True,
            )
        )

    assertions += [
        FileWithContent(
            id="ansible-cfg",
            description="Write the Ansible configuration",
            path="~/.ansible/ansible.cfg",
            content=ANSIBLE_CFG,
        ),
        *[
            DirectoryPresent(
                id=f"ansible-dir-{name}",
                description=f"Create ~/ansible/{name}",
                path=f"~/ansible/{name}",
            )
            for name in ANSIBLE_DIRS
        ],
        FileWithContent(
            id="ansible-inventory",
            description="Create a sample inventory",
            path="~/ansible/inventory/hosts",
            content=ANSIBLE_INVENTORY,
            follow_up="Edit ~/ansible/inventory/hosts with your devices",
        ),
        FileWithContent(
            id="ansible-backup-playbook",
            description="Create a sample backup playbook",
            path="~/ansible/playbooks/cisco-backup.yml",
            content=CISCO_BACKUP_PLAYBOOK,
        ),
    ]
    return assertions


def _terraform(config: ZtpConfig) -> list[Assertion]:
    terraform = config.terraform
    assertions: list[Assertion] = [
        BinaryRelease(
            id="terraform",
            description="Install Terraform",
            binary="terraform",
            url=TERRAFORM_URL,
            version=terraform.version,
            repository="hashicorp/terraform",
            fallback_version=terraform.fallback_version,
            optional=True,
        ),
    ]

    if terraform.providers:
        assertions += [
            DirectoryPresent(
                id=f"terraform-dir-{name}",
                description=f"Create ~/terraform/{name}",
                path=f"~/terraform/{name}",
            )
            for name in TERRAFORM_DIRS
        ]
        for name, block in TERRAFORM_PROVIDERS.items():
            assertions += [
                FileWithContent(
                    id=f"terraform-providers-{name}",
                    description=f"Write the {name} provider block",
                    path=f"~/terraform/{name}/providers.tf",
                    content=block,
                ),
                CommandRun(
                    id=f"terraform-init-{name}",
                    description=f"Initialize the {name} providers",
                    argv=["terraform", "init", "-upgrade"],
                    as_user=True,
                    cwd=f"~/terraform/{name}",
                    creates=f"~/terraform/{name}/.terraform",
                    requires=("terraform",),
                    optional=True,
                ),
            ]

    assertions.append(
        BinaryRelease(
            id="terraform-docs",
            description="Install terraform-docs",
            binary="terraform-docs",
            url=TERRAFORM_DOCS_URL,
            version=terraform.docs_version,
            optional=True,
        )
    )
    return assertions


def _network(config: ZtpConfig) -> list[Assertion]:
    assertions: list[Assertion] = [
        PackagePresent(
            id="network-tools", description="Install network utilities", packages=NETWORK_TOOLS
        ),
        *[
            DirectoryPresent(
                id=f"workspace-{name}",
                description=f"Create ~/network-automation/{name}",
                path=f"~/network-automation/{name}",
            )
            for name in WORKSPACE_DIRS
        ],
        FileWithContent(
            id="scan-network-script",
            description="Create the network scan helper",
            path="~/network-automation/scripts/scan-network.sh",
            content=SCAN_NETWORK_SCRIPT,
            mode=0o755,
            optional=True,
        ),
    ]

    if config.extra_packages:
        assertions.append(
            PackagePresent(
                id="extra-packages",
                description="Install extra packages",
                packages=config.extra_packages,
                optional=True,
            )
        )

    return assertions


def default_catalog(config: ZtpConfig) -> list[Assertion]:
    """Build the default catalog followed by the configured assertions.

    Args:
        config: Configuration deciding optional sections and values

    Returns:
        Assertions in execution order
    """
    catalog: list[Assertion] = [
        *_base(),
        *_docker(),
        *_desktop(config),
        *_services(config),
        *_groups(config),
        *_kde_settings(),
        *_shell(config),
    ]

    if config.hardware.razer:
        catalog += _razer()

    catalog += _ansible(config)
    catalog += _terraform(config)
    catalog += _network(config)
    catalog += config.assertions
    return catalog
