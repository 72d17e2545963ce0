"""Payloads written to the host and the literal placeholder substitution they use.

The engine never interprets these texts. Placeholders are replaced with
plain string replacement, so no value can be evaluated by a shell on the
way in.
"""

import re
from collections.abc import Mapping

from ztp.host.models import Family

ALIAS_MARKER = "ZTP Custom Aliases"

ALIAS_BLOCK = """
# ═══════════════════════════════════════════════════════════
# ZTP Custom Aliases
# ═══════════════════════════════════════════════════════════

# System management
alias ll='ls -lah --color=auto'
alias update='UPDATE_CMD'
alias search='SEARCH_CMD'
alias install='INSTALL_CMD'
alias remove='REMOVE_CMD'
alias cleanup='CLEANUP_CMD'

# Docker shortcuts
alias docker-clean='docker system prune -af'
alias docker-stop-all='docker stop $(docker ps -aq)'
alias docker-rm-all='docker rm $(docker ps -aq)'
alias dps='docker ps'
alias dim='docker images'

# Git shortcuts
alias gs='git status'
alias ga='git add'
alias gc='git commit -m'
alias gp='git push'
alias gl='git log --oneline --graph --decorate'

# Ansible shortcuts
alias ap='ansible-playbook'
alias aping='ansible all -m ping'
alias ainv='ansible-inventory --list'
alias aplay='cd ~/ansible/playbooks'

# Terraform shortcuts
alias tf='terraform'
alias tfi='terraform init'
alias tfp='terraform plan'
alias tfa='terraform apply'
alias tfd='terraform destroy'
alias tfv='terraform validate'
alias tff='terraform fmt'

# Network automation
alias netauto='cd ~/network-automation'
alias ansibledir='cd ~/ansible'
alias tfdir='cd ~/terraform'

# Network tools
alias ports='sudo netstat -tulanp'
alias myip='curl -s https://api.ipify.org && echo'
alias netdiscover='sudo nmap -sn'

# System info
alias sysinfo='neofetch 2>/dev/null || fastfetch 2>/dev/null || uname -a'
alias temp='sensors 2>/dev/null || echo "Install lm-sensors for temperature readings"'

# Paths
export PATH="$HOME/.local/bin:$PATH"

# Editor
export EDITOR=nano
export VISUAL=nano
"""

ALIAS_COMMANDS: dict[Family, dict[str, str]] = {
    Family.DEBIAN: {
        "UPDATE_CMD": "sudo apt update && sudo apt upgrade -y",
        "SEARCH_CMD": "apt search",
        "INSTALL_CMD": "sudo apt install",
        "REMOVE_CMD": "sudo apt remove",
        "CLEANUP_CMD": "sudo apt autoremove -y && sudo apt autoclean",
    },
    Family.REDHAT: {
        "UPDATE_CMD": "sudo dnf update -y",
        "SEARCH_CMD": "dnf search",
        "INSTALL_CMD": "sudo dnf install",
        "REMOVE_CMD": "sudo dnf remove",
        "CLEANUP_CMD": "sudo dnf autoremove -y && sudo dnf clean all",
    },
    Family.ARCH: {
        "UPDATE_CMD": "sudo pacman -Syu",
        "SEARCH_CMD": "pacman -Ss",
        "INSTALL_CMD": "sudo pacman -S",
        "REMOVE_CMD": "sudo pacman -Rns",
        "CLEANUP_CMD": "sudo pacman -Sc --noconfirm",
    },
}

DOCKER_APT_SOURCE = (
    "deb [arch=@ARCH@ signed-by=/etc/apt/keyrings/docker.gpg] "
    "https://download.docker.com/linux/@DISTRO_ID@ @CODENAME@ stable\n"
)

ANSIBLE_CFG = """[defaults]
inventory = ~/ansible/inventory
host_key_checking = False
retry_files_enabled = False
gathering = smart
fact_caching = jsonfile
fact_caching_connection = /tmp/ansible_facts
fact_caching_timeout = 86400
stdout_callback = yaml
bin_ansible_callbacks = True

[inventory]
enable_plugins = host_list, script, auto, yaml, ini, toml

[privilege_escalation]
become = True
become_method = sudo
become_user = root
become_ask_pass = False
"""

ANSIBLE_INVENTORY = """[all:vars]
ansible_connection=network_cli
ansible_network_os=ios
ansible_user=admin
ansible_ssh_pass=password
ansible_become=yes
ansible_become_method=enable

[cisco_routers]
# Add your Cisco routers here
# router1 ansible_host=192.168.1.1

[cisco_switches]
# Add your Cisco switches here
# switch1 ansible_host=192.168.1.2

[palo_alto]
# Add your Palo Alto firewalls here
# fw1 ansible_host=192.168.1.3
# ansible_connection=local
# ansible_network_os=panos

[proxmox]
# Add your Proxmox hosts here
# pve1 ansible_host=192.168.1.4

[versa]
# Add your Versa Networks devices here
# versa1 ansible_host=192.168.1.5
"""

CISCO_BACKUP_PLAYBOOK = """---
- name: Backup Cisco Device Configurations
  hosts: cisco_routers,cisco_switches
  gather_facts: no

  tasks:
    - name: Backup running configuration
      cisco.ios.ios_config:
        backup: yes
        backup_options:
          filename: "{{ inventory_hostname }}_{{ ansible_date_time.date }}.cfg"
          dir_path: @HOME@/network-automation/backups/

    - name: Save configuration
      cisco.ios.ios_command:
        commands:
          - write memory
"""

TERRAFORM_PROVIDERS: dict[str, str] = {
    "proxmox": """terraform {
  required_providers {
    proxmox = {
      source = "telmate/proxmox"
      version = "~> 2.9"
    }
  }
}
""",
    "paloalto": """terraform {
  required_providers {
    panos = {
      source = "PaloAltoNetworks/panos"
      version = "~> 1.11"
    }
  }
}
""",
    "cisco": """terraform {
  required_providers {
    iosxe = {
      source = "CiscoDevNet/iosxe"
      version = "~> 0.5"
    }
  }
}
""",
}

SCAN_NETWORK_SCRIPT = """#!/bin/bash
# Quick network scanner
echo "Scanning network..."
echo "Usage: ./scan-network.sh 192.168.1.0/24"
nmap -sn ${1:-192.168.1.0/24}
"""

RAZER_BRIGHTNESS_SCRIPT = """#!/bin/bash
# Razer Keyboard Brightness Control
case "$1" in
    up)
        echo "Brightness up not yet implemented"
        ;;
    down)
        echo "Brightness down not yet implemented"
        ;;
    *)
        echo "Usage: $0 {up|down}"
        ;;
esac
"""


def render(text: str, substitutions: Mapping[str, str]) -> str:
    """Replace each placeholder with its value, as literal text.

    All placeholders are replaced in a single pass, longest first, so a
    replacement value is never scanned for further placeholders.

    Args:
        text: Template text
        substitutions: Placeholder to replacement value

    Returns:
        Rendered text
    """
    if not substitutions:
        return text

    tokens = sorted(substitutions, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(token) for token in tokens))
    return pattern.sub(lambda match: substitutions[match.group(0)], text)
