"""Status command implementation."""

import structlog

from ztp.config.models import ZtpConfig
from ztp.core.manager import Manager

logger = structlog.get_logger()


def run_status() -> None:
    """Show the status of the last provisioning run."""
    logger.info("Checking provisioning status")

    # The record is read from the cache, so no configuration is needed
    manager = Manager(ZtpConfig())

    try:
        record = manager.status()
    except FileNotFoundError as e:
        print(f"Error: {e}")
        logger.error("No previous provisioning run found")
        return

    print(f"ztp status: {record['status'].value}")

    host = record.get("host") or {}
    if host:
        print(f"Host: {host.get('distro')} ({host.get('family')})")

    steps = record.get("steps") or {}
    if steps:
        print(f"Steps completed: {steps.get('completed')} of {steps.get('total')}")
    if record.get("failed_step"):
        print(f"Failed step: {record['failed_step']}")
