"""
SiteAudit package initializer.
Defines package version and exposes the audit API and the CLI.
"""
__version__ = "0.1.0"

from site_audit.config import AuditConfig, load_config
from site_audit.engine import AuditEngine, start_audit
from site_audit.models import PageResultBundle, SiteReport

# Expose CLI entry point
from site_audit.cli import cli as main_cli

__all__ = [
    "__version__",
    "AuditConfig",
    "AuditEngine",
    "PageResultBundle",
    "SiteReport",
    "load_config",
    "main_cli",
    "start_audit",
]
