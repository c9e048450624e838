"""Audit logging package."""

from pocketbank.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
