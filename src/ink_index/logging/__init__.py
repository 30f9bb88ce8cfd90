"""Request audit and index event logging."""

from .audit import AuditEvent, IndexEvent, JsonlLog, sanitize_arguments, utc_timestamp

__all__ = ["AuditEvent", "IndexEvent", "JsonlLog", "sanitize_arguments", "utc_timestamp"]
