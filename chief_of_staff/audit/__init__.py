from .compaction import (
    LogLimits,
    LogWrite,
    build_log,
    extract_correlation_tokens,
    simplify_verbose_entries,
)
from .interaction_log import AuditLogManager

__all__ = [
    "LogLimits",
    "LogWrite",
    "build_log",
    "extract_correlation_tokens",
    "simplify_verbose_entries",
    "AuditLogManager",
]
