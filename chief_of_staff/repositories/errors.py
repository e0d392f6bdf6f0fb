"""
Error log repository.

Append-only diagnostics sink on the Error_Log sheet. Writing here must never
break the operation that hit the error, so failures are only logged.
"""

import logging
from enum import Enum
from typing import Optional

from ..store.base import Collection, RecordStore
from ..utils.datetime_utils import now_iso

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    """Categories used on the Error_Log sheet."""
    API_ERROR = "API_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    DATA_ERROR = "DATA_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    QUOTA_ERROR = "QUOTA_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ErrorLogRepository:
    """Repository for the Error_Log collection."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def log_error(
        self,
        error_type: ErrorType,
        function_name: str,
        message: str,
        task_id: Optional[str] = None,
        stack_trace: Optional[str] = None,
    ) -> bool:
        """Append an error row. Returns False instead of raising."""
        try:
            await self.store.append(Collection.ERROR_LOG, {
                "Timestamp": now_iso(),
                "Error_Type": ErrorType(error_type).value,
                "Function_Name": function_name,
                "Error_Message": message,
                "Task_ID": task_id or "",
                "Stack_Trace": stack_trace or "",
                "Resolved": False,
                "Resolution_Notes": "",
            })
            return True
        except Exception as e:
            logger.error(f"Failed to log error: {e}")
            return False
