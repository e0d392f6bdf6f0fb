"""Integrations with external collaborators (Google Sheets, messaging)."""

from .messaging import Messenger, LoggingMessenger
from .sheets import GoogleSheetsRecordStore, get_sheets_store

__all__ = [
    "Messenger",
    "LoggingMessenger",
    "GoogleSheetsRecordStore",
    "get_sheets_store",
]
