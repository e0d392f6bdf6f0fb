"""
Google Sheets record store.

Uses native gspread API (6.x). Each collection lives on its own worksheet
whose first row holds the column headers; records are dicts keyed by those
headers. Columns a caller writes that the sheet does not have are ignored,
matching how the sheet has always been edited by hand.
"""

import asyncio
import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import gspread
from google.oauth2.service_account import Credentials

from config.settings import settings
from ..store.base import Collection, Predicate, Record, RecordStore, key_field, normalize_key
from ..store.exceptions import DuplicateRecordError, StoreConnectionError, StoreOperationError
from ..utils.retry import with_google_api_retry

logger = logging.getLogger(__name__)


def _to_cell(value: Any) -> Any:
    """Serialize a Python value the way the sheet expects it."""
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if hasattr(value, "value"):  # Enum members
        return value.value
    return value


class GoogleSheetsRecordStore(RecordStore):
    """Record store over one Google spreadsheet."""

    SCOPES = [
        "https://www.googleapis.com/auth/spreadsheets",
        "https://www.googleapis.com/auth/drive"
    ]

    def __init__(
        self,
        credentials_json: Optional[str] = None,
        sheet_id: Optional[str] = None,
        sheet_names: Optional[Dict[Collection, str]] = None,
    ):
        super().__init__()
        self.credentials_json = credentials_json if credentials_json is not None else settings.google_credentials_json
        self.sheet_id = sheet_id if sheet_id is not None else settings.google_sheet_id
        self.sheet_names = sheet_names or {
            Collection.TASKS: settings.sheet_tasks,
            Collection.STAFF: settings.sheet_staff,
            Collection.PROJECTS: settings.sheet_projects,
            Collection.WORKFLOWS: settings.sheet_workflows,
            Collection.SCHEDULED_ACTIONS: settings.sheet_scheduled_actions,
            Collection.ERROR_LOG: settings.sheet_error_log,
        }
        self.client: Optional[gspread.Client] = None
        self.spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: Dict[Collection, gspread.Worksheet] = {}
        self._initialized = False

    async def initialize(self) -> bool:
        """Initialize the Google Sheets client."""
        if self._initialized:
            return True

        try:
            if not self.credentials_json:
                logger.error("No Google credentials configured")
                return False

            creds_data = json.loads(self.credentials_json)
            credentials = Credentials.from_service_account_info(
                creds_data,
                scopes=self.SCOPES
            )

            self.client = gspread.authorize(credentials)
            self.spreadsheet = await asyncio.to_thread(self.client.open_by_key, self.sheet_id)

            self._initialized = True
            logger.info(f"Google Sheets connected: {self.spreadsheet.title}")
            return True

        except Exception as e:
            logger.error(f"Failed to initialize Google Sheets: {e}")
            return False

    async def _worksheet(self, collection: Collection) -> gspread.Worksheet:
        collection = Collection(collection)
        if not await self.initialize():
            raise StoreConnectionError("Google Sheets is not available")

        if collection not in self._worksheets:
            name = self.sheet_names[collection]
            try:
                self._worksheets[collection] = await asyncio.to_thread(self.spreadsheet.worksheet, name)
            except gspread.exceptions.WorksheetNotFound as e:
                raise StoreOperationError(f'Sheet "{name}" not found in spreadsheet') from e
        return self._worksheets[collection]

    async def _read(self, collection: Collection) -> Tuple[gspread.Worksheet, List[str], List[Record]]:
        """Headers plus all data rows as records."""
        worksheet = await self._worksheet(collection)
        values = await asyncio.to_thread(worksheet.get_all_values)
        if not values:
            return worksheet, [], []

        headers = [str(h).strip() for h in values[0]]
        records = []
        for row in values[1:]:
            padded = list(row) + [""] * (len(headers) - len(row))
            records.append(dict(zip(headers, padded)))
        return worksheet, headers, records

    @staticmethod
    def _row_index(collection: Collection, records: List[Record], key: Any) -> Optional[int]:
        field = key_field(collection)
        if field is None:
            raise StoreOperationError(f"Collection {Collection(collection).value} has no key field")
        wanted = normalize_key(collection, key)
        if not wanted:
            return None
        for index, record in enumerate(records):
            if normalize_key(collection, record.get(field)) == wanted:
                return index
        return None

    @with_google_api_retry
    async def get_by_key(self, collection: Collection, key: Any) -> Optional[Record]:
        _, _, records = await self._read(collection)
        index = self._row_index(collection, records, key)
        return records[index] if index is not None else None

    @with_google_api_retry
    async def find(self, collection: Collection, predicate: Predicate) -> List[Record]:
        _, _, records = await self._read(collection)
        return [record for record in records if predicate(record)]

    @with_google_api_retry
    async def update_by_key(self, collection: Collection, key: Any, fields: Record) -> bool:
        """Write only the named cells of the matching row."""
        worksheet, headers, records = await self._read(collection)
        index = self._row_index(collection, records, key)
        if index is None:
            logger.warning(f"{Collection(collection).value} record {key} not found for update")
            return False

        row_num = index + 2  # header row + 1-based rows
        cells = []
        for name, value in fields.items():
            if name not in headers:
                logger.debug(f"Skipping unknown column {name} on {Collection(collection).value}")
                continue
            cells.append(gspread.Cell(row_num, headers.index(name) + 1, _to_cell(value)))

        if cells:
            await asyncio.to_thread(worksheet.update_cells, cells, value_input_option="USER_ENTERED")
        return True

    @with_google_api_retry
    async def append(self, collection: Collection, record: Record) -> int:
        worksheet, headers, records = await self._read(collection)
        if not headers:
            raise StoreOperationError(f"Sheet for {Collection(collection).value} has no header row")

        field = key_field(collection)
        if field is not None and self._row_index(collection, records, record.get(field)) is not None:
            raise DuplicateRecordError(f"{Collection(collection).value} record {record.get(field)} already exists")

        row = [_to_cell(record.get(header, "")) for header in headers]
        await asyncio.to_thread(worksheet.append_row, row, value_input_option="USER_ENTERED")

        row_num = len(records) + 2
        logger.info(f"Appended {Collection(collection).value} row {row_num}")
        return row_num


# Singleton instance
_sheets_store: Optional[GoogleSheetsRecordStore] = None


def get_sheets_store() -> GoogleSheetsRecordStore:
    """Get the Google Sheets record store singleton."""
    global _sheets_store
    if _sheets_store is None:
        _sheets_store = GoogleSheetsRecordStore()
    return _sheets_store
