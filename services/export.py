"""
Spreadsheet export service.
Posts the report list to an external spreadsheet-generation endpoint
(a Google Apps Script web app). The endpoint sends nothing back, so the export
is best-effort: success means the request was dispatched, not that a sheet exists.
"""

import logging
import os
from typing import Dict, List

import httpx

logger = logging.getLogger(__name__)

SHEETS_EXPORT_URL = os.getenv("SHEETS_EXPORT_URL", "")
DRIVE_RECENT_URL = "https://drive.google.com/drive/recent"

EXPORT_TIMEOUT_SECONDS = 30.0

EXPORT_MESSAGE = "Spreadsheet created! Check your Google Drive."


class ExportError(Exception):
    """Raised when an export cannot be started."""


def prepare_export(reports: List[Dict]) -> Dict:
    """
    Check an export can be dispatched and build its payload.

    Raises:
        ExportError: If there is nothing to export or no endpoint is configured
    """
    if not reports:
        raise ExportError("No reports to export")
    if not SHEETS_EXPORT_URL:
        raise ExportError("Spreadsheet export is not configured")
    return {"reports": reports}


async def export_reports(payload: Dict) -> None:
    """
    POST the payload to the spreadsheet endpoint.

    Runs after the response was sent; failures are logged and go no further.
    """
    try:
        async with httpx.AsyncClient(timeout=EXPORT_TIMEOUT_SECONDS, follow_redirects=True) as client:
            response = await client.post(SHEETS_EXPORT_URL, json=payload)
            response.raise_for_status()
        logger.info("Exported %s reports to spreadsheet", len(payload.get("reports", [])))
    except httpx.HTTPError as e:
        logger.error("Error exporting to Google Sheets: %s", e)
