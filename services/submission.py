"""
Report submission pipeline: validate -> locate -> classify -> upload -> persist.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from schemas import StreetReportData, WasteReportData
from services.auth import SessionContext, require_user_id
from services.gemini import analyze_image
from services.location import LocationProvider, locate_for_submission
from services.reports import save_report
from services.storage import upload_image
from services.validation import ImageFile, validate_image_file

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Report saved successfully"

REPORT_BUILDERS = {"waste": WasteReportData, "street": StreetReportData}


class ImageValidationError(Exception):
    """The uploaded file was rejected before any backend call."""


class ClassificationFailedError(Exception):
    """The vision model could not analyze the image; nothing was stored."""


@dataclass
class SubmissionResult:
    report_id: int
    type: str
    analysis: Any
    image_url: str
    location: Optional[Dict]
    message: str = SUCCESS_MESSAGE


async def submit_report(
    db: Session,
    session: Optional[SessionContext],
    kind: str,
    image: Optional[ImageFile],
    location_provider: Optional[LocationProvider] = None,
) -> SubmissionResult:
    """
    Run one report submission end to end.

    Location and classification run concurrently. The image is uploaded only
    after a successful classification and a valid payload, and the row is
    inserted only after the upload returned a URL. The blocking upload and
    insert run in the threadpool. Nothing is retried.

    Args:
        db: SQLAlchemy database session
        session: Caller's session (required)
        kind: "waste" or "street"
        image: Uploaded image, None when nothing was selected
        location_provider: Source of the reporter's position

    Returns:
        SubmissionResult for the saved report

    Raises:
        NotAuthenticatedError: If there is no signed-in user
        ImageValidationError: If the file is missing, of the wrong type or too large
        ClassificationFailedError: If the model call failed
        ValidationError: If the report payload is invalid; nothing is uploaded
        StorageError: If the upload failed
        SQLAlchemyError: If the insert failed
    """
    require_user_id(session)

    if kind not in REPORT_BUILDERS:
        raise ValueError(f"Unsupported report kind: {kind}")

    validation = validate_image_file(image)
    if not validation.valid:
        raise ImageValidationError(validation.error)

    image_base64 = base64.b64encode(image.content).decode("ascii")
    mime_type = "image/jpeg" if image.content_type == "image/jpg" else image.content_type

    location, classification = await asyncio.gather(
        locate_for_submission(location_provider),
        analyze_image(kind, image_base64, mime_type),
    )

    if not classification.success:
        logger.warning("Classification failed for %s report: %s", kind, classification.error)
        raise ClassificationFailedError(classification.error or f"Failed to analyze {kind}")

    # Must validate before anything is written to storage
    report_data = REPORT_BUILDERS[kind](
        **classification.data.model_dump(),
        image_url="",
        location=location,
    )

    image_url = await run_in_threadpool(upload_image, session, image.content, image.filename, folder=kind)
    report_data = report_data.model_copy(update={"image_url": image_url})

    report_id = await run_in_threadpool(save_report, db, session, report_data)

    return SubmissionResult(
        report_id=report_id,
        type=kind,
        analysis=classification.data,
        image_url=image_url,
        location=location,
    )
