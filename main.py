"""
Main FastAPI application for the Clean City reports service.
Provides REST API endpoints for submitting waste and street photos for AI
classification and for browsing, mapping, exporting and deleting the results.
"""

from dotenv import load_dotenv
load_dotenv()  # Load environment variables from .env file

import logging
import os
from fastapi import FastAPI, Depends, HTTPException, status, File, UploadFile, Form, Query, BackgroundTasks
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db, init_db
from models import Report
from schemas import (
    ReportType,
    ReportResponse,
    ReportDisplay,
    SubmissionResponse,
    HeatmapPoint,
    StatsResponse,
    ExportResponse,
    AddressInfo,
)
from services.auth import SessionContext, NotAuthenticatedError, require_session
from services.display import describe_report
from services.export import ExportError, prepare_export, export_reports, EXPORT_MESSAGE, DRIVE_RECENT_URL
from services.location import ClientLocationProvider, get_address_from_coords
from services.reports import (
    ReportNotFoundError,
    get_reports,
    get_report,
    get_heatmap_data,
    get_stats,
    delete_report,
    DEFAULT_HISTORY_LIMIT,
)
from services.storage import UPLOAD_DIR, StorageError
from services.submission import ImageValidationError, ClassificationFailedError, submit_report
from services.validation import ImageFile

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create uploads directory if it doesn't exist
os.makedirs(UPLOAD_DIR, exist_ok=True)

# Create database tables
init_db()

# Initialize FastAPI application
app = FastAPI(
    title="Clean City Reports",
    description="API for classifying waste and rating street cleanliness from photos, and tracking the results on a map",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS middleware (explicit origins required when allow_credentials=True)
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "https://localhost:3000",
    "https://127.0.0.1:3000",
]
_extra_origins = os.environ.get("CORS_ORIGINS", "")
if _extra_origins:
    CORS_ORIGINS.extend(o.strip() for o in _extra_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Mount static files for serving uploaded images
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")


def _to_response(report: Report) -> ReportResponse:
    response = ReportResponse.model_validate(report)
    response.display = ReportDisplay(**describe_report(report))
    return response


def _unauthorized(e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=str(e),
        headers={"WWW-Authenticate": "Bearer"},
    )


# ============== Health Check ==============

@app.get("/", tags=["Health"])
def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "Clean City Reports"}


# ============== Submission Endpoints ==============

async def _submit(
    kind: str,
    image: Optional[UploadFile],
    latitude: Optional[float],
    longitude: Optional[float],
    accuracy: Optional[float],
    location_error: Optional[str],
    db: Session,
    session: SessionContext,
) -> SubmissionResponse:
    image_file = None
    if image is not None and image.filename:
        image_file = ImageFile(
            filename=image.filename,
            content_type=image.content_type,
            content=await image.read(),
        )

    provider = ClientLocationProvider(
        latitude=latitude,
        longitude=longitude,
        accuracy=accuracy,
        error=location_error,
    )

    try:
        result = await submit_report(db, session, kind, image_file, provider)
    except ImageValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except ClassificationFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to analyze image. Please try again."
        ) from e
    except NotAuthenticatedError as e:
        raise _unauthorized(e) from e
    except (StorageError, SQLAlchemyError) as e:
        logger.error("Failed to save %s report: %s", kind, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save report. Please try again."
        ) from e

    return SubmissionResponse(
        message=result.message,
        report_id=result.report_id,
        type=result.type,
        analysis=result.analysis.model_dump(mode="json"),
        image_url=result.image_url,
        location=result.location,
    )


@app.post(
    "/reports/waste",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Reports"]
)
async def submit_waste_report(
    image: Optional[UploadFile] = File(None),
    latitude: Optional[float] = Form(None, ge=-90, le=90),
    longitude: Optional[float] = Form(None, ge=-180, le=180),
    accuracy: Optional[float] = Form(None),
    location_error: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_session),
):
    """
    Classify a waste photo and save it as a report.

    The client sends its own geolocation reading, or the error code its
    geolocation call failed with (permission_denied, unavailable, timeout).

    Args:
        image: JPEG, PNG or WebP image, at most 10MB
        latitude: Reporter latitude, if known
        longitude: Reporter longitude, if known
        accuracy: Reading accuracy in meters
        location_error: Client geolocation error code
        db: Database session (injected)
        session: Caller's session (injected)

    Returns:
        Saved report id, the classification and the stored image URL
    """
    return await _submit("waste", image, latitude, longitude, accuracy, location_error, db, session)


@app.post(
    "/reports/street",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Reports"]
)
async def submit_street_report(
    image: Optional[UploadFile] = File(None),
    latitude: Optional[float] = Form(None, ge=-90, le=90),
    longitude: Optional[float] = Form(None, ge=-180, le=180),
    accuracy: Optional[float] = Form(None),
    location_error: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_session),
):
    """
    Rate the cleanliness of a street photo and save it as a report.

    A denied or unavailable location does not block the submission; the
    report is saved without a location.
    """
    return await _submit("street", image, latitude, longitude, accuracy, location_error, db, session)


# ============== History Endpoints ==============

@app.get(
    "/reports",
    response_model=List[ReportResponse],
    tags=["Reports"]
)
def list_reports(
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=1000),
    type: Optional[ReportType] = Query(None, description="Filter by report kind"),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_session),
):
    """
    Retrieve the caller's reports, newest first.

    Args:
        limit: Maximum number of reports
        type: Optional waste/street filter
        db: Database session (injected)
        session: Caller's session (injected)

    Returns:
        List of reports with display hints
    """
    report_type = type.value if type else None
    try:
        reports = get_reports(db, session, limit=limit, report_type=report_type)
    except SQLAlchemyError as e:
        logger.error("Error fetching reports: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load reports. Please try again."
        ) from e
    return [_to_response(r) for r in reports]


@app.get(
    "/reports/heatmap",
    response_model=List[HeatmapPoint],
    tags=["Map"]
)
def get_heatmap(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_session),
):
    """
    Map points for the caller's located reports.

    Pass lat, lng and radius_km together to only get points around a center.
    """
    near = (lat, lng) if lat is not None and lng is not None else None
    try:
        return get_heatmap_data(db, session, near=near, radius_km=radius_km)
    except SQLAlchemyError as e:
        logger.error("Error fetching heatmap data: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load map data. Please try again."
        ) from e


@app.get(
    "/reports/stats",
    response_model=StatsResponse,
    tags=["Reports"]
)
def get_report_stats(
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_session),
):
    """Summary counts and the average street cleanliness score."""
    try:
        return StatsResponse(**get_stats(db, session))
    except SQLAlchemyError as e:
        logger.error("Error fetching stats: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load statistics. Please try again."
        ) from e


@app.post(
    "/reports/export",
    response_model=ExportResponse,
    status_code=status.HTTP_202_ACCEPTED,
    tags=["Reports"]
)
def export_reports_to_sheets(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_session),
):
    """
    Send the caller's report history to the spreadsheet endpoint.

    Best-effort: the request is dispatched after this response and the far
    end sends no confirmation, so the user is pointed at their Drive.
    """
    try:
        reports = [_to_response(r).model_dump(mode="json", by_alias=True) for r in get_reports(db, session)]
    except SQLAlchemyError as e:
        logger.error("Error loading reports for export: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load reports. Please try again."
        ) from e

    try:
        payload = prepare_export(reports)
    except ExportError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    background_tasks.add_task(export_reports, payload)
    return ExportResponse(success=True, message=EXPORT_MESSAGE, redirect_url=DRIVE_RECENT_URL)


@app.get(
    "/reports/{report_id}",
    response_model=ReportResponse,
    tags=["Reports"]
)
def get_report_by_id(
    report_id: int,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_session),
):
    """
    Retrieve one report, e.g. for a selected map pin.

    Raises:
        HTTPException: If the caller has no report with that id
    """
    try:
        report = get_report(db, session, report_id)
    except ReportNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return _to_response(report)


@app.delete(
    "/reports/{report_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Reports"]
)
def delete_report_by_id(
    report_id: int,
    confirm: bool = Query(False, description="Must be true; deletion cannot be undone"),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_session),
):
    """
    Delete one of the caller's reports.

    The client must ask the user first and pass confirm=true.
    """
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deletion must be confirmed with confirm=true"
        )

    try:
        delete_report(db, session, report_id)
    except ReportNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete report"
        ) from e


# ============== Location Endpoints ==============

@app.get(
    "/location/address/{latitude}/{longitude}",
    response_model=AddressInfo,
    tags=["Location"]
)
async def lookup_address(latitude: float, longitude: float):
    """
    Reverse geocode a location.

    Args:
        latitude: Location latitude
        longitude: Location longitude

    Returns:
        Address, city and country for the location
    """
    return await get_address_from_coords(latitude, longitude)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
