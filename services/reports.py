"""
Persistence gateway for classification reports.
Every read and write is scoped to the authenticated caller.
"""

import logging
import math
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Report
from schemas import StreetReportData, WasteReportData
from services.auth import SessionContext, require_user_id
from services.display import marker_color
from services.location import calculate_distance

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50
HEATMAP_LIMIT = 100
STATS_LIMIT = 1000

# Score shown for points without a cleanliness score (waste reports)
DEFAULT_HEATMAP_SCORE = 50

# Client supplied values for these are ignored
SERVER_ASSIGNED_FIELDS = ("id", "user_id", "created_at")


class ReportNotFoundError(Exception):
    """Raised when a report does not exist or belongs to someone else."""


def save_report(
    db: Session,
    session: Optional[SessionContext],
    report_data,
) -> int:
    """
    Insert a report owned by the caller.

    Args:
        db: SQLAlchemy database session
        session: Caller's session (required)
        report_data: WasteReportData or StreetReportData

    Returns:
        ID of the new report

    Raises:
        NotAuthenticatedError: If there is no signed-in user; nothing is written
        SQLAlchemyError: If the insert fails
    """
    user_id = require_user_id(session)

    if not isinstance(report_data, (WasteReportData, StreetReportData)):
        raise TypeError("report_data must be WasteReportData or StreetReportData")

    fields = report_data.model_dump(mode="json", by_alias=True)
    for key in SERVER_ASSIGNED_FIELDS:
        fields.pop(key, None)

    db_report = Report(**fields, user_id=user_id)

    try:
        db.add(db_report)
        db.commit()
        db.refresh(db_report)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error saving report: %s", e)
        raise

    logger.info("Report saved with ID: %s", db_report.id)
    return db_report.id


def get_reports(
    db: Session,
    session: Optional[SessionContext],
    limit: int = DEFAULT_HISTORY_LIMIT,
    report_type: Optional[str] = None,
) -> List[Report]:
    """
    Retrieve the caller's reports, newest first.

    Args:
        db: SQLAlchemy database session
        session: Caller's session (required)
        limit: Maximum number of rows
        report_type: Optional "waste" or "street" filter

    Returns:
        List of Report objects

    Raises:
        NotAuthenticatedError: If there is no signed-in user
    """
    user_id = require_user_id(session)

    query = db.query(Report).filter(Report.user_id == user_id)
    if report_type:
        query = query.filter(Report.type == report_type)

    return (
        query.order_by(Report.created_at.desc(), Report.id.desc())
        .limit(limit)
        .all()
    )


def get_report(db: Session, session: Optional[SessionContext], report_id: int) -> Report:
    """Retrieve one of the caller's reports by ID."""
    user_id = require_user_id(session)

    report = (
        db.query(Report)
        .filter(Report.id == report_id, Report.user_id == user_id)
        .first()
    )
    if report is None:
        raise ReportNotFoundError(f"Report with id {report_id} not found")
    return report


def _has_location(report: Report) -> bool:
    location = report.location
    return (
        isinstance(location, dict)
        and location.get("lat") is not None
        and location.get("lng") is not None
    )


def get_heatmap_data(
    db: Session,
    session: Optional[SessionContext],
    near: Optional[Tuple[float, float]] = None,
    radius_km: Optional[float] = None,
) -> List[Dict]:
    """
    Project the caller's located reports into map points.

    Args:
        db: SQLAlchemy database session
        session: Caller's session (required)
        near: Optional (lat, lng) center for a radius filter
        radius_km: Radius in kilometers, used together with near

    Returns:
        List of {id, lat, lng, score, type, timestamp, color} dictionaries
    """
    reports = get_reports(db, session, limit=HEATMAP_LIMIT)

    points = []
    for report in reports:
        if not _has_location(report):
            continue

        lat = float(report.location["lat"])
        lng = float(report.location["lng"])

        if near is not None and radius_km is not None:
            if calculate_distance(near[0], near[1], lat, lng) > radius_km:
                continue

        score = report.cleanliness_score if report.cleanliness_score is not None else DEFAULT_HEATMAP_SCORE
        points.append({
            "id": report.id,
            "lat": lat,
            "lng": lng,
            "score": score,
            "type": report.type,
            "timestamp": report.created_at,
            "color": marker_color(report.type, score),
        })

    return points


def delete_report(db: Session, session: Optional[SessionContext], report_id: int) -> None:
    """
    Delete one of the caller's reports. Not undoable.

    Raises:
        NotAuthenticatedError: If there is no signed-in user
        ReportNotFoundError: If the caller has no report with that ID
    """
    report = get_report(db, session, report_id)

    try:
        db.delete(report)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error deleting report %s: %s", report_id, e)
        raise

    logger.info("Report deleted: %s", report_id)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def get_stats(db: Session, session: Optional[SessionContext]) -> Dict[str, int]:
    """
    Summary counts over the caller's latest reports.

    avgScore is the mean cleanliness score of street reports, 0 when there are none.
    """
    reports = get_reports(db, session, limit=STATS_LIMIT)

    waste_reports = sum(1 for r in reports if r.type == "waste")
    street_reports = sum(1 for r in reports if r.type == "street")

    street_scores = [
        r.cleanliness_score for r in reports
        if r.type == "street" and r.cleanliness_score is not None
    ]
    avg_score = _round_half_up(sum(street_scores) / len(street_scores)) if street_scores else 0

    return {
        "totalReports": len(reports),
        "wasteReports": waste_reports,
        "streetReports": street_reports,
        "avgScore": avg_score,
    }
