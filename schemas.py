"""
Pydantic schemas for request/response validation and serialization.
Provides data validation and API documentation for the FastAPI endpoints.
"""

from datetime import datetime
from typing import Any, Dict, Optional, List, Union, Literal, Annotated
from enum import Enum
from pydantic import BaseModel, Field


class ReportType(str, Enum):
    """Enumeration of the two report kinds."""
    waste = "waste"
    street = "street"


class WasteCategory(str, Enum):
    """Enumeration of the waste categories the classifier may return."""
    plastic = "Plastic"
    paper = "Paper"
    metal = "Metal"
    glass = "Glass"
    organic = "Organic"
    electronic = "Electronic"
    hazardous = "Hazardous"
    other = "Other"


class CleanlinessStatus(str, Enum):
    """Enumeration of street cleanliness statuses."""
    clean = "clean"
    moderate = "moderate"
    dirty = "dirty"
    unknown = "unknown"


# ============== Location Schemas ==============

class LocationData(BaseModel):
    """A resolved position, or the fixed fallback when isDefault is set."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = None
    is_default: bool = Field(False, alias="isDefault")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"lat": 28.7041, "lng": 77.1025, "accuracy": 12.5, "isDefault": False}
        }


class AddressInfo(BaseModel):
    """Schema for a reverse geocoded address."""
    address: str
    city: str = ""
    country: str = ""


# ============== Analysis Schemas ==============

class WasteAnalysis(BaseModel):
    """Normalized waste classification returned by the vision model."""
    category: str = "Unknown"
    confidence: int = Field(0, ge=0, le=100)
    items: List[str] = []
    recyclable: bool = False
    disposal_method: str = ""
    environmental_impact: str = ""


class StreetAnalysis(BaseModel):
    """Normalized street cleanliness assessment returned by the vision model."""
    cleanliness_score: int = Field(0, ge=0, le=100)
    status: CleanlinessStatus = CleanlinessStatus.unknown
    litter_count: int = Field(0, ge=0)
    litter_types: List[str] = []
    issues: List[str] = []
    recommendations: List[str] = []
    severity: CleanlinessStatus = CleanlinessStatus.unknown


# ============== Report Schemas ==============

class WasteReportData(WasteAnalysis):
    """Payload persisted for a waste report."""
    type: Literal["waste"] = "waste"
    image_url: str
    location: Optional[LocationData] = None


class StreetReportData(StreetAnalysis):
    """Payload persisted for a street report."""
    type: Literal["street"] = "street"
    image_url: str
    location: Optional[LocationData] = None


ReportData = Annotated[Union[WasteReportData, StreetReportData], Field(discriminator="type")]


class ReportDisplay(BaseModel):
    """Presentation hints derived from stored fields."""
    date_label: str
    time_label: str
    color: dict
    icon: Optional[str] = None


class ReportResponse(BaseModel):
    """Schema for report response; kind-specific fields are null for the other kind."""
    id: int
    user_id: str
    type: ReportType
    image_url: str
    location: Optional[LocationData] = None
    created_at: datetime

    category: Optional[str] = None
    confidence: Optional[int] = None
    items: Optional[List[str]] = None
    recyclable: Optional[bool] = None
    disposal_method: Optional[str] = None
    environmental_impact: Optional[str] = None

    cleanliness_score: Optional[int] = None
    status: Optional[str] = None
    severity: Optional[str] = None
    litter_count: Optional[int] = None
    litter_types: Optional[List[str]] = None
    issues: Optional[List[str]] = None
    recommendations: Optional[List[str]] = None

    display: Optional[ReportDisplay] = None

    class Config:
        from_attributes = True


class SubmissionResponse(BaseModel):
    """Schema returned after a report was analyzed, uploaded and saved."""
    message: str
    report_id: int
    type: ReportType
    analysis: Dict[str, Any] = Field(..., description="WasteAnalysis or StreetAnalysis fields, by report type")
    image_url: str
    location: Optional[LocationData] = None

    class Config:
        json_schema_extra = {
            "example": {
                "message": "Report saved successfully",
                "report_id": 42,
                "type": "waste",
                "analysis": {
                    "category": "Plastic",
                    "confidence": 95,
                    "items": ["plastic bottle"],
                    "recyclable": True,
                    "disposal_method": "Rinse and place in the recycling bin.",
                    "environmental_impact": "Plastic bottles take centuries to decompose."
                },
                "image_url": "http://localhost:8000/uploads/waste/1718000000000_bottle.jpg",
                "location": {"lat": 28.7041, "lng": 77.1025, "accuracy": 12.5, "isDefault": False}
            }
        }


# ============== Map & Dashboard Schemas ==============

class HeatmapPoint(BaseModel):
    """Reduced projection of a report for map display."""
    id: int
    lat: float
    lng: float
    score: int
    type: ReportType
    timestamp: datetime
    color: str = Field(..., description="Marker fill color")


class StatsResponse(BaseModel):
    """Schema for the history summary statistics."""
    total_reports: int = Field(..., alias="totalReports")
    waste_reports: int = Field(..., alias="wasteReports")
    street_reports: int = Field(..., alias="streetReports")
    avg_score: int = Field(..., alias="avgScore", description="Mean cleanliness score of street reports")

    class Config:
        populate_by_name = True


# ============== Response Wrappers ==============

class MessageResponse(BaseModel):
    """Generic message response schema."""
    message: str
    data: Optional[dict] = None


class ExportResponse(BaseModel):
    """Schema for the spreadsheet export acknowledgement."""
    success: bool
    message: str
    redirect_url: Optional[str] = None
    confirmed: bool = Field(False, description="Always false: the export endpoint sends no confirmation")
