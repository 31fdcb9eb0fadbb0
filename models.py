"""
SQLAlchemy ORM models for the Clean City reports service.
Defines the database schema for classification reports.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON

from database import Base


class Report(Base):
    """
    A single classification event: either a waste item or a street scene.

    One table holds both kinds; `type` decides which of the optional
    columns are meaningful. Rows are never updated in place.
    """
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False, index=True)  # waste, street
    image_url = Column(String, nullable=False)
    location = Column(JSON, nullable=True)  # {lat, lng, accuracy, isDefault}
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Waste fields
    category = Column(String, nullable=True)
    confidence = Column(Integer, nullable=True)
    items = Column(JSON, nullable=True)
    recyclable = Column(Boolean, nullable=True)
    disposal_method = Column(Text, nullable=True)
    environmental_impact = Column(Text, nullable=True)

    # Street fields
    cleanliness_score = Column(Integer, nullable=True)
    status = Column(String, nullable=True)  # clean, moderate, dirty, unknown
    severity = Column(String, nullable=True)
    litter_count = Column(Integer, nullable=True)
    litter_types = Column(JSON, nullable=True)
    issues = Column(JSON, nullable=True)
    recommendations = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<Report(id={self.id}, type={self.type}, user_id={self.user_id})>"
