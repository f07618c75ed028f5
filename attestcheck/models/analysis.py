"""
Analysis model holding the attestation verification state of a quote analysis.

The row is owned by the quote analysis pipeline; this service only writes the
attestation columns.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text

from attestcheck.database import Base
from attestcheck.models.types import JSONDocument, UUID


class Analysis(Base):
    """
    SQLAlchemy model for a quote analysis record.

    Attributes:
        id: Unique identifier (UUID).
        attestation_analysis: Extractions keyed by attestation type.
        attestation_comparison: Comparisons keyed by attestation type.
        assurance_source: Where the insurance information comes from.
        attestation_decennale_url: Short reference to the decennial document.
        attestation_rcpro_url: Short reference to the liability document.
        assurance_level2_score: Overall level-2 verdict (VERT/ORANGE/ROUGE).
        version_id: Optimistic concurrency counter.
        created_at: Timestamp when the analysis was created.
        updated_at: Timestamp of last update.
    """

    __tablename__ = "analyses"

    id: uuid.UUID = Column(
        UUID(),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )
    attestation_analysis: Optional[Dict[str, Any]] = Column(JSONDocument, nullable=True)
    attestation_comparison: Optional[Dict[str, Any]] = Column(JSONDocument, nullable=True)
    assurance_source: Optional[str] = Column(String(50), nullable=True)
    attestation_decennale_url: Optional[str] = Column(Text, nullable=True)
    attestation_rcpro_url: Optional[str] = Column(Text, nullable=True)
    assurance_level2_score: Optional[str] = Column(String(10), nullable=True)
    version_id: int = Column(Integer, nullable=False, default=1)
    created_at: datetime = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at: datetime = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Every UPDATE checks and bumps version_id; a stale row raises StaleDataError
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Analysis(id={self.id}, level2={self.assurance_level2_score}, version={self.version_id})>"
