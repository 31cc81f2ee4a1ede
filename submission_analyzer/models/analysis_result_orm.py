"""
SQLAlchemy ORM model for the 'analysis_results' table.
"""

from sqlalchemy import Column, JSON, PrimaryKeyConstraint, Text, TIMESTAMP
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from .base import Base


class AnalysisResultORM(Base):
    """
    One cached analysis payload, addressed by (collection, key).

    Attributes:
        collection (str): The analysis kind's collection (e.g. "submissionFeedback").
        key (str): The problem identifier, stringified.
        payload (dict): The analysis result exactly as returned by the analysis service.
        updated_at (datetime): Timestamp of the last write.
    """
    __tablename__ = "analysis_results"

    collection = Column(Text, nullable=False, comment="Analysis kind collection name.")
    key = Column(Text, nullable=False, comment="Stringified problem identifier.")
    payload = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, comment="Stored analysis payload.")
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        PrimaryKeyConstraint("collection", "key", name="pk_analysis_result"),
    )

    def __repr__(self) -> str:
        return f"<AnalysisResultORM(collection='{self.collection}', key='{self.key}')>"
