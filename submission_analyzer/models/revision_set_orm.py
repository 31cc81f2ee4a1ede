"""
SQLAlchemy ORM model for the 'revision_sets' table.
"""

from sqlalchemy import Column, Integer, JSON, Text, TIMESTAMP
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from .base import Base


class RevisionSetORM(Base):
    """
    The complete revision document of one user.

    The whole ``revisions`` array is rewritten on every mutation; ``version``
    counts the writes.

    Attributes:
        user_id (str): Owner of the revision set (primary key).
        revisions (list): Serialized revision entries.
        version (int): Number of writes applied to this document.
        updated_at (datetime): Timestamp of the last write.
    """
    __tablename__ = "revision_sets"

    user_id = Column(Text, primary_key=True, comment="Owner of the revision set.")
    revisions = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list, comment="Serialized revision entries.")
    version = Column(Integer, nullable=False, default=1, comment="Write counter for the document.")
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<RevisionSetORM(user_id='{self.user_id}', version={self.version})>"
