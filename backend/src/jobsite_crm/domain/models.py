"""SQLAlchemy ORM models for durable preferences.

Entities themselves live in memory; only the preference slices are
written to disk, one row per key, value stored as JSON text.
"""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from jobsite_crm.infra.database import Base


class Preference(Base):
    """A single persisted preference (filters, note tags, status colors)."""

    __tablename__ = "preferences"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
