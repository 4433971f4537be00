from datetime import datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class HealthRecord(Base):
    """One native record. Times are stored as naive UTC."""

    __tablename__ = "health_records"

    # Monotonic id doubles as the paging cursor
    id = Column(Integer, primary_key=True, autoincrement=True)
    record_uid = Column(String(36), nullable=False, unique=True)
    kind = Column(String(40), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)

    # Scalar value in native units: count, meters, kcal, kg, m, mL
    value = Column(Float)
    exercise_type = Column(Integer)
    title = Column(String(255))
    # Heart-rate readings, sleep stages, opaque client metadata
    payload = Column(JSON)

    # Provenance
    data_origin = Column(String(255), nullable=False)
    device_manufacturer = Column(String(255))
    device_model = Column(String(255))
    client_record_id = Column(String(255))
    client_record_version = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("ix_health_records_kind_start", "kind", "start_time"),)


class PermissionGrant(Base):
    """A permission token the user has granted."""

    __tablename__ = "permission_grants"

    permission = Column(String(255), primary_key=True)
    granted_at = Column(DateTime, default=datetime.utcnow)
