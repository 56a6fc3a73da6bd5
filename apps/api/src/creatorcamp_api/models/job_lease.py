"""Lease rows used to keep background sweeps single-flight across instances."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, String, func

from creatorcamp_api.db.base import Base


class JobLease(Base):
    """One row per recurring job. A holder owns the job until ``lease_expires_at``."""

    __tablename__ = "job_leases"

    name = Column(String(64), primary_key=True)
    holder = Column(String(255), nullable=True)
    lease_expires_at = Column(DateTime(timezone=True), nullable=True)
    heartbeat_at = Column(DateTime(timezone=True), nullable=True)
    last_completed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
