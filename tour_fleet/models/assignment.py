import enum
from sqlalchemy import Column, Integer, String, Text, Date, Enum, ForeignKey, TIMESTAMP, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tour_fleet.database import Base
from tour_fleet.models.resource import ResourceType, enum_values


class AssignmentStatus(str, enum.Enum):
    ACTIVE    = "active"
    COMPLETED = "completed"


class Assignment(Base):
    __tablename__ = "assignments"

    id           = Column(Integer, primary_key=True, index=True)
    resourceId   = Column(Integer, ForeignKey("resources.id"), nullable=False)
    resourceType = Column(Enum(ResourceType, name="resource_type", values_callable=enum_values),
                          nullable=False)
    tourId       = Column(String(100), nullable=False, index=True)
    tourCode     = Column(String(100), nullable=True)
    date         = Column(Date, nullable=False)
    status       = Column(Enum(AssignmentStatus, name="assignment_status", values_callable=enum_values),
                          default=AssignmentStatus.ACTIVE, nullable=False)
    passengers   = Column(Integer, nullable=True)
    # Companion resource (driver for a vehicle claim, vehicle for a driver claim); informational
    pairedResourceId = Column(Integer, ForeignKey("resources.id"), nullable=True)
    notes        = Column(Text, nullable=True)
    createdBy    = Column(String(100), nullable=True)
    completedBy  = Column(String(100), nullable=True)
    createdAt    = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    completedAt  = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_assignments_resource_status_date", "resourceId", "status", "date"),
        # Storage-level backstop: one active claim per resource per day
        Index("uq_assignments_active_resource_date", "resourceId", "date", unique=True,
              postgresql_where=text("status = 'active'"),
              sqlite_where=text("status = 'active'")),
    )

    # ─── Relationships ─────────────────────────────────────────────────────────
    resource        = relationship("Resource", back_populates="assignments", foreign_keys=[resourceId])
    paired_resource = relationship("Resource", foreign_keys=[pairedResourceId])

    @property
    def isActive(self) -> bool:
        return self.status == AssignmentStatus.ACTIVE

    def __repr__(self):
        return (f"<Assignment id={self.id} resourceId={self.resourceId} "
                f"date={self.date} status={self.status}>")
