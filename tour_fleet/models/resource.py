import enum
from sqlalchemy import Column, Integer, String, Boolean, Enum, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tour_fleet.database import Base


class ResourceType(str, enum.Enum):
    VEHICLE = "vehicle"
    DRIVER  = "driver"


class ResourceStatus(str, enum.Enum):
    ACTIVE      = "active"
    INACTIVE    = "inactive"
    MAINTENANCE = "maintenance"
    TERMINATED  = "terminated"


def enum_values(enum_cls) -> list[str]:
    """Persist enum values ("active"), not member names ("ACTIVE")."""
    return [m.value for m in enum_cls]


class Resource(Base):
    __tablename__ = "resources"

    id          = Column(Integer, primary_key=True, index=True)
    type        = Column(Enum(ResourceType, name="resource_type", values_callable=enum_values),
                         nullable=False, index=True)
    status      = Column(Enum(ResourceStatus, name="resource_status", values_callable=enum_values),
                         default=ResourceStatus.ACTIVE, nullable=False, index=True)
    # Denormalised from the assignment ledger; only the conflict guard writes it
    isAvailable = Column(Boolean, default=True, nullable=False)
    currentAssignmentId = Column(Integer, ForeignKey("assignments.id", use_alter=True,
                                                     name="fk_resources_current_assignment"),
                                 nullable=True)
    agencyId    = Column(String(100), nullable=True, index=True)
    statusReason = Column(String(255), nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                         onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle     = relationship("Vehicle", back_populates="resource", uselist=False)
    driver      = relationship("Driver", back_populates="resource", uselist=False)
    assignments = relationship("Assignment", back_populates="resource",
                               foreign_keys="Assignment.resourceId")

    def __repr__(self):
        return (f"<Resource id={self.id} type={self.type} status={self.status} "
                f"isAvailable={self.isAvailable}>")
