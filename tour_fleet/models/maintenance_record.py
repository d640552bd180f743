from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey, TIMESTAMP, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tour_fleet.database import Base


class MaintenanceRecord(Base):
    __tablename__ = "maintenance_records"

    id          = Column(Integer, primary_key=True, index=True)
    vehicleId   = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    date        = Column(Date, nullable=False)
    cost        = Column(Numeric(12, 2), nullable=True)
    createdBy   = Column(String(100), nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle = relationship("Vehicle", back_populates="maintenance_records")

    def __repr__(self):
        return f"<MaintenanceRecord id={self.id} vehicleId={self.vehicleId}>"
