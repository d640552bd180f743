from sqlalchemy import Column, Integer, String, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from tour_fleet.database import Base


class VehiclePairing(Base):
    __tablename__ = "vehicle_pairings"

    id         = Column(Integer, primary_key=True, index=True)
    driverId   = Column(Integer, ForeignKey("drivers.id"), nullable=False, index=True)
    vehicleId  = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    assignedAt = Column(TIMESTAMP(timezone=True), nullable=False)
    assignedBy = Column(String(100), nullable=True)
    releasedAt = Column(TIMESTAMP(timezone=True), nullable=True)  # NULL = still paired
    releasedBy = Column(String(100), nullable=True)

    # ─── Relationships ─────────────────────────────────────────────────────────
    driver  = relationship("Driver", back_populates="pairings")
    vehicle = relationship("Vehicle", back_populates="pairings")

    def __repr__(self):
        return f"<VehiclePairing id={self.id} driverId={self.driverId} vehicleId={self.vehicleId}>"
