from sqlalchemy import Column, Integer, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from tour_fleet.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    # Shares the primary key of its Resource row
    id              = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"),
                             primary_key=True)
    plate           = Column(String(20), unique=True, nullable=False, index=True)
    brand           = Column(String(100), nullable=False)
    model           = Column(String(100), nullable=False)
    year            = Column(Integer, nullable=True)
    vehicleType     = Column(String(50), nullable=False, index=True)   # car | van | minibus | bus ...
    capacity        = Column(Integer, nullable=False)
    # ─── Compliance documents ──────────────────────────────────────────────────
    soatNumber            = Column(String(50), nullable=True)
    soatExpiry            = Column(Date, nullable=True)
    technicalReviewNumber = Column(String(50), nullable=True)
    technicalReviewExpiry = Column(Date, nullable=True)
    # 1:1 pairing, mirrored on Driver.currentVehicleId
    currentDriverId = Column(Integer, ForeignKey("drivers.id", use_alter=True,
                                                 name="fk_vehicles_current_driver"),
                             nullable=True)

    # ─── Relationships ─────────────────────────────────────────────────────────
    resource        = relationship("Resource", back_populates="vehicle")
    pairings        = relationship("VehiclePairing", back_populates="vehicle")
    maintenance_records = relationship("MaintenanceRecord", back_populates="vehicle")

    @property
    def displayName(self) -> str:
        return f"{self.brand or ''} {self.model or ''} - {self.plate or ''}".strip()

    def __repr__(self):
        return f"<Vehicle id={self.id} plate={self.plate}>"
