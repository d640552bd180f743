from sqlalchemy import Column, Integer, String, Date, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from tour_fleet.database import Base


class Driver(Base):
    __tablename__ = "drivers"

    # Shares the primary key of its Resource row
    id              = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"),
                             primary_key=True)
    firstName       = Column(String(100), nullable=False)
    lastName        = Column(String(100), nullable=False)
    dni             = Column(String(20), nullable=True, index=True)
    licenseNumber   = Column(String(50), unique=True, nullable=False, index=True)
    licenseCategory = Column(String(20), nullable=False, index=True)   # A-I, A-IIIC, B-IIA ...
    licenseIssuedDate = Column(Date, nullable=True)
    licenseExpiry   = Column(Date, nullable=True)
    licenseAuthority = Column(String(150), nullable=True)
    phone           = Column(String(20), nullable=True)
    email           = Column(String(150), nullable=True)
    # Denormalised from driver_evaluations on every new evaluation
    averageRating    = Column(Numeric(3, 2), nullable=False, default=0)
    totalEvaluations = Column(Integer, nullable=False, default=0)
    # 1:1 pairing, mirrored on Vehicle.currentDriverId
    currentVehicleId = Column(Integer, ForeignKey("vehicles.id", use_alter=True,
                                                  name="fk_drivers_current_vehicle"),
                              nullable=True)

    # ─── Relationships ─────────────────────────────────────────────────────────
    resource        = relationship("Resource", back_populates="driver")
    pairings        = relationship("VehiclePairing", back_populates="driver")
    evaluations     = relationship("DriverEvaluation", back_populates="driver")
    license_history = relationship("DriverLicenseRecord", back_populates="driver")

    @property
    def displayName(self) -> str:
        return f"{self.firstName or ''} {self.lastName or ''}".strip()

    def __repr__(self):
        return f"<Driver id={self.id} license={self.licenseNumber}>"
