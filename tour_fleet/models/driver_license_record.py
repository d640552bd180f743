import enum
from sqlalchemy import Column, Integer, String, Date, Enum, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tour_fleet.database import Base
from tour_fleet.models.resource import enum_values


class LicenseRecordStatus(str, enum.Enum):
    ACTIVE     = "active"
    SUPERSEDED = "superseded"


class DriverLicenseRecord(Base):
    """One row per licence a driver has held; the newest is the active one."""
    __tablename__ = "driver_license_history"

    id               = Column(Integer, primary_key=True, index=True)
    driverId         = Column(Integer, ForeignKey("drivers.id", ondelete="CASCADE"), nullable=False, index=True)
    licenseNumber    = Column(String(50), nullable=False)
    licenseCategory  = Column(String(20), nullable=False)
    issuedDate       = Column(Date, nullable=True)
    expiryDate       = Column(Date, nullable=True)
    issuingAuthority = Column(String(150), nullable=True)
    status           = Column(Enum(LicenseRecordStatus, name="license_record_status", values_callable=enum_values),
                              default=LicenseRecordStatus.ACTIVE, nullable=False)
    createdBy        = Column(String(100), nullable=True)
    createdAt        = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    driver = relationship("Driver", back_populates="license_history")

    def __repr__(self):
        return f"<DriverLicenseRecord id={self.id} driver={self.driverId} license={self.licenseNumber}>"
