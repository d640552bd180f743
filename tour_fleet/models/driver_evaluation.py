from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey, TIMESTAMP, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tour_fleet.database import Base


class DriverEvaluation(Base):
    __tablename__ = "driver_evaluations"

    id             = Column(Integer, primary_key=True, index=True)
    driverId       = Column(Integer, ForeignKey("drivers.id", ondelete="CASCADE"), nullable=False, index=True)
    assignmentId   = Column(Integer, ForeignKey("assignments.id"), nullable=True)   # tour being rated, if any
    rating         = Column(Integer, nullable=False)   # 1-5
    comments       = Column(Text, nullable=True)
    evaluationDate = Column(Date, nullable=False, index=True)
    evaluatedBy    = Column(String(100), nullable=True)
    createdAt      = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="chk_evaluation_rating_range"),
    )

    # ─── Relationships ─────────────────────────────────────────────────────────
    driver = relationship("Driver", back_populates="evaluations")

    def __repr__(self):
        return f"<DriverEvaluation id={self.id} driver={self.driverId} rating={self.rating}>"
