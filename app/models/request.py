from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.core.config import STATUS_PENDING
from app.db.base_class import Base


class MaintenanceRequest(Base):
    __tablename__ = "student_requests"

    id = Column(Integer, primary_key=True, index=True)

    student_id = Column(
        Integer,
        ForeignKey("students.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    subject = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(50), nullable=False, default=STATUS_PENDING)

    date_created = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Snapshot of the author, written at creation and refreshed right before
    # the author's account is deleted.
    student_name = Column(String(255), nullable=True)
    student_residence = Column(String(100), nullable=True)
    student_block = Column(String(50), nullable=True)

    student = relationship("Student", back_populates="requests")
