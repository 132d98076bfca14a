from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base


class Student(Base):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_number: Mapped[str] = mapped_column(String(15), nullable=False)
    # stored lower-case, so uniqueness is case-insensitive
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    residence: Mapped[str] = mapped_column(String(100), nullable=False)
    block: Mapped[str] = mapped_column(String(50), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # requests outlive the student: the FK is nulled, rows are kept
    requests = relationship(
        "MaintenanceRequest", back_populates="student", passive_deletes=True
    )

    def profile(self) -> dict:
        return {
            "id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "residence": self.residence,
            "block": self.block,
        }
