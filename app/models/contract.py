from datetime import date

from sqlalchemy import CheckConstraint, Date, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        CheckConstraint(
            "billing_type IN ('TIME_MATERIAL','FIXED_PRICE')",
            name="billing_type",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    cig: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    cig_derivato: Mapped[str | None] = mapped_column(String(255), nullable=True)
    wbs: Mapped[str | None] = mapped_column(String(255), nullable=True)
    capienza: Mapped[float] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=False)
    billing_type: Mapped[str] = mapped_column(String(50), nullable=False, default="TIME_MATERIAL")

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
