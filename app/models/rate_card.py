from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class RateCard(Base):
    __tablename__ = "rate_cards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="EUR")

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
