from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from mes.core.database import Base
from mes.models.base import TimestampMixin, SoftDeleteMixin


class User(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True)
    real_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default="user", nullable=False)
    status: Mapped[int] = mapped_column(Integer, default=1, nullable=False)  # 1 enabled, 0 disabled

    def __init__(self, **kwargs):
        kwargs.setdefault("role", "user")
        kwargs.setdefault("status", 1)
        super().__init__(**kwargs)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_active(self) -> bool:
        return self.status == 1 and self.deleted_at is None
