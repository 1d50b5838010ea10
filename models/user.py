from enum import Enum

from sqlalchemy import Column, String, Date
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import Base, BaseModel


class UserStatus(str, Enum):
    ACTIVE = "Ativo"
    INACTIVE = "Inativo"


class User(BaseModel, Base):
    __tablename__ = "users"

    name = Column(String(100), nullable=False)
    birth_date = Column(Date, nullable=False)
    rg = Column(String(9), nullable=True)
    cpf = Column(String(11), nullable=False, unique=True)
    email = Column(String(100), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    status = Column(
        SAEnum(
            UserStatus,
            name="user_status",
            native_enum=False,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=UserStatus.ACTIVE,
    )

    # Rows are removed by ON DELETE CASCADE; the ORM must not null the FK first
    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
