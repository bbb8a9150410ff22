from sqlalchemy import Column, String, DateTime

from pesaflip.db.base import Base, generate_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    phone_number = Column(String(20), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=True)
    name = Column(String(100), nullable=False)
    hashed_password = Column(String(100), nullable=False)
    business_name = Column(String(100), nullable=True)
    business_type = Column(String(50), nullable=True)
    role = Column(String(20), nullable=False, default="user")  # user | admin
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
