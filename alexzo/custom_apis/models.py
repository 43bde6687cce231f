"""Custom API registration SQLAlchemy models"""

from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, String, Text
from alexzo.core.database import Base


class CustomApi(Base):
    __tablename__ = "custom_apis"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    user_name = Column(String(200))
    user_email = Column(String(255))
    name = Column(String(200), nullable=False)
    url = Column(Text)
    link = Column(Text)
    status = Column(String(50), default="active", nullable=False)
    api_key = Column(String(64), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
