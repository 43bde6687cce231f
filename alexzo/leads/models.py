"""Lead capture SQLAlchemy models"""

from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from alexzo.core.database import Base


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    company = Column(String(200))
    subject = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    message = Column(Text, nullable=False)
    source = Column(String(50), default="website", nullable=False)
    status = Column(String(50), default="new", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class NewsletterSubscription(Base):
    __tablename__ = "newsletter_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    source = Column(String(50), default="website", nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class WaitlistSubmission(Base):
    __tablename__ = "waitlist_submissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    product = Column(String(100), nullable=False)
    company = Column(String(200))
    use_case = Column(Text)
    source = Column(String(50), default="website", nullable=False)
    status = Column(String(50), default="pending", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
