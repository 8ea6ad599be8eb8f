"""
SQLAlchemy ORM model for trip owners.
"""
from sqlalchemy import Column, String, DateTime
from datetime import datetime
import uuid

from travelplan.infrastructure.database import Base
from travelplan.infrastructure.db_types import GUID


class UserModel(Base):
    """
    Account that owns trips. Credentials live with the session service;
    this table only anchors ownership.
    """
    __tablename__ = "users"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    email = Column(String, nullable=False, unique=True, index=True)
    display_name = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
