import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, Text
from sqlalchemy.sql import func

from .database import Base


class IdentityProvider(str, enum.Enum):
    CAL = "CAL"
    GOOGLE = "GOOGLE"
    SAML = "SAML"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(255), unique=True, index=True, nullable=True)
    identity_provider = Column(
        Enum(IdentityProvider), default=IdentityProvider.CAL, nullable=False
    )
    password_hash = Column(String(255), nullable=True)  # bcrypt; null for third-party logins
    # Two-Factor Authentication fields
    two_factor_enabled = Column(Boolean, default=False, nullable=False)
    two_factor_secret = Column(Text, nullable=True)  # AES256 encrypted, see crypto.py
    backup_codes = Column(Text, nullable=True)  # AES256 encrypted JSON list
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
