"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from wedding_api.database import Base
from wedding_api.utils.timeutils import utcnow

IMAGE_TYPES = ("main", "gallery")
CONTACT_SIDES = ("groom", "bride")
CONTACT_RELATIONSHIPS = ("person", "father", "mother", "brother", "sister", "other")


class GalleryImage(Base):
    """
    Gallery image model.
    At most one live row has image_type 'main'; 'gallery' rows carry order_index.
    """
    __tablename__ = "gallery"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=False)  # relative to UPLOAD_DIR, e.g. images/gallery_1.jpg
    image_type = Column(Enum(*IMAGE_TYPES, name="gallery_image_type"), nullable=False, default="gallery")
    order_index = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    deleted_at = Column(DateTime, nullable=True, index=True)


class GuestbookEntry(Base):
    """Guestbook message. The password is a bcrypt hash (legacy rows may be plaintext)."""
    __tablename__ = "guestbook"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    password = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    deleted_at = Column(DateTime, nullable=True)


class Contact(Base):
    """Contact card shown in the contacts section (phone and bank account)."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    side = Column(Enum(*CONTACT_SIDES, name="contact_side"), nullable=False)
    relationship = Column(Enum(*CONTACT_RELATIONSHIPS, name="contact_relationship"), nullable=False)
    name = Column(String(50), nullable=False)
    phone = Column(String(20), nullable=True)
    bank_name = Column(String(50), nullable=True)
    account_number = Column(String(50), nullable=True)
    kakaopay_link = Column(String(255), nullable=True)


class Admin(Base):
    """Admin account for the admin panel."""
    __tablename__ = "admin"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False, unique=True)
    password = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
