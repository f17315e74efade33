from sqlalchemy import Column, Integer, String, Text, DateTime
from datetime import datetime
from .db import Base


class ShortLink(Base):
    __tablename__ = "links"
    id = Column(Integer, primary_key=True, index=True)
    # UNIQUE backs up the allocator: it only probes, the constraint decides races
    slug = Column(String(256), unique=True, index=True, nullable=False)
    target = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
