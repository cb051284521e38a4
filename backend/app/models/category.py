import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, String

from app.db import Base


class ColorTheme(str, enum.Enum):
    PINK = "pink"
    BLUE = "blue"
    NEUTRAL = "neutral"


class Category(Base):
    __tablename__ = "categories"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(128), nullable=False)
    color_theme = Column(
        Enum(ColorTheme, values_callable=lambda e: [m.value for m in e], native_enum=False),
        nullable=False,
        default=ColorTheme.NEUTRAL,
    )
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Category name={self.name} theme={self.color_theme}>"
