"""Reference-text library models"""

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text

from precinct_locator.database import Base


class LawCategory(Base):
    """Top-level grouping of reference entries"""

    __tablename__ = "law_categories"

    category_id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    display_order = Column(Integer, nullable=False)
    entry_count = Column(Integer, nullable=False, default=0)


class LawEntry(Base):
    """Single statute or rule section"""

    __tablename__ = "law_entries"

    entry_id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(String(50), ForeignKey("law_categories.category_id"), nullable=False)
    section_number = Column(String(30), nullable=False)
    title = Column(String(200), nullable=False)
    body_text = Column(Text, nullable=False)

    __table_args__ = (
        Index("idx_law_entries_category", "category_id"),
    )
