"""Squad and duty schedule models"""

from sqlalchemy import Column, Date, ForeignKey, Integer, String, Text

from precinct_locator.database import Base


class Squad(Base):
    """Group of officers sharing one duty schedule"""

    __tablename__ = "squads"

    squad_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(50), nullable=False)
    display_order = Column(Integer, nullable=False)


class Schedule(Base):
    """Stored schedule definition; validated into a ScheduleDefinition on load"""

    __tablename__ = "schedules"

    schedule_id = Column(Integer, primary_key=True, autoincrement=True)
    squad_id = Column(Integer, ForeignKey("squads.squad_id"), nullable=False, unique=True)
    kind = Column(String(10), nullable=False)  # cyclic, weekly
    cycle_length = Column(Integer, nullable=False)
    pattern_json = Column(Text, nullable=False)  # ["W","W","O",...]
    anchor_date = Column(Date, nullable=False)
    squad_offset = Column(Integer, nullable=False, default=0)
