"""Zone (precinct) and sub-zone (sector) boundary models"""

from sqlalchemy import Column, Float, Index, Integer, String, Text

from precinct_locator.database import Base


class Zone(Base):
    """Precinct boundary with precomputed bounding box and centroid"""

    __tablename__ = "zones"

    zone_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    address = Column(String(200), nullable=False, default="")
    phone = Column(String(30), nullable=False, default="")
    borough = Column(String(30), nullable=True, index=True)
    boundary_json = Column(Text, nullable=False)  # {"type": "Polygon"|"MultiPolygon", "coordinates": ...}
    centroid_lat = Column(Float, nullable=False)
    centroid_lng = Column(Float, nullable=False)
    bounding_box_json = Column(Text, nullable=False)  # [minLat, minLng, maxLat, maxLng]
    opening_hours_json = Column(Text, nullable=False, default="[]")

    def __repr__(self):
        return f"<Zone(zone_id={self.zone_id}, name='{self.name}', borough='{self.borough}')>"


class SubZone(Base):
    """
    Sector boundary inside a precinct.

    zone_id is an indexed reference rather than a foreign key constraint so the
    precinct and sector datasets can be reseeded independently.
    """

    __tablename__ = "sub_zones"

    zone_id = Column(Integer, primary_key=True, autoincrement=False)
    sub_zone_id = Column(String(20), primary_key=True)
    boundary_json = Column(Text, nullable=False)
    bounding_box_json = Column(Text, nullable=False)
    derived = Column(Integer, nullable=False, default=0)  # 1 if produced by ring bisection

    __table_args__ = (
        Index("idx_sub_zones_zone", "zone_id"),
    )

    def __repr__(self):
        return f"<SubZone(zone_id={self.zone_id}, sub_zone_id='{self.sub_zone_id}')>"
