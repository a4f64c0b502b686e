"""Dataset version records"""

from sqlalchemy import Column, DateTime, String

from precinct_locator.database import Base


class DatasetVersion(Base):
    """Version marker per logical dataset, written only after a full reseed"""

    __tablename__ = "dataset_versions"

    dataset_key = Column(String(32), primary_key=True)  # precincts, sectors, laws, schedules
    version = Column(String(64), nullable=False)
    last_synced_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<DatasetVersion(dataset_key='{self.dataset_key}', version='{self.version}')>"
