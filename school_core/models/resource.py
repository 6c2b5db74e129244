"""Resource model - Reservable rooms and equipment"""
import enum

from sqlalchemy import Column, DateTime, Enum, Index, Integer, String

from school_core.database import Base


class ResourceStatus(str, enum.Enum):
    """Mutually exclusive resource states"""

    AVAILABLE = "available"
    IN_USE = "inUse"
    MAINTENANCE = "maintenance"


class Resource(Base):
    """Physical asset whose status is managed by the ResourceManager"""

    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    type = Column(String(100), nullable=False)
    status = Column(
        Enum(
            ResourceStatus,
            name="resource_status",
            values_callable=lambda statuses: [s.value for s in statuses],
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default=ResourceStatus.AVAILABLE,
    )
    last_reservation_date = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_resources_status", "status"),
    )

    def __repr__(self):
        return f"<Resource(id={self.id}, name={self.name}, status={self.status})>"
