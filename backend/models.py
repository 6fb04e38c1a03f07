"""
SQLAlchemy models for the Drought Tanker Dashboard.
"""

import enum
from sqlalchemy import Column, Integer, String, Date, DateTime, Float, Text, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from datetime import date, datetime


class RiskLevel(str, enum.Enum):
    green = "Green"
    orange = "Orange"
    red = "Red"


class TankerStatus(str, enum.Enum):
    available = "Available"
    in_transit = "In Transit"
    delivering = "Delivering"
    maintenance = "Maintenance"


class AlertType(str, enum.Enum):
    critical = "Critical"
    warning = "Warning"
    info = "Info"


class DeploymentStatus(str, enum.Enum):
    pending = "Pending"
    delivered = "Delivered"
    cancelled = "Cancelled"


class Village(Base):
    __tablename__ = "villages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    block = Column(String(100))
    district = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False, index=True)
    population = Column(Integer)
    latitude = Column(Float)
    longitude = Column(Float)
    water_source = Column(String(100))
    base_water_demand = Column(Integer)

    # Relationships
    drought_metrics = relationship("DroughtMetric", back_populates="village")
    deployments = relationship("Deployment", back_populates="village")


class DroughtMetric(Base):
    __tablename__ = "drought_metrics"

    id = Column(Integer, primary_key=True, index=True)
    village_id = Column(Integer, ForeignKey("villages.id"), index=True)
    date = Column(Date, default=date.today, index=True)
    rainfall_deviation = Column(Float)
    groundwater_level = Column(Float)
    groundwater_velocity = Column(Float)
    water_stress_index = Column(Float)
    risk_level = Column(String(10))

    # Relationships
    village = relationship("Village", back_populates="drought_metrics")


class Tanker(Base):
    __tablename__ = "tankers"

    id = Column(Integer, primary_key=True, index=True)
    registration_no = Column(String(50), unique=True, index=True)
    capacity_liters = Column(Integer)
    current_load_percentage = Column(Integer, default=100)
    assigned_state = Column(String(100), index=True)
    assigned_district = Column(String(100), index=True)
    assigned_block = Column(String(100))
    # Not a foreign key: unknown villages are tolerated at registration
    assigned_village_id = Column(Integer, index=True)
    source_point = Column(String(200))
    status = Column(String(20), default=TankerStatus.available.value)
    current_lat = Column(Float)
    current_lng = Column(Float)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    deployments = relationship("Deployment", back_populates="tanker")


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(20))
    message = Column(Text)
    # Free references, not checked when an alert is raised
    location_id = Column(Integer, index=True)
    tanker_id = Column(Integer)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)
    status = Column(String(20), default="Active")


class Deployment(Base):
    __tablename__ = "deployments"

    id = Column(Integer, primary_key=True, index=True)
    tanker_id = Column(Integer, ForeignKey("tankers.id"), index=True)
    village_id = Column(Integer, ForeignKey("villages.id"))
    scheduled_date = Column(DateTime, default=datetime.utcnow)
    status = Column(String(20), default=DeploymentStatus.pending.value)
    volume_delivered = Column(Integer)
    cost_estimated = Column(Float)
    fuel_consumed = Column(Float)

    # Relationships
    tanker = relationship("Tanker", back_populates="deployments")
    village = relationship("Village", back_populates="deployments")
