"""
Pydantic schemas for API request/response models.
"""

import datetime as dt
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


# Village schemas
class VillageBase(BaseModel):
    name: str = Field(..., description="Village name")
    block: Optional[str] = Field(None, description="Block (administrative sub-unit)")
    district: str = Field(..., description="District name")
    state: str = Field(..., description="State name")
    population: Optional[int] = Field(None, description="Village population")
    latitude: Optional[float] = Field(None, description="Latitude")
    longitude: Optional[float] = Field(None, description="Longitude")
    water_source: Optional[str] = Field(None, description="Primary water source")
    base_water_demand: Optional[int] = Field(None, description="Base water demand in liters/day")


class VillageCreate(VillageBase):
    pass


class VillageWithMetric(VillageBase):
    id: int
    risk_level: Optional[str] = None
    water_stress_index: Optional[float] = None
    rainfall_deviation: Optional[float] = None
    groundwater_level: Optional[float] = None


# Drought metric schemas
class DroughtMetricCreate(BaseModel):
    date: Optional[dt.date] = Field(None, description="Observation date, defaults to today")
    rainfall_deviation: Optional[float] = Field(None, description="Rainfall deviation (%)")
    groundwater_level: Optional[float] = Field(None, description="Groundwater level")
    groundwater_velocity: Optional[float] = Field(None, description="Groundwater depletion velocity")
    water_stress_index: float = Field(..., description="Water stress index (0-100)")


# Tanker schemas
class TankerCreate(BaseModel):
    registration_no: str = Field(..., description="Unique registration number")
    capacity_liters: Optional[int] = Field(None, description="Tank capacity in liters")
    assigned_state: Optional[str] = Field(None, description="Assigned state")
    assigned_district: Optional[str] = Field(None, description="Assigned district")
    assigned_block: Optional[str] = Field(None, description="Assigned block")
    assigned_village_id: Optional[int] = Field(None, description="Assigned village id")
    source_point: Optional[str] = Field(None, description="Water source point")
    status: Optional[str] = Field("Available", description="Tanker status")


class TankerUpdate(BaseModel):
    status: Optional[str] = None
    current_load_percentage: Optional[int] = Field(None, ge=0, le=100)
    current_lat: Optional[float] = None
    current_lng: Optional[float] = None


class TankerResponse(BaseModel):
    id: int
    registration_no: str
    capacity_liters: Optional[int] = None
    current_load_percentage: Optional[int] = None
    assigned_state: Optional[str] = None
    assigned_district: Optional[str] = None
    assigned_block: Optional[str] = None
    assigned_village_id: Optional[int] = None
    source_point: Optional[str] = None
    status: Optional[str] = None
    current_lat: Optional[float] = None
    current_lng: Optional[float] = None
    last_updated: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


# Alert schemas
class AlertCreate(BaseModel):
    type: str = Field(..., description="Alert type: Critical, Warning or Info")
    message: str = Field(..., description="Alert message")
    location_id: Optional[int] = Field(None, description="Village id")
    tanker_id: Optional[int] = Field(None, description="Tanker id")


class AlertResponse(BaseModel):
    id: int
    type: Optional[str] = None
    message: Optional[str] = None
    location_id: Optional[int] = None
    tanker_id: Optional[int] = None
    timestamp: Optional[dt.datetime] = None
    status: Optional[str] = None
    village_name: Optional[str] = None
    district: Optional[str] = None
    tanker_no: Optional[str] = None


# Deployment schemas
class DeploymentCreate(BaseModel):
    tanker_id: int = Field(..., description="Tanker id")
    village_id: int = Field(..., description="Village id")
    scheduled_date: Optional[dt.datetime] = Field(None, description="Scheduled date")
    status: Optional[str] = Field("Pending", description="Deployment status")
    volume_delivered: Optional[int] = Field(None, description="Volume delivered in liters")
    cost_estimated: Optional[float] = Field(None, description="Estimated cost")
    fuel_consumed: Optional[float] = Field(None, description="Fuel consumed")


# Dashboard schemas
class DashboardStats(BaseModel):
    totalVillages: int
    criticalVillages: int
    activeTankers: int
    waterGapLiters: float


class UsageReportRow(BaseModel):
    registration_no: str
    total_volume: Optional[int] = None
    trips: int
    total_fuel: Optional[float] = None


class LocationHierarchy(BaseModel):
    states: List[Dict[str, Any]]
    districts: List[Dict[str, Any]]
    blocks: List[Dict[str, Any]]
    villages: List[Dict[str, Any]]


class CreatedResponse(BaseModel):
    success: bool = True
    id: int


# Chat schemas
class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, description="User question")
    state: Optional[str] = Field(None, description="State the user is looking at")
    district: Optional[str] = Field(None, description="District the user is looking at")


class ChatResponse(BaseModel):
    reply: str
