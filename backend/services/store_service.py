"""
Store service: write operations for villages, metrics, tankers, alerts and deployments.

Create operations commit by default. Pass ``commit=False`` to flush instead and
leave the transaction to the caller, as the seeder does.
"""

import logging
from typing import Dict, Any, Optional
from datetime import date, datetime
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import (
    Village, DroughtMetric, Tanker, Alert, Deployment,
    TankerStatus, AlertType, DeploymentStatus,
)
from errors import ValidationError, ConflictError, NotFoundError
from services.risk_service import classify_risk

logger = logging.getLogger(__name__)

TANKER_STATUSES = {s.value for s in TankerStatus}
ALERT_TYPES = {t.value for t in AlertType}
DEPLOYMENT_STATUSES = {s.value for s in DeploymentStatus}

TANKER_MUTABLE_FIELDS = ("status", "current_load_percentage", "current_lat", "current_lng")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _save(db: Session, obj, commit: bool = True) -> int:
    """Add a row and commit (or flush); the session is rolled back on failure."""
    db.add(obj)
    try:
        if commit:
            db.commit()
            db.refresh(obj)
        else:
            db.flush()
    except SQLAlchemyError:
        db.rollback()
        raise
    return obj.id


class StoreService:
    """Service for creating and mutating drought store records."""

    def create_village(self, db: Session, attrs: Dict[str, Any], commit: bool = True) -> int:
        """Create a village. Name, state and district are required."""
        for field in ("name", "state", "district"):
            if _blank(attrs.get(field)):
                raise ValidationError(f"Village {field} is required")

        village = Village(
            name=attrs["name"],
            block=attrs.get("block"),
            district=attrs["district"],
            state=attrs["state"],
            population=attrs.get("population"),
            latitude=attrs.get("latitude"),
            longitude=attrs.get("longitude"),
            water_source=attrs.get("water_source"),
            base_water_demand=attrs.get("base_water_demand"),
        )
        return _save(db, village, commit)

    def append_metric(self, db: Session, village_id: int, values: Dict[str, Any], commit: bool = True) -> int:
        """Append a drought metric row; the risk level is derived from WSI."""
        if db.get(Village, village_id) is None:
            raise NotFoundError(f"Village {village_id} not found")

        wsi = values.get("water_stress_index")
        if wsi is None:
            raise ValidationError("water_stress_index is required")
        wsi = float(wsi)
        if not 0 <= wsi <= 100:
            raise ValidationError(f"water_stress_index must be between 0 and 100, got {wsi}")

        metric = DroughtMetric(
            village_id=village_id,
            date=values.get("date") or date.today(),
            rainfall_deviation=values.get("rainfall_deviation"),
            groundwater_level=values.get("groundwater_level"),
            groundwater_velocity=values.get("groundwater_velocity"),
            water_stress_index=wsi,
            risk_level=classify_risk(wsi),
        )
        return _save(db, metric, commit)

    def register_tanker(self, db: Session, attrs: Dict[str, Any], commit: bool = True) -> int:
        """Register a tanker.

        The position is ``current_lat``/``current_lng`` when both are given,
        otherwise the assigned village's coordinates, or (0, 0).
        """
        registration_no = attrs.get("registration_no")
        if _blank(registration_no):
            raise ValidationError("registration_no is required")

        status = attrs.get("status") or TankerStatus.available.value
        if status not in TANKER_STATUSES:
            raise ValidationError(f"Unknown tanker status: {status}")

        if self._registration_exists(db, registration_no):
            raise ConflictError(f"Tanker {registration_no} is already registered")

        if attrs.get("current_lat") is not None and attrs.get("current_lng") is not None:
            lat, lng = attrs["current_lat"], attrs["current_lng"]
        else:
            lat, lng = self._resolve_coordinates(db, attrs.get("assigned_village_id"))

        tanker = Tanker(
            registration_no=registration_no,
            capacity_liters=attrs.get("capacity_liters"),
            current_load_percentage=attrs.get("current_load_percentage", 100),
            assigned_state=attrs.get("assigned_state"),
            assigned_district=attrs.get("assigned_district"),
            assigned_block=attrs.get("assigned_block"),
            assigned_village_id=attrs.get("assigned_village_id"),
            source_point=attrs.get("source_point"),
            status=status,
            current_lat=lat,
            current_lng=lng,
            last_updated=datetime.utcnow(),
        )
        try:
            tanker_id = _save(db, tanker, commit)
        except IntegrityError as e:
            # A concurrent insert of the same registration; anything else propagates
            if self._registration_exists(db, registration_no):
                raise ConflictError(f"Tanker {registration_no} is already registered") from e
            raise

        logger.info(f"Registered tanker {registration_no} (id={tanker_id}) at ({lat}, {lng})")
        return tanker_id

    def update_tanker(self, db: Session, tanker_id: int, changes: Dict[str, Any]) -> Tanker:
        """Update tanker status, load or position."""
        tanker = db.get(Tanker, tanker_id)
        if tanker is None:
            raise NotFoundError(f"Tanker {tanker_id} not found")

        status = changes.get("status")
        if status is not None and status not in TANKER_STATUSES:
            raise ValidationError(f"Unknown tanker status: {status}")

        load = changes.get("current_load_percentage")
        if load is not None and not 0 <= load <= 100:
            raise ValidationError(f"current_load_percentage must be between 0 and 100, got {load}")

        for field in TANKER_MUTABLE_FIELDS:
            if changes.get(field) is not None:
                setattr(tanker, field, changes[field])
        tanker.last_updated = datetime.utcnow()

        db.commit()
        db.refresh(tanker)
        return tanker

    def create_alert(self, db: Session, attrs: Dict[str, Any], commit: bool = True) -> int:
        """Create an alert. Village and tanker references are not checked."""
        alert_type = attrs.get("type")
        if alert_type not in ALERT_TYPES:
            raise ValidationError(f"Unknown alert type: {alert_type}")

        alert = Alert(
            type=alert_type,
            message=attrs.get("message"),
            location_id=attrs.get("location_id"),
            tanker_id=attrs.get("tanker_id"),
            timestamp=attrs.get("timestamp") or datetime.utcnow(),
            status=attrs.get("status") or "Active",
        )
        return _save(db, alert, commit)

    def resolve_alert(self, db: Session, alert_id: int) -> None:
        alert = db.get(Alert, alert_id)
        if alert is None:
            raise NotFoundError(f"Alert {alert_id} not found")

        alert.status = "Resolved"
        db.commit()

    def create_deployment(self, db: Session, attrs: Dict[str, Any], commit: bool = True) -> int:
        """Record a tanker deployment to a village."""
        tanker_id = attrs.get("tanker_id")
        if tanker_id is None or db.get(Tanker, tanker_id) is None:
            raise NotFoundError(f"Tanker {tanker_id} not found")

        village_id = attrs.get("village_id")
        if village_id is not None and db.get(Village, village_id) is None:
            raise NotFoundError(f"Village {village_id} not found")

        status = attrs.get("status") or DeploymentStatus.pending.value
        if status not in DEPLOYMENT_STATUSES:
            raise ValidationError(f"Unknown deployment status: {status}")

        deployment = Deployment(
            tanker_id=tanker_id,
            village_id=village_id,
            scheduled_date=attrs.get("scheduled_date") or datetime.utcnow(),
            status=status,
            volume_delivered=attrs.get("volume_delivered"),
            cost_estimated=attrs.get("cost_estimated"),
            fuel_consumed=attrs.get("fuel_consumed"),
        )
        return _save(db, deployment, commit)

    def count_villages(self, db: Session) -> int:
        return db.query(func.count(Village.id)).scalar()

    def _registration_exists(self, db: Session, registration_no: str) -> bool:
        return db.query(Tanker.id).filter(Tanker.registration_no == registration_no).first() is not None

    def _resolve_coordinates(self, db: Session, village_id: Optional[int]):
        """Coordinates of the assigned village, defaulting to (0, 0)."""
        if village_id is None:
            return 0.0, 0.0

        village = db.get(Village, village_id)
        if village is None:
            logger.warning(f"Assigned village {village_id} not found, defaulting tanker position to (0, 0)")
            return 0.0, 0.0

        return village.latitude or 0.0, village.longitude or 0.0
