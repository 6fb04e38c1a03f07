"""
Query service for dashboard statistics, listings and usage reports.
"""

import logging
from dataclasses import dataclass
from typing import Optional, List, Dict, Any
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from models import Village, DroughtMetric, Tanker, Alert, Deployment, RiskLevel, TankerStatus
from services.risk_service import WATER_GAP_COEFFICIENT

logger = logging.getLogger(__name__)

VILLAGE_FIELDS = (
    "id", "name", "block", "district", "state", "population",
    "latitude", "longitude", "water_source", "base_water_demand",
)

TANKER_FIELDS = (
    "id", "registration_no", "capacity_liters", "current_load_percentage",
    "assigned_state", "assigned_district", "assigned_block", "assigned_village_id",
    "source_point", "status", "current_lat", "current_lng", "last_updated",
)


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class LocationFilter:
    """Optional state/district filter.

    Each field is applied on its own; a district is never checked against the
    state. Blank or non-string values count as absent.
    """

    state: Optional[str] = None
    district: Optional[str] = None

    @classmethod
    def from_params(cls, state: Any = None, district: Any = None) -> "LocationFilter":
        return cls(state=_clean(state), district=_clean(district))

    def apply(self, query, state_column, district_column):
        """Add bound equality predicates to a Query or Select."""
        if self.state:
            query = query.filter(state_column == self.state)
        if self.district:
            query = query.filter(district_column == self.district)
        return query


def latest_metric_ids():
    """Select the newest metric id per village (insertion order, not date)."""
    return select(func.max(DroughtMetric.id)).group_by(DroughtMetric.village_id)


class QueryService:
    """Service for read-side aggregation used by the dashboard."""

    def dashboard_stats(self, db: Session, location: LocationFilter) -> Dict[str, Any]:
        """Headline numbers for the dashboard cards."""
        village_ids = location.apply(select(Village.id), Village.state, Village.district)

        total_villages = location.apply(
            db.query(func.count(Village.id)), Village.state, Village.district
        ).scalar()

        # Counts every Red metric row, including superseded ones
        critical_villages = db.query(func.count(DroughtMetric.id)).filter(
            DroughtMetric.risk_level == RiskLevel.red.value,
            DroughtMetric.village_id.in_(village_ids),
        ).scalar()

        active_tankers = location.apply(
            db.query(func.count(Tanker.id)).filter(Tanker.status == TankerStatus.in_transit.value),
            Tanker.assigned_state,
            Tanker.assigned_district,
        ).scalar()

        total_demand = location.apply(
            db.query(func.coalesce(func.sum(Village.base_water_demand), 0)),
            Village.state,
            Village.district,
        ).scalar()

        stats = {
            "totalVillages": total_villages or 0,
            "criticalVillages": critical_villages or 0,
            "activeTankers": active_tankers or 0,
            "waterGapLiters": float(total_demand or 0) * WATER_GAP_COEFFICIENT,
        }
        logger.debug(f"Dashboard stats for {location}: {stats}")
        return stats

    def villages_with_metrics(self, db: Session, location: LocationFilter) -> List[Dict[str, Any]]:
        """One row per village, joined to its current metric."""
        query = db.query(Village, DroughtMetric).join(
            DroughtMetric, DroughtMetric.village_id == Village.id
        ).filter(DroughtMetric.id.in_(latest_metric_ids()))
        query = location.apply(query, Village.state, Village.district)

        rows = []
        for village, metric in query.order_by(Village.id).all():
            row = {field: getattr(village, field) for field in VILLAGE_FIELDS}
            row.update({
                "risk_level": metric.risk_level,
                "water_stress_index": metric.water_stress_index,
                "rainfall_deviation": metric.rainfall_deviation,
                "groundwater_level": metric.groundwater_level,
            })
            rows.append(row)
        return rows

    def current_red_villages(self, db: Session, location: LocationFilter, limit: int = 10) -> List[Dict[str, Any]]:
        """Villages whose current metric is Red, most stressed first."""
        rows = [
            row for row in self.villages_with_metrics(db, location)
            if row["risk_level"] == RiskLevel.red.value
        ]
        rows.sort(key=lambda r: r["water_stress_index"] or 0, reverse=True)
        return rows[:limit]

    def tanker_list(self, db: Session, location: LocationFilter) -> List[Dict[str, Any]]:
        query = location.apply(db.query(Tanker), Tanker.assigned_state, Tanker.assigned_district)
        return [
            {field: getattr(tanker, field) for field in TANKER_FIELDS}
            for tanker in query.order_by(Tanker.id).all()
        ]

    def alert_list(self, db: Session, location: LocationFilter) -> List[Dict[str, Any]]:
        """Alerts joined with village and tanker names, newest first."""
        query = db.query(
            Alert,
            Village.name.label("village_name"),
            Village.district.label("district"),
            Tanker.registration_no.label("tanker_no"),
        ).outerjoin(
            Village, Alert.location_id == Village.id
        ).outerjoin(
            Tanker, Alert.tanker_id == Tanker.id
        )
        # Alerts without a village drop out once a filter is set
        query = location.apply(query, Village.state, Village.district)
        query = query.order_by(Alert.timestamp.desc(), Alert.id.desc())

        return [
            {
                "id": alert.id,
                "type": alert.type,
                "message": alert.message,
                "location_id": alert.location_id,
                "tanker_id": alert.tanker_id,
                "timestamp": alert.timestamp,
                "status": alert.status,
                "village_name": village_name,
                "district": district,
                "tanker_no": tanker_no,
            }
            for alert, village_name, district, tanker_no in query.all()
        ]

    def usage_report(self, db: Session, location: LocationFilter) -> List[Dict[str, Any]]:
        """Volume, trips and fuel per tanker; tankers without deployments are excluded."""
        query = db.query(
            Tanker.registration_no,
            func.sum(Deployment.volume_delivered).label("total_volume"),
            func.count(Deployment.id).label("trips"),
            func.sum(Deployment.fuel_consumed).label("total_fuel"),
        ).join(Deployment, Deployment.tanker_id == Tanker.id)
        query = location.apply(query, Tanker.assigned_state, Tanker.assigned_district)
        query = query.group_by(Tanker.id, Tanker.registration_no).order_by(Tanker.id)

        return [
            {
                "registration_no": row.registration_no,
                "total_volume": row.total_volume,
                "trips": row.trips,
                "total_fuel": row.total_fuel,
            }
            for row in query.all()
        ]

    def location_hierarchy(self, db: Session) -> Dict[str, List[Dict[str, Any]]]:
        """Distinct states, districts, blocks and the village list. Unfiltered."""
        states = db.query(Village.state).distinct().order_by(Village.state).all()
        districts = db.query(Village.state, Village.district).distinct().order_by(
            Village.state, Village.district
        ).all()
        blocks = db.query(Village.district, Village.block).distinct().order_by(
            Village.district, Village.block
        ).all()
        villages = db.query(
            Village.id, Village.name, Village.block, Village.district, Village.state
        ).order_by(Village.id).all()

        return {
            "states": [{"state": s.state} for s in states],
            "districts": [{"state": d.state, "district": d.district} for d in districts],
            "blocks": [{"district": b.district, "block": b.block} for b in blocks],
            "villages": [
                {"id": v.id, "name": v.name, "block": v.block, "district": v.district, "state": v.state}
                for v in villages
            ],
        }
