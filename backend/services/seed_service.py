"""
Seed service for populating an empty store with synthetic nationwide drought data.
"""

import logging
import os
from typing import Optional, List, Dict, Any
from datetime import date
import numpy as np
from sqlalchemy.orm import Session

from models import TankerStatus, AlertType, DeploymentStatus
from services.store_service import StoreService

logger = logging.getLogger(__name__)

VILLAGES_PER_DISTRICT = 3

# Rough bounding box for India, centred on (20, 78)
LAT_CENTER, LNG_CENTER, COORD_SPAN = 20.0, 78.0, 15.0

STATES_DATA = [
    {"name": "Andhra Pradesh", "districts": ["Anantapur", "Chittoor", "Kurnool"]},
    {"name": "Arunachal Pradesh", "districts": ["Tawang", "West Kameng"]},
    {"name": "Assam", "districts": ["Kamrup", "Dibrugarh"]},
    {"name": "Bihar", "districts": ["Patna", "Gaya", "Muzaffarpur"]},
    {"name": "Chhattisgarh", "districts": ["Raipur", "Bastar"]},
    {"name": "Goa", "districts": ["North Goa", "South Goa"]},
    {"name": "Gujarat", "districts": ["Ahmedabad", "Rajkot", "Kutch"]},
    {"name": "Haryana", "districts": ["Gurugram", "Hisar"]},
    {"name": "Himachal Pradesh", "districts": ["Shimla", "Kangra"]},
    {"name": "Jharkhand", "districts": ["Ranchi", "Dhanbad"]},
    {"name": "Karnataka", "districts": ["Bengaluru", "Mysuru", "Belagavi"]},
    {"name": "Kerala", "districts": ["Thiruvananthapuram", "Kochi"]},
    {"name": "Madhya Pradesh", "districts": ["Bhopal", "Indore", "Gwalior"]},
    {"name": "Maharashtra", "districts": ["Mumbai", "Pune", "Nagpur", "Latur", "Beed"]},
    {"name": "Manipur", "districts": ["Imphal East", "Imphal West"]},
    {"name": "Meghalaya", "districts": ["East Khasi Hills", "West Garo Hills"]},
    {"name": "Mizoram", "districts": ["Aizawl", "Lunglei"]},
    {"name": "Nagaland", "districts": ["Kohima", "Dimapur"]},
    {"name": "Odisha", "districts": ["Bhubaneswar", "Cuttack"]},
    {"name": "Punjab", "districts": ["Ludhiana", "Amritsar"]},
    {"name": "Rajasthan", "districts": ["Jaipur", "Jodhpur", "Udaipur"]},
    {"name": "Sikkim", "districts": ["Gangtok", "Namchi"]},
    {"name": "Tamil Nadu", "districts": ["Chennai", "Coimbatore", "Madurai"]},
    {"name": "Telangana", "districts": ["Hyderabad", "Warangal"]},
    {"name": "Tripura", "districts": ["Agartala", "Udaipur"]},
    {"name": "Uttar Pradesh", "districts": ["Lucknow", "Kanpur", "Varanasi"]},
    {"name": "Uttarakhand", "districts": ["Dehradun", "Haridwar"]},
    {"name": "West Bengal", "districts": ["Kolkata", "Darjeeling"]},
    {"name": "Delhi", "districts": ["New Delhi", "North Delhi"]},
    {"name": "Jammu & Kashmir", "districts": ["Srinagar", "Jammu"]},
    {"name": "Ladakh", "districts": ["Leh", "Kargil"]},
    {"name": "Puducherry", "districts": ["Puducherry", "Karaikal"]},
    {"name": "Andaman & Nicobar", "districts": ["Port Blair"]},
    {"name": "Chandigarh", "districts": ["Chandigarh"]},
    {"name": "Dadra & Nagar Haveli", "districts": ["Silvassa"]},
    {"name": "Lakshadweep", "districts": ["Kavaratti"]},
]

SEED_TANKERS = [
    {
        "registration_no": "MH-24-AB-1234", "capacity_liters": 10000,
        "status": TankerStatus.available.value,
        "assigned_state": "Maharashtra", "assigned_district": "Latur", "assigned_block": "Block A",
        "current_lat": 18.4088, "current_lng": 76.5604,
    },
    {
        "registration_no": "MH-24-CD-5678", "capacity_liters": 12000,
        "status": TankerStatus.in_transit.value,
        "assigned_state": "Maharashtra", "assigned_district": "Beed", "assigned_block": "Block B",
        "current_lat": 18.9891, "current_lng": 75.7601,
    },
    {
        "registration_no": "RJ-19-XY-9999", "capacity_liters": 15000,
        "status": TankerStatus.available.value,
        "assigned_state": "Rajasthan", "assigned_district": "Jodhpur", "assigned_block": "Block C",
        "current_lat": 26.2389, "current_lng": 73.0243,
    },
]


def _default_rng() -> np.random.Generator:
    random_state = os.getenv("SEED_RANDOM_STATE")
    return np.random.default_rng(int(random_state) if random_state else None)


def expected_village_count() -> int:
    return sum(len(s["districts"]) for s in STATES_DATA) * VILLAGES_PER_DISTRICT


class SeedService:
    """One-time generator of synthetic villages, metrics and fleet records."""

    def __init__(self, rng: Optional[np.random.Generator] = None, store: Optional[StoreService] = None):
        self.rng = rng if rng is not None else _default_rng()
        self.store = store or StoreService()

    def seed_if_empty(self, db: Session) -> bool:
        """Seed the store unless it already holds villages. Returns True if seeded.

        All rows are written in one transaction, so a failure leaves the store
        empty and the next run seeds it again.
        """
        existing = self.store.count_villages(db)
        if existing:
            logger.info(f"Store already holds {existing} villages, skipping seed")
            return False

        try:
            village_ids = self._seed_villages(db)
            tanker_ids = self._seed_tankers(db)
            self._seed_alerts(db, village_ids)
            self._seed_deployments(db, village_ids, tanker_ids)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Seeding failed, store left empty: {e}")
            raise

        logger.info(
            f"Seeded {len(village_ids)} villages across {len(STATES_DATA)} states "
            f"and {len(tanker_ids)} tankers"
        )
        return True

    def generate_village(self, state: str, district: str, index: int) -> Dict[str, Any]:
        population = int(self.rng.integers(500, 5500))
        return {
            "name": f"{district} Village {index}",
            "block": "Block A",
            "district": district,
            "state": state,
            "population": population,
            "latitude": LAT_CENTER + (self.rng.random() - 0.5) * COORD_SPAN,
            "longitude": LNG_CENTER + (self.rng.random() - 0.5) * COORD_SPAN,
            "water_source": "Borewell",
            "base_water_demand": population * 20,
        }

    def generate_metric(self) -> Dict[str, Any]:
        return {
            "date": date.today(),
            "rainfall_deviation": round(float(self.rng.random() * -60), 2),
            "groundwater_level": round(float(self.rng.random() * 50 + 20), 2),
            "groundwater_velocity": -1.2,
            "water_stress_index": float(self.rng.random() * 100),
        }

    def _seed_villages(self, db: Session) -> Dict[str, int]:
        """Create villages with one metric each; returns ids keyed by "state/name"."""
        village_ids = {}
        for state in STATES_DATA:
            for district in state["districts"]:
                for i in range(1, VILLAGES_PER_DISTRICT + 1):
                    attrs = self.generate_village(state["name"], district, i)
                    village_id = self.store.create_village(db, attrs, commit=False)
                    self.store.append_metric(db, village_id, self.generate_metric(), commit=False)
                    village_ids[f"{state['name']}/{attrs['name']}"] = village_id
        return village_ids

    def _seed_tankers(self, db: Session) -> List[int]:
        # Seed fleet starts at fixed depot positions rather than village coordinates
        return [self.store.register_tanker(db, attrs, commit=False) for attrs in SEED_TANKERS]

    def _seed_alerts(self, db: Session, village_ids: Dict[str, int]):
        self.store.create_alert(db, {
            "type": AlertType.critical.value,
            "message": "Latur Village 1 needs tanker urgently",
            "location_id": village_ids["Maharashtra/Latur Village 1"],
        }, commit=False)
        self.store.create_alert(db, {
            "type": AlertType.warning.value,
            "message": "Groundwater level critical in Latur Village 3",
            "location_id": village_ids["Maharashtra/Latur Village 3"],
        }, commit=False)

    def _seed_deployments(self, db: Session, village_ids: Dict[str, int], tanker_ids: List[int]):
        self.store.create_deployment(db, {
            "tanker_id": tanker_ids[0],
            "village_id": village_ids["Maharashtra/Latur Village 1"],
            "status": DeploymentStatus.delivered.value,
            "volume_delivered": 10000,
            "cost_estimated": 1500,
            "fuel_consumed": 45,
        }, commit=False)
        self.store.create_deployment(db, {
            "tanker_id": tanker_ids[1],
            "village_id": village_ids["Maharashtra/Beed Village 1"],
            "status": DeploymentStatus.delivered.value,
            "volume_delivered": 12000,
            "cost_estimated": 1800,
            "fuel_consumed": 52,
        }, commit=False)
