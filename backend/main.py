"""
FastAPI application for the Drought Tanker Dashboard.
"""

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import uvicorn
import os

from database import get_db, create_tables, SessionLocal
from errors import DroughtSystemError
from schemas import (
    VillageCreate, VillageWithMetric,
    DroughtMetricCreate,
    TankerCreate, TankerUpdate, TankerResponse,
    AlertCreate, AlertResponse,
    DeploymentCreate,
    DashboardStats, UsageReportRow, LocationHierarchy, CreatedResponse,
    ChatRequest, ChatResponse,
)
from services.risk_service import classify_risk
from services.store_service import StoreService
from services.query_service import QueryService, LocationFilter
from services.seed_service import SeedService
from services.chat_service import ChatService

# Setup logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

SEED_ON_STARTUP = os.getenv("SEED_ON_STARTUP", "true").lower() == "true"

# Initialize FastAPI app
app = FastAPI(
    title="Drought Tanker Dashboard",
    description="Village drought risk and water-tanker logistics for district administrations",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS origins from environment (comma-separated list)
allowed_origins = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services
store_service = StoreService()
query_service = QueryService()
seed_service = SeedService(store=store_service)
chat_service = ChatService()


@app.exception_handler(DroughtSystemError)
async def drought_system_error_handler(request: Request, exc: DroughtSystemError):
    logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.on_event("startup")
async def startup_event():
    """Initialize database tables and seed an empty store on startup."""
    create_tables()
    if SEED_ON_STARTUP:
        with SessionLocal() as db:
            seed_service.seed_if_empty(db)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Drought Tanker Dashboard API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Dashboard endpoints
@app.get("/api/dashboard/stats", response_model=DashboardStats)
def get_dashboard_stats(
    state: Optional[str] = None,
    district: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get headline statistics with optional state/district filter."""
    return query_service.dashboard_stats(db, LocationFilter.from_params(state, district))


# Village endpoints
@app.get("/api/villages", response_model=List[VillageWithMetric])
def get_villages(
    state: Optional[str] = None,
    district: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get villages joined to their current drought metric."""
    return query_service.villages_with_metrics(db, LocationFilter.from_params(state, district))


@app.post("/api/villages", response_model=CreatedResponse)
def create_village(village: VillageCreate, db: Session = Depends(get_db)):
    """Provision a new village."""
    village_id = store_service.create_village(db, village.model_dump())
    return {"success": True, "id": village_id}


@app.post("/api/villages/{village_id}/metrics")
def append_metric(village_id: int, metric: DroughtMetricCreate, db: Session = Depends(get_db)):
    """Append a drought metric observation to a village."""
    metric_id = store_service.append_metric(db, village_id, metric.model_dump())
    return {
        "success": True,
        "id": metric_id,
        "risk_level": classify_risk(metric.water_stress_index),
    }


# Tanker endpoints
@app.get("/api/tankers", response_model=List[TankerResponse])
def get_tankers(
    state: Optional[str] = None,
    district: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get tankers with optional assigned state/district filter."""
    return query_service.tanker_list(db, LocationFilter.from_params(state, district))


@app.post("/api/tankers", response_model=CreatedResponse)
def register_tanker(tanker: TankerCreate, db: Session = Depends(get_db)):
    """Register a new tanker."""
    tanker_id = store_service.register_tanker(db, tanker.model_dump())
    return {"success": True, "id": tanker_id}


@app.patch("/api/tankers/{tanker_id}", response_model=TankerResponse)
def update_tanker(tanker_id: int, changes: TankerUpdate, db: Session = Depends(get_db)):
    """Update tanker status, load or position."""
    return store_service.update_tanker(db, tanker_id, changes.model_dump(exclude_unset=True))


# Location endpoints
@app.get("/api/locations/hierarchy", response_model=LocationHierarchy)
def get_location_hierarchy(db: Session = Depends(get_db)):
    """Get the full state/district/block/village hierarchy."""
    return query_service.location_hierarchy(db)


# Alert endpoints
@app.get("/api/alerts", response_model=List[AlertResponse])
def get_alerts(
    state: Optional[str] = None,
    district: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get alerts, newest first, with optional village state/district filter."""
    return query_service.alert_list(db, LocationFilter.from_params(state, district))


@app.post("/api/alerts", response_model=CreatedResponse)
def create_alert(alert: AlertCreate, db: Session = Depends(get_db)):
    """Raise a new alert."""
    alert_id = store_service.create_alert(db, alert.model_dump())
    return {"success": True, "id": alert_id}


@app.post("/api/alerts/{alert_id}/resolve")
def resolve_alert(alert_id: int, db: Session = Depends(get_db)):
    """Mark an alert as resolved."""
    store_service.resolve_alert(db, alert_id)
    return {"success": True}


# Deployment and report endpoints
@app.post("/api/deployments", response_model=CreatedResponse)
def create_deployment(deployment: DeploymentCreate, db: Session = Depends(get_db)):
    """Record a tanker deployment."""
    deployment_id = store_service.create_deployment(db, deployment.model_dump())
    return {"success": True, "id": deployment_id}


@app.get("/api/reports/usage", response_model=List[UsageReportRow])
def get_usage_report(
    state: Optional[str] = None,
    district: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get delivered volume, trips and fuel per tanker."""
    return query_service.usage_report(db, LocationFilter.from_params(state, district))


# Chat endpoint
@app.post("/api/chat", response_model=ChatResponse)
def chat(request: ChatRequest, db: Session = Depends(get_db)):
    """Answer a question about the current drought situation."""
    location = LocationFilter.from_params(request.state, request.district)
    context = {
        "filter": {"state": location.state, "district": location.district},
        "stats": query_service.dashboard_stats(db, location),
        "critical_villages": [
            {
                "name": v["name"],
                "district": v["district"],
                "state": v["state"],
                "water_stress_index": round(v["water_stress_index"], 1),
                "rainfall_deviation": v["rainfall_deviation"],
                "groundwater_level": v["groundwater_level"],
            }
            for v in query_service.current_red_villages(db, location)
        ],
    }
    return {"reply": chat_service.get_chat_response(request.message, context)}


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True
    )
