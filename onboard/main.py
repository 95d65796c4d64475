# ========================================
# onboard/main.py
# ========================================

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from onboard.config import settings
from onboard.database import close_mongo_connection, connect_to_mongo, ensure_indexes
from onboard.dependencies import init_services
from onboard.errors import OnboardError
from onboard.realtime import ConnectionManager

# ===========================
# IMPORT ALL ROUTERS
# ===========================

# User & Auth
from onboard.routes.user import router as user_router

# Sessions
from onboard.routes.session import router as session_router
from onboard.routes.organization import router as organization_router

# Applications
from onboard.routes.application import router as application_router

# Wishlist
from onboard.routes.wishlist import router as wishlist_router

# Notifications (HTTP + WebSocket)
from onboard.routes.notification import router as notification_router

# Activity & Export
from onboard.routes.activity_log import router as activity_log_router
from onboard.routes.export import router as export_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# ===========================
# CREATE FASTAPI APP
# ===========================

app = FastAPI(
    title="Connect Onboard API",
    description="Onboarding sessions, applications with capacity control, and real-time notifications",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# ===========================
# CORS MIDDLEWARE
# ===========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===========================
# ERROR HANDLING
# ===========================

@app.exception_handler(OnboardError)
async def onboard_error_handler(request: Request, exc: OnboardError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "errors": exc.errors},
    )

# ===========================
# DATABASE EVENTS
# ===========================

@app.on_event("startup")
async def start_db():
    """Connect to MongoDB and build the services on startup"""
    client, db = await connect_to_mongo()
    await ensure_indexes(db)

    app.state.mongo_client = client
    init_services(app, db, ConnectionManager())
    logger.info("Services initialised")

@app.on_event("shutdown")
async def stop_db():
    """Close MongoDB connection on shutdown"""
    close_mongo_connection(getattr(app.state, "mongo_client", None))

# ===========================
# REGISTER ROUTERS
# ===========================

app.include_router(user_router)
app.include_router(session_router)
app.include_router(organization_router)
app.include_router(application_router)
app.include_router(wishlist_router)
app.include_router(notification_router)
app.include_router(activity_log_router)
app.include_router(export_router)

# ===========================
# ROOT ENDPOINTS
# ===========================

@app.get("/")
async def root():
    """API root endpoint with feature summary"""
    return {
        "status": "✅ Connect Onboard API Running",
        "version": "1.0.0",
        "documentation": "/docs",
        "endpoints": {
            "authentication": ["/users/register", "/users/login", "/users/profile"],
            "sessions": ["/sessions/discover", "/sessions/calendar", "/sessions/{id}"],
            "organization": [
                "/organization/sessions",
                "/organization/applications",
                "/organization/close",
                "/export/sessions/{id}/applicants"
            ],
            "job_seeker": ["/applications", "/wishlist"],
            "notifications": ["/notifications", "/ws/notifications"],
            "activity": ["/activity-logs"]
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": "1.0.0"
    }
