import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from app.core.config import settings
from app.core.database import SessionLocal
from app.core.errors import register_error_handlers
from app.api.routes.properties import router as properties_router
from app.api.routes.leases import router as leases_router
from app.api.routes.payments import router as payments_router
from app.api.routes.deposits import router as deposits_router
from app.api.routes.audit_logs import router as audit_logs_router
from app.api.routes.sweeps import router as sweeps_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# 1) Create the app FIRST
app = FastAPI(title="Lease Ledger Backend")

# 2) Add CORS Middleware BEFORE routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        settings.APP_BASE_URL,
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# 3) Include routers AFTER app is created
app.include_router(properties_router)
app.include_router(leases_router)
app.include_router(payments_router)
app.include_router(deposits_router)
app.include_router(audit_logs_router)
app.include_router(sweeps_router)


# 4) Health check endpoints
@app.get("/health")
def health():
    return {"ok": True, "service": "lease-ledger"}


@app.get("/db-health")
def db_health():
    db = SessionLocal()
    try:
        db.execute(text("select 1"))
        return {"ok": True, "db": "connected"}
    finally:
        db.close()
