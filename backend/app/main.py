import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.settings import settings, validate_settings
from app.db.session import SessionLocal, engine
from app.models import Base
from app.routers.alerts import router as alerts_router
from app.routers.appointments import router as appointments_router
from app.routers.audit import router as audit_router
from app.routers.auth import router as auth_router
from app.routers.dentists import router as dentists_router
from app.routers.inventory import router as inventory_router
from app.routers.lab_cases import router as lab_cases_router
from app.routers.patients import router as patients_router
from app.routers.payments import expenses_router, router as payments_router
from app.routers.reports import router as reports_router
from app.routers.suppliers import invoices_router as supplier_invoices_router
from app.routers.suppliers import router as suppliers_router
from app.routers.treatments import records_router as treatment_records_router
from app.routers.treatments import router as treatment_definitions_router
from app.services.clinic_store import ClinicStoreError, RecordNotFoundError
from app.services.snapshot import SnapshotValidationError
from app.services.transitions import InvalidTransitionError
from app.services.users import seed_initial_admin

app = FastAPI(title="Clinic Manager API", version="0.1.0")
logger = logging.getLogger("clinic_manager.startup")
error_logger = logging.getLogger("clinic_manager.errors")


@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(ClinicStoreError)
async def store_error_handler(request: Request, exc: ClinicStoreError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(SnapshotValidationError)
async def snapshot_error_handler(request: Request, exc: SnapshotValidationError):
    request_id = request.headers.get("x-request-id")
    error_logger.error(
        "Stored %s %s failed validation: %s",
        exc.entity_type,
        exc.entity_id,
        exc.errors,
        extra={"request_id": request_id},
    )
    payload = {"detail": f"Stored {exc.entity_type} {exc.entity_id} is invalid"}
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = request.headers.get("x-request-id")
    error_logger.exception("Unhandled server error", extra={"request_id": request_id})
    payload = {"detail": "Internal server error"}
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=500, content=payload)


@app.on_event("startup")
def startup():
    validate_settings(settings)
    Base.metadata.create_all(bind=engine)

    admin_email = str(settings.admin_email)
    admin_password = settings.admin_password.strip()
    db: Session = SessionLocal()
    try:
        created = seed_initial_admin(db, email=admin_email, password=admin_password)
        if created:
            logger.info("Initial admin created for %s (must change password on first login).", admin_email)
        else:
            logger.info("Initial admin not created (users already exist).")
    finally:
        db.close()


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(patients_router)
app.include_router(dentists_router)
app.include_router(appointments_router)
app.include_router(treatment_definitions_router)
app.include_router(treatment_records_router)
app.include_router(payments_router)
app.include_router(expenses_router)
app.include_router(inventory_router)
app.include_router(suppliers_router)
app.include_router(supplier_invoices_router)
app.include_router(lab_cases_router)
app.include_router(alerts_router)
app.include_router(reports_router)
app.include_router(audit_router)
