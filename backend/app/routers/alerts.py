from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from app.deps import get_store
from app.schemas.reports import AlertOut
from app.services.alerts import iter_alerts
from app.services.clinic_store import ClinicStore

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=list[AlertOut])
def list_alerts(
    store: ClinicStore = Depends(get_store),
    low_stock_threshold: int | None = Query(default=None, ge=0),
    lab_case_days: int | None = Query(default=None, ge=0),
):
    now = datetime.now(timezone.utc)
    return [
        AlertOut(
            kind=alert.kind,
            entity_id=alert.entity_id,
            title=alert.title,
            due_at=alert.due_at,
            detail=alert.detail,
        )
        for alert in iter_alerts(
            now,
            store.snapshot(),
            low_stock_threshold=low_stock_threshold,
            lab_case_threshold_days=lab_case_days,
        )
    ]
