from fastapi import APIRouter, Depends, Query, status

from app.deps import get_store
from app.models.lab_case import LabCaseStatus
from app.schemas.lab_case import LabCaseCreate, LabCaseOut, LabCaseUpdate
from app.services.clinic_store import ClinicStore

router = APIRouter(prefix="/lab-cases", tags=["lab-cases"])


@router.get("", response_model=list[LabCaseOut])
def list_lab_cases(
    store: ClinicStore = Depends(get_store),
    status_filter: LabCaseStatus | None = Query(default=None, alias="status"),
    patient_id: int | None = Query(default=None),
):
    return store.list_lab_cases(status=status_filter, patient_id=patient_id)


@router.post("", response_model=LabCaseOut, status_code=status.HTTP_201_CREATED)
def create_lab_case(payload: LabCaseCreate, store: ClinicStore = Depends(get_store)):
    return store.add_lab_case(payload.model_dump())


@router.get("/{case_id}", response_model=LabCaseOut)
def get_lab_case(case_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_lab_case(case_id)


@router.patch("/{case_id}", response_model=LabCaseOut)
def update_lab_case(case_id: int, payload: LabCaseUpdate, store: ClinicStore = Depends(get_store)):
    return store.update_lab_case(case_id, payload.model_dump(exclude_unset=True))
