from fastapi import APIRouter, Depends, Query, status

from app.deps import get_store
from app.schemas.treatment import (
    TreatmentDefinitionCreate,
    TreatmentDefinitionOut,
    TreatmentDefinitionUpdate,
    TreatmentRecordCreate,
    TreatmentRecordOut,
    TreatmentRecordUpdate,
)
from app.services.clinic_store import ClinicStore

router = APIRouter(prefix="/treatment-definitions", tags=["treatments"])
records_router = APIRouter(prefix="/treatment-records", tags=["treatments"])


@router.get("", response_model=list[TreatmentDefinitionOut])
def list_treatment_definitions(store: ClinicStore = Depends(get_store)):
    return store.list_treatment_definitions()


@router.post("", response_model=TreatmentDefinitionOut, status_code=status.HTTP_201_CREATED)
def create_treatment_definition(
    payload: TreatmentDefinitionCreate, store: ClinicStore = Depends(get_store)
):
    return store.add_treatment_definition(payload.model_dump())


@router.get("/{definition_id}", response_model=TreatmentDefinitionOut)
def get_treatment_definition(definition_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_treatment_definition(definition_id)


@router.patch("/{definition_id}", response_model=TreatmentDefinitionOut)
def update_treatment_definition(
    definition_id: int,
    payload: TreatmentDefinitionUpdate,
    store: ClinicStore = Depends(get_store),
):
    return store.update_treatment_definition(definition_id, payload.model_dump(exclude_unset=True))


@records_router.get("", response_model=list[TreatmentRecordOut])
def list_treatment_records(
    store: ClinicStore = Depends(get_store),
    patient_id: int | None = Query(default=None),
    dentist_id: int | None = Query(default=None),
):
    return store.list_treatment_records(patient_id=patient_id, dentist_id=dentist_id)


@records_router.post("", response_model=TreatmentRecordOut, status_code=status.HTTP_201_CREATED)
def create_treatment_record(payload: TreatmentRecordCreate, store: ClinicStore = Depends(get_store)):
    return store.add_treatment_record(payload.model_dump())


@records_router.get("/{record_id}", response_model=TreatmentRecordOut)
def get_treatment_record(record_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_treatment_record(record_id)


@records_router.patch("/{record_id}", response_model=TreatmentRecordOut)
def update_treatment_record(
    record_id: int, payload: TreatmentRecordUpdate, store: ClinicStore = Depends(get_store)
):
    return store.update_treatment_record(record_id, payload.model_dump(exclude_unset=True))
