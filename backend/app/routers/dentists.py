from fastapi import APIRouter, Depends, status

from app.deps import get_store
from app.schemas.dentist import DentistCreate, DentistOut, DentistUpdate
from app.services.clinic_store import ClinicStore

router = APIRouter(prefix="/dentists", tags=["dentists"])


@router.get("", response_model=list[DentistOut])
def list_dentists(store: ClinicStore = Depends(get_store)):
    return store.list_dentists()


@router.post("", response_model=DentistOut, status_code=status.HTTP_201_CREATED)
def create_dentist(payload: DentistCreate, store: ClinicStore = Depends(get_store)):
    return store.add_dentist(payload.model_dump())


@router.get("/{dentist_id}", response_model=DentistOut)
def get_dentist(dentist_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_dentist(dentist_id)


@router.patch("/{dentist_id}", response_model=DentistOut)
def update_dentist(dentist_id: int, payload: DentistUpdate, store: ClinicStore = Depends(get_store)):
    return store.update_dentist(dentist_id, payload.model_dump(exclude_unset=True))
