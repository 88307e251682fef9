from fastapi import APIRouter, Depends, Query, status

from app.deps import get_store
from app.schemas.finance import (
    ExpenseCreate,
    ExpenseOut,
    ExpenseUpdate,
    PaymentCreate,
    PaymentOut,
    PaymentUpdate,
)
from app.services.clinic_store import ClinicStore

router = APIRouter(prefix="/payments", tags=["payments"])
expenses_router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("", response_model=list[PaymentOut])
def list_payments(
    store: ClinicStore = Depends(get_store),
    patient_id: int | None = Query(default=None),
):
    return store.list_payments(patient_id=patient_id)


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(payload: PaymentCreate, store: ClinicStore = Depends(get_store)):
    return store.add_payment(payload.model_dump())


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(payment_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_payment(payment_id)


@router.patch("/{payment_id}", response_model=PaymentOut)
def update_payment(payment_id: int, payload: PaymentUpdate, store: ClinicStore = Depends(get_store)):
    return store.update_payment(payment_id, payload.model_dump(exclude_unset=True))


@expenses_router.get("", response_model=list[ExpenseOut])
def list_expenses(
    store: ClinicStore = Depends(get_store),
    supplier_id: int | None = Query(default=None),
):
    return store.list_expenses(supplier_id=supplier_id)


@expenses_router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(payload: ExpenseCreate, store: ClinicStore = Depends(get_store)):
    return store.add_expense(payload.model_dump())


@expenses_router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense(expense_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_expense(expense_id)


@expenses_router.patch("/{expense_id}", response_model=ExpenseOut)
def update_expense(expense_id: int, payload: ExpenseUpdate, store: ClinicStore = Depends(get_store)):
    return store.update_expense(expense_id, payload.model_dump(exclude_unset=True))
