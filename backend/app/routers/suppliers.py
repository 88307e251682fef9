from fastapi import APIRouter, Depends, Query, status

from app.deps import get_store
from app.models.supplier import SupplierType
from app.schemas.finance import ExpenseOut
from app.schemas.supplier import (
    SupplierCreate,
    SupplierInvoiceCreate,
    SupplierInvoiceOut,
    SupplierInvoiceUpdate,
    SupplierOut,
    SupplierPaymentCreate,
    SupplierPaymentOut,
    SupplierUpdate,
)
from app.services.clinic_store import ClinicStore

router = APIRouter(prefix="/suppliers", tags=["suppliers"])
invoices_router = APIRouter(prefix="/supplier-invoices", tags=["suppliers"])


@router.get("", response_model=list[SupplierOut])
def list_suppliers(
    store: ClinicStore = Depends(get_store),
    supplier_type: SupplierType | None = Query(default=None, alias="type"),
):
    return store.list_suppliers(supplier_type=supplier_type)


@router.post("", response_model=SupplierOut, status_code=status.HTTP_201_CREATED)
def create_supplier(payload: SupplierCreate, store: ClinicStore = Depends(get_store)):
    return store.add_supplier(payload.model_dump())


@router.get("/{supplier_id}", response_model=SupplierOut)
def get_supplier(supplier_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_supplier(supplier_id)


@router.patch("/{supplier_id}", response_model=SupplierOut)
def update_supplier(supplier_id: int, payload: SupplierUpdate, store: ClinicStore = Depends(get_store)):
    return store.update_supplier(supplier_id, payload.model_dump(exclude_unset=True))


@invoices_router.get("", response_model=list[SupplierInvoiceOut])
def list_supplier_invoices(
    store: ClinicStore = Depends(get_store),
    supplier_id: int | None = Query(default=None),
):
    return store.list_supplier_invoices(supplier_id=supplier_id)


@invoices_router.post("", response_model=SupplierInvoiceOut, status_code=status.HTTP_201_CREATED)
def create_supplier_invoice(payload: SupplierInvoiceCreate, store: ClinicStore = Depends(get_store)):
    return store.add_supplier_invoice(payload.model_dump())


@invoices_router.get("/{invoice_id}", response_model=SupplierInvoiceOut)
def get_supplier_invoice(invoice_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_supplier_invoice(invoice_id)


@invoices_router.patch("/{invoice_id}", response_model=SupplierInvoiceOut)
def update_supplier_invoice(
    invoice_id: int, payload: SupplierInvoiceUpdate, store: ClinicStore = Depends(get_store)
):
    return store.update_supplier_invoice(invoice_id, payload.model_dump(exclude_unset=True))


@invoices_router.post("/{invoice_id}/payments", response_model=SupplierPaymentOut)
def pay_supplier_invoice(
    invoice_id: int, payload: SupplierPaymentCreate, store: ClinicStore = Depends(get_store)
):
    expense, invoice = store.record_supplier_payment(
        invoice_id, payload.amount_pence, payload.date, payload.description
    )
    return SupplierPaymentOut(
        paid=True,
        expense=ExpenseOut.model_validate(expense),
        invoice=SupplierInvoiceOut.model_validate(invoice),
    )


@invoices_router.post("/{invoice_id}/pay-remaining", response_model=SupplierPaymentOut)
def pay_remaining(invoice_id: int, store: ClinicStore = Depends(get_store)):
    result = store.pay_remaining(invoice_id)
    if result is None:
        invoice = store.get_supplier_invoice(invoice_id)
        return SupplierPaymentOut(paid=False, invoice=SupplierInvoiceOut.model_validate(invoice))
    expense, invoice = result
    return SupplierPaymentOut(
        paid=True,
        expense=ExpenseOut.model_validate(expense),
        invoice=SupplierInvoiceOut.model_validate(invoice),
    )
