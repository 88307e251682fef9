from fastapi import APIRouter, Depends, Query, status

from app.deps import get_store
from app.schemas.inventory import InventoryItemCreate, InventoryItemOut, InventoryItemUpdate
from app.services.clinic_store import ClinicStore

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("", response_model=list[InventoryItemOut])
def list_inventory_items(
    store: ClinicStore = Depends(get_store),
    supplier_id: int | None = Query(default=None),
):
    return store.list_inventory_items(supplier_id=supplier_id)


@router.post("", response_model=InventoryItemOut, status_code=status.HTTP_201_CREATED)
def create_inventory_item(payload: InventoryItemCreate, store: ClinicStore = Depends(get_store)):
    return store.add_inventory_item(payload.model_dump())


@router.get("/{item_id}", response_model=InventoryItemOut)
def get_inventory_item(item_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_inventory_item(item_id)


@router.patch("/{item_id}", response_model=InventoryItemOut)
def update_inventory_item(
    item_id: int, payload: InventoryItemUpdate, store: ClinicStore = Depends(get_store)
):
    return store.update_inventory_item(item_id, payload.model_dump(exclude_unset=True))
