import uuid

from fastapi import APIRouter, status

from billbook.api.deps import Store
from billbook.schemas.catalog import ItemCreate, ItemUpdate, ItemResponse, ItemListResponse
from billbook.services.item_service import ItemService


router = APIRouter(tags=["Items"])


@router.get("", response_model=ItemListResponse)
async def list_items(store: Store):
    items = await ItemService(store).list_items()
    return ItemListResponse(
        items=[ItemResponse.model_validate(i) for i in items],
        total=len(items),
    )


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(data: ItemCreate, store: Store):
    item = await ItemService(store).create_item(data)
    return ItemResponse.model_validate(item)


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: uuid.UUID, store: Store):
    item = await ItemService(store).get_item(item_id)
    return ItemResponse.model_validate(item)


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(item_id: uuid.UUID, data: ItemUpdate, store: Store):
    item = await ItemService(store).update_item(item_id, data)
    return ItemResponse.model_validate(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: uuid.UUID, store: Store):
    await ItemService(store).delete_item(item_id)
