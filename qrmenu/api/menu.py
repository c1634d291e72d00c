"""
Menu taxonomy: categories, items, food types and materials.

Reads are public (the customer menu uses them); writes need the matching
admin area.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from qrmenu.api.dependencies import get_store, not_found, require_permission
from qrmenu.schemas import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    FoodType,
    FoodTypeCreate,
    FoodTypeUpdate,
    Material,
    MaterialCreate,
    MaterialUpdate,
    MenuItem,
    MenuItemCreate,
    MenuItemUpdate,
    MessageResponse,
    UserRecord,
)
from qrmenu.storage import BaseStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Menu"])


async def _require_category(storage: BaseStorage, category_id: str) -> None:
    if await storage.get_category(category_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Category {category_id} does not exist",
        )


# =============================================================================
# CATEGORIES
# =============================================================================

@router.get("/categories", response_model=list[Category])
async def list_categories(storage: BaseStorage = Depends(get_store)) -> list[Category]:
    return await storage.list_categories()


@router.get("/categories/{category_id}", response_model=Category)
async def get_category(category_id: str, storage: BaseStorage = Depends(get_store)) -> Category:
    category = await storage.get_category(category_id)
    if category is None:
        raise not_found("Category", category_id)
    return category


@router.post("/categories", response_model=Category, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    _: UserRecord = Depends(require_permission("categories")),
    storage: BaseStorage = Depends(get_store),
) -> Category:
    return await storage.create_category(payload.model_dump())


@router.patch("/categories/{category_id}", response_model=Category)
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    _: UserRecord = Depends(require_permission("categories")),
    storage: BaseStorage = Depends(get_store),
) -> Category:
    category = await storage.update_category(category_id, payload.model_dump(exclude_unset=True))
    if category is None:
        raise not_found("Category", category_id)
    return category


@router.delete("/categories/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: str,
    _: UserRecord = Depends(require_permission("categories")),
    storage: BaseStorage = Depends(get_store),
) -> MessageResponse:
    # Items keep their categoryId and drop out of the public menu
    if not await storage.delete_category(category_id):
        raise not_found("Category", category_id)
    return MessageResponse(message="Category deleted")


# =============================================================================
# ITEMS
# =============================================================================

@router.get("/items", response_model=list[MenuItem])
async def list_items(
    category_id: Optional[str] = Query(None, alias="categoryId"),
    storage: BaseStorage = Depends(get_store),
) -> list[MenuItem]:
    return await storage.list_items(category_id=category_id)


@router.get("/items/{item_id}", response_model=MenuItem)
async def get_item(item_id: str, storage: BaseStorage = Depends(get_store)) -> MenuItem:
    item = await storage.get_item(item_id)
    if item is None:
        raise not_found("Item", item_id)
    return item


@router.post("/items", response_model=MenuItem, status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: MenuItemCreate,
    _: UserRecord = Depends(require_permission("items")),
    storage: BaseStorage = Depends(get_store),
) -> MenuItem:
    await _require_category(storage, payload.category_id)
    item = await storage.create_item(payload.model_dump())
    logger.info(f"Menu item '{item.general_name}' created")
    return item


@router.patch("/items/{item_id}", response_model=MenuItem)
async def update_item(
    item_id: str,
    payload: MenuItemUpdate,
    _: UserRecord = Depends(require_permission("items")),
    storage: BaseStorage = Depends(get_store),
) -> MenuItem:
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("category_id") is not None:
        await _require_category(storage, changes["category_id"])
    item = await storage.update_item(item_id, changes)
    if item is None:
        raise not_found("Item", item_id)
    return item


@router.delete("/items/{item_id}", response_model=MessageResponse)
async def delete_item(
    item_id: str,
    _: UserRecord = Depends(require_permission("items")),
    storage: BaseStorage = Depends(get_store),
) -> MessageResponse:
    if not await storage.delete_item(item_id):
        raise not_found("Item", item_id)
    return MessageResponse(message="Item deleted")


# =============================================================================
# FOOD TYPES
# =============================================================================

@router.get("/food-types", response_model=list[FoodType])
async def list_food_types(storage: BaseStorage = Depends(get_store)) -> list[FoodType]:
    return await storage.list_food_types()


@router.get("/food-types/{food_type_id}", response_model=FoodType)
async def get_food_type(food_type_id: str, storage: BaseStorage = Depends(get_store)) -> FoodType:
    food_type = await storage.get_food_type(food_type_id)
    if food_type is None:
        raise not_found("Food type", food_type_id)
    return food_type


@router.post("/food-types", response_model=FoodType, status_code=status.HTTP_201_CREATED)
async def create_food_type(
    payload: FoodTypeCreate,
    _: UserRecord = Depends(require_permission("types")),
    storage: BaseStorage = Depends(get_store),
) -> FoodType:
    return await storage.create_food_type(payload.model_dump())


@router.patch("/food-types/{food_type_id}", response_model=FoodType)
async def update_food_type(
    food_type_id: str,
    payload: FoodTypeUpdate,
    _: UserRecord = Depends(require_permission("types")),
    storage: BaseStorage = Depends(get_store),
) -> FoodType:
    food_type = await storage.update_food_type(food_type_id, payload.model_dump(exclude_unset=True))
    if food_type is None:
        raise not_found("Food type", food_type_id)
    return food_type


@router.delete("/food-types/{food_type_id}", response_model=MessageResponse)
async def delete_food_type(
    food_type_id: str,
    _: UserRecord = Depends(require_permission("types")),
    storage: BaseStorage = Depends(get_store),
) -> MessageResponse:
    if not await storage.delete_food_type(food_type_id):
        raise not_found("Food type", food_type_id)
    return MessageResponse(message="Food type deleted")


# =============================================================================
# MATERIALS
# =============================================================================

@router.get("/materials", response_model=list[Material])
async def list_materials(storage: BaseStorage = Depends(get_store)) -> list[Material]:
    return await storage.list_materials()


@router.get("/materials/{material_id}", response_model=Material)
async def get_material(material_id: str, storage: BaseStorage = Depends(get_store)) -> Material:
    material = await storage.get_material(material_id)
    if material is None:
        raise not_found("Material", material_id)
    return material


@router.post("/materials", response_model=Material, status_code=status.HTTP_201_CREATED)
async def create_material(
    payload: MaterialCreate,
    _: UserRecord = Depends(require_permission("materials")),
    storage: BaseStorage = Depends(get_store),
) -> Material:
    return await storage.create_material(payload.model_dump())


@router.patch("/materials/{material_id}", response_model=Material)
async def update_material(
    material_id: str,
    payload: MaterialUpdate,
    _: UserRecord = Depends(require_permission("materials")),
    storage: BaseStorage = Depends(get_store),
) -> Material:
    material = await storage.update_material(material_id, payload.model_dump(exclude_unset=True))
    if material is None:
        raise not_found("Material", material_id)
    return material


@router.delete("/materials/{material_id}", response_model=MessageResponse)
async def delete_material(
    material_id: str,
    _: UserRecord = Depends(require_permission("materials")),
    storage: BaseStorage = Depends(get_store),
) -> MessageResponse:
    if not await storage.delete_material(material_id):
        raise not_found("Material", material_id)
    return MessageResponse(message="Material deleted")
