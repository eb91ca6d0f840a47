from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
from app.db.database import get_db
from app.schemas.category import CategoryResponse, CategoryCountResponse
from app.services.category_service import CategoryService

router = APIRouter(
    prefix="/categories",
    tags=["Categories"]
)


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    """Dependency to get category service"""
    return CategoryService(db)


@router.get(
    "",
    response_model=List[CategoryResponse],
    summary="List active categories",
    description="""
    Active categories ordered by name, each with the number of active,
    published products it holds (as of the last recount).
    """,
    responses={
        200: {"description": "List of categories"}
    }
)
def list_categories(
    category_service: CategoryService = Depends(get_category_service)
):
    return category_service.list_categories()


@router.post(
    "/recount",
    response_model=CategoryCountResponse,
    summary="Recompute category item counts",
    description="""
    Recount active, published products for every active category. Runs
    automatically at the end of every inventory sync.
    """
)
def recount_categories(
    category_service: CategoryService = Depends(get_category_service)
):
    updated = category_service.update_category_counts()
    return CategoryCountResponse(categories_updated=updated)


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Get category by ID",
    responses={
        200: {"description": "Category found"},
        404: {"description": "Category not found"}
    }
)
def get_category(
    category_id: UUID,
    category_service: CategoryService = Depends(get_category_service)
):
    try:
        return category_service.get_category_by_id(category_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
