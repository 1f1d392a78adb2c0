"""
Category API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from taxtrack.database import get_db
from taxtrack.models import Category
from taxtrack.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryList,
)
from taxtrack.seed import seed_categories

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=CategoryList)
def list_categories(
    db: Session = Depends(get_db)
):
    """List income categories then expense categories by code."""
    categories = db.query(Category).order_by(Category.type.desc(), Category.code).all()

    return CategoryList(
        items=[CategoryResponse.model_validate(c) for c in categories],
        total=len(categories)
    )


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    category: CategoryCreate,
    db: Session = Depends(get_db)
):
    """Create a new category."""
    if db.query(Category).filter(Category.code == category.code).first():
        raise HTTPException(status_code=409, detail="Category code already exists")

    db_category = Category(**category.model_dump())
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


@router.post("/seed")
def seed_default_categories(db: Session = Depends(get_db)):
    """Add any missing default income and SA103F expense categories."""
    created = seed_categories(db)
    return {"created": created}


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    update: CategoryUpdate,
    db: Session = Depends(get_db)
):
    """Update a category's label, description or box."""
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(category, field, value)

    db.commit()
    db.refresh(category)
    return category
