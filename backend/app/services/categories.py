"""
Category Service.

Categories are admin-managed labels. Expenses store the lowercased category
name, so a rename has to carry every matching expense along in the same
transaction.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    CategoryReassignmentError,
    ResourceNotFoundError,
    StorageError,
    ValidationFailedError,
)
from backend.app.domain.actor import Actor
from backend.app.models.category import Category
from backend.app.models.expense import Expense
from backend.app.services.audit import AuditAction, log_event

logger = logging.getLogger("household_ledger.categories")

DEFAULT_CATEGORIES = [
    ("Groceries", "shopping-cart"),
    ("Utilities", "zap"),
    ("Transportation", "car"),
    ("Entertainment", "film"),
    ("Dining", "utensils"),
    ("Healthcare", "heart"),
    ("Education", "graduation-cap"),
    ("Travel", "plane"),
    ("Bills", "home"),
    ("Other", "more-horizontal"),
]


class CategoryService:

    @staticmethod
    async def list_categories(db: AsyncSession) -> List[Category]:
        result = await db.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    @staticmethod
    async def get_category(db: AsyncSession, category_id: int) -> Category:
        category = await db.get(Category, category_id)
        if category is None:
            raise ResourceNotFoundError("Category", category_id)
        return category

    @staticmethod
    async def find_by_name(db: AsyncSession, name: str) -> Optional[Category]:
        result = await db.execute(
            select(Category).where(func.lower(Category.name) == name.strip().lower())
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def resolve_expense_category(db: AsyncSession, name: str) -> str:
        """Return the lowercased name expenses store, or raise if no such category exists."""
        category = await CategoryService.find_by_name(db, name)
        if category is None:
            raise ResourceNotFoundError("Category", name)
        return category.name.lower()

    @staticmethod
    async def create_category(db: AsyncSession, actor: Actor, name: str, icon: str = "tag") -> Category:
        name = name.strip()
        if not name:
            raise ValidationFailedError("Category name is required", field="name")
        if await CategoryService.find_by_name(db, name):
            raise ValidationFailedError(f"Category '{name}' already exists", field="name")

        category = Category(name=name, icon=icon or "tag")
        db.add(category)
        try:
            await db.flush()
            await log_event(db, AuditAction.CATEGORY_CREATED, actor_id=actor.user_id, metadata={"name": name})
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise StorageError(details={"operation": "create_category"}) from exc

        logger.info("Category '%s' created by user %s", name, actor.user_id)
        return category

    @staticmethod
    async def update_category(
        db: AsyncSession,
        actor: Actor,
        category: Category,
        name: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Category:
        """
        Update a category. A rename reassigns every expense filed under the
        old name in the same transaction; if that fails nothing changes and
        CategoryReassignmentError is raised.
        """
        old_name = category.name
        new_name = name.strip() if name is not None else old_name
        if not new_name:
            raise ValidationFailedError("Category name is required", field="name")

        renamed = new_name != old_name
        if renamed and new_name.lower() != old_name.lower():
            existing = await CategoryService.find_by_name(db, new_name)
            if existing is not None and existing.id != category.id:
                raise ValidationFailedError(f"Category '{new_name}' already exists", field="name")

        category.name = new_name
        if icon is not None:
            category.icon = icon
        try:
            await db.flush()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise StorageError(details={"operation": "update_category"}) from exc

        if renamed:
            try:
                result = await db.execute(
                    update(Expense)
                    .where(Expense.category == old_name.lower())
                    .values(category=new_name.lower())
                    .execution_options(synchronize_session=False)
                )
                await log_event(
                    db, AuditAction.CATEGORY_RENAMED, actor_id=actor.user_id,
                    metadata={"old_name": old_name, "new_name": new_name, "expenses": result.rowcount},
                )
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error(
                    "Rename of category '%s' to '%s' rolled back: expense reassignment failed: %s",
                    old_name, new_name, exc,
                )
                raise CategoryReassignmentError(old_name, new_name) from exc
            logger.info("Category '%s' renamed to '%s' (%s expenses)", old_name, new_name, result.rowcount)
            return category

        try:
            await log_event(
                db, AuditAction.CATEGORY_UPDATED, actor_id=actor.user_id,
                metadata={"name": new_name, "icon": category.icon},
            )
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise StorageError(details={"operation": "update_category"}) from exc
        return category

    @staticmethod
    async def delete_category(db: AsyncSession, actor: Actor, category: Category) -> None:
        """Expenses keep their category name after the category is deleted."""
        name = category.name
        try:
            await db.delete(category)
            await log_event(db, AuditAction.CATEGORY_DELETED, actor_id=actor.user_id, metadata={"name": name})
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise StorageError(details={"operation": "delete_category"}) from exc
        logger.info("Category '%s' deleted by user %s", name, actor.user_id)

    @staticmethod
    async def seed_default_categories(db: AsyncSession) -> int:
        """Insert the default set when no category exists yet. Returns how many were added."""
        existing = (await db.execute(select(func.count(Category.id)))).scalar() or 0
        if existing:
            return 0
        for name, icon in DEFAULT_CATEGORIES:
            db.add(Category(name=name, icon=icon))
        await db.commit()
        logger.info("Seeded %s default categories", len(DEFAULT_CATEGORIES))
        return len(DEFAULT_CATEGORIES)
