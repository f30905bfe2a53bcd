"""Category and category rule management."""

import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.categorization.rules import Rule, compile_rule
from pfinance.core.exceptions import NotFoundError, PersistenceError, ValidationError
from pfinance.models.category import Category
from pfinance.models.category_rule import CategoryRule
from pfinance.models.transaction import Transaction
from pfinance.repositories.category import CategoryRepository, CategoryRuleRepository
from pfinance.schemas.category import (
    CategoryBulkFields,
    CategoryCreate,
    CategoryUpdate,
    RuleBulkFields,
    RuleCreate,
    RuleUpdate,
)
from pfinance.schemas.common import BulkResult

logger = logging.getLogger(__name__)


def validate_pattern(pattern: str, match_type: str) -> None:
    """Reject a rule pattern that could never be evaluated.

    Raises:
        ValidationError: If the pattern does not compile for the match type
    """
    try:
        compile_rule(Rule(id=0, category="", pattern=pattern, match_type=match_type))
    except ValueError as e:
        raise ValidationError("VAL_004", {"pattern": pattern, "error": str(e)}) from e


class CategoryService:
    """Service layer for categories and their rules."""

    def __init__(self, db: AsyncSession):
        """Initialize category service with database session.

        Args:
            db: Database session
        """
        self.db = db
        self.category_repo = CategoryRepository(db)
        self.rule_repo = CategoryRuleRepository(db)

    async def _commit(self, operation: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Database commit failed",
                extra={"operation": operation, "error_type": type(e).__name__},
            )
            raise PersistenceError("DB_001", {"operation": operation}) from e

    # Categories

    async def list_categories(self) -> list[Category]:
        return await self.category_repo.get_all()

    async def get_category(self, category_id: int) -> Category:
        category = await self.category_repo.get_by_id(category_id)
        if category is None:
            raise NotFoundError("NF_002", {"category_id": category_id})
        return category

    async def create_category(self, data: CategoryCreate) -> Category:
        """Create a category.

        Raises:
            ValidationError: If the name is already taken
        """
        if await self.category_repo.get_by_name(data.name) is not None:
            raise ValidationError("VAL_003", {"name": data.name})

        category = Category(**data.model_dump())
        self.db.add(category)
        await self._commit("create_category")
        await self.db.refresh(category)
        logger.info("Category created", extra={"category_id": category.id})
        return category

    async def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        """Update a category. A rename is carried over to its transactions.

        Raises:
            NotFoundError: If the category does not exist
            ValidationError: If the new name is already taken
        """
        category = await self.get_category(category_id)
        values = data.model_dump(exclude_unset=True, exclude_none=True)

        new_name = values.get("name")
        old_name = category.name
        if new_name is not None and new_name != old_name:
            clash = await self.category_repo.get_by_name(new_name)
            if clash is not None:
                raise ValidationError("VAL_003", {"name": new_name})
            await self.db.execute(
                update(Transaction)
                .where(Transaction.category == old_name)
                .values(category=new_name)
            )

        for key, value in values.items():
            setattr(category, key, value)

        await self._commit("update_category")
        await self.db.refresh(category)
        return category

    async def delete_category(self, category_id: int) -> None:
        """Delete a category with its rules; overrides pointing at it are cleared.

        Raises:
            NotFoundError: If the category does not exist
        """
        await self.get_category(category_id)
        await self.category_repo.delete_many([category_id])
        await self._commit("delete_category")
        logger.info("Category deleted", extra={"category_id": category_id})

    async def bulk_update_categories(
        self, ids: list[int], fields: CategoryBulkFields
    ) -> BulkResult:
        """Apply the same changes to several categories in one transaction.

        Raises:
            ValidationError: If no field is set
        """
        values = fields.model_dump(exclude_none=True)
        if not values:
            raise ValidationError("VAL_005")

        found = {c.id for c in await self.category_repo.get_by_ids(ids)}
        skipped = [f"{i}: category not found" for i in ids if i not in found]

        affected = 0
        if found:
            affected = await self.category_repo.update_many(list(found), values)
        await self._commit("bulk_update_categories")
        return BulkResult(requested=len(ids), affected=affected, skipped=skipped)

    async def bulk_delete_categories(self, ids: list[int]) -> BulkResult:
        """Delete several categories (with their rules) in one transaction."""
        found = {c.id for c in await self.category_repo.get_by_ids(ids)}
        skipped = [f"{i}: category not found" for i in ids if i not in found]

        affected = 0
        if found:
            affected = await self.category_repo.delete_many(list(found))
        await self._commit("bulk_delete_categories")
        return BulkResult(requested=len(ids), affected=affected, skipped=skipped)

    # Rules

    async def list_rules(self, category_id: int | None = None) -> list[CategoryRule]:
        if category_id is not None:
            return await self.rule_repo.get_by_category(category_id)
        return await self.rule_repo.get_all()

    async def get_rule(self, rule_id: int) -> CategoryRule:
        rule = await self.rule_repo.get_by_id(rule_id)
        if rule is None:
            raise NotFoundError("NF_003", {"rule_id": rule_id})
        return rule

    async def create_rule(self, data: RuleCreate) -> CategoryRule:
        """Create a rule.

        Raises:
            NotFoundError: If the category does not exist
            ValidationError: If the pattern is invalid for its match type
        """
        await self.get_category(data.category_id)
        validate_pattern(data.pattern, data.match_type)

        rule = CategoryRule(**data.model_dump())
        self.db.add(rule)
        await self._commit("create_rule")
        await self.db.refresh(rule, attribute_names=["category"])
        logger.info("Category rule created", extra={"rule_id": rule.id})
        return rule

    async def update_rule(self, rule_id: int, data: RuleUpdate) -> CategoryRule:
        """Update a rule.

        Raises:
            NotFoundError: If the rule or the new category does not exist
            ValidationError: If the resulting pattern is invalid
        """
        rule = await self.get_rule(rule_id)
        values = data.model_dump(exclude_unset=True)
        values = {k: v for k, v in values.items() if v is not None or k == "notes"}

        if "category_id" in values:
            await self.get_category(values["category_id"])
        if "pattern" in values or "match_type" in values:
            validate_pattern(
                values.get("pattern", rule.pattern),
                values.get("match_type", rule.match_type),
            )

        for key, value in values.items():
            setattr(rule, key, value)

        await self._commit("update_rule")
        await self.db.refresh(rule, attribute_names=["category"])
        return rule

    async def delete_rule(self, rule_id: int) -> None:
        await self.get_rule(rule_id)
        await self.rule_repo.delete_many([rule_id])
        await self._commit("delete_rule")

    async def bulk_update_rules(self, ids: list[int], fields: RuleBulkFields) -> BulkResult:
        """Apply the same changes to several rules in one transaction.

        Rules whose pattern would become invalid under a new match type are
        skipped and reported.

        Raises:
            ValidationError: If no field is set
            NotFoundError: If the target category does not exist
        """
        values = fields.model_dump(exclude_none=True)
        if not values:
            raise ValidationError("VAL_005")
        if "category_id" in values:
            await self.get_category(values["category_id"])

        rules = {r.id: r for r in await self.rule_repo.get_all()}
        skipped: list[str] = []
        targets: list[int] = []
        for rule_id in ids:
            rule = rules.get(rule_id)
            if rule is None:
                skipped.append(f"{rule_id}: rule not found")
                continue
            if "match_type" in values:
                try:
                    validate_pattern(rule.pattern, values["match_type"])
                except ValidationError:
                    skipped.append(f"{rule_id}: pattern invalid for {values['match_type']}")
                    continue
            targets.append(rule_id)

        affected = 0
        if targets:
            affected = await self.rule_repo.update_many(targets, values)
        await self._commit("bulk_update_rules")
        return BulkResult(requested=len(ids), affected=affected, skipped=skipped)

    async def bulk_delete_rules(self, ids: list[int]) -> BulkResult:
        wanted = set(ids)
        found = {r.id for r in await self.rule_repo.get_all() if r.id in wanted}
        skipped = [f"{i}: rule not found" for i in ids if i not in found]

        affected = 0
        if found:
            affected = await self.rule_repo.delete_many(list(found))
        await self._commit("bulk_delete_rules")
        return BulkResult(requested=len(ids), affected=affected, skipped=skipped)
