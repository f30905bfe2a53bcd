"""Categorization service.

Bridges the pure rule matcher and the database: loads rules, applies them to
stored transactions and manages manual category overrides. Manual overrides
always win; rules only touch transactions without a usable override.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.categorization.resolver import manual_category
from pfinance.categorization.rules import Rule, RuleSet, preview_categorization
from pfinance.config import settings
from pfinance.core.exceptions import NotFoundError, PersistenceError
from pfinance.models.transaction import Transaction
from pfinance.repositories.category import CategoryRepository, CategoryRuleRepository
from pfinance.repositories.transaction import TransactionRepository
from pfinance.schemas.category import PreviewItem, RuleCreate, RulePreviewResult
from pfinance.schemas.common import BulkResult
from pfinance.schemas.transaction import (
    ClearOverride,
    OverrideAction,
    RecategorizeResult,
    RuleErrorResponse,
    SetOverride,
)

logger = logging.getLogger(__name__)

# Candidate rules in a preview sort after every stored rule of equal priority.
CANDIDATE_RULE_ID = 2**31 - 1


class CategorizationService:
    """Service for rule-based and manual transaction categorization."""

    def __init__(self, db: AsyncSession, fallback: str | None = None):
        """Initialize the service.

        Args:
            db: Database session
            fallback: Category used when no rule matches
        """
        self.db = db
        self.fallback = fallback or settings.fallback_category
        self.category_repo = CategoryRepository(db)
        self.rule_repo = CategoryRuleRepository(db)
        self.txn_repo = TransactionRepository(db)

    async def load_rule_set(self, extra: list[Rule] | None = None) -> RuleSet:
        """Compile the enabled rules of active categories (plus ``extra``)."""
        rows = await self.rule_repo.get_active_rules()
        rules = [Rule.from_model(row) for row in rows]
        if extra:
            rules.extend(extra)
        return RuleSet(rules, fallback=self.fallback)

    async def recategorize_all(self) -> RecategorizeResult:
        """Re-run the rules over every stored transaction.

        Manually overridden transactions keep their category and count only as
        ``skipped_manual``; when their stored category text is stale it is
        rewritten to the override and also counted in ``resynced_manual``.
        ``updated + unchanged + skipped_manual + failed == total``. All category
        writes land in one database transaction; a malformed rule is skipped
        and reported, never fatal.

        Returns:
            Report with per-outcome counts and the rules that failed to compile

        Raises:
            PersistenceError: If the write fails (nothing is changed)
        """
        rule_set = await self.load_rule_set()
        category_names = await self.category_repo.get_active_names()
        transactions = await self.txn_repo.get_all()

        updates: list[tuple[str, str]] = []
        resynced: list[tuple[str, str]] = []
        unchanged = skipped_manual = failed = 0

        for txn in transactions:
            manual = manual_category(txn, category_names)
            if manual is not None:
                skipped_manual += 1
                if txn.category != manual:
                    resynced.append((txn.id, manual))
                continue

            try:
                category = rule_set.categorize(txn.description)
            except Exception as e:
                failed += 1
                logger.warning(
                    "Categorization failed for transaction",
                    extra={"transaction_id": txn.id, "error_type": type(e).__name__},
                )
                continue

            if category == txn.category:
                unchanged += 1
            else:
                updates.append((txn.id, category))

        try:
            for txn_id, category in updates + resynced:
                await self.txn_repo.update_category(txn_id, category)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Recategorization rolled back", extra={"error_type": type(e).__name__})
            raise PersistenceError("DB_001", {"operation": "recategorize_all"}) from e

        updated = len(updates)
        logger.info(
            "Recategorization complete",
            extra={
                "total": len(transactions),
                "updated": updated,
                "skipped_manual": skipped_manual,
                "resynced_manual": len(resynced),
                "failed": failed,
                "rule_errors": len(rule_set.errors),
            },
        )

        return RecategorizeResult(
            total=len(transactions),
            updated=updated,
            unchanged=unchanged,
            skipped_manual=skipped_manual,
            resynced_manual=len(resynced),
            failed=failed,
            rule_errors=[
                RuleErrorResponse(rule_id=e.rule_id, pattern=e.pattern, error=e.error)
                for e in rule_set.errors
            ],
        )

    async def preview(
        self, descriptions: list[str], candidate: RuleCreate | None = None
    ) -> RulePreviewResult:
        """Categorize sample descriptions without writing anything.

        Args:
            descriptions: Sample transaction descriptions
            candidate: Unsaved rule evaluated alongside the stored ones

        Raises:
            NotFoundError: If the candidate's category does not exist
        """
        extra: list[Rule] = []
        if candidate is not None:
            category = await self.category_repo.get_by_id(candidate.category_id)
            if category is None:
                raise NotFoundError("NF_002", {"category_id": candidate.category_id})
            extra.append(
                Rule(
                    id=CANDIDATE_RULE_ID,
                    category=category.name,
                    pattern=candidate.pattern,
                    match_type=candidate.match_type,
                    priority=candidate.priority,
                    enabled=candidate.enabled,
                )
            )

        rule_set = await self.load_rule_set(extra)
        return RulePreviewResult(
            results=[
                PreviewItem(description=d, category=c)
                for d, c in preview_categorization(descriptions, rule_set)
            ],
            rule_errors=[
                {"rule_id": e.rule_id, "pattern": e.pattern, "error": e.error}
                for e in rule_set.errors
            ],
        )

    async def categorize_new(self, transactions: list[Transaction]) -> None:
        """Assign rule categories to freshly built (unsaved) transactions."""
        rule_set = await self.load_rule_set()
        for txn in transactions:
            txn.category = rule_set.categorize(txn.description)

    async def _get_transaction(self, transaction_id: str) -> Transaction:
        txn = await self.txn_repo.get_by_id(transaction_id)
        if txn is None:
            raise NotFoundError("NF_001", {"transaction_id": transaction_id})
        return txn

    async def set_manual_category(self, transaction_id: str, category_id: int) -> Transaction:
        """Pin a transaction to a category; rules will no longer change it.

        Raises:
            NotFoundError: If the transaction or category does not exist
        """
        txn = await self._get_transaction(transaction_id)
        category = await self.category_repo.get_by_id(category_id)
        if category is None:
            raise NotFoundError("NF_002", {"category_id": category_id})

        txn.manual_category_id = category.id
        txn.is_manual_override = True
        txn.category = category.name
        await self._commit("set_manual_category")
        await self.db.refresh(txn)
        return txn

    async def clear_manual_category(self, transaction_id: str) -> Transaction:
        """Drop a manual override and fall back to rule categorization.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        txn = await self._get_transaction(transaction_id)
        rule_set = await self.load_rule_set()

        txn.manual_category_id = None
        txn.is_manual_override = False
        txn.category = rule_set.categorize(txn.description)
        await self._commit("clear_manual_category")
        await self.db.refresh(txn)
        return txn

    async def apply_overrides(self, actions: list[OverrideAction]) -> BulkResult:
        """Apply many set/clear overrides in one database transaction.

        Unknown transaction or category ids are skipped (and reported) before
        anything is written.
        """
        txn_ids = list({a.transaction_id for a in actions})
        existing = {t.id: t for t in await self.txn_repo.get_by_ids(txn_ids)}
        category_ids = list({a.category_id for a in actions if isinstance(a, SetOverride)})
        categories = {c.id: c for c in await self.category_repo.get_by_ids(category_ids)}
        rule_set = await self.load_rule_set()

        skipped: list[str] = []
        affected = 0
        for action in actions:
            txn = existing.get(action.transaction_id)
            if txn is None:
                skipped.append(f"{action.transaction_id}: transaction not found")
                continue
            if isinstance(action, SetOverride):
                category = categories.get(action.category_id)
                if category is None:
                    skipped.append(f"{action.transaction_id}: category {action.category_id} not found")
                    continue
                txn.manual_category_id = category.id
                txn.is_manual_override = True
                txn.category = category.name
            elif isinstance(action, ClearOverride):
                txn.manual_category_id = None
                txn.is_manual_override = False
                txn.category = rule_set.categorize(txn.description)
            affected += 1

        await self._commit("apply_overrides")
        return BulkResult(requested=len(actions), affected=affected, skipped=skipped)

    async def categorize_by_descriptions(
        self, descriptions: list[str], category_id: int
    ) -> BulkResult:
        """Manually assign a category to every transaction with these descriptions.

        Raises:
            NotFoundError: If the category does not exist or nothing matches
        """
        category = await self.category_repo.get_by_id(category_id)
        if category is None:
            raise NotFoundError("NF_002", {"category_id": category_id})

        matches = await self.txn_repo.get_by_descriptions(descriptions)
        if not matches:
            raise NotFoundError("NF_005", {"descriptions": len(descriptions)})

        for txn in matches:
            txn.manual_category_id = category.id
            txn.is_manual_override = True
            txn.category = category.name

        await self._commit("categorize_by_descriptions")
        return BulkResult(requested=len(descriptions), affected=len(matches))

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
