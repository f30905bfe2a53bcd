"""Pattern rule mapping transaction descriptions to a category."""
from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pfinance.models.base import BaseModel

MATCH_TYPES = ("contains", "starts_with", "ends_with", "regex")


class CategoryRule(BaseModel):
    """Categorization rule.

    Lower ``priority`` values are evaluated first; ties are broken by id.
    """

    __tablename__ = "category_rules"
    __table_args__ = (
        CheckConstraint(
            "match_type IN ('contains', 'starts_with', 'ends_with', 'regex')",
            name="ck_rule_match_type",
        ),
    )

    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    pattern: Mapped[str] = mapped_column(String(255), nullable=False)
    match_type: Mapped[str] = mapped_column(String(20), nullable=False, default="contains")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    category: Mapped["Category"] = relationship("Category", back_populates="rules", lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<CategoryRule(id={self.id}, category_id={self.category_id}, "
            f"pattern={self.pattern!r}, priority={self.priority})>"
        )
