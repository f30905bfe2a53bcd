"""Category model used to group transactions."""
from sqlalchemy import Boolean, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pfinance.models.base import BaseModel

CATEGORY_TYPES = ("income", "expense", "both")


class Category(BaseModel):
    """A spending or income category (e.g. "Alimenti", "Stipendio")."""

    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint("type IN ('income', 'expense', 'both')", name="ck_category_type"),
    )

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(10), nullable=False, default="both")
    color: Mapped[str] = mapped_column(String(20), nullable=False, default="#8884d8")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Deleting a category deletes its rules.
    rules: Mapped[list["CategoryRule"]] = relationship(
        "CategoryRule",
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name}, type={self.type})>"
