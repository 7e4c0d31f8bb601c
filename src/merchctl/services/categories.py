"""CategoryService — the category collection slots and menu items reference.

Removing a category is always followed by an explicit prune so that no
slot or menu item keeps pointing at it.
"""

from __future__ import annotations

from merchctl.infrastructure.gateway import (
    DuplicateCategoryError,
    EntityNotFoundError,
    GatewayError,
)
from merchctl.services._helpers import error_result
from merchctl.services.base import BaseService
from merchctl.services.prune import PruneService
from merchctl.services.result import ServiceResult
from merchctl.services.telemetry import traced


class CategoryService(BaseService):
    """Adds, removes and lists categories."""

    @traced
    def add(self, name: str) -> ServiceResult:
        op = "add_category"
        name = name.strip()
        if len(name) < 2:
            msg = "Category name must be at least 2 characters"
            return error_result(op, "VALIDATION_FAILED", msg)
        try:
            category = self._gateway.add_category(name)
        except DuplicateCategoryError as exc:
            return error_result(op, "VALIDATION_FAILED", exc.message)
        except GatewayError as exc:
            return error_result(op, "IO_ERROR", str(exc), step="add_category")
        return ServiceResult(ok=True, op=op, data=category.model_dump())

    @traced
    def remove(self, category_id: str) -> ServiceResult:
        """Remove a category, then prune slots and menu items that referenced it."""
        op = "remove_category"
        try:
            self._gateway.remove_category(category_id)
        except EntityNotFoundError:
            return error_result(op, "NOT_FOUND", f"No category found with ID: {category_id}")
        except GatewayError as exc:
            return error_result(op, "IO_ERROR", str(exc), step="remove_category")

        pruned = PruneService(self._store).prune()
        if not pruned.ok:
            return pruned.model_copy(update={"op": op})
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": category_id, "pruned": pruned.data},
        )

    @traced
    def list(self) -> ServiceResult:
        op = "list_categories"
        try:
            items = self._gateway.list_categories()
        except GatewayError as exc:
            return error_result(op, "IO_ERROR", str(exc), step="list_categories")
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": [c.model_dump() for c in items], "count": len(items)},
        )
