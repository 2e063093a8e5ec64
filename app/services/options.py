"""Custom option registry.

Each selectable field (emotional state, entry motivation, ...) has a
built-in list from defaults.yaml. Users append their own values; reads
return the built-ins first, then custom values by display order and
value. A value may appear only once per field, built-ins included.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.domain import CustomOption
from app.services.catalog import normalize_name
from app.services.errors import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

FIELD_MAX_LENGTH = 50
VALUE_MAX_LENGTH = 100


def load_default_options() -> dict[str, list[str]]:
    """Built-in option lists keyed by field name."""
    defaults = get_settings().load_defaults_config()
    return {field: list(values or []) for field, values in defaults.get("options", {}).items()}


@dataclass
class OptionEntry:
    """One selectable value as shown to the user."""

    value: str
    is_default: bool
    id: int | None = None
    display_order: int | None = None


def _clean(text: str | None, name: str, max_length: int) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError.for_field(name, f"{name.capitalize()} is required")
    if len(cleaned) > max_length:
        raise ValidationError.for_field(
            name, f"{name.capitalize()} must be at most {max_length} characters"
        )
    return cleaned


class OptionRegistry:
    """Defaults merged with user-defined values, per field."""

    def __init__(self, session: AsyncSession, defaults: dict[str, list[str]] | None = None):
        self.session = session
        self.defaults = defaults if defaults is not None else load_default_options()

    def defaults_for(self, field: str) -> list[str]:
        return list(self.defaults.get(field, []))

    async def _custom_rows(self, field: str) -> list[CustomOption]:
        result = await self.session.execute(
            select(CustomOption)
            .where(CustomOption.field == field)
            .order_by(CustomOption.display_order, CustomOption.value)
        )
        return list(result.scalars().all())

    async def list(self, field: str) -> list[OptionEntry]:
        """Built-ins in file order, then custom values."""
        entries = [OptionEntry(value=v, is_default=True) for v in self.defaults_for(field)]
        entries.extend(
            OptionEntry(value=row.value, is_default=False, id=row.id, display_order=row.display_order)
            for row in await self._custom_rows(field)
        )
        return entries

    async def values(self, field: str) -> list[str]:
        return [entry.value for entry in await self.list(field)]

    async def _ensure_available(self, field: str, value: str, exclude_id: int | None = None) -> None:
        normalized = normalize_name(value)
        if any(normalize_name(v) == normalized for v in self.defaults_for(field)):
            raise ConflictError(
                "Option already exists as a built-in value",
                code="DUPLICATE_OPTION",
                details={"value": value, "field": field},
            )
        for row in await self._custom_rows(field):
            if row.id != exclude_id and normalize_name(row.value) == normalized:
                raise ConflictError(
                    "Option already exists",
                    code="DUPLICATE_OPTION",
                    details={"value": value, "field": field},
                )

    async def get(self, option_id: int, field: str | None = None) -> CustomOption:
        row = await self.session.get(CustomOption, option_id)
        if row is None or (field is not None and row.field != field):
            raise NotFoundError("CustomOption", option_id)
        return row

    async def add(self, field: str, value: str, display_order: int = 0) -> CustomOption:
        """Append a custom value to a field."""
        field = _clean(field, "field", FIELD_MAX_LENGTH)
        value = _clean(value, "value", VALUE_MAX_LENGTH)
        if display_order < 0:
            raise ValidationError.for_field("display_order", "Order must be zero or greater")
        await self._ensure_available(field, value)

        row = CustomOption(field=field, value=value, display_order=display_order)
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)

        logger.info("option_added", field=field, value=value, option_id=row.id)
        return row

    async def update(
        self,
        option_id: int,
        value: str | None = None,
        display_order: int | None = None,
        field: str | None = None,
    ) -> CustomOption:
        row = await self.get(option_id, field)
        if value is not None:
            value = _clean(value, "value", VALUE_MAX_LENGTH)
            await self._ensure_available(row.field, value, exclude_id=row.id)
            row.value = value
        if display_order is not None:
            if display_order < 0:
                raise ValidationError.for_field("display_order", "Order must be zero or greater")
            row.display_order = display_order
        await self.session.flush()
        await self.session.refresh(row)

        logger.info("option_updated", field=row.field, option_id=option_id)
        return row

    async def delete(self, option_id: int, field: str | None = None) -> None:
        row = await self.get(option_id, field)
        await self.session.delete(row)
        await self.session.flush()
        logger.info("option_deleted", field=row.field, option_id=option_id)

    async def remove(self, field: str, value: str) -> None:
        """
        Delete a custom value by its text. Built-in values are permanent.

        Matching uses the same folding as the duplicate check, so "calmo"
        names the built-in "Calmo".
        """
        normalized = normalize_name(value)
        if any(normalize_name(v) == normalized for v in self.defaults_for(field)):
            raise ValidationError.for_field("value", "Built-in options cannot be removed")
        for row in await self._custom_rows(field):
            if normalize_name(row.value) == normalized:
                await self.delete(row.id)
                return
        raise NotFoundError("CustomOption", value)
