"""Typed partial updates.

Each field of a patch is exactly one of ``UNSET`` (leave the stored value
alone), ``CLEAR`` (store ``None``) or ``Set(value)`` (store ``value``).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Generic, TypeVar, Union
from uuid import UUID

from .models import TaskPriority, TaskStatus

T = TypeVar("T")


class Unset:
    _instance: "Unset | None" = None

    def __new__(cls) -> "Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


class Clear:
    _instance: "Clear | None" = None

    def __new__(cls) -> "Clear":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CLEAR"


UNSET = Unset()
CLEAR = Clear()


@dataclass(frozen=True, slots=True)
class Set(Generic[T]):
    value: T


PatchField = Union[Unset, Clear, Set[T]]


@dataclass(frozen=True, slots=True)
class TaskPatch:
    """Changes to apply to a stored task."""

    title: PatchField[str] = UNSET
    description: PatchField[str] = UNSET
    status: PatchField[TaskStatus] = UNSET
    priority: PatchField[TaskPriority] = UNSET
    due_date: PatchField[datetime] = UNSET
    assigned_to_id: PatchField[UUID] = UNSET

    REQUIRED_FIELDS = frozenset({"title", "status", "priority"})

    def __post_init__(self) -> None:
        for name in self.REQUIRED_FIELDS:
            if isinstance(getattr(self, name), Clear):
                raise ValueError(f"{name} cannot be cleared")

    def items(self) -> list[tuple[str, Clear | Set[Any]]]:
        """Return the fields that carry a change, in declaration order."""

        return [
            (field.name, getattr(self, field.name))
            for field in fields(self)
            if not isinstance(getattr(self, field.name), Unset)
        ]

    @property
    def is_empty(self) -> bool:
        return not self.items()

    def apply(self, target: Any) -> dict[str, Any]:
        """Write the changes onto ``target`` and return ``{field: new value}`` for each change."""

        changes: dict[str, Any] = {}
        for name, change in self.items():
            value = None if isinstance(change, Clear) else change.value
            setattr(target, name, value)
            changes[name] = value
        return changes


__all__ = ["CLEAR", "Clear", "PatchField", "Set", "TaskPatch", "UNSET", "Unset"]
