"""Ordered script steps and FAQ items. Every helper returns a new list numbered 1..N."""

from collections.abc import Sequence
from dataclasses import replace
from typing import TypeVar

from editor.richtext import RichText
from onboarding.state import FaqItem, ScriptStep

T = TypeVar("T", ScriptStep, FaqItem)

STEP_NAME = "Roteiro {n}"


def renumber(items: Sequence[T]) -> list[T]:
    return [item if item.order == i else replace(item, order=i) for i, item in enumerate(items, 1)]


def _remove(items: Sequence[T], index: int) -> list[T]:
    if not 0 <= index < len(items):
        raise IndexError(f"No item at position {index}")
    return renumber([item for i, item in enumerate(items) if i != index])


def _move(items: Sequence[T], index: int, new_index: int) -> list[T]:
    if not 0 <= index < len(items):
        raise IndexError(f"No item at position {index}")
    moved = list(items)
    item = moved.pop(index)
    moved.insert(max(0, min(new_index, len(moved))), item)
    return renumber(moved)


def _update(items: Sequence[T], index: int, **changes) -> list[T]:
    if not 0 <= index < len(items):
        raise IndexError(f"No item at position {index}")
    changes.pop("order", None)
    updated = list(items)
    updated[index] = replace(updated[index], **changes)
    return renumber(updated)


def add_step(steps: Sequence[ScriptStep], name: str | None = None) -> list[ScriptStep]:
    n = len(steps) + 1
    new = ScriptStep(order=n, name=name or STEP_NAME.format(n=n), body=RichText())
    return renumber([*steps, new])


def remove_step(steps: Sequence[ScriptStep], index: int) -> list[ScriptStep]:
    return _remove(steps, index)


def move_step(steps: Sequence[ScriptStep], index: int, new_index: int) -> list[ScriptStep]:
    return _move(steps, index, new_index)


def update_step(steps: Sequence[ScriptStep], index: int, **changes) -> list[ScriptStep]:
    """Change name and/or body of one step. order is not editable."""
    return _update(steps, index, **changes)


def add_faq(faq: Sequence[FaqItem]) -> list[FaqItem]:
    return renumber([*faq, FaqItem(order=len(faq) + 1, question="", answer=RichText())])


def remove_faq(faq: Sequence[FaqItem], index: int) -> list[FaqItem]:
    return _remove(faq, index)


def move_faq(faq: Sequence[FaqItem], index: int, new_index: int) -> list[FaqItem]:
    return _move(faq, index, new_index)


def update_faq(faq: Sequence[FaqItem], index: int, **changes) -> list[FaqItem]:
    return _update(faq, index, **changes)
