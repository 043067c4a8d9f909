"""Cart sort order."""

import locale
import logging
import unicodedata
from enum import Enum
from typing import Optional

from .models import ReadySlot

logger = logging.getLogger(__name__)

SORT_PREFERENCE_KEY = "chosenFilter"


class SortCriterion(str, Enum):
    PRICE = "price"
    RATING = "rating"
    NAME = "name"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SortCriterion"]:
        """Return the criterion named by value, or None for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return None


def configure_collation() -> None:
    """Collate names with the locale from the environment (LC_ALL, LC_COLLATE, LANG)."""
    try:
        name = locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning(f"Could not set collation locale from environment: {e}")
        return
    logger.info(f"Collating names with locale {name}")


def _strip_marks(text: str) -> str:
    letters = []
    for char in text:
        # й is a letter of its own, not и with a mark
        if char == "й":
            letters.append(char)
            continue
        letters.extend(
            part for part in unicodedata.normalize("NFD", char) if not unicodedata.combining(part)
        )
    return "".join(letters)


def _collation_key(name: str) -> tuple[str, str]:
    """
    Sort key for a name.

    Letters are compared without case or diacritics first (ё sorts with е,
    á with a), then with diacritics to order otherwise equal names. Both
    parts go through strxfrm so a configured locale refines the order.
    """
    folded = name.casefold()
    return locale.strxfrm(_strip_marks(folded)), locale.strxfrm(folded)


def sort_slots(slots: list, criterion: SortCriterion) -> list:
    """
    Return slots ordered by criterion.

    price and rating sort descending, name ascending (case-insensitive,
    diacritics ignored, collated with the current locale). Slots without a
    fetched detail keep their relative order at the end.
    """
    ready = [slot for slot in slots if isinstance(slot, ReadySlot)]
    rest = [slot for slot in slots if not isinstance(slot, ReadySlot)]

    if criterion is SortCriterion.PRICE:
        ready.sort(key=lambda slot: slot.detail.price, reverse=True)
    elif criterion is SortCriterion.RATING:
        ready.sort(key=lambda slot: slot.detail.rating, reverse=True)
    elif criterion is SortCriterion.NAME:
        ready.sort(key=lambda slot: _collation_key(slot.detail.name))
    else:
        raise ValueError(f"Unknown sort criterion: {criterion}")

    return ready + rest

