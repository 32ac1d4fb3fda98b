"""
Categorization of receipts into medical-expense categories.

Rules are evaluated in order and the first match wins, so a store that is
both a pharmacy and a clinic is categorized as Pharmacy.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from receipt_extraction.models.extraction import Category, LineItem


@dataclass(frozen=True)
class CategoryRule:
    """
    One ordered categorization rule.

    A rule matches when any ``store_keywords`` entry occurs in the store
    name or any ``item_keywords`` entry occurs in an item description.
    Matching is case-insensitive substring search.
    """
    name: str
    category: Category
    store_keywords: Tuple[str, ...] = ()
    item_keywords: Tuple[str, ...] = ()

    def matches(self, store_name: str, descriptions: Tuple[str, ...]) -> bool:
        if any(keyword in store_name for keyword in self.store_keywords):
            return True
        return any(
            keyword in description
            for keyword in self.item_keywords
            for description in descriptions
        )


_DENTAL_KEYWORDS = ('dental', 'orthodont', 'tooth')

CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule(
        name='pharmacy',
        category=Category.PHARMACY,
        store_keywords=('pharmacy', 'cvs', 'walgreens', 'rite aid'),
    ),
    CategoryRule(
        name='dental',
        category=Category.DENTAL,
        store_keywords=_DENTAL_KEYWORDS,
        item_keywords=_DENTAL_KEYWORDS,
    ),
    CategoryRule(
        name='vision',
        category=Category.VISION,
        store_keywords=('vision', 'eye', 'optical'),
        item_keywords=('glasses', 'contact'),
    ),
    CategoryRule(
        name='doctor_visit',
        category=Category.DOCTOR_VISIT,
        store_keywords=('dr.', 'doctor', 'clinic', 'medical'),
    ),
    CategoryRule(
        name='medical_device',
        category=Category.MEDICAL_DEVICE,
        item_keywords=('thermometer', 'bandage', 'medical device', 'monitor'),
    ),
)


def categorize(
    store_name: Optional[str],
    line_items: Iterable[LineItem] = (),
    rules: Tuple[CategoryRule, ...] = CATEGORY_RULES
) -> Category:
    """
    Categorize a receipt from its store name and line items.

    Args:
        store_name: Cleaned store name (may be None)
        line_items: Extracted line items
        rules: Ordered rules; first match wins

    Returns:
        Matching Category, or Category.OTHER
    """
    store = (store_name or '').lower()
    descriptions = tuple((item.description or '').lower() for item in line_items)

    for rule in rules:
        if rule.matches(store, descriptions):
            return rule.category

    return Category.OTHER
