"""
Classifier — action-set and finding-category rule tables.

Pure lookups, kept separate from the normalizer so the tables are testable
on their own.
"""

from __future__ import annotations

from collections.abc import Iterable

from riskgate.core.errors import UnknownActionSetError
from riskgate.models.normalized_models import Category
from riskgate.models.record_models import ChangeAction, FindingCategory

# Order-independent: keyed by the set of actions
ACTION_SET_CATEGORIES: dict[frozenset[ChangeAction], Category] = {
    frozenset({ChangeAction.CREATE}): Category.ADD,
    frozenset({ChangeAction.DELETE}): Category.DESTROY,
    frozenset({ChangeAction.UPDATE}): Category.MODIFY,
    frozenset({ChangeAction.CREATE, ChangeAction.DELETE}): Category.REPLACE,
}

UNCHANGED_ACTION_SETS: frozenset[frozenset[ChangeAction]] = frozenset(
    {
        frozenset({ChangeAction.NO_OP}),
        frozenset({ChangeAction.READ}),
    }
)

FINDING_CATEGORIES: dict[FindingCategory, Category] = {
    FindingCategory.SECRET: Category.SECRET,
    FindingCategory.PII: Category.PII,
    FindingCategory.COMPLIANCE: Category.COMPLIANCE,
    FindingCategory.NON_INCLUSIVE_LANGUAGE: Category.NON_INCLUSIVE_LANGUAGE,
    FindingCategory.OTHER: Category.OTHER,
}


def _as_actions(actions: Iterable[ChangeAction | str]) -> frozenset[ChangeAction]:
    return frozenset(ChangeAction(a) for a in actions)


def is_unchanged(actions: Iterable[ChangeAction | str]) -> bool:
    """True for no-op / read-only action sets, which describe no change at all."""
    try:
        return _as_actions(actions) in UNCHANGED_ACTION_SETS
    except ValueError:
        return False


def classify_actions(
    actions: Iterable[ChangeAction | str], index: int = -1, locator: str = ""
) -> Category:
    """
    Map a change's action set onto Add / Modify / Destroy / Replace.

    Raises:
        UnknownActionSetError: for any other combination.
    """
    actions = list(actions)
    try:
        key = _as_actions(actions)
    except ValueError:
        raise UnknownActionSetError(
            [str(a) for a in actions], index=index, locator=locator
        ) from None

    category = ACTION_SET_CATEGORIES.get(key)
    if category is None:
        raise UnknownActionSetError(
            [a.value if isinstance(a, ChangeAction) else str(a) for a in actions],
            index=index,
            locator=locator,
        )
    return category


def classify_finding(category: FindingCategory | str) -> Category:
    return FINDING_CATEGORIES[FindingCategory(category)]


def action_signature(category: Category) -> str:
    """Canonical signature used in change ids; replace is 'create+delete' whatever the order."""
    for action_set, mapped in ACTION_SET_CATEGORIES.items():
        if mapped == category:
            return "+".join(sorted(a.value for a in action_set))
    raise ValueError(f"{category.value} is not a change category")
