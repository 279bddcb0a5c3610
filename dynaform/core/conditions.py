"""
Deterministic condition evaluator for conditional rules.

A rule carries exactly one condition: a trigger field, an operator and a
comparison value. This module tests that condition against the current
form values. Evaluation is pure and never raises; an unknown operator
simply does not match.
"""

import logging
import math
from typing import Any

from dynaform.core.schema import ConditionalCondition, ConditionOperator
from dynaform.core.utils import strict_equals, to_number, values_equal

logger = logging.getLogger(__name__)


def evaluate_condition(condition: ConditionalCondition, values: dict[str, Any]) -> bool:
    """Evaluate a single rule condition against the current values.

    Args:
        condition: The condition to evaluate.
        values: Current form values keyed by field ID.

    Returns:
        True if the condition matches, False otherwise.
    """
    left = values.get(condition.trigger_field)
    right = condition.value

    match condition.operator:
        case ConditionOperator.EQUALS:
            return values_equal(left, right)

        case ConditionOperator.NOT_EQUALS:
            return not values_equal(left, right)

        case ConditionOperator.GREATER_THAN:
            # NaN on either side makes both comparisons False
            return _ordered_operand(condition, values) > to_number(right)

        case ConditionOperator.LESS_THAN:
            return _ordered_operand(condition, values) < to_number(right)

        case ConditionOperator.CONTAINS:
            return _contains(left, right)

    logger.debug(
        "Unknown operator %r on trigger field '%s'; condition does not match",
        condition.operator,
        condition.trigger_field,
    )
    return False


def _ordered_operand(condition: ConditionalCondition, values: dict[str, Any]) -> float:
    # A trigger with no value entry never compares; an entry holding None does
    if condition.trigger_field not in values:
        return math.nan
    return to_number(values[condition.trigger_field])


def _contains(container: Any, item: Any) -> bool:
    """Membership test that only applies to list values.

    Args:
        container: The trigger field value.
        item: The value to look for.

    Returns:
        True if container is a list/tuple holding an element strictly
        equal to item. Strings and other values never contain anything.
    """
    if not isinstance(container, (list, tuple)):
        return False
    return any(strict_equals(element, item) for element in container)
