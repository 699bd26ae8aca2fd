"""Shared condition and message formatting utilities."""

from typing import Optional

# Canonical operator symbol mapping - import this instead of duplicating
OPERATOR_SYMBOLS = {
    "equals": "==",
    "not_equals": "!=",
    "greater_than": ">",
    "less_than": "<",
    "contains": "contains",
    "exists": "is set",
    "not_exists": "is not set",
}


def get_operator_symbol(operator: str) -> str:
    """Get display symbol for an operator name."""
    return OPERATOR_SYMBOLS.get(operator, operator)


def format_condition_failure(
    variable_name: str,
    operator: str,
    expected_value: str,
    actual_value: Optional[str],
) -> str:
    """
    Format a failed variable condition for debug output.

    Args:
        variable_name: Session variable the condition reads (e.g., "age")
        operator: Condition operator (e.g., "greater_than")
        expected_value: Operand authored on the condition
        actual_value: Value currently stored, None when unset

    Returns:
        Formatted message like "age > 18 (actual: 12)"
    """
    op_symbol = get_operator_symbol(operator)
    actual_str = "<unset>" if actual_value is None else repr(actual_value)
    if operator in ("exists", "not_exists"):
        return f"{variable_name} {op_symbol} (actual: {actual_str})"
    return f"{variable_name} {op_symbol} {expected_value} (actual: {actual_str})"
