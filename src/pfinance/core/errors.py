"""Error codes and user-friendly messages.

This module defines the error catalog for the finance API.
Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""


# Error catalog
ERROR_CATALOG: dict[str, dict] = {
    # Validation
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request payload failed validation",
        "user_message": "Invalid input data.",
        "suggestion": "Please check your input and try again.",
        "retry_allowed": True,
    },
    "VAL_002": {
        "code": "VAL_002",
        "message": "Balance value outside the accepted range",
        "user_message": "That balance doesn't look realistic.",
        "suggestion": "Enter a value between -1,000,000.00 and 1,000,000.00.",
        "retry_allowed": True,
    },
    "VAL_003": {
        "code": "VAL_003",
        "message": "Category name already in use",
        "user_message": "A category with this name already exists.",
        "suggestion": "Choose a different name or edit the existing category.",
        "retry_allowed": False,
    },
    "VAL_004": {
        "code": "VAL_004",
        "message": "Invalid rule pattern",
        "user_message": "This rule pattern is not valid.",
        "suggestion": "Check the regular expression syntax or use a 'contains' rule.",
        "retry_allowed": True,
    },
    "VAL_005": {
        "code": "VAL_005",
        "message": "Bulk request contained no updatable fields",
        "user_message": "Nothing to update.",
        "suggestion": "Provide at least one field to change.",
        "retry_allowed": True,
    },
    # Not found
    "NF_001": {
        "code": "NF_001",
        "message": "Transaction not found",
        "user_message": "We couldn't find this transaction.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "NF_002": {
        "code": "NF_002",
        "message": "Category not found",
        "user_message": "We couldn't find this category.",
        "suggestion": "Please refresh the category list and try again.",
        "retry_allowed": False,
    },
    "NF_003": {
        "code": "NF_003",
        "message": "Category rule not found",
        "user_message": "We couldn't find this rule.",
        "suggestion": "Please refresh the rule list and try again.",
        "retry_allowed": False,
    },
    "NF_004": {
        "code": "NF_004",
        "message": "File balance not found",
        "user_message": "We couldn't find this statement balance.",
        "suggestion": "Import the statement again or pick another balance.",
        "retry_allowed": False,
    },
    "NF_005": {
        "code": "NF_005",
        "message": "No transactions matched the given descriptions",
        "user_message": "No transactions match this description.",
        "suggestion": "Check the description text and try again.",
        "retry_allowed": False,
    },
    # Persistence
    "DB_001": {
        "code": "DB_001",
        "message": "Database transaction failed",
        "user_message": "We couldn't save your changes due to a database error.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
    "DB_002": {
        "code": "DB_002",
        "message": "Resource already exists",
        "user_message": "This record already exists.",
        "suggestion": "Please check if the record was already created.",
        "retry_allowed": False,
    },
    # External services
    "AI_001": {
        "code": "AI_001",
        "message": "All configured LLM models failed",
        "user_message": "AI services are temporarily unavailable.",
        "suggestion": "Please try again in a few minutes.",
        "retry_allowed": True,
    },
    "AI_002": {
        "code": "AI_002",
        "message": "LLM API key is not configured",
        "user_message": "AI insights are not configured.",
        "suggestion": "Set OPENROUTER_API_KEY in the .env file.",
        "retry_allowed": False,
    },
    "AI_003": {
        "code": "AI_003",
        "message": "No transactions available for analysis",
        "user_message": "There are no transactions to analyze yet.",
        "suggestion": "Import a bank statement first.",
        "retry_allowed": False,
    },
    "RATE_001": {
        "code": "RATE_001",
        "message": "Rate limit exceeded",
        "user_message": "Too many requests.",
        "suggestion": "Please wait a minute before asking again.",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details (a generic definition for unknown codes)
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def is_retryable(error_code: str) -> bool:
    """Check if an error is retryable."""
    return get_error(error_code)["retry_allowed"]
