"""Error codes and user-friendly messages.

Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

ERROR_CATALOG: dict[str, dict] = {
    "AI_001": {
        "code": "AI_001",
        "message": "No generation provider configured",
        "user_message": "Automatic AI categorization is not available.",
        "suggestion": "Set GEMINI_API_KEY or GROQ_API_KEY to enable it.",
        "retry_allowed": False,
    },
    "AI_002": {
        "code": "AI_002",
        "message": "Generation provider failed",
        "user_message": "The AI categorization service did not respond.",
        "suggestion": "Transactions categorized so far were kept. Please try again later.",
        "retry_allowed": True,
    },
    "AI_003": {
        "code": "AI_003",
        "message": "AI categorization is disabled",
        "user_message": "Automatic AI categorization is turned off.",
        "suggestion": "Set AI_CATEGORIZATION_ENABLED=true to enable it.",
        "retry_allowed": False,
    },
    "AUTH_001": {
        "code": "AUTH_001",
        "message": "Attempt to modify a system or foreign resource",
        "user_message": "You can't modify this rule.",
        "suggestion": "System rules are read-only. Create your own rule instead.",
        "retry_allowed": False,
    },
    "CAT_001": {
        "code": "CAT_001",
        "message": "Category not found or not visible to user",
        "user_message": "That category doesn't exist.",
        "suggestion": "Please choose one of your categories.",
        "retry_allowed": False,
    },
    "TRF_001": {
        "code": "TRF_001",
        "message": "Transfer peer not found",
        "user_message": "We couldn't find the other side of this transfer.",
        "suggestion": "Please refresh and pick another transaction.",
        "retry_allowed": False,
    },
    "DB_001": {
        "code": "DB_001",
        "message": "Database transaction failed during a paired write",
        "user_message": "We couldn't save your changes due to a database error.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details (a generic entry for unknown codes)
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


def get_user_message(error_code: str) -> str:
    """Get user-friendly message for an error code."""
    return get_error(error_code)["user_message"]


def is_retryable(error_code: str) -> bool:
    """Check if an error is retryable."""
    return get_error(error_code)["retry_allowed"]
