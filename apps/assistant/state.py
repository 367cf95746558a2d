"""
State carried through the business advice workflow.

    gather_context -> generate_advice -> END
          |                 |
          +--> handle_error <+
"""
from typing import Any, Dict, Optional, TypedDict


class AdvisorState(TypedDict, total=False):
    # Input
    query: str
    shop: Any

    # Context (gather_context)
    shop_data: Dict[str, Any]
    analytics: Dict[str, Any]

    # Output (generate_advice / handle_error)
    response: Optional[str]
    success: bool
    message: Optional[str]
    error: Optional[str]


def create_initial_state(query: str, shop) -> AdvisorState:
    return AdvisorState(
        query=query,
        shop=shop,
        shop_data={},
        analytics={},
        response=None,
        success=False,
        message=None,
        error=None,
    )
