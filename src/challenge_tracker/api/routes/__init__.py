"""API route modules."""

from typing import Any, Dict

from ...utils.dates import now_ms


def success_response(data: Any) -> Dict[str, Any]:
    """Wrap a payload in the standard success envelope."""
    return {"success": True, "data": data, "timestamp": now_ms()}
