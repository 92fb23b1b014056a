"""Response conventions for the DMPHQ API.

1. GET single resource / score payloads:
   Return the object directly (camelCase for automation payloads).

2. GET collection:
   Return StandardResponse: {"status": "success", "data": [...], "message": null}

3. POST/DELETE mutation:
   Return StandardResponse with the affected row in "data" and a message.
   Actions without a row (cache invalidation) use success():
   {"status": "success", "message": "...", **extra}

ERRORS
------
All errors use FastAPI HTTPException, which returns
   {"detail": "Human-readable error message"}
Invalid request bodies come back as 422 from request validation.
"""

from typing import Any, Dict


def success(message: str = "OK", **extra) -> Dict[str, Any]:
    """Standard mutation response."""
    return {"status": "success", "message": message, **extra}
