"""HTTP API for backup and restore.

Usage:
    import uvicorn
    from taskvault.api import create_app

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
"""

from taskvault.api.app import create_app

__all__ = ["create_app"]
