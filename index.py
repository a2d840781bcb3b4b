"""
Uvicorn Startup Script
----------------------
Runs the authentication API.
"""

import uvicorn

from heron_auth.core.config_manager import settings


if __name__ == "__main__":
    uvicorn.run(
        app="heron_auth.app:app",
        host=settings.fastapi_host,
        port=settings.fastapi_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
