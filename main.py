"""
Research tool backend entry point.

Run with: python main.py
Listens on API_HOST:PORT (default 0.0.0.0:3000). LOG_LEVEL sets both the
app and uvicorn log level. ENV=development turns on auto-reload and /docs.
All other options (Gemini, storage, thresholds, feature flags) come from the
environment or .env, see research_tool/core/config.py and core/flags.py.
"""

import uvicorn

from research_tool.factory import create_app
from research_tool.core.config import get_settings

app = create_app()

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )
