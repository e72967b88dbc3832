#!/usr/bin/env python3
"""
KubeDeploy Backend Server
Starts the FastAPI server
"""

import uvicorn
from dotenv import load_dotenv

# load .env before settings are read
load_dotenv()

from kubedeploy.config import get_settings
from kubedeploy.core.logging import setup_logging
from kubedeploy.main import create_app

settings = get_settings()

# app logging owns the handlers; uvicorn's default log_config would replace them
setup_logging(settings)

app = create_app(settings)

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
