#!/usr/bin/env python3
"""
Run script for the Post Narrator service
"""
import uvicorn

from narrator.config.settings import settings
from narrator.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
