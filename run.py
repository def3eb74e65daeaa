#!/usr/bin/env python3
"""Run script for taskboard."""

import os

import uvicorn
from dotenv import load_dotenv

from taskboard.logging_setup import setup_logging

if __name__ == "__main__":
    load_dotenv()
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    uvicorn.run(
        "taskboard.api.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        reload=os.getenv("DEBUG", "False").lower() == "true",
        log_config=None,
    )
