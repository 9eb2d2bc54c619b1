"""
Server Entry Module

Builds the configuration once at process start, sets up logging and serves
the API with uvicorn.
"""

from typing import Optional

import uvicorn

from .api import create_app
from .config import DigitalBankConfig, get_config
from .logging_config import setup_logging


def run_server(config: Optional[DigitalBankConfig] = None, debug: bool = False):
    """Run the FastAPI server"""
    config = config or get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)
    
    app = create_app(config)
    uvicorn.run(
        app,
        host=config.api_host,
        port=config.api_port,
        log_level="debug" if debug else "info"
    )
