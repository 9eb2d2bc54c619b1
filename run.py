#!/usr/bin/env python3
"""
Digital Bank Entry Point

Starts the FastAPI server with the user account API.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from digital_bank.config import get_config
from digital_bank.errors import ConfigurationError
from digital_bank.server import run_server


if __name__ == "__main__":
    config = get_config()
    print("🏦 Starting Digital Bank API...")
    print(f"🌐 API available at: http://localhost:{config.api_port}/api/v1")
    print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(config)
    except KeyboardInterrupt:
        print("\n👋 Shutting down Digital Bank API...")
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)
