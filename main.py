"""
Main entrypoint for the reverse geocoding service.

Usage:
    Run directly (`python main.py`) to serve the API on REVGEO_HOST:REVGEO_PORT (default 0.0.0.0:8000).
"""
import logging
import os
from datetime import datetime

import uvicorn

from revgeo.config import get_settings


def configure_logging(level):
    # Create logs directory
    logs_dir = os.path.join(os.getcwd(), 'logs')
    os.makedirs(logs_dir, exist_ok=True)

    # Create log file with today's date
    log_filename = os.path.join(logs_dir, f'revgeo_{datetime.now().strftime("%Y%m%d")}.log')

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_filename),
            logging.StreamHandler()
        ]
    )


def main():
    """
    Main function to serve the API.
    """
    settings = get_settings()
    try:
        configure_logging(settings.log_level.upper())
        logging.getLogger(__name__).info(f"Serving reverse geocoding API on {settings.host}:{settings.port} (cache: {settings.cache_root or 'disabled'})")
        uvicorn.run("revgeo.api.app:app", host=settings.host, port=settings.port)
        return 0
    except Exception as e:
        print(f"An error occurred in the main function: {str(e)}")
        return 1


if __name__ == "__main__":
    exit_code = main()
    print(f"Exiting with code {exit_code}")
