#!/usr/bin/env python3
"""
FPL Price Predictor Server Runner

Run this script from the project root to start the Flask API server.

Usage:
    python run_server.py --debug
    python run_server.py -p 8080
    python run_server.py --schedule
"""

import logging
import click

from fpl_prices.api import run_server, get_predictor
from fpl_prices.scheduler import initialize_scheduler


@click.command()
@click.option('--host', '-h', default='0.0.0.0', help='Host to bind to')
@click.option('--port', '-p', default=5000, type=int, help='Port to listen on')
@click.option('--debug', '-d', is_flag=True, help='Enable debug mode')
@click.option('--schedule', '-s', 'with_schedule', is_flag=True,
              help='Refresh predictions in the background')
def main(host, port, debug, with_schedule):
    """Start the FPL Price Predictor API server"""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if with_schedule:
        initialize_scheduler(get_predictor())

    print(f"\nFPL Price Predictor API")
    print(f"   Server: http://{host}:{port}")
    print(f"   Predictions: http://localhost:{port}/api/price-predictions")
    print(f"   Debug mode: {'ON' if debug else 'OFF'}\n")
    run_server(host, port, debug)


if __name__ == '__main__':
    main()
