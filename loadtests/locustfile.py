"""Storefront Load Testing — Locust entry point.

Usage:
    # Web UI:
    locust -f loadtests/locustfile.py

    # Headless (CI mode), 200 units of the hot SKU:
    locust -f loadtests/locustfile.py CheckoutUser --headless \
           -u 50 -r 5 -t 120s --csv=results/loadtest --hot-stock 200
"""

import logging
import time

import requests
from locust import events

from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.checkout import HOT_SKU, CheckoutUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.init_command_line_parser.add_listener
def _(parser):
    parser.add_argument("--hot-stock", type=int, default=100, help="Units of the hot SKU to stock before the run")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400 and response.status_code != 409:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    """Stock the hot SKU and make sure the fake gateway approves charges."""
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")

    stock = environment.parsed_options.hot_stock
    requests.post(f"{environment.host}/payments/gateway/configure", json={"should_succeed": True}, timeout=5)
    resp = requests.put(f"{environment.host}/inventory/{HOT_SKU}/receive", json={"quantity": stock}, timeout=5)
    print(f"[LOADTEST] Stocked {HOT_SKU}: {resp.json().get('available')} units")
    print()


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Report what is left of the hot SKU; it must never be negative."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    try:
        resp = requests.get(f"{environment.host}/inventory/{HOT_SKU}", timeout=5)
        print(f"[LOADTEST] {HOT_SKU} remaining: {resp.json()['available']}")
    except requests.exceptions.RequestException as e:
        print(f"[LOADTEST] Could not read final stock: {e}")
    print()
