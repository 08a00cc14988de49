"""IP geolocation for the CLI and server when no coordinates are given."""
from __future__ import annotations

import logging

import requests

from .astronomy import Observer

logger = logging.getLogger(__name__)

PRIMARY_URL = "https://ipinfo.io/json"
FALLBACK_URL = "https://ipapi.co/json"


def autolocate(timeout: float = 4) -> Observer:
    """Observer at sea level for the caller's public IP.

    Network or decoding errors from ipinfo.io are logged and ipapi.co is
    asked instead; errors from ipapi.co reach the caller.
    """
    try:
        response = requests.get(PRIMARY_URL, timeout=timeout)
        if response.ok and response.json().get("loc"):
            lat_s, lon_s = response.json()["loc"].split(",")
            return Observer(float(lat_s), float(lon_s))
    except (requests.RequestException, ValueError):
        logger.info("primary geolocation failed, trying %s", FALLBACK_URL, exc_info=True)

    fallback = requests.get(FALLBACK_URL, timeout=timeout)
    fallback.raise_for_status()
    data = fallback.json()
    return Observer(float(data["latitude"]), float(data["longitude"]))
