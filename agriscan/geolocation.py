"""Single-shot position lookup.

The browser asks the device; a Streamlit server cannot, so the position comes
from an IP geolocation service instead.
"""
import logging

import requests

from . import config
from .models import Location

logger = logging.getLogger(__name__)

LOCATION_UNAVAILABLE = "Unable to retrieve location. Please check permissions."


def get_location(url=config.GEOLOCATION_URL, timeout=config.GEOLOCATION_TIMEOUT):
    """Return (Location, error_message)"""
    try:
        r = requests.get(url, timeout=timeout)
        if r.status_code != 200:
            logger.warning("Geolocation failed: status %s", r.status_code)
            return None, LOCATION_UNAVAILABLE
        lat, lon = r.json()["loc"].split(",")
        return Location(latitude=float(lat), longitude=float(lon)), None
    except (requests.RequestException, KeyError, ValueError, AttributeError) as e:
        logger.warning("Geolocation error: %s", e)
        return None, LOCATION_UNAVAILABLE
