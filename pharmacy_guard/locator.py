"""
Placeholder Locator
===================
Stand-in for a real geocoder: every record gets a random point around the
city center so that markers are distinct on a map. The address is ignored.

Anything exposing `locate(address) -> Optional[Coordinates]` can replace it;
callers treat None as "no location" and store the record without coordinates.
"""
import random

from .models import Coordinates


TANGIER_CENTER = Coordinates(35.7595, -5.8340)


class PlaceholderLocator:

    def __init__(self, center=TANGIER_CENTER, jitter=0.05, rng=None):
        self.center = Coordinates(*center)
        self.jitter = jitter
        self._rng = rng or random.Random()

    def locate(self, address):
        return Coordinates(
            self.center.latitude + self._rng.uniform(-self.jitter, self.jitter),
            self.center.longitude + self._rng.uniform(-self.jitter, self.jitter),
        )

    @classmethod
    def from_config(cls, config):
        return cls(
            center=(config.CITY_CENTER_LAT, config.CITY_CENTER_LON),
            jitter=config.LOCATION_JITTER_DEG,
        )
