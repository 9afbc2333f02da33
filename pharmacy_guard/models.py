"""
Pharmacy Records
================
Draft records come out of the extraction chain; PharmacyRecord is what the
store keeps and what the API serves.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import NamedTuple, Optional


PHONE_SENTINEL = 'N/A'


class Coordinates(NamedTuple):
    latitude: float
    longitude: float


@dataclass(frozen=True)
class DraftRecord:
    """An extracted pharmacy entry, before phone/day/location resolution."""
    name: str
    address: str = ''
    raw_phone_text: str = ''
    raw_day_text: str = ''


@dataclass
class PharmacyRecord:
    """Canonical pharmacy record, as persisted."""
    name: str
    address: str
    phone: str
    day_of_week: int
    is_open: bool
    updated_at: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    id: Optional[str] = None

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None

    def with_id(self, record_id):
        return replace(self, id=record_id)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'phone': self.phone,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'day_of_week': self.day_of_week,
            'is_open': self.is_open,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class NearestMatch:
    record: PharmacyRecord
    distance_km: float

    def to_dict(self):
        return {
            'pharmacy': self.record.to_dict(),
            'distance': self.distance_km,
        }


@dataclass(frozen=True)
class IngestionResult:
    success: bool
    count: int
    message: str = ''
    error_code: Optional[str] = field(default=None, compare=False)

    def to_dict(self):
        return {
            'success': self.success,
            'count': self.count,
            'message': self.message,
        }
