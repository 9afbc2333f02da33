"""
Duty Resolver
=============
A pharmacy is on duty ("de garde") when its scheduled day matches the
reference day. The flag is a snapshot taken at write time, so it is
recomputed by every ingestion run and by refresh_duty_status().
"""
import logging
from datetime import datetime

from .models import PHONE_SENTINEL, PharmacyRecord
from .normalizer import normalize_phone, resolve_day_of_week

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = 'Tangier, Morocco'


def build_records(drafts, reference_day, locator, now=None, default_address=DEFAULT_ADDRESS):
    """
    Turn drafts into PharmacyRecords for `reference_day` (0 = Sunday).

    Args:
        drafts: DraftRecords from the extraction chain.
        reference_day: Day index the duty status is evaluated against.
        locator: Object with locate(address) -> Optional[Coordinates].
        now: Timestamp written to updated_at (default: datetime.now()).
        default_address: Used when a draft has no address.

    Returns:
        list[PharmacyRecord]: One record per draft, same order, no ids.
    """
    if now is None:
        now = datetime.now()

    records = []
    for draft in drafts:
        address = draft.address or default_address
        day_of_week = resolve_day_of_week(draft.raw_day_text, reference_day)
        coords = locator.locate(address)

        records.append(PharmacyRecord(
            name=draft.name,
            address=address,
            phone=normalize_phone(draft.raw_phone_text) or PHONE_SENTINEL,
            day_of_week=day_of_week,
            is_open=day_of_week == reference_day,
            updated_at=now,
            latitude=coords.latitude if coords else None,
            longitude=coords.longitude if coords else None,
        ))
    return records


def refresh_duty_status(store, reference_day, now=None):
    """
    Recompute is_open for every stored record without re-scraping.
    Used at day rollover. Returns the number of records updated.
    """
    if now is None:
        now = datetime.now()

    records = store.get_all()
    for record in records:
        store.update_fields(record.id, {
            'is_open': record.day_of_week == reference_day,
            'updated_at': now,
        })

    logger.info("Updated open status for %d pharmacies (day %d)", len(records), reference_day)
    return len(records)
