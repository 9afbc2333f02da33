"""Error kinds raised by the ingestion pipeline and the query layer."""


class PharmacyError(Exception):
    """Base class for pharmacy module failures."""

    error_code = 'PHARMACY_ERROR'


class FetchError(PharmacyError):
    """The source page could not be fetched (network, timeout, non-2xx)."""

    error_code = 'FETCH_ERROR'


class NoRecordsExtracted(PharmacyError):
    """Every extraction strategy came back empty."""

    error_code = 'NO_RECORDS'


class StoreWriteError(PharmacyError):
    """The store rejected a write."""

    error_code = 'STORE_WRITE_ERROR'


class MalformedQuery(PharmacyError):
    """Missing or non-numeric coordinates on a nearest-match request."""

    error_code = 'MALFORMED_QUERY'


class IngestionInProgress(PharmacyError):
    """Another ingestion run holds the run lock."""

    error_code = 'INGESTION_IN_PROGRESS'
