"""
Facility feed loader for the CEBA Mapper.

This module handles:
- Fetching the published spreadsheet export (CSV) over HTTP
- Parsing each data row into a FacilityRecord
- Reporting rows that had to be skipped
- Populating the record store and its load state
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from config import Config
from errors import FeedLoadError, RowSkipped
from facility_store import FacilityRecord, RecordStore
from utils.validation import normalize_district_input

logger = logging.getLogger(__name__)


@dataclass
class FeedLoadReport:
    """Outcome of parsing one feed blob."""
    records: List[FacilityRecord] = field(default_factory=list)
    skipped: List[RowSkipped] = field(default_factory=list)


def parse_feed(text: str) -> FeedLoadReport:
    """
    Parse the CSV feed into facility records.

    The first line is a header and is ignored. Each data row needs at least
    two comma separated fields: name and district. Extra columns are ignored.
    Districts are normalized like search input: trimmed, single spaced and
    lowercase. Rows that are too short or have an empty name or district are skipped
    and reported, never fatal.

    Args:
        text: Raw feed text

    Returns:
        FeedLoadReport with records in feed order and the skipped rows
    """
    report = FeedLoadReport()
    if not text or not text.strip():
        logger.warning("Feed is empty")
        return report

    rows = text.strip().split('\n')[1:]

    for index, row in enumerate(rows):
        # Header is line 1
        line_number = index + 2
        row = row.rstrip('\r')
        columns = row.split(',')

        if len(columns) < 2:
            skipped = RowSkipped(line_number, "malformed", row)
            logger.warning(f"[Row {line_number}] Malformed row: {row!r}. Skipped.")
            report.skipped.append(skipped)
            continue

        name = columns[0].strip()
        district = normalize_district_input(columns[1])

        if not name or not district:
            skipped = RowSkipped(line_number, "incomplete", row)
            logger.warning(f"[Row {line_number}] Incomplete data. Skipped.")
            report.skipped.append(skipped)
            continue

        report.records.append(FacilityRecord(name=name, district=district))

    return report


def fetch_feed(
        url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None
    ) -> str:
    """
    Download the raw feed text.

    Parameters:
        url (Optional[str]): Feed location, defaults to Config.FEED_URL.
        session (Optional[requests.Session]): HTTP session to use.
        timeout (Optional[float]): Request timeout in seconds.

    Returns:
        str: The response body.

    Raises:
        FeedLoadError: On transport errors or a non-success status.
    """
    url = url or Config.FEED_URL
    http = session or requests.Session()
    timeout = timeout or Config.HTTP_TIMEOUT

    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FeedLoadError(f"Could not fetch facility feed from {url}: {e}") from e

    # Sheets exports are UTF-8 even when the charset is not declared
    if 'charset' not in response.headers.get('Content-Type', '').lower():
        response.encoding = 'utf-8'
    return response.text


def load_feed(
        store: RecordStore,
        url: Optional[str] = None,
        session: Optional[requests.Session] = None
    ) -> Optional[FeedLoadReport]:
    """
    Fetch and parse the feed into the record store.

    On failure the store is left empty in the FAILED state and None is
    returned; the error is logged, not raised.

    Args:
        store: Record store to populate
        url: Feed location, defaults to Config.FEED_URL
        session: HTTP session to use

    Returns:
        The parse report, or None if the feed could not be loaded
    """
    logger.info("[Step 1] Loading facility data from the feed...")
    store.mark_loading()

    try:
        text = fetch_feed(url, session=session)
        report = parse_feed(text)
    except FeedLoadError as e:
        logger.error(f"[Step 1] Error loading facility feed: {e}")
        store.mark_failed(e)
        return None

    store.replace(report.records)
    logger.info(
        f"[Step 1] {len(report.records)} CEBAs loaded from the feed "
        f"({len(report.skipped)} rows skipped)"
    )
    return report
