"""
I/O helpers: download and unpack source files, load/save CSVs and workbooks.
"""

import logging
import zipfile
from pathlib import Path

import pandas as pd
import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .errors import FetchError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


def is_transient_error(exc: BaseException) -> bool:
    """True for network failures worth retrying (timeouts, resets, 429/5xx)."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return False


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=2, max=30),
    retry=retry_if_exception(is_transient_error),
    reraise=True,
)
def _get(url: str, timeout: float, **kwargs) -> requests.Response:
    resp = requests.get(url, timeout=timeout, **kwargs)
    resp.raise_for_status()
    return resp


def download_file(url: str, dest: Path, timeout: float = 300) -> Path:
    """Download a URL to ``dest``. Any failure after retries is fatal."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading %s → %s", url, dest)
    try:
        resp = _get(url, timeout)
    except requests.RequestException as exc:
        raise FetchError(f"Could not download {url}: {exc}") from exc
    dest.write_bytes(resp.content)
    logger.info("Saved %d bytes to %s", len(resp.content), dest)
    return dest


def unzip_archive(zip_path: Path, dest_dir: Path, remove: bool = True) -> list[Path]:
    """Extract a zip archive into ``dest_dir`` and optionally delete the archive."""
    dest_dir.mkdir(parents=True, exist_ok=True)
    try:
        with zipfile.ZipFile(zip_path) as zf:
            names = zf.namelist()
            zf.extractall(dest_dir)
    except zipfile.BadZipFile as exc:
        raise FetchError(f"{zip_path} is not a valid zip archive") from exc
    if remove:
        zip_path.unlink()
    logger.info("Extracted %d files to %s", len(names), dest_dir)
    return [dest_dir / n for n in names]


def read_workbook(path: Path) -> list[pd.DataFrame]:
    """
    Read every sheet of a spreadsheet as raw strings, in sheet order.

    No header row is assumed; preamble and header rows come back as data so
    the column normalizer can drop them by position.
    """
    engine = "openpyxl" if path.suffix.lower() == ".xlsx" else None
    sheets = pd.read_excel(path, sheet_name=None, header=None, dtype=str, engine=engine)
    logger.info("Loaded %d sheet(s) from %s", len(sheets), path.name)
    return list(sheets.values())


def load_csv(path: Path, **kwargs) -> pd.DataFrame:
    """Load a CSV into a DataFrame with logging."""
    logger.info("Loading %s", path)
    df = pd.read_csv(path, low_memory=False, **kwargs)
    logger.info("Loaded %d rows × %d cols from %s", len(df), len(df.columns), path.name)
    return df


def save_csv(df: pd.DataFrame, path: Path) -> Path:
    """Save a DataFrame to CSV."""
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logger.info("Saved %d rows to %s", len(df), path)
    return path
