"""Job entrypoint that parses and extracts a single bureau XML file from disk."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from credit_ingest.extraction import ExtractionError, extract
from credit_ingest.parsing import TreeParseError, parse_xml
from credit_ingest.settings import get_settings

LOGGER = logging.getLogger("credit_ingest.worker.jobs.extract_file")

PATH_ENV_VAR = "CREDIT_INGEST_EXTRACT__PATH"


def _configure_logging() -> None:
    level_name = get_settings().runtime.log_level.upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def main(argv: Sequence[str] | None = None) -> int:
    """Print the extracted report for the file named on the command line (or in the env)."""

    _configure_logging()

    args = list(sys.argv[1:] if argv is None else argv)
    raw_path = args[0] if args else os.getenv(PATH_ENV_VAR)
    if not raw_path:
        LOGGER.error("Usage: python -m credit_ingest.worker.jobs.extract_file <path> (or set %s)", PATH_ENV_VAR)
        return 1

    path = Path(raw_path).expanduser()
    if not path.is_file():
        LOGGER.error("XML file not found: %s", path)
        return 1

    LOGGER.info("Extracting report from %s", path)
    try:
        report = extract(parse_xml(path.read_bytes()))
    except (TreeParseError, ExtractionError) as exc:
        LOGGER.error("Extraction failed for %s: %s", path, exc)
        return 1

    print(report.model_dump_json(indent=2))
    LOGGER.info(
        "Extraction completed: pan=%s accounts=%d addresses=%d",
        report.basic_details.pan,
        len(report.credit_accounts),
        len(report.addresses),
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
