#!/usr/bin/env python3
"""
Fetch Cyclone Data Script for Cyclone Tracks

Downloads the cyclonic events JSON export, checks that it is an array of
observation records and writes a data manifest summarizing its contents.

Data Sources:
- IMD best track data of cyclonic disturbances over the North Indian Ocean

Usage:
    python fetch_cyclone_data.py --url URL [--output PATH] [--manifest-path PATH]
"""

import argparse
import hashlib
import json
import logging
import os
import sys
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path

import httpx

from backend.processing.normalize import normalize_records
from backend.processing.aggregation import group_by_storm

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Default paths
DEFAULT_OUTPUT_PATH = Path(__file__).parent.parent / "backend" / "data" / "cyclonic_events.json"
DEFAULT_MANIFEST_PATH = Path(__file__).parent.parent / "backend" / "data" / "cyclone_manifest.json"


def download_file(url: str, output_path: Path, timeout: float = 120.0) -> bool:
    """Download a file from URL to the specified path."""
    try:
        logger.info(f"Downloading: {url}")
        with httpx.Client(timeout=timeout, follow_redirects=True) as client:
            response = client.get(url)
            response.raise_for_status()

            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'wb') as f:
                f.write(response.content)

            logger.info(f"Downloaded {len(response.content) / 1024:.1f} KB to {output_path}")
            return True
    except httpx.HTTPError as e:
        logger.error(f"HTTP error downloading {url}: {e}")
        return False
    except OSError as e:
        logger.error(f"Error writing {output_path}: {e}")
        return False


def get_file_hash(filepath: Path) -> str:
    """Calculate SHA-256 hash of a file."""
    digest = hashlib.sha256()
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(4096), b""):
            digest.update(chunk)
    return digest.hexdigest()


def summarize_dataset(filepath: Path) -> dict:
    """
    Read the dataset and count what the map will be able to show.

    Raises:
        ValueError: If the file is not a JSON array
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        rows = json.load(f)
    if not isinstance(rows, list):
        raise ValueError(f"{filepath} does not contain a JSON array")

    points = normalize_records(rows)
    by_year = {}
    for point in points:
        if point.year is not None:
            by_year.setdefault(point.year, []).append(point)

    return {
        "records": len(rows),
        "valid_points": len(points),
        "dropped_records": len(rows) - len(points),
        "years": {
            str(year): {"points": len(year_points), "storms": len(group_by_storm(year_points))}
            for year, year_points in sorted(by_year.items())
        },
        "grades": dict(Counter(p.grade for p in points)),
    }


def create_manifest(url: str, data_path: Path, summary: dict, manifest_path: Path) -> dict:
    """Create the cyclone data manifest."""
    manifest = {
        "version": "1.0.0",
        "generated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "description": "Cyclonic event observations for Cyclone Tracks",
        "source_url": url,
        "file": data_path.name,
        "size_bytes": data_path.stat().st_size,
        "sha256": get_file_hash(data_path),
        "summary": summary,
    }

    manifest_path.parent.mkdir(parents=True, exist_ok=True)
    with open(manifest_path, 'w') as f:
        json.dump(manifest, f, indent=2)

    logger.info(f"Created manifest: {manifest_path}")
    return manifest


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Fetch cyclonic event data for Cyclone Tracks"
    )
    parser.add_argument(
        "--url",
        default=os.getenv("CYCLONE_DATA_URL", ""),
        help="URL of the cyclonic events JSON (default: $CYCLONE_DATA_URL)"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_PATH,
        help="Where to write the dataset"
    )
    parser.add_argument(
        "--manifest-path",
        type=Path,
        default=DEFAULT_MANIFEST_PATH,
        help="Path for the data manifest JSON"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Download timeout in seconds"
    )
    parser.add_argument(
        "--skip-download",
        action="store_true",
        help="Skip downloading and summarize the existing dataset"
    )

    args = parser.parse_args(argv)

    logger.info("=" * 60)
    logger.info("Cyclone Tracks Data Fetcher")
    logger.info("=" * 60)
    logger.info(f"Output: {args.output}")

    if args.skip_download:
        if not args.output.exists():
            logger.error(f"Dataset not found: {args.output}")
            logger.error("Run without --skip-download to fetch it")
            sys.exit(1)
    else:
        if not args.url:
            logger.error("No URL given; pass --url or set CYCLONE_DATA_URL")
            sys.exit(1)
        if not download_file(args.url, args.output, args.timeout):
            logger.error("Failed to download dataset")
            sys.exit(1)

    try:
        summary = summarize_dataset(args.output)
    except ValueError as e:
        logger.error(f"Invalid dataset: {e}")
        sys.exit(1)

    create_manifest(args.url, args.output, summary, args.manifest_path)

    # Summary
    logger.info("=" * 60)
    logger.info("SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Records: {summary['records']} ({summary['dropped_records']} without valid coordinates)")
    for year, counts in summary["years"].items():
        logger.info(f"  - {year}: {counts['storms']} storms, {counts['points']} observations")
    logger.info(f"Manifest: {args.manifest_path}")
    logger.info("Done!")


if __name__ == "__main__":
    main()
