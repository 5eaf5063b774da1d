"""
Command line entry point for one-off scoring runs.

Reads a CSV or JSON ratings file (noteId, raterDid, helpfulness columns),
scores it, and writes the note scores as JSON.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from bridging_scorer.config import get_settings
from bridging_scorer.exceptions import ScoringError
from bridging_scorer.scoring.scorer import BridgingScorer


logger = logging.getLogger(__name__)


def read_ratings(path: Path) -> pd.DataFrame:
    """Load ratings from a .csv, .json or .jsonl file."""
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype={"noteId": str, "raterDid": str})
    if suffix == ".json":
        return pd.read_json(path, orient="records", dtype={"noteId": str, "raterDid": str})
    if suffix in (".jsonl", ".ndjson"):
        return pd.read_json(path, orient="records", lines=True, dtype={"noteId": str, "raterDid": str})
    raise ScoringError(f"Unsupported ratings file type: {path.suffix}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bridging scorer for community notes")
    parser.add_argument("ratings", type=Path, help="Ratings file (.csv, .json or .jsonl)")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for factor initialization (default from settings)"
    )
    parser.add_argument(
        "--epochs",
        type=int,
        default=None,
        help="Number of epochs (default from settings)"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write scores here instead of stdout"
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    params = settings.scoring_parameters()
    if args.epochs is not None:
        params = params.model_copy(update={"epochs": args.epochs})
    seed = args.seed if args.seed is not None else settings.random_seed

    try:
        ratings = read_ratings(args.ratings)
        scores = BridgingScorer(params, seed=seed).score_frame(ratings)
    except (OSError, ValueError, ScoringError) as e:
        logger.error(f"Scoring failed: {e}")
        return 1

    payload = json.dumps([s.model_dump(mode="json", by_alias=True) for s in scores], indent=2)
    if args.output:
        args.output.write_text(payload + "\n")
        logger.info(f"Wrote {len(scores)} scores to {args.output}")
    else:
        sys.stdout.write(payload + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
