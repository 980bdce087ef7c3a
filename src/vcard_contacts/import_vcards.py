from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Tuple

import pandas as pd

from .common import load_config, warn_missing
from .config_loader import PipelineConfig
from .dispatcher import build_record
from .logging_utils import configure_logging
from .models import ContactRecord
from .reader import read_vcard_file
from .sink import CsvRecordSink

logger = logging.getLogger(__name__)

OUTPUT_FILENAME = "normalized_contacts.csv"


def _load_records(config: PipelineConfig) -> List[ContactRecord]:
    path = config.inputs.vcf
    if warn_missing(path, "vCard input"):
        return []
    records: List[ContactRecord] = []
    for card in read_vcard_file(path):  # type: ignore[arg-type]
        records.append(
            build_record(
                card.properties,
                variant=config.card.variant,
                version=card.version or config.card.version,
            )
        )
    logger.info("Normalized %d card(s) from %s", len(records), path)
    return records


def build(
    args: argparse.Namespace, config: Optional[PipelineConfig] = None
) -> Tuple[pd.DataFrame, CsvRecordSink]:
    config = config or load_config(args)
    sink = CsvRecordSink(skip_ignorable=not getattr(args, "keep_ignorable", False))
    for record in _load_records(config):
        sink.accept(record, account=getattr(args, "account", None))
    if sink.skipped:
        logger.info("Skipped %d card(s) with no usable name or contact data", sink.skipped)
    return sink.to_dataframe(), sink


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Normalize vCard properties into one contact row per card."
    )
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config.")
    parser.add_argument("--vcf", type=str, default=None, help="vCard file to import.")
    parser.add_argument("--out-dir", type=str, default=None)
    parser.add_argument(
        "--variant",
        type=str,
        default=None,
        help="Naming/postal convention: default, japan, europe, japan_local_naming.",
    )
    parser.add_argument(
        "--version",
        dest="card_version",
        type=str,
        default=None,
        help="Card version assumed when a card omits VERSION (v21 or v30).",
    )
    parser.add_argument("--account", type=str, default=None, help="Owner account to tag rows with.")
    parser.add_argument("--keep-ignorable", action="store_true")
    parser.add_argument("--log-level", type=str, default=None, help="Override logging level")
    args = parser.parse_args(argv)

    config = load_config(args)
    configure_logging(config, level_override=args.log_level)
    _, sink = build(args, config=config)

    out_path = config.outputs.dir / OUTPUT_FILENAME
    if not sink.write(out_path):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
