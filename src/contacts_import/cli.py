from __future__ import annotations

import argparse
import asyncio
import csv
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .config_loader import ImportConfig, load_import_config
from .errors import ConfigurationError, ParseFailure
from .importability import ImportabilityFilter
from .logging_utils import configure_logging
from .models import ImportContext, ProfileMatch
from .normalization import read_contact_table
from .orchestrator import ImportOrchestrator, ImportPreview
from .rep_matcher import RepMatcher
from .store import InMemoryContactStore, StaticProfileDirectory

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BLOCKED = 1
EXIT_PARSE_FAILURE = 2


def _load_profiles(path: Optional[str]) -> List[ProfileMatch]:
    if not path:
        return []
    frame = read_contact_table(path)
    return [ProfileMatch.from_mapping(row) for row in frame.to_dict(orient="records")]


def build_preview(
    args: argparse.Namespace, config: ImportConfig, profiles: Sequence[ProfileMatch] = ()
) -> ImportPreview:
    frame = read_contact_table(args.csv)
    store = (
        InMemoryContactStore.from_frame(read_contact_table(args.existing_csv), args.tenant_id)
        if getattr(args, "existing_csv", None)
        else InMemoryContactStore()
    )
    directory = StaticProfileDirectory(profiles)
    orchestrator = ImportOrchestrator(store, directory, config)
    context = ImportContext(tenant_id=args.tenant_id, location_id=getattr(args, "location_id", None))
    return asyncio.run(orchestrator.preview(frame, context))


def _records_frame(preview: ImportPreview) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for record in preview.records:
        payload = record.to_dict()
        payload["additional_emails"] = "|".join(record.additional_emails)
        payload["additional_phones"] = "|".join(record.additional_phones)
        payload["source_row"] = record.source_row
        payload["exclusion_reason"] = ImportabilityFilter.exclusion_reason(record) or ""
        rows.append(payload)
    return pd.DataFrame(rows)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Preview a contact import file.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    preview_parser = subparsers.add_parser("preview", help="Classify, normalize and check a file.")
    preview_parser.add_argument("--csv", type=str, required=True, help="File to import.")
    preview_parser.add_argument("--config", type=str, default=None, help="Path to YAML config.")
    preview_parser.add_argument("--out-dir", type=str, default=None)
    preview_parser.add_argument("--tenant-id", type=str, default="local")
    preview_parser.add_argument("--location-id", type=str, default=None)
    preview_parser.add_argument(
        "--existing-csv", type=str, default=None, help="Export of existing contacts to check duplicates against."
    )
    preview_parser.add_argument(
        "--profiles-csv", type=str, default=None, help="Rep profiles (id, first_name, last_name, email)."
    )
    preview_parser.add_argument("--max-additional-values", type=int, default=None)
    preview_parser.add_argument("--log-level", type=str, default=None, help="Override logging level")
    args = parser.parse_args(argv)

    try:
        config = load_import_config(args)
    except ConfigurationError as exc:
        parser.error(str(exc))
    configure_logging(config, level_override=args.log_level)

    try:
        profiles = _load_profiles(args.profiles_csv)
        preview = build_preview(args, config, profiles)
    except ParseFailure as exc:
        logger.error("Could not read %s: %s", args.csv, exc)
        return EXIT_PARSE_FAILURE

    diagnostics = preview.to_dict()
    if profiles:
        matcher = RepMatcher(profiles, company_aliases=config.rep_matching.company_aliases)
        for record in preview.report.importable:
            matcher.resolve(record.sales_rep_name)
        diagnostics["unmatched_reps"] = matcher.unmatched_names()

    out_dir = config.outputs.dir
    out_dir.mkdir(parents=True, exist_ok=True)
    contacts_path = out_dir / "normalized_contacts.csv"
    diagnostics_path = out_dir / "import_diagnostics.json"
    _records_frame(preview).to_csv(str(contacts_path), index=False, encoding="utf-8", quoting=csv.QUOTE_ALL)
    with open(diagnostics_path, "w", encoding="utf-8") as handle:
        json.dump(diagnostics, handle, indent=2)

    logger.info("Saved: %s", contacts_path)
    logger.info("Saved: %s", diagnostics_path)

    if preview.blocked:
        for reason in preview.report.blocking_reasons:
            logger.warning("Blocked: %s", reason)
        return EXIT_BLOCKED
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
