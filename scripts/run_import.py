#!/usr/bin/env python3
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

# --- ensure repo root on sys.path ---
THIS_FILE = Path(__file__).resolve()
REPO_ROOT = THIS_FILE.parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from importers.find_missing import find_missing_articles
from importers.import_articles import import_folder, scan_folder
from logging_setup import get_logger, setup_logging
from models import RunConfig
from utils.api import DeliveryAPI, ManagementAPI
from utils.fs import atomic_write, json_dumps_stable

ENV_PROJECT_ID = "KONTENT_PROJECT_ID"
ENV_MANAGEMENT_KEY = "KONTENT_MANAGEMENT_KEY"
ENV_DATA_FOLDER = "KONTENT_DATA_FOLDER"
ENV_LANGUAGE = "KONTENT_LANGUAGE"
ENV_TYPE = "KONTENT_TYPE"


def _load_env() -> None:
    """Load .env unless KONTENT_DOTENV_DISABLE=1 (tests control the environment)."""
    if os.getenv("KONTENT_DOTENV_DISABLE") == "1":
        return
    load_dotenv()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Import *.json articles (with their images) into a Kontent.ai project and publish them."
    )
    ap.add_argument("-v", "--verbose", action="count", default=0, help="Run with verbose logging")
    ap.add_argument("-p", "--projectId", "--project-id", dest="project_id",
                    default=os.getenv(ENV_PROJECT_ID),
                    help=f"Project id to import into [{ENV_PROJECT_ID}] by default")
    ap.add_argument("-m", "--managementKey", "--management-key", dest="management_key",
                    default=os.getenv(ENV_MANAGEMENT_KEY),
                    help=f"Management API key [{ENV_MANAGEMENT_KEY}] by default")
    ap.add_argument("-f", "--folder", type=Path,
                    default=os.getenv(ENV_DATA_FOLDER),
                    help=f"Folder the *.json files are loaded from [{ENV_DATA_FOLDER}] by default. "
                         "Types have to exist in Kontent already.")
    ap.add_argument("-l", "--language", default=os.getenv(ENV_LANGUAGE),
                    help=f"Kontent language codename [{ENV_LANGUAGE}] by default")
    ap.add_argument("-t", "--type", dest="type_codename", default=os.getenv(ENV_TYPE),
                    help=f"Kontent type codename to import to [{ENV_TYPE}] by default")
    ap.add_argument("-j", "--justMissing", "--just-missing", dest="just_missing", action="store_true",
                    help="Import only articles whose number is missing in Kontent "
                         "(expected count = trailing number of the folder name)")
    ap.add_argument("-i", "--ignoreExternalId", "--ignore-external-id", dest="ignore_external_id",
                    action="store_true", help="Do not send image.id as the asset external_id")
    ap.add_argument("--workers", type=int, default=1,
                    help="Files imported in parallel (default: 1). Articles within a file stay ordered.")
    ap.add_argument("--rich-text", action="store_true",
                    help="Normalize article content to Kontent rich-text HTML before upload.")
    ap.add_argument("--dry-run", action="store_true", help="Plan counts only; no API calls.")
    ap.add_argument("--summary-json", type=Path, default=None,
                    help="If provided, write a JSON summary of the run here.")
    return ap


def _config_from_args(args: argparse.Namespace) -> RunConfig:
    return RunConfig(
        project_id=args.project_id,
        management_key=args.management_key,
        folder=Path(args.folder),
        language=args.language,
        type_codename=args.type_codename,
        verbose=args.verbose > 0,
        just_missing=args.just_missing,
        ignore_external_id=args.ignore_external_id,
        workers=max(1, args.workers),
        dry_run=args.dry_run,
        rich_text=args.rich_text,
        summary_json=args.summary_json,
    )


def _print_dry_run(config: RunConfig, counts: Dict[str, int]) -> None:
    print(f"DRY-RUN: plan for {config.folder}")
    for name, n in counts.items():
        print(f" - {name}: {n} article(s)")
    print(f"total: {sum(counts.values())} article(s) in {len(counts)} file(s)")


def _missing_settings(config: RunConfig) -> List[str]:
    required = {
        ENV_PROJECT_ID: config.project_id,
        ENV_MANAGEMENT_KEY: config.management_key,
        ENV_LANGUAGE: config.language,
        ENV_TYPE: config.type_codename,
    }
    return [name for name, value in required.items() if not value]


def main(argv: Optional[List[str]] = None) -> int:
    _load_env()
    ap = build_parser()
    args = ap.parse_args(argv)

    setup_logging(verbosity=1 + args.verbose)

    if not args.folder:
        ap.error(f"Provide --folder or set {ENV_DATA_FOLDER}.")

    config = _config_from_args(args)
    log = get_logger(stage="runner", project_id=config.project_id or "-")

    if not config.folder.is_dir():
        log.error("Cannot read the folder %s", config.folder)
        return 2

    if config.dry_run:
        _print_dry_run(config, scan_folder(config.folder))
        return 0

    missing_settings = _missing_settings(config)
    if missing_settings:
        log.error("Missing settings: %s (pass the flags or set them in environment/.env)", ", ".join(missing_settings))
        return 2

    management = ManagementAPI(config.project_id, config.management_key)

    missing = None
    if config.just_missing:
        try:
            missing = find_missing_articles(config, DeliveryAPI(config.project_id))
        except ValueError as exc:
            log.error("Cannot compute missing articles: %s", exc)
            return 2
        except Exception:
            log.exception("Missing-article scan failed")
            return 1
        log.info("Importing %d missing article(s): %s", len(missing.missing), missing.missing)

    summary = import_folder(config, management=management, missing=missing)

    if config.summary_json:
        summary_path = config.summary_json
        if summary_path.exists() and summary_path.is_dir():
            summary_path = summary_path / "import_summary.json"
        payload = summary.to_dict()
        payload.update({
            "project_id": config.project_id,
            "folder": str(config.folder),
            "language": config.language,
            "type": config.type_codename,
            "just_missing": config.just_missing,
            "missing": missing.missing if missing is not None else None,
        })
        atomic_write(summary_path, json_dumps_stable(payload))
        log.info("Wrote summary -> %s", summary_path)

    print(
        f"Import finished. imported={summary.imported} skipped={summary.skipped} "
        f"failed={summary.failed} files_failed={summary.files_failed}"
    )
    if summary.failed or summary.files_failed:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
