#!/usr/bin/env python3
from __future__ import annotations
from pathlib import Path
import argparse
import os
import sys
from typing import List, Optional

# --- ensure repo root on sys.path ---
THIS_FILE = Path(__file__).resolve()
REPO_ROOT = THIS_FILE.parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from logging_setup import setup_logging, get_logger
from importers.find_missing import find_missing_articles
from models import RunConfig
from utils.api import DeliveryAPI


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description="Report article numbers 1..N that are missing in Kontent (no imports)")
    p.add_argument("-p", "--projectId", "--project-id", dest="project_id", default=os.getenv("KONTENT_PROJECT_ID"))
    p.add_argument("-f", "--folder", type=Path, default=os.getenv("KONTENT_DATA_FOLDER"),
                   help="Folder whose trailing number is the expected article count, e.g. data/250")
    p.add_argument("-l", "--language", default=os.getenv("KONTENT_LANGUAGE"))
    p.add_argument("-t", "--type", dest="type_codename", default=os.getenv("KONTENT_TYPE"))
    p.add_argument("-v", "--verbose", action="count", default=1)
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    if os.getenv("KONTENT_DOTENV_DISABLE") != "1":
        load_dotenv()
    args = parse_args(argv)
    setup_logging(verbosity=args.verbose)
    log = get_logger(stage="find_missing", project_id=args.project_id or "-")

    if not args.project_id or not args.folder or not args.language or not args.type_codename:
        log.error("project id, folder, language and type are required (flags or KONTENT_* in .env)")
        return 2

    config = RunConfig(
        project_id=args.project_id,
        management_key=None,
        folder=Path(args.folder),
        language=args.language,
        type_codename=args.type_codename,
    )
    try:
        scan = find_missing_articles(config, DeliveryAPI(config.project_id))
    except ValueError as exc:
        log.error("%s", exc)
        return 2

    print(",".join(str(n) for n in scan.missing))
    return 0 if scan.type_found else 1


if __name__ == "__main__":
    raise SystemExit(main())
