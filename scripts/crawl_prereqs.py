from __future__ import annotations

import argparse
import logging
from collections import Counter
from pathlib import Path

from config import Config
from services.crawl import dataset_path, parse_catalog, write_term_dataset
from utils.course_catalog import load_catalog


logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Parse the prerequisite text of every catalog course for one term "
                    "and write the term dataset."
    )
    ap.add_argument("term", help='Term identifier, e.g. "202508"')
    ap.add_argument("--catalog-dir", default=Config.CATALOG_DIR, help="Folder of catalog CSV/XLSX files")
    ap.add_argument("--out", default=None, help="Output JSON path (default: DATASET_DIR/<term>.json)")
    ap.add_argument("--workers", type=int, default=Config.CRAWL_MAX_WORKERS)
    ap.add_argument("--top", type=int, default=20, help="How many failing snippets to list")
    ap.add_argument("--log-level", default=Config.LOG_LEVEL)
    return ap


def report(result, top: int) -> None:
    total = len(result.courses)
    failures = result.failures
    print(f"Courses parsed: {total}")
    print(f"With prerequisites: {sum(1 for c in result.courses if c.is_known and c.prerequisites)}")
    print(f"Failed: {len(failures)}")

    if not failures:
        return

    print("\nFailures by error type:")
    for kind, cnt in result.error_counts().most_common():
        print(f"{cnt:>5} x {kind}")

    # group by the offending message so repeated catalog phrasings show up once
    messages = Counter()
    examples = {}
    for c in failures:
        msg = c.error.get("message", "")
        messages[msg] += 1
        examples.setdefault(msg, c.course_id)

    print("\nTop failure messages:")
    for msg, cnt in messages.most_common(top):
        print(f"{cnt:>5} x {msg}   (e.g. {examples[msg]})")


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    catalog = load_catalog(args.catalog_dir)
    if not catalog:
        logger.error("No catalog courses found in %s", args.catalog_dir)
        return 1

    result = parse_catalog(catalog, args.term, max_workers=args.workers)
    out = Path(args.out) if args.out else dataset_path(args.term)
    write_term_dataset(result, out)
    report(result, args.top)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
