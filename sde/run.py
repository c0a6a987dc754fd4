"""
Staff Directory Extractor - CLI Runner

Usage:
  python -m sde.run --config config/example.yaml --out ./out

Extra URLs (one per line; prefix "list:" or "detail:", bare URLs use --input-kind):
  python -m sde.run --config config/example.yaml --input urls.txt --out ./out

Dry run (validate only):
  python -m sde.run --config config/example.yaml --out ./out --dry-run

Exit codes:
  0 - success (including pages where nothing was found)
  1 - config error (file missing, invalid YAML or invalid values)
  2 - input error (input file missing, no URLs to process)
  3 - processing error (every page failed, or outputs could not be written)
"""
from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import List, Tuple

import yaml
from pydantic import ValidationError

from staffdir.ops_logger import OpsLogger, summary_record
from staffdir.pipeline.extract import AnchorListExtractor, FieldExtractor
from staffdir.pipeline.ingest import IngestPipeline, IngestResult
from staffdir.pipeline.present import (
    NOTHING_FOUND,
    ResultExporter,
    format_entry_list,
    format_error,
    format_field_result,
)
from staffdir.schemas import EntryList, FieldResult, ScraperConfig


def validate_input(input_path: Path) -> None:
    if not input_path.exists() or not input_path.is_file():
        print(f"Input error: file not found: {input_path}", file=sys.stderr)
        sys.exit(2)


def validate_config(config_path: Path) -> ScraperConfig:
    if not config_path.exists() or not config_path.is_file():
        print(f"Config error: file not found: {config_path}", file=sys.stderr)
        sys.exit(1)
    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        print(f"Config error: invalid YAML in {config_path}: {e}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(raw, dict):
        print(f"Config error: top level of {config_path} must be a mapping", file=sys.stderr)
        sys.exit(1)
    try:
        return ScraperConfig.model_validate(raw)
    except ValidationError as e:
        print(f"Config error: {config_path}: {e}", file=sys.stderr)
        sys.exit(1)


def ensure_out_dir(out_dir: Path) -> None:
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        test_file = out_dir / ".write_test"
        test_file.write_text("ok", encoding="utf-8")
        test_file.unlink(missing_ok=True)
    except OSError as e:
        print(f"Output error: cannot write to {out_dir}: {e}", file=sys.stderr)
        sys.exit(3)


def read_input_urls(input_path: Path, default_kind: str = "detail") -> List[Tuple[str, str]]:
    """Return (kind, url) pairs; blank lines and '#' comments are skipped."""
    out: List[Tuple[str, str]] = []
    for line in input_path.read_text(encoding="utf-8").splitlines():
        s = line.strip()
        if not s or s.startswith("#"):
            continue
        kind = default_kind
        for prefix in ("list:", "detail:"):
            if s.lower().startswith(prefix):
                kind = prefix[:-1]
                s = s[len(prefix):].strip()
                break
        if s.startswith("http://") or s.startswith("https://"):
            out.append((kind, s))
        elif "." in s:
            out.append((kind, f"https://{s}"))
        else:
            print(f"Input warning: skipping non-URL line: {s}", file=sys.stderr)
    return out


def _dedupe(urls: List[str]) -> List[str]:
    seen = set()
    uniq = []
    for u in urls:
        if u not in seen:
            uniq.append(u)
            seen.add(u)
    return uniq


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="sde.run", description="Staff directory extractor runner")
    parser.add_argument("--config", "-c", required=True, help="Path to YAML config file")
    parser.add_argument("--out", "-o", required=True, help="Output directory")
    parser.add_argument("--input", "-i", default=None, help="Optional URLs file (one per line, 'list:'/'detail:' prefixes)")
    parser.add_argument("--input-kind", choices=["list", "detail"], default="detail", help="Kind for unprefixed input URLs (default: detail)")
    parser.add_argument("--dry-run", action="store_true", help="Validate inputs/config and exit")
    parser.add_argument("--max-count", type=int, default=None, help="Override list_pages.max_count")
    parser.add_argument("--clean-fields", action="store_true", help="Trim and entity-decode detail field values")
    parser.add_argument("--static-timeout", type=float, default=None, help="Override fetch.timeout_s")
    parser.add_argument("--no-robots", action="store_true", help="Do not consult robots.txt")
    parser.add_argument("--no-export", action="store_true", help="Print results only; skip CSV/JSON files")
    parser.add_argument("--ops-log", default=None, help="Path to ops JSONL log file (default: <out>/ops.log)")
    parser.add_argument("--ops-stdout", action="store_true", help="Also mirror ops JSON to stdout")
    args = parser.parse_args(argv)

    config_path = Path(args.config)
    out_dir = Path(args.out)

    cfg = validate_config(config_path)
    if args.max_count is not None:
        if args.max_count <= 0:
            print("Config error: --max-count must be a positive integer", file=sys.stderr)
            return 1
        cfg.list_pages.max_count = args.max_count
    if args.static_timeout is not None:
        if args.static_timeout <= 0:
            print("Config error: --static-timeout must be positive", file=sys.stderr)
            return 1
        cfg.fetch.timeout_s = args.static_timeout
    if args.clean_fields:
        cfg.detail_pages.clean = True
    if args.no_robots:
        cfg.fetch.respect_robots = False

    list_urls = list(cfg.list_pages.urls)
    detail_urls = list(cfg.detail_pages.urls)
    if args.input:
        input_path = Path(args.input)
        validate_input(input_path)
        for kind, url in read_input_urls(input_path, default_kind=args.input_kind):
            (list_urls if kind == "list" else detail_urls).append(url)
    list_urls = _dedupe(list_urls)
    detail_urls = _dedupe(detail_urls)

    if not list_urls and not detail_urls:
        print("Input error: no URLs to process (config and --input are empty)", file=sys.stderr)
        return 2

    ensure_out_dir(out_dir)

    if args.dry_run:
        print("✅ Dry-run validation passed")
        print(f" - Config: {config_path}")
        print(f" - Output dir: {out_dir}")
        print(f" - List pages: {len(list_urls)} (max_count={cfg.list_pages.max_count})")
        print(f" - Detail pages: {len(detail_urls)} (fields={', '.join(s.name for s in cfg.detail_pages.field_specs)})")
        return 0

    list_extractor = AnchorListExtractor.from_config(cfg.list_pages)
    field_extractor = FieldExtractor.from_config(cfg.detail_pages)
    specs = field_extractor.specs

    pipeline = IngestPipeline(
        static_timeout_s=cfg.fetch.timeout_s,
        user_agent=cfg.fetch.user_agent,
        respect_robots=cfg.fetch.respect_robots,
    )
    pipeline.ops_json_enabled = cfg.ops.ops_json

    ops_log_path = Path(args.ops_log) if args.ops_log else (out_dir / "ops.log")
    ops_logger = OpsLogger(ops_log_path, also_stdout=args.ops_stdout)

    jobs = [(u, list_extractor) for u in list_urls] + [(u, field_extractor) for u in detail_urls]
    results: List[IngestResult] = []
    proc_start = time.perf_counter()
    try:
        for url, extractor in jobs:
            print(f"➡️  Processing ({extractor.kind}): {url}")
            res = pipeline.ingest(url, extractor)
            results.append(res)
            if pipeline._last_ops_record:
                ops_logger.emit(pipeline._last_ops_record)
            if not res.success:
                print(f"  ⚠️  {format_error(res.error)}", file=sys.stderr)
                continue
            if isinstance(res.result, EntryList):
                if res.result.is_empty:
                    print(f"  ℹ️  {NOTHING_FOUND}", file=sys.stderr)
                else:
                    print(format_entry_list(res.result))
            elif isinstance(res.result, FieldResult):
                if res.result.is_empty:
                    print(f"  ℹ️  No field values found on {url}", file=sys.stderr)
                print(format_field_result(res.result, specs))
    finally:
        pipeline.close()

    ok = [r for r in results if r.success]
    failed = len(results) - len(ok)
    total_entries = sum(len(r.result.entries) for r in ok if isinstance(r.result, EntryList))
    total_records = sum(1 for r in ok if isinstance(r.result, FieldResult) and not r.result.is_empty)

    if not args.no_export:
        try:
            exporter = ResultExporter(output_dir=out_dir)
            print(f"💾 JSON: {exporter.to_json(results)}")
            if list_urls:
                print(f"💾 Entries CSV: {exporter.to_entries_csv(results)}")
            if detail_urls:
                print(f"💾 Details CSV: {exporter.to_details_csv(results, specs)}")
        except OSError as e:
            print(f"Export error: {e}", file=sys.stderr)
            return 3

    ops_logger.emit(
        summary_record(
            processed_pages=len(results),
            failed_pages=failed,
            total_entries=total_entries,
            total_records=total_records,
            wall_s=time.perf_counter() - proc_start,
        )
    )
    print("🏁 Done.")
    print(f"   Processed pages: {len(results)} ({failed} failed)")
    print(f"   Entries: {total_entries}, detail records: {total_records}")

    if results and not ok:
        print("Every page failed to load.", file=sys.stderr)
        return 3
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
