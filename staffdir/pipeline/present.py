"""
Presentation - Console Text and CSV/JSON Output

Turns ingest results into what a person reads:
- list pages: numbered entries, or a "nothing found" notice
- detail pages: "Label: value" lines in field-spec order
- failures: "Error loading page: <reason>"

ResultExporter writes the same results to timestamped CSV/JSON files.
"""

import csv
import json
from datetime import datetime as dt
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..schemas import EntryList, FieldResult, FieldSpec
from .ingest import IngestResult


NOTHING_FOUND = "No directory entries found (parsing rules matched nothing)."


def format_error(error: Optional[str]) -> str:
    return f"Error loading page: {error or 'unknown error'}"


def format_entry_list(entry_list: EntryList, heading: str = "Found entries") -> str:
    """Numbered lines starting at 1, or the nothing-found notice."""
    if entry_list.is_empty:
        return NOTHING_FOUND
    lines = [f"{heading} (first {len(entry_list.entries)}):"]
    for i, entry in enumerate(entry_list.entries, start=1):
        lines.append(f"{i}: {entry}")
    return "\n".join(lines)


def format_field_result(result: FieldResult, specs: Sequence[FieldSpec]) -> str:
    """One "Label: value" line per spec; missing values render empty."""
    return "\n".join(f"{spec.display_label}: {result.values.get(spec.name, '')}" for spec in specs)


def format_ingest_result(res: IngestResult, specs: Sequence[FieldSpec] = ()) -> str:
    if not res.success or res.result is None:
        return format_error(res.error)
    if isinstance(res.result, EntryList):
        return format_entry_list(res.result)
    return format_field_result(res.result, specs)


class ResultExporter:
    """
    Exports ingest results to CSV/JSON.

    One JSON file holds every result (including failures); entries and
    detail records additionally get flat CSV files.
    """

    def __init__(self, output_dir: Union[str, Path] = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _name(self, prefix: str, ext: str, filename: Optional[str]) -> Path:
        if filename is None:
            timestamp = dt.now().strftime("%Y%m%d_%H%M%S")
            filename = f"{prefix}_{timestamp}.{ext}"
        return self.output_dir / filename

    def to_json(self, results: Iterable[IngestResult], filename: Optional[str] = None, pretty: bool = True) -> Path:
        rows = []
        for res in results:
            row = {
                "url": res.url,
                "kind": res.kind,
                "success": res.success,
                "status_code": res.status_code,
                "error": res.error,
            }
            if isinstance(res.result, EntryList):
                row["entries"] = list(res.result.entries)
            elif isinstance(res.result, FieldResult):
                row["fields"] = dict(res.result.values)
            rows.append(row)
        json_path = self._name("results", "json", filename)
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(rows, f, ensure_ascii=False, indent=2 if pretty else None)
        print(f"💾 JSON exported: {json_path} ({len(rows)} pages)")
        return json_path

    def to_entries_csv(self, results: Iterable[IngestResult], filename: Optional[str] = None) -> Path:
        csv_path = self._name("entries", "csv", filename)
        count = 0
        with open(csv_path, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=["source_url", "rank", "entry"])
            writer.writeheader()
            for res in results:
                if not isinstance(res.result, EntryList):
                    continue
                for i, entry in enumerate(res.result.entries, start=1):
                    writer.writerow({"source_url": res.url, "rank": i, "entry": entry})
                    count += 1
        print(f"💾 CSV exported: {csv_path} ({count} entries)")
        return csv_path

    def to_details_csv(
        self,
        results: Iterable[IngestResult],
        specs: Sequence[FieldSpec],
        filename: Optional[str] = None,
    ) -> Path:
        csv_path = self._name("details", "csv", filename)
        names: List[str] = [s.name for s in specs]
        count = 0
        with open(csv_path, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=["source_url"] + names)
            writer.writeheader()
            for res in results:
                if not isinstance(res.result, FieldResult):
                    continue
                row = {"source_url": res.url}
                row.update({n: res.result.values.get(n, "") for n in names})
                writer.writerow(row)
                count += 1
        print(f"💾 CSV exported: {csv_path} ({count} records)")
        return csv_path
