#!/usr/bin/env python3
"""
Export JSON Schema files from the Pydantic models.
- Draft: 2020-12
- Sources: staffdir/schemas.py (ScraperConfig, FieldSpec, EntryList, FieldResult)
- Outputs: schemas/*.schema.json
"""
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from staffdir.schemas import EntryList, FieldResult, FieldSpec, ScraperConfig  # noqa: E402

SCHEMA_VERSION = "https://json-schema.org/draft/2020-12/schema"


def add_common_headers(schema: Dict[str, Any], title: str, description: str, example: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    schema.setdefault("$schema", SCHEMA_VERSION)
    schema.setdefault("title", title)
    schema.setdefault("description", description)
    if example is not None:
        schema.setdefault("examples", [example])
    return schema


def field_spec_example() -> dict:
    return {
        "name": "room",
        "marker": '<div class="field Raum">',
        "value_open": '<span class="text">',
        "value_close": "</span>",
        "label": "Room",
    }


def entry_list_example() -> dict:
    return {
        "entries": ["Mueller Anna, Prof. Dipl.-Ing.", "Huber Tom, Mag."],
        "source_url": "https://www.htl-salzburg.ac.at/lehrerinnen.html",
    }


def field_result_example() -> dict:
    return {
        "values": {"name": "Mueller Anna", "room": "G-204", "office_hours": "Mo 10:00-10:50"},
        "source_url": "https://www.htl-salzburg.ac.at/lehrerinnen-details/mueller-anna.html",
    }


def save_schema(model, path: Path, title: str, description: str, example: Optional[dict] = None):
    schema = model.model_json_schema()  # pydantic v2
    schema = add_common_headers(schema, title, description, example)
    path.write_text(json.dumps(schema, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    print(f"Wrote {path}")


def main(schemas_dir: Path = ROOT / "schemas"):
    schemas_dir.mkdir(parents=True, exist_ok=True)
    save_schema(
        ScraperConfig,
        schemas_dir / "config.schema.json",
        "ScraperConfig",
        "YAML run configuration: list pages, detail pages, fetch and ops settings.",
    )
    save_schema(
        FieldSpec,
        schemas_dir / "field_spec.schema.json",
        "FieldSpec",
        "Marker plus value span locating one labelled value on a detail page.",
        field_spec_example(),
    )
    save_schema(
        EntryList,
        schemas_dir / "entry_list.schema.json",
        "EntryList",
        "Ordered, deduplicated directory entries from one list page.",
        entry_list_example(),
    )
    save_schema(
        FieldResult,
        schemas_dir / "field_result.schema.json",
        "FieldResult",
        "Field name to extracted value; unmatched fields are empty strings.",
        field_result_example(),
    )


if __name__ == "__main__":
    main()
