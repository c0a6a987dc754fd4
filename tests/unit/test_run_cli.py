from __future__ import annotations

import json
from pathlib import Path

import pytest

import sde.run as run
from staffdir.pipeline.ingest import IngestResult


LIST_URL = "https://www.htl-salzburg.ac.at/lehrerinnen.html"
DETAIL_URL = "https://www.htl-salzburg.ac.at/lehrerinnen-details/huber-tom.html"
DEAD_URL = "https://www.htl-salzburg.ac.at/lehrerinnen-details/gone.html"

PAGES = {
    LIST_URL: '<a href="x">Mueller, Anna</a><a>News</a><a>Huber, Tom</a>',
    DETAIL_URL: (
        '<div class="field Lehrername"><span class="text">Huber Tom</span></div>'
        '<div class="field Raum"><span class="text">G-204</span></div>'
        '<div class="field SprStunde"><span class="text">Mo 10:00</span></div>'
    ),
}


class _FakePipeline:
    """Serves canned pages; unknown URLs fail like an HTTP 404."""

    instances: list["_FakePipeline"] = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.ops_json_enabled = False
        self._last_ops_record = None
        self.closed = False
        _FakePipeline.instances.append(self)

    def ingest(self, url, extractor):
        html = PAGES.get(url)
        if html is None:
            return IngestResult(url=url, kind=extractor.kind, success=False, status_code=404, error="HTTP 404")
        return IngestResult(
            url=url,
            kind=extractor.kind,
            success=True,
            status_code=200,
            html=html,
            result=extractor.extract(html, source_url=url),
        )

    def close(self):
        self.closed = True


@pytest.fixture
def fake_pipeline(monkeypatch):
    _FakePipeline.instances = []
    monkeypatch.setattr(run, "IngestPipeline", _FakePipeline)
    return _FakePipeline


def write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(body, encoding="utf-8")
    return path


BASIC_CONFIG = f"""
list_pages:
  urls:
    - {LIST_URL}
detail_pages:
  urls:
    - {DETAIL_URL}
"""


def test_dry_run(tmp_path: Path, capsys):
    cfg = write_config(tmp_path, BASIC_CONFIG)
    code = run.main(["--config", str(cfg), "--out", str(tmp_path / "out"), "--dry-run"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Dry-run validation passed" in out
    assert "List pages: 1 (max_count=5)" in out


def test_full_run_prints_and_exports(tmp_path: Path, capsys, fake_pipeline):
    cfg = write_config(tmp_path, BASIC_CONFIG)
    out_dir = tmp_path / "out"
    code = run.main(["--config", str(cfg), "--out", str(out_dir)])
    assert code == 0

    out = capsys.readouterr().out
    assert "1: Mueller, Anna" in out
    assert "2: Huber, Tom" in out
    assert "Room: G-204" in out
    assert "Office hours: Mo 10:00" in out

    assert len(list(out_dir.glob("results_*.json"))) == 1
    assert len(list(out_dir.glob("entries_*.csv"))) == 1
    assert len(list(out_dir.glob("details_*.csv"))) == 1
    summary = json.loads((out_dir / "ops.log").read_text(encoding="utf-8").splitlines()[-1])
    assert summary["summary"] is True
    assert summary["processed_pages"] == 2
    assert summary["total_entries"] == 2
    assert fake_pipeline.instances[0].closed is True


def test_overrides_reach_pipeline_and_extractor(tmp_path: Path, capsys, fake_pipeline):
    cfg = write_config(tmp_path, BASIC_CONFIG)
    code = run.main(
        [
            "--config", str(cfg), "--out", str(tmp_path / "out"),
            "--max-count", "1", "--static-timeout", "3", "--no-robots", "--no-export",
        ]
    )
    assert code == 0
    kwargs = fake_pipeline.instances[0].kwargs
    assert kwargs["static_timeout_s"] == 3.0
    assert kwargs["respect_robots"] is False
    out = capsys.readouterr().out
    assert "1: Mueller, Anna" in out
    assert "Huber, Tom" not in out.split("Found entries")[1].split("Name:")[0]
    assert not list((tmp_path / "out").glob("results_*.json"))


def test_failed_page_reported_but_run_succeeds(tmp_path: Path, capsys, fake_pipeline):
    cfg = write_config(tmp_path, BASIC_CONFIG)
    urls = tmp_path / "urls.txt"
    urls.write_text(f"# comment\n\n{DEAD_URL}\n", encoding="utf-8")
    code = run.main(["--config", str(cfg), "--out", str(tmp_path / "out"), "--input", str(urls), "--no-export"])
    assert code == 0
    err = capsys.readouterr().err
    assert "Error loading page: HTTP 404" in err


def test_all_pages_failing_exits_3(tmp_path: Path, fake_pipeline):
    cfg = write_config(tmp_path, f"detail_pages:\n  urls:\n    - {DEAD_URL}\n")
    code = run.main(["--config", str(cfg), "--out", str(tmp_path / "out"), "--no-export"])
    assert code == 3


def test_nothing_found_is_not_an_error(tmp_path: Path, capsys, fake_pipeline, monkeypatch):
    monkeypatch.setitem(PAGES, LIST_URL, "<html><body>Keine Links</body></html>")
    cfg = write_config(tmp_path, f"list_pages:\n  urls:\n    - {LIST_URL}\n")
    code = run.main(["--config", str(cfg), "--out", str(tmp_path / "out"), "--no-export"])
    assert code == 0
    assert "No directory entries found" in capsys.readouterr().err


def test_missing_config_exits_1(tmp_path: Path):
    with pytest.raises(SystemExit) as exc:
        run.main(["--config", str(tmp_path / "nope.yaml"), "--out", str(tmp_path / "out")])
    assert exc.value.code == 1


@pytest.mark.parametrize(
    "body",
    [
        "list_pages: [unclosed\n",
        "- just\n- a list\n",
        "list_pages:\n  max_count: 0\n",
        "list_pages:\n  urls:\n    - ftp://example.com/x\n",
        "detail_pages:\n  fields:\n    - {name: room, field_class: Raum}\n    - {name: room, field_class: Zimmer}\n",
    ],
)
def test_invalid_config_exits_1(tmp_path: Path, body: str):
    cfg = write_config(tmp_path, body)
    with pytest.raises(SystemExit) as exc:
        run.main(["--config", str(cfg), "--out", str(tmp_path / "out"), "--dry-run"])
    assert exc.value.code == 1


def test_bad_max_count_override(tmp_path: Path):
    cfg = write_config(tmp_path, BASIC_CONFIG)
    assert run.main(["--config", str(cfg), "--out", str(tmp_path / "out"), "--max-count", "0"]) == 1


def test_no_urls_exits_2(tmp_path: Path):
    cfg = write_config(tmp_path, "fetch:\n  timeout_s: 5\n")
    assert run.main(["--config", str(cfg), "--out", str(tmp_path / "out"), "--dry-run"]) == 2


def test_missing_input_file_exits_2(tmp_path: Path):
    cfg = write_config(tmp_path, BASIC_CONFIG)
    with pytest.raises(SystemExit) as exc:
        run.main(["--config", str(cfg), "--out", str(tmp_path / "out"), "--input", str(tmp_path / "missing.txt")])
    assert exc.value.code == 2


def test_read_input_urls_prefixes(tmp_path: Path):
    path = tmp_path / "urls.txt"
    path.write_text(
        "# staff pages\n"
        f"list: {LIST_URL}\n"
        f"DETAIL:{DETAIL_URL}\n"
        "www.htl-salzburg.ac.at/lehrerinnen-details/x.html\n"
        "not-a-url\n",
        encoding="utf-8",
    )
    assert run.read_input_urls(path) == [
        ("list", LIST_URL),
        ("detail", DETAIL_URL),
        ("detail", "https://www.htl-salzburg.ac.at/lehrerinnen-details/x.html"),
    ]
    assert run.read_input_urls(path, default_kind="list")[2][0] == "list"


def test_example_config_passes_dry_run(tmp_path: Path, capsys):
    example = Path(__file__).resolve().parents[2] / "config" / "example.yaml"
    code = run.main(["--config", str(example), "--out", str(tmp_path / "out"), "--dry-run"])
    assert code == 0
    assert "Detail pages: 2 (fields=name, room, office_hours)" in capsys.readouterr().out
