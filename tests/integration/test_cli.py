"""
Integration tests for the jia-map command line over a temporary storage directory
"""

import json
import os
import sys

import pytest
import yaml

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from reporting.cli import main
from reporting.export import REPORT_HEADER


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.delenv("JIA_STORAGE_ROOT", raising=False)
    cfg = tmp_path / "params.yaml"
    cfg.write_text(yaml.safe_dump({"storage": {"root": str(tmp_path / "storage")}}))
    return str(cfg)


class TestCli:
    """Test cases for the jia-map subcommands"""

    def test_add_persists_to_disk(self, config_path, tmp_path, capsys):
        assert main(["--config", config_path, "add", "--lat=-33.9", "--lon=18.4", "--note", "clinic referral"]) == 0
        assert "Cape Town" in capsys.readouterr().out

        records = json.loads((tmp_path / "storage" / "jia_markers_v1.json").read_text())
        assert len(records) == 1
        assert records[0]["townId"] == 1
        assert records[0]["note"] == "clinic referral"

    def test_add_rejects_nan(self, config_path, tmp_path, capsys):
        assert main(["--config", config_path, "add", "--lat=nan", "--lon=18.4"]) == 2
        assert "finite" in capsys.readouterr().err
        assert not (tmp_path / "storage" / "jia_markers_v1.json").exists()

    def test_list_and_summary(self, config_path, capsys):
        main(["--config", config_path, "add", "--lat=-29.9", "--lon=31.0"])
        main(["--config", config_path, "add", "--lat=-29.8", "--lon=31.1", "--note", "second"])
        capsys.readouterr()

        assert main(["--config", config_path, "list"]) == 0
        out = capsys.readouterr().out
        assert out.count("Durban") == 2
        assert "second" in out

        assert main(["--config", config_path, "summary"]) == 0
        out = capsys.readouterr().out
        assert "Durban: 2 diagnosed, expected 135.0 (based on 1.5 per 1000 children)" in out
        assert "Cape Town: 0 diagnosed, expected 180.0" in out

    def test_export_writes_report_file(self, config_path, tmp_path):
        main(["--config", config_path, "add", "--lat=-26.2", "--lon=28.0"])
        assert main(["--config", config_path, "export", "--out", str(tmp_path / "reports")]) == 0

        text = (tmp_path / "reports" / "jia_town_summary.csv").read_text(encoding="utf-8")
        assert text.split("\n") == [
            REPORT_HEADER,
            "Cape Town,0,120000,180.00,120.00-240.00",
            "Johannesburg,1,140000,210.00,140.00-280.00",
            "Durban,0,90000,135.00,90.00-180.00",
        ]

    def test_export_to_stdout(self, config_path, capsys):
        assert main(["--config", config_path, "export", "--stdout"]) == 0
        assert REPORT_HEADER in capsys.readouterr().out
