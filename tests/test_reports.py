"""Tests for chart, PDF report and Excel register generation."""

import os
import tempfile
import zipfile
from datetime import date

import pytest

from safe_harbor.data.registry import ProjectRegistry, sample_registry
from safe_harbor.reports.charts import create_group_pie_chart, create_safe_harbor_chart
from safe_harbor.reports.portfolio import generate_portfolio_report
from safe_harbor.reports.workbook import create_project_register

AS_OF = date(2025, 10, 1)


@pytest.fixture
def projects():
    registry = ProjectRegistry()
    registry.add_project(5.0, 8_000_000, 520_000, date(2025, 12, 15), True,
                         name="Sunrise", location="Texas")
    registry.add_project(1.2, 2_000_000, 90_000, date(2026, 3, 1), name="Rooftop & Co")
    registry.add_project(0.0, 0.0, 0.0, date(2026, 1, 1), name="Placeholder")
    registry.update_compliance(1, "prevailing_wage", True)
    return registry.list_projects()


class TestCharts:
    def test_safe_harbor_chart(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "pct.png")
            create_safe_harbor_chart(["A", "B", "C"], [6.5, 4.5, None], path)
            assert os.path.getsize(path) > 0

    def test_group_pie_chart(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "groups.png")
            create_group_pie_chart({"Group 1": 2, "Group 2": 1, "Group 3": 0}, path)
            assert os.path.getsize(path) > 0

    def test_empty_inputs_write_nothing(self, tmp_path):
        create_safe_harbor_chart([], [], str(tmp_path / "none.png"))
        create_group_pie_chart({"Group 1": 0}, str(tmp_path / "none_pie.png"))
        assert not any(tmp_path.iterdir())


class TestPortfolioReport:
    def test_generates_pdf(self, projects, tmp_path):
        path = tmp_path / "report.pdf"
        generate_portfolio_report(projects, str(path), as_of=AS_OF)
        assert path.read_bytes().startswith(b"%PDF")

    def test_sample_portfolio(self, tmp_path):
        path = tmp_path / "sample.pdf"
        generate_portfolio_report(sample_registry().list_projects(), str(path), as_of=AS_OF)
        assert path.stat().st_size > 0

    def test_empty_portfolio(self, tmp_path):
        path = tmp_path / "empty.pdf"
        generate_portfolio_report([], str(path), as_of=AS_OF)
        assert path.exists()


class TestProjectRegister:
    def test_creates_workbook(self, projects, tmp_path):
        path = create_project_register(projects, str(tmp_path / "register.xlsx"), as_of=AS_OF)
        assert os.path.exists(path)
        with zipfile.ZipFile(path) as zf:
            workbook_xml = zf.read("xl/workbook.xml").decode("utf-8")
        for sheet in ("Projects", "Compliance", "Summary"):
            assert f'name="{sheet}"' in workbook_xml

    def test_suffix_forced(self, projects, tmp_path):
        path = create_project_register(projects, str(tmp_path / "register.csv"), as_of=AS_OF)
        assert path.endswith(".xlsx")
        assert os.path.exists(path)

    def test_percentage_formula(self, projects, tmp_path):
        path = create_project_register(projects, str(tmp_path / "register.xlsx"), as_of=AS_OF)
        with zipfile.ZipFile(path) as zf:
            sheet_xml = zf.read("xl/worksheets/sheet1.xml").decode("utf-8")
        assert "ROUND(F5/E5*100,2)" in sheet_xml

    def test_group_and_risk_follow_frozen_group(self, tmp_path):
        """A project whose inputs changed after creation keeps its recorded group and risk."""
        registry = ProjectRegistry()
        project = registry.add_project(5.0, 8_000_000, 520_000, date(2025, 12, 15), True,
                                       name="Sunrise")
        project.payment_date = date(2026, 2, 1)
        registry.add_project(0.0, 1_000_000, 60_000, date(2025, 10, 1), name="Placeholder")

        path = create_project_register(registry.list_projects(), str(tmp_path / "r.xlsx"), as_of=AS_OF)
        with zipfile.ZipFile(path) as zf:
            strings = zf.read("xl/sharedStrings.xml").decode("utf-8")
        assert ">Low<" in strings
        assert ">Unknown<" in strings
        assert ">Unassigned<" in strings
        assert "Very High" not in strings
