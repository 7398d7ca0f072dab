"""Tests for the cy2pw command line."""

import json

import pytest

from cy2pw.__main__ import main
from cy2pw.core.constants import EXIT_FATAL, EXIT_OK


CYPRESS_TEST = '''describe('login', () => {
  it('logs in', () => {
    cy.visit('/login');
    cy.get('[data-testid="submit"]').click();
  });
});
'''


@pytest.fixture
def project(tmp_path):
    spec = tmp_path / "app" / "cypress" / "e2e" / "login.cy.ts"
    spec.parent.mkdir(parents=True)
    spec.write_text(CYPRESS_TEST)
    return tmp_path


class TestConvertCommand:
    def test_convert_with_report(self, project, capsys):
        report = project / "reports" / "run.json"
        code = main([
            "convert",
            "--source", str(project / "app"),
            "--output", str(project / "out"),
            "--validate",
            "--report", str(report),
            "--log-level", "WARNING",
        ])

        assert code == EXIT_OK
        converted = (project / "out" / "tests" / "login.spec.ts").read_text()
        assert "await page.getByTestId('submit').click();" in converted

        payload = json.loads(report.read_text())
        assert payload["result"]["successful_conversions"] == 1
        assert payload["quality"]["meets_threshold"] is True
        assert payload["validation"][0]["is_valid"] is True
        assert "Quality score: 100.0%" in capsys.readouterr().out

    def test_flatten_and_browsers(self, project):
        code = main([
            "convert",
            "--source", str(project / "app"),
            "--output", str(project / "out"),
            "--flatten",
            "--browsers", "chromium,firefox",
        ])
        assert code == EXIT_OK
        assert "Desktop Firefox" in (project / "out" / "playwright.config.ts").read_text()

    def test_invalid_browser_is_fatal(self, project):
        code = main([
            "convert",
            "--source", str(project / "app"),
            "--output", str(project / "out"),
            "--browsers", "netscape",
        ])
        assert code == EXIT_FATAL

    def test_missing_source_is_fatal(self, tmp_path):
        code = main(["convert", "--source", str(tmp_path / "nope"), "--output", str(tmp_path / "out")])
        assert code == EXIT_FATAL


class TestAnalyzeCommand:
    def test_analyze(self, project, capsys):
        report = project / "analysis.json"
        code = main(["analyze", "--source", str(project / "app"), "--report", str(report)])

        assert code == EXIT_OK
        assert "cypress-e2e: 1" in capsys.readouterr().out
        assert json.loads(report.read_text())["conversion_candidates"] == ["cypress/e2e/login.cy.ts"]

    def test_missing_source_is_fatal(self, tmp_path):
        assert main(["analyze", "--source", str(tmp_path / "nope")]) == EXIT_FATAL

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            main([])
