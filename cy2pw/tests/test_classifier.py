"""Tests for the file classifier and project analysis."""

import pytest

from cy2pw.core.classifier import (
    ConflictResolution,
    FileType,
    ProjectTypeAnalyzer,
    SourceFile,
    conflict_key,
)


# =========================================================================
# Sample sources
# =========================================================================

CYPRESS_TEST = '''/// <reference types="cypress" />
describe('login', () => {
  it('logs in', () => {
    cy.visit('/login');
    cy.get('#email').type('a@b.c');
  });
});
'''

PLAYWRIGHT_TEST = '''import { test, expect } from '@playwright/test';

test('home', async ({ page }) => {
  await page.goto('/');
  await expect(page.getByText('Welcome')).toBeVisible();
});
'''

ANGULAR_TEST = '''import { ComponentFixture, TestBed } from '@angular/core/testing';
import { AppComponent } from './app.component';

describe('AppComponent', () => {
  let fixture: ComponentFixture<AppComponent>;
  beforeEach(() => {
    TestBed.configureTestingModule({ declarations: [AppComponent] });
    fixture = TestBed.createComponent(AppComponent);
  });
});
'''

MIXED_TEST = '''import { test } from '@playwright/test';

test('half migrated', async ({ page }) => {
  await page.goto('/');
  cy.get('.legacy').click();
});
'''

PLAIN_TEST = '''describe('math', () => {
  it('adds', () => {
    if (1 + 1 !== 2) throw new Error('broken');
  });
});
'''


def _make_source(path: str, content: str) -> SourceFile:
    return SourceFile.from_text(path, content)


def _write_tree(root, files):
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


# =========================================================================
# Tests: Single file classification
# =========================================================================

class TestClassifyFile:
    def setup_method(self):
        self.analyzer = ProjectTypeAnalyzer()

    def test_cypress(self):
        result = self.analyzer.classify_file(_make_source("cypress/e2e/login.cy.ts", CYPRESS_TEST))
        assert result.file_type == FileType.CYPRESS_E2E
        assert result.confidence == 1.0
        assert "cypress:command" in result.indicators
        assert "filename:cy-infix" in result.indicators
        assert "path:e2e" in result.indicators

    def test_cypress_without_name_hints(self):
        result = self.analyzer.classify_file(_make_source("specs/login.test.ts", CYPRESS_TEST))
        assert result.file_type == FileType.CYPRESS_E2E
        assert result.confidence == 0.9

    def test_playwright(self):
        result = self.analyzer.classify_file(_make_source("tests/home.spec.ts", PLAYWRIGHT_TEST))
        assert result.file_type == FileType.PLAYWRIGHT_TEST
        assert result.confidence == 1.0
        assert "import:@playwright/test" in result.indicators

    def test_angular_wins_over_everything(self):
        result = self.analyzer.classify_file(_make_source("src/app.component.spec.ts", ANGULAR_TEST))
        assert result.file_type == FileType.ANGULAR_UNIT
        assert result.confidence == 0.9

    def test_mixed(self):
        result = self.analyzer.classify_file(_make_source("tests/legacy.spec.ts", MIXED_TEST))
        assert result.file_type == FileType.MIXED
        assert result.confidence == 0.8

    def test_unknown(self):
        result = self.analyzer.classify_file(_make_source("src/math.test.js", PLAIN_TEST))
        assert result.file_type == FileType.UNKNOWN
        assert result.confidence == 0.0
        assert result.indicators == frozenset()

    def test_regex_only_mode(self):
        analyzer = ProjectTypeAnalyzer(use_import_scan=False)
        result = analyzer.classify_file(_make_source("tests/home.spec.ts", PLAYWRIGHT_TEST))
        assert result.file_type == FileType.PLAYWRIGHT_TEST
        assert not any(i.startswith("import:") for i in result.indicators)

    def test_broken_source_is_degraded_not_fatal(self):
        broken = CYPRESS_TEST + "\ncy.get('.x'\n"
        result = self.analyzer.classify_file(_make_source("broken.cy.ts", broken))
        assert result.file_type == FileType.CYPRESS_E2E
        assert result.import_scan_degraded

    def test_unreadable_path_is_unknown(self, tmp_path):
        result = self.analyzer.classify_path("missing.cy.ts", str(tmp_path))
        assert result.file_type == FileType.UNKNOWN
        assert result.confidence == 0.0
        assert result.error

    def test_result_to_dict(self):
        result = self.analyzer.classify_file(_make_source("a.cy.ts", CYPRESS_TEST))
        data = result.to_dict()
        assert data["file_type"] == "cypress-e2e"
        assert data["path"] == "a.cy.ts"


# =========================================================================
# Tests: Project analysis
# =========================================================================

class TestAnalyzeProject:
    def test_scope_split(self, tmp_path):
        _write_tree(tmp_path, {
            "cypress/e2e/login.cy.ts": CYPRESS_TEST,
            "cypress/e2e/cart.cy.ts": CYPRESS_TEST,
            "src/app.component.spec.ts": ANGULAR_TEST,
            "tests/home.spec.ts": PLAYWRIGHT_TEST,
        })
        analysis = ProjectTypeAnalyzer().analyze_project(str(tmp_path))

        assert analysis.total_files == 4
        assert sorted(analysis.conversion_candidates) == ["cypress/e2e/cart.cy.ts", "cypress/e2e/login.cy.ts"]
        assert analysis.preserve_set == ["src/app.component.spec.ts", "tests/home.spec.ts"]
        assert analysis.conflicts == []
        assert analysis.summary["cypress-e2e"] == 2

    def test_scope_law(self, tmp_path):
        _write_tree(tmp_path, {
            "cypress/e2e/login.cy.ts": CYPRESS_TEST,
            "tests/login.spec.ts": PLAYWRIGHT_TEST,
            "tests/legacy.spec.ts": MIXED_TEST,
            "src/math.test.js": PLAIN_TEST,
        })
        analysis = ProjectTypeAnalyzer().analyze_project(str(tmp_path))

        candidates = set(analysis.conversion_candidates)
        preserved = set(analysis.preserve_set)
        assert candidates & preserved == set()
        assert candidates | preserved | set(analysis.conflicted_files) == set(analysis.results)

    def test_conflict_detected(self, tmp_path):
        _write_tree(tmp_path, {
            "cypress/e2e/login.cy.ts": CYPRESS_TEST,
            "tests/login.spec.ts": PLAYWRIGHT_TEST,
        })
        analysis = ProjectTypeAnalyzer().analyze_project(str(tmp_path))

        assert len(analysis.conflicts) == 1
        conflict = analysis.conflicts[0]
        assert conflict.cypress_file == "cypress/e2e/login.cy.ts"
        assert conflict.playwright_file == "tests/login.spec.ts"
        assert conflict.recommendation == ConflictResolution.RENAME
        assert any("conflict" in r for r in analysis.recommendations)

    def test_skips_dependency_directories(self, tmp_path):
        _write_tree(tmp_path, {
            "cypress/e2e/login.cy.ts": CYPRESS_TEST,
            "node_modules/pkg/index.spec.js": PLAYWRIGHT_TEST,
            ".git/hooks/pre.spec.js": PLAYWRIGHT_TEST,
            "dist/login.cy.js": CYPRESS_TEST,
        })
        analysis = ProjectTypeAnalyzer().analyze_project(str(tmp_path))
        assert list(analysis.results) == ["cypress/e2e/login.cy.ts"]

    def test_ignores_non_test_files(self, tmp_path):
        _write_tree(tmp_path, {
            "cypress/e2e/login.cy.ts": CYPRESS_TEST,
            "cypress/support/commands.ts": "Cypress.Commands.add('login', () => {});",
            "cypress/pages/LoginPage.ts": "export class LoginPage { visit() { cy.visit('/'); } }",
        })
        analysis = ProjectTypeAnalyzer().analyze_project(str(tmp_path))
        assert analysis.total_files == 1

    def test_idempotent(self, tmp_path):
        _write_tree(tmp_path, {
            "cypress/e2e/login.cy.ts": CYPRESS_TEST,
            "tests/home.spec.ts": PLAYWRIGHT_TEST,
            "tests/legacy.spec.ts": MIXED_TEST,
        })
        analyzer = ProjectTypeAnalyzer()
        first = analyzer.analyze_project(str(tmp_path))
        second = analyzer.analyze_project(str(tmp_path))
        assert first.results == second.results
        assert first.categorized == second.categorized
        assert first.conflicts == second.conflicts

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ProjectTypeAnalyzer().analyze_project(str(tmp_path / "nope"))

    def test_to_dict(self, tmp_path):
        _write_tree(tmp_path, {"cypress/e2e/login.cy.ts": CYPRESS_TEST})
        data = ProjectTypeAnalyzer().analyze_project(str(tmp_path)).to_dict()
        assert data["total_files"] == 1
        assert data["conversion_candidates"] == ["cypress/e2e/login.cy.ts"]
        assert data["files"][0]["file_type"] == "cypress-e2e"


class TestConflictKey:
    @pytest.mark.parametrize("path,expected", [
        ("cypress/e2e/login.cy.ts", "login.ts"),
        ("tests/login.spec.ts", "login.ts"),
        ("Login.test.js", "login.js"),
        ("login.ts", "login.ts"),
    ])
    def test_strips_test_suffix(self, path, expected):
        assert conflict_key(path) == expected
