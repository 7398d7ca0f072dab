"""Tests for whole-project selective conversion."""

import os

import pytest

from cy2pw.core.config import ConverterSettings
from cy2pw.core.selective import SelectiveConverter, relink_imports
from cy2pw.core.selective.playwright_config import render_playwright_config


# =========================================================================
# Sample project
# =========================================================================

CYPRESS_TEST = '''describe('login', () => {
  it('logs in', () => {
    cy.visit('/login');
    cy.get('#email').type('a@b.c');
  });
});
'''

PLAYWRIGHT_TEST = '''import { test, expect } from '@playwright/test';

test('home', async ({ page }) => {
  await page.goto('/');
});
'''

ANGULAR_TEST = '''import { TestBed } from '@angular/core/testing';

describe('AppComponent', () => {
  beforeEach(() => TestBed.configureTestingModule({}));
});
'''

MIXED_TEST = '''import { test } from '@playwright/test';

test('half migrated', async ({ page }) => {
  await page.goto('/');
  cy.get('.legacy').click();
});
'''

BROKEN_TEST = '''describe('broken', () => {
  it('never closes', () => {
    cy.visit('/broken'
'''

DATA_CY_TEST = '''describe('save', () => {
  it('saves', () => {
    cy.get('[data-cy="save"]').click();
  });
});
'''

LOGIN_PAGE = '''export class LoginPage {
  visit() {
    cy.visit('/login');
  }
}
'''

PAGE_OBJECT_TEST = '''import { LoginPage } from '../pages/LoginPage';

describe('login page', () => {
  const loginPage = new LoginPage();

  it('opens', () => {
    loginPage.visit();
    cy.get('h1').should('be.visible');
  });
});
'''


def _write_tree(root, files):
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def _make_converter(**overrides) -> SelectiveConverter:
    return SelectiveConverter(ConverterSettings(**overrides))


# =========================================================================
# Tests: Project conversion
# =========================================================================

class TestConvertProject:
    def test_converts_cypress_and_preserves_the_rest(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {
            "cypress/e2e/login.cy.ts": CYPRESS_TEST,
            "cypress/e2e/cart.cy.ts": CYPRESS_TEST,
            "src/app.component.spec.ts": ANGULAR_TEST,
            "tests/home.spec.ts": PLAYWRIGHT_TEST,
        })
        result = _make_converter().convert_project(str(src), str(out))

        assert result.success
        assert result.total_files_processed == 4
        assert result.successful_conversions == 2
        assert result.failed_conversions == 0
        assert result.preserved_files == ["src/app.component.spec.ts", "tests/home.spec.ts"]

        converted = (out / "tests" / "login.spec.ts").read_text()
        assert "await page.goto('/login');" in converted
        assert (out / "tests" / "cart.spec.ts").exists()
        assert (out / "src" / "app.component.spec.ts").read_text() == ANGULAR_TEST
        assert (out / "tests" / "home.spec.ts").read_text() == PLAYWRIGHT_TEST

    def test_outcomes(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {"cypress/e2e/login.cy.ts": CYPRESS_TEST})
        result = _make_converter(keep_generated_code=True).convert_project(str(src), str(out))

        outcome = result.outcomes[0]
        assert outcome.original_path == "cypress/e2e/login.cy.ts"
        assert outcome.converted_path == os.path.join(str(out), "tests", "login.spec.ts")
        assert outcome.generated_code.startswith("import { test, expect } from '@playwright/test';")
        assert outcome.conversion_summary.failed_patterns == 0
        assert result.analysis.conversion_candidates == ["cypress/e2e/login.cy.ts"]

    def test_conflict_warning_and_rename(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {
            "cypress/e2e/login.cy.ts": CYPRESS_TEST,
            "tests/login.spec.ts": PLAYWRIGHT_TEST,
        })
        result = _make_converter().convert_project(str(src), str(out))

        assert any(w.startswith("Naming conflict: cypress/e2e/login.cy.ts and tests/login.spec.ts") for w in result.warnings)
        assert (out / "tests" / "login.spec.ts").read_text() == PLAYWRIGHT_TEST
        assert "page.goto" in (out / "tests" / "login-2.spec.ts").read_text()

    def test_flattened_collisions(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {
            "cypress/e2e/admin/list.cy.ts": CYPRESS_TEST,
            "cypress/e2e/shop/list.cy.ts": CYPRESS_TEST,
        })
        _make_converter(preserve_structure=False).convert_project(str(src), str(out))

        assert (out / "tests" / "list.spec.ts").exists()
        assert (out / "tests" / "list-2.spec.ts").exists()

    def test_skip_existing(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {"cypress/e2e/login.cy.ts": CYPRESS_TEST})
        _write_tree(out, {"tests/login.spec.ts": "// hand-written\n"})
        result = _make_converter(skip_existing=True).convert_project(str(src), str(out))

        target = os.path.join(str(out), "tests", "login.spec.ts")
        assert result.skipped_files == ["cypress/e2e/login.cy.ts"]
        assert f"Skipped cypress/e2e/login.cy.ts: {target} already exists" in result.warnings
        assert result.outcomes == []
        assert (out / "tests" / "login.spec.ts").read_text() == "// hand-written\n"

    def test_mixed_files_preserved_with_warning(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {
            "cypress/e2e/login.cy.ts": CYPRESS_TEST,
            "tests/legacy.spec.ts": MIXED_TEST,
        })
        result = _make_converter().convert_project(str(src), str(out))

        assert result.mixed_files == ["tests/legacy.spec.ts"]
        assert "Mixed framework file detected: tests/legacy.spec.ts - Manual review recommended" in result.warnings
        assert (out / "tests" / "legacy.spec.ts").read_text() == MIXED_TEST

    def test_parallel_matches_sequential(self, tmp_path):
        src = tmp_path / "src"
        _write_tree(src, {
            "cypress/e2e/a.cy.ts": CYPRESS_TEST,
            "cypress/e2e/b.cy.ts": CYPRESS_TEST,
            "cypress/e2e/c.cy.ts": CYPRESS_TEST,
        })
        sequential = _make_converter(batch_size=2).convert_project(str(src), str(tmp_path / "seq"))
        parallel = _make_converter(batch_size=2, parallel=True, max_workers=2).convert_project(
            str(src), str(tmp_path / "par")
        )

        assert parallel.successful_conversions == sequential.successful_conversions == 3
        assert [o.original_path for o in parallel.outcomes] == [o.original_path for o in sequential.outcomes]
        assert parallel.performance_metrics.batches == 2
        assert (tmp_path / "seq" / "tests" / "b.spec.ts").read_text() == (tmp_path / "par" / "tests" / "b.spec.ts").read_text()

    def test_page_objects_are_rewritten_and_relinked(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {
            "cypress/pages/LoginPage.ts": LOGIN_PAGE,
            "cypress/e2e/login.cy.ts": PAGE_OBJECT_TEST,
        })
        result = _make_converter().convert_project(str(src), str(out))

        assert [o.original_path for o in result.page_object_outcomes] == ["cypress/pages/LoginPage.ts"]
        assert result.successful_conversions == 1
        page = (out / "tests" / "pages" / "LoginPage.ts").read_text()
        assert "await this.page.goto('/login');" in page
        test = (out / "tests" / "login.spec.ts").read_text()
        assert "import { LoginPage } from './pages/LoginPage';" in test
        assert "loginPage = new LoginPage(page);" in test
        assert "await loginPage.visit();" in test

    def test_unparseable_file_fails_alone(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {
            "cypress/e2e/bad.cy.ts": BROKEN_TEST,
            "cypress/e2e/login.cy.ts": CYPRESS_TEST,
        })
        result = _make_converter().convert_project(str(src), str(out))

        assert not result.success
        assert result.successful_conversions == 1
        assert result.failed_conversions == 1
        bad = next(o for o in result.outcomes if o.original_path == "cypress/e2e/bad.cy.ts")
        assert not bad.success
        assert bad.converted_path is None
        assert bad.errors[0].startswith("Source does not parse")
        assert not (out / "tests" / "bad.spec.ts").exists()
        assert (out / "tests" / "login.spec.ts").exists()

    def test_unparseable_page_object_not_written(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {"cypress/pages/LoginPage.ts": LOGIN_PAGE.rstrip().rstrip("}")})
        result = _make_converter().convert_project(str(src), str(out))

        outcome = result.page_object_outcomes[0]
        assert not outcome.success
        assert outcome.converted_path is None
        assert not (out / "tests" / "pages" / "LoginPage.ts").exists()

    def test_configured_test_id_attribute(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {"cypress/e2e/save.cy.ts": DATA_CY_TEST})
        _make_converter(test_id_attribute="data-cy").convert_project(str(src), str(out))
        _make_converter().convert_project(str(src), str(tmp_path / "default"))

        assert "await page.getByTestId('save').click();" in (out / "tests" / "save.spec.ts").read_text()
        default = (tmp_path / "default" / "tests" / "save.spec.ts").read_text()
        assert "page.locator('[data-cy=\"save\"]')" in default

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            _make_converter().convert_project(str(tmp_path / "nope"), str(tmp_path / "out"))


# =========================================================================
# Tests: Playwright config
# =========================================================================

class TestPlaywrightConfig:
    def test_generated_once(self, tmp_path):
        src, out = tmp_path / "src", tmp_path / "out"
        _write_tree(src, {"cypress/e2e/login.cy.ts": CYPRESS_TEST})
        result = _make_converter(browsers=["chromium", "firefox"]).convert_project(str(src), str(out))

        assert result.generated_config == os.path.join(str(out), "playwright.config.ts")
        content = (out / "playwright.config.ts").read_text()
        assert "testDir: './tests'," in content
        assert "devices['Desktop Firefox']" in content

        again = _make_converter().convert_project(str(src), str(out))
        assert again.generated_config is None

    def test_test_id_attribute(self):
        assert "testIdAttribute" not in render_playwright_config(["chromium"], "tests")
        content = render_playwright_config(["chromium"], "tests", test_id_attribute="data-cy")
        assert "    testIdAttribute: 'data-cy'," in content

    def test_javascript_config(self):
        content = render_playwright_config(["webkit"], "e2e", typescript=False)
        assert content.startswith("const { defineConfig, devices } = require('@playwright/test');")
        assert "module.exports = defineConfig({" in content

    def test_unknown_browser(self):
        with pytest.raises(ValueError):
            render_playwright_config(["netscape"], "tests")


# =========================================================================
# Tests: Paths
# =========================================================================

class TestPaths:
    @pytest.mark.parametrize("path,preserve,expected", [
        ("cypress/e2e/login.cy.ts", True, ["tests", "login.spec.ts"]),
        ("cypress/e2e/auth/login.cy.js", True, ["tests", "auth", "login.spec.js"]),
        ("cypress/integration/auth/login.cy.ts", False, ["tests", "login.spec.ts"]),
        ("specs/login.cy.ts", True, ["tests", "specs", "login.spec.ts"]),
    ])
    def test_determine_output_path(self, path, preserve, expected):
        converter = _make_converter(preserve_structure=preserve)
        assert converter.determine_output_path(path, "/src", "/out") == os.path.join("/out", *expected)

    def test_relink_imports(self):
        code = "import { LoginPage } from '../pages/LoginPage';\nimport x from './local';\n"
        moved = {"cypress/pages/LoginPage": os.path.join("/out", "tests", "pages", "LoginPage")}
        relinked = relink_imports(code, "cypress/e2e/login.cy.ts", os.path.join("/out", "tests", "login.spec.ts"), moved)
        assert "from './pages/LoginPage';" in relinked
        assert "from './local';" in relinked
