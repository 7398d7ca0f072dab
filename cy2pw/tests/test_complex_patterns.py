"""Tests for whole-file conversion: structure, custom commands, intercepts."""

from cy2pw.core.complex_patterns import (
    ComplexPatternConverter,
    ConversionSummary,
    CustomCommandRegistry,
    convert_file,
    playwright_import,
)
from cy2pw.core.then_patterns import PatternRecord


# =========================================================================
# Sample sources
# =========================================================================

LOGIN_SPEC = '''/// <reference types="cypress" />

describe('Login', () => {
  beforeEach(() => {
    cy.visit('/login');
  });

  it('logs in', () => {
    cy.get('#email').type('a@b.c');
    cy.get('[data-testid="submit"]').click();
    cy.url().should('include', '/dashboard');
  });

  it.skip('pending');
});
'''

COMMANDS_SOURCE = '''Cypress.Commands.add('login', (email, password) => {
  cy.get('#email').type(email);
  cy.get('#password').type(password);
  cy.get('button[type="submit"]').click();
});

Cypress.Commands.add('byTestId', (id) => cy.get(`[data-testid="${id}"]`));
'''

CUSTOM_SPEC = '''describe('Account', () => {
  it('signs in', () => {
    cy.login('a@b.c', 'secret');
    cy.byTestId('avatar').click();
  });
});
'''

INTERCEPT_SPEC = '''describe('Errors', () => {
  it('shows a login error', () => {
    cy.intercept('POST', '/api/login', (req) => {
      req.reply({ statusCode: 401, body: { error: 'denied' } });
    }).as('login');
    cy.visit('/login');
    cy.wait('@login');
  });
});
'''

PAGE_OBJECT_SPEC = '''import { LoginPage } from '../pages/LoginPage';

describe('Login page', () => {
  const loginPage = new LoginPage();

  it('opens', () => {
    loginPage.visit();
  });
});
'''


# =========================================================================
# Tests: Structure
# =========================================================================

class TestStructure:
    def setup_method(self):
        self.result = convert_file(LOGIN_SPEC, "cypress/e2e/login.cy.ts")
        self.code = self.result.converted_code

    def test_playwright_import_replaces_reference(self):
        assert self.code.startswith("import { test, expect } from '@playwright/test';\n")
        assert "reference types" not in self.code

    def test_suite_hook_and_test(self):
        assert "test.describe('Login', () => {" in self.code
        assert "  test.beforeEach(async ({ page }) => {" in self.code
        assert "    await page.goto('/login');" in self.code
        assert "  test('logs in', async ({ page }) => {" in self.code

    def test_body_statements(self):
        assert "    await page.locator('#email').fill('a@b.c');" in self.code
        assert "    await page.getByTestId('submit').click();" in self.code
        assert r"    await expect(page).toHaveURL(/^.*\/dashboard.*$/);" in self.code

    def test_pending_test(self):
        assert "test.fixme('pending', async () => {});" in self.code

    def test_success_and_summary(self):
        summary = self.result.conversion_summary
        assert self.result.success
        assert summary.total_patterns > 0
        assert summary.converted_patterns + summary.failed_patterns == summary.total_patterns
        assert summary.failed_patterns == 0

    def test_blank_line_between_members_kept(self):
        lines = self.code.split("\n")
        hook_end = lines.index("  });")
        assert lines[hook_end + 1] == ""

    def test_javascript_import(self):
        assert playwright_import(False, True) == "import { test, expect } from '@playwright/test';"
        assert playwright_import(True, True) == "import { test, expect, type Page } from '@playwright/test';"


# =========================================================================
# Tests: Custom commands
# =========================================================================

class TestCustomCommands:
    def setup_method(self):
        self.registry = CustomCommandRegistry.from_source(COMMANDS_SOURCE, "cypress/support/commands.js")

    def test_registry(self):
        assert self.registry.names == ["byTestId", "login"]
        assert self.registry.get("login").parameters == ["email", "password"]
        assert "login" in self.registry

    def test_call_and_helper(self):
        result = ComplexPatternConverter(registry=self.registry).convert_file(CUSTOM_SPEC, "cypress/e2e/account.cy.ts")
        code = result.converted_code
        assert "import { test, expect, type Page } from '@playwright/test';" in code
        assert "await login(page, 'a@b.c', 'secret');" in code
        assert "async function login(page: Page, email, password) {" in code
        assert "  await page.locator('#email').fill(" in code
        assert result.custom_commands_used == ["login", "byTestId"]

    def test_locator_command_stays_sync(self):
        code = ComplexPatternConverter(registry=self.registry).convert_file(
            CUSTOM_SPEC, "cypress/e2e/account.cy.ts"
        ).converted_code
        assert "function byTestId(page: Page, id) {" in code
        assert "async function byTestId" not in code
        assert "await byTestId(page, 'avatar').click();" in code

    def test_unknown_command_gets_stub(self):
        result = convert_file(CUSTOM_SPEC, "cypress/e2e/account.cy.ts")
        assert "async function login(page: Page, ...args: unknown[]) {" in result.converted_code
        assert "// TODO: Implement custom command login" in result.converted_code
        assert "Custom command login has no known definition; generated a stub" in result.warnings
        assert result.requires_manual_review

    def test_definitions_in_test_file(self):
        source = COMMANDS_SOURCE + "\n" + CUSTOM_SPEC
        code = convert_file(source, "cypress/e2e/account.cy.js").converted_code
        assert "Cypress.Commands.add" not in code
        assert "async function login(page, email, password) {" in code

    def test_scan_support_files(self, tmp_path):
        support = tmp_path / "cypress" / "support"
        support.mkdir(parents=True)
        (support / "commands.js").write_text(COMMANDS_SOURCE)
        (support / "notes.md").write_text("Cypress.Commands.add('ignored', () => {});")
        registry = CustomCommandRegistry()
        assert registry.scan_support_files(str(tmp_path)) == 2
        assert len(registry) == 2


# =========================================================================
# Tests: Intercepts and page objects
# =========================================================================

class TestInterceptHandlers:
    def test_reply_becomes_fulfill(self):
        code = convert_file(INTERCEPT_SPEC, "cypress/e2e/errors.cy.ts").converted_code
        assert "await page.route('**/api/login', async (route) => {" in code
        assert "if (route.request().method() !== 'POST') return route.fallback();" in code
        assert "await route.fulfill({ status: 401, json: { error: 'denied' } });" in code

    def test_alias_wait_after_handler(self):
        result = convert_file(INTERCEPT_SPEC, "cypress/e2e/errors.cy.ts")
        assert "response.url().includes('/api/login')" in result.converted_code
        assert any("@login" in w for w in result.warnings)

    def test_fixture_response_needs_review(self):
        source = (
            "describe('users', () => {\n"
            "  it('lists', () => {\n"
            "    cy.intercept('GET', '/api/u', { fixture: 'u.json' });\n"
            "    cy.visit('/users');\n"
            "  });\n"
            "});\n"
        )
        result = convert_file(source, "cypress/e2e/users.cy.ts")
        assert "// TODO: Load fixture file u.json" in result.converted_code
        assert result.conversion_summary.manual_review_required == 1
        assert result.review_reasons


class TestPageObjectUsage:
    def test_construction_moves_into_before_each(self):
        converter = ComplexPatternConverter(page_objects={"LoginPage": {"visit"}})
        code = converter.convert_file(PAGE_OBJECT_SPEC, "cypress/e2e/login.cy.ts").converted_code
        assert "import { LoginPage } from '../pages/LoginPage';" in code
        assert "  let loginPage: LoginPage;" in code
        assert "    loginPage = new LoginPage(page);" in code
        assert "    await loginPage.visit();" in code

    def test_hoisted_setup_is_set_apart(self):
        converter = ComplexPatternConverter(page_objects={"LoginPage": {"visit"}})
        code = converter.convert_file(PAGE_OBJECT_SPEC, "cypress/e2e/login.cy.ts").converted_code
        assert (
            "  let loginPage: LoginPage;\n"
            "\n"
            "  test.beforeEach(async ({ page }) => {\n"
            "    loginPage = new LoginPage(page);\n"
            "  });\n"
            "\n"
            "  test('opens', async ({ page }) => {\n"
        ) in code


# =========================================================================
# Tests: Failure isolation and summaries
# =========================================================================

class TestFailures:
    def test_unbalanced_source_fails_the_file(self):
        source = "describe('l', () => {\n  it('x', () => {\n    cy.visit('/l'\n"
        result = convert_file(source, "cypress/e2e/bad.cy.ts")

        assert not result.success
        assert result.errors[0].startswith("Source does not parse (first error at line")
        assert result.converted_code == source
        assert result.conversion_summary.failed_patterns == 1

    def test_unclosed_suite_fails_the_file(self):
        result = convert_file("describe('x', () => {\n  it('y', () => {\n    cy.visit('/');\n", "broken.cy.ts")
        assert not result.success
        assert result.errors

    def test_summary_from_patterns(self):
        summary = ConversionSummary.from_patterns([
            PatternRecord(kind="command"),
            PatternRecord(kind="command", failed=True, manual_review=True),
        ])
        assert summary.total_patterns == 2
        assert summary.converted_patterns == 1
        assert summary.failed_patterns == 1
        assert summary.manual_review_required == 1
        assert summary.complexity_distribution["low"] == 2

    def test_failed_file_summary(self):
        summary = ConversionSummary.failed_file()
        assert summary.converted_patterns + summary.failed_patterns == summary.total_patterns
        assert summary.complexity_distribution["high"] == 1

    def test_to_dict(self):
        data = convert_file(LOGIN_SPEC, "cypress/e2e/login.cy.ts").to_dict()
        assert data["success"] is True
        assert data["file_path"] == "cypress/e2e/login.cy.ts"
        assert data["imports"] == ["import { test, expect } from '@playwright/test';"]
