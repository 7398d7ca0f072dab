"""Tests for the AST parser module."""

from cy2pw.core.ast_parser import (
    ParseResult,
    detect_language,
    is_test_file,
    parse_file,
    parse_source,
    scan_imports,
    should_skip_directory,
)
from cy2pw.core.ast_parser.fallback_parser import FallbackParser


# =========================================================================
# Sample sources
# =========================================================================

PAGE_OBJECT_TS = '''
import { BasePage } from './BasePage';

/** Login screen. */
export class LoginPage extends BasePage {
  url: string = '/login';

  visit() {
    cy.visit(this.url);
  }

  get submitButton() {
    return cy.get('[data-testid="submit"]');
  }

  async fillEmail(email: string) {
    cy.get('#email').type(email);
  }
}
'''

HELPERS_JS = '''
const { format } = require('util');

function greet(name) {
  return format('hi %s', name);
}

const shout = (text) => text.toUpperCase();
'''

CYPRESS_SPEC = '''/// <reference types="cypress" />
import 'cypress-real-events';

describe('login', () => {
  it('works', () => {
    cy.visit('/login');
  });
});
'''

BROKEN_SOURCE = '''
import { test } from '@playwright/test';
describe('broken', () => {
  it('never closes', () => {
    cy.visit('/'
'''


# =========================================================================
# Tests: Language detection and file helpers
# =========================================================================

class TestLanguageDetection:
    def test_typescript(self):
        assert detect_language("cypress/e2e/login.cy.ts") == "typescript"

    def test_javascript(self):
        assert detect_language("src/helpers.jsx") == "javascript"

    def test_tsx(self):
        assert detect_language("Button.tsx") == "tsx"

    def test_unknown(self):
        assert detect_language("README.md") is None

    def test_case_insensitive(self):
        assert detect_language("LOGIN.CY.TS") == "typescript"


class TestFileHelpers:
    def test_cypress_suffix_is_test_file(self):
        assert is_test_file("cypress/e2e/login.cy.ts")

    def test_spec_and_test_suffixes(self):
        assert is_test_file("tests/login.spec.js")
        assert is_test_file("src/app.component.test.tsx")
        assert is_test_file("e2e/checkout.e2e.ts")

    def test_plain_source_is_not_test_file(self):
        assert not is_test_file("cypress/pages/LoginPage.ts")
        assert not is_test_file("cypress/support/commands.js")

    def test_non_script_extension(self):
        assert not is_test_file("fixtures/users.cy.json")

    def test_skip_directories(self):
        assert should_skip_directory("node_modules")
        assert should_skip_directory(".git")
        assert should_skip_directory("dist")
        assert should_skip_directory(".hidden")
        assert not should_skip_directory("cypress")


# =========================================================================
# Tests: Structured parsing
# =========================================================================

class TestTypeScriptParsing:
    def test_summary(self):
        result = parse_source(PAGE_OBJECT_TS, "pages/LoginPage.ts")
        assert isinstance(result, ParseResult)
        assert result.language == "typescript"
        assert not result.has_syntax_errors
        assert result.errors == []
        assert result.line_count == len(PAGE_OBJECT_TS.splitlines())

    def test_import_specifiers(self):
        result = parse_source(PAGE_OBJECT_TS, "pages/LoginPage.ts")
        assert result.import_specifiers == ["./BasePage"]

    def test_reference_directive_and_side_effect_import(self):
        result = parse_source(CYPRESS_SPEC, "login.cy.ts")
        assert result.import_specifiers == ["cypress", "cypress-real-events"]

    def test_syntax_error_is_reported(self):
        result = parse_source(BROKEN_SOURCE, "broken.cy.ts")
        assert result.has_syntax_errors
        assert result.errors[0].message == "Source has syntax errors"
        assert result.errors[0].line > 0

    def test_explicit_language(self):
        result = parse_source("const el = <div />;", "component.txt", language="tsx")
        assert result.language == "tsx"


class TestJavaScriptParsing:
    def test_require_specifier(self):
        result = parse_source(HELPERS_JS, "support/helpers.js")
        assert result.language == "javascript"
        assert result.import_specifiers == ["util"]

    def test_dynamic_import_and_reexport(self):
        source = "export { a } from './a';\nconst m = import('./lazy');\n"
        result = parse_source(source, "index.js")
        assert result.import_specifiers == ["./a", "./lazy"]

    def test_parse_file(self, tmp_path):
        path = tmp_path / "support" / "helpers.js"
        path.parent.mkdir()
        path.write_text(HELPERS_JS)
        result = parse_file(str(path), str(tmp_path))
        assert result.file_path == "support/helpers.js"
        assert result.language == "javascript"
        assert result.import_specifiers == ["util"]

    def test_parse_missing_file(self, tmp_path):
        result = parse_file(str(tmp_path / "missing.js"))
        assert result.import_specifiers == []
        assert result.errors[0].severity == "error"


# =========================================================================
# Tests: Import scanning
# =========================================================================

class TestImportScan:
    def test_reference_and_side_effect_imports(self):
        scan = scan_imports(CYPRESS_SPEC, "login.cy.ts")
        assert not scan.degraded
        assert scan.fully_understood
        assert "cypress" in scan.specifiers
        assert "cypress-real-events" in scan.specifiers

    def test_syntax_error_falls_back_to_regex(self):
        scan = scan_imports(BROKEN_SOURCE, "broken.cy.ts")
        assert scan.degraded
        assert scan.specifiers == ["@playwright/test"]

    def test_fallback_scanner_order(self):
        source = "const a = require('b');\nimport x from 'a';\n"
        assert FallbackParser.scan_specifiers(source) == ["b", "a"]

    def test_fallback_parse_source(self):
        result = FallbackParser().parse_source("import x from 'y';", "x.vue")
        assert result.language == "unknown"
        assert result.import_specifiers == ["y"]
        assert result.line_count == 1
