"""Tests for page-object analysis and transformation."""

from cy2pw.core.page_objects import (
    PAGE_IMPORT_JS,
    PAGE_IMPORT_TS,
    ExportKind,
    MethodRole,
    PageObjectTransformer,
    analyze,
    is_page_object,
)


# =========================================================================
# Sample sources
# =========================================================================

LOGIN_PAGE = '''/// <reference types="cypress" />

export class LoginPage {
  visit() {
    cy.visit('/login');
  }

  get emailInput() {
    return cy.get('#email');
  }

  fillEmail(email: string) {
    this.emailInput.clear();
    this.emailInput.type(email);
  }

  fillPwd(password: string) {
    cy.get('#password').type(password);
  }

  clickLoginBtn() {
    cy.get('[data-testid="login"]').click();
  }

  fillLogin(email: string, password: string) {
    this.fillEmail(email);
    this.fillPwd(password);
    this.clickLoginBtn();
  }
}
'''

DEFAULT_EXPORT_JS = '''class CartPage {
  constructor(prefix) {
    this.prefix = prefix;
  }

  open() {
    cy.visit(this.prefix + '/cart');
  }
}

export default CartPage;
'''

SUBCLASS_PAGE = '''import { BasePage } from './BasePage';

export default class AdminPage extends BasePage {
  open() {
    cy.visit('/admin');
  }
}
'''

CONSTRUCTOR_PAGE = '''export class P {
  constructor(name: string) { this.name = name; }
  open() { cy.visit('/'); }
}
'''

ONE_LINE_PAGE = "export class Q { constructor(id: string) { this.id = id; } open() { cy.visit('/q'); } }\n"


# =========================================================================
# Tests: Analysis
# =========================================================================

class TestAnalyzer:
    def test_detection(self):
        assert is_page_object(LOGIN_PAGE)
        assert not is_page_object("export const x = 1;")
        assert not is_page_object("class Plain { run() { return 1; } }")

    def test_roles(self):
        model = analyze(LOGIN_PAGE, "pages/LoginPage.ts")[0]
        assert model.class_name == "LoginPage"
        assert model.export_kind == ExportKind.NAMED
        roles = {m.name: m.role for m in model.methods}
        assert roles["visit"] == MethodRole.VISIT
        assert roles["fillEmail"] == MethodRole.INPUT
        assert roles["fillPwd"] == MethodRole.INPUT
        assert roles["clickLoginBtn"] == MethodRole.CLICK
        assert roles["fillLogin"] == MethodRole.COMPOSITE

    def test_composite_call_order(self):
        model = analyze(LOGIN_PAGE, "pages/LoginPage.ts")[0]
        assert model.method("fillLogin").called_method_names == ["fillEmail", "fillPwd", "clickLoginBtn"]

    def test_locator_getter_stays_sync(self):
        model = analyze(LOGIN_PAGE, "pages/LoginPage.ts")[0]
        getter = model.method("emailInput")
        assert getter.is_getter
        assert getter.returns_locator
        assert "this.emailInput" in model.locator_members
        assert "emailInput" not in model.async_methods

    def test_constructor_and_properties(self):
        model = analyze(DEFAULT_EXPORT_JS, "pages/CartPage.js")[0]
        assert model.has_constructor
        assert model.constructor_parameters == ["prefix"]
        assert [p.name for p in model.properties] == ["prefix"]
        assert model.export_kind == ExportKind.DEFAULT

    def test_extends(self):
        model = analyze(SUBCLASS_PAGE, "pages/AdminPage.ts")[0]
        assert model.extends == "BasePage"
        assert model.export_kind == ExportKind.DEFAULT

    def test_to_dict(self):
        data = analyze(LOGIN_PAGE, "pages/LoginPage.ts")[0].to_dict()
        assert data["class_name"] == "LoginPage"
        assert data["export_kind"] == "named"
        assert {m["name"] for m in data["methods"]} >= {"visit", "fillLogin"}


# =========================================================================
# Tests: Transformation
# =========================================================================

class TestTransformer:
    def setup_method(self):
        self.transformer = PageObjectTransformer()

    def test_page_injected(self):
        result = self.transformer.transform(LOGIN_PAGE, "pages/LoginPage.ts")
        code = result.converted_code
        assert result.success
        assert code.startswith(PAGE_IMPORT_TS)
        assert "constructor(page: Page) {" in code
        assert "this.page = page;" in code
        assert "reference types" not in code

    def test_methods_become_async(self):
        code = self.transformer.transform(LOGIN_PAGE, "pages/LoginPage.ts").converted_code
        assert "async visit() {" in code
        assert "await this.page.goto('/login');" in code
        assert "async clickLoginBtn() {" in code
        assert "await this.page.getByTestId('login').click();" in code
        assert "get emailInput() {" in code
        assert "return this.page.locator('#email');" in code
        assert "async emailInput" not in code

    def test_locator_member_chains(self):
        code = self.transformer.transform(LOGIN_PAGE, "pages/LoginPage.ts").converted_code
        assert "await this.emailInput.clear();" in code
        assert "await this.emailInput.fill(" in code

    def test_composite_order_preserved(self):
        code = self.transformer.transform(LOGIN_PAGE, "pages/LoginPage.ts").converted_code
        first = code.index("await this.fillEmail(email);")
        second = code.index("await this.fillPwd(password);")
        third = code.index("await this.clickLoginBtn();")
        assert first < second < third

    def test_export_style_preserved(self):
        code = self.transformer.transform(DEFAULT_EXPORT_JS, "pages/CartPage.js").converted_code
        assert "export default CartPage;" in code
        assert code.startswith(PAGE_IMPORT_JS)
        assert "constructor(page, prefix) {" in code
        assert "await this.page.goto(this.prefix + '/cart');" in code

    def test_subclass_calls_super(self):
        code = self.transformer.transform(SUBCLASS_PAGE, "pages/AdminPage.ts").converted_code
        assert "export default class AdminPage extends BasePage {" in code
        assert "super(page);" in code
        assert "page: Page;" not in code

    def test_existing_constructor_gets_page_field(self):
        code = self.transformer.transform(CONSTRUCTOR_PAGE, "pages/P.ts").converted_code
        assert (
            "export class P {\n"
            "  page: Page;\n"
            "\n"
            "  constructor(page: Page, name: string) {\n"
            "    this.page = page;\n"
            "    this.name = name;\n"
            "  }\n"
        ) in code
        assert "  async open() {\n    await this.page.goto('/');\n  }" in code

    def test_one_line_class_is_reindented(self):
        code = self.transformer.transform(ONE_LINE_PAGE, "pages/Q.ts").converted_code
        assert "export class Q {\n  page: Page;\n" in code
        assert "  constructor(page: Page, id: string) {\n    this.page = page;\n    this.id = id;\n  }" in code
        assert "\n  async open() {\n    await this.page.goto('/q');\n  }\n}" in code

    def test_no_class_is_a_warning(self):
        result = self.transformer.transform("cy.visit('/');", "support/helpers.ts")
        assert result.models == []
        assert result.converted_code == "cy.visit('/');"
        assert result.warnings
