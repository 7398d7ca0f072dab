"""Tests for Cypress command, selector and assertion mapping."""

import pytest

from cy2pw.core.ast_parser import get_parser
from cy2pw.core.mapping import (
    CommandMapper,
    MappingContext,
    RuleSet,
    convert_selector,
    extract_call,
    split_type_text,
    statement,
)
from cy2pw.core.mapping.routes import GENERIC_RESPONSE_PREDICATE
from cy2pw.core.mapping.rules import COMMAND_RULES


def _call(code: str):
    """Parse one expression statement and extract its Cypress call."""
    tree, source = get_parser("typescript").parse_tree(code)
    expr = tree.root_node.named_children[0].named_children[0]
    return extract_call(expr, source)


def _convert(code: str, ctx: MappingContext = None, mapper: CommandMapper = None):
    mapper = mapper or CommandMapper()
    return mapper.convert(_call(code), ctx or MappingContext())


def _codes(code: str, ctx: MappingContext = None):
    return [s.code for s in _convert(code, ctx)]


# =========================================================================
# Tests: Call extraction
# =========================================================================

class TestExtractCall:
    def test_command_and_chain(self):
        call = _call("cy.get('#email').type('a@b.c');")
        assert call.command == "get"
        assert call.args[0].value == "#email"
        assert [c.method for c in call.chained_calls] == ["type"]

    def test_non_cypress_chain(self):
        assert _call("page.goto('/');") is None

    def test_object_argument_properties(self):
        call = _call("cy.visit({ url: '/home', timeout: 5000 });")
        assert set(call.args[0].properties) == {"url", "timeout"}


# =========================================================================
# Tests: Commands
# =========================================================================

class TestCommands:
    def test_visit(self):
        stmts = _convert("cy.visit('/login');")
        assert [s.code for s in stmts] == ["await page.goto('/login');"]
        assert stmts[0].requires_await

    def test_visit_options_object(self):
        assert _codes("cy.visit({ url: '/home' });") == ["await page.goto('/home');"]

    def test_bare_get_waits_for_element(self):
        assert _codes("cy.get('.spinner');") == ["await page.locator('.spinner').waitFor();"]

    def test_contains_text(self):
        assert _codes("cy.contains('Welcome');") == ["await page.getByText('Welcome').waitFor();"]

    def test_contains_selector_and_text(self):
        assert _codes("cy.contains('button', 'Save').click();") == [
            "await page.locator('button').filter({ hasText: 'Save' }).click();"
        ]

    def test_wait_duration(self):
        assert _codes("cy.wait(500);") == ["await page.waitForTimeout(500);"]

    def test_reload(self):
        assert _codes("cy.reload();") == ["await page.reload();"]

    def test_viewport(self):
        assert _codes("cy.viewport(1280, 720);") == ["await page.setViewportSize({ width: 1280, height: 720 });"]

    def test_go_back(self):
        assert _codes("cy.go('back');") == ["await page.goBack();"]

    def test_fixture_is_manual(self):
        stmts = _convert("cy.fixture('users.json');")
        assert stmts[0].code == "// TODO: Load fixture file users.json"
        assert stmts[0].manual_review

    def test_request_binds_response(self):
        stmts = _convert("cy.request('POST', '/api/users', { name: 'a' }).its('status').should('eq', 201);")
        assert stmts[0].code.startswith("const response = await page.request.post('/api/users', { data: ")
        assert stmts[-1].code.endswith(".toBe(201);")

    def test_unknown_command(self):
        stmts = _convert("cy.fooBar();")
        assert stmts[0].code == "// TODO: Convert unknown command: fooBar"
        assert stmts[0].warnings == ["Unknown command: fooBar"]
        assert stmts[0].manual_review
        assert not stmts[0].requires_await

    def test_unknown_chained_command(self):
        stmts = _convert("cy.get('.x').wiggle();")
        assert stmts[0].code == "// TODO: Convert unknown command: wiggle"
        assert stmts[0].warnings == ["Unknown chained command: wiggle"]

    def test_custom_command_hook(self):
        ctx = MappingContext(custom_command_hook=lambda call, c: [statement(f"await {call.command}({c.page_ref});")])
        assert _codes("cy.login();", ctx) == ["await login(page);"]

    def test_injected_rules(self):
        rules = RuleSet(commands={**COMMAND_RULES, "open": COMMAND_RULES["visit"]})
        stmts = _convert("cy.open('/x');", mapper=CommandMapper(rules))
        assert stmts[0].code == "await page.goto('/x');"


# =========================================================================
# Tests: Chained actions
# =========================================================================

class TestChainedActions:
    def test_click_test_id(self):
        assert _codes("cy.get('[data-testid=\"submit\"]').click();") == [
            "await page.getByTestId('submit').click();"
        ]

    def test_type_with_special_keys(self):
        assert _codes("cy.get('#q').type('a{enter}b');") == [
            "await page.locator('#q').fill('a');",
            "await page.locator('#q').press('Enter');",
            "await page.locator('#q').pressSequentially('b');",
        ]

    def test_first_and_eq(self):
        assert _codes("cy.get('li').first().click();") == ["await page.locator('li').first().click();"]
        assert _codes("cy.get('li').eq(2).click();") == ["await page.locator('li').nth(2).click();"]

    def test_find_scopes_to_subject(self):
        assert _codes("cy.get('form').find('input').clear();")[0].startswith(
            "await page.locator('form').locator('input')."
        )

    def test_element_alias(self):
        ctx = MappingContext()
        assert _codes("cy.get('#f').as('form');", ctx) == ["const form = page.locator('#f');"]
        assert _codes("cy.get('@form').click();", ctx) == ["await form.click();"]

    def test_action_without_subject(self):
        stmts = _convert("cy.reload().click();")
        assert stmts[-1].manual_review
        assert "no element subject" in stmts[-1].code


class TestSplitTypeText:
    def test_segments(self):
        assert split_type_text("abc{enter}def") == [("text", "abc"), ("key", "enter"), ("text", "def")]

    def test_only_keys(self):
        assert split_type_text("{selectall}{backspace}") == [("key", "selectall"), ("key", "backspace")]


# =========================================================================
# Tests: Assertions
# =========================================================================

class TestAssertions:
    def test_visible(self):
        stmts = _convert("cy.get('.x').should('be.visible');")
        assert stmts[0].code == "await expect(page.locator('.x')).toBeVisible();"
        assert stmts[0].requires_await

    def test_negated(self):
        assert _codes("cy.get('.x').should('not.exist');") == ["await expect(page.locator('.x')).not.toBeAttached();"]

    def test_length(self):
        assert _codes("cy.get('.item').should('have.length', 3);") == [
            "await expect(page.locator('.item')).toHaveCount(3);"
        ]

    def test_contain(self):
        assert _codes("cy.get('h1').should('contain', 'Hi');") == ["await expect(page.locator('h1')).toContainText('Hi');"]

    def test_and_chains_on_same_subject(self):
        assert _codes("cy.get('#b').should('be.visible').and('be.enabled');") == [
            "await expect(page.locator('#b')).toBeVisible();",
            "await expect(page.locator('#b')).toBeEnabled();",
        ]

    def test_url_include(self):
        assert _codes("cy.url().should('include', '/dashboard');") == [
            r"await expect(page).toHaveURL(/^.*\/dashboard.*$/);"
        ]

    def test_text_keeps_retrying_matcher(self):
        assert _codes("cy.get('h1').invoke('text').should('eq', 'Hi');") == [
            "await expect(page.locator('h1')).toHaveText('Hi');"
        ]

    def test_count_via_its_length(self):
        assert _codes("cy.get('li').its('length').should('eq', 3);") == [
            "await expect(page.locator('li')).toHaveCount(3);"
        ]

    def test_unknown_chainer_is_manual(self):
        stmts = _convert("cy.get('.x').should('be.wobbly');")
        assert stmts[0].code.startswith("// TODO: Convert assertion manually")
        assert stmts[0].manual_review


# =========================================================================
# Tests: Intercepts and alias waits
# =========================================================================

class TestIntercepts:
    def test_pass_through(self):
        assert _codes("cy.intercept('/api/health');") == [
            "await page.route('**/api/health', (route) => route.continue());"
        ]

    def test_static_response(self):
        code = _codes("cy.intercept('/api/users', { statusCode: 200, body: [] });")[0]
        assert code == "await page.route('**/api/users', (route) => route.fulfill({ status: 200, json: [] }));"

    def test_fixture_response(self):
        stmts = _convert("cy.intercept('GET', '/api/users', { fixture: 'users.json' });")
        assert "// TODO: Load fixture file users.json" in stmts[0].code
        assert "route.request().method() !== 'GET'" in stmts[0].code
        assert stmts[0].warnings
        assert stmts[0].manual_review

    def test_alias_wait_uses_route(self):
        ctx = MappingContext()
        _convert("cy.intercept('GET', '/api/users').as('getUsers');", ctx)
        stmts = _convert("cy.wait('@getUsers');", ctx)
        assert stmts[0].code == (
            "await page.waitForResponse((response) => response.url().includes('/api/users')"
            " && response.request().method() === 'GET');"
        )
        assert stmts[0].warnings == [
            "Alias wait '@getUsers' converted to a response predicate; manual tightening may be required"
        ]

    def test_unknown_alias_wait_is_generic(self):
        stmts = _convert("cy.wait('@missing');")
        assert stmts[0].code == f"await page.waitForResponse({GENERIC_RESPONSE_PREDICATE});"


# =========================================================================
# Tests: Selectors
# =========================================================================

class TestSelectors:
    @pytest.mark.parametrize("selector,expected", [
        ('[data-testid="save"]', "page.getByTestId('save')"),
        ('[role="button"]', "page.getByRole('button')"),
        ('[aria-label="Close"]', "page.getByLabel('Close')"),
        ('[placeholder="Email"]', "page.getByPlaceholder('Email')"),
        ('[alt="Logo"]', "page.getByAltText('Logo')"),
        ("#email", "page.locator('#email')"),
        ("li:first", "page.locator('li').first()"),
        ("li:last", "page.locator('li').last()"),
        ("li:eq(1)", "page.locator('li').nth(1)"),
        (":contains('Hi')", "page.getByText('Hi')"),
    ])
    def test_default_context(self, selector, expected):
        assert convert_selector(selector, MappingContext()) == expected

    def test_other_test_id_attribute_stays_css(self):
        assert convert_selector('[data-cy="x"]', MappingContext()) == "page.locator('[data-cy=\"x\"]')"

    def test_configured_test_id_attribute(self):
        ctx = MappingContext(test_id_attribute="data-cy")
        assert convert_selector('[data-cy="x"]', ctx) == "page.getByTestId('x')"

    def test_within_scope(self):
        ctx = MappingContext(locator_root="form")
        assert convert_selector("input", ctx) == "form.locator('input')"
