"""Tests for callback-chain flattening."""

from cy2pw.core.then_patterns import Complexity, Scope, convert_snippet


def _lines(pattern):
    return [line for line in pattern.converted_code.split("\n") if line.strip()]


# =========================================================================
# Tests: Binding and hoisting
# =========================================================================

class TestBindings:
    def test_value_binding(self):
        pattern = convert_snippet(
            "cy.get('.price').invoke('text').then((text) => {\n"
            "  expect(text).to.equal('$10');\n"
            "});\n"
        )
        assert pattern.is_valid
        assert _lines(pattern) == [
            "const text = await page.locator('.price').textContent();",
            "expect(text).toBe('$10');",
        ]

    def test_element_binding_drops_dollar(self):
        pattern = convert_snippet(
            "cy.get('#save').then(($btn) => {\n"
            "  cy.wrap($btn).click();\n"
            "});\n"
        )
        assert _lines(pattern) == [
            "const btn = page.locator('#save');",
            "await btn.click();",
        ]
        assert pattern.complexity == Complexity.LOW

    def test_returned_value_is_hoisted_once(self):
        pattern = convert_snippet(
            "cy.get('.price').invoke('text').then((text) => {\n"
            "  const price = parseFloat(text);\n"
            "  return price;\n"
            "}).then((price) => {\n"
            "  cy.get('.total').should('contain', price);\n"
            "});\n"
        )
        code = pattern.converted_code
        assert pattern.is_valid
        assert code.count("const price") == 1
        assert "await expect(page.locator('.total')).toContainText(price);" in code
        assert code.index("const price") < code.index("toContainText(price)")

    def test_nested_callbacks_share_block(self):
        pattern = convert_snippet(
            "cy.get('#a').invoke('text').then((a) => {\n"
            "  cy.get('#b').invoke('text').then((b) => {\n"
            "    expect(a).to.equal(b);\n"
            "  });\n"
            "});\n"
        )
        lines = _lines(pattern)
        assert "const a = await page.locator('#a').textContent();" in lines
        assert "const b = await page.locator('#b').textContent();" in lines
        assert lines[-1] == "expect(a).toBe(b);"
        assert pattern.complexity == Complexity.HIGH

    def test_sibling_callbacks_get_unique_names(self):
        pattern = convert_snippet(
            "cy.get('#a').then(($el) => {\n"
            "  cy.wrap($el).click();\n"
            "});\n"
            "cy.get('#b').then(($el) => {\n"
            "  cy.wrap($el).click();\n"
            "});\n"
        )
        code = pattern.converted_code
        assert "const el = page.locator('#a');" in code
        assert "const el2 = page.locator('#b');" in code
        assert "await el2.click();" in code

    def test_length_of_found_elements_counts(self):
        pattern = convert_snippet(
            "cy.get('body').then(($body) => {\n"
            "  if ($body.find('.modal').length > 0) {\n"
            "    cy.get('.close').click();\n"
            "  }\n"
            "});\n"
        )
        code = pattern.converted_code
        assert "if (await body.locator('.modal').count() > 0) {" in code
        assert ".length" not in code
        assert not pattern.requires_manual_review

    def test_length_of_bound_element(self):
        pattern = convert_snippet(
            "cy.get('li').then(($items) => {\n"
            "  expect($items.length).to.equal(3);\n"
            "});\n"
        )
        assert "expect(await items.count()).toBe(3);" in pattern.converted_code


# =========================================================================
# Tests: Other callback links
# =========================================================================

class TestCallbackLinks:
    def test_within(self):
        pattern = convert_snippet(
            "cy.get('form').within(() => {\n"
            "  cy.get('input').type('x');\n"
            "});\n"
        )
        assert _lines(pattern) == [
            "const scope = page.locator('form');",
            "await scope.locator('input').fill('x');",
        ]

    def test_each(self):
        pattern = convert_snippet(
            "cy.get('li').each(($li) => {\n"
            "  cy.wrap($li).click();\n"
            "});\n"
        )
        assert _lines(pattern) == [
            "for (const li of await page.locator('li').all()) {",
            "  await li.click();",
            "}",
        ]

    def test_alias_wait_response(self):
        pattern = convert_snippet(
            "cy.wait('@getUser').then((interception) => {\n"
            "  expect(interception.response.statusCode).to.eq(200);\n"
            "});\n"
        )
        code = pattern.converted_code
        assert "const response = await page.waitForResponse(" in code
        assert "expect(response.status()).toBe(200);" in code
        assert pattern.complexity == Complexity.HIGH
        assert any("@getUser" in w for w in pattern.warnings)

    def test_conditional_branches(self):
        pattern = convert_snippet(
            "cy.get('.count').invoke('text').then((count) => {\n"
            "  if (count === '0') {\n"
            "    cy.get('.empty').should('be.visible');\n"
            "  } else {\n"
            "    cy.get('.list').should('be.visible');\n"
            "  }\n"
            "});\n"
        )
        lines = _lines(pattern)
        assert "if (count === '0') {" in lines
        assert "  await expect(page.locator('.empty')).toBeVisible();" in lines
        assert "} else {" in lines
        assert "  await expect(page.locator('.list')).toBeVisible();" in lines


# =========================================================================
# Tests: Review flags and malformed input
# =========================================================================

class TestReviewAndErrors:
    def test_unsupported_jquery_method(self):
        pattern = convert_snippet(
            "cy.get('.slider').then(($s) => {\n"
            "  $s.slider('value', 50);\n"
            "});\n"
        )
        assert pattern.is_valid
        assert pattern.requires_manual_review
        assert "TODO" in pattern.converted_code
        assert "slider" in pattern.converted_code.split("TODO", 1)[1]

    def test_unbalanced_brackets_are_invalid(self):
        pattern = convert_snippet("cy.get('.a').then(($a) => {\n  cy.wrap($a).click();\n")
        assert not pattern.is_valid
        assert pattern.requires_manual_review
        assert pattern.converted_code == ""

    def test_medium_complexity(self):
        pattern = convert_snippet(
            "cy.get('form').then(($form) => {\n"
            "  cy.get('#name').type('a');\n"
            "  cy.get('#submit').click();\n"
            "});\n"
        )
        assert pattern.complexity == Complexity.MEDIUM
        assert not pattern.requires_manual_review

    def test_to_dict(self):
        data = convert_snippet("cy.visit('/');\n").to_dict()
        assert data["converted_code"] == "await page.goto('/');"
        assert data["complexity"] == "low"


class TestScope:
    def test_declare_suffixes(self):
        scope = Scope()
        assert scope.declare("el") == "el"
        assert scope.declare("el") == "el2"
        assert scope.declare("el") == "el3"

    def test_frame_shares_names_but_not_renames(self):
        outer = Scope()
        frame = outer.frame()
        frame.declare("value")
        frame.bind("$v", "value")
        assert outer.is_declared("value")
        assert outer.resolve("$v") == "$v"
        assert frame.resolve("$v") == "value"

    def test_block_names_are_local(self):
        outer = Scope()
        block = outer.block()
        block.declare("item")
        assert not outer.is_declared("item")
