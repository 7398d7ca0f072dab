"""Tests for output validation and quality scoring."""

from types import SimpleNamespace

import pytest

from cy2pw.core.classifier import FileType
from cy2pw.core.quality import (
    ExecutionResult,
    ValidationResult,
    categorize_error,
    score,
    validate_file,
    validate_output,
    validation_rate,
)
from cy2pw.core.selective import ConversionOutcome, SelectiveConversionResult


GOOD_OUTPUT = '''import { test, expect } from '@playwright/test';

test('home', async ({ page }) => {
  await page.goto('/');
  // TODO: Convert cy.clock() manually
});
'''


def _make_analysis(candidates=4, mixed=0, conflicts=0):
    return SimpleNamespace(
        conversion_candidates=[f"cypress/e2e/{i}.cy.ts" for i in range(candidates)],
        categorized={FileType.MIXED: [f"tests/mixed{i}.spec.ts" for i in range(mixed)]},
        conflicts=[object()] * conflicts,
    )


def _make_result(converted=4, failed=0, total=6, files_per_second=100.0):
    result = SelectiveConversionResult(total_files_processed=total)
    for i in range(converted):
        result.add_outcome(ConversionOutcome(original_path=f"ok{i}.cy.ts", success=True))
    for i in range(failed):
        result.add_outcome(ConversionOutcome(
            original_path=f"bad{i}.cy.ts",
            errors=[f"Failed to convert bad{i}.cy.ts: unexpected node"],
        ))
    result.performance_metrics.files_per_second = files_per_second
    return result


# =========================================================================
# Tests: Validation
# =========================================================================

class TestValidateOutput:
    def test_valid_file(self):
        check = validate_output(GOOD_OUTPUT, "tests/home.spec.ts")
        assert check.is_valid
        assert check.errors == []
        assert check.warnings == ["1 TODO marker(s) need manual review"]

    def test_cypress_residue(self):
        code = GOOD_OUTPUT.replace("await page.goto('/');", "cy.get('.x').click();")
        check = validate_output(code, "tests/home.spec.ts")
        assert not check.is_valid
        assert any("Unconverted Cypress code cy.get" in e for e in check.errors)

    def test_syntax_error(self):
        check = validate_output("test('x', async ({ page }) => {\n  await page.goto('/');\n", "tests/x.spec.ts")
        assert not check.is_valid
        assert any(e.startswith("Syntax error") for e in check.errors)

    def test_missing_import_warning(self):
        check = validate_output("test('x', async () => {});\n", "tests/x.spec.ts")
        assert check.is_valid
        assert "Missing @playwright/test import" in check.warnings

    def test_unreadable_file(self, tmp_path):
        check = validate_file(str(tmp_path / "missing.spec.ts"))
        assert not check.is_valid
        assert check.errors[0].startswith("File could not be read")


# =========================================================================
# Tests: Scoring
# =========================================================================

class TestScore:
    def test_perfect_run(self):
        metrics = score(_make_result(), _make_analysis())
        assert metrics.conversion_rate == 1.0
        assert metrics.quality_score == pytest.approx(1.0)
        assert metrics.meets_threshold
        assert metrics.recommendations[-1].startswith("Conversion completed successfully")

    def test_weighted_score(self):
        validation = [ValidationResult(is_valid=True), ValidationResult(is_valid=False, errors=["Syntax error at line 1, column 1"])]
        metrics = score(_make_result(converted=3, failed=1), _make_analysis(), validation)
        assert metrics.conversion_rate == pytest.approx(0.75)
        assert metrics.validation_rate == pytest.approx(0.5)
        assert metrics.quality_score == pytest.approx(0.7 * 0.75 + 0.3 * 0.5)
        assert not metrics.meets_threshold
        assert metrics.error_categories == {"conversion": 1, "syntax": 1}
        assert metrics.recommendations[0].startswith("Quality score (67.5%) is below the 85% threshold.")

    def test_no_candidates(self):
        metrics = score(_make_result(converted=0, total=2), _make_analysis(candidates=0))
        assert metrics.conversion_rate == 1.0
        assert metrics.meets_threshold

    def test_custom_threshold(self):
        metrics = score(_make_result(converted=3, failed=1), _make_analysis(), threshold=0.7)
        assert metrics.quality_score == pytest.approx(0.75)
        assert metrics.meets_threshold

    def test_recommendations(self):
        metrics = score(_make_result(files_per_second=2.0), _make_analysis(mixed=2, conflicts=1))
        recs = " | ".join(metrics.recommendations)
        assert "2 file(s) contain mixed framework patterns" in recs
        assert "1 naming conflict(s) detected" in recs
        assert "below optimal" in recs

    def test_to_dict(self):
        data = score(_make_result(), _make_analysis()).to_dict()
        assert data["quality_score"] == 1.0
        assert data["threshold"] == 0.85


class TestValidationRate:
    def test_without_run(self):
        results = [ValidationResult(is_valid=True)] * 3 + [ValidationResult(is_valid=False)]
        assert validation_rate(results) == pytest.approx(0.75)

    def test_with_execution_counts(self):
        results = [ValidationResult(is_valid=True)] * 2
        assert validation_rate(results, ExecutionResult(executable_tests=10, failing_tests=5)) == pytest.approx(0.75)

    def test_empty(self):
        assert validation_rate([]) == 1.0


class TestCategorizeError:
    @pytest.mark.parametrize("message,expected", [
        ("Syntax error at line 3", "syntax"),
        ("Cannot resolve import ./pages", "import"),
        ("Type mismatch", "type"),
        ("Unconverted Cypress code cy.get", "conversion"),
        ("Fixture not found", "missing"),
        ("Disk full", "other"),
    ])
    def test_buckets(self, message, expected):
        assert categorize_error(message) == expected
