"""Evidence patterns used by the file classifier.

Each entry pairs an indicator label with the regex that produces it. The
label is what ends up in ``ClassificationResult.indicators``.
"""

import re
from typing import Tuple

Pattern = Tuple[str, "re.Pattern[str]"]

CYPRESS_PATTERNS: Tuple[Pattern, ...] = (
    ("cypress:command", re.compile(r"\bcy\.(visit|get|contains|click|type|should|wait|intercept|fixture)\s*\(")),
    ("cypress:cy-call", re.compile(r"\bcy\.[A-Za-z_$][\w$]*\s*\(")),
    ("cypress:global", re.compile(r"\bCypress\.[A-Za-z]")),
    ("cypress:reference", re.compile(r"<reference\s+types=[\"']cypress[\"']")),
)

PLAYWRIGHT_PATTERNS: Tuple[Pattern, ...] = (
    ("playwright:import", re.compile(r"[\"']@playwright/test[\"']")),
    ("playwright:page-call", re.compile(r"\bpage\.(goto|fill|click|locator|getBy\w+|waitFor\w*|route)\s*\(")),
    ("playwright:await-expect", re.compile(r"\bawait\s+expect\s*\(")),
    ("playwright:page-fixture", re.compile(r"\btest(?:\.\w+)?\s*\([^)]*async\s*\(\s*\{[^}]*\bpage\b")),
    ("playwright:matcher", re.compile(r"\.(toBeVisible|toHaveText|toHaveURL|toHaveCount)\s*\(")),
)

ANGULAR_PATTERNS: Tuple[Pattern, ...] = (
    ("angular:component-fixture", re.compile(r"\bComponentFixture\b")),
    ("angular:testbed", re.compile(r"\bTestBed\b")),
    ("angular:testing-import", re.compile(r"@angular/core/testing")),
    ("angular:configure-module", re.compile(r"\bconfigureTestingModule\s*\(")),
)

# Import specifier prefixes counted as framework evidence
CYPRESS_MODULES = ("cypress", "@cypress/")
PLAYWRIGHT_MODULES = ("@playwright/test", "playwright", "@playwright/")
ANGULAR_MODULES = ("@angular/core/testing",)

# Filename conventions and the boost they give a matching verdict
CYPRESS_NAME_BOOST = 0.1
PLAYWRIGHT_NAME_BOOST = 0.1
E2E_PATH_BOOST = 0.05

# Base confidences per verdict
ANGULAR_CONFIDENCE = 0.9
MIXED_CONFIDENCE = 0.8
PLAYWRIGHT_CONFIDENCE = 0.9
CYPRESS_CONFIDENCE = 0.9

# Conventional suffixes stripped before comparing basenames for conflicts
CONFLICT_SUFFIX = re.compile(r"\.(cy|spec|test|e2e)(?=\.[jt]sx?$)", re.IGNORECASE)
