"""Playwright runner configuration for a converted project."""

import logging
import os
from typing import Iterable, Optional

from ..constants import DEFAULT_TEST_ID_ATTRIBUTE, SUPPORTED_BROWSERS

logger = logging.getLogger(__name__)

_DEVICES = {
    "chromium": "Desktop Chrome",
    "firefox": "Desktop Firefox",
    "webkit": "Desktop Safari",
}


def config_filename(typescript: bool) -> str:
    return "playwright.config.ts" if typescript else "playwright.config.js"


def render_playwright_config(
    browsers: Iterable[str],
    test_dir: str,
    typescript: bool = True,
    test_id_attribute: str = DEFAULT_TEST_ID_ATTRIBUTE,
) -> str:
    """Source of a ``playwright.config`` with one project per browser.

    Raises:
        ValueError: If a browser is not one Playwright ships
    """
    names = list(dict.fromkeys(browsers))
    unknown = [b for b in names if b not in SUPPORTED_BROWSERS]
    if unknown:
        raise ValueError(f"Unsupported browsers: {', '.join(unknown)}. Supported: {', '.join(SUPPORTED_BROWSERS)}")

    if typescript:
        header = "import { defineConfig, devices } from '@playwright/test';\n\nexport default defineConfig({"
    else:
        header = "const { defineConfig, devices } = require('@playwright/test');\n\nmodule.exports = defineConfig({"
    lines = [
        header,
        f"  testDir: './{test_dir.strip('/')}',",
        "  fullyParallel: true,",
        "  forbidOnly: !!process.env.CI,",
        "  retries: process.env.CI ? 2 : 0,",
        "  reporter: 'html',",
        "  use: {",
        "    trace: 'on-first-retry',",
        "    screenshot: 'only-on-failure',",
    ]
    if test_id_attribute != DEFAULT_TEST_ID_ATTRIBUTE:
        lines.append(f"    testIdAttribute: '{test_id_attribute}',")
    lines.extend(["  },", "  projects: ["])
    for name in names:
        lines.append(f"    {{ name: '{name}', use: {{ ...devices['{_DEVICES[name]}'] }} }},")
    lines.append("  ],")
    lines.append("});")
    return "\n".join(lines) + "\n"


def write_playwright_config(
    output_root: str,
    browsers: Iterable[str],
    test_dir: str,
    typescript: bool = True,
    test_id_attribute: str = DEFAULT_TEST_ID_ATTRIBUTE,
) -> Optional[str]:
    """Write the config into ``output_root`` unless a config is already there.

    Returns:
        Path of the written file, or None when an existing config was kept
    """
    for existing in (config_filename(True), config_filename(False)):
        if os.path.exists(os.path.join(output_root, existing)):
            logger.info(f"Keeping existing {existing} in {output_root}")
            return None
    path = os.path.join(output_root, config_filename(typescript))
    content = render_playwright_config(browsers, test_dir, typescript, test_id_attribute)
    os.makedirs(output_root, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.info(f"Wrote Playwright config {path}")
    return path
