import logging
import os
import re
import time
from typing import Optional

from playwright.async_api import Page

from facetqa.utils.log_icon import icon


class ScreenshotTaker:
    """Stores failure screenshots under ``<report_dir>/build_<BUILD_NUMBER|local>/screenshots``."""

    def __init__(self, report_dir: str = "./reports", build_number: Optional[str] = None):
        build = build_number or os.getenv("BUILD_NUMBER") or "local"
        self.folder = os.path.join(report_dir, f"build_{build}", "screenshots")

    def path_for(self, name: str) -> str:
        safe_name = re.sub(r"[^\w\-]+", "_", name).strip("_") or "screenshot"
        return os.path.join(self.folder, f"{safe_name}_{int(time.time() * 1000)}.png")

    async def take_screenshot(self, page: Page, name: str, full_page: bool = False, timeout: float = 30000) -> Optional[str]:
        """Save a screenshot of ``page``.

        Returns:
            str: Path of the written file, or None when the page could not be captured.
        """
        file_path = self.path_for(name)
        try:
            os.makedirs(self.folder, exist_ok=True)
            await page.screenshot(path=file_path, full_page=full_page, timeout=timeout)
        except Exception as e:
            logging.warning(f"Page screenshot attempt failed: {e}")
            return None

        logging.info(f"{icon['camera']} Screenshot saved: {file_path}")
        return file_path
