#!/usr/bin/env python3
import argparse
import asyncio
import os
import sys
import traceback

import yaml
from dotenv import load_dotenv
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from facetqa.browser.config import EngineConfig
from facetqa.data.test_case_loader import load_test_cases
from facetqa.executor import ParallelTestExecutor
from facetqa.utils.get_log import GetLog


def find_config_file(args_config=None):
    """Intelligently find configuration file."""
    # 1. Command line arguments have highest priority
    if args_config:
        if os.path.isfile(args_config):
            print(f"✅ Using specified config file: {args_config}")
            return args_config
        else:
            raise FileNotFoundError(f"❌ Specified config file not found: {args_config}")

    # 2. Search default locations by priority
    current_dir = os.getcwd()
    script_dir = os.path.dirname(os.path.abspath(__file__))

    default_paths = [
        os.path.join(current_dir, "config", "config.yaml"),
        os.path.join(script_dir, "config", "config.yaml"),
        os.path.join(current_dir, "config.yaml"),
        os.path.join(script_dir, "config.yaml"),
    ]

    for path in default_paths:
        if os.path.isfile(path):
            print(f"✅ Auto-discovered config file: {path}")
            return path

    print("❌ Config file not found, please check these locations:")
    for path in default_paths:
        print(f"   - {path}")
    raise FileNotFoundError("Config file does not exist")


def load_yaml(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except Exception as e:
        print(f"[ERROR] Failed to read YAML: {e}", file=sys.stderr)
        sys.exit(1)


async def check_playwright_browsers_async(config: EngineConfig):
    family = config.browser_config()["browser"]
    try:
        async with async_playwright() as p:
            if family == "firefox":
                browser = await p.firefox.launch(headless=True)
            elif family == "edge":
                browser = await p.chromium.launch(channel="msedge", headless=True)
            else:
                browser = await p.chromium.launch(headless=True)
            await browser.close()
        print(f"✅ Playwright browser available: {family}")
        return True
    except PlaywrightError as e:
        print(f"⚠️ Playwright browser unavailable ({family}): {e}")
        return False


async def run_tests(config: EngineConfig):
    print(f"🌐 Target: {config.url}")
    print(f"🧭 Browser: {config.browser}")
    print(f"⚙️ Concurrency: {config.max_concurrent_tests}, retries: {config.retries}, test reruns: {config.test_retries}")

    if not config.data_provider:
        print("[ERROR] No test data configured (data_provider / FACETQA_DATA_PROVIDER)", file=sys.stderr)
        sys.exit(1)
    try:
        test_cases = load_test_cases(config.data_provider)
    except (FileNotFoundError, ValueError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
    print(f"📋 Loaded {len(test_cases)} test cases from {config.data_provider}")

    print("🔍 Checking Playwright browsers...")
    if not await check_playwright_browsers_async(config):
        print("Please manually run: `playwright install` to install browser binaries, then retry.", file=sys.stderr)
        sys.exit(1)

    try:
        executor = ParallelTestExecutor(config)
        test_session = await executor.execute_parallel_tests(test_cases)
    except Exception:
        print("Test execution failed, stack trace:", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    counts = test_session.aggregated_results.get("status_counts", {})
    print(f"🔢 Total test cases: {test_session.aggregated_results.get('total_tests', 0)}")
    print(f"✅ Passed: {counts.get('passed', 0)}")
    print(f"❌ Failed: {counts.get('failed', 0)}")
    if test_session.report_path:
        print("JSON report path: ", test_session.report_path)
    else:
        print("JSON report generation failed")

    return counts.get("passed", 0) == len(test_session.test_results)


def parse_args():
    parser = argparse.ArgumentParser(description="Facet filter verification entry point")
    parser.add_argument("--config", "-c", help="YAML configuration file path (optional, default auto-search config/config.yaml)")
    parser.add_argument("--data", "-d", help="Test data file (.xlsx, .csv or .yaml), overrides data_provider")
    return parser.parse_args()


def main():
    args = parse_args()
    load_dotenv()

    try:
        config_path = find_config_file(args.config)
        cfg = load_yaml(config_path)
        if args.data:
            cfg["data_provider"] = args.data
        config = EngineConfig.from_dict(cfg)
    except (FileNotFoundError, ValueError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)

    GetLog.get_log()
    all_passed = asyncio.run(run_tests(config))
    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
