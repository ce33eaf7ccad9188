"""
One-off helper that logs in to LinkedIn in a visible browser and saves the
session (cookies + local storage) so the API can skip the login flow.

    python save_state.py             # fill credentials from .env, wait for the feed
    python save_state.py --manual    # log in by hand, press ENTER when done
"""
from playwright.sync_api import sync_playwright, TimeoutError as PlaywrightTimeoutError
from dotenv import load_dotenv
import argparse
import os
import sys

import config

# Load .env file (LINKEDIN_EMAIL, LINKEDIN_PASSWORD)
load_dotenv()

LINKEDIN_LOGIN_URL = "https://www.linkedin.com/login"
LINKEDIN_FEED_URL = "https://www.linkedin.com/feed/"

PLACEHOLDER_EMAIL = "your.actual.email@example.com"
PLACEHOLDER_PASSWORD = "Your$Secret&Password123"


def _write_state(context, state_path):
    os.makedirs(os.path.dirname(os.path.abspath(state_path)), exist_ok=True)
    context.storage_state(path=state_path)


def save_linkedin_state(email, password, state_path=config.LINKEDIN_STATE_FILE, timeout_ms=60_000) -> bool:
    """
    Submit credentials in a headful browser and save the session once the feed loads.

    The browser stays open so CAPTCHA / 2FA prompts can be solved by hand
    before the timeout. Returns True if the state file was written.
    """
    if not email or not password or email == PLACEHOLDER_EMAIL or password == PLACEHOLDER_PASSWORD:
        print("FATAL: Set LINKEDIN_EMAIL and LINKEDIN_PASSWORD in your .env file before running.")
        return False

    print("--- Starting LinkedIn Session State Saver ---")

    with sync_playwright() as p:
        browser = None
        try:
            browser = p.chromium.launch(headless=False, slow_mo=100)
            context = browser.new_context()
            page = context.new_page()

            print(f"Navigating to: {LINKEDIN_LOGIN_URL}")
            page.goto(LINKEDIN_LOGIN_URL, wait_until="domcontentloaded")

            page.fill('input[name="session_key"]', email)
            page.fill('input[name="session_password"]', password)
            page.click('button[type="submit"]')

            print("Credentials submitted. Complete any CAPTCHA/2FA prompts in the browser window.")
            print("DO NOT CLOSE THE BROWSER. It will close automatically upon successful login.")

            try:
                page.wait_for_url(LINKEDIN_FEED_URL, timeout=timeout_ms)
                print("Successfully logged into LinkedIn Feed.")
            except PlaywrightTimeoutError:
                current_url = page.url
                if "challenge" in current_url or "checkpoint" in current_url:
                    print("\n--- FAILED: A LinkedIn Security Challenge was encountered. ---")
                    print("You must solve the challenge in the opened browser window before the timeout.")
                else:
                    print(f"\n--- FAILED: Login timed out after {timeout_ms // 1000} seconds. "
                          "Check credentials or 2FA/security settings. ---")
                return False

            _write_state(context, state_path)
            print(f"\nSUCCESS: Session state saved to: {state_path}")
            return True

        except Exception as e:
            print(f"An unexpected error occurred during state saving: {e}")
            return False
        finally:
            if browser is not None:
                browser.close()
            print("Browser closed.")


def setup_session(state_path=config.LINKEDIN_STATE_FILE):
    """
    Manual fallback: opens a browser for manual login.
    Use this if the automatic flow keeps hitting verification challenges.
    """
    with sync_playwright() as p:
        browser = p.chromium.launch(headless=False)
        try:
            context = browser.new_context()
            page = context.new_page()
            page.goto(LINKEDIN_LOGIN_URL)

            print("=" * 50)
            print("Log in to LinkedIn in the browser window.")
            print("Press ENTER here after you have logged in.")
            print("=" * 50)
            input()

            _write_state(context, state_path)
            print("Session saved to:", state_path)
        finally:
            browser.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Save a logged-in LinkedIn session for the roast API")
    parser.add_argument("--manual", action="store_true", help="Log in by hand and press ENTER when done")
    parser.add_argument("--output", type=str, default=config.LINKEDIN_STATE_FILE, help="Where to write the state file")
    parser.add_argument("--timeout", type=int, default=60, help="Seconds to wait for the feed after submitting")

    args = parser.parse_args(argv)

    if args.manual:
        setup_session(args.output)
        return 0

    ok = save_linkedin_state(
        os.getenv("LINKEDIN_EMAIL"),
        os.getenv("LINKEDIN_PASSWORD"),
        state_path=args.output,
        timeout_ms=args.timeout * 1000,
    )
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
