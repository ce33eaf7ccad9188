from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Route,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)
import asyncio
import json
import logging
import os
import re

import config

logger = logging.getLogger(__name__)

LINKEDIN_LOGIN_URL = "https://www.linkedin.com/login"
LINKEDIN_FEED_URL = "https://www.linkedin.com/feed/"
FEED_NAV_SELECTOR = 'nav[aria-label="Primary"] a[href="/feed/"]'

# Extra flags for the Chromium build bundled in serverless images
SERVERLESS_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--single-process",
    "--no-zygote",
]

BLOCKED_RESOURCE_TYPES = ("image", "stylesheet", "font")

UI_NOISE_PATTERN = re.compile(r"Follow|Connect|Message|Premium|Promoted|Skip to main content")
WHITESPACE_PATTERN = re.compile(r"\s\s+")

# Landing on one of these instead of the profile means the session is gone
EXPIRED_SESSION_MARKERS = ("/login", "/authwall", "/signup", "/checkpoint", "/challenge", "/uas/login")


class BrowserSession:
    """A launched browser and its authenticated context, shared by concurrent scrapes."""

    def __init__(self, playwright: Playwright, browser: Browser, context: BrowserContext,
                 from_storage_state: bool):
        self.playwright = playwright
        self.browser = browser
        self.context = context
        self.from_storage_state = from_storage_state
        self.in_use = 0
        self.retired = False

    async def close(self):
        await _close_quietly(self.playwright, self.browser, self.context)


# One authenticated session per runtime instance, reused across warm invocations
_cached_session: BrowserSession | None = None
_saved_storage_state: dict | None = None
# Set once LinkedIn rejects the saved session; cleared by a new deploy/restart
_storage_state_expired = False

# Guards _cached_session and every BrowserSession.in_use / retired change
_CONTEXT_LOCK = asyncio.Lock()
# Cap concurrent pages to keep memory bounded inside a single function instance
_SCRAPE_SEMAPHORE = asyncio.Semaphore(3)


class ScrapeError(RuntimeError):
    """Base error for anything that prevents us from reading a profile."""


class MissingCredentialsError(ScrapeError):
    def __init__(self):
        super().__init__("Missing LinkedIn credentials.")


class CheckpointError(ScrapeError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(
            f"Login failed: Checkpoint detected at {url}. "
            f"Check credentials or '{os.path.basename(config.LINKEDIN_STATE_FILE)}'."
        )


class SessionExpiredError(ScrapeError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(
            f"Session expired even after a fresh login (landed on {url}). "
            "Run: python save_state.py  to save a new session."
        )


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def normalize_profile_url(profile: str) -> str:
    profile_url = profile.strip()
    if not profile_url.startswith("http"):
        profile_url = "https://" + profile_url
    return profile_url


def clean_profile_text(text: str) -> str:
    """Strip LinkedIn button labels and collapse whitespace in scraped body text."""
    text = UI_NOISE_PATTERN.sub("", text or "")
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def is_session_expired(url: str) -> bool:
    url = (url or "").lower()
    return any(marker in url for marker in EXPIRED_SESSION_MARKERS)


def load_storage_state(path: str | None = None) -> dict | None:
    """
    Read the saved session file once and keep the parsed object in memory.
    Returns None when the file is missing, unreadable or already rejected by
    LinkedIn, in which case the caller falls back to logging in with credentials.
    """
    global _saved_storage_state
    if _storage_state_expired:
        logger.info("Saved session was rejected earlier; skipping it until the next restart")
        return None
    if _saved_storage_state:
        return _saved_storage_state

    path = path or config.LINKEDIN_STATE_FILE
    try:
        with open(path, "r", encoding="utf-8") as f:
            state = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Failed to load or parse %s, falling back to manual login: %s", path, e)
        return None

    if not isinstance(state, dict):
        logger.error("Storage state in %s is not a JSON object, falling back to manual login", path)
        return None

    _saved_storage_state = state
    logger.info("Loaded storage state from %s", path)
    return _saved_storage_state


def forget_storage_state():
    """Stop using the saved session file after LinkedIn bounced it to the authwall."""
    global _saved_storage_state, _storage_state_expired
    _saved_storage_state = None
    _storage_state_expired = True


async def _block_heavy_resources(route: Route):
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


async def _launch_browser() -> tuple[Playwright, Browser]:
    launch_options = {"headless": True, "timeout": 25_000}
    if config.is_production():
        launch_options["args"] = SERVERLESS_ARGS
        if config.CHROMIUM_EXECUTABLE_PATH:
            launch_options["executable_path"] = config.CHROMIUM_EXECUTABLE_PATH

    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(**launch_options)
    except PlaywrightError:
        await playwright.stop()
        raise
    return playwright, browser


async def _close_quietly(playwright, browser, context):
    """Best-effort teardown; a dead browser raises on close and that is fine."""
    for closer in (
        context.close if context else None,
        browser.close if browser else None,
        playwright.stop if playwright else None,
    ):
        if closer is None:
            continue
        try:
            await closer()
        except PlaywrightError as e:
            logger.debug("Ignoring error during browser teardown: %s", e)


async def _context_is_alive(context: BrowserContext) -> bool:
    try:
        page = await context.new_page()
        await page.goto("about:blank", timeout=1000)
        await page.close()
    except PlaywrightError as e:
        logger.warning("Cached context stale, initiating new session: %s", e)
        return False
    return True


async def _login_with_credentials(page: Page):
    email = os.getenv("LINKEDIN_EMAIL")
    password = os.getenv("LINKEDIN_PASSWORD")
    if not email or not password:
        raise MissingCredentialsError()

    if "login" not in page.url:
        await page.goto(LINKEDIN_LOGIN_URL, wait_until="domcontentloaded", timeout=15_000)

    await page.fill('input[name="session_key"]', email)
    await page.fill('input[name="session_password"]', password)
    await page.click('button[type="submit"]')

    try:
        await page.wait_for_url(LINKEDIN_FEED_URL, wait_until="domcontentloaded", timeout=20_000)
        logger.info("Login successful via URL check.")
        return
    except PlaywrightTimeoutError:
        pass

    try:
        await page.wait_for_selector(FEED_NAV_SELECTOR, timeout=10_000)
        logger.info("Login successful via element check.")
    except PlaywrightTimeoutError:
        logger.error("Login failed: Checkpoint detected. URL: %s", page.url)
        raise CheckpointError(page.url)


async def _open_session(use_storage_state: bool) -> BrowserSession:
    storage_state = load_storage_state() if use_storage_state else None

    playwright, browser = await _launch_browser()
    context = None
    try:
        context = await browser.new_context(
            ignore_https_errors=True,
            storage_state=storage_state,
        )
        await context.route("**/*", _block_heavy_resources)
        page = await context.new_page()

        if storage_state:
            logger.info("Session state loaded. Trusting state and bypassing login test.")
        else:
            logger.info("Storage state was not loaded. Performing manual login...")
            await _login_with_credentials(page)

        await page.close()
    except (ScrapeError, PlaywrightError):
        await _close_quietly(playwright, browser, context)
        raise

    return BrowserSession(playwright, browser, context, from_storage_state=bool(storage_state))


async def _retire(session: BrowserSession):
    """Drop a session from the cache; the browser closes once its last user lets go.

    Caller must hold _CONTEXT_LOCK.
    """
    global _cached_session
    if _cached_session is session:
        _cached_session = None
    if session.retired:
        return
    session.retired = True
    if session.in_use == 0:
        await session.close()


async def _acquire_session(use_storage_state: bool = True) -> BrowserSession:
    """Check out the cached session (or a new one) and count the caller as a user."""
    global _cached_session

    async with _CONTEXT_LOCK:
        session = _cached_session
        if session is not None:
            if session.from_storage_state and not use_storage_state:
                logger.info("Replacing saved-state session with a fresh credential login")
                await _retire(session)
            elif await _context_is_alive(session.context):
                logger.info("Reusing cached context. Cache hit!")
                session.in_use += 1
                return session
            else:
                await _retire(session)

        session = await _open_session(use_storage_state)
        session.in_use += 1
        _cached_session = session
        return session


async def _release_session(session: BrowserSession):
    async with _CONTEXT_LOCK:
        session.in_use -= 1
        if session.retired and session.in_use == 0:
            await session.close()


async def _discard_session(session: BrowserSession):
    async with _CONTEXT_LOCK:
        await _retire(session)


# ──────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────

async def get_authenticated_context(use_storage_state: bool = True) -> BrowserContext:
    """
    Return a logged-in browser context, reusing the cached one when it still responds.

    - Cached context: checked with a throwaway about:blank navigation
    - Saved session file: trusted without a test navigation
    - No usable session: logs in with LINKEDIN_EMAIL / LINKEDIN_PASSWORD and
      raises CheckpointError if LinkedIn interposes a verification page
    - use_storage_state=False never hands back a context built from the saved file
    """
    session = await _acquire_session(use_storage_state)
    await _release_session(session)
    return session.context


async def reset_authenticated_context():
    """Forget the cached browser context; it is closed as soon as no scrape is using it."""
    async with _CONTEXT_LOCK:
        if _cached_session is not None:
            await _retire(_cached_session)


async def scrape_profile_text(profile: str, _is_retry: bool = False) -> str:
    """
    Open a LinkedIn profile in the authenticated context and return its visible text.

    If LinkedIn bounces us to a login or authwall page the session is dropped
    and the scrape is retried once with a fresh credential login. A failing
    scrape only retires the session it used; other scrapes still holding that
    session finish before the browser is closed.
    """
    profile_url = normalize_profile_url(profile)

    async with _SCRAPE_SEMAPHORE:
        try:
            session = await _acquire_session(use_storage_state=not _is_retry)
        except PlaywrightError as e:
            raise ScrapeError(str(e)) from e

        try:
            page = await session.context.new_page()
            try:
                logger.info("Scraping profile: %s", profile_url)
                await page.goto(profile_url, wait_until="domcontentloaded", timeout=45_000)
                await page.wait_for_timeout(500)

                landed_url = page.url
                expired = is_session_expired(landed_url)
                raw_text = "" if expired else await page.evaluate("() => document.body.innerText")
            finally:
                await page.close()

            if expired:
                if session.from_storage_state:
                    forget_storage_state()
                await _discard_session(session)
        except PlaywrightError as e:
            await _discard_session(session)
            raise ScrapeError(str(e)) from e
        finally:
            await _release_session(session)

    if expired:
        if _is_retry:
            raise SessionExpiredError(landed_url)
        logger.warning("Session expired (landed on %s). Retrying with a fresh login...", landed_url)
        return await scrape_profile_text(profile, _is_retry=True)

    return clean_profile_text(raw_text)
