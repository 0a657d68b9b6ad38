"""
Renders web pages to PDF with the shared Chromium instance.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from .browser import BrowserManager
from .compression import compress_pdf_buffer
from .errors import RenderError
from .interception import InterceptRule, resolve_interception
from .logger import clock, track_trace
from .models import CompressionSettings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 70000
DEFAULT_WAIT_FOR_SELECTOR = "body"

_SAME_SITE_VALUES = {"strict": "Strict", "lax": "Lax", "none": "None"}


def normalize_url(url: str) -> str:
    """Prefix `http://` when the URL does not start with a scheme."""
    if not url.startswith("http"):
        return f"http://{url}"
    return url


def to_playwright_cookies(cookies: Sequence[Dict[str, Any]], page_url: str) -> List[Dict[str, Any]]:
    """
    Convert Puppeteer-style cookie descriptors to Playwright's format.

    Cookies with neither `url` nor `domain` are scoped to the page URL,
    since Playwright requires one of the two.
    """
    converted = []
    for cookie in cookies:
        item = {"name": cookie["name"], "value": str(cookie.get("value", ""))}
        if cookie.get("url"):
            item["url"] = cookie["url"]
        elif cookie.get("domain"):
            item["domain"] = cookie["domain"]
            item["path"] = cookie.get("path") or "/"
        else:
            item["url"] = page_url

        if cookie.get("expires") is not None:
            item["expires"] = float(cookie["expires"])
        for flag in ("httpOnly", "secure"):
            if flag in cookie:
                item[flag] = bool(cookie[flag])
        same_site = _SAME_SITE_VALUES.get(str(cookie.get("sameSite", "")).lower())
        if same_site:
            item["sameSite"] = same_site
        converted.append(item)
    return converted


async def _install_interception(page, rules: Sequence[InterceptRule]) -> None:
    """Route every request of the page through the interception rules."""

    async def handle_route(route):
        mock = resolve_interception(route.request.url, rules)
        if mock is None:
            await route.continue_()
            return
        await route.fulfill(
            status=mock.status,
            content_type=mock.content_type,
            body=mock.body,
        )

    await page.route("**/*", handle_route)


async def generate_pdf(
    browser: BrowserManager,
    url: str,
    request_id: str,
    timeout: Optional[float] = DEFAULT_TIMEOUT_MS,
    requests: Optional[Sequence[InterceptRule]] = None,
    cookies: Optional[Sequence[Dict[str, Any]]] = None,
    wait_for_selector: Optional[str] = DEFAULT_WAIT_FOR_SELECTOR,
    pdf_options: Optional[CompressionSettings] = None,
) -> bytes:
    """
    Render a web page to an A4 PDF, optionally compressing the result.

    Args:
        browser: Started browser manager
        url: Page to render; `http://` is prefixed when no scheme is given
        request_id: Correlation id used in trace lines
        timeout: Budget in ms shared by navigation, selector wait and rendering
        requests: Interception rules mocking API calls made by the page
        cookies: Cookie descriptors installed before navigation
        wait_for_selector: CSS selector that must appear after navigation
        pdf_options: Compression settings; compression runs only when enabled

    Returns:
        The PDF bytes

    Raises:
        RenderError: Any failure while rendering or compressing. The page
            is closed before the error propagates.
    """
    start = clock()
    timeout = timeout or DEFAULT_TIMEOUT_MS
    wait_for_selector = wait_for_selector or DEFAULT_WAIT_FOR_SELECTOR
    url = normalize_url(url)

    async with browser.render_slot():
        try:
            page = await browser.new_page()
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Failed to open page: {e}") from e
        track_trace("launching browser complete", start, request_id)

        try:
            page.set_default_timeout(timeout)

            if cookies:
                await page.context.add_cookies(to_playwright_cookies(cookies, url))
                track_trace("set new cookies", start, request_id)

            if requests:
                await _install_interception(page, requests)

            track_trace(f"goto page {url}", start, request_id)
            await page.goto(url, timeout=timeout, wait_until="networkidle")

            await page.wait_for_selector(wait_for_selector, timeout=timeout)
            logger.debug(f"selector {wait_for_selector} found")

            track_trace("generating pdf", start, request_id)
            # page.pdf takes no timeout of its own
            try:
                pdf_buffer = await asyncio.wait_for(
                    page.pdf(format="A4", landscape=False, print_background=True),
                    timeout / 1000,
                )
            except asyncio.TimeoutError as e:
                raise RenderError(f"Rendering {url} timed out after {timeout}ms") from e
            track_trace("generating pdf done", start, request_id)

            if pdf_options is not None and pdf_options.enabled:
                track_trace(f"pdf compression dpi={pdf_options.dpi}", start, request_id)
                pdf_buffer = await compress_pdf_buffer(
                    pdf_buffer, pdf_options.dpi, pdf_options.quality
                )
                track_trace("pdf compression done", start, request_id)

            return pdf_buffer
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Failed to render {url}: {e}") from e
        finally:
            try:
                await browser.close_page(page)
            except Exception as e:
                logger.warning(f"[@{request_id}] Failed to close page: {e}")
