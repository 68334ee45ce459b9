"""
Redirect-chain auditing for affiliate links.

A link is clicked inside the page. Responses are collected on the browser
context from before the click, so the tracking hop is seen even when it
resolves before the popup is handed over. The first main-frame document
response of the popup (or of the page itself for same-page links) is taken
as the redirect, and the terminal URL is classified:

- still on the site's own origin -> FinalUrlInternal
- off-site but carrying none of the link's slug tokens -> RedirectBrandMismatch
- otherwise a pass

A 404 on the first hop of the chain is recorded independently. All waits for
one link share a single Deadline.
"""

import asyncio
import logging
import re
import unicodedata
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import unquote, urljoin, urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import AuditSettings, default_settings
from .constants import DEFAULT_SLUG_STOP_TOKENS, MIN_SLUG_TOKEN_LENGTH
from .models import CandidateLink, FailureReason, RedirectOutcome, SoftFailure
from .reporter import FailureReporter
from .sites import SiteConfig
from .timing import Deadline, DeadlineExceeded

logger = logging.getLogger(__name__)

CLICK_SCRIPT = """
(selector) => {
    const element = document.querySelector(selector);
    if (element) { element.click(); }
}
"""

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_url_for_match(url: str) -> str:
    """Lower-case and percent-decode a URL for token matching."""
    return unquote(url.lower())


def extract_slug_tokens(
    path_value: Optional[str],
    stop_tokens: Iterable[str] = DEFAULT_SLUG_STOP_TOKENS,
) -> List[str]:
    """
    Brand tokens from the last path segment of an affiliate link.

    "/go/napoleon-casino" -> ["napoleon"]
    """
    if not path_value:
        return []
    pathname = path_value.split("?")[0]
    segments = [segment for segment in pathname.split("/") if segment]
    if not segments:
        return []

    raw_slug = strip_diacritics(segments[-1].lower())
    stop = set(stop_tokens)

    tokens: List[str] = []
    for token in _TOKEN_SPLIT.split(raw_slug):
        if len(token) < MIN_SLUG_TOKEN_LENGTH or token in stop or token in tokens:
            continue
        tokens.append(token)
    return tokens


def resolve_redirect_timeout(
    slug_tokens: Sequence[str],
    fast_tokens: Iterable[str],
    settings: AuditSettings = default_settings,
) -> int:
    """Shorter budget for brands known to redirect quickly."""
    fast = set(fast_tokens)
    if any(token in fast for token in slug_tokens):
        return settings.fast_redirect_timeout_ms
    return settings.redirect_timeout_ms


def url_origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}".lower()


def is_ignorable_asset_url(url: str, patterns: Iterable[re.Pattern]) -> bool:
    """True for fonts, analytics and ad hosts that load before the real target."""
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return False
    return any(pattern.search(hostname) for pattern in patterns)


def classify_final_url(
    final_url: str,
    site_origin: str,
    slug_tokens: Sequence[str],
) -> Tuple[Optional[FailureReason], Optional[str]]:
    """
    Classify the terminal URL of a redirect.

    Returns:
        (failure reason or None on pass, matched slug token if any)
    """
    if url_origin(final_url) == site_origin.lower():
        return FailureReason.FINAL_URL_INTERNAL, None

    if not slug_tokens:
        return None, None

    normalized = normalize_url_for_match(final_url)
    for token in slug_tokens:
        if token in normalized:
            return None, token
    return FailureReason.REDIRECT_BRAND_MISMATCH, None


def first_redirect_hop(request):
    """Walk a request's redirect chain back to the request that started it."""
    hop = request
    while hop.redirected_from is not None:
        hop = hop.redirected_from
    return hop


def _is_timeout(error: BaseException) -> bool:
    return isinstance(error, (PlaywrightTimeoutError, DeadlineExceeded, TimeoutError)) or "Timeout" in str(error)


class ResponseCollector:
    """
    Buffers every response of a browser context from the moment it is entered.

    The tracking hop of a popup is answered before Playwright hands the popup
    over, so the listener has to be attached to the context before the click:

        with ResponseCollector(page.context) as responses:
            await page.evaluate(CLICK_SCRIPT, selector)
            response = await responses.next_matching(predicate, deadline)
    """

    def __init__(self, context):
        self._context = context
        self._responses = []
        self._arrived = asyncio.Event()
        self._cursor = 0

    def __enter__(self) -> "ResponseCollector":
        self._context.on("response", self._on_response)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._context.remove_listener("response", self._on_response)

    def _on_response(self, response) -> None:
        self._responses.append(response)
        self._arrived.set()

    async def next_matching(self, predicate: Callable[[object], bool], deadline: Deadline):
        """Oldest unseen response accepted by predicate; raises DeadlineExceeded."""
        while True:
            while self._cursor < len(self._responses):
                response = self._responses[self._cursor]
                self._cursor += 1
                if predicate(response):
                    return response

            remaining = deadline.check("affiliate response")
            self._arrived.clear()
            try:
                await asyncio.wait_for(self._arrived.wait(), remaining / 1000.0)
            except asyncio.TimeoutError:
                raise DeadlineExceeded("Timeout waiting for affiliate response") from None


class RedirectAuditor:
    """Follows affiliate links and records redirect failures.

    Links with target="_blank" are followed in the popup they open. Any other
    link navigates the audit page itself; the source page is loaded again
    afterwards so the remaining links can still be clicked.
    """

    def __init__(
        self,
        site: SiteConfig,
        reporter: FailureReporter,
        settings: Optional[AuditSettings] = None,
    ):
        self.site = site
        self.reporter = reporter
        self.settings = settings or default_settings

    async def audit(self, page, link: CandidateLink, source_path: str, cta_id: str) -> RedirectOutcome:
        """
        Click a link and audit where it ends up.

        Every failure is recorded through the reporter; nothing is raised.
        A popup, if one opened, is closed exactly once before returning; a
        same-page navigation is undone by reloading the source page.
        """
        slug_tokens = extract_slug_tokens(link.normalized_path or link.href, self.site.slug_stop_tokens)
        timeout_ms = resolve_redirect_timeout(slug_tokens, self.site.fast_redirect_tokens, self.settings)
        mode = "popup" if link.opens_in_popup else "same page"
        logger.debug(f"[{self.site.name}] {cta_id}: slug tokens {slug_tokens}, budget {timeout_ms}ms, {mode}")

        outcome = RedirectOutcome()
        popup = None
        target = None
        clicked = False

        try:
            deadline = Deadline.after_ms(timeout_ms)

            with ResponseCollector(page.context) as responses:
                if link.opens_in_popup:
                    async with page.expect_popup(timeout=self.settings.popup_timeout_ms) as popup_info:
                        clicked = True
                        await page.evaluate(CLICK_SCRIPT, link.selector)
                    popup = await popup_info.value
                    target = popup
                else:
                    target = page
                    async with page.expect_navigation(
                        wait_until="commit", timeout=self.settings.popup_timeout_ms
                    ) as navigation_info:
                        clicked = True
                        await page.evaluate(CLICK_SCRIPT, link.selector)
                    await navigation_info.value

                response = await responses.next_matching(
                    lambda r: self._is_affiliate_response(r, target), deadline
                )

            try:
                await target.wait_for_load_state(
                    "domcontentloaded",
                    timeout=deadline.bounded_ms(timeout_ms, floor_ms=self.settings.min_navigation_wait_ms),
                )
            except PlaywrightError as e:
                logger.debug(f"[{self.site.name}] {cta_id}: target did not settle: {e}")

            await self._check_first_hop(response, link, source_path, cta_id, outcome)

            current_url = self._current_url(target)
            final_url = current_url if current_url.startswith("http") else response.url
            outcome.final_url = final_url
            self._classify(final_url, slug_tokens, link, source_path, cta_id, outcome)

        except Exception as e:
            self._handle_error(e, target, link, source_path, cta_id, outcome)

        finally:
            await self._close_popup(popup)
            if clicked and not link.opens_in_popup:
                await self._restore_source_page(page, source_path)

        return outcome

    def _is_affiliate_response(self, response, target) -> bool:
        """A main-frame document response of target that is not an analytics/font asset."""
        if not response.url.startswith("http"):
            return False
        try:
            if response.frame != target.main_frame:
                return False
            if not response.request.is_navigation_request():
                return False
        except PlaywrightError:
            return False
        if is_ignorable_asset_url(response.url, self.site.asset_host_patterns):
            logger.debug(f"Ignoring asset response: {response.url}")
            return False
        return True

    async def _check_first_hop(self, response, link, source_path, cta_id, outcome) -> None:
        hop = first_redirect_hop(response.request)
        if url_origin(hop.url) != self.site.origin:
            return

        hop_response = await hop.response()
        if hop_response is not None and hop_response.status == 404:
            self._fail(
                outcome, link, source_path, cta_id,
                FailureReason.INTERNAL_REDIRECT_404,
                f"Internal tracking link returned 404. URL: {hop.url}",
                hop.url,
            )

    def _classify(self, final_url, slug_tokens, link, source_path, cta_id, outcome) -> None:
        reason, matched = classify_final_url(final_url, self.site.origin, slug_tokens)

        if reason is FailureReason.FINAL_URL_INTERNAL:
            self._fail(
                outcome, link, source_path, cta_id, reason,
                f"Redirection failed to leave domain. Final URL: {final_url}",
                final_url,
            )
        elif reason is FailureReason.REDIRECT_BRAND_MISMATCH:
            self._fail(
                outcome, link, source_path, cta_id, reason,
                f"Slug tokens ({', '.join(slug_tokens)}) missing from redirect URL: {final_url}",
                final_url,
            )
        else:
            outcome.matched_token = matched
            destination = url_origin(final_url)
            if matched:
                logger.info(
                    f"[{self.site.name}] ✅ PASS {cta_id} from {source_path} -> "
                    f'Redirected to {destination} (matched token: "{matched}")'
                )
            else:
                logger.info(f"[{self.site.name}] ✅ PASS {cta_id} from {source_path} -> Redirected to {destination}")

        outcome.passed = not outcome.failures

    def _handle_error(self, error, target, link, source_path, cta_id, outcome) -> None:
        current_url = self._current_url(target)
        if current_url.startswith("http") and url_origin(current_url) != self.site.origin:
            outcome.passed = not outcome.failures
            outcome.late_pass = True
            outcome.final_url = current_url
            logger.info(
                f"[{self.site.name}] ✅ PASS {cta_id} from {source_path} -> "
                f"Bypassed WAF/Error to {url_origin(current_url)}"
            )
            return

        if _is_timeout(error):
            reason = FailureReason.REDIRECT_TIMEOUT
            details = f"Error: Redirect Timeout. Message: {error}"
        else:
            reason = FailureReason.CLICK_ERROR
            details = f"Error: Click/Monitor Error: {error}. Message: {error}"

        outcome.final_url = current_url or None
        self._fail(outcome, link, source_path, cta_id, reason, details, self._absolute_href(link))
        outcome.passed = False

    def _fail(self, outcome, link, source_path, cta_id, reason, details, failing_url) -> None:
        failure = SoftFailure(
            project=self.site.name,
            source_path=source_path,
            cta_text=link.text,
            reason=reason,
            details=details,
            failing_url=failing_url,
        )
        self.reporter.record(failure)
        outcome.failures.append(failure)
        logger.error(f"[{self.site.name}] ❌ FAIL {cta_id} from {source_path}: {reason.label} - {details}")

    def _absolute_href(self, link: CandidateLink) -> str:
        return urljoin(self.site.base_url + "/", link.href)

    @staticmethod
    def _current_url(target) -> str:
        if target is None:
            return ""
        try:
            return target.url or ""
        except PlaywrightError:
            return ""

    async def _close_popup(self, popup) -> None:
        if popup is None:
            return
        try:
            if not popup.is_closed():
                await popup.close()
        except PlaywrightError as e:
            logger.debug(f"Popup close failed: {e}")

    async def _restore_source_page(self, page, source_path: str) -> None:
        source_url = self.site.url_for(source_path)
        try:
            await page.goto(
                source_url,
                wait_until="domcontentloaded",
                timeout=self.settings.page_load_timeout_ms,
            )
        except PlaywrightError as e:
            logger.warning(f"[{self.site.name}] Could not return to {source_path} after same-page redirect: {e}")
