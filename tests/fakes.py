"""In-memory stand-ins for the parts of the Playwright async API the auditors use.

Clicking a scripted link delivers all of its responses to the context
listeners immediately, before the popup (or navigation) is handed back, the
same order a real browser produces.
"""

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class FakeFrame:
    def __init__(self, name="main"):
        self.name = name

    def __repr__(self):
        return f"FakeFrame({self.name})"


class FakeRequest:
    def __init__(self, url, redirected_from=None, response=None, navigation=True):
        self.url = url
        self.redirected_from = redirected_from
        self._response = response
        self._navigation = navigation

    async def response(self):
        return self._response

    def is_navigation_request(self):
        return self._navigation


class FakeResponse:
    def __init__(self, url, status=200, request=None, frame=None, navigation=True):
        self.url = url
        self.status = status
        self.request = request or FakeRequest(url, response=self, navigation=navigation)
        self.frame = frame


def redirect_chain(*hops):
    """Build linked responses for (url, status) hops; returns the last response."""
    previous_request = None
    response = None
    for url, status in hops:
        request = FakeRequest(url, redirected_from=previous_request)
        response = FakeResponse(url, status, request)
        request._response = response
        previous_request = request
    return response


def subresource(url, status=200):
    """A non-document response, such as a stylesheet loaded by the landing page."""
    return FakeResponse(url, status, navigation=False)


class FakePopup:
    """
    Scripted redirect target.

    responses are delivered to the context when the link is clicked;
    final_url becomes the current URL once the load state is awaited.
    Used both for popups and for same-page navigations.
    """

    def __init__(self, url="about:blank", responses=(), final_url=None, load_error=None):
        self.url = url
        self.responses = list(responses)
        self.final_url = final_url
        self.load_error = load_error
        self.main_frame = FakeFrame("popup")
        self.close_count = 0
        self._closed = False

    async def wait_for_load_state(self, state="load", timeout=None):
        if self.load_error:
            raise self.load_error
        if self.final_url:
            self.url = self.final_url

    def is_closed(self):
        return self._closed

    async def close(self):
        self.close_count += 1
        self._closed = True


class _EventExpectation:
    def __init__(self, what, timeout, happened, result):
        self._what = what
        self._timeout = timeout
        self._happened = happened
        self._result = result

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            return False
        if not self._happened():
            raise PlaywrightTimeoutError(f"Timeout {self._timeout}ms exceeded while waiting for event \"{self._what}\"")
        return False

    @property
    async def value(self):
        return self._result()


class FakeLocator:
    def __init__(self, page, selector):
        self._page = page
        self.selector = selector
        self.clicked = 0

    @property
    def first(self):
        return self

    async def is_visible(self):
        return self.selector in self._page.visible_selectors

    async def is_enabled(self, timeout=None):
        if self.selector not in self._page.visible_selectors:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")
        return True

    async def wait_for(self, state="visible", timeout=None):
        if self.selector not in self._page.visible_selectors:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    async def click(self, timeout=None, force=False):
        self.clicked += 1
        self._page.clicked_overlays.append(self.selector)

    async def evaluate_all(self, script, descriptor=None):
        self._page.descriptors.append(descriptor)
        return list(self._page.anchors)


class FakeContext:
    def __init__(self, pages=()):
        self._pages = list(pages)
        self._listeners = {}
        self.opened = []
        self.closed = False

    def on(self, event, handler):
        self._listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler):
        self._listeners[event].remove(handler)

    def listener_count(self, event):
        return len(self._listeners.get(event, []))

    def emit(self, event, payload):
        for handler in list(self._listeners.get(event, [])):
            handler(payload)

    async def new_page(self):
        page = self._pages.pop(0)
        page.context = self
        self.opened.append(page)
        return page

    async def close(self):
        self.closed = True


class FakePage:
    """
    A page whose anchors, redirect targets and navigation result are scripted up front.

    popups maps a CSS selector (as produced by CandidateLink.selector) to the
    FakePopup that clicking it opens. navigations maps a selector to a
    FakePopup script whose responses land on this page instead.
    """

    def __init__(self, anchors=(), popups=None, goto_error=None, status=200, visible_selectors=(),
                 navigations=None):
        self.anchors = list(anchors)
        self.popups = dict(popups or {})
        self.navigations = dict(navigations or {})
        self.goto_error = goto_error
        self.status = status
        self.visible_selectors = set(visible_selectors)
        self.context = FakeContext()
        self.main_frame = FakeFrame("page")
        self.url = "about:blank"
        self.opened_popup = None
        self.navigation_response = None
        self.clicked = []
        self.clicked_overlays = []
        self.descriptors = []
        self.headers = {}
        self.visited = []
        self.waits = []
        self.closed = False

    async def set_extra_http_headers(self, headers):
        self.headers.update(headers)

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append((url, wait_until, timeout))
        if self.goto_error:
            raise self.goto_error
        self.url = url
        return FakeResponse(url, self.status)

    async def wait_for_load_state(self, state="load", timeout=None):
        return None

    def locator(self, selector):
        return FakeLocator(self, selector)

    async def wait_for_timeout(self, timeout):
        self.waits.append(timeout)

    def expect_popup(self, timeout=None):
        self.opened_popup = None
        return _EventExpectation(
            "popup", timeout,
            lambda: self.opened_popup is not None,
            lambda: self.opened_popup,
        )

    def expect_navigation(self, url=None, wait_until=None, timeout=None):
        self.navigation_response = None
        return _EventExpectation(
            "navigation", timeout,
            lambda: self.navigation_response is not None,
            lambda: self.navigation_response,
        )

    async def evaluate(self, script, selector=None):
        self.clicked.append(selector)
        if selector in self.popups:
            popup = self.popups[selector]
            self._deliver(popup.responses, popup.main_frame)
            self.opened_popup = popup
        elif selector in self.navigations:
            script = self.navigations[selector]
            self._deliver(script.responses, self.main_frame)
            if script.responses:
                self.navigation_response = script.responses[-1]
                self.url = script.final_url or script.responses[-1].url

    def _deliver(self, responses, frame):
        for response in responses:
            if response.frame is None:
                response.frame = frame
            self.context.emit("response", response)

    async def close(self):
        self.closed = True


def anchor(href, text="Brand", target="_blank", marker=True, tracking=True, tracking_value="brand"):
    """Record shaped like the output of the in-page extraction script."""
    return {
        "href": href,
        "target": target,
        "text": text,
        "hasMarkerClass": marker,
        "hasTrackingAttribute": tracking,
        "trackingValue": tracking_value if tracking else None,
    }


__all__ = [
    "FakeContext",
    "FakeFrame",
    "FakeLocator",
    "FakePage",
    "FakePopup",
    "FakeRequest",
    "FakeResponse",
    "PlaywrightError",
    "PlaywrightTimeoutError",
    "anchor",
    "redirect_chain",
    "subresource",
]
