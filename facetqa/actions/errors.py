from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

# Playwright reports a replaced node or a navigation under our feet with one of these.
STALE_MARKERS = (
    "not attached to the dom",
    "element is detached",
    "execution context was destroyed",
    "target closed",
    "frame was detached",
)
NOT_INTERACTABLE_MARKERS = (
    "not visible",
    "not enabled",
    "not stable",
    "intercepts pointer events",
    "outside of the viewport",
)


class FacetQAError(Exception):
    """Base class for all engine errors."""


class TransientInteractionError(FacetQAError):
    """A UI interaction failed in a way a page reload is likely to fix."""


class ElementNotFoundError(TransientInteractionError):
    pass


class ElementNotInteractableError(TransientInteractionError):
    pass


class StaleElementError(TransientInteractionError):
    pass


class WaitTimeout(TransientInteractionError):
    pass


class InteractionFailure(FacetQAError):
    """A transient failure that outlived its retry budget."""

    def __init__(self, step: str, cause: BaseException | None = None):
        self.step = step
        self.cause = cause
        message = step if cause is None else f"{step}: {cause}"
        super().__init__(message)


class FetchFailure(FacetQAError):
    """The detail document for a product could not be retrieved or parsed."""

    def __init__(self, url: str | None, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"failed to fetch detail document {url}: {reason}")


def translate_playwright_error(exc: BaseException) -> BaseException:
    """Map a raw Playwright error onto the engine taxonomy.

    Errors that do not match a known transient pattern are returned unchanged.
    """
    if isinstance(exc, FacetQAError):
        return exc
    if isinstance(exc, PlaywrightTimeoutError):
        return WaitTimeout(str(exc))
    if isinstance(exc, PlaywrightError):
        message = str(exc).lower()
        if any(marker in message for marker in STALE_MARKERS):
            return StaleElementError(str(exc))
        if any(marker in message for marker in NOT_INTERACTABLE_MARKERS):
            return ElementNotInteractableError(str(exc))
    return exc


def is_transient(exc: BaseException) -> bool:
    return isinstance(translate_playwright_error(exc), TransientInteractionError)


def is_stale(exc: BaseException) -> bool:
    return isinstance(translate_playwright_error(exc), StaleElementError)


def is_recoverable(exc: BaseException) -> bool:
    """Transient failures plus fatal ones from a nested step, both answered by a page reload."""
    return isinstance(exc, InteractionFailure) or is_transient(exc)
