"""
Wait Helpers - DOM and network stability waits for asynchronous UIs

Every wait either settles or raises StabilityTimeoutError; a timeout is
never reported as stable.
"""
import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from pydantic import BaseModel, Field

from ..config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Listener registration: takes a callback, returns the function that removes it.
Subscribe = Callable[[Callable[..., None]], Callable[[], None]]


class StabilityTimeoutError(TimeoutError):
    """A wait ran out of time before its condition settled."""


class RetryExhaustedError(RuntimeError):
    """with_retry ran out of attempts."""


class WaitOptions(BaseModel):
    """Timing for the wait helpers, all in milliseconds."""

    timeout: int = Field(default_factory=lambda: settings.WAIT_TIMEOUT, gt=0)
    stability_threshold: int = Field(default_factory=lambda: settings.STABILITY_THRESHOLD, ge=0)
    poll_interval: int = Field(default_factory=lambda: settings.POLL_INTERVAL, gt=0)


# Runs in the page. Resolves after `threshold` ms without a mutation of the
# observed subtree; rejects after `maxTimeout` ms. Both paths disconnect the
# observer and clear the other timer.
STABILITY_SCRIPT = """
(element, { threshold, maxTimeout }) => new Promise((resolve, reject) => {
    let stabilityTimer;
    let timeoutTimer;
    const finish = (callback) => {
        observer.disconnect();
        clearTimeout(stabilityTimer);
        clearTimeout(timeoutTimer);
        callback();
    };
    const armStability = () => {
        clearTimeout(stabilityTimer);
        stabilityTimer = setTimeout(() => finish(resolve), threshold);
    };
    const observer = new MutationObserver(armStability);
    observer.observe(element, {
        childList: true,
        subtree: true,
        attributes: true,
        characterData: true,
    });
    armStability();
    timeoutTimer = setTimeout(
        () => finish(() => reject(new Error(`Table did not stabilize within ${maxTimeout}ms`))),
        maxTimeout
    );
})
"""


def _resolve(options: Optional[WaitOptions], **overrides) -> WaitOptions:
    options = options or WaitOptions()
    changes = {k: v for k, v in overrides.items() if v is not None}
    return options.model_copy(update=changes) if changes else options


async def wait_for_quiet(
    subscribe: Subscribe,
    timeout: Optional[int] = None,
    stability_threshold: Optional[int] = None,
    what: str = "Target"
) -> None:
    """
    Wait until a signal has been silent for `stability_threshold` ms.

    The quiet-period clock starts once the listener is registered, so a
    source that never fires settles after exactly one threshold. Every
    signal restarts it. The listener is removed on every exit path.

    Args:
        subscribe: Registers a callback for the signal and returns its remover
        timeout: Overall limit in ms
        stability_threshold: Required quiet period in ms
        what: Name used in the timeout message

    Raises:
        StabilityTimeoutError: No quiet period within the timeout
    """
    options = _resolve(None, timeout=timeout, stability_threshold=stability_threshold)
    loop = asyncio.get_running_loop()
    settled = loop.create_future()
    started = loop.time()
    timers = {}

    def on_quiet():
        if not settled.done():
            settled.set_result(None)

    def on_timeout():
        if not settled.done():
            settled.set_exception(StabilityTimeoutError(
                f"{what} did not stabilize within {options.timeout}ms"
            ))

    def restart_quiet():
        if "quiet" in timers:
            timers["quiet"].cancel()
        timers["quiet"] = loop.call_later(options.stability_threshold / 1000, on_quiet)

    def on_signal(*_args):
        # Signals delivered while subscribing precede the quiet clock
        if settled.done() or "quiet" not in timers:
            return
        restart_quiet()

    unsubscribe = subscribe(on_signal)
    try:
        restart_quiet()
        timers["timeout"] = loop.call_later(options.timeout / 1000, on_timeout)
        await settled
    finally:
        unsubscribe()
        for timer in timers.values():
            timer.cancel()

    logger.debug(f"{what} settled after {(loop.time() - started) * 1000:.0f}ms")


async def wait_for_table_stability(
    table: Locator,
    options: Optional[WaitOptions] = None
) -> None:
    """
    Wait for a table to stop mutating.

    Observes child list, attribute and text changes of the whole subtree
    inside the page.

    Args:
        table: Locator for the table element
        options: Wait configuration

    Raises:
        StabilityTimeoutError: The table kept changing past the timeout
    """
    options = _resolve(options)
    try:
        await table.evaluate(
            STABILITY_SCRIPT,
            {"threshold": options.stability_threshold, "maxTimeout": options.timeout},
        )
    except PlaywrightError as e:
        if "did not stabilize" in str(e):
            raise StabilityTimeoutError(
                f"Table did not stabilize within {options.timeout}ms"
            ) from e
        raise


async def wait_for_stable_count(
    locator: Locator,
    options: Optional[WaitOptions] = None
) -> int:
    """
    Wait for the number of matching elements to stop changing.

    Useful when filtering adds or removes rows.

    Args:
        locator: Locator for the elements to count
        options: Wait configuration

    Returns:
        The settled count

    Raises:
        StabilityTimeoutError: The count kept changing past the timeout
    """
    options = _resolve(options)
    page = locator.page
    start = time.monotonic()
    last_count = await locator.count()
    stable_since = time.monotonic()

    while (time.monotonic() - start) * 1000 < options.timeout:
        await page.wait_for_timeout(options.poll_interval)
        current = await locator.count()
        now = time.monotonic()
        if current != last_count:
            last_count = current
            stable_since = now
        elif (now - stable_since) * 1000 >= options.stability_threshold:
            return current

    raise StabilityTimeoutError(
        f"Element count did not stabilize within {options.timeout}ms (last count {last_count})"
    )


async def wait_for_condition(
    page: Page,
    condition: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    options: Optional[WaitOptions] = None
) -> T:
    """
    Poll `condition` until `predicate` accepts its value.

    Args:
        page: Page used for polling delays
        condition: Async producer of the value to check
        predicate: Returns True once the value is acceptable
        options: Wait configuration

    Returns:
        The first accepted value

    Raises:
        StabilityTimeoutError: Not met within the timeout
    """
    options = _resolve(options)
    start = time.monotonic()
    last_value: Any = None
    last_error: Optional[Exception] = None

    while (time.monotonic() - start) * 1000 < options.timeout:
        try:
            last_value = await condition()
            if predicate(last_value):
                return last_value
        except Exception as e:
            last_error = e
        await page.wait_for_timeout(options.poll_interval)

    if last_error is not None:
        raise StabilityTimeoutError(
            f"Condition not met within {options.timeout}ms. Last error: {last_error}"
        ) from last_error
    raise StabilityTimeoutError(
        f"Condition not met within {options.timeout}ms. Last value: {json.dumps(last_value, default=str)}"
    )


async def wait_for_network_quiet(
    page: Page,
    options: Optional[WaitOptions] = None
) -> None:
    """
    Wait until the page has made no request and received no response for a
    quiet period. Defaults the quiet period to settings.NETWORK_QUIET_THRESHOLD.

    Raises:
        StabilityTimeoutError: Traffic continued past the timeout
    """
    if options is None:
        options = WaitOptions(stability_threshold=settings.NETWORK_QUIET_THRESHOLD)

    def subscribe(callback):
        page.on("request", callback)
        page.on("response", callback)

        def unsubscribe():
            page.remove_listener("request", callback)
            page.remove_listener("response", callback)
        return unsubscribe

    await wait_for_quiet(
        subscribe,
        timeout=options.timeout,
        stability_threshold=options.stability_threshold,
        what="Network",
    )


async def with_retry(
    action: Callable[[], Awaitable[T]],
    max_retries: Optional[int] = None,
    delay: Optional[int] = None
) -> T:
    """
    Retry an async action until it succeeds.

    Args:
        action: Async callable to run
        max_retries: Attempts before giving up
        delay: Pause between attempts in ms

    Returns:
        The action's result

    Raises:
        RetryExhaustedError: Every attempt failed; chained to the last error
    """
    max_retries = settings.RETRY_ATTEMPTS if max_retries is None else max_retries
    delay = settings.RETRY_DELAY if delay is None else delay
    last_error: Optional[Exception] = None

    for attempt in range(1, max_retries + 1):
        try:
            return await action()
        except Exception as e:
            last_error = e
            logger.debug(f"Attempt {attempt}/{max_retries} failed: {e}")
            if attempt < max_retries:
                await asyncio.sleep(delay / 1000)

    raise RetryExhaustedError(
        f"Action failed after {max_retries} attempts. Last error: {last_error}"
    ) from last_error
