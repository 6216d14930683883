"""
User-facing acknowledgments (toasts).

The notifier logs every toast, fans it out to listeners and keeps the
latest few so an HTTP response can carry them back to the page.
"""
import inspect
from collections import deque
from dataclasses import asdict, dataclass
from typing import Awaitable, Callable, Deque, List, Union

from storefront.logging import get_logger

logger = get_logger(__name__)

VARIANT_DEFAULT = "default"
VARIANT_DESTRUCTIVE = "destructive"

ToastListener = Callable[["Toast"], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    variant: str = VARIANT_DEFAULT

    @property
    def is_error(self) -> bool:
        return self.variant == VARIANT_DESTRUCTIVE

    def to_dict(self) -> dict:
        return asdict(self)


class Notifier:
    """Collects toasts raised by cart and checkout operations."""

    def __init__(self, history_size: int = 20):
        self._listeners: List[ToastListener] = []
        self._history: Deque[Toast] = deque(maxlen=history_size)

    def subscribe(self, listener: ToastListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def history(self) -> List[Toast]:
        return list(self._history)

    def drain(self) -> List[Toast]:
        """Return and forget everything collected so far."""
        toasts = list(self._history)
        self._history.clear()
        return toasts

    async def notify(self, title: str, description: str, variant: str = VARIANT_DEFAULT) -> Toast:
        toast = Toast(title=title, description=description, variant=variant)
        if toast.is_error:
            logger.warning(f"{title}: {description}")
        else:
            logger.info(f"{title}: {description}")

        self._history.append(toast)
        for listener in list(self._listeners):
            try:
                result = listener(toast)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Toast listener failed: {e}", exc_info=True)
        return toast

    async def success(self, title: str, description: str) -> Toast:
        return await self.notify(title, description, VARIANT_DEFAULT)

    async def error(self, title: str, description: str) -> Toast:
        return await self.notify(title, description, VARIANT_DESTRUCTIVE)
