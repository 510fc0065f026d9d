"""Structural types for the page-content capabilities the engine relies on.

Playwright's sync ``Page`` and ``Locator`` satisfy these protocols as-is, so
nothing outside ``auditor.py`` needs to import Playwright. Test doubles only
have to implement the methods listed here.
"""

from typing import Any, Optional, Protocol


class LocatorLike(Protocol):
    @property
    def first(self) -> 'LocatorLike': ...

    def all(self) -> list['LocatorLike']: ...

    def locator(self, selector: str) -> 'LocatorLike': ...

    def evaluate(self, expression: str, arg: Any = None) -> Any: ...

    def is_visible(self) -> bool: ...

    def click(self, timeout: Optional[float] = None, force: bool = False) -> None: ...

    def wait_for(self, state: str = 'visible', timeout: Optional[float] = None) -> None: ...


class KeyboardLike(Protocol):
    def press(self, key: str) -> None: ...


class PageLike(Protocol):
    @property
    def url(self) -> str: ...

    @property
    def keyboard(self) -> KeyboardLike: ...

    def goto(self, url: str, wait_until: str = 'load', timeout: Optional[float] = None) -> Any: ...

    def wait_for_load_state(self, state: str = 'load', timeout: Optional[float] = None) -> None: ...

    def wait_for_function(self, expression: str, timeout: Optional[float] = None) -> Any: ...

    def wait_for_timeout(self, timeout: float) -> None: ...

    def evaluate(self, expression: str, arg: Any = None) -> Any: ...

    def locator(self, selector: str) -> LocatorLike: ...

    def is_closed(self) -> bool: ...
