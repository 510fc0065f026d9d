"""Exceptions raised by the link auditor."""


class PageLoadError(Exception):
    """The page never reached DOMContentLoaded; the audit of this page is aborted."""

    def __init__(self, url: str, reason: str):
        super().__init__(f'Failed to load {url}: {reason}')
        self.url = url
        self.reason = reason
