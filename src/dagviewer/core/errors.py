from __future__ import annotations


class DagViewerError(Exception):

    def with_context(self, context: str) -> "DagViewerError":
        """Prefix the message with diagnostic context, keeping the error type."""
        msg = str(self)
        self.args = (f"{context}: {msg}" if msg else context,)
        return self


class InvalidReferenceError(DagViewerError):
    pass


class NotFoundError(DagViewerError):
    pass


class NotADocumentError(DagViewerError):
    pass


class MalformedDocumentError(DagViewerError):
    pass


class TransportError(DagViewerError):
    pass


class CancelledError(DagViewerError):
    pass
