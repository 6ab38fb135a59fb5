"""Logging formatter and filter for the CLI streams.

DevPod parses stdout of ``status`` and ``command``, so log records go to
stderr unless a record is explicitly tagged for stdout.
"""

import logging


class StreamFormatter(logging.Formatter):
    """Logging formatter that prefixes warnings and errors with their level."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with a level prefix for warnings and above.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format

        Returns
        -------
        str
            Formatted log message
        """
        msg = super().format(record)

        if getattr(record, "stream", None) == "stdout":
            return msg

        if record.levelno >= logging.ERROR:
            return f"error: {msg}"
        if record.levelno >= logging.WARNING:
            return f"warning: {msg}"

        return msg


class StreamRoutingFilter(logging.Filter):
    """Filter that routes log records based on the ``stream`` extra.

    Parameters
    ----------
    stream_type : str
        Stream type to allow: "stdout" or "stderr"
    """

    def __init__(self, stream_type: str) -> None:
        super().__init__()
        self.stream_type = stream_type

    def filter(self, record: logging.LogRecord) -> bool:
        """Return True if the record belongs to this handler's stream.

        Untagged records belong to stderr.
        """
        record_stream = getattr(record, "stream", None)

        if record_stream is None:
            return self.stream_type == "stderr"

        return record_stream == self.stream_type
