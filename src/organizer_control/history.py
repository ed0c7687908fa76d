"""Session extraction from the tool's history output.

The tool prints one line per recorded organize run::

    Organization history for: /home/user/Downloads
    ------------------------------------------------------------
    Session: 20250115_100000 (12 files moved)
    Session: 20250116_093012 (1 file moved)

Newer sessions are appended at the end, so records are returned in reverse
order (most recent first).
"""

import logging
import re
from abc import ABC, abstractmethod

from .core import SessionRecord

logger = logging.getLogger(__name__)

SESSION_MARKER = "Session:"
SESSION_PATTERN = re.compile(r"Session:\s*(\S+)\s*\((\d+)\s*files?\s*moved?\)")


class HistoryParser(ABC):
    """Turns raw history text into session records.

    Kept behind an interface so a change in the tool's wording only needs a
    new parser, not changes to the dispatcher.
    """

    @abstractmethod
    def parse(self, text: str) -> list[SessionRecord]:
        """Return sessions found in ``text``, most recent first."""
        ...


class TextHistoryParser(HistoryParser):
    """Parser for the ``Session: <id> (<count> files moved)`` line format."""

    def parse(self, text: str) -> list[SessionRecord]:
        sessions = []
        for line in text.splitlines():
            if SESSION_MARKER not in line:
                continue
            match = SESSION_PATTERN.search(line)
            if not match:
                logger.debug("Skipping unrecognized session line: %r", line)
                continue
            sessions.append(SessionRecord(id=match.group(1), file_count=int(match.group(2))))

        sessions.reverse()
        return sessions


_default_parser = TextHistoryParser()


def extract_sessions(text: str) -> list[SessionRecord]:
    """Parse history text with the default line-format parser."""
    return _default_parser.parse(text)
