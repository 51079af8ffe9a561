"""Terminal bell implementation of SoundPlayer."""

import logging
import sys
from typing import TextIO

from smart_alerts.domain.interfaces.notifier import SoundPlayer
from smart_alerts.domain.models.enums import SoundPattern
from smart_alerts.domain.rules import TONE_DURATION_MS, TONE_GAP_MS

logger = logging.getLogger(__name__)

BELL = "\a"


class TerminalBellPlayer(SoundPlayer):
    """Rings the terminal bell once per tone of a pattern.

    Terminals cannot play a pitch, so the pattern's length (not its
    frequencies) is what distinguishes priorities: critical rings five
    times, info twice.
    """

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream or sys.stdout

    def play(self, pattern: SoundPattern) -> None:
        """Ring the bell for each tone without blocking."""
        tones = pattern.frequencies
        logger.debug(
            f"Playing {pattern.value} alert: {list(tones)} Hz, "
            f"{TONE_DURATION_MS}ms tones, {TONE_GAP_MS}ms gaps"
        )
        try:
            self._stream.write(BELL * len(tones))
            self._stream.flush()
        except (OSError, ValueError) as e:
            logger.warning(f"Could not ring terminal bell: {e}")
