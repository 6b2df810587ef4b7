"""
Adapter: outgoing mail.

Implements the Mailer port by recording each message in the application
log. Delivery through a real transport is outside this service; a
deployment swaps this adapter for one backed by its mail provider.
"""

import logging
import re

from tourbook.domain.tours.ports import Mailer

logger = logging.getLogger(__name__)

_TAGS = re.compile(r"<[^>]+>")


class LoggingMailer(Mailer):
    """Logs recipient and subject; the plain-text body only at DEBUG."""

    def __init__(self, sender: str) -> None:
        self._sender = sender

    def send(self, to: str, subject: str, html: str) -> None:
        logger.info("Mail from=%s to=%s subject=%r", self._sender, to, subject)
        # Bodies may carry one-time links
        logger.debug("Mail body: %s", " ".join(_TAGS.sub(" ", html).split()))
