from __future__ import annotations

import logging
from typing import Literal

from services.marketplace.application.interfaces import Notifier

LOGGER = logging.getLogger(__name__)


class LoggingNotifier(Notifier):
    def notify(
        self,
        title: str,
        description: str,
        *,
        variant: Literal["default", "destructive"] = "default",
    ) -> None:
        if variant == "destructive":
            LOGGER.warning({"toast": title, "description": description})
        else:
            LOGGER.info({"toast": title, "description": description})
