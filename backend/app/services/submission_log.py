"""
Submission log sink.

The pipeline records each stage through SubmissionLog.record(). Entries go to
the standard logging hierarchy under "app.submissions" as
"<message> - <json data>". Recording never raises: a failure in the sink must
not change the outcome of a submission.
"""

import json
import logging
from typing import Any, Literal, Mapping, Optional

logger = logging.getLogger("app.submissions")

LogLevel = Literal["info", "warn", "error"]

_LEVELS = {
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class SubmissionLog:
    def __init__(self, target: Optional[logging.Logger] = None):
        self._logger = target or logger

    def record(self, level: LogLevel, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
        try:
            payload = json.dumps(dict(data or {}), default=str)
            self._logger.log(_LEVELS.get(level, logging.INFO), "%s - %s", message, payload)
        except Exception:
            logger.debug("submission log: silent fallback", exc_info=True)
