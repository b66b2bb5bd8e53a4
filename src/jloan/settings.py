"""Process-wide evaluation settings.

Loans value themselves as of an evaluation date. Instead of keeping a list of
subscribers, :class:`EvaluationSettings` carries a version number that is
bumped on every change; a loan remembers the version its cached results were
computed with and recomputes when the numbers differ.

The evaluation date can be preset with an environment variable:

Environment Variables:
    JLOAN_EVALUATION_DATE: ISO date (YYYY-MM-DD) used instead of today

Example:
    >>> from jloan.settings import settings
    >>> settings.evaluation_date = date(2024, 3, 15)
    >>> settings.evaluation_date
    datetime.date(2024, 3, 15)
"""

from __future__ import annotations

import os
import threading
from datetime import date

from jloan.core.time import to_date
from jloan.exceptions import ConfigurationError, DateTimeError
from jloan.logging_config import get_logger

logger = get_logger(__name__)

ENV_EVALUATION_DATE = "JLOAN_EVALUATION_DATE"


def _date_from_environment() -> date | None:
    value = os.environ.get(ENV_EVALUATION_DATE)
    if not value:
        return None
    try:
        return to_date(value)
    except DateTimeError as e:
        raise ConfigurationError(
            "Invalid evaluation date in environment",
            context={ENV_EVALUATION_DATE: value},
        ) from e


class EvaluationSettings:
    """Evaluation date and event conventions shared by a set of loans.

    Attributes:
        version: Counter incremented each time a setting changes
    """

    def __init__(
        self,
        evaluation_date: date | str | None = None,
        include_reference_date_events: bool = False,
    ) -> None:
        self._lock = threading.Lock()
        self._evaluation_date = to_date(evaluation_date) if evaluation_date is not None else None
        self._include_reference_date_events = include_reference_date_events
        self.version = 0

    @property
    def evaluation_date(self) -> date:
        """Current evaluation date.

        Unless set explicitly, this is ``JLOAN_EVALUATION_DATE`` when defined,
        else today's date.
        """
        if self._evaluation_date is not None:
            return self._evaluation_date
        return _date_from_environment() or date.today()

    @evaluation_date.setter
    def evaluation_date(self, value: date | str | None) -> None:
        new_date = to_date(value) if value is not None else None
        with self._lock:
            if new_date == self._evaluation_date:
                return
            self._evaluation_date = new_date
            self.version += 1
        logger.debug("Evaluation date changed", extra={"evaluation_date": new_date})

    @property
    def include_reference_date_events(self) -> bool:
        """Whether flows paying on the evaluation date are still to be received."""
        return self._include_reference_date_events

    @include_reference_date_events.setter
    def include_reference_date_events(self, value: bool) -> None:
        with self._lock:
            if value == self._include_reference_date_events:
                return
            self._include_reference_date_events = value
            self.version += 1

    def reset(self) -> None:
        """Go back to the default evaluation date and event convention."""
        with self._lock:
            self._evaluation_date = None
            self._include_reference_date_events = False
            self.version += 1

    def __repr__(self) -> str:
        return (
            f"EvaluationSettings(evaluation_date={self.evaluation_date}, "
            f"include_reference_date_events={self._include_reference_date_events}, "
            f"version={self.version})"
        )


settings = EvaluationSettings()
