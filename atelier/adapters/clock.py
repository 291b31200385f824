from datetime import UTC, datetime


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock pinned to a single instant; advance() moves it forward."""

    def __init__(self, instant: datetime) -> None:
        self._instant = instant

    def now_utc(self) -> datetime:
        return self._instant

    def advance(self, seconds: int) -> None:
        from datetime import timedelta

        self._instant += timedelta(seconds=seconds)
