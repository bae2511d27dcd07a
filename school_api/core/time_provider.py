from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from school_api.config import settings


APP_TIMEZONE = settings.app_timezone or "Asia/Kolkata"
APP_ZONEINFO = ZoneInfo(APP_TIMEZONE)


class TimeProvider:
    def now(self) -> datetime:
        return datetime.now(APP_ZONEINFO)

    def today(self) -> date:
        return self.now().date()


default_time_provider = TimeProvider()
