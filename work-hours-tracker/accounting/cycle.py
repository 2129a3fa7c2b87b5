# accounting/cycle.py
"""締め日設定（開始日・終了日）から集計期間を求める

開始日 > 終了日の場合は月をまたぐ期間（例: 26日〜翌月25日）になる。
期間の境界は保存せず、参照日ごとに現在の設定で計算し直す。
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Union

from accounting.durations import clamp_day, end_of_day, safe_date_for_day, start_of_day


@dataclass(frozen=True)
class BillingCycle:
    start: datetime
    end: datetime

    def contains(self, moment: Union[date, datetime]) -> bool:
        if not isinstance(moment, datetime):
            moment = start_of_day(moment)
        return self.start <= moment <= self.end

    def days(self) -> list[date]:
        """期間内の日付を順に返す"""
        first = self.start.date()
        count = (self.end.date() - first).days + 1
        return [first + timedelta(days=i) for i in range(count)]


def resolve_cycle(reference: Union[date, datetime], start_day: int, end_day: int) -> BillingCycle:
    start_day = clamp_day(start_day)
    end_day = clamp_day(end_day)
    year, month, day = reference.year, reference.month, reference.day

    if start_day <= end_day:
        if day < start_day:
            offset = -1
        elif day > end_day:
            offset = 1
        else:
            offset = 0
        start = safe_date_for_day(year, month + offset, start_day)
        end = safe_date_for_day(year, month + offset, end_day)
    elif day <= end_day:
        start = safe_date_for_day(year, month - 1, start_day)
        end = safe_date_for_day(year, month, end_day)
    else:
        # 開始日以降、または終了日と開始日の間（次に始まる期間）
        start = safe_date_for_day(year, month, start_day)
        end = safe_date_for_day(year, month + 1, end_day)

    return BillingCycle(start=start_of_day(start), end=end_of_day(end))
