import time
import pytz
from datetime import datetime
TZ = pytz.timezone("Asia/Shanghai")

def now_ms() -> int:
    return int(time.time() * 1000)

def from_ms(ts: int) -> datetime:
    """区块时间戳（毫秒）→ 上海时区的 naive datetime，用于入库"""
    return to_naive(datetime.fromtimestamp(ts / 1000, tz=pytz.utc))

def to_naive(dt: datetime) -> datetime:
    if dt.tzinfo:
        return dt.astimezone(TZ).replace(tzinfo=None)
    return dt

def to_ms(dt: datetime) -> int:
    """入库的 naive 上海时间 → 毫秒时间戳"""
    if dt.tzinfo is None:
        dt = TZ.localize(dt)
    return int(dt.timestamp() * 1000)
