# pc28/constants.py
from decimal import Decimal

BIG_THRESHOLD = 14  # 和值 >= 14 为大

# 13/14 特殊赔率默认值
SPECIAL_SINGLE_ODDS = Decimal("1.98")
SPECIAL_COMBO_ODDS = Decimal("1.6")

# (玩法, 中文名, 标准赔率, 满赔率)
BET_TYPE_TABLE = (
    ("big", "大", "2.0", "2.05"),
    ("small", "小", "2.0", "2.05"),
    ("odd", "单", "2.0", "2.05"),
    ("even", "双", "2.0", "2.05"),
    ("big_odd", "大单", "3.8", "4.2"),
    ("big_even", "大双", "3.8", "4.2"),
    ("small_odd", "小单", "3.8", "4.2"),
    ("small_even", "小双", "3.8", "4.2"),
    ("pair", "对子", "3.0", "3.5"),
    ("leopard", "豹子", "50.0", "60.0"),
)

# 默认游戏：(id, 名称, 简介, 角标, 满赔率?, 最低, 最高, 特殊规则)
DEFAULT_GAMES = (
    ("pc2.0", "Nile PC 2.0", "经典区块哈希玩法，实时开奖，公平公正", "热门", False, "10", "50000", True),
    ("netdisk", "网盘 PC28", "基于云端存储哈希，超高赔率，极速体验", "新上线", False, "10", "50000", True),
    ("pure", "纯流水 PC28", "零抽水，纯粹博弈，回归游戏本质", None, False, "10", "50000", False),
    ("full", "满赔率 PC28", "全网最高赔率，挑战极限收益", "高爆", True, "100", "20000", True),
)


# Redis keys
def k_current_issue(game_id: str) -> str:
    return f"pc28:current:{game_id}"

def k_last_result() -> str:
    return "pc28:last_result"

def k_history() -> str:
    return "pc28:history"
