from src.pm_common.fixed_point import SCALE

# Defaults; the running service takes MIN_BET / MAX_BET from settings.
DEFAULT_MIN_BET = SCALE // 1000        # 0.001
DEFAULT_MAX_BET = 100 * SCALE          # 100.0
