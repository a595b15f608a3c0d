from enum import Enum


class SyncStatus(str, Enum):
    NEAR_REAL_TIME = "near real-time"
    ACCEPTABLE_LAG = "acceptable lag"
    SIGNIFICANT_LAG = "significant lag"


def sync_status(efficiency: float) -> SyncStatus:
    if efficiency >= 95:
        return SyncStatus.NEAR_REAL_TIME
    if efficiency >= 80:
        return SyncStatus.ACCEPTABLE_LAG
    return SyncStatus.SIGNIFICANT_LAG
