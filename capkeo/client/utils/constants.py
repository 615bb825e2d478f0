"""
Constants for the CapKeo client.
Centralized location for user-facing fallback messages and cache keys.
"""

from enum import Enum

from ...shared.constants import Bucket


class SwipeBucket(str, Enum):
    HISTORY = "history"
    RECEIVED = "received"


# Fallback messages shown when the API gives none
FETCH_ERROR_MESSAGES = {
    Bucket.PENDING: "Không thể tải danh sách chờ kèo",
    Bucket.UPCOMING: "Không thể tải lịch đấu",
    Bucket.HISTORY: "Không thể tải lịch sử trận đấu",
    SwipeBucket.HISTORY: "Không thể tải lịch sử swipe",
    SwipeBucket.RECEIVED: "Không thể tải danh sách thích",
}

SWIPE_STATS_ERROR_MESSAGE = "Không thể tải thống kê"
UNDO_SWIPE_ERROR_MESSAGE = "Không thể hoàn tác"

ACTION_ERROR_MESSAGES = {
    "accept": "Không thể chấp nhận lời mời",
    "decline": "Không thể từ chối lời mời",
    "send_request": "Không thể gửi yêu cầu ghép kèo",
    "update_request": "Không thể cập nhật yêu cầu ghép kèo",
    "confirm": "Không thể xác nhận trận đấu",
    "finish": "Không thể kết thúc trận đấu",
    "cancel": "Không thể hủy trận đấu",
    "rematch": "Không thể tạo trận tái đấu",
}

GENERIC_ERROR_MESSAGE = "Có lỗi xảy ra"
NO_DATA_MESSAGE = "Không nhận được dữ liệu từ máy chủ"
PARTIAL_SCHEDULE_NOTICE = "Một số mục chưa tải được: {buckets}"
