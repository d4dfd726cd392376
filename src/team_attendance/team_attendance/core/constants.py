"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

UNVOTED_PENALTY_POINTS = -7
UNVOTED_PENALTY_REASON = "미투표 -7 (event {event_id})"

EVENT_DURATION_HOURS = 3
DEFAULT_REQUIRED_STAFF_COUNT = 15
DEFAULT_OVERVIEW_EVENTS = 5

TAG_CHAIRMAN = "단장"
TAG_HEAD_COACH = "감독"
ASSISTANT_COACH_TAGS = ("수석코치", "투수코치", "배터리코치", "수비코치")
COACHING_STAFF_TAGS = (TAG_HEAD_COACH,) + ASSISTANT_COACH_TAGS

APPROVED_ABSENCE_REASON = "스태프 요청 승인 #{request_id}: {reason_detail}"

DUPLICATE_OPEN_REQUEST_MESSAGE = "이미 처리 중인 같은 유형의 요청이 있습니다. 기존 요청을 철회한 후 다시 시도해주세요."
