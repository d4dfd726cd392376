from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .attendance.stats import AttendanceStatsService
from .database.connection import DBConfig, DatabaseConnection
from .events.mysql_event_repository import MySQLEventRepository
from .events.service import EventService
from .penalties.service import AutoPenaltyService, UnvotedPenalty
from .points.mysql_point_repository import MySQLPointRepository
from .points.service import PointService
from .staff_requests.factory import ApprovalPolicyFactory
from .staff_requests.mysql_staff_request_repository import MySQLStaffRequestRepository
from .staff_requests.service import StaffRequestService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    auth_service: AuthService
    user_service: UserService
    event_service: EventService
    attendance_service: AttendanceService
    attendance_stats_service: AttendanceStatsService
    point_service: PointService
    staff_request_service: StaffRequestService
    auto_penalty_service: AutoPenaltyService


def wire(*, users_repo, events_repo, attendance_repo, points_repo, staff_requests_repo) -> Container:
    """Compose services over any set of repositories (MySQL in the app, fakes in tests)."""

    point_service = PointService(points_repo, users_repo)
    attendance_service = AttendanceService(attendance_repo, events_repo, users_repo)
    event_service = EventService(
        events_repo,
        users_repo,
        attendance_service,
        start_hook=UnvotedPenalty(attendance_repo, point_service),
    )
    staff_request_service = StaffRequestService(
        staff_requests_repo,
        events_repo,
        users_repo,
        policy_factory=ApprovalPolicyFactory(),
    )

    return Container(
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        event_service=event_service,
        attendance_service=attendance_service,
        attendance_stats_service=AttendanceStatsService(attendance_repo, users_repo),
        point_service=point_service,
        staff_request_service=staff_request_service,
        auto_penalty_service=AutoPenaltyService(events_repo, event_service, staff_request_service),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        events_repo=MySQLEventRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        points_repo=MySQLPointRepository(conn),
        staff_requests_repo=MySQLStaffRequestRepository(conn),
    )
