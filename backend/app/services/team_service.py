import logging
from typing import List, Tuple
from uuid import UUID

from app.db.store import Database, DuplicateDocumentError
from app.errors import (
    AccessDeniedError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from app.models import utcnow
from app.models.leave_request import LEAVE_STATUS_FILTERS, LeaveStatus, TeamLeaveRequest
from app.models.notification import NotificationType
from app.models.team import MembershipChange, Team, TeamCreate, TeamUpdate
from app.models.user import UserSummary
from app.services import access_control
from app.services.notification_service import NotificationService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


class TeamService:
    """Team membership, team profile and the leave-request workflow."""

    def __init__(
        self, db: Database, users: UserService, notifications: NotificationService
    ):
        self.db = db
        self.users = users
        self.notifications = notifications

    async def get_team(self, team_id: UUID) -> Team:
        row = await self.db.teams.get(team_id)
        if not row:
            raise NotFoundError("Team not found")
        return Team(**row)

    async def get_visible_team(self, team_id: UUID, actor_id: UUID) -> Team:
        team = await self.get_team(team_id)
        access_control.ensure_team_access(team, actor_id)
        return team

    async def create_team(self, payload: TeamCreate, user_id: UUID) -> Team:
        name = payload.name.strip()
        if not name:
            raise ValidationError("Team name is required")

        managed = await self.db.teams.count({"manager_id": user_id})
        if managed == 0:
            await self.users.promote_to_manager(user_id)

        team = await self.db.teams.insert(
            {
                "name": name,
                "bio": payload.bio,
                "manager_id": user_id,
                "members": [],
                "profile_picture": None,
            }
        )
        logger.info(f"User {user_id} created team {team['id']}")
        return Team(**team)

    async def list_managed(self, user_id: UUID) -> List[Team]:
        teams = await self.db.teams.find(
            {"manager_id": user_id}, order_by="created_at", desc=True
        )
        return [Team(**team) for team in teams]

    async def list_joined(self, user_id: UUID) -> List[Team]:
        teams = await self.db.teams.find(
            contains={"members": user_id}, order_by="created_at", desc=True
        )
        return [Team(**team) for team in teams]

    async def get_by_name(self, manager_id: UUID, name: str) -> Team:
        row = await self.db.teams.find_one({"manager_id": manager_id, "name": name})
        if not row:
            raise NotFoundError("Team not found")
        return Team(**row)

    async def update_team(self, team_id: UUID, patch: TeamUpdate, actor_id: UUID) -> Team:
        team = await self.get_team(team_id)
        access_control.ensure_team_manager(
            team, actor_id, "Only team manager can update team profile"
        )

        payload = patch.model_dump(exclude_unset=True, exclude_none=True)
        if not payload:
            return team

        return Team(**await self.db.teams.update(team_id, payload))

    async def delete_team(self, team_id: UUID, actor_id: UUID) -> None:
        team = await self.get_team(team_id)
        access_control.ensure_team_manager(
            team, actor_id, "Only the team manager can delete the team"
        )

        requests = await self.db.leave_requests.delete_many({"team_id": team_id})
        tasks = await self.db.tasks.delete_many({"team_id": team_id})
        await self.db.teams.delete(team_id)
        logger.info(
            f"Deleted team {team_id} with {tasks} tasks and {requests} leave requests"
        )

    async def add_member(
        self, team_id: UUID, identifier: str, actor_id: UUID
    ) -> MembershipChange:
        team = await self.get_team(team_id)
        access_control.ensure_team_manager(
            team, actor_id, "Only the team manager can add members"
        )

        user = await self.users.resolve_user(identifier)
        if team.is_manager(user.id):
            raise ValidationError("The team manager cannot be added as a member")

        # Adding an existing member leaves the team unchanged.
        updated = await self.db.teams.add_to_set(team_id, "members", user.id)
        if not updated:
            raise NotFoundError("Team not found")

        return MembershipChange(team=Team(**updated), user=UserSummary.from_user(user))

    async def remove_member(
        self, team_id: UUID, identifier: str, actor_id: UUID
    ) -> MembershipChange:
        team = await self.get_team(team_id)
        access_control.ensure_team_manager(
            team, actor_id, "Only the team manager can remove members"
        )

        user = await self.users.resolve_user(identifier)
        updated = await self.db.teams.pull(team_id, "members", user.id)
        if not updated:
            raise NotFoundError("Team not found")

        return MembershipChange(team=Team(**updated), user=UserSummary.from_user(user))

    # Leave requests

    async def request_leave(self, team_id: UUID, user_id: UUID) -> TeamLeaveRequest:
        team = await self.get_team(team_id)
        if not team.is_member(user_id):
            raise AccessDeniedError("User is not a member of this team")

        pending = {"team_id": team_id, "user_id": user_id, "status": LeaveStatus.PENDING}
        existing = await self.db.leave_requests.find_one(pending)
        if existing:
            return TeamLeaveRequest(**existing)

        try:
            request = await self.db.leave_requests.insert(dict(pending))
        except DuplicateDocumentError:
            # A concurrent request won the race; hand back the one it stored.
            existing = await self.db.leave_requests.find_one(pending)
            if not existing:
                raise
            return TeamLeaveRequest(**existing)

        requester = await self.users.get_user(user_id)
        await self.notifications.notify(
            team.manager_id,
            NotificationType.LEAVE_REQUEST,
            f"{requester.username} has requested to leave {team.name}",
            sender_id=user_id,
            link=f"/teams/{team_id}",
            is_urgent=True,
        )
        logger.info(f"User {user_id} requested to leave team {team_id}")
        return TeamLeaveRequest(**request)

    async def list_leave_requests(
        self, team_id: UUID, manager_id: UUID, status: str = "pending"
    ) -> List[TeamLeaveRequest]:
        status = status or "pending"
        if status not in LEAVE_STATUS_FILTERS:
            raise ValidationError("Invalid status filter")

        team = await self.get_team(team_id)
        access_control.ensure_team_manager(
            team, manager_id, "Only the manager can view leave requests"
        )

        filters = {"team_id": team_id}
        if status != "all":
            filters["status"] = status

        requests = await self.db.leave_requests.find(
            filters, order_by="created_at", desc=True
        )
        return [TeamLeaveRequest(**request) for request in requests]

    async def _load_request_for_manager(
        self, request_id: UUID, manager_id: UUID, verb: str
    ) -> Tuple[TeamLeaveRequest, Team]:
        row = await self.db.leave_requests.get(request_id)
        if not row:
            raise NotFoundError("Leave request not found")
        request = TeamLeaveRequest(**row)

        team = await self.get_team(request.team_id)
        access_control.ensure_team_manager(
            team, manager_id, f"Only the manager can {verb} leave"
        )
        return request, team

    async def _close_request(
        self, request: TeamLeaveRequest, status: LeaveStatus
    ) -> TeamLeaveRequest:
        updated = await self.db.leave_requests.update(
            request.id,
            {"status": status, "updated_at": utcnow()},
            expected={"status": LeaveStatus.PENDING},
        )
        if not updated:
            raise InvalidTransitionError("Leave request has already been processed")
        return TeamLeaveRequest(**updated)

    async def approve_leave(self, request_id: UUID, manager_id: UUID) -> TeamLeaveRequest:
        request, team = await self._load_request_for_manager(
            request_id, manager_id, "approve"
        )
        approved = await self._close_request(request, LeaveStatus.APPROVED)

        await self.db.teams.pull(team.id, "members", request.user_id)
        # The leaver keeps their team tasks as personal tasks.
        detached = await self.db.tasks.update_many(
            {"team_id": team.id, "user_id": request.user_id},
            {"team_id": None, "assigned_by": None, "updated_at": utcnow()},
        )

        await self.notifications.notify(
            request.user_id,
            NotificationType.LEAVE_APPROVED,
            f"Your request to leave {team.name} was approved",
            sender_id=manager_id,
        )
        logger.info(
            f"Approved leave of {request.user_id} from team {team.id}; "
            f"{detached} tasks detached"
        )
        return approved

    async def reject_leave(self, request_id: UUID, manager_id: UUID) -> TeamLeaveRequest:
        request, team = await self._load_request_for_manager(
            request_id, manager_id, "reject"
        )
        rejected = await self._close_request(request, LeaveStatus.REJECTED)

        await self.notifications.notify(
            request.user_id,
            NotificationType.LEAVE_REJECTED,
            f"Your request to leave {team.name} was rejected",
            sender_id=manager_id,
        )
        logger.info(f"Rejected leave of {request.user_id} from team {team.id}")
        return rejected
