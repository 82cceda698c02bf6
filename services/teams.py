import logging
from typing import List, Optional

from models.entities import DeactivationReport, Reassignment, Team
from repository.base import Store
from repository.errors import TeamExists, TeamNotFound
from repository.unit_of_work import UnitOfWork
from services.errors import AppError, bad_request, domain, internal, not_found
from services.selection import Selector, random_selector


logger = logging.getLogger(__name__)


class TeamService:
    """Team management and the bulk deactivation that repairs reviewer assignments"""

    def __init__(self, store: Store, uow: UnitOfWork, selector: Optional[Selector] = None):
        self._store = store
        self._uow = uow
        self._selector = selector or random_selector

    async def add_team(self, team: Team) -> Team:
        """
        POST /team/add
        Create a team; members are created or updated and bound to it
        """
        if not team.team_name:
            raise bad_request("team_name must not be empty")
        if not team.members:
            raise bad_request("members must not be empty")

        try:
            created = await self._store.create_team_with_members(team)
        except TeamExists as err:
            raise domain("TEAM_EXISTS", "team_name already exists") from err
        except Exception as err:
            raise internal("failed to create team", err) from err

        logger.info("team_created: team=%s members=%d", created.team_name, len(created.members))
        return created

    async def get_team(self, team_name: str) -> Team:
        if not team_name:
            raise bad_request("team_name is required")
        try:
            return await self._store.get_team_by_name(team_name)
        except TeamNotFound as err:
            raise not_found("team not found") from err
        except Exception as err:
            raise internal("failed to get team", err) from err

    async def mass_deactivate(self, user_ids: List[str]) -> DeactivationReport:
        """
        POST /team/deactivate
        Deactivate users and repair every open PR they review, all in one transaction.

        Each affected reviewer is swapped for a random active teammate outside the PR's
        current reviewer set, or dropped from the PR when nobody is left. Nothing is
        backfilled beyond that.
        """
        if not user_ids or any(not user_id for user_id in user_ids):
            raise bad_request("user_ids must be a non-empty list of ids")

        ids = list(dict.fromkeys(user_ids))
        reassignments: List[Reassignment] = []

        async def repair() -> None:
            reassignments.clear()
            await self._store.deactivate_users(ids)

            impacted = await self._store.get_open_prs_by_reviewers(ids)
            if not impacted:
                return

            for old_user_id, pr_ids in impacted.items():
                old_reviewer = await self._store.get_user(old_user_id)

                for pr_id in pr_ids:
                    # Re-read: an earlier repair in this scope may have touched the PR
                    pr = await self._store.get_pr(pr_id)
                    exclude = {old_user_id, pr.author_id, *pr.assigned_reviewers}
                    candidates = await self._store.list_active_team_members_except(old_reviewer.team_name, exclude)

                    if candidates:
                        new_reviewer = self._selector(candidates)
                        await self._store.reassign_reviewer(pr_id, old_user_id, new_reviewer.user_id)
                        reassignments.append(Reassignment(
                            pr_id=pr_id, old_reviewer_id=old_user_id, new_reviewer_id=new_reviewer.user_id,
                        ))
                    else:
                        await self._store.remove_reviewer(pr_id, old_user_id)
                        reassignments.append(Reassignment(pr_id=pr_id, old_reviewer_id=old_user_id))

        try:
            await self._uow.run(repair)
        except AppError:
            raise
        except Exception as err:
            raise internal("failed to deactivate users", err) from err

        logger.info(
            "mass_deactivated: users=%s reassigned=%d removed=%d",
            ids,
            sum(1 for r in reassignments if r.new_reviewer_id),
            sum(1 for r in reassignments if not r.new_reviewer_id),
        )
        return DeactivationReport(deactivated_users=ids, reassignments=list(reassignments))

    async def bulk_deactivate_team(self, team_name: str) -> DeactivationReport:
        """
        POST /team/bulkDeactivate
        Deactivate every active member of a team with the same repair as mass_deactivate
        """
        team = await self.get_team(team_name)
        active_ids = [member.user_id for member in team.members if member.is_active]
        if not active_ids:
            return DeactivationReport(team_name=team.team_name)

        report = await self.mass_deactivate(active_ids)
        report.team_name = team.team_name
        return report
