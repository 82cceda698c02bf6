import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from models.entities import PRStatus, PullRequest, PullRequestShort, ReviewerStat
from repository.base import Store
from repository.errors import PRExists, PRNotFound, UserNotFound
from repository.unit_of_work import UnitOfWork
from services.errors import bad_request, domain, internal, not_found
from services.selection import Selector, choose_reviewers, pick_replacement, random_selector


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PullRequestService:
    """Creates PRs with auto-assigned reviewers, merges them and swaps reviewers"""

    def __init__(
        self,
        store: Store,
        uow: UnitOfWork,
        selector: Optional[Selector] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._uow = uow
        self._selector = selector or random_selector
        self._clock = clock

    async def create_pull_request(self, pull_request_id: str, pull_request_name: str, author_id: str) -> PullRequest:
        """
        POST /pullRequest/create
        Create a PR and assign up to 2 active reviewers from the author's team
        """
        if not pull_request_id or not pull_request_name or not author_id:
            raise bad_request("pull_request_id, pull_request_name and author_id are required")

        try:
            author = await self._store.get_user(author_id)
        except UserNotFound as err:
            raise not_found("author not found") from err
        except Exception as err:
            raise internal("failed to get author", err) from err

        try:
            candidates = await self._store.list_active_team_members_except(author.team_name, {author.user_id})
        except Exception as err:
            raise internal("failed to list team members", err) from err

        reviewer_ids = [user.user_id for user in choose_reviewers(candidates)]
        pr_input = PullRequest(
            pull_request_id=pull_request_id,
            pull_request_name=pull_request_name,
            author_id=author_id,
            status=PRStatus.OPEN,
        )

        async def persist() -> PullRequest:
            return await self._store.create_pr_with_reviewers(pr_input, reviewer_ids)

        try:
            pr = await self._uow.run(persist)
        except PRExists as err:
            raise domain("PR_EXISTS", "PR id already exists") from err
        except Exception as err:
            raise internal("failed to create PR", err) from err

        logger.info("pr_created: pr=%s author=%s reviewers=%s", pr.pull_request_id, author_id, pr.assigned_reviewers)
        return pr

    async def merge_pull_request(self, pull_request_id: str) -> PullRequest:
        """
        POST /pullRequest/merge
        Mark a PR as merged; merging again keeps the first merged_at
        """
        if not pull_request_id:
            raise bad_request("pull_request_id is required")

        try:
            pr = await self._store.mark_merged(pull_request_id, self._clock())
        except PRNotFound as err:
            raise not_found("pull request not found") from err
        except Exception as err:
            raise internal("failed to merge PR", err) from err

        logger.info("pr_merged: pr=%s merged_at=%s", pr.pull_request_id, pr.merged_at)
        return pr

    async def reassign_reviewer(self, pull_request_id: str, old_user_id: str) -> Tuple[PullRequest, str]:
        """
        POST /pullRequest/reassign
        Replace one reviewer with a random active member of the reviewer's team.
        Returns the updated PR and the id of the new reviewer.
        """
        if not pull_request_id or not old_user_id:
            raise bad_request("pull_request_id and old_user_id are required")

        try:
            pr = await self._store.get_pr(pull_request_id)
        except PRNotFound as err:
            raise not_found("pull request not found") from err
        except Exception as err:
            raise internal("failed to get PR", err) from err

        if pr.status == PRStatus.MERGED:
            raise domain("PR_MERGED", "cannot reassign on merged PR")

        if old_user_id not in pr.assigned_reviewers:
            raise domain("NOT_ASSIGNED", "reviewer is not assigned to this PR")

        try:
            old_reviewer = await self._store.get_user(old_user_id)
        except UserNotFound as err:
            raise not_found("user not found") from err
        except Exception as err:
            raise internal("failed to get user", err) from err

        exclude = {old_reviewer.user_id, pr.author_id}
        exclude.update(rid for rid in pr.assigned_reviewers if rid != old_user_id)

        try:
            candidates = await self._store.list_active_team_members_except(old_reviewer.team_name, exclude)
        except Exception as err:
            raise internal("failed to list replacement candidates", err) from err

        if not candidates:
            raise domain("NO_CANDIDATE", "no active replacement candidate in team")

        logger.debug("reassign_candidates: pr=%s old=%s candidates=%s",
                     pull_request_id, old_user_id, [c.user_id for c in candidates])
        new_reviewer = pick_replacement(candidates, self._selector)

        try:
            updated = await self._store.reassign_reviewer(pull_request_id, old_user_id, new_reviewer.user_id)
        except PRNotFound as err:
            raise not_found("pull request not found") from err
        except Exception as err:
            raise internal("failed to reassign reviewer", err) from err

        logger.info("reviewer_reassigned: pr=%s old=%s new=%s", pull_request_id, old_user_id, new_reviewer.user_id)
        return updated, new_reviewer.user_id

    async def list_assigned_to_user(self, user_id: str) -> List[PullRequestShort]:
        """
        GET /users/getReview
        PRs where the user is a reviewer, newest first
        """
        if not user_id:
            raise bad_request("user_id is required")
        try:
            return await self._store.list_assigned_to_user(user_id)
        except Exception as err:
            raise internal("failed to list PRs for user", err) from err

    async def get_stats(self) -> List[ReviewerStat]:
        try:
            return await self._store.get_reviewer_stats()
        except Exception as err:
            raise internal("failed to collect reviewer stats", err) from err
