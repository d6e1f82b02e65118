"""RepositoryService — tracking, untracking and importing repositories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reporadar.dao.repository_dao import RepositoryDAO
from reporadar.models.repository import TrackedRepository
from reporadar.platforms.client import PlatformClient
from reporadar.platforms.errors import PlatformError, RateLimited
from reporadar.platforms.factory import ClientRegistry
from reporadar.platforms.models import Platform, RepositoryIdentifier, RepositoryInfo
from reporadar.platforms.parser import parse
from reporadar.services import CapacityError, ConflictError, NotFoundError, ValidationError

log = structlog.get_logger("reporadar.services.repository")


@dataclass
class ImportResult:
    """Outcome of :meth:`RepositoryService.import_repositories`."""

    added: list[TrackedRepository] = field(default_factory=list)
    already_tracked: int = 0
    over_capacity: int = 0
    failed: int = 0


class RepositoryService:
    """Stateless service for the tracked-repository list.

    Methods take the caller's session and only flush; committing is the
    caller's job.
    """

    def __init__(
        self,
        repository_dao: RepositoryDAO,
        clients: ClientRegistry,
        *,
        is_entitled: Callable[[], bool],
        free_limit: int = 3,
    ) -> None:
        self._dao = repository_dao
        self._clients = clients
        self._is_entitled = is_entitled
        self._free_limit = free_limit

    async def add_repository(self, session: AsyncSession, raw: str) -> TrackedRepository:
        """Parse *raw*, validate it remotely and start tracking it.

        Raises :class:`ConflictError` when already tracked and
        :class:`CapacityError` when the free limit is reached; both are
        checked before any network call. Platform errors propagate and
        nothing is persisted.
        """
        identifier = parse(raw)
        await self._ensure_not_tracked(session, identifier)
        await self._ensure_capacity(session)

        client = self._clients.get(identifier.platform)
        info = await client.fetch_repository(identifier.owner, identifier.name)

        canonical = RepositoryIdentifier(identifier.platform, info.owner, info.name)
        if canonical != identifier:
            await self._ensure_not_tracked(session, canonical)

        record = await self._track(session, client, info)
        log.info(
            "repository.added",
            platform=record.platform,
            repository=record.display_name,
            id=record.id,
        )
        return record

    async def remove_repository(self, session: AsyncSession, repository_id: int) -> None:
        """Hard-delete a tracked repository and its analytics rows.

        Raises :class:`NotFoundError` if it does not exist.
        """
        deleted = await self._dao.delete(session, repository_id)
        if not deleted:
            raise NotFoundError(f"repository {repository_id} not found")
        log.info("repository.removed", id=repository_id)

    async def list_repositories(self, session: AsyncSession) -> list[TrackedRepository]:
        return await self._dao.list_all(session)

    async def list_remote_repositories(
        self, platform: Platform, max_pages: int = 10
    ) -> list[RepositoryInfo]:
        """Repositories visible to the configured token on *platform*."""
        if max_pages < 1:
            raise ValidationError("max_pages must be at least 1")
        client = self._clients.get(platform)
        return await client.fetch_all_user_repositories(max_pages=max_pages)

    async def verify_token(self, platform: Platform) -> str:
        """Return the username the configured token belongs to."""
        return await self._clients.get(platform).verify_token()

    async def import_repositories(
        self, session: AsyncSession, platform: Platform, max_pages: int = 10
    ) -> ImportResult:
        """Track every remote repository of the token's user not tracked yet.

        Stops adding once the free limit is reached; the rest are counted
        in ``over_capacity``. A repository whose snapshot cannot be fetched
        is skipped, except on a rate limit, which propagates.
        """
        remote = await self.list_remote_repositories(platform, max_pages)
        client = self._clients.get(platform)
        result = ImportResult()

        for info in remote:
            identifier = RepositoryIdentifier(platform, info.owner, info.name)
            if await self._dao.find_by_identifier(session, identifier) is not None:
                result.already_tracked += 1
                continue
            if not await self._has_capacity(session):
                result.over_capacity += 1
                continue
            try:
                result.added.append(await self._track(session, client, info))
            except RateLimited:
                raise
            except PlatformError as exc:
                result.failed += 1
                log.warning(
                    "repository.import_failed",
                    platform=platform.value,
                    repository=info.full_name,
                    error=str(exc),
                )

        log.info(
            "repository.imported",
            platform=platform.value,
            added=len(result.added),
            already_tracked=result.already_tracked,
            over_capacity=result.over_capacity,
            failed=result.failed,
        )
        return result

    # ── internal ───────────────────────────────────────────────────────────

    async def _track(
        self, session: AsyncSession, client: PlatformClient, info: RepositoryInfo
    ) -> TrackedRepository:
        record = TrackedRepository(
            platform=info.platform.value,
            owner=info.owner,
            name=info.name,
            full_name=info.full_name,
            url=info.url,
            star_count=info.star_count,
            previous_star_count=info.star_count,
        )
        # Fetches first, insert last: a failure leaves the session untouched
        await client.update_repository(record)
        return await self._dao.add(session, record)

    async def _ensure_not_tracked(
        self, session: AsyncSession, identifier: RepositoryIdentifier
    ) -> None:
        if await self._dao.find_by_identifier(session, identifier) is not None:
            raise ConflictError(f"{identifier.full_path} is already tracked")

    async def _has_capacity(self, session: AsyncSession) -> bool:
        if self._is_entitled():
            return True
        return await self._dao.count(session) < self._free_limit

    async def _ensure_capacity(self, session: AsyncSession) -> None:
        if not await self._has_capacity(session):
            raise CapacityError(
                f"Free plan is limited to {self._free_limit} repositories; upgrade to Pro to track more"
            )
