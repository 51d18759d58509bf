"""
Ephemeral share service: create, retrieve and delete code-addressed bundles.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

import pydantic

from clipdash.config import KEY_PREFIX, MAX_FILE_SIZE, MAX_TOTAL_SIZE, SHARE_TTL_SECONDS
from clipdash.errors import NotFound, PayloadTooLarge, StoreError, ValidationError
from clipdash.models import Share, ShareItem, ShareItemIn
from clipdash.security import log_security_event
from clipdash.store import ShareStore
from clipdash.utils.code_generator import MAX_ATTEMPTS, generate_code, normalize_code

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-01-01T10:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def share_key(code: str) -> str:
    return f"{KEY_PREFIX}{normalize_code(code)}"


class ShareService:
    """
    Orchestrates share creation, retrieval and deletion over a ShareStore.

    The store is injected so tests (and other deployments) can swap it.
    """

    def __init__(
        self,
        store: ShareStore,
        code_factory: Callable[[], str] = generate_code,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.store = store
        self._code_factory = code_factory
        self._clock = clock

    @staticmethod
    def validate_items(items: List[ShareItemIn]):
        """
        Check the share is non-empty and within the size ceilings.

        Raises:
            ValidationError: If there is nothing to share
            PayloadTooLarge: If a file exceeds 2MB or the total exceeds 4MB
        """
        if not items:
            raise ValidationError()

        for item in items:
            if item.kind == "file" and (item.file_size or 0) > MAX_FILE_SIZE:
                log_security_event("oversized_file", {"file_size": item.file_size})
                raise PayloadTooLarge(
                    f'Le fichier "{item.file_name or "sans nom"}" est trop volumineux (max 2MB par fichier)'
                )

        total_size = sum(item.size for item in items)
        if total_size > MAX_TOTAL_SIZE:
            log_security_event("oversized_share", {"total_size": total_size})
            raise PayloadTooLarge()

    def _build_share(self, code: str, items: List[ShareItemIn]) -> Share:
        created_at = self._clock()
        return Share(
            code=code,
            items=[
                ShareItem(
                    **item.model_dump(exclude_none=True),
                    id=f"{code}-{index}",
                    created_at=created_at,
                )
                for index, item in enumerate(items)
            ],
            created_at=created_at,
        )

    async def create(self, items: List[ShareItemIn]) -> str:
        """
        Validate and persist a share for 24 hours.

        Collisions are detected by the store's atomic set-if-absent. After
        MAX_ATTEMPTS refused writes the last candidate is written anyway,
        overwriting the share that holds that code.

        Returns:
            str: The share code
        """
        self.validate_items(items)

        for attempt in range(1, MAX_ATTEMPTS + 1):
            code = normalize_code(self._code_factory())
            share = self._build_share(code, items)
            if await self.store.set_if_absent(share_key(code), share.to_json(), SHARE_TTL_SECONDS):
                logger.info(f"Share {code} created with {len(items)} item(s)")
                return code
            logger.debug(f"Code collision on attempt {attempt}")

        logger.warning(
            f"No free code after {MAX_ATTEMPTS} attempts, overwriting share {code}"
        )
        await self.store.set(share_key(code), share.to_json(), SHARE_TTL_SECONDS)
        return code

    async def retrieve(self, code: str) -> Share:
        """
        Look up a share by code (case-insensitive).

        Raises:
            NotFound: If the code was never issued, was deleted or has expired
            StoreError: If the stored value cannot be decoded
        """
        key = share_key(code)
        data: Optional[str] = await self.store.get(key)
        if not data:
            log_security_event("invalid_access_code", {"code": normalize_code(code)[:3] + "***"})
            raise NotFound()

        try:
            return Share.model_validate_json(data)
        except pydantic.ValidationError as e:
            logger.error(f"Corrupt share record under {key}: {e.error_count()} error(s)")
            raise StoreError("Partage illisible") from e

    async def delete(self, code: str):
        """
        Delete a share. Anyone holding the code may delete it.

        Raises:
            NotFound: If the share is absent (including a second delete)
        """
        key = share_key(code)
        if not await self.store.exists(key):
            raise NotFound("Partage non trouvé ou déjà supprimé")
        await self.store.delete(key)
        logger.info(f"Share {normalize_code(code)} deleted")
