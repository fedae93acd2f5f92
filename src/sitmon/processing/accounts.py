"""Registry of monitored accounts.

Adding an account looks the handle up through the post source, classifies
its bio into a category, and stores it. Removing an account cascades to every
signal materialized from its posts, keyed by the immutable account id.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from sitmon.core.constants import ACCOUNT_ID_PREFIX
from sitmon.core.exceptions import AccountNotFoundError, InvalidInputError
from sitmon.core.logging import get_logger
from sitmon.processing.models import Account, new_id, utcnow
from sitmon.storage.repository import JsonCollection

if TYPE_CHECKING:
    from sitmon.ingestion.twitter import PostSource
    from sitmon.processing.classifier import AccountClassifier
    from sitmon.processing.signals import SignalStore
    from sitmon.storage.kv import KeyValueStore

logger = get_logger(__name__)


def normalize_handle(raw: str) -> str:
    """Username without "@" or surrounding whitespace."""
    return raw.strip().lstrip("@").strip()


class AccountRegistry:
    """Owns Account lifetime."""

    def __init__(
        self,
        post_source: PostSource,
        classifier: AccountClassifier,
        signal_store: SignalStore,
        kv: KeyValueStore | None = None,
        key: str = "accounts",
    ) -> None:
        self._post_source = post_source
        self._classifier = classifier
        self._signal_store = signal_store
        self._accounts: JsonCollection[Account] = JsonCollection(Account, key, kv)
        # Lowercased username -> add in progress, so overlapping adds share one lookup
        self._pending_adds: dict[str, asyncio.Future[Account]] = {}

    async def load(self) -> int:
        return await self._accounts.load()

    def __len__(self) -> int:
        return len(self._accounts)

    def list(self) -> list[Account]:
        """All accounts in the order they were added."""
        return self._accounts.list()

    def active(self) -> list[Account]:
        return [a for a in self._accounts if a.is_active]

    def get(self, account_id: str) -> Account | None:
        return self._accounts.get(account_id)

    def find_by_username(self, username: str) -> Account | None:
        wanted = normalize_handle(username).lower()
        for account in self._accounts:
            if account.username.lower() == wanted:
                return account
        return None

    async def add_account(self, handle: str) -> Account:
        """Start monitoring an account.

        Args:
            handle: Username, with or without "@"

        Returns:
            The new account, or the existing one if already tracked

        Raises:
            InvalidInputError: Handle is blank
            AccountNotFoundError: The post source reports no such user
        """
        username = normalize_handle(handle)
        if not username:
            raise InvalidInputError("Account handle must not be empty")

        existing = self.find_by_username(username)
        if existing is not None:
            logger.debug("Account already tracked", account_id=existing.id, handle=existing.handle)
            return existing

        key = username.lower()
        pending = self._pending_adds.get(key)
        if pending is not None:
            logger.debug("Account add in flight, awaiting", handle=username)
            return await asyncio.shield(pending)

        future: asyncio.Future[Account] = asyncio.get_running_loop().create_future()
        self._pending_adds[key] = future
        try:
            account = await self._lookup_and_insert(username)
        except BaseException as e:
            future.set_exception(e)
            future.exception()
            raise
        else:
            future.set_result(account)
        finally:
            self._pending_adds.pop(key, None)
        return account

    async def _lookup_and_insert(self, username: str) -> Account:
        profile = await self._post_source.lookup_account(username)
        if profile is None:
            raise AccountNotFoundError(f"User @{username} not found")

        if profile.api_error:
            logger.warning(
                "Post source unavailable, using mock account",
                username=username,
                api_error=profile.api_error,
            )

        classification = await self._classifier.classify_account(profile.username, profile.bio)

        # The canonical username can differ from the requested one
        existing = self.find_by_username(profile.username)
        if existing is not None:
            return existing

        account = Account(
            id=new_id(ACCOUNT_ID_PREFIX),
            handle=f"@{profile.username}",
            external_id=profile.external_id,
            name=profile.display_name,
            category=classification.category,
            bio=profile.bio,
            followers_count=profile.followers_count,
            is_active=True,
            added_at=utcnow(),
        )
        self._accounts.insert(account)

        logger.info(
            "Account added",
            account_id=account.id,
            handle=account.handle,
            category=account.category.value,
            confidence=classification.confidence,
            is_mock=profile.is_mock,
        )
        return account

    async def remove_account(self, account_id: str) -> bool:
        """Stop monitoring an account and delete its signals.

        Returns:
            True if the account existed
        """
        account = self._accounts.remove(account_id)
        if account is None:
            return False
        removed_signals = self._signal_store.remove_for_account(account_id)
        logger.info(
            "Account removed",
            account_id=account_id,
            handle=account.handle,
            signals_removed=removed_signals,
        )
        return True

    async def flush(self) -> None:
        await self._accounts.flush()
