from contextlib import asynccontextmanager

from redis.exceptions import LockError

from ..core.config import settings
from ..core.exceptions import WalletBusyError
from ..core.logger import logger


@asynccontextmanager
async def wallet_lock(redis_conn, user_id: int):
    """Per-user mutual exclusion for wallet read-modify-write.

    The key expires on its own after WALLET_LOCK_SECONDS so a crashed worker
    cannot hold a wallet forever. Release only deletes the key while it still
    carries this request's token; a lock that expired and was taken by another
    request is left alone.
    """
    lock = redis_conn.lock(
        f"lock:wallet:{user_id}",
        timeout=settings.WALLET_LOCK_SECONDS,
        blocking=False,
        thread_local=False,
    )
    if not await lock.acquire():
        logger.warning(f"Wallet lock busy for user {user_id}")
        raise WalletBusyError()

    try:
        yield
    finally:
        try:
            await lock.release()
        except LockError:
            logger.warning(f"Wallet lock for user {user_id} expired before release")
