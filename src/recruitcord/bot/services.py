"""
Process-wide wiring of the core components.

One record store is chosen at startup and shared by the blacklist ledger,
the recruit pipeline and the ranking aggregator. Cogs receive the
:class:`BotServices` instance instead of building their own.
"""

from __future__ import annotations

from recruitcord.blacklist.ledger import BlacklistLedger
from recruitcord.configuration.app_configuration import AppConfig
from recruitcord.recruitment.pipeline import RecruitPipeline
from recruitcord.recruitment.ranking import RankingAggregator
from recruitcord.storage.factory import create_record_store
from recruitcord.storage.record_store import RecordStore
from recruitcord.util.logger import get_logger

logger = get_logger("bot_services")


class BotServices:
    """Holds the store and the three core components built on top of it."""

    def __init__(self, store: RecordStore, config: AppConfig) -> None:
        self.store = store
        self.config = config
        self.blacklist = BlacklistLedger(store)
        self.pipeline = RecruitPipeline(store)
        self.ranking = RankingAggregator(store)

    @classmethod
    def from_config(cls, config: AppConfig) -> "BotServices":
        return cls(create_record_store(config.storage), config)

    async def start(self) -> None:
        await self.store.initialize()
        logger.info("[BOT SERVICES] Storage ready (%s backend)", self.store.backend_name)

    async def shutdown(self) -> None:
        try:
            await self.store.close()
        except Exception:
            logger.exception("[BOT SERVICES] Error while closing storage")
        logger.info("[BOT SERVICES] Storage closed")
