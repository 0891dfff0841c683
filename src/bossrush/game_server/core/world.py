from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from loguru import logger

from bossrush.utils.config import (
    get_game_config_path,
    get_store_backend,
    get_world_data_path,
)
from bossrush.game_server.combat import BossStateMachine, ZoneCombatCoordinator
from bossrush.game_server.core.errors import PersistenceError, StartupError
from bossrush.game_server.core.locks import PlayerLockManager
from bossrush.game_server.core.players import PlayerRepository
from bossrush.game_server.core.store import (
    DocumentStore,
    JsonFileDocumentStore,
    MemoryDocumentStore,
)
from bossrush.game_server.progression import ProgressionTable, load_progression_table
from bossrush.game_server.rpc.events import EventDispatcher, event_dispatcher
from bossrush.game_server.server_logging.event_log import EventLogger


class GameWorld:
    def __init__(self, dispatcher: Optional[EventDispatcher] = None):
        self.dispatcher = dispatcher or event_dispatcher
        self.table: Optional[ProgressionTable] = None
        self.store: Optional[DocumentStore] = None
        self.bosses: Optional[BossStateMachine] = None
        self.players: Optional[PlayerRepository] = None
        self.coordinator: Optional[ZoneCombatCoordinator] = None
        self.event_logger: Optional[EventLogger] = None

    def configure(self, table: ProgressionTable, store: DocumentStore) -> None:
        """Wire the combat engine around an already-built table and store."""
        self.table = table
        self.store = store
        self.bosses = BossStateMachine(store, table)
        self.players = PlayerRepository(store, table, PlayerLockManager())
        self.coordinator = ZoneCombatCoordinator(
            table=table,
            bosses=self.bosses,
            players=self.players,
            gateway=self.dispatcher,
        )

    def load_data(self, config_path: Optional[Path] = None) -> None:
        """Build the world from environment configuration.

        Raises:
            StartupError: If the config is missing/invalid or the store can't be opened
        """
        table = load_progression_table(config_path or get_game_config_path())

        backend = get_store_backend()
        if backend == "memory":
            store: DocumentStore = MemoryDocumentStore()
        else:
            data_path = get_world_data_path() / "documents"
            try:
                store = JsonFileDocumentStore(data_path)
            except PersistenceError as exc:
                raise StartupError(str(exc)) from exc

        self.configure(table, store)
        logger.info("World configured with {} store", backend)

    async def seed_bosses(self) -> None:
        """Seed every configured boss and respawn any left dead by a crash."""
        if self.table is None or self.bosses is None:
            raise StartupError("World not configured")
        for zone_id in self.table.zone_ids():
            try:
                boss = await self.bosses.recover(zone_id)
            except PersistenceError as exc:
                raise StartupError(f"Failed to seed boss for zone '{zone_id}': {exc}") from exc
            logger.info("Boss ready zone={} hp={}/{}", zone_id, boss.current_hp, boss.max_hp)


world = GameWorld()


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        world.load_data()
        await world.seed_bosses()
    except StartupError as e:
        logger.error("Failed to load game world: {}", e)
        raise
    world.event_logger = EventLogger(get_world_data_path() / "event-log.jsonl")
    world.dispatcher.set_event_logger(world.event_logger)
    yield
