from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import sessionmaker

from core.config_loader import AppConfig
from notification.delivery import Deliverer
from pipeline.control import PipelineController


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    DB access should be obtained via placement_uow(ctx.session_factory)
    inside each step, never held on the context.
    """
    config: AppConfig
    session_factory: sessionmaker
    deliverer: Deliverer
    controller: PipelineController

    @classmethod
    def build(cls, config: AppConfig, session_factory: Optional[sessionmaker] = None) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            session_factory: Optional pre-bound session factory (tests)

        Returns:
            Fully wired AppContext instance (no DB session attached)
        """
        if session_factory is None:
            from database.database import SessionLocal, configure_engine

            configure_engine(config.database.url, echo=config.database.echo)
            session_factory = SessionLocal

        return cls(
            config=config,
            session_factory=session_factory,
            deliverer=Deliverer(config.delivery),
            controller=PipelineController(config.scheduler.lock_file),
        )
