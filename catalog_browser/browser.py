"""Entry point wiring configuration, gateways and one controller per permitted kind."""

from __future__ import annotations

from typing import Iterable

import httpx

from .config import CatalogConfig, EntityKind
from .engine import CatalogClient, DetailGateway, FetchGateway, QueryController
from .engine.controller import SelectHandler, SessionListener
from .errors import AccessDenied
from .logging_conf import configure_logging, session_logger


class PermissionGate:
    """Decide which entity-kind sessions the current user may open."""

    def __init__(self, permissions: Iterable[EntityKind | str]) -> None:
        self._allowed = frozenset(EntityKind(value) for value in permissions)

    def allows(self, kind: EntityKind) -> bool:
        return kind in self._allowed

    def allowed_kinds(self) -> list[EntityKind]:
        return [kind for kind in EntityKind if kind in self._allowed]

    def require(self, kind: EntityKind) -> None:
        if not self.allows(kind):
            raise AccessDenied(f"Browsing {kind.value} is not permitted")


class CatalogBrowser:
    """Own the shared HTTP client and the live search sessions.

    A session is opened when its listing is shown and closed when it goes
    away; nothing survives ``aclose``.
    """

    def __init__(
        self,
        config: CatalogConfig,
        http_client: httpx.AsyncClient | None = None,
        gate: PermissionGate | None = None,
    ) -> None:
        self.config = config
        self.gate = gate or PermissionGate(config.permissions)
        self.client = CatalogClient(config, http_client)
        self.details = DetailGateway(config, self.client)
        self.logger = configure_logging().bind(component="browser")
        self._controllers: dict[EntityKind, QueryController] = {}

    async def __aenter__(self) -> "CatalogBrowser":
        return self

    async def __aexit__(self, *_exc_info) -> None:
        await self.aclose()

    def open_session(
        self,
        kind: EntityKind,
        listener: SessionListener | None = None,
        on_select: SelectHandler | None = None,
    ) -> QueryController:
        self.gate.require(kind)
        controller = self._controllers.get(kind)
        if controller is not None:
            return controller
        logger = session_logger(kind.value)
        gateway = FetchGateway(self.config, kind, client=self.client, logger=logger)
        controller = QueryController(
            kind,
            gateway,
            self.config,
            logger=logger,
            listener=listener,
            on_select=on_select,
        )
        self._controllers[kind] = controller
        self.logger.info("session_opened", kind=kind.value)
        return controller

    async def close_session(self, kind: EntityKind) -> None:
        controller = self._controllers.pop(kind, None)
        if controller is None:
            return
        await controller.aclose()
        self.logger.info("session_closed", kind=kind.value)

    async def aclose(self) -> None:
        for kind in list(self._controllers):
            await self.close_session(kind)
        await self.client.aclose()


__all__ = ["CatalogBrowser", "PermissionGate"]
