"""
Service container for Ghost

Builds the cache, manifest store, platform client, world facade and manifest
synchronizer explicitly from settings. Owned by the application, never a
module-level singleton.
"""
import logging
from typing import Dict

from flask import current_app

from ghost.bungie_client import BungieClient
from ghost.exceptions import ValidationException
from ghost.manifest_sync import ManifestSync
from ghost.repositories.manifest_repository import ManifestRepository
from ghost.response_cache import ResponseCache
from ghost.settings import verify_settings
from ghost.world import World

logger = logging.getLogger("main")

EXTENSION_NAME = "ghost"


class GhostServices:
    """Owns the lifecycle of the content access layer"""

    def __init__(self, settings: Dict, session=None):
        for section in ("bungie", "content", "cache"):
            success, errors = verify_settings(section, settings.get(section, {}))
            if not success:
                raise ValidationException("; ".join(e["error"] for e in errors))

        bungie = settings["bungie"]
        content = settings["content"]
        cache = settings["cache"]

        self.settings = settings
        self.cache = ResponseCache(ttl=cache.get("ttl"), hit_delay=cache.get("hit_delay", 0.01))
        self.manifest_store = ManifestRepository()
        self.client = BungieClient(
            bungie["api_key"],
            base_url=bungie["base_url"],
            cache=self.cache,
            timeout=bungie.get("timeout"),
            session=session,
        )
        self.world = World(self.manifest_store, content["directory"], locale=content["locale"])
        self.manifest_sync = ManifestSync(
            self.client,
            self.manifest_store,
            self.cache,
            content["directory"],
            locale=content["locale"],
            timeout=bungie.get("timeout"),
        )
        self._running = True
        logger.info(f"Ghost services initialized (locale {content['locale']}, content at {content['directory']})")

    def init_app(self, app):
        app.extensions[EXTENSION_NAME] = self
        return self

    def shutdown(self):
        if not self._running:
            return
        self._running = False
        self.cache.clear()
        self.client.close()
        logger.info("Ghost services shut down")


def get_services(app=None) -> GhostServices:
    app = app or current_app
    return app.extensions[EXTENSION_NAME]
