"""
World - content lookups against the database of the current manifest
"""
import logging
import random
from typing import Callable, Dict, List, Optional

from ghost.constants import (
    BUNGIE_URL,
    CLASS_TABLE,
    DEFAULT_LOCALE,
    GRIMOIRE_CARD_TABLE,
    ITEM_CATEGORY_TABLE,
    ITEM_TABLE,
    VENDOR_TABLE,
)
from ghost.exceptions import ContentNotSynchronizedException, ValidationException
from ghost.world_database import WorldDatabase, resolve_database_path

logger = logging.getLogger("main")


class World:
    """
    Single entry point for "look up game content by hash".

    Every lookup resolves the current manifest, opens its own handle on the
    matching content database and closes it before returning, so a manifest
    change between calls never leaves a stale connection behind.
    """

    def __init__(self, manifest_store, directory: str, locale: str = DEFAULT_LOCALE, database_factory=WorldDatabase):
        self.manifest_store = manifest_store
        self.directory = directory
        self.locale = locale
        self.database_factory = database_factory

    def get_database_path(self) -> str:
        """Content database path of the current manifest for the configured locale"""
        manifest = self.manifest_store.get_current()
        if manifest is None:
            raise ContentNotSynchronizedException()

        content_path = manifest.content_path(self.locale)
        if not content_path:
            raise ContentNotSynchronizedException(
                f"Manifest {manifest.version} has no content database for locale {self.locale}"
            )
        return resolve_database_path(self.directory, content_path)

    def _query(self, query: Callable[[WorldDatabase], object]):
        database_path = self.get_database_path()

        database = self.database_factory(self.directory)
        with database.open(database_path):
            return query(database)

    def lookup(self, table: str, item_hash) -> Optional[Dict]:
        definition = self._query(lambda database: database.query_by_hash(table, item_hash))
        if definition is None:
            logger.debug(f"No {table} definition for hash {item_hash}")
        return definition

    def get_class_by_hash(self, class_hash) -> Optional[Dict]:
        return self.lookup(CLASS_TABLE, class_hash)

    def get_class_by_type(self, class_type) -> Optional[Dict]:
        """Class definition for a classType (0 Titan, 1 Hunter, 2 Warlock)"""
        try:
            class_type = int(class_type)
        except (TypeError, ValueError):
            raise ValidationException(f"Invalid class type: {class_type}") from None

        classes = self._query(lambda database: database.query_all(CLASS_TABLE))
        return next((c for c in classes if c.get("classType") == class_type), None)

    def get_item_by_hash(self, item_hash) -> Optional[Dict]:
        return self.lookup(ITEM_TABLE, item_hash)

    def get_item_by_name(self, item_name: str) -> List[Dict]:
        """
        Items whose name contains item_name.

        One definition per distinct name: the one with the lowest qualityLevel.
        """
        items = self._query(lambda database: database.search_by_name(ITEM_TABLE, "itemName", item_name))

        lowest = {}
        for item in items:
            name = item["itemName"]
            if name not in lowest or item.get("qualityLevel", 0) < lowest[name].get("qualityLevel", 0):
                lowest[name] = item
        return list(lowest.values())

    def get_item_category(self, item_category_hash) -> Optional[Dict]:
        return self.lookup(ITEM_CATEGORY_TABLE, item_category_hash)

    def get_vendor_icon(self, vendor_hash) -> Optional[str]:
        """Absolute URL of the vendor's icon"""
        vendor = self.lookup(VENDOR_TABLE, vendor_hash)
        if not vendor:
            return None

        icon = (vendor.get("summary") or {}).get("vendorIcon") or (vendor.get("displayProperties") or {}).get("icon")
        return f"{BUNGIE_URL}{icon}" if icon else None

    def get_grimoire_cards(self, number_of_cards) -> List[Dict]:
        """Random sample of grimoire cards, at most number_of_cards of them"""
        if isinstance(number_of_cards, bool) or not isinstance(number_of_cards, int) or number_of_cards < 0:
            raise ValidationException(f"Invalid number of grimoire cards: {number_of_cards}")

        cards = self._query(lambda database: database.query_all(GRIMOIRE_CARD_TABLE))
        return random.sample(cards, min(number_of_cards, len(cards)))
