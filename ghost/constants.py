import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(APP_DIR, 'data')
CONFIG_DIR = os.path.join(APP_DIR, 'config')
DB_FILE = os.path.join(CONFIG_DIR, 'ghost.db')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'settings.yaml')
CONTENT_DIR = os.path.join(DATA_DIR, 'databases')

GHOST_DB = 'sqlite:///' + DB_FILE

BUNGIE_URL = 'https://www.bungie.net'
SERVICE_PLATFORM = BUNGIE_URL + '/Platform'

DEFAULT_LOCALE = 'en'

# Platform envelope result codes
ERROR_CODE_SUCCESS = 1
ERROR_CODE_FEATURE_UNAVAILABLE = 1627

# Vendors
GUNSMITH_HASH = '570929315'
LORD_SALADIN_HASH = '242140165'

# Sale item category titles (matched exactly)
CATEGORY_FIELD_TEST_WEAPONS = 'Field Test Weapons'
CATEGORY_FOUNDRY_ORDERS = 'Foundry Orders'
CATEGORY_EVENT_REWARDS = 'Event Rewards'
CATEGORY_EXOTIC_GEAR = 'Exotic Gear'

# Content tables and the legacy key each definition carries its hash under
CLASS_TABLE = 'DestinyClassDefinition'
ITEM_TABLE = 'DestinyInventoryItemDefinition'
ITEM_CATEGORY_TABLE = 'DestinyItemCategoryDefinition'
VENDOR_TABLE = 'DestinyVendorDefinition'
GRIMOIRE_CARD_TABLE = 'DestinyGrimoireCardDefinition'

CONTENT_TABLES = {
    CLASS_TABLE: 'classHash',
    ITEM_TABLE: 'itemHash',
    ITEM_CATEGORY_TABLE: 'itemCategoryHash',
    VENDOR_TABLE: 'vendorHash',
    GRIMOIRE_CARD_TABLE: 'cardId',
}

# Response cache keys
MANIFEST_CACHE_KEY = 'manifest'
VENDOR_CACHE_PREFIX = 'vendor:'

DEFAULT_SETTINGS = {
    "bungie": {
        "api_key": "",
        "base_url": SERVICE_PLATFORM,
        "timeout": None,
    },
    "content": {
        "directory": CONTENT_DIR,
        "locale": DEFAULT_LOCALE,
    },
    "cache": {
        "ttl": None,
        "hit_delay": 0.01,
    },
    "database": {
        "uri": GHOST_DB,
    },
}
