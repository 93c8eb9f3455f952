"""
Pytest fixtures and configuration for Ghost tests
"""
import copy
import json
import sqlite3
from unittest.mock import MagicMock

import pytest

from ghost.constants import DEFAULT_SETTINGS

CONTENT_FILE_NAME = 'world_sql_content_4a1c2f.content'

ITEM_HASH = 12345
CLASS_HASH = 671679327
ITEM_CATEGORY_HASH = 1
XUR_VENDOR_HASH = 2796397637
SALADIN_VENDOR_HASH = 242140165


def _signed(value):
    return value - (1 << 32) if value >= (1 << 31) else value


@pytest.fixture
def content_dir(tmp_path):
    directory = tmp_path / 'databases'
    directory.mkdir()
    return directory


@pytest.fixture
def settings(content_dir):
    """Settings for an isolated instance with an in-memory store"""
    test_settings = copy.deepcopy(DEFAULT_SETTINGS)
    test_settings['bungie']['api_key'] = 'test-api-key'
    test_settings['content']['directory'] = str(content_dir)
    test_settings['cache']['hit_delay'] = 0
    test_settings['database']['uri'] = 'sqlite://'
    return test_settings


@pytest.fixture
def app(settings):
    """Flask app with its context pushed"""
    from ghost.app import create_app

    _app = create_app(settings)
    _app.config.update({'TESTING': True})

    with _app.app_context():
        yield _app

    from ghost.services import get_services
    get_services(_app).shutdown()


@pytest.fixture
def sample_manifest():
    return {
        'version': '56578.17.04.12.1251-6',
        'mobileAssetContentPath': '/common/destiny_content/sqlite/asset/asset_sql_content_9f1b.content',
        'mobileWorldContentPaths': {
            'en': f'/common/destiny_content/sqlite/en/{CONTENT_FILE_NAME}',
            'fr': '/common/destiny_content/sqlite/fr/world_sql_content_77aa.content',
        },
    }


def world_definitions():
    """(table, id, definition) rows of a small content database"""
    rows = {
        'DestinyInventoryItemDefinition': [
            {'itemHash': ITEM_HASH, 'hash': ITEM_HASH, 'itemName': 'Gjallarhorn', 'qualityLevel': 0},
            # Carries the item hash only as a substring of another value
            {'itemHash': 123456, 'hash': 123456, 'itemName': 'Thorn', 'itemDescription': 'Not 12345'},
            {'itemHash': 3000000000, 'hash': 3000000000, 'itemName': 'Hawkmoon'},
            {'itemHash': 12346, 'hash': 12346, 'itemName': 'Gjallarhorn', 'qualityLevel': 3},
            {'itemHash': 12347, 'hash': 12347, 'itemName': 'Gjallarhorn Ornament', 'qualityLevel': 2},
        ],
        'DestinyClassDefinition': [
            {'classHash': 3655393761, 'classType': 0, 'className': 'Titan'},
            {'classHash': CLASS_HASH, 'classType': 1, 'className': 'Hunter'},
            {'classHash': 2271682572, 'classType': 2, 'className': 'Warlock'},
        ],
        'DestinyItemCategoryDefinition': [
            {'itemCategoryHash': ITEM_CATEGORY_HASH, 'title': 'Weapon'},
        ],
        'DestinyVendorDefinition': [
            {'hash': XUR_VENDOR_HASH, 'summary': {'vendorHash': XUR_VENDOR_HASH, 'vendorName': 'Xur',
                                                  'vendorIcon': '/common/destiny_content/icons/xur.png'}},
            # The platform's own shape: the hash only appears inside the summary
            {'summary': {'vendorHash': SALADIN_VENDOR_HASH, 'vendorName': 'Lord Saladin',
                         'vendorIcon': '/common/destiny_content/icons/saladin.png'}},
        ],
        'DestinyGrimoireCardDefinition': [
            {'cardId': card_id, 'cardName': name}
            for card_id, name in ((100, 'Guardian'), (101, 'Ghost'), (102, 'The Traveler'))
        ],
    }

    for table, definitions in rows.items():
        for definition in definitions:
            if 'hash' in definition:
                key = definition['hash']
            elif 'summary' in definition:
                key = definition['summary']['vendorHash']
            else:
                key = next(v for k, v in definition.items() if k.endswith('Hash') or k == 'cardId')
            yield table, _signed(key), definition


def write_world_database(path, definitions=None):
    connection = sqlite3.connect(str(path))
    try:
        tables = set()
        for table, row_id, definition in definitions or world_definitions():
            if table not in tables:
                connection.execute(f'CREATE TABLE {table} (id INTEGER PRIMARY KEY, json TEXT)')
                tables.add(table)
            connection.execute(f'INSERT INTO {table} VALUES (?, ?)', (row_id, json.dumps(definition)))
        connection.commit()
    finally:
        connection.close()
    return path


@pytest.fixture
def world_database_file(content_dir):
    """A small content database laid out like the platform's world database"""
    return write_world_database(content_dir / CONTENT_FILE_NAME)


def envelope(response=None, error_code=1, message='Ok', status='Success'):
    """Platform response body"""
    return {
        'Response': response,
        'ErrorCode': error_code,
        'ThrottleSeconds': 0,
        'ErrorStatus': status,
        'Message': message,
        'MessageData': {},
    }


def http_response(body, status_code=200):
    """Mock requests.Response carrying a JSON body"""
    response = MagicMock()
    response.status_code = status_code
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    if status_code >= 400:
        import requests
        response.raise_for_status.side_effect = requests.HTTPError(f'{status_code} Server Error')
    return response


@pytest.fixture
def sample_vendor_data():
    return {
        'vendorHash': 570929315,
        'nextRefreshDate': '2017-04-18T09:00:00Z',
        'saleItemCategories': [
            {
                'categoryTitle': 'Foundry Orders',
                'saleItems': [{'item': {'itemHash': 1111}}, {'item': {'itemHash': 2222}}],
            },
            {
                'categoryTitle': 'Field Test Weapons',
                'saleItems': [{'item': {'itemHash': 3333}}, {'item': {'itemHash': 4444}}],
            },
        ],
    }
