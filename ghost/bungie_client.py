"""
Client for the Bungie platform API

Unwraps the platform envelope and maps its result codes:
  1     -> success, the Response payload is returned
  1627  -> feature unavailable (e.g. Iron Banner not running), resolves empty
  other -> RemoteServiceException
Transport failures raise NetworkException.
"""
import logging
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import requests

from ghost import BUILD_VERSION
from ghost.constants import (
    CATEGORY_EVENT_REWARDS,
    CATEGORY_EXOTIC_GEAR,
    CATEGORY_FIELD_TEST_WEAPONS,
    CATEGORY_FOUNDRY_ORDERS,
    ERROR_CODE_FEATURE_UNAVAILABLE,
    ERROR_CODE_SUCCESS,
    GUNSMITH_HASH,
    LORD_SALADIN_HASH,
    MANIFEST_CACHE_KEY,
    SERVICE_PLATFORM,
    VENDOR_CACHE_PREFIX,
)
from ghost.exceptions import NetworkException, RemoteServiceException, ValidationException
from ghost.utils import sanitize_sensitive_data

logger = logging.getLogger("main")

# Stands in for the Response payload when the platform reports code 1627
FEATURE_UNAVAILABLE = object()


class MembershipType(IntEnum):
    TIGER_XBOX = 1
    TIGER_PSN = 2


def _require(value, name):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationException(f"{name} is required")
    return str(value)


def _membership_type(value):
    try:
        return MembershipType(int(value))
    except (TypeError, ValueError):
        raise ValidationException(f"Unknown membership type: {value}") from None


def find_sale_items(sale_item_categories, category_title: str) -> List[Dict]:
    """Sale items of the category whose title matches exactly"""
    for category in sale_item_categories or []:
        if category.get("categoryTitle") == category_title:
            return list(category.get("saleItems") or [])
    return []


class BungieClient:
    """Client for the Bungie Destiny platform"""

    def __init__(self, api_key: str, base_url: str = SERVICE_PLATFORM, cache=None,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        if not api_key or not isinstance(api_key, str):
            raise ValidationException("The API key is missing.")

        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "X-API-Key": api_key,
            "User-Agent": f"Ghost/{BUILD_VERSION}",
        })

    def close(self):
        self.session.close()

    def _cached(self, key: str, fetch_fn: Callable[[], Any], no_cache: bool = False):
        if self.cache is None or no_cache:
            return fetch_fn()
        return self.cache.get_or_fetch(key, fetch_fn, cache_empty=False)

    def _request(self, path: str, access_token: str = None, params: Dict = None, method: str = "GET"):
        """Issue one platform request and return the unwrapped Response payload"""
        url = f"{self.base_url}{path}"
        headers = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        logger.debug(f"{method} {url} {sanitize_sensitive_data(headers)}")
        try:
            response = self.session.request(method, url, headers=headers, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Bungie request to {path} failed: {e}")
            raise NetworkException(f"Bungie request to {path} failed: {e}", error=e) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or "ErrorCode" not in body:
            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                raise NetworkException(f"Bungie request to {path} failed: {e}", error=e) from e
            raise RemoteServiceException(-1, "Invalid response from the Bungie platform", str(response.status_code))

        error_code = body.get("ErrorCode")
        if error_code == ERROR_CODE_SUCCESS:
            return body.get("Response")
        if error_code == ERROR_CODE_FEATURE_UNAVAILABLE:
            logger.info(f"Bungie reports {path} is currently unavailable ({body.get('ErrorStatus', '')})")
            return FEATURE_UNAVAILABLE

        raise RemoteServiceException(error_code or -1, body.get("Message") or "", body.get("ErrorStatus") or "")

    # Manifest

    def _fetch_manifest(self):
        manifest = self._request("/Destiny/Manifest/")
        return None if manifest is FEATURE_UNAVAILABLE else manifest

    def get_manifest(self, no_cache: bool = False) -> Optional[Dict]:
        """Latest manifest definition; served from the cache unless no_cache is set"""
        return self._cached(MANIFEST_CACHE_KEY, self._fetch_manifest, no_cache=no_cache)

    def get_item_definition(self, item_hash) -> Optional[Dict]:
        item_hash = _require(item_hash, "Item hash")
        response = self._request(f"/Destiny/Manifest/InventoryItem/{item_hash}/")
        if response is FEATURE_UNAVAILABLE or response is None:
            return None
        data = response.get("data") or {}
        return data.get("inventoryItem") or data or None

    # Accounts

    def get_character_summary(self, membership_id, membership_type) -> List[Dict]:
        membership_id = _require(membership_id, "Membership id")
        membership_type = _membership_type(membership_type)
        response = self._request(f"/Destiny/{int(membership_type)}/Account/{membership_id}/Summary/")
        if response is FEATURE_UNAVAILABLE or not response:
            return []
        return list((response.get("data") or {}).get("characters") or [])

    def get_membership_id_from_display_name(self, display_name, membership_type) -> Optional[str]:
        display_name = _require(display_name, "Display name")
        membership_type = _membership_type(membership_type)
        response = self._request(
            f"/Destiny/{int(membership_type)}/Stats/GetMembershipIdByDisplayName/{quote(display_name, safe='')}/"
        )
        if response is FEATURE_UNAVAILABLE or response in (None, "", "0"):
            return None
        return str(response)

    # Vendors

    def get_vendor(self, character_id, vendor_hash, access_token,
                   membership_type=MembershipType.TIGER_PSN) -> Optional[Dict]:
        """Vendor data for a character: vendorHash, nextRefreshDate, saleItemCategories"""
        character_id = _require(character_id, "Character id")
        vendor_hash = _require(vendor_hash, "Vendor hash")
        access_token = _require(access_token, "Access token")
        membership_type = _membership_type(membership_type)

        response = self._request(
            f"/Destiny/{int(membership_type)}/MyAccount/Character/{character_id}/Vendor/{vendor_hash}/",
            access_token=access_token,
        )
        if response is FEATURE_UNAVAILABLE or not response:
            return None
        return response.get("data")

    def get_vendor_sale_items(self, character_id, vendor_hash, category_title: str, access_token,
                              membership_type=MembershipType.TIGER_PSN) -> List[Dict]:
        """Sale items of one category of a vendor; empty when the vendor has nothing to offer"""
        category_title = _require(category_title, "Category title")
        _require(character_id, "Character id")
        _require(vendor_hash, "Vendor hash")
        _require(access_token, "Access token")
        _membership_type(membership_type)

        def fetch():
            data = self.get_vendor(character_id, vendor_hash, access_token, membership_type=membership_type)
            if not data:
                return []
            return find_sale_items(data.get("saleItemCategories"), category_title)

        return self._cached(f"{VENDOR_CACHE_PREFIX}{vendor_hash}:{category_title}", fetch)

    def get_field_test_weapons(self, character_id, access_token, membership_type=MembershipType.TIGER_PSN):
        return self.get_vendor_sale_items(character_id, GUNSMITH_HASH, CATEGORY_FIELD_TEST_WEAPONS,
                                          access_token, membership_type=membership_type)

    def get_foundry_orders(self, character_id, access_token, membership_type=MembershipType.TIGER_PSN):
        return self.get_vendor_sale_items(character_id, GUNSMITH_HASH, CATEGORY_FOUNDRY_ORDERS,
                                          access_token, membership_type=membership_type)

    def get_iron_banner_event_rewards(self, character_id, access_token, membership_type=MembershipType.TIGER_PSN):
        return self.get_vendor_sale_items(character_id, LORD_SALADIN_HASH, CATEGORY_EVENT_REWARDS,
                                          access_token, membership_type=membership_type)

    def get_xur_exotic_gear(self) -> List[Dict]:
        """Xur's exotic gear; empty while Xur is away"""
        def fetch():
            response = self._request("/Destiny/Advisors/Xur/")
            if response is FEATURE_UNAVAILABLE or not response:
                return []
            data = response.get("data") or {}
            return find_sale_items(data.get("saleItemCategories"), CATEGORY_EXOTIC_GEAR)

        return self._cached(f"{VENDOR_CACHE_PREFIX}xur:{CATEGORY_EXOTIC_GEAR}", fetch)
