"""
Manifest synchronization for Ghost
Records new manifest versions and materializes their locale content database
"""

import logging
import os
import zipfile
from typing import Optional

import requests

from ghost.constants import BUNGIE_URL, DEFAULT_LOCALE, MANIFEST_CACHE_KEY
from ghost.exceptions import ContentFileNotFoundException, NetworkException, RemoteServiceException
from ghost.world_database import resolve_database_path

logger = logging.getLogger("main")

CHUNK_SIZE = 65536


class ManifestSync:
    """Keeps the manifest store and the content directory in step with the platform"""

    def __init__(self, client, manifest_store, cache, directory: str, locale: str = DEFAULT_LOCALE,
                 session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.client = client
        self.manifest_store = manifest_store
        self.cache = cache
        self.directory = directory
        self.locale = locale
        self.session = session or client.session
        self.timeout = timeout

    def synchronize(self, force: bool = False):
        """
        Fetch the latest manifest and make it current if its version changed.

        Returns the current manifest record.
        """
        manifest = self.client.get_manifest(no_cache=True)
        if not manifest:
            raise RemoteServiceException(-1, "The platform returned no manifest", "ManifestUnavailable")

        current = self.manifest_store.get_current()
        version = manifest.get("version")
        if force or current is None or current.version != (str(version) if version is not None else None):
            logger.info(f"New manifest version {version} (was {current.version if current else 'none'})")
            current = self.manifest_store.append(manifest)
            if self.cache is not None:
                self.cache.invalidate(MANIFEST_CACHE_KEY)
        else:
            logger.info(f"Manifest {version} is up to date")

        self.ensure_content_database(manifest)
        return current

    def ensure_content_database(self, manifest) -> str:
        """Download and unpack the locale content database unless it is already present"""
        relative_url = (manifest.get("mobileWorldContentPaths") or {}).get(self.locale)
        if not relative_url:
            raise ContentFileNotFoundException(
                self.directory, f"Manifest {manifest.get('version')} has no content database for locale {self.locale}"
            )

        database_path = resolve_database_path(self.directory, relative_url)
        if os.path.exists(database_path):
            logger.debug(f"{database_path} already present, skipping download")
            return database_path

        os.makedirs(self.directory, exist_ok=True)
        archive_path = database_path + ".zip"
        self._download(f"{BUNGIE_URL}{relative_url}", archive_path)
        try:
            self._extract(archive_path)
        finally:
            if os.path.exists(archive_path):
                os.remove(archive_path)

        if not os.path.exists(database_path):
            raise ContentFileNotFoundException(database_path, f"{os.path.basename(database_path)} missing from archive")

        logger.info(f"Content database ready at {database_path}")
        return database_path

    def _download(self, url: str, dest_path: str):
        # Write to temp file to ensure atomicity
        tmp_path = dest_path + ".tmp"
        logger.info(f"Downloading content database from {url}...")
        try:
            response = self.session.get(url, timeout=self.timeout, stream=True)
            response.raise_for_status()

            with open(tmp_path, "wb") as f:
                first_chunk = True
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if first_chunk:
                        # An HTML error page instead of the archive
                        if chunk.lstrip().startswith(b"<!DOCTYPE html") or chunk.lstrip().startswith(b"<html"):
                            raise NetworkException(f"Invalid content from {url}: received HTML")
                        first_chunk = False
                    f.write(chunk)

            os.replace(tmp_path, dest_path)
        except requests.RequestException as e:
            raise NetworkException(f"Failed to download {url}: {e}", error=e) from e
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def _extract(self, archive_path: str):
        try:
            with zipfile.ZipFile(archive_path) as archive:
                for entry in archive.infolist():
                    if entry.is_dir():
                        continue
                    target = resolve_database_path(self.directory, entry.filename)
                    # Only a member that passed its CRC check reaches its final name
                    tmp_path = target + ".tmp"
                    try:
                        with archive.open(entry) as fpin, open(tmp_path, "wb") as fpout:
                            while True:
                                chunk = fpin.read(CHUNK_SIZE)
                                if not chunk:
                                    break
                                fpout.write(chunk)
                        os.replace(tmp_path, target)
                    finally:
                        if os.path.exists(tmp_path):
                            os.remove(tmp_path)
                    logger.info(f"Extracted {os.path.basename(target)}")
        except zipfile.BadZipFile as e:
            raise ContentFileNotFoundException(archive_path, f"Corrupt content archive {archive_path}: {e}") from e
