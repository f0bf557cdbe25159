"""
Redirect Store

This service owns the mapping from short name to destination URL and
keeps a JSON file in sync with it.

Design Decisions:
- The file is loaded once, when the store is created
- Every mutation rewrites the whole file (indented JSON, single write)
- A single lock guards the mapping and the file, so concurrent add/remove
  calls cannot lose updates or interleave their writes
- A failed write does not roll back the in-memory change; the mapping and
  the file diverge until the next successful persist
"""

import json
import logging
import os
import threading
from typing import Dict, Tuple

from shorty.core.exceptions import PersistenceError
from shorty.core.validators import normalize_destination

logger = logging.getLogger(__name__)

JSON_INDENT = 4


def load_redirects(path: str) -> Dict[str, str]:
    """
    Read a redirect mapping from a JSON file.

    A missing file is the expected first-run state and yields an empty
    mapping.

    Args:
        path: Location of the redirect file

    Returns:
        Mapping of short name to destination

    Raises:
        PersistenceError: If the file is unreadable or is not a JSON
            object whose values are all strings
    """
    logger.info(f"Reading redirects from {os.path.abspath(path)}")

    if not os.path.exists(path):
        logger.info(f"{path} was not found, starting without any redirects")
        return {}

    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as e:
        raise PersistenceError("Unable to read the redirect file", path=path, original_error=e)

    try:
        redirects = json.loads(raw)
    except ValueError as e:
        raise PersistenceError("Unable to parse contents of redirect file", path=path, original_error=e)

    if not isinstance(redirects, dict) or not all(
        isinstance(short_name, str) and isinstance(destination, str)
        for short_name, destination in redirects.items()
    ):
        raise PersistenceError(
            "Unable to parse contents of redirect file, expected an object of strings",
            path=path
        )

    logger.info(f"Starting with the following redirects:\n{raw.decode('utf-8', errors='replace')}")
    return redirects


class RedirectStore:
    """
    In-memory redirect mapping mirrored to a JSON file.

    The store is the only owner of the mapping: the router reads and
    mutates it exclusively through the methods below.
    """

    def __init__(self, path: str):
        """
        Create the store and load the mapping from disk.

        Args:
            path: Location of the redirect file

        Raises:
            PersistenceError: If an existing file cannot be loaded. This is
                fatal for the process.
        """
        self.path = path
        self._lock = threading.Lock()
        with self._lock:
            self._redirects = load_redirects(path)

    def add(self, short_name: str, destination: str) -> str:
        """
        Add or overwrite a redirect and persist the mapping.

        Args:
            short_name: Key clients will request
            destination: Target URL, normalized before it is stored

        Returns:
            The normalized destination

        Raises:
            PersistenceError: If the file write fails. The in-memory
                mapping already holds the new entry.
        """
        destination = normalize_destination(destination)
        with self._lock:
            logger.info(f"Adding or updating redirect {short_name} -> {destination}")
            self._redirects[short_name] = destination
            self._persist()
        return destination

    def remove(self, short_name: str) -> None:
        """
        Delete a redirect, if present, and persist the mapping.

        Raises:
            PersistenceError: If the file write fails
        """
        with self._lock:
            logger.info(f"Removing redirect {short_name}")
            self._redirects.pop(short_name, None)
            self._persist()

    def lookup(self, short_name: str) -> Tuple[bool, str]:
        """Return (found, destination); a miss is (False, "")."""
        with self._lock:
            destination = self._redirects.get(short_name, "")
        return bool(destination), destination

    def snapshot(self) -> bytes:
        """
        Return the persisted file contents verbatim.

        Reads from disk rather than from memory so the listing reflects the
        last successful persist.

        Raises:
            PersistenceError: If the file cannot be read
        """
        with self._lock:
            try:
                with open(self.path, "rb") as f:
                    return f.read()
            except OSError as e:
                raise PersistenceError("Could not list redirects", path=self.path, original_error=e)

    def to_dict(self) -> Dict[str, str]:
        """Copy of the current in-memory mapping, for tests and debugging."""
        with self._lock:
            return dict(self._redirects)

    def _persist(self) -> None:
        # Caller holds self._lock.
        try:
            data = json.dumps(self._redirects, indent=JSON_INDENT)
        except (TypeError, ValueError) as e:
            raise PersistenceError(
                "Unable to marshal the current redirects to JSON",
                path=self.path,
                original_error=e
            )

        try:
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(data)
        except OSError as e:
            raise PersistenceError("Unable to write the redirect file", path=self.path, original_error=e)
