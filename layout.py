"""Badge layout document: built-in default, load with fallback, atomic save."""

import copy
import json
import logging
import os
import tempfile
from pathlib import Path

from filelock import FileLock, Timeout

from errors import LayoutSaveError

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("name", "email", "company", "mobile", "designation", "role", "id")

DEFAULT_LAYOUT = {
    "card": {"width": 336, "height": 210, "unit": "px", "background": "#ffffff", "border": True},
    "fields": {
        "name": {"enabled": True, "x": 20, "y": 20, "fontSize": 20, "bold": True},
        "email": {"enabled": True, "x": 20, "y": 50, "fontSize": 14, "bold": False},
        "company": {"enabled": True, "x": 20, "y": 72, "fontSize": 14, "bold": False},
        "mobile": {"enabled": True, "x": 20, "y": 94, "fontSize": 14, "bold": False},
        "designation": {"enabled": True, "x": 20, "y": 116, "fontSize": 14, "bold": False},
        "role": {"enabled": True, "x": 20, "y": 138, "fontSize": 14, "bold": False},
        "id": {"enabled": False, "x": 20, "y": 160, "fontSize": 12, "bold": False},
        "barcode": {"enabled": True, "x": 230, "y": 60, "width": 90, "height": 45, "scale": 1.0},
        "qrcode": {"enabled": False, "x": 230, "y": 120, "size": 70},
    },
}


def default_layout() -> dict:
    """A fresh copy of the built-in layout; callers may mutate it."""
    return copy.deepcopy(DEFAULT_LAYOUT)


class LayoutStore:
    """Single JSON file holding the process-wide badge layout."""

    def __init__(self, path: Path, lock_timeout: float = 5.0):
        self.path = Path(path)
        self.lock = FileLock(str(self.path) + ".lock", timeout=lock_timeout)

    def load(self) -> dict:
        """Return the saved layout, or the default when the file is missing or unreadable.

        A missing or unparsable file is replaced by the default document; an
        unparsable one is first moved aside to ``<name>.corrupt``.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except FileNotFoundError:
            return self._reset()
        except ValueError as e:
            logger.warning("Layout file %s unparsable, using defaults: %s", self.path, e)
            return self._reset(corrupt=True)
        except OSError as e:
            logger.warning("Layout file %s unreadable, using defaults: %s", self.path, e)
            return default_layout()
        if not isinstance(doc, dict):
            logger.warning("Layout file %s is not a JSON object, using defaults", self.path)
            return self._reset(corrupt=True)
        return doc

    def _reset(self, corrupt: bool = False) -> dict:
        doc = default_layout()
        try:
            if corrupt:
                os.replace(self.path, self.corrupt_path)
            self.save(doc)
        except (OSError, LayoutSaveError) as e:
            logger.warning("Could not write default layout: %s", e)
        return doc

    @property
    def corrupt_path(self) -> Path:
        return self.path.with_name(self.path.name + ".corrupt")

    def save(self, doc) -> None:
        """Replace the layout file with ``doc`` as-is. Readers see either the old or the new file."""
        try:
            payload = json.dumps(doc, indent=2)
        except (TypeError, ValueError) as e:
            raise LayoutSaveError(f"Layout is not JSON serializable: {e}") from e

        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.lock:
                fd, tmp_path = tempfile.mkstemp(
                    dir=self.path.parent, prefix=self.path.name + ".", suffix=".tmp"
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
                tmp_path = None
        except Timeout as e:
            raise LayoutSaveError(f"Timed out waiting for {self.lock.lock_file}") from e
        except OSError as e:
            raise LayoutSaveError(str(e)) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
        logger.info("Saved badge layout to %s", self.path)
