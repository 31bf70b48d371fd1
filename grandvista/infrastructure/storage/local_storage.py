import logging
import os
import re
from typing import Optional

from ...application.ports.storage_repo import StorageRepository

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_\-]+(\.[A-Za-z0-9]+)?$")


def is_safe_key(key: str) -> bool:
    return bool(key) and bool(_SAFE_KEY.match(key))


class LocalStorageRepository(StorageRepository):
    def __init__(self, base_dir: str) -> None:
        self.base_dir = base_dir
        os.makedirs(self.base_dir, exist_ok=True)

    def _path(self, key: str) -> str:
        if not is_safe_key(key):
            raise ValueError(f"Unsafe storage key: {key!r}")
        return os.path.join(self.base_dir, key)

    def save_bytes(self, key: str, data: bytes) -> str:
        path = self._path(key)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
        return path

    def read_bytes(self, key: str) -> Optional[bytes]:
        try:
            with open(self._path(key), "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def delete(self, key: str) -> bool:
        try:
            os.remove(self._path(key))
            return True
        except FileNotFoundError:
            return False
