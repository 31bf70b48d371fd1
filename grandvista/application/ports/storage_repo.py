from typing import Optional, Protocol


class StorageRepository(Protocol):
    def save_bytes(self, key: str, data: bytes) -> str:
        ...

    def read_bytes(self, key: str) -> Optional[bytes]:
        ...

    def delete(self, key: str) -> bool:
        ...
