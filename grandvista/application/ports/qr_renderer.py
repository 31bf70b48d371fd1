from typing import Protocol

from ...db.models.enums import QRFormat


class QRRenderer(Protocol):
    def render(self, url: str, format: QRFormat) -> bytes:
        ...
