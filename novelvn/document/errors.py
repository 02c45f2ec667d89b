from __future__ import annotations

from dataclasses import dataclass


@dataclass
class DocumentError(Exception):
    message: str
    location: str | None = None
    source: str | None = None

    def __str__(self) -> str:  # pragma: no cover - formatting
        loc = f" (at {self.location})" if self.location else ""
        src = f"\n  >> {self.source}" if self.source else ""
        return f"{self.message}{loc}{src}"
