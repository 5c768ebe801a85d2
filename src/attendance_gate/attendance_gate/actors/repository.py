from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Actor


class ActorDirectory(Protocol):
    """Giao diện repository cho Actor.

    Lưu ý (DIP): tầng service phụ thuộc vào interface này, không phụ thuộc trực tiếp DB cụ thể.
    """

    def get_by_id(self, actor_id: int) -> Optional[Actor]:
        raise NotImplementedError

    def list_active(self) -> Sequence[Actor]:
        raise NotImplementedError
