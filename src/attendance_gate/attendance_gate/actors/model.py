from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Actor:
    """Thực thể miền (domain): Nhân viên được theo dõi chấm công.

    Lưu ý: ``reference_photo`` là ảnh khuôn mặt đã đăng ký (có thể chưa có).
    """

    actor_id: int
    full_name: str
    username: str
    department: Optional[str] = None
    reference_photo: Optional[str] = None
    is_active: bool = True

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or "Unknown"
