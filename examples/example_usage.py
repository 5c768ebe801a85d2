"""Ví dụ: dùng service layer (không qua Flask).

Clock one actor in through the coordinator, then print the org-wide summary.
Needs a reachable MySQL (DB_* env vars) and verification service (VERIFY_URL).
"""

import asyncio
import importlib

from config import get_settings_module

from attendance_gate.attendance.providers import ReportedPosition, SubmittedPhoto
from attendance_gate.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(settings)

    outcome = asyncio.run(
        container.attendance_service.clock(
            1,
            1,
            locate=ReportedPosition(latitude=10.7769, longitude=106.7009, accuracy=12.0),
            capture=SubmittedPhoto(photo_ref="uploads/selfie_demo.jpg"),
        )
    )
    for t in outcome.transitions:
        print(t.state.value, t.reason.value if t.reason else "")

    print(container.attendance_service.get_today_ui(1))
    print(container.org_report_service.build_dashboard())


if __name__ == "__main__":
    main()
