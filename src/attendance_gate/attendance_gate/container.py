from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Any

from .actors.mysql_actor_repository import MySQLActorDirectory
from .actors.repository import ActorDirectory
from .attendance.coordinator import ClockCoordinator
from .attendance.deriver import StateDeriver
from .attendance.mysql_attendance_repository import MySQLAttendanceStore
from .attendance.repository import AttendanceStore
from .attendance.service import AttendanceService
from .biometrics.gate import BiometricGate
from .biometrics.http_verifier import HttpVerificationService
from .biometrics.service import VerificationService
from .common.datetime_utils import org_timezone, parse_hhmm
from .core import constants
from .database.connection import DatabaseConnection, DBConfig
from .reports.aggregator import Aggregator
from .reports.service import OrgReportService
from .sites.mysql_site_repository import MySQLSiteDirectory
from .sites.repository import SiteDirectory


@dataclass(frozen=True)
class Container:
    tz: tzinfo

    store: AttendanceStore
    sites: SiteDirectory
    actors: ActorDirectory

    gate: BiometricGate
    coordinator: ClockCoordinator
    attendance_service: AttendanceService
    org_report_service: OrgReportService


def wire(
    settings: Any,
    *,
    store: AttendanceStore,
    sites: SiteDirectory,
    actors: ActorDirectory,
    verifier: VerificationService,
    clock=None,
) -> Container:
    """Build services over the given adapters, using policy values from ``settings``."""
    tz = org_timezone(getattr(settings, "ORG_TIMEZONE", constants.DEFAULT_ORG_TIMEZONE))

    shift_start = getattr(settings, "SHIFT_START", None)
    if isinstance(shift_start, str):
        shift_start = parse_hhmm(shift_start)
    deriver = StateDeriver(shift_start=shift_start or constants.DEFAULT_SHIFT_START)

    gate = BiometricGate(
        verifier,
        threshold=getattr(settings, "BIOMETRIC_THRESHOLD", constants.DEFAULT_BIOMETRIC_THRESHOLD),
        timeout_seconds=getattr(settings, "VERIFY_TIMEOUT_SECONDS", constants.DEFAULT_VERIFY_TIMEOUT_SECONDS),
        require_reference=getattr(settings, "BIOMETRIC_REQUIRE_REFERENCE", constants.DEFAULT_REQUIRE_REFERENCE),
    )
    coordinator = ClockCoordinator(store=store, sites=sites, actors=actors, gate=gate, tz=tz, clock=clock)
    aggregator = Aggregator(
        recent_captures_limit=getattr(settings, "RECENT_CAPTURES_LIMIT", constants.DEFAULT_RECENT_CAPTURES_LIMIT)
    )

    return Container(
        tz=tz,
        store=store,
        sites=sites,
        actors=actors,
        gate=gate,
        coordinator=coordinator,
        attendance_service=AttendanceService(store, coordinator, deriver=deriver, tz=tz, clock=clock),
        org_report_service=OrgReportService(
            store, actors, sites, tz=tz, deriver=deriver, aggregator=aggregator, clock=clock
        ),
    )


def build_container(settings: Any) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(getattr(settings, "DB_CONFIG")))
    verifier = HttpVerificationService(
        getattr(settings, "VERIFY_URL"),
        api_key=getattr(settings, "VERIFY_API_KEY", None),
        timeout_seconds=getattr(settings, "VERIFY_TIMEOUT_SECONDS", constants.DEFAULT_VERIFY_TIMEOUT_SECONDS),
    )
    return wire(
        settings,
        store=MySQLAttendanceStore(conn),
        sites=MySQLSiteDirectory(conn),
        actors=MySQLActorDirectory(conn),
        verifier=verifier,
    )
