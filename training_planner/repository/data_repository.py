"""Repository layer responsible for all database access."""

from __future__ import annotations

import json
import sqlite3
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, Sequence

from training_planner.domain.models import (
    CertificateExpiryRecord,
    EmployeeAvailabilityRecord,
    EmployeeStatus,
    ExistingSession,
    GeoPoint,
    ImpactLevel,
    LearningProfile,
    ProviderCandidate,
    ProviderCourse,
    WorkArrangement,
)
from training_planner.utils.config import Settings, get_settings
from training_planner.utils.logger import get_logger


logger = get_logger(__name__)

ENROLLED_PARTICIPANT_STATUSES = ("enrolled", "attended")


class SchedulingDataSource(Protocol):
    """Read-only snapshot access the scheduling services depend on."""

    def list_eligible_providers(self, course_id: str) -> list[ProviderCandidate]: ...

    def get_provider(self, provider_id: str) -> Optional[ProviderCandidate]: ...

    def list_active_availability(self, reference_date: date) -> list[EmployeeAvailabilityRecord]: ...

    def list_availability_for_employees(
        self, employee_ids: Sequence[str]
    ) -> list[EmployeeAvailabilityRecord]: ...

    def list_learning_profiles(self) -> list[LearningProfile]: ...

    def list_certificate_expiry(
        self,
        *,
        statuses: Sequence[str],
        license_id: Optional[str] = None,
    ) -> list[CertificateExpiryRecord]: ...

    def list_scheduled_sessions(
        self,
        *,
        from_date: date,
        license_id: Optional[str] = None,
    ) -> list[ExistingSession]: ...

    def list_provider_sessions(
        self, provider_id: str, dates: Sequence[date]
    ) -> list[ExistingSession]: ...

    def list_work_arrangements(self) -> list[WorkArrangement]: ...


def _optional_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    return date.fromisoformat(str(value))


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


class DataRepository:
    """Encapsulates SQLite access so scheduling logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all snapshot tables before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS employees (
                        id TEXT PRIMARY KEY,
                        first_name TEXT NOT NULL,
                        last_name TEXT NOT NULL,
                        department TEXT,
                        work_location TEXT
                    );

                    CREATE TABLE IF NOT EXISTS course_providers (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        default_hourly_rate REAL,
                        travel_cost_per_km REAL,
                        base_location_lat REAL,
                        base_location_lng REAL,
                        min_group_size INTEGER,
                        max_group_size INTEGER,
                        setup_cost REAL NOT NULL DEFAULT 0,
                        cancellation_fee REAL NOT NULL DEFAULT 0,
                        advance_booking_days INTEGER,
                        cost_currency TEXT NOT NULL DEFAULT 'EUR',
                        active INTEGER NOT NULL DEFAULT 1 CHECK (active IN (0,1))
                    );

                    CREATE TABLE IF NOT EXISTS course_provider_courses (
                        provider_id TEXT NOT NULL,
                        course_id TEXT NOT NULL,
                        cost_breakdown TEXT NOT NULL DEFAULT '{}',
                        number_of_sessions INTEGER NOT NULL DEFAULT 1,
                        max_participants INTEGER,
                        PRIMARY KEY (provider_id, course_id),
                        FOREIGN KEY (provider_id) REFERENCES course_providers(id)
                    );

                    CREATE TABLE IF NOT EXISTS course_certificates (
                        course_id TEXT NOT NULL,
                        license_id TEXT NOT NULL,
                        PRIMARY KEY (course_id, license_id)
                    );

                    CREATE TABLE IF NOT EXISTS employee_availability (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        employee_id TEXT NOT NULL,
                        availability_type TEXT NOT NULL,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'active',
                        impact_level TEXT NOT NULL DEFAULT 'low',
                        FOREIGN KEY (employee_id) REFERENCES employees(id)
                    );

                    CREATE TABLE IF NOT EXISTS employee_learning_profiles (
                        employee_id TEXT PRIMARY KEY,
                        learning_style TEXT NOT NULL,
                        training_capacity_per_month INTEGER,
                        language_preference TEXT,
                        performance_level TEXT,
                        previous_training_success_rate REAL,
                        FOREIGN KEY (employee_id) REFERENCES employees(id)
                    );

                    CREATE TABLE IF NOT EXISTS certificate_expiry_analysis (
                        employee_id TEXT NOT NULL,
                        license_id TEXT NOT NULL,
                        employee_status TEXT NOT NULL,
                        days_until_expiry INTEGER,
                        expiry_date TEXT,
                        PRIMARY KEY (employee_id, license_id),
                        FOREIGN KEY (employee_id) REFERENCES employees(id)
                    );

                    CREATE TABLE IF NOT EXISTS trainings (
                        id TEXT PRIMARY KEY,
                        title TEXT NOT NULL,
                        course_id TEXT NOT NULL,
                        provider_id TEXT,
                        date TEXT NOT NULL,
                        time TEXT,
                        location TEXT,
                        max_participants INTEGER NOT NULL CHECK (max_participants > 0),
                        status TEXT NOT NULL DEFAULT 'scheduled'
                    );

                    CREATE TABLE IF NOT EXISTS training_participants (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        training_id TEXT NOT NULL,
                        employee_id TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'enrolled',
                        FOREIGN KEY (training_id) REFERENCES trainings(id)
                    );

                    CREATE TABLE IF NOT EXISTS employee_work_arrangements (
                        employee_id TEXT PRIMARY KEY,
                        work_schedule TEXT,
                        primary_work_location TEXT,
                        travel_restrictions TEXT,
                        mobility_limitations TEXT,
                        max_travel_distance_km REAL,
                        FOREIGN KEY (employee_id) REFERENCES employees(id)
                    );

                    CREATE INDEX IF NOT EXISTS idx_availability_employee_status
                    ON employee_availability(employee_id, status);

                    CREATE INDEX IF NOT EXISTS idx_trainings_status_date
                    ON trainings(status, date);

                    CREATE INDEX IF NOT EXISTS idx_participants_training_status
                    ON training_participants(training_id, status);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_demo_data_if_empty(self) -> None:
        """Insert a small deterministic dataset only when no employees exist."""
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS count FROM employees;").fetchone()
            if int(row["count"]) > 0:
                logger.info("Demo data already present; skipping seed")
                return

        employees = [
            ("emp-001", "Anna", "de Vries", "Operations", "Rotterdam"),
            ("emp-002", "Bram", "Jansen", "Operations", "Rotterdam"),
            ("emp-003", "Chantal", "Bakker", "Operations", "Rotterdam"),
            ("emp-004", "Daan", "Visser", "Logistics", "Utrecht"),
            ("emp-005", "Eva", "Smit", "Logistics", "Utrecht"),
            ("emp-006", "Finn", "Mulder", "Logistics", "Utrecht"),
        ]
        for employee_id, first, last, department, location in employees:
            self.add_employee(employee_id, first, last, department, location)

        self.add_provider(
            ProviderCandidate(
                id="prov-north",
                name="North Safety Academy",
                hourly_rate=95.0,
                travel_cost_per_km=1.5,
                base_location=GeoPoint(lat=51.9225, lng=4.47917),
                min_group_size=4,
                max_group_size=12,
                setup_cost=150.0,
                advance_booking_days=10,
                courses=(ProviderCourse(course_id="course-bhv", max_participants=12),),
            )
        )
        self.add_provider(
            ProviderCandidate(
                id="prov-central",
                name="Central Training Group",
                hourly_rate=80.0,
                travel_cost_per_km=2.0,
                base_location=GeoPoint(lat=52.0907, lng=5.1214),
                min_group_size=3,
                max_group_size=15,
                advance_booking_days=21,
                courses=(ProviderCourse(course_id="course-bhv", max_participants=15),),
            )
        )
        self.link_course_certificate("course-bhv", "lic-bhv")

        for employee_id, status, days in [
            ("emp-001", EmployeeStatus.EXPIRED, -5),
            ("emp-002", EmployeeStatus.RENEWAL_DUE, 20),
            ("emp-003", EmployeeStatus.RENEWAL_APPROACHING, 75),
            ("emp-004", EmployeeStatus.NEW, None),
            ("emp-005", EmployeeStatus.RENEWAL_APPROACHING, 110),
            ("emp-006", EmployeeStatus.RENEWAL_DUE, 25),
        ]:
            self.add_certificate_expiry(
                employee_id=employee_id,
                license_id="lic-bhv",
                employee_status=status,
                days_until_expiry=days,
                expiry_date=date.today() + timedelta(days=days) if days is not None else None,
            )
        self.add_learning_profile(LearningProfile(employee_id="emp-002", learning_style="visual"))
        self.add_learning_profile(LearningProfile(employee_id="emp-005", learning_style="hands_on"))
        self.add_training(
            training_id="train-bhv-refresh",
            title="BHV Refresher Rotterdam",
            course_id="course-bhv",
            session_date=date.today() + timedelta(days=21),
            max_participants=4,
            provider_id="prov-north",
            start_time="09:00",
            location="Rotterdam",
        )
        self.enroll_participant("train-bhv-refresh", "emp-001")
        logger.info("Demo seed completed with %s employees", len(employees))

    def add_employee(
        self,
        employee_id: str,
        first_name: str,
        last_name: str,
        department: Optional[str] = None,
        work_location: Optional[str] = None,
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO employees (id, first_name, last_name, department, work_location)
                VALUES (?, ?, ?, ?, ?);
                """,
                (employee_id, first_name, last_name, department, work_location),
            )
            conn.commit()

    def add_provider(self, provider: ProviderCandidate, active: bool = True) -> None:
        location = provider.base_location
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO course_providers (
                    id, name, default_hourly_rate, travel_cost_per_km,
                    base_location_lat, base_location_lng, min_group_size, max_group_size,
                    setup_cost, cancellation_fee, advance_booking_days, cost_currency, active
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    provider.id,
                    provider.name,
                    provider.hourly_rate,
                    provider.travel_cost_per_km,
                    location.lat if location else None,
                    location.lng if location else None,
                    provider.min_group_size,
                    provider.max_group_size,
                    provider.setup_cost,
                    provider.cancellation_fee,
                    provider.advance_booking_days,
                    provider.currency,
                    1 if active else 0,
                ),
            )
            conn.executemany(
                """
                INSERT OR REPLACE INTO course_provider_courses (
                    provider_id, course_id, cost_breakdown, number_of_sessions, max_participants
                )
                VALUES (?, ?, ?, ?, ?);
                """,
                [
                    (
                        provider.id,
                        course.course_id,
                        json.dumps(dict(course.cost_breakdown)),
                        course.number_of_sessions,
                        course.max_participants,
                    )
                    for course in provider.courses
                ],
            )
            conn.commit()

    def link_course_certificate(self, course_id: str, license_id: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO course_certificates (course_id, license_id) VALUES (?, ?);",
                (course_id, license_id),
            )
            conn.commit()

    def add_availability(self, record: EmployeeAvailabilityRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO employee_availability (
                    employee_id, availability_type, start_date, end_date, status, impact_level
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (
                    record.employee_id,
                    record.availability_type,
                    record.start_date.isoformat(),
                    record.end_date.isoformat(),
                    record.status,
                    record.impact_level.value,
                ),
            )
            conn.commit()

    def add_learning_profile(self, profile: LearningProfile) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO employee_learning_profiles (
                    employee_id, learning_style, training_capacity_per_month,
                    language_preference, performance_level, previous_training_success_rate
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (
                    profile.employee_id,
                    profile.learning_style,
                    profile.training_capacity_per_month,
                    profile.language_preference,
                    profile.performance_level,
                    profile.previous_training_success_rate,
                ),
            )
            conn.commit()

    def add_certificate_expiry(
        self,
        *,
        employee_id: str,
        license_id: str,
        employee_status: EmployeeStatus,
        days_until_expiry: Optional[int] = None,
        expiry_date: Optional[date] = None,
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO certificate_expiry_analysis (
                    employee_id, license_id, employee_status, days_until_expiry, expiry_date
                )
                VALUES (?, ?, ?, ?, ?);
                """,
                (
                    employee_id,
                    license_id,
                    employee_status.value,
                    days_until_expiry,
                    expiry_date.isoformat() if expiry_date else None,
                ),
            )
            conn.commit()

    def add_training(
        self,
        *,
        training_id: str,
        title: str,
        course_id: str,
        session_date: date,
        max_participants: int,
        provider_id: Optional[str] = None,
        start_time: Optional[str] = None,
        location: Optional[str] = None,
        status: str = "scheduled",
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO trainings (
                    id, title, course_id, provider_id, date, time, location, max_participants, status
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    training_id,
                    title,
                    course_id,
                    provider_id,
                    session_date.isoformat(),
                    start_time,
                    location,
                    max_participants,
                    status,
                ),
            )
            conn.commit()

    def enroll_participant(
        self,
        training_id: str,
        employee_id: str,
        status: str = "enrolled",
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO training_participants (training_id, employee_id, status)
                VALUES (?, ?, ?);
                """,
                (training_id, employee_id, status),
            )
            conn.commit()

    def add_work_arrangement(self, arrangement: WorkArrangement) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO employee_work_arrangements (
                    employee_id, work_schedule, primary_work_location,
                    travel_restrictions, mobility_limitations, max_travel_distance_km
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (
                    arrangement.employee_id,
                    arrangement.work_schedule,
                    arrangement.primary_work_location,
                    arrangement.travel_restrictions,
                    arrangement.mobility_limitations,
                    arrangement.max_travel_distance_km,
                ),
            )
            conn.commit()

    def list_eligible_providers(self, course_id: str) -> list[ProviderCandidate]:
        """Active providers able to deliver `course_id`, in insertion order."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT cp.*
                FROM course_providers AS cp
                INNER JOIN course_provider_courses AS cpc ON cpc.provider_id = cp.id
                WHERE cp.active = 1 AND cpc.course_id = ?
                ORDER BY cp.rowid ASC;
                """,
                (course_id,),
            ).fetchall()
            return [self._provider_from_row(conn, row) for row in rows]

    def get_provider(self, provider_id: str) -> Optional[ProviderCandidate]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM course_providers WHERE id = ?;",
                (provider_id,),
            ).fetchone()
            if row is None:
                return None
            return self._provider_from_row(conn, row)

    def _provider_from_row(self, conn: sqlite3.Connection, row: sqlite3.Row) -> ProviderCandidate:
        course_rows = conn.execute(
            """
            SELECT course_id, cost_breakdown, number_of_sessions, max_participants
            FROM course_provider_courses
            WHERE provider_id = ?
            ORDER BY course_id ASC;
            """,
            (row["id"],),
        ).fetchall()
        location = None
        if row["base_location_lat"] is not None and row["base_location_lng"] is not None:
            location = GeoPoint(
                lat=float(row["base_location_lat"]),
                lng=float(row["base_location_lng"]),
            )
        return ProviderCandidate(
            id=str(row["id"]),
            name=str(row["name"]),
            hourly_rate=_optional_float(row["default_hourly_rate"]),
            travel_cost_per_km=_optional_float(row["travel_cost_per_km"]),
            base_location=location,
            min_group_size=_optional_int(row["min_group_size"]),
            max_group_size=_optional_int(row["max_group_size"]),
            setup_cost=float(row["setup_cost"]),
            cancellation_fee=float(row["cancellation_fee"]),
            advance_booking_days=_optional_int(row["advance_booking_days"]),
            currency=str(row["cost_currency"] or self._settings.default_currency),
            courses=tuple(
                ProviderCourse(
                    course_id=str(course["course_id"]),
                    cost_breakdown=json.loads(course["cost_breakdown"] or "{}"),
                    number_of_sessions=int(course["number_of_sessions"]),
                    max_participants=_optional_int(course["max_participants"]),
                )
                for course in course_rows
            ),
        )

    def list_active_availability(self, reference_date: date) -> list[EmployeeAvailabilityRecord]:
        """Active absences that have not ended before `reference_date`."""
        return self._query_availability(
            "WHERE ea.status = 'active' AND ea.end_date >= ?",
            (reference_date.isoformat(),),
        )

    def list_availability_for_employees(
        self,
        employee_ids: Sequence[str],
    ) -> list[EmployeeAvailabilityRecord]:
        if not employee_ids:
            return []
        placeholders = ", ".join("?" for _ in employee_ids)
        return self._query_availability(
            f"WHERE ea.status = 'active' AND ea.employee_id IN ({placeholders})",
            tuple(employee_ids),
        )

    def _query_availability(
        self,
        where_clause: str,
        params: Iterable[Any],
    ) -> list[EmployeeAvailabilityRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT
                    ea.employee_id,
                    ea.availability_type,
                    ea.start_date,
                    ea.end_date,
                    ea.status,
                    ea.impact_level,
                    e.first_name,
                    e.last_name
                FROM employee_availability AS ea
                LEFT JOIN employees AS e ON e.id = ea.employee_id
                {where_clause}
                ORDER BY ea.id ASC;
                """,
                tuple(params),
            ).fetchall()
        return [
            EmployeeAvailabilityRecord(
                employee_id=str(row["employee_id"]),
                availability_type=str(row["availability_type"]),
                start_date=date.fromisoformat(row["start_date"]),
                end_date=date.fromisoformat(row["end_date"]),
                status=str(row["status"]),
                impact_level=ImpactLevel(row["impact_level"]),
                employee_name=(
                    f"{row['first_name']} {row['last_name']}"
                    if row["first_name"] is not None
                    else None
                ),
            )
            for row in rows
        ]

    def list_learning_profiles(self) -> list[LearningProfile]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM employee_learning_profiles ORDER BY employee_id ASC;"
            ).fetchall()
        return [
            LearningProfile(
                employee_id=str(row["employee_id"]),
                learning_style=str(row["learning_style"]),
                training_capacity_per_month=_optional_int(row["training_capacity_per_month"]),
                language_preference=row["language_preference"],
                performance_level=row["performance_level"],
                previous_training_success_rate=_optional_float(
                    row["previous_training_success_rate"]
                ),
            )
            for row in rows
        ]

    def list_certificate_expiry(
        self,
        *,
        statuses: Sequence[str],
        license_id: Optional[str] = None,
    ) -> list[CertificateExpiryRecord]:
        """Expiry rows ordered most urgent first; unknown expiry sorts last."""
        if not statuses:
            return []
        placeholders = ", ".join("?" for _ in statuses)
        params: list[Any] = list(statuses)
        license_clause = ""
        if license_id is not None:
            license_clause = "AND cea.license_id = ?"
            params.append(license_id)

        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT
                    cea.employee_id,
                    cea.license_id,
                    cea.employee_status,
                    cea.days_until_expiry,
                    cea.expiry_date,
                    e.first_name,
                    e.last_name,
                    e.department,
                    e.work_location
                FROM certificate_expiry_analysis AS cea
                LEFT JOIN employees AS e ON e.id = cea.employee_id
                WHERE cea.employee_status IN ({placeholders}) {license_clause}
                ORDER BY
                    cea.days_until_expiry IS NULL ASC,
                    cea.days_until_expiry ASC,
                    cea.employee_id ASC;
                """,
                tuple(params),
            ).fetchall()
        return [
            CertificateExpiryRecord(
                employee_id=str(row["employee_id"]),
                license_id=str(row["license_id"]),
                employee_status=EmployeeStatus(row["employee_status"]),
                days_until_expiry=_optional_int(row["days_until_expiry"]),
                department=row["department"],
                work_location=row["work_location"],
                expiry_date=_optional_date(row["expiry_date"]),
                employee_name=(
                    f"{row['first_name']} {row['last_name']}"
                    if row["first_name"] is not None
                    else ""
                ),
            )
            for row in rows
        ]

    def calculate_employee_priority_score(
        self,
        employee_id: str,
        license_id: str,
        expiry_date: date,
        reference_date: Optional[date] = None,
    ) -> Optional[float]:
        """Renewal priority for one employee and license, or None without an expiry row.

        Expired certificates score 100, then 90/75/60 for expiry within 30/60/90
        days and 40 beyond that.
        """
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT employee_status
                FROM certificate_expiry_analysis
                WHERE employee_id = ? AND license_id = ?;
                """,
                (employee_id, license_id),
            ).fetchone()
        if row is None:
            return None

        days = (expiry_date - (reference_date or date.today())).days
        if row["employee_status"] == EmployeeStatus.EXPIRED.value or days <= 0:
            return 100.0
        if days <= 30:
            return 90.0
        if days <= 60:
            return 75.0
        if days <= 90:
            return 60.0
        return 40.0

    def list_scheduled_sessions(
        self,
        *,
        from_date: date,
        license_id: Optional[str] = None,
    ) -> list[ExistingSession]:
        """Scheduled trainings on or after `from_date`, optionally tied to a license."""
        params: list[Any] = [from_date.isoformat()]
        license_clause = ""
        if license_id is not None:
            license_clause = (
                "AND EXISTS (SELECT 1 FROM course_certificates AS cc "
                "WHERE cc.course_id = t.course_id AND cc.license_id = ?)"
            )
            params.append(license_id)
        return self._query_sessions(
            f"WHERE t.status = 'scheduled' AND t.date >= ? {license_clause}",
            params,
        )

    def list_provider_sessions(
        self,
        provider_id: str,
        dates: Sequence[date],
    ) -> list[ExistingSession]:
        if not dates:
            return []
        placeholders = ", ".join("?" for _ in dates)
        return self._query_sessions(
            f"WHERE t.status = 'scheduled' AND t.provider_id = ? AND t.date IN ({placeholders})",
            [provider_id, *(day.isoformat() for day in dates)],
        )

    def _query_sessions(self, where_clause: str, params: list[Any]) -> list[ExistingSession]:
        status_placeholders = ", ".join("?" for _ in ENROLLED_PARTICIPANT_STATUSES)
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT
                    t.*,
                    (
                        SELECT COUNT(*)
                        FROM training_participants AS tp
                        WHERE tp.training_id = t.id AND tp.status IN ({status_placeholders})
                    ) AS enrolled_count,
                    (
                        SELECT GROUP_CONCAT(cc.license_id)
                        FROM course_certificates AS cc
                        WHERE cc.course_id = t.course_id
                    ) AS license_ids
                FROM trainings AS t
                {where_clause}
                ORDER BY t.date ASC, t.rowid ASC;
                """,
                (*ENROLLED_PARTICIPANT_STATUSES, *params),
            ).fetchall()
        return [
            ExistingSession(
                id=str(row["id"]),
                title=str(row["title"]),
                course_id=str(row["course_id"]),
                session_date=date.fromisoformat(row["date"]),
                max_participants=int(row["max_participants"]),
                enrolled_count=int(row["enrolled_count"]),
                start_time=row["time"],
                location=row["location"],
                provider_id=row["provider_id"],
                license_ids=frozenset(
                    item for item in (row["license_ids"] or "").split(",") if item
                ),
            )
            for row in rows
        ]

    def list_work_arrangements(self) -> list[WorkArrangement]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM employee_work_arrangements ORDER BY employee_id ASC;"
            ).fetchall()
        return [
            WorkArrangement(
                employee_id=str(row["employee_id"]),
                work_schedule=row["work_schedule"],
                primary_work_location=row["primary_work_location"],
                travel_restrictions=row["travel_restrictions"],
                mobility_limitations=row["mobility_limitations"],
                max_travel_distance_km=_optional_float(row["max_travel_distance_km"]),
            )
            for row in rows
        ]
