from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from sqlalchemy.orm import Session

from app.schemas.calendar import DAY_ORDER, canonical_academic_year
from app.schemas.conflict import ConflictRecord, ConflictReport
from app.schemas.schedule import ScheduleRow
from app.services.timetable_store import TimetableFilters, list_active


def _time_range(row: ScheduleRow) -> str:
    return f"{row.start_time.strftime('%H:%M')} - {row.end_time.strftime('%H:%M')}"


class ConflictService:
    def __init__(self, rows: Iterable[ScheduleRow]):
        # Inactive rows and duplicate ids never take part in a collision.
        unique: Dict[int, ScheduleRow] = {}
        for row in rows:
            if row.is_active and row.timetable_id not in unique:
                unique[row.timetable_id] = row
        self.rows: List[ScheduleRow] = sorted(unique.values(), key=lambda row: row.timetable_id)

    def detect_conflicts(self) -> ConflictReport:
        conflicts: List[ConflictRecord] = []
        section_duplicates: List[ConflictRecord] = []

        # Bucket by period and slot; only rows in the same bucket can collide.
        buckets: Dict[Tuple[str, int, int], List[ScheduleRow]] = defaultdict(list)
        for row in self.rows:
            buckets[(canonical_academic_year(row.academic_year), row.semester, row.slot_id)].append(row)

        for (academic_year, _, _), bucket in buckets.items():
            n = len(bucket)
            for i in range(n):
                a = bucket[i]
                for j in range(i + 1, n):
                    b = bucket[j]
                    if a.classroom_id == b.classroom_id:
                        conflicts.append(self._record(
                            a,
                            b,
                            "classroom",
                            academic_year,
                            resource=f"{a.room_number} ({a.building})",
                            description=f"Classroom {a.room_number} is double-booked: {a.subject_code} and {b.subject_code}",
                        ))
                    if a.faculty_id == b.faculty_id:
                        conflicts.append(self._record(
                            a,
                            b,
                            "faculty",
                            academic_year,
                            resource=a.faculty_name,
                            description=f"{a.faculty_name} is teaching {a.subject_code} and {b.subject_code} at the same time",
                        ))
                    if a.subject_id == b.subject_id and a.section == b.section:
                        section_duplicates.append(self._record(
                            a,
                            b,
                            "section",
                            academic_year,
                            resource=f"{a.subject_code} section {a.section}",
                            description=f"{a.subject_code} section {a.section} is scheduled twice in {a.slot_name}",
                        ))

        conflicts.sort(key=self._sort_key)
        section_duplicates.sort(key=self._sort_key)
        return ConflictReport(
            conflicts=conflicts,
            section_duplicates=section_duplicates,
            count=len(conflicts),
        )

    @staticmethod
    def _record(
        a: ScheduleRow,
        b: ScheduleRow,
        conflict_type: str,
        academic_year: str,
        *,
        resource: str,
        description: str,
    ) -> ConflictRecord:
        return ConflictRecord(
            id=f"{conflict_type}-{a.timetable_id}-{b.timetable_id}",
            entry_a=a.timetable_id,
            entry_b=b.timetable_id,
            conflict_type=conflict_type,
            slot_id=a.slot_id,
            day=a.day_of_week,
            start_time=a.start_time,
            end_time=a.end_time,
            time_range=_time_range(a),
            academic_year=academic_year,
            semester=a.semester,
            subject_a=f"{a.subject_code} - {a.subject_name}",
            subject_b=f"{b.subject_code} - {b.subject_name}",
            resource=resource,
            description=description,
        )

    @staticmethod
    def _sort_key(record: ConflictRecord):
        return (
            DAY_ORDER.get(record.day, len(DAY_ORDER)),
            record.start_time,
            record.entry_a,
            record.entry_b,
            record.conflict_type,
        )


def detect_schedule_conflicts(db: Session, *, academic_year: str, semester: int) -> ConflictReport:
    rows = list_active(db, TimetableFilters(academic_year=academic_year, semester=semester))
    return ConflictService(rows).detect_conflicts()
