"""
Dashboard statistics.

Pure aggregation over already-loaded rows; callers do the querying.
"""

import math
from typing import Iterable, Optional, Sequence
from uuid import UUID

from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.homework import HomeworkSubmission, SubmissionStatus
from app.schemas.attendance import AttendanceSummary
from app.schemas.homework import HomeworkSummary

ATTENDED = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


def attendance_percentage(attended: int, total: int) -> int:
    """Rounded share of attended days, 0 when there is nothing to count."""
    if total <= 0:
        return 0
    # Half rounds up
    return math.floor(attended / total * 100 + 0.5)


def _summary_from_statuses(statuses: Iterable[AttendanceStatus]) -> AttendanceSummary:
    counts = {status: 0 for status in AttendanceStatus}
    for status in statuses:
        counts[AttendanceStatus(status)] += 1

    total = sum(counts.values())
    attended = sum(counts[status] for status in ATTENDED)
    return AttendanceSummary(
        present=counts[AttendanceStatus.PRESENT],
        absent=counts[AttendanceStatus.ABSENT],
        late=counts[AttendanceStatus.LATE],
        excused=counts[AttendanceStatus.EXCUSED],
        total=total,
        percentage=attendance_percentage(attended, total),
    )


def summarize_attendance(records: Iterable[AttendanceRecord]) -> AttendanceSummary:
    """
    Count records per status and compute the attendance percentage.

    Args:
        records: Attendance rows (any mix of students and dates)

    Returns:
        AttendanceSummary with percentage = round((present + late) / total * 100)
    """
    return _summary_from_statuses(record.status for record in records)


def summarize_roster(student_ids: Sequence[UUID], records: Iterable[AttendanceRecord]) -> AttendanceSummary:
    """
    Summarize one class/date sheet over the enrolled roster.

    Students without a record are counted as present, matching how the
    marking sheet is pre-filled. Records for students not on the roster are
    ignored.
    """
    by_student = {record.student_id: record.status for record in records}
    return _summary_from_statuses(
        by_student.get(student_id, AttendanceStatus.PRESENT) for student_id in student_ids
    )


def summarize_homework(submissions: Iterable[HomeworkSubmission]) -> HomeworkSummary:
    """
    Count submissions per status and average the graded ones.

    Grades are normalised to a percentage of each assignment's max_grade so
    assignments with different scales can be averaged together.
    """
    summary = HomeworkSummary()
    scores = []
    for submission in submissions:
        summary.total += 1
        if submission.status == SubmissionStatus.PENDING:
            summary.pending += 1
        elif submission.status == SubmissionStatus.REVIEWED:
            summary.reviewed += 1
        elif submission.status == SubmissionStatus.GRADED:
            summary.graded += 1
            score = _grade_percentage(submission)
            if score is not None:
                scores.append(score)

    if scores:
        summary.average_grade = round(sum(scores) / len(scores), 1)
    return summary


def _grade_percentage(submission: HomeworkSubmission) -> Optional[float]:
    if submission.grade is None:
        return None
    max_grade = submission.assignment.max_grade if submission.assignment else 100
    return submission.grade / max_grade * 100
