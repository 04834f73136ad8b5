"""
Unit tests for dashboard statistics.
"""

import uuid
from types import SimpleNamespace

import pytest

from app.models.attendance import AttendanceStatus
from app.models.homework import SubmissionStatus
from app.services.statistics import (
    attendance_percentage,
    summarize_attendance,
    summarize_homework,
    summarize_roster,
)


def record(status, student_id=None):
    return SimpleNamespace(status=status, student_id=student_id or uuid.uuid4())


def submission(status, grade=None, max_grade=100):
    return SimpleNamespace(status=status, grade=grade, assignment=SimpleNamespace(max_grade=max_grade))


@pytest.mark.parametrize("attended,total,expected", [
    (0, 0, 0),
    (1, 2, 50),
    (2, 3, 67),
    (1, 8, 13),  # 12.5 rounds up
    (5, 5, 100),
])
def test_attendance_percentage(attended, total, expected):
    assert attendance_percentage(attended, total) == expected


def test_late_counts_as_attended():
    summary = summarize_attendance([
        record(AttendanceStatus.PRESENT),
        record(AttendanceStatus.LATE),
        record(AttendanceStatus.ABSENT),
        record(AttendanceStatus.EXCUSED),
    ])

    assert summary.total == 4
    assert summary.late == 1
    assert summary.excused == 1
    assert summary.percentage == 50


def test_roster_summary_ignores_strangers():
    enrolled = uuid.uuid4()
    stranger = uuid.uuid4()

    summary = summarize_roster([enrolled], [record(AttendanceStatus.ABSENT, stranger)])

    assert summary.total == 1
    assert summary.present == 1
    assert summary.percentage == 100


def test_homework_average_normalises_scales():
    summary = summarize_homework([
        submission(SubmissionStatus.GRADED, grade=40, max_grade=50),   # 80%
        submission(SubmissionStatus.GRADED, grade=90, max_grade=100),  # 90%
        submission(SubmissionStatus.PENDING),
        submission(SubmissionStatus.REVIEWED),
    ])

    assert summary.total == 4
    assert summary.graded == 2
    assert summary.pending == 1
    assert summary.reviewed == 1
    assert summary.average_grade == 85.0
