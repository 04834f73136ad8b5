"""create_school_portal_schema

Creates the school portal tables:
1. Accounts (users) and admin verification codes/attempts
2. Classes, enrollments, attendance and parent links
3. Homework assignments and submissions
4. Announcements and private messages
5. School configuration and backup records

Revision ID: 3f1c9a7d2e10
Revises:
Create Date: 2026-09-28 10:12:41.508113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enums are stored by member name, matching SQLAlchemy's Enum(PyEnum) default
user_role = sa.Enum('STUDENT', 'PARENT', 'TEACHER', 'MODERATOR', 'ADMIN', name='userrole')
attendance_status = sa.Enum('PRESENT', 'ABSENT', 'LATE', 'EXCUSED', name='attendancestatus')
submission_status = sa.Enum('PENDING', 'REVIEWED', 'GRADED', name='submissionstatus')
announcement_type = sa.Enum('GENERAL', 'URGENT', 'EVENT', 'ACADEMIC', name='announcementtype')
target_audience = sa.Enum('ALL', 'STUDENTS', 'TEACHERS', 'PARENTS', name='targetaudience')
backup_type = sa.Enum('MANUAL', 'AUTOMATIC', name='backuptype')
backup_status = sa.Enum('IN_PROGRESS', 'COMPLETED', 'FAILED', name='backupstatus')

json_type = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    """Create all portal tables."""

    # 1. Accounts
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('department', sa.String(), nullable=True),
        sa.Column('grade', sa.String(), nullable=True),
        sa.Column('student_number', sa.String(), nullable=True, unique=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('approved', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('is_system_owner', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('password_reset_required', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_approved', 'users', ['approved'])

    op.create_table(
        'admin_verification_codes',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('admin_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('verification_code', sa.String(20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('ix_admin_verification_codes_id', 'admin_verification_codes', ['id'])
    op.create_index('ix_admin_verification_codes_admin_id', 'admin_verification_codes', ['admin_id'])
    op.create_index(
        'ix_admin_verification_codes_lookup',
        'admin_verification_codes',
        ['admin_id', 'verification_code', 'is_active'],
    )

    op.create_table(
        'admin_verification_attempts',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('admin_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('verification_code', sa.String(), nullable=False),
        sa.Column('success', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('failure_reason', sa.String(32), nullable=True),
        sa.Column('attempted_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_admin_verification_attempts_id', 'admin_verification_attempts', ['id'])
    op.create_index('ix_admin_verification_attempts_admin_id', 'admin_verification_attempts', ['admin_id'])
    op.create_index('ix_admin_verification_attempts_attempted_at', 'admin_verification_attempts', ['attempted_at'])

    # 2. Classes and attendance
    op.create_table(
        'classes',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('subject', sa.String(), nullable=False),
        sa.Column('grade_level', sa.String(), nullable=False),
        sa.Column('class_code', sa.String(12), nullable=False),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_classes_id', 'classes', ['id'])
    op.create_index('ix_classes_class_code', 'classes', ['class_code'], unique=True)
    op.create_index('ix_classes_teacher_id', 'classes', ['teacher_id'])

    op.create_table(
        'class_enrollments',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('class_id', 'student_id', name='uq_class_enrollments_class_student'),
    )
    op.create_index('ix_class_enrollments_id', 'class_enrollments', ['id'])
    op.create_index('ix_class_enrollments_class_id', 'class_enrollments', ['class_id'])
    op.create_index('ix_class_enrollments_student_id', 'class_enrollments', ['student_id'])

    op.create_table(
        'attendance_records',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('attendance_date', sa.Date(), nullable=False),
        sa.Column('status', attendance_status, nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('marked_by', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('marked_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('class_id', 'student_id', 'attendance_date', name='uq_attendance_class_student_date'),
    )
    op.create_index('ix_attendance_records_id', 'attendance_records', ['id'])
    op.create_index('ix_attendance_records_class_id', 'attendance_records', ['class_id'])
    op.create_index('ix_attendance_records_student_id', 'attendance_records', ['student_id'])
    op.create_index('ix_attendance_records_attendance_date', 'attendance_records', ['attendance_date'])

    op.create_table(
        'parent_student_relationships',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('parent_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('relationship_type', sa.String(), nullable=False, server_default='parent'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('parent_id', 'student_id', name='uq_parent_student'),
    )
    op.create_index('ix_parent_student_relationships_id', 'parent_student_relationships', ['id'])
    op.create_index('ix_parent_student_relationships_parent_id', 'parent_student_relationships', ['parent_id'])
    op.create_index('ix_parent_student_relationships_student_id', 'parent_student_relationships', ['student_id'])

    # 3. Homework
    op.create_table(
        'homework_assignments',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('subject', sa.String(), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('max_grade', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_homework_assignments_id', 'homework_assignments', ['id'])
    op.create_index('ix_homework_assignments_class_id', 'homework_assignments', ['class_id'])
    op.create_index('ix_homework_assignments_teacher_id', 'homework_assignments', ['teacher_id'])

    op.create_table(
        'homework_submissions',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('assignment_id', sa.Uuid(), sa.ForeignKey('homework_assignments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('files', json_type, nullable=False),
        sa.Column('status', submission_status, nullable=False),
        sa.Column('grade', sa.Float(), nullable=True),
        sa.Column('feedback', sa.String(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('assignment_id', 'student_id', name='uq_homework_submission_student'),
    )
    op.create_index('ix_homework_submissions_id', 'homework_submissions', ['id'])
    op.create_index('ix_homework_submissions_assignment_id', 'homework_submissions', ['assignment_id'])
    op.create_index('ix_homework_submissions_student_id', 'homework_submissions', ['student_id'])
    op.create_index('ix_homework_submissions_status', 'homework_submissions', ['status'])

    # 4. Announcements and messages
    op.create_table(
        'announcements',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.String(), nullable=False),
        sa.Column('type', announcement_type, nullable=False),
        sa.Column('target_audience', target_audience, nullable=False),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_announcements_id', 'announcements', ['id'])
    op.create_index('ix_announcements_target_audience', 'announcements', ['target_audience'])
    op.create_index('ix_announcements_created_at', 'announcements', ['created_at'])

    op.create_table(
        'private_messages',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('sender_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipient_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_private_messages_id', 'private_messages', ['id'])
    op.create_index('ix_private_messages_sender_id', 'private_messages', ['sender_id'])
    op.create_index('ix_private_messages_recipient_id', 'private_messages', ['recipient_id'])
    op.create_index('ix_private_messages_recipient_created', 'private_messages', ['recipient_id', 'created_at'])

    # 5. Configuration and backups
    op.create_table(
        'school_config',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('config_key', sa.String(64), nullable=False),
        sa.Column('config_value', json_type, nullable=False),
        sa.Column('updated_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_school_config_id', 'school_config', ['id'])
    op.create_index('ix_school_config_config_key', 'school_config', ['config_key'], unique=True)

    op.create_table(
        'backup_records',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('backup_type', backup_type, nullable=False),
        sa.Column('status', backup_status, nullable=False),
        sa.Column('file_path', sa.String(), nullable=True),
        sa.Column('size_bytes', sa.BigInteger(), nullable=True),
        sa.Column('record_counts', json_type, nullable=True),
        sa.Column('compressed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('encrypted', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('error_message', sa.String(), nullable=True),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_backup_records_id', 'backup_records', ['id'])
    op.create_index('ix_backup_records_status', 'backup_records', ['status'])
    op.create_index('ix_backup_records_created_at', 'backup_records', ['created_at'])


def downgrade() -> None:
    """Drop all portal tables and enum types."""
    for table in (
        'backup_records',
        'school_config',
        'private_messages',
        'announcements',
        'homework_submissions',
        'homework_assignments',
        'parent_student_relationships',
        'attendance_records',
        'class_enrollments',
        'classes',
        'admin_verification_attempts',
        'admin_verification_codes',
        'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (
        backup_status,
        backup_type,
        target_audience,
        announcement_type,
        submission_status,
        attendance_status,
        user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
