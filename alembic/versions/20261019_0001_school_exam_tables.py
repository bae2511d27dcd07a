"""school, enrollment, exam and result tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:01:00
"""

from alembic import op
import sqlalchemy as sa


revision = '20261019_0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'schools',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=160), nullable=False, server_default=''),
        sa.Column('address', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_schools_id', 'schools', ['id'])
    op.create_index('ix_schools_code', 'schools', ['code'], unique=True)
    op.create_index('ix_schools_created_at', 'schools', ['created_at'])

    op.create_table(
        'academic_years',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('name', sa.String(length=40), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_current', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('school_id', 'name', name='uq_academic_years_school_name'),
    )
    op.create_index('ix_academic_years_id', 'academic_years', ['id'])
    op.create_index('ix_academic_years_school_id', 'academic_years', ['school_id'])
    op.create_index('ix_academic_years_is_current', 'academic_years', ['is_current'])

    op.create_table(
        'classes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('name', sa.String(length=60), nullable=False),
        sa.Column('numeric_level', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('school_id', 'name', name='uq_classes_school_name'),
    )
    op.create_index('ix_classes_id', 'classes', ['id'])
    op.create_index('ix_classes_school_id', 'classes', ['school_id'])

    op.create_table(
        'sections',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('name', sa.String(length=20), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.UniqueConstraint('class_id', 'name', name='uq_sections_class_name'),
    )
    op.create_index('ix_sections_id', 'sections', ['id'])
    op.create_index('ix_sections_class_id', 'sections', ['class_id'])

    op.create_table(
        'subjects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('name', sa.String(length=80), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('school_id', 'name', name='uq_subjects_school_name'),
    )
    op.create_index('ix_subjects_id', 'subjects', ['id'])
    op.create_index('ix_subjects_school_id', 'subjects', ['school_id'])
    op.create_index('ix_subjects_code', 'subjects', ['code'])

    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('first_name', sa.String(length=80), nullable=False),
        sa.Column('last_name', sa.String(length=80), nullable=False, server_default=''),
        sa.Column('admission_number', sa.String(length=40), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('school_id', 'admission_number', name='uq_students_school_admission'),
    )
    op.create_index('ix_students_id', 'students', ['id'])
    op.create_index('ix_students_school_id', 'students', ['school_id'])
    op.create_index('ix_students_admission_number', 'students', ['admission_number'])
    op.create_index('ix_students_is_active', 'students', ['is_active'])

    op.create_table(
        'student_enrollments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('academic_year_id', sa.Integer(), sa.ForeignKey('academic_years.id'), nullable=False),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('section_id', sa.Integer(), sa.ForeignKey('sections.id'), nullable=True),
        sa.Column('roll_number', sa.String(length=20), nullable=False, server_default=''),
        sa.Column('is_current', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_promoted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('student_id', 'academic_year_id', name='uq_enrollments_student_year'),
    )
    op.create_index('ix_student_enrollments_id', 'student_enrollments', ['id'])
    op.create_index('ix_student_enrollments_student_id', 'student_enrollments', ['student_id'])
    op.create_index('ix_student_enrollments_academic_year_id', 'student_enrollments', ['academic_year_id'])
    op.create_index('ix_student_enrollments_class_id', 'student_enrollments', ['class_id'])
    op.create_index('ix_student_enrollments_section_id', 'student_enrollments', ['section_id'])
    op.create_index('ix_student_enrollments_is_current', 'student_enrollments', ['is_current'])
    op.create_index(
        'ix_enrollments_section_year_current',
        'student_enrollments',
        ['section_id', 'academic_year_id', 'is_current'],
    )

    op.create_table(
        'exams',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('academic_year_id', sa.Integer(), sa.ForeignKey('academic_years.id'), nullable=False),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('exam_type', sa.String(length=20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('max_marks', sa.Float(), nullable=False, server_default='100'),
        sa.Column('passing_percentage', sa.Float(), nullable=False, server_default='33'),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('school_id', 'academic_year_id', 'class_id', 'name', name='uq_exams_school_year_class_name'),
    )
    op.create_index('ix_exams_id', 'exams', ['id'])
    op.create_index('ix_exams_school_id', 'exams', ['school_id'])
    op.create_index('ix_exams_academic_year_id', 'exams', ['academic_year_id'])
    op.create_index('ix_exams_class_id', 'exams', ['class_id'])
    op.create_index('ix_exams_exam_type', 'exams', ['exam_type'])
    op.create_index('ix_exams_is_active', 'exams', ['is_active'])
    op.create_index('ix_exams_created_at', 'exams', ['created_at'])

    op.create_table(
        'exam_subjects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id'), nullable=False),
        sa.Column('exam_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.String(length=10), nullable=True),
        sa.Column('end_time', sa.String(length=10), nullable=True),
        sa.Column('max_marks', sa.Float(), nullable=False, server_default='100'),
        sa.Column('passing_marks', sa.Float(), nullable=False, server_default='33'),
        sa.Column('is_optional', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint('exam_id', 'subject_id', name='uq_exam_subjects_exam_subject'),
    )
    op.create_index('ix_exam_subjects_id', 'exam_subjects', ['id'])
    op.create_index('ix_exam_subjects_exam_id', 'exam_subjects', ['exam_id'])
    op.create_index('ix_exam_subjects_subject_id', 'exam_subjects', ['subject_id'])

    op.create_table(
        'student_marks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('exam_subject_id', sa.Integer(), sa.ForeignKey('exam_subjects.id'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('marks_obtained', sa.Float(), nullable=False, server_default='0'),
        sa.Column('is_absent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('remarks', sa.Text(), nullable=False, server_default=''),
        sa.Column('entered_by', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('exam_subject_id', 'student_id', name='uq_student_marks_subject_student'),
    )
    op.create_index('ix_student_marks_id', 'student_marks', ['id'])
    op.create_index('ix_student_marks_exam_subject_id', 'student_marks', ['exam_subject_id'])
    op.create_index('ix_student_marks_student_id', 'student_marks', ['student_id'])
    op.create_index('ix_student_marks_created_at', 'student_marks', ['created_at'])

    op.create_table(
        'student_results',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('total_marks', sa.Float(), nullable=False, server_default='0'),
        sa.Column('max_marks', sa.Float(), nullable=False, server_default='0'),
        sa.Column('percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('grade', sa.String(length=50), nullable=True),
        sa.Column('grade_point', sa.Float(), nullable=True),
        sa.Column('status', sa.String(length=10), nullable=False, server_default='FAIL'),
        sa.Column('rank', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('exam_id', 'student_id', name='uq_student_results_exam_student'),
    )
    op.create_index('ix_student_results_id', 'student_results', ['id'])
    op.create_index('ix_student_results_exam_id', 'student_results', ['exam_id'])
    op.create_index('ix_student_results_student_id', 'student_results', ['student_id'])
    op.create_index('ix_student_results_status', 'student_results', ['status'])
    op.create_index('ix_student_results_created_at', 'student_results', ['created_at'])
    op.create_index('ix_student_results_exam_percentage', 'student_results', ['exam_id', 'percentage'])

    op.create_table(
        'grade_scales',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('min_percentage', sa.Float(), nullable=False),
        sa.Column('max_percentage', sa.Float(), nullable=False),
        sa.Column('grade_point', sa.Float(), nullable=True),
        sa.Column('description', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('school_id', 'name', name='uq_grade_scales_school_name'),
    )
    op.create_index('ix_grade_scales_id', 'grade_scales', ['id'])
    op.create_index('ix_grade_scales_school_id', 'grade_scales', ['school_id'])
    op.create_index('ix_grade_scales_is_active', 'grade_scales', ['is_active'])
    op.create_index(
        'ix_grade_scales_school_band',
        'grade_scales',
        ['school_id', 'is_active', 'min_percentage', 'max_percentage'],
    )


def downgrade() -> None:
    op.drop_table('grade_scales')
    op.drop_table('student_results')
    op.drop_table('student_marks')
    op.drop_table('exam_subjects')
    op.drop_table('exams')
    op.drop_table('student_enrollments')
    op.drop_table('students')
    op.drop_table('subjects')
    op.drop_table('sections')
    op.drop_table('classes')
    op.drop_table('academic_years')
    op.drop_table('schools')
