from datetime import date, datetime
from enum import Enum
from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.db import Base


class ExamType(str, Enum):
    UNIT_TEST = 'UNIT_TEST'
    MID_TERM = 'MID_TERM'
    QUARTERLY = 'QUARTERLY'
    HALF_YEARLY = 'HALF_YEARLY'
    FINAL = 'FINAL'
    PRACTICAL = 'PRACTICAL'
    PROJECT = 'PROJECT'


class ResultStatus(str, Enum):
    PASS = 'PASS'
    FAIL = 'FAIL'


class FeeFrequency(str, Enum):
    MONTHLY = 'MONTHLY'
    QUARTERLY = 'QUARTERLY'
    HALF_YEARLY = 'HALF_YEARLY'
    YEARLY = 'YEARLY'
    ONE_TIME = 'ONE_TIME'


class FeeStatus(str, Enum):
    PENDING = 'PENDING'
    PARTIAL = 'PARTIAL'
    PAID = 'PAID'
    OVERDUE = 'OVERDUE'
    WAIVED = 'WAIVED'


class DiscountType(str, Enum):
    PERCENTAGE = 'PERCENTAGE'
    FIXED = 'FIXED'


class PaymentMethod(str, Enum):
    CASH = 'CASH'
    UPI = 'UPI'
    CARD = 'CARD'
    CHEQUE = 'CHEQUE'
    BANK_TRANSFER = 'BANK_TRANSFER'
    ONLINE = 'ONLINE'


class School(Base):
    __tablename__ = 'schools'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    code: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(160), default='')
    address: Mapped[str] = mapped_column(Text, default='')
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    academic_years: Mapped[list['AcademicYear']] = relationship('AcademicYear', back_populates='school')
    classes: Mapped[list['SchoolClass']] = relationship('SchoolClass', back_populates='school')
    students: Mapped[list['Student']] = relationship('Student', back_populates='school')


class AcademicYear(Base):
    __tablename__ = 'academic_years'
    __table_args__ = (
        UniqueConstraint('school_id', 'name', name='uq_academic_years_school_name'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    school_id: Mapped[int] = mapped_column(ForeignKey('schools.id'), index=True)
    name: Mapped[str] = mapped_column(String(40))
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    is_current: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    school: Mapped['School'] = relationship('School', back_populates='academic_years')


class SchoolClass(Base):
    __tablename__ = 'classes'
    __table_args__ = (
        UniqueConstraint('school_id', 'name', name='uq_classes_school_name'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    school_id: Mapped[int] = mapped_column(ForeignKey('schools.id'), index=True)
    name: Mapped[str] = mapped_column(String(60))
    numeric_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    school: Mapped['School'] = relationship('School', back_populates='classes')
    sections: Mapped[list['Section']] = relationship('Section', back_populates='school_class', cascade='all, delete-orphan')


class Section(Base):
    __tablename__ = 'sections'
    __table_args__ = (
        UniqueConstraint('class_id', 'name', name='uq_sections_class_name'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    class_id: Mapped[int] = mapped_column(ForeignKey('classes.id'), index=True)
    name: Mapped[str] = mapped_column(String(20))
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)

    school_class: Mapped['SchoolClass'] = relationship('SchoolClass', back_populates='sections')


class Subject(Base):
    __tablename__ = 'subjects'
    __table_args__ = (
        UniqueConstraint('school_id', 'name', name='uq_subjects_school_name'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    school_id: Mapped[int] = mapped_column(ForeignKey('schools.id'), index=True)
    name: Mapped[str] = mapped_column(String(80))
    code: Mapped[str] = mapped_column(String(20), default='', index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Student(Base):
    __tablename__ = 'students'
    __table_args__ = (
        UniqueConstraint('school_id', 'admission_number', name='uq_students_school_admission'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    school_id: Mapped[int] = mapped_column(ForeignKey('schools.id'), index=True)
    first_name: Mapped[str] = mapped_column(String(80))
    last_name: Mapped[str] = mapped_column(String(80), default='')
    admission_number: Mapped[str] = mapped_column(String(40), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    school: Mapped['School'] = relationship('School', back_populates='students')
    enrollments: Mapped[list['StudentEnrollment']] = relationship('StudentEnrollment', back_populates='student')


class StudentEnrollment(Base):
    __tablename__ = 'student_enrollments'
    __table_args__ = (
        UniqueConstraint('student_id', 'academic_year_id', name='uq_enrollments_student_year'),
        Index('ix_enrollments_section_year_current', 'section_id', 'academic_year_id', 'is_current'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('students.id'), index=True)
    academic_year_id: Mapped[int] = mapped_column(ForeignKey('academic_years.id'), index=True)
    class_id: Mapped[int] = mapped_column(ForeignKey('classes.id'), index=True)
    section_id: Mapped[int | None] = mapped_column(ForeignKey('sections.id'), nullable=True, index=True)
    roll_number: Mapped[str] = mapped_column(String(20), default='')
    is_current: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    is_promoted: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    student: Mapped['Student'] = relationship('Student', back_populates='enrollments')


class Exam(Base):
    __tablename__ = 'exams'
    __table_args__ = (
        UniqueConstraint('school_id', 'academic_year_id', 'class_id', 'name', name='uq_exams_school_year_class_name'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    school_id: Mapped[int] = mapped_column(ForeignKey('schools.id'), index=True)
    academic_year_id: Mapped[int] = mapped_column(ForeignKey('academic_years.id'), index=True)
    class_id: Mapped[int] = mapped_column(ForeignKey('classes.id'), index=True)
    name: Mapped[str] = mapped_column(String(100))
    exam_type: Mapped[str] = mapped_column(String(20), index=True)
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    max_marks: Mapped[float] = mapped_column(Float, default=100)
    passing_percentage: Mapped[float] = mapped_column(Float, default=33)
    description: Mapped[str] = mapped_column(Text, default='')
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    exam_subjects: Mapped[list['ExamSubject']] = relationship(
        'ExamSubject',
        back_populates='exam',
        cascade='all, delete-orphan',
        order_by='ExamSubject.id',
    )
    results: Mapped[list['StudentResult']] = relationship('StudentResult', back_populates='exam')


class ExamSubject(Base):
    __tablename__ = 'exam_subjects'
    __table_args__ = (
        UniqueConstraint('exam_id', 'subject_id', name='uq_exam_subjects_exam_subject'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    exam_id: Mapped[int] = mapped_column(ForeignKey('exams.id'), index=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey('subjects.id'), index=True)
    exam_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    start_time: Mapped[str | None] = mapped_column(String(10), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(10), nullable=True)
    max_marks: Mapped[float] = mapped_column(Float, default=100)
    passing_marks: Mapped[float] = mapped_column(Float, default=33)
    is_optional: Mapped[bool] = mapped_column(Boolean, default=False)

    exam: Mapped['Exam'] = relationship('Exam', back_populates='exam_subjects')
    subject: Mapped['Subject'] = relationship('Subject')
    student_marks: Mapped[list['StudentMark']] = relationship(
        'StudentMark',
        back_populates='exam_subject',
        cascade='all, delete-orphan',
    )


class StudentMark(Base):
    __tablename__ = 'student_marks'
    __table_args__ = (
        UniqueConstraint('exam_subject_id', 'student_id', name='uq_student_marks_subject_student'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    exam_subject_id: Mapped[int] = mapped_column(ForeignKey('exam_subjects.id'), index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('students.id'), index=True)
    marks_obtained: Mapped[float] = mapped_column(Float, default=0)
    is_absent: Mapped[bool] = mapped_column(Boolean, default=False)
    remarks: Mapped[str] = mapped_column(Text, default='')
    entered_by: Mapped[str] = mapped_column(String(100), default='')
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    exam_subject: Mapped['ExamSubject'] = relationship('ExamSubject', back_populates='student_marks')
    student: Mapped['Student'] = relationship('Student')


class StudentResult(Base):
    __tablename__ = 'student_results'
    __table_args__ = (
        UniqueConstraint('exam_id', 'student_id', name='uq_student_results_exam_student'),
        Index('ix_student_results_exam_percentage', 'exam_id', 'percentage'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    exam_id: Mapped[int] = mapped_column(ForeignKey('exams.id'), index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('students.id'), index=True)
    total_marks: Mapped[float] = mapped_column(Float, default=0)
    max_marks: Mapped[float] = mapped_column(Float, default=0)
    percentage: Mapped[float] = mapped_column(Float, default=0)
    grade: Mapped[str | None] = mapped_column(String(50), nullable=True)
    grade_point: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(10), default=ResultStatus.FAIL.value, index=True)
    rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    exam: Mapped['Exam'] = relationship('Exam', back_populates='results')
    student: Mapped['Student'] = relationship('Student')


class GradeScale(Base):
    __tablename__ = 'grade_scales'
    __table_args__ = (
        UniqueConstraint('school_id', 'name', name='uq_grade_scales_school_name'),
        Index('ix_grade_scales_school_band', 'school_id', 'is_active', 'min_percentage', 'max_percentage'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    school_id: Mapped[int] = mapped_column(ForeignKey('schools.id'), index=True)
    name: Mapped[str] = mapped_column(String(50))
    min_percentage: Mapped[float] = mapped_column(Float)
    max_percentage: Mapped[float] = mapped_column(Float)
    grade_point: Mapped[float | None] = mapped_column(Float, nullable=True)
    description: Mapped[str] = mapped_column(String(100), default='')
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)


class FeeCategory(Base):
    __tablename__ = 'fee_categories'
    __table_args__ = (
        UniqueConstraint('school_id', 'name', name='uq_fee_categories_school_name'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    school_id: Mapped[int] = mapped_column(ForeignKey('schools.id'), index=True)
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[str] = mapped_column(Text, default='')
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class FeeStructure(Base):
    __tablename__ = 'fee_structures'
    __table_args__ = (
        UniqueConstraint('class_id', 'academic_year_id', name='uq_fee_structures_class_year'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    school_id: Mapped[int] = mapped_column(ForeignKey('schools.id'), index=True)
    class_id: Mapped[int] = mapped_column(ForeignKey('classes.id'), index=True)
    academic_year_id: Mapped[int] = mapped_column(ForeignKey('academic_years.id'), index=True)
    name: Mapped[str] = mapped_column(String(200))
    total_amount: Mapped[float] = mapped_column(Float, default=0)
    due_day: Mapped[int] = mapped_column(Integer, default=10)
    late_fee_percentage: Mapped[float] = mapped_column(Float, default=0)
    late_fee_fixed_amount: Mapped[float] = mapped_column(Float, default=0)
    grace_period_days: Mapped[int] = mapped_column(Integer, default=5)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    items: Mapped[list['FeeStructureItem']] = relationship(
        'FeeStructureItem',
        back_populates='fee_structure',
        cascade='all, delete-orphan',
        order_by='FeeStructureItem.id',
    )
    academic_year: Mapped['AcademicYear'] = relationship('AcademicYear')
    student_fees: Mapped[list['StudentFee']] = relationship('StudentFee', back_populates='fee_structure')


class FeeStructureItem(Base):
    __tablename__ = 'fee_structure_items'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    fee_structure_id: Mapped[int] = mapped_column(ForeignKey('fee_structures.id'), index=True)
    fee_category_id: Mapped[int] = mapped_column(ForeignKey('fee_categories.id'), index=True)
    amount: Mapped[float] = mapped_column(Float)
    frequency: Mapped[str] = mapped_column(String(20), default=FeeFrequency.MONTHLY.value)

    fee_structure: Mapped['FeeStructure'] = relationship('FeeStructure', back_populates='items')
    fee_category: Mapped['FeeCategory'] = relationship('FeeCategory')


class FeeDiscount(Base):
    __tablename__ = 'fee_discounts'
    __table_args__ = (
        Index('ix_fee_discounts_student_year_active', 'student_id', 'academic_year_id', 'is_active'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('students.id'), index=True)
    academic_year_id: Mapped[int] = mapped_column(ForeignKey('academic_years.id'), index=True)
    fee_category_id: Mapped[int | None] = mapped_column(ForeignKey('fee_categories.id'), nullable=True)
    discount_type: Mapped[str] = mapped_column(String(20))
    discount_value: Mapped[float] = mapped_column(Float)
    reason: Mapped[str] = mapped_column(String(255))
    approved_by: Mapped[str] = mapped_column(String(100), default='')
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class StudentFee(Base):
    __tablename__ = 'student_fees'
    __table_args__ = (
        UniqueConstraint('student_id', 'academic_year_id', name='uq_student_fees_student_year'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('students.id'), index=True)
    fee_structure_id: Mapped[int] = mapped_column(ForeignKey('fee_structures.id'), index=True)
    academic_year_id: Mapped[int] = mapped_column(ForeignKey('academic_years.id'), index=True)
    total_amount: Mapped[float] = mapped_column(Float, default=0)
    discount_amount: Mapped[float] = mapped_column(Float, default=0)
    late_fee_amount: Mapped[float] = mapped_column(Float, default=0)
    paid_amount: Mapped[float] = mapped_column(Float, default=0)
    balance_amount: Mapped[float] = mapped_column(Float, default=0)
    status: Mapped[str] = mapped_column(String(20), default=FeeStatus.PENDING.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student: Mapped['Student'] = relationship('Student')
    fee_structure: Mapped['FeeStructure'] = relationship('FeeStructure', back_populates='student_fees')
    details: Mapped[list['StudentFeeDetail']] = relationship(
        'StudentFeeDetail',
        back_populates='student_fee',
        cascade='all, delete-orphan',
        order_by=lambda: [StudentFeeDetail.due_date, StudentFeeDetail.id],
    )
    payments: Mapped[list['FeePayment']] = relationship('FeePayment', back_populates='student_fee')


class StudentFeeDetail(Base):
    __tablename__ = 'student_fee_details'
    __table_args__ = (
        Index('ix_student_fee_details_fee_due', 'student_fee_id', 'due_date'),
        Index('ix_student_fee_details_status_due', 'status', 'due_date'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_fee_id: Mapped[int] = mapped_column(ForeignKey('student_fees.id'), index=True)
    fee_category_id: Mapped[int | None] = mapped_column(ForeignKey('fee_categories.id'), nullable=True)
    frequency: Mapped[str] = mapped_column(String(20), default=FeeFrequency.MONTHLY.value)
    period_month: Mapped[int] = mapped_column(Integer)
    period_year: Mapped[int] = mapped_column(Integer)
    amount: Mapped[float] = mapped_column(Float)
    late_fee: Mapped[float] = mapped_column(Float, default=0)
    paid_amount: Mapped[float] = mapped_column(Float, default=0)
    due_date: Mapped[date] = mapped_column(Date, index=True)
    status: Mapped[str] = mapped_column(String(20), default=FeeStatus.PENDING.value, index=True)

    student_fee: Mapped['StudentFee'] = relationship('StudentFee', back_populates='details')
    allocations: Mapped[list['FeePaymentAllocation']] = relationship('FeePaymentAllocation', back_populates='detail')


class FeePayment(Base):
    __tablename__ = 'fee_payments'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_fee_id: Mapped[int] = mapped_column(ForeignKey('student_fees.id'), index=True)
    school_id: Mapped[int] = mapped_column(ForeignKey('schools.id'), index=True)
    amount: Mapped[float] = mapped_column(Float)
    payment_method: Mapped[str] = mapped_column(String(20))
    transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    receipt_number: Mapped[str] = mapped_column(String(40), unique=True, index=True)
    collected_by: Mapped[str] = mapped_column(String(100), default='')
    remarks: Mapped[str] = mapped_column(Text, default='')
    payment_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    student_fee: Mapped['StudentFee'] = relationship('StudentFee', back_populates='payments')
    allocations: Mapped[list['FeePaymentAllocation']] = relationship(
        'FeePaymentAllocation',
        back_populates='payment',
        cascade='all, delete-orphan',
        order_by='FeePaymentAllocation.id',
    )


class FeePaymentAllocation(Base):
    __tablename__ = 'fee_payment_allocations'
    __table_args__ = (
        UniqueConstraint('fee_payment_id', 'student_fee_detail_id', name='uq_fee_payment_allocations_payment_detail'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    fee_payment_id: Mapped[int] = mapped_column(ForeignKey('fee_payments.id'), index=True)
    student_fee_detail_id: Mapped[int] = mapped_column(ForeignKey('student_fee_details.id'), index=True)
    amount: Mapped[float] = mapped_column(Float)

    payment: Mapped['FeePayment'] = relationship('FeePayment', back_populates='allocations')
    detail: Mapped['StudentFeeDetail'] = relationship('StudentFeeDetail', back_populates='allocations')
