from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from school_api.config import settings
from school_api.models import DiscountType, ExamType, FeeFrequency, FeeStatus, PaymentMethod


class SchoolCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=20)
    email: str = ''
    address: str = ''


class SchoolRead(BaseModel):
    id: int
    name: str
    code: str
    email: str = ''
    address: str = ''
    created_at: datetime

    class Config:
        from_attributes = True


class AcademicYearCreate(BaseModel):
    school_id: int
    name: str = Field(min_length=1, max_length=40)
    start_date: date
    end_date: date
    is_current: bool = False

    @model_validator(mode='after')
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError('end_date must be on or after start_date')
        return self


class AcademicYearRead(BaseModel):
    id: int
    school_id: int
    name: str
    start_date: date
    end_date: date
    is_current: bool

    class Config:
        from_attributes = True


class ClassCreate(BaseModel):
    school_id: int
    name: str = Field(min_length=1, max_length=60)
    numeric_level: int | None = None


class ClassRead(BaseModel):
    id: int
    school_id: int
    name: str
    numeric_level: int | None = None

    class Config:
        from_attributes = True


class SectionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=20)
    capacity: int | None = Field(default=None, ge=1)


class SectionRead(BaseModel):
    id: int
    class_id: int
    name: str
    capacity: int | None = None

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    school_id: int
    name: str = Field(min_length=1, max_length=80)
    code: str = ''


class SubjectRead(BaseModel):
    id: int
    school_id: int
    name: str
    code: str = ''

    class Config:
        from_attributes = True


class StudentCreate(BaseModel):
    school_id: int
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = ''
    admission_number: str = Field(min_length=1, max_length=40)


class StudentRead(BaseModel):
    id: int
    school_id: int
    first_name: str
    last_name: str = ''
    admission_number: str
    is_active: bool

    class Config:
        from_attributes = True


class EnrollmentCreate(BaseModel):
    academic_year_id: int
    class_id: int
    section_id: int | None = None
    roll_number: str = ''


class EnrollmentRead(BaseModel):
    id: int
    student_id: int
    academic_year_id: int
    class_id: int
    section_id: int | None = None
    roll_number: str = ''
    is_current: bool
    is_promoted: bool

    class Config:
        from_attributes = True


# Exams

class ExamSubjectInput(BaseModel):
    subject_id: int
    exam_date: date | None = None
    start_time: str | None = Field(default=None, pattern=r'^\d{2}:\d{2}$')
    end_time: str | None = Field(default=None, pattern=r'^\d{2}:\d{2}$')
    max_marks: float = Field(default=settings.default_subject_max_marks, gt=0)
    passing_marks: float = Field(default=settings.default_subject_passing_marks, ge=0)
    is_optional: bool = False

    @model_validator(mode='after')
    def _check_marks(self):
        if self.passing_marks > self.max_marks:
            raise ValueError('passing_marks cannot exceed max_marks')
        return self


class ExamCreate(BaseModel):
    school_id: int
    academic_year_id: int
    class_id: int
    name: str = Field(min_length=1, max_length=100)
    exam_type: ExamType
    start_date: date
    end_date: date
    max_marks: float = Field(default=100, gt=0)
    passing_percentage: float = Field(default=settings.default_passing_percentage, ge=0, le=100)
    description: str = ''
    subjects: list[ExamSubjectInput] = Field(default_factory=list)

    @model_validator(mode='after')
    def _check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError('end_date must be on or after start_date')
        return self


class ExamUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    exam_type: ExamType | None = None
    start_date: date | None = None
    end_date: date | None = None
    max_marks: float | None = Field(default=None, gt=0)
    passing_percentage: float | None = Field(default=None, ge=0, le=100)
    description: str | None = None
    is_active: bool | None = None


class ExamFilters(BaseModel):
    academic_year_id: int | None = None
    class_id: int | None = None
    exam_type: ExamType | None = None
    is_active: bool | None = None


class ExamSubjectRead(BaseModel):
    id: int
    exam_id: int
    subject_id: int
    exam_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    max_marks: float
    passing_marks: float
    is_optional: bool

    class Config:
        from_attributes = True


class ExamRead(BaseModel):
    id: int
    school_id: int
    academic_year_id: int
    class_id: int
    name: str
    exam_type: str
    start_date: date
    end_date: date
    max_marks: float
    passing_percentage: float
    description: str = ''
    is_active: bool
    exam_subjects: list[ExamSubjectRead] = Field(default_factory=list)

    class Config:
        from_attributes = True


class GradeScaleCreate(BaseModel):
    school_id: int
    name: str = Field(min_length=1, max_length=50)
    min_percentage: float = Field(ge=0, le=100)
    max_percentage: float = Field(ge=0, le=100)
    grade_point: float | None = Field(default=None, ge=0)
    description: str = ''
    is_active: bool = True


class GradeScaleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    min_percentage: float | None = Field(default=None, ge=0, le=100)
    max_percentage: float | None = Field(default=None, ge=0, le=100)
    grade_point: float | None = Field(default=None, ge=0)
    description: str | None = None
    is_active: bool | None = None


class GradeScaleRead(BaseModel):
    id: int
    school_id: int
    name: str
    min_percentage: float
    max_percentage: float
    grade_point: float | None = None
    description: str = ''
    is_active: bool

    class Config:
        from_attributes = True


class MarkEntry(BaseModel):
    student_id: int
    marks_obtained: float = Field(default=0, ge=0)
    is_absent: bool = False
    remarks: str = ''


class MarksBatchRequest(BaseModel):
    exam_subject_id: int
    marks: list[MarkEntry] = Field(min_length=1)
    entered_by: str = ''


class MarkUpdate(BaseModel):
    marks_obtained: float | None = Field(default=None, ge=0)
    is_absent: bool | None = None
    remarks: str | None = None


class StudentMarkRead(BaseModel):
    id: int
    exam_subject_id: int
    student_id: int
    marks_obtained: float
    is_absent: bool
    remarks: str = ''
    entered_by: str = ''

    class Config:
        from_attributes = True


class GenerateResultsRequest(BaseModel):
    exam_id: int


class StudentResultRead(BaseModel):
    id: int
    exam_id: int
    student_id: int
    total_marks: float
    max_marks: float
    percentage: float
    grade: str | None = None
    grade_point: float | None = None
    status: str
    rank: int | None = None

    class Config:
        from_attributes = True


# Fees

class FeeCategoryCreate(BaseModel):
    school_id: int
    name: str = Field(min_length=1, max_length=100)
    description: str = ''
    is_recurring: bool = True


class FeeCategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    is_recurring: bool | None = None
    is_active: bool | None = None


class FeeCategoryRead(BaseModel):
    id: int
    school_id: int
    name: str
    description: str = ''
    is_recurring: bool
    is_active: bool

    class Config:
        from_attributes = True


class FeeStructureItemInput(BaseModel):
    fee_category_id: int
    amount: float = Field(gt=0)
    frequency: FeeFrequency = FeeFrequency.MONTHLY


class FeeStructureCreate(BaseModel):
    school_id: int
    class_id: int
    academic_year_id: int
    name: str = Field(min_length=1, max_length=200)
    total_amount: float | None = Field(default=None, ge=0)
    due_day: int = Field(default=settings.default_due_day, ge=1, le=28)
    late_fee_percentage: float = Field(default=0, ge=0, le=100)
    late_fee_fixed_amount: float = Field(default=0, ge=0)
    grace_period_days: int = Field(default=settings.default_grace_period_days, ge=0)
    items: list[FeeStructureItemInput] = Field(min_length=1)


class FeeStructureUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    late_fee_percentage: float | None = Field(default=None, ge=0, le=100)
    late_fee_fixed_amount: float | None = Field(default=None, ge=0)
    grace_period_days: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class FeeStructureItemRead(BaseModel):
    id: int
    fee_category_id: int
    amount: float
    frequency: str

    class Config:
        from_attributes = True


class FeeStructureRead(BaseModel):
    id: int
    school_id: int
    class_id: int
    academic_year_id: int
    name: str
    total_amount: float
    due_day: int
    late_fee_percentage: float
    late_fee_fixed_amount: float
    grace_period_days: int
    is_active: bool
    items: list[FeeStructureItemRead] = Field(default_factory=list)

    class Config:
        from_attributes = True


class FeeDiscountCreate(BaseModel):
    student_id: int
    academic_year_id: int
    fee_category_id: int | None = None
    discount_type: DiscountType
    discount_value: float = Field(gt=0)
    reason: str = Field(min_length=1, max_length=255)
    approved_by: str = ''

    @model_validator(mode='after')
    def _check_percentage(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError('percentage discount cannot exceed 100')
        return self


class FeeDiscountUpdate(BaseModel):
    discount_value: float | None = Field(default=None, gt=0)
    reason: str | None = Field(default=None, min_length=1, max_length=255)
    approved_by: str | None = None
    is_active: bool | None = None


class FeeDiscountRead(BaseModel):
    id: int
    student_id: int
    academic_year_id: int
    fee_category_id: int | None = None
    discount_type: str
    discount_value: float
    reason: str
    approved_by: str = ''
    is_active: bool

    class Config:
        from_attributes = True


class StudentFeeAssign(BaseModel):
    student_id: int
    fee_structure_id: int


class BulkFeeAssign(BaseModel):
    fee_structure_id: int
    section_id: int


class StudentFeeUpdate(BaseModel):
    status: FeeStatus | None = None
    discount_amount: float | None = Field(default=None, ge=0)


class StudentFeeFilters(BaseModel):
    academic_year_id: int | None = None
    status: FeeStatus | None = None
    section_id: int | None = None


class PaymentAllocationRead(BaseModel):
    id: int
    fee_payment_id: int
    student_fee_detail_id: int
    amount: float

    class Config:
        from_attributes = True


class StudentFeeDetailRead(BaseModel):
    id: int
    student_fee_id: int
    fee_category_id: int | None = None
    frequency: str
    period_month: int
    period_year: int
    amount: float
    late_fee: float
    paid_amount: float
    due_date: date
    status: str
    allocations: list[PaymentAllocationRead] = Field(default_factory=list)

    class Config:
        from_attributes = True


class StudentFeeRead(BaseModel):
    id: int
    student_id: int
    fee_structure_id: int
    academic_year_id: int
    total_amount: float
    discount_amount: float
    late_fee_amount: float
    paid_amount: float
    balance_amount: float
    status: str

    class Config:
        from_attributes = True


class StudentFeeDetailedRead(StudentFeeRead):
    details: list[StudentFeeDetailRead] = Field(default_factory=list)


class PaymentBase(BaseModel):
    amount: float = Field(gt=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    transaction_id: str | None = None
    collected_by: str = ''
    remarks: str = ''


class DirectPaymentRequest(PaymentBase):
    student_fee_detail_id: int


class AutoAllocateRequest(PaymentBase):
    student_fee_id: int


class FeePaymentRead(BaseModel):
    id: int
    student_fee_id: int
    school_id: int
    amount: float
    payment_method: str
    transaction_id: str | None = None
    receipt_number: str
    collected_by: str = ''
    remarks: str = ''
    payment_date: datetime
    allocations: list[PaymentAllocationRead] = Field(default_factory=list)

    class Config:
        from_attributes = True
