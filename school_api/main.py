from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request

from school_api.config import settings
from school_api.core.error_handlers import register_exception_handlers
from school_api.core.responses import success_response
from school_api.db import Base, engine
from school_api.metrics import flush_cache_metrics
from school_api.routers import (
    academic_year,
    exam,
    fee_category,
    fee_discount,
    fee_payment,
    fee_structure,
    grade_scale,
    marks,
    result,
    school,
    school_class,
    student,
    student_fee,
    subject,
)
from school_api.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    Base.metadata.create_all(bind=engine)
    start_scheduler()
    yield
    stop_scheduler()
    flush_cache_metrics()


app = FastAPI(title=settings.app_name, version='0.1.0', lifespan=lifespan)
register_exception_handlers(app)


@app.middleware('http')
async def slow_request_logger(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000.0
    if duration_ms >= settings.metrics_slow_ms:
        logging.getLogger('school_api.request').info(
            'request_slow path=%s method=%s status_code=%s duration_ms=%.2f',
            request.url.path,
            request.method,
            response.status_code,
            duration_ms,
        )
    return response


# Nested /api/exam/* routers go before the exam router so their literal segments win.
app.include_router(school.router)
app.include_router(academic_year.router)
app.include_router(school_class.router)
app.include_router(subject.router)
app.include_router(student.router)
app.include_router(grade_scale.router)
app.include_router(marks.router)
app.include_router(result.router)
app.include_router(exam.router)
app.include_router(fee_category.router)
app.include_router(fee_structure.router)
app.include_router(fee_discount.router)
app.include_router(student_fee.router)
app.include_router(fee_payment.router)


@app.get('/health')
def health():
    return success_response('ok', {'app': settings.app_name, 'env': settings.app_env})
