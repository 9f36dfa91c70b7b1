"""Quality & compliance API endpoints."""
from typing import List, Optional

from fastapi import APIRouter, status

from app.api.deps import DB, CurrentActor, ExpectedVersion
from app.schemas.base import ApiResponse
from app.schemas.quality import (
    InspectionCreate,
    InspectionResponse,
    TemperatureLogCreate,
    TemperatureLogResponse,
    SampleCreate,
    SampleResultUpdate,
    SampleResponse,
    RejectionCreate,
    RejectionResponse,
    ComplianceCheckCreate,
    ComplianceToggle,
    ComplianceCheckResponse,
    ComplianceDocCreate,
    ComplianceDocResponse,
)
from app.services.quality_service import QualityService

router = APIRouter()


# ==================== INSPECTIONS ====================

@router.get("/inspections", response_model=ApiResponse[List[InspectionResponse]])
async def list_inspections(db: DB, status: Optional[str] = None):
    inspections = await QualityService(db).get_inspections(status=status)
    return ApiResponse(data=[InspectionResponse.model_validate(i) for i in inspections])


@router.post("/inspections", response_model=ApiResponse[InspectionResponse], status_code=status.HTTP_201_CREATED)
async def create_inspection(data: InspectionCreate, db: DB, actor: CurrentActor):
    """Record an inspection; score and status are computed from the counts."""
    inspection = await QualityService(db).create_inspection(
        batch_id=data.batch_id,
        product_name=data.product_name,
        items_inspected=data.items_inspected,
        defects_found=data.defects_found,
        actor=actor,
    )
    return ApiResponse(data=InspectionResponse.model_validate(inspection))


@router.get("/inspections/{inspection_id}", response_model=ApiResponse[InspectionResponse])
async def get_inspection(inspection_id: str, db: DB):
    inspection = await QualityService(db).get_inspection(inspection_id)
    return ApiResponse(data=InspectionResponse.model_validate(inspection))


# ==================== TEMPERATURE ====================

@router.get("/temperature-logs", response_model=ApiResponse[List[TemperatureLogResponse]])
async def list_temperature_logs(db: DB, zone: Optional[str] = None):
    logs = await QualityService(db).get_temperature_logs(zone=zone)
    return ApiResponse(data=[TemperatureLogResponse.model_validate(log) for log in logs])


@router.post(
    "/temperature-logs",
    response_model=ApiResponse[TemperatureLogResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_temperature_log(data: TemperatureLogCreate, db: DB, actor: CurrentActor):
    log = await QualityService(db).create_temperature_log(
        zone=data.zone, temperature=data.temperature, humidity=data.humidity, actor=actor
    )
    return ApiResponse(data=TemperatureLogResponse.model_validate(log))


# ==================== SAMPLES ====================

@router.get("/samples", response_model=ApiResponse[List[SampleResponse]])
async def list_samples(db: DB, result: Optional[str] = None):
    samples = await QualityService(db).get_samples(result=result)
    return ApiResponse(data=[SampleResponse.model_validate(s) for s in samples])


@router.post("/samples", response_model=ApiResponse[SampleResponse], status_code=status.HTTP_201_CREATED)
async def create_sample(data: SampleCreate, db: DB, actor: CurrentActor):
    sample = await QualityService(db).create_sample(
        batch_id=data.batch_id, product_name=data.product_name, test_type=data.test_type, actor=actor
    )
    return ApiResponse(data=SampleResponse.model_validate(sample))


@router.put("/samples/{sample_id}/update", response_model=ApiResponse[SampleResponse])
async def update_sample_result(
    sample_id: str,
    data: SampleResultUpdate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    """pending -> pass | fail"""
    sample = await QualityService(db).update_sample_result(
        sample_id, result=data.result, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=SampleResponse.model_validate(sample))


# ==================== REJECTIONS ====================

@router.get("/rejections", response_model=ApiResponse[List[RejectionResponse]])
async def list_rejections(db: DB, severity: Optional[str] = None):
    rejections = await QualityService(db).get_rejections(severity=severity)
    return ApiResponse(data=[RejectionResponse.model_validate(r) for r in rejections])


@router.post("/rejections", response_model=ApiResponse[RejectionResponse], status_code=status.HTTP_201_CREATED)
async def log_rejection(data: RejectionCreate, db: DB, actor: CurrentActor):
    rejection = await QualityService(db).log_rejection(
        batch_id=data.batch_id,
        product_name=data.product_name,
        reason=data.reason,
        items=data.items,
        severity=data.severity,
        actor=actor,
    )
    return ApiResponse(data=RejectionResponse.model_validate(rejection))


# ==================== COMPLIANCE ====================

@router.get("/checks", response_model=ApiResponse[List[ComplianceCheckResponse]])
async def list_compliance_checks(db: DB):
    checks = await QualityService(db).get_compliance_checks()
    return ApiResponse(data=[ComplianceCheckResponse.model_validate(c) for c in checks])


@router.post("/checks", response_model=ApiResponse[ComplianceCheckResponse], status_code=status.HTTP_201_CREATED)
async def create_compliance_check(data: ComplianceCheckCreate, db: DB, actor: CurrentActor):
    check = await QualityService(db).create_compliance_check(title=data.title, actor=actor, category=data.category)
    return ApiResponse(data=ComplianceCheckResponse.model_validate(check))


@router.put("/checks/{check_id}", response_model=ApiResponse[ComplianceCheckResponse])
async def toggle_compliance_check(
    check_id: str,
    data: ComplianceToggle,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    check = await QualityService(db).toggle_check(
        check_id, completed=data.completed, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=ComplianceCheckResponse.model_validate(check))


@router.get("/compliance-docs", response_model=ApiResponse[List[ComplianceDocResponse]])
async def list_compliance_docs(db: DB, status: Optional[str] = None):
    """status is derived from expiryDate on every read."""
    docs = await QualityService(db).get_compliance_docs(status=status)
    return ApiResponse(data=[ComplianceDocResponse.model_validate(d) for d in docs])


@router.post(
    "/compliance-docs",
    response_model=ApiResponse[ComplianceDocResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_compliance_doc(data: ComplianceDocCreate, db: DB, actor: CurrentActor):
    doc = await QualityService(db).create_compliance_doc(
        name=data.name,
        doc_type=data.type,
        expiry_date=data.expiry_date,
        actor=actor,
        issued_date=data.issued_date,
    )
    return ApiResponse(data=ComplianceDocResponse.model_validate(doc))


@router.get("/compliance-docs/{doc_id}", response_model=ApiResponse[ComplianceDocResponse])
async def get_compliance_doc(doc_id: str, db: DB):
    doc = await QualityService(db).get_compliance_doc(doc_id)
    return ApiResponse(data=ComplianceDocResponse.model_validate(doc))
