"""Service for inspections, temperature logs, samples, rejections and compliance."""
import logging
from datetime import date
from typing import List, Optional
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.models.quality import (
    QCInspection,
    TemperatureLog,
    SampleTest,
    QCRejection,
    ComplianceCheck,
    ComplianceDoc,
)
from app.services.audit_service import AuditService
from app.services.common import check_version, generate_number, get_or_404
from app.services.state_machine import SampleResult, validate_transition


logger = logging.getLogger(__name__)


class QualityService:
    """Quality & compliance tracker."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    # ==================== INSPECTIONS ====================

    async def get_inspections(self, status: Optional[str] = None) -> List[QCInspection]:
        result = await self.db.execute(select(QCInspection).order_by(QCInspection.timestamp.desc()))
        inspections = list(result.scalars().all())
        # status is derived, so it is filtered after loading
        if status:
            inspections = [i for i in inspections if i.status == status]
        return inspections

    async def get_inspection(self, inspection_id: uuid.UUID) -> QCInspection:
        return await get_or_404(self.db, QCInspection, inspection_id, "Inspection")

    async def create_inspection(
        self,
        batch_id: str,
        product_name: str,
        items_inspected: int,
        defects_found: int,
        actor: str,
    ) -> QCInspection:
        if not 0 <= defects_found <= items_inspected:
            raise ValidationError(
                "defectsFound must be between 0 and itemsInspected",
                {"itemsInspected": items_inspected, "defectsFound": defects_found},
            )

        inspection = QCInspection(
            batch_id=batch_id,
            product_name=product_name,
            items_inspected=items_inspected,
            defects_found=defects_found,
            inspector=actor,
        )
        self.db.add(inspection)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="INSPECTION", entity_id=batch_id,
            new_values={"score": inspection.score, "status": inspection.status},
        )

        await self.db.commit()
        await self.db.refresh(inspection)
        logger.info(f"Inspection of {batch_id}: score {inspection.score} ({inspection.status})")
        return inspection

    # ==================== TEMPERATURE ====================

    async def get_temperature_logs(self, zone: Optional[str] = None) -> List[TemperatureLog]:
        stmt = select(TemperatureLog).order_by(TemperatureLog.timestamp.desc())
        if zone:
            stmt = stmt.where(TemperatureLog.zone == zone)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_temperature_log(
        self,
        zone: str,
        temperature: float,
        humidity: float,
        actor: str,
    ) -> TemperatureLog:
        log = TemperatureLog(zone=zone, temperature=temperature, humidity=humidity)
        self.db.add(log)
        await self.db.flush()
        if log.status != "normal":
            logger.warning(f"Temperature {log.status} in {zone}: {temperature}C / {humidity}%")
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="TEMPERATURE_LOG", entity_id=zone,
            new_values={"temperature": temperature, "humidity": humidity},
        )

        await self.db.commit()
        await self.db.refresh(log)
        return log

    # ==================== SAMPLES ====================

    async def get_samples(self, result: Optional[str] = None) -> List[SampleTest]:
        stmt = select(SampleTest).order_by(SampleTest.timestamp.desc())
        if result:
            stmt = stmt.where(SampleTest.result == result)
        rows = await self.db.execute(stmt)
        return list(rows.scalars().all())

    async def create_sample(
        self,
        batch_id: str,
        product_name: str,
        test_type: str,
        actor: str,
    ) -> SampleTest:
        sample = SampleTest(
            sample_id=await generate_number(self.db, SampleTest.sample_id, "SMP"),
            batch_id=batch_id,
            product_name=product_name,
            test_type=test_type,
            result=SampleResult.PENDING,
        )
        self.db.add(sample)
        await self.db.flush()
        await self.audit.log(actor=actor, action="CREATE", entity_type="SAMPLE", entity_id=sample.sample_id)

        await self.db.commit()
        await self.db.refresh(sample)
        return sample

    async def update_sample_result(
        self,
        sample_id: uuid.UUID,
        result: str,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> SampleTest:
        """pending -> pass | fail; the result is final."""
        sample = await get_or_404(self.db, SampleTest, sample_id, "Sample")
        check_version(sample, expected_version, "Sample")

        old_result = sample.result
        validate_transition("sample", old_result, result)
        sample.result = result
        sample.tested_by = actor
        await self.audit.log_transition(actor, "SAMPLE", sample.sample_id, old_result, result)

        await self.db.commit()
        await self.db.refresh(sample)
        return sample

    # ==================== REJECTIONS ====================

    async def get_rejections(self, severity: Optional[str] = None) -> List[QCRejection]:
        stmt = select(QCRejection).order_by(QCRejection.timestamp.desc())
        if severity:
            stmt = stmt.where(QCRejection.severity == severity)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def log_rejection(
        self,
        batch_id: str,
        product_name: str,
        reason: str,
        items: int,
        severity: str,
        actor: str,
    ) -> QCRejection:
        rejection = QCRejection(
            batch_id=batch_id,
            product_name=product_name,
            reason=reason,
            items=items,
            severity=severity,
            logged_by=actor,
        )
        self.db.add(rejection)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="REJECT", entity_type="QC_REJECTION", entity_id=batch_id,
            new_values={"items": items, "severity": severity}, details=reason,
        )

        await self.db.commit()
        await self.db.refresh(rejection)
        logger.info(f"Rejected {items} items of batch {batch_id} ({severity})")
        return rejection

    # ==================== COMPLIANCE ====================

    async def get_compliance_checks(self) -> List[ComplianceCheck]:
        result = await self.db.execute(select(ComplianceCheck).order_by(ComplianceCheck.title))
        return list(result.scalars().all())

    async def create_compliance_check(
        self,
        title: str,
        actor: str,
        category: Optional[str] = None,
    ) -> ComplianceCheck:
        check = ComplianceCheck(title=title, category=category, completed=False)
        self.db.add(check)
        await self.db.flush()
        await self.audit.log(actor=actor, action="CREATE", entity_type="COMPLIANCE_CHECK", entity_id=check.id)

        await self.db.commit()
        await self.db.refresh(check)
        return check

    async def toggle_check(
        self,
        check_id: uuid.UUID,
        completed: bool,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> ComplianceCheck:
        check = await get_or_404(self.db, ComplianceCheck, check_id, "Compliance check")
        check_version(check, expected_version, "Compliance check")

        check.completed = completed
        check.completed_by = actor if completed else None
        await self.audit.log(
            actor=actor, action="UPDATE", entity_type="COMPLIANCE_CHECK", entity_id=check.id,
            new_values={"completed": completed},
        )

        await self.db.commit()
        await self.db.refresh(check)
        return check

    async def get_compliance_docs(self, status: Optional[str] = None) -> List[ComplianceDoc]:
        result = await self.db.execute(select(ComplianceDoc).order_by(ComplianceDoc.expiry_date))
        docs = list(result.scalars().all())
        if status:
            docs = [d for d in docs if d.status == status]
        return docs

    async def create_compliance_doc(
        self,
        name: str,
        doc_type: str,
        expiry_date: date,
        actor: str,
        issued_date: Optional[date] = None,
    ) -> ComplianceDoc:
        if issued_date and expiry_date < issued_date:
            raise ValidationError("expiryDate cannot be before issuedDate")

        doc = ComplianceDoc(name=name, doc_type=doc_type, issued_date=issued_date, expiry_date=expiry_date)
        self.db.add(doc)
        await self.db.flush()
        await self.audit.log(actor=actor, action="CREATE", entity_type="COMPLIANCE_DOC", entity_id=doc.id)

        await self.db.commit()
        await self.db.refresh(doc)
        return doc

    async def get_compliance_doc(self, doc_id: uuid.UUID) -> ComplianceDoc:
        return await get_or_404(self.db, ComplianceDoc, doc_id, "Compliance document")
