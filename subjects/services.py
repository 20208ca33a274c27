# subjects/services.py
import logging

from django.db import transaction

from core.exceptions import Conflict
from core.services import CrudService
from .models import Subject

logger = logging.getLogger(__name__)


class SubjectService(CrudService):
    model = Subject
    not_found_message = "Subject not found"

    def create(self, data):
        subject = Subject.objects.create(name=data["name"])
        logger.info("Created subject %s (%s)", subject.id, subject.name)
        return subject

    @transaction.atomic
    def create_many(self, rows):
        subjects = Subject.objects.bulk_create([Subject(name=r["name"]) for r in rows])
        logger.info("Bulk-created %d subjects", len(subjects))
        return subjects

    def update(self, pk, data):
        subject = self.get(pk)
        if data.get("name"):
            subject.name = data["name"]
            subject.save(update_fields=["name"])
        return subject

    @transaction.atomic
    def delete(self, pk) -> bool:
        # import local pour éviter le cycle subjects <-> exams
        from exams.models import Exam

        subject = self.get(pk)
        if Exam.objects.filter(subject=subject).exists():
            raise Conflict("Subject still has an exam; delete the exam first")
        return super().delete(pk)
