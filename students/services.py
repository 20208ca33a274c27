# students/services.py
import logging

from django.db import transaction

from core.services import CrudService
from .models import Student
from .reconciliation import reconcile_student

logger = logging.getLogger(__name__)


class StudentService(CrudService):
    model = Student
    not_found_message = "Student not found"

    def __init__(self, store=None):
        self.store = store

    def queryset(self):
        return Student.objects.prefetch_related("enrolled_subjects", "enrolled_exams__subject")

    @transaction.atomic
    def create(self, data):
        """
        Crée l'élève puis passe ses inscriptions initiales par la réconciliation,
        pour que l'invariant matière/épreuve tienne dès la création.
        """
        student = Student.objects.create(name=data.get("name") or "")
        logger.info("Created student %s", student.id)
        return reconcile_student(
            student.id,
            subject_ids=data.get("enrolled_subjects"),
            exam_ids=data.get("enrolled_exams"),
            store=self.store,
        )

    @transaction.atomic
    def update(self, pk, data):
        return reconcile_student(
            pk,
            name=data.get("name"),
            subject_ids=data.get("enrolled_subjects"),
            exam_ids=data.get("enrolled_exams"),
            store=self.store,
        )
