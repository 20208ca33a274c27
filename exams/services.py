# exams/services.py
import logging

from django.db import IntegrityError, transaction

from core.exceptions import Conflict, NotFound
from core.services import CrudService
from subjects.models import Subject
from .models import Exam

logger = logging.getLogger(__name__)

SUBJECT_TAKEN = "Exam already exists for this subject"


def _default_store():
    from students.store import DjangoEntityStore  # évite import circulaire
    return DjangoEntityStore()


def ensure_subject_free(subject_id, exam=None, store=None):
    """
    Une seule épreuve par matière.
    Lève Conflict si une autre épreuve possède déjà `subject_id`;
    l'épreuve en cours de mise à jour (`exam`) est exclue par identité.
    """
    store = store or _default_store()
    existing = store.find_exam_by_subject(subject_id)
    if existing is not None and (exam is None or existing.pk != exam.pk):
        raise Conflict(SUBJECT_TAKEN)


def ensure_students_follow_subject(exam, subject, store=None):
    """
    Déplacer une épreuve vers une autre matière ne doit laisser aucun élève
    inscrit à l'épreuve sans être inscrit à la nouvelle matière.
    """
    store = store or _default_store()
    stranded = [
        s.pk for s in store.students_enrolled_in_exam(exam.pk)
        if subject.pk not in {x.pk for x in store.enrolled_subjects(s)}
    ]
    if stranded:
        raise Conflict(
            f"Students {sorted(stranded)} are enrolled in this exam "
            f"but not in subject {subject.pk}"
        )


class ExamService(CrudService):
    model = Exam
    not_found_message = "Exam not found"

    def __init__(self, store=None):
        self.store = store

    def queryset(self):
        return Exam.objects.select_related("subject")

    def _subject(self, subject_id):
        subject = Subject.objects.filter(pk=subject_id).first()
        if subject is None:
            raise NotFound("Subject not found")
        return subject

    @transaction.atomic
    def create(self, data):
        subject = self._subject(data["subject_id"])
        ensure_subject_free(subject.id, store=self.store)
        try:
            # deux créations concurrentes passent le garde: la contrainte tranche
            with transaction.atomic():
                exam = Exam.objects.create(name=data["name"], subject=subject)
        except IntegrityError:
            raise Conflict(SUBJECT_TAKEN)
        logger.info("Created exam %s (%s) for subject %s", exam.id, exam.name, subject.id)
        return exam

    @transaction.atomic
    def update(self, pk, data):
        exam = self.get(pk)
        fields = []
        if data.get("subject_id") is not None:
            subject = self._subject(data["subject_id"])
            ensure_subject_free(subject.id, exam=exam, store=self.store)
            if subject.id != exam.subject_id:
                ensure_students_follow_subject(exam, subject, store=self.store)
                logger.info("Exam %s moved from subject %s to %s", exam.id, exam.subject_id, subject.id)
            exam.subject = subject
            fields.append("subject")
        if data.get("name"):
            exam.name = data["name"]
            fields.append("name")
        if fields:
            try:
                with transaction.atomic():
                    exam.save(update_fields=fields)
            except IntegrityError:
                raise Conflict(SUBJECT_TAKEN)
        return exam
