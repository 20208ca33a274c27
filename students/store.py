"""
Entity store: accès persistant utilisé par le moteur de réconciliation.

EntityStore est le port (interface); DjangoEntityStore l'implémente avec l'ORM.
Les recherches en lot omettent silencieusement les ids inconnus: c'est
l'appelant qui en déduit les "not found" par différence d'ensembles.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from django.db import transaction

from subjects.models import Subject
from exams.models import Exam
from .models import Student


class EntityStore(ABC):

    @abstractmethod
    def get_student(self, student_id) -> Optional[Student]:
        pass

    @abstractmethod
    def enrolled_subjects(self, student) -> set:
        pass

    @abstractmethod
    def enrolled_exams(self, student) -> set:
        pass

    @abstractmethod
    def find_subjects_by_id(self, ids: Iterable[int]) -> list:
        pass

    @abstractmethod
    def find_exams_by_id(self, ids: Iterable[int]) -> list:
        """Comme find_subjects_by_id; la matière de chaque épreuve est chargée."""
        pass

    @abstractmethod
    def find_exam_by_subject(self, subject_id) -> Optional[Exam]:
        pass

    @abstractmethod
    def save_student(self, student, subjects: set, exams: set):
        """Upsert de l'élève et de ses deux ensembles d'inscriptions."""
        pass

    @abstractmethod
    def students_enrolled_in_subject(self, subject_id):
        pass

    @abstractmethod
    def students_enrolled_in_exam(self, exam_id):
        pass


class DjangoEntityStore(EntityStore):

    def get_student(self, student_id):
        return Student.objects.filter(pk=student_id).first()

    def enrolled_subjects(self, student):
        return set(student.enrolled_subjects.all())

    def enrolled_exams(self, student):
        return set(student.enrolled_exams.select_related("subject"))

    def find_subjects_by_id(self, ids):
        return list(Subject.objects.filter(id__in=list(ids)))

    def find_exams_by_id(self, ids):
        return list(Exam.objects.select_related("subject").filter(id__in=list(ids)))

    def find_exam_by_subject(self, subject_id):
        return Exam.objects.filter(subject_id=subject_id).first()

    @transaction.atomic
    def save_student(self, student, subjects, exams):
        student.save()
        # set() = union déjà calculée par le moteur, jamais un remplacement
        student.enrolled_subjects.set(subjects)
        student.enrolled_exams.set(exams)
        return student

    def students_enrolled_in_subject(self, subject_id):
        return Student.objects.filter(enrolled_subjects__id=subject_id).distinct()

    def students_enrolled_in_exam(self, exam_id):
        return Student.objects.filter(enrolled_exams__id=exam_id).distinct()
