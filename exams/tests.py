"""
Tests for the exams app: CRUD and the one-exam-per-subject guard.
"""
from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.test import APITestCase

from core.exceptions import Conflict
from students.models import Student
from students.reconciliation import reconcile_student
from subjects.models import Subject
from .models import Exam
from .services import ExamService, ensure_subject_free


class _OneExamStore:
    """Seul find_exam_by_subject est utilisé par le garde."""

    def __init__(self, exam):
        self.exam = exam

    def find_exam_by_subject(self, subject_id):
        return self.exam if self.exam.subject_id == subject_id else None


class _BlindStore:
    """Ne voit aucune épreuve existante, comme deux requêtes concurrentes."""

    def find_exam_by_subject(self, subject_id):
        return None

    def students_enrolled_in_exam(self, exam_id):
        return []

    def enrolled_subjects(self, student):
        return set()


class SubjectGuardTestCase(SimpleTestCase):

    def setUp(self):
        self.m1 = Subject(id=1, name="Mathematics")
        self.e1 = Exam(id=10, name="Maths final", subject=self.m1)
        self.store = _OneExamStore(self.e1)

    def test_free_subject_passes(self):
        ensure_subject_free(2, store=self.store)

    def test_taken_subject_conflicts_on_create(self):
        with self.assertRaises(Conflict):
            ensure_subject_free(1, store=self.store)

    def test_exam_keeping_its_own_subject_does_not_conflict(self):
        ensure_subject_free(1, exam=Exam(id=10, name="Renamed", subject=self.m1), store=self.store)

    def test_other_exam_taking_subject_conflicts(self):
        other = Exam(id=11, name="Other", subject=Subject(id=2, name="Physics"))
        with self.assertRaises(Conflict):
            ensure_subject_free(1, exam=other, store=self.store)


class ExamAPITestCase(APITestCase):

    def setUp(self):
        self.m1 = Subject.objects.create(name="Mathematics")
        self.m2 = Subject.objects.create(name="Physics")
        self.e1 = Exam.objects.create(name="Maths final", subject=self.m1)

    def url(self, pk=None):
        return f"/api/exams/{pk}/" if pk else "/api/exams/"

    def test_create(self):
        res = self.client.post(self.url(), {"name": "Physics final", "subject_id": self.m2.id}, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["subject"], {"id": self.m2.id, "name": "Physics"})

    def test_create_second_exam_for_subject_conflicts(self):
        res = self.client.post(self.url(), {"name": "Maths retake", "subject_id": self.m1.id}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["detail"], "Exam already exists for this subject")
        self.assertEqual(Exam.objects.filter(subject=self.m1).count(), 1)
        self.assertFalse(Exam.objects.filter(name="Maths retake").exists())

    def test_create_for_unknown_subject_is_404(self):
        res = self.client.post(self.url(), {"name": "Ghost", "subject_id": 9999}, format="json")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["detail"], "Subject not found")

    def test_create_requires_name_and_subject(self):
        res = self.client.post(self.url(), {"name": ""}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("name", res.data)
        self.assertIn("subject_id", res.data)

    def test_update_with_own_subject_does_not_conflict(self):
        res = self.client.put(self.url(self.e1.id), {"name": "Maths final v2", "subject_id": self.m1.id}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["name"], "Maths final v2")

    def test_update_to_taken_subject_conflicts(self):
        e2 = Exam.objects.create(name="Physics final", subject=self.m2)
        res = self.client.patch(self.url(e2.id), {"subject_id": self.m1.id}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        e2.refresh_from_db()
        self.assertEqual(e2.subject_id, self.m2.id)

    def test_update_moves_to_free_subject(self):
        res = self.client.patch(self.url(self.e1.id), {"subject_id": self.m2.id}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["subject"]["id"], self.m2.id)

    def test_move_refused_when_enrolled_students_lack_target_subject(self):
        ada = Student.objects.create(name="Ada")
        reconcile_student(ada.id, subject_ids=[self.m1.id], exam_ids=[self.e1.id])
        res = self.client.patch(self.url(self.e1.id), {"subject_id": self.m2.id}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertIn(str(ada.id), res.data["detail"])
        self.e1.refresh_from_db()
        self.assertEqual(self.e1.subject_id, self.m1.id)
        reconcile_student(ada.id, name="Ada L.")
        subject_ids = set(ada.enrolled_subjects.values_list("id", flat=True))
        for exam in ada.enrolled_exams.all():
            self.assertIn(exam.subject_id, subject_ids)

    def test_move_allowed_when_enrolled_students_follow_target_subject(self):
        ada = Student.objects.create(name="Ada")
        reconcile_student(ada.id, subject_ids=[self.m1.id, self.m2.id], exam_ids=[self.e1.id])
        res = self.client.patch(self.url(self.e1.id), {"subject_id": self.m2.id}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["subject"]["id"], self.m2.id)

    def test_blank_name_leaves_name_unchanged(self):
        res = self.client.patch(self.url(self.e1.id), {"name": ""}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["name"], "Maths final")

    def test_unknown_exam_is_404(self):
        self.assertEqual(self.client.get(self.url(9999)).status_code, status.HTTP_404_NOT_FOUND)
        res = self.client.patch(self.url(9999), {"name": "x"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["detail"], "Exam not found")

    def test_filter_by_subject(self):
        Exam.objects.create(name="Physics final", subject=self.m2)
        res = self.client.get(self.url(), {"subject": self.m2.id})
        self.assertEqual([e["name"] for e in res.data], ["Physics final"])

    def test_delete_removes_exam_from_enrollments(self):
        ada = Student.objects.create(name="Ada")
        reconcile_student(ada.id, subject_ids=[self.m1.id], exam_ids=[self.e1.id])
        res = self.client.delete(self.url(self.e1.id))
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ada.enrolled_exams.exists())
        self.assertTrue(ada.enrolled_subjects.exists())

    def test_enrolled_students(self):
        ada = Student.objects.create(name="Ada")
        Student.objects.create(name="Bob")
        reconcile_student(ada.id, subject_ids=[self.m1.id], exam_ids=[self.e1.id])
        res = self.client.get(f"/api/exams/{self.e1.id}/students/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([s["name"] for s in res.data], ["Ada"])


class ExamServiceTestCase(APITestCase):

    def test_service_create_and_conflict(self):
        m1 = Subject.objects.create(name="Mathematics")
        service = ExamService()
        exam = service.create({"name": "Maths final", "subject_id": m1.id})
        self.assertEqual(exam.subject, m1)
        with self.assertRaises(Conflict):
            service.create({"name": "Maths retake", "subject_id": m1.id})
        self.assertEqual(Exam.objects.count(), 1)

    def test_unique_constraint_maps_to_conflict_on_create(self):
        m1 = Subject.objects.create(name="Mathematics")
        Exam.objects.create(name="Maths final", subject=m1)
        service = ExamService(store=_BlindStore())
        with self.assertRaises(Conflict) as ctx:
            service.create({"name": "Maths retake", "subject_id": m1.id})
        self.assertEqual(str(ctx.exception), "Exam already exists for this subject")
        self.assertEqual(Exam.objects.filter(subject=m1).count(), 1)

    def test_unique_constraint_maps_to_conflict_on_update(self):
        m1 = Subject.objects.create(name="Mathematics")
        m2 = Subject.objects.create(name="Physics")
        Exam.objects.create(name="Maths final", subject=m1)
        e2 = Exam.objects.create(name="Physics final", subject=m2)
        with self.assertRaises(Conflict):
            ExamService(store=_BlindStore()).update(e2.id, {"subject_id": m1.id})
        e2.refresh_from_db()
        self.assertEqual(e2.subject_id, m2.id)
