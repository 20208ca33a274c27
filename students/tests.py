"""
Tests for the students app.

Focuses on:
- Enrollment reconciliation (subject merge, exam eligibility, outcome report)
  against an in-memory store, without a database
- Student API: create/update through reconciliation, 200 vs 207, 404
"""
from collections import Counter

from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.test import APITestCase

from core.exceptions import NotFound
from exams.models import Exam
from subjects.models import Subject
from .models import Student
from .reconciliation import (
    ExamRejection, filter_exams, merge_subjects, reconcile_student,
    render_rejection_message,
)
from .store import DjangoEntityStore, EntityStore


class InMemoryEntityStore(EntityStore):
    """EntityStore en mémoire: compte les appels pour vérifier les accès au store."""

    def __init__(self, subjects=(), exams=(), students=()):
        self.subjects = {s.pk: s for s in subjects}
        self.exams = {e.pk: e for e in exams}
        self.students = {s.pk: s for s in students}
        self.enrollments = {s.pk: (set(), set()) for s in students}
        self.calls = Counter()

    def enroll(self, student, subjects=(), exams=()):
        self.enrollments[student.pk] = (set(subjects), set(exams))

    def get_student(self, student_id):
        return self.students.get(int(student_id))

    def enrolled_subjects(self, student):
        return set(self.enrollments[student.pk][0])

    def enrolled_exams(self, student):
        return set(self.enrollments[student.pk][1])

    def find_subjects_by_id(self, ids):
        self.calls["find_subjects_by_id"] += 1
        return [self.subjects[i] for i in ids if i in self.subjects]

    def find_exams_by_id(self, ids):
        self.calls["find_exams_by_id"] += 1
        return [self.exams[i] for i in ids if i in self.exams]

    def find_exam_by_subject(self, subject_id):
        return next((e for e in self.exams.values() if e.subject_id == subject_id), None)

    def save_student(self, student, subjects, exams):
        self.calls["save_student"] += 1
        self.enrollments[student.pk] = (set(subjects), set(exams))
        return student

    def students_enrolled_in_subject(self, subject_id):
        return [s for s in self.students.values()
                if any(x.pk == subject_id for x in self.enrollments[s.pk][0])]

    def students_enrolled_in_exam(self, exam_id):
        return [s for s in self.students.values()
                if any(x.pk == exam_id for x in self.enrollments[s.pk][1])]


def ids(objs):
    return {o.pk for o in objs}


class ReconciliationTestCase(SimpleTestCase):

    def setUp(self):
        self.m1 = Subject(id=1, name="Mathematics")
        self.m2 = Subject(id=2, name="Physics")
        self.m3 = Subject(id=3, name="Chemistry")
        self.e1 = Exam(id=11, name="Maths final", subject=self.m1)
        self.e2 = Exam(id=12, name="Physics final", subject=self.m2)
        self.e3 = Exam(id=13, name="Chemistry final", subject=self.m3)
        self.s1 = Student(id=1, name="Ada")
        self.store = InMemoryEntityStore(
            subjects=[self.m1, self.m2, self.m3],
            exams=[self.e1, self.e2, self.e3],
            students=[self.s1],
        )

    def reconcile(self, **kwargs):
        return reconcile_student(self.s1.pk, store=self.store, **kwargs)

    def enrolled(self):
        subjects, exams = self.store.enrollments[self.s1.pk]
        return ids(subjects), ids(exams)

    # --- exemples de référence ---

    def test_subject_and_exam_in_same_request(self):
        outcome = self.reconcile(subject_ids=[1], exam_ids=[11])
        self.assertEqual(self.enrolled(), ({1}, {11}))
        self.assertEqual(outcome.not_found_subject_ids, [])
        self.assertEqual(outcome.not_found_exam_ids, [])
        self.assertIsNone(outcome.message)
        self.assertFalse(outcome.is_partial)

    def test_exam_for_unenrolled_subject_is_rejected(self):
        self.store.enroll(self.s1, subjects=[self.m1])
        outcome = self.reconcile(exam_ids=[12])
        self.assertEqual(self.enrolled(), ({1}, set()))
        self.assertEqual(outcome.not_found_exam_ids, [])
        self.assertEqual(outcome.rejections, [ExamRejection(12, "Physics final", 2, "Physics")])
        self.assertEqual(outcome.rejected_subjects, {self.m2})
        self.assertIn("Physics", outcome.message)
        self.assertIn("id=2", outcome.message)
        self.assertFalse(outcome.is_partial)

    def test_unknown_subject_is_reported(self):
        self.store.enroll(self.s1, subjects=[self.m1])
        outcome = self.reconcile(subject_ids=[99])
        self.assertEqual(self.enrolled(), ({1}, set()))
        self.assertEqual(outcome.not_found_subject_ids, [99])
        self.assertTrue(outcome.is_partial)

    def test_unknown_student_raises_without_touching_store(self):
        with self.assertRaises(NotFound):
            reconcile_student(404, subject_ids=[1], exam_ids=[11], store=self.store)
        self.assertEqual(self.store.calls, Counter())
        self.assertEqual(self.enrolled(), (set(), set()))

    # --- propriétés ---

    def test_reconciliation_is_idempotent(self):
        payload = dict(subject_ids=[1, 2, 99], exam_ids=[11, 13, 77])
        first = self.reconcile(**payload)
        after_first = self.enrolled()
        second = self.reconcile(**payload)
        self.assertEqual(self.enrolled(), after_first)
        self.assertEqual(first.not_found_subject_ids, second.not_found_subject_ids)
        self.assertEqual(first.not_found_exam_ids, second.not_found_exam_ids)

    def test_enrollments_never_shrink(self):
        self.store.enroll(self.s1, subjects=[self.m1, self.m2], exams=[self.e1])
        self.reconcile(subject_ids=[3], exam_ids=[])
        subjects, exams = self.enrolled()
        self.assertEqual(subjects, {1, 2, 3})
        self.assertEqual(exams, {11})
        self.reconcile(subject_ids=[], exam_ids=[12])
        self.assertEqual(self.enrolled(), ({1, 2, 3}, {11, 12}))

    def test_every_enrolled_exam_has_its_subject(self):
        self.reconcile(subject_ids=[2], exam_ids=[11, 12, 13])
        subjects, exams = self.store.enrollments[self.s1.pk]
        for exam in exams:
            self.assertIn(exam.subject_id, ids(subjects))
        self.assertEqual(ids(exams), {12})

    def test_not_found_ids_listed_once_in_request_order(self):
        outcome = self.reconcile(subject_ids=[99, 1, 98, 99, 1], exam_ids=[77, 76, 77])
        self.assertEqual(outcome.not_found_subject_ids, [99, 98])
        self.assertEqual(outcome.not_found_exam_ids, [77, 76])
        subjects, exams = self.enrolled()
        self.assertEqual(subjects, {1})
        self.assertEqual(exams, set())

    def test_ids_beyond_storage_range_are_not_found(self):
        huge = 10 ** 30
        outcome = self.reconcile(subject_ids=[huge, 1], exam_ids=[huge])
        self.assertEqual(outcome.not_found_subject_ids, [huge])
        self.assertEqual(outcome.not_found_exam_ids, [huge])
        self.assertEqual(self.enrolled(), ({1}, set()))

    def test_one_batch_fetch_per_entity_and_one_write(self):
        self.reconcile(subject_ids=[1, 2, 3], exam_ids=[11, 12])
        self.assertEqual(self.store.calls["find_subjects_by_id"], 1)
        self.assertEqual(self.store.calls["find_exams_by_id"], 1)
        self.assertEqual(self.store.calls["save_student"], 1)

    def test_empty_request_only_saves(self):
        self.store.enroll(self.s1, subjects=[self.m1], exams=[self.e1])
        outcome = self.reconcile()
        self.assertEqual(self.store.calls["find_subjects_by_id"], 0)
        self.assertEqual(self.store.calls["find_exams_by_id"], 0)
        self.assertEqual(self.store.calls["save_student"], 1)
        self.assertEqual(self.enrolled(), ({1}, {11}))
        self.assertIsNone(outcome.message)

    def test_name_overwritten_only_when_non_empty(self):
        self.reconcile(name="")
        self.assertEqual(self.s1.name, "Ada")
        self.reconcile(name="Ada Lovelace")
        self.assertEqual(self.s1.name, "Ada Lovelace")

    # --- briques ---

    def test_merge_subjects_without_request_is_noop(self):
        result = merge_subjects({self.m1}, [], self.store)
        self.assertEqual(result.merged, {self.m1})
        self.assertEqual(result.not_found, [])
        self.assertEqual(self.store.calls["find_subjects_by_id"], 0)

    def test_filter_exams_matches_subject_by_identity(self):
        # même nom, autre id: ne compte pas comme inscrit
        homonym = Subject(id=42, name="Physics")
        result = filter_exams({homonym}, set(), [12], self.store)
        self.assertEqual(result.accepted, set())
        self.assertEqual(result.rejected_subjects, {self.m2})

    def test_filter_exams_deduplicates_rejected_subjects(self):
        other = Exam(id=14, name="Physics retake", subject=self.m2)
        self.store.exams[other.pk] = other
        result = filter_exams(set(), {self.e1}, [12, 14], self.store)
        self.assertEqual(result.rejected_subjects, {self.m2})
        self.assertEqual([r.exam_id for r in result.rejections], [12, 14])
        self.assertEqual(result.merged, {self.e1})

    def test_render_rejection_message(self):
        self.assertIsNone(render_rejection_message([]))
        text = render_rejection_message([ExamRejection(12, "Physics final", 2, "Physics")])
        self.assertEqual(
            text,
            "Exam 'Physics final' (id=12) rejected: student is not enrolled in subject 'Physics' (id=2).",
        )


class StudentAPITestCase(APITestCase):

    def setUp(self):
        self.m1 = Subject.objects.create(name="Mathematics")
        self.m2 = Subject.objects.create(name="Physics")
        self.e1 = Exam.objects.create(name="Maths final", subject=self.m1)
        self.e2 = Exam.objects.create(name="Physics final", subject=self.m2)
        self.student = Student.objects.create(name="Ada")

    def url(self, pk=None):
        return f"/api/students/{pk}/" if pk else "/api/students/"

    def test_update_fully_resolved_returns_200(self):
        res = self.client.put(self.url(self.student.id), {
            "enrolled_subjects": [{"id": self.m1.id}],
            "enrolled_exams": [{"id": self.e1.id}],
        }, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([s["id"] for s in res.data["student"]["enrolled_subjects"]], [self.m1.id])
        self.assertEqual([e["id"] for e in res.data["student"]["enrolled_exams"]], [self.e1.id])
        self.assertEqual(res.data["not_found_subject_ids"], [])
        self.assertEqual(res.data["not_found_exam_ids"], [])
        self.assertIsNone(res.data["message"])

    def test_update_with_unknown_ids_returns_207(self):
        res = self.client.put(self.url(self.student.id), {
            "enrolled_subjects": [self.m1.id, 9999],
            "enrolled_exams": [8888],
        }, format="json")
        self.assertEqual(res.status_code, status.HTTP_207_MULTI_STATUS)
        self.assertEqual(res.data["not_found_subject_ids"], [9999])
        self.assertEqual(res.data["not_found_exam_ids"], [8888])
        self.assertEqual(set(self.student.enrolled_subjects.values_list("id", flat=True)), {self.m1.id})

    def test_rejected_exam_is_reported_not_enrolled(self):
        self.client.patch(self.url(self.student.id), {"enrolled_subjects": [self.m1.id]}, format="json")
        res = self.client.patch(self.url(self.student.id), {"enrolled_exams": [self.e2.id]}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIn("Physics", res.data["message"])
        self.assertEqual(res.data["rejected_exams"], [{
            "exam_id": self.e2.id, "exam_name": "Physics final",
            "subject_id": self.m2.id, "subject_name": "Physics",
        }])
        self.assertFalse(self.student.enrolled_exams.exists())

    def test_id_beyond_storage_range_returns_207(self):
        res = self.client.put(self.url(self.student.id), {
            "enrolled_subjects": [10 ** 30, self.m1.id],
        }, format="json")
        self.assertEqual(res.status_code, status.HTTP_207_MULTI_STATUS)
        self.assertEqual(res.data["not_found_subject_ids"], [10 ** 30])
        self.assertEqual(list(self.student.enrolled_subjects.values_list("id", flat=True)), [self.m1.id])

    def test_update_unknown_student_returns_404(self):
        res = self.client.put(self.url(9999), {"name": "Ghost"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["detail"], "Student not found")
        self.assertFalse(Student.objects.filter(name="Ghost").exists())

    def test_update_name_only(self):
        res = self.client.patch(self.url(self.student.id), {"name": "Ada Lovelace"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.student.refresh_from_db()
        self.assertEqual(self.student.name, "Ada Lovelace")

    def test_invalid_reference_is_400(self):
        res = self.client.put(self.url(self.student.id), {"enrolled_subjects": ["abc"]}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_runs_reconciliation(self):
        res = self.client.post(self.url(), {
            "name": "Grace",
            "enrolled_subjects": [self.m2.id],
            "enrolled_exams": [self.e1.id, self.e2.id],
        }, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        student = Student.objects.get(id=res.data["student"]["id"])
        self.assertEqual(list(student.enrolled_exams.values_list("id", flat=True)), [self.e2.id])
        self.assertIn("Mathematics", res.data["message"])

    def test_create_with_unknown_ids_returns_207(self):
        res = self.client.post(self.url(), {"name": "Grace", "enrolled_subjects": [9999]}, format="json")
        self.assertEqual(res.status_code, status.HTTP_207_MULTI_STATUS)
        self.assertEqual(res.data["not_found_subject_ids"], [9999])

    def test_retrieve_list_and_delete(self):
        res = self.client.get(self.url(self.student.id))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["name"], "Ada")

        res = self.client.get(self.url(), {"search": "ad"})
        self.assertEqual([s["id"] for s in res.data], [self.student.id])

        res = self.client.delete(self.url(self.student.id))
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        res = self.client.get(self.url(self.student.id))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)


class DjangoEntityStoreTestCase(APITestCase):

    def test_batch_lookup_omits_unknown_ids(self):
        m1 = Subject.objects.create(name="Mathematics")
        store = DjangoEntityStore()
        self.assertEqual(store.find_subjects_by_id([m1.id, 9999]), [m1])
        self.assertEqual(store.find_exams_by_id([9999]), [])

    def test_reverse_lookup_is_a_query(self):
        m1 = Subject.objects.create(name="Mathematics")
        e1 = Exam.objects.create(name="Maths final", subject=m1)
        ada = Student.objects.create(name="Ada")
        Student.objects.create(name="Bob")
        reconcile_student(ada.id, subject_ids=[m1.id], exam_ids=[e1.id])
        store = DjangoEntityStore()
        self.assertEqual(list(store.students_enrolled_in_subject(m1.id)), [ada])
        self.assertEqual(list(store.students_enrolled_in_exam(e1.id)), [ada])
