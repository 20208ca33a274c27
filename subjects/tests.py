"""
Tests for the subjects app.
"""
from rest_framework import status
from rest_framework.test import APITestCase

from exams.models import Exam
from students.models import Student
from students.reconciliation import reconcile_student
from .models import Subject


class SubjectAPITestCase(APITestCase):

    def setUp(self):
        self.maths = Subject.objects.create(name="Mathematics")

    def url(self, pk=None):
        return f"/api/subjects/{pk}/" if pk else "/api/subjects/"

    def test_create_and_retrieve(self):
        res = self.client.post(self.url(), {"name": "  Physics "}, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["name"], "Physics")
        res = self.client.get(self.url(res.data["id"]))
        self.assertEqual(res.data["name"], "Physics")

    def test_create_requires_name(self):
        res = self.client.post(self.url(), {"name": ""}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        res = self.client.post(self.url(), {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_name(self):
        res = self.client.put(self.url(self.maths.id), {"name": "Maths"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.maths.refresh_from_db()
        self.assertEqual(self.maths.name, "Maths")

    def test_unknown_subject_is_404(self):
        res = self.client.get(self.url(9999))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["detail"], "Subject not found")
        res = self.client.put(self.url(9999), {"name": "x"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.delete(self.url(9999)).status_code, status.HTTP_404_NOT_FOUND)

    def test_list_and_search(self):
        Subject.objects.create(name="Physics")
        res = self.client.get(self.url())
        self.assertEqual([s["name"] for s in res.data], ["Mathematics", "Physics"])
        res = self.client.get(self.url(), {"search": "phys"})
        self.assertEqual([s["name"] for s in res.data], ["Physics"])

    def test_bulk_create(self):
        res = self.client.post(f"{self.url()}bulk/", {
            "subjects": [{"name": "Physics"}, {"name": "Chemistry"}],
        }, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(res.data), 2)
        self.assertEqual(Subject.objects.count(), 3)

    def test_bulk_create_is_all_or_nothing_on_validation(self):
        res = self.client.post(f"{self.url()}bulk/", {
            "subjects": [{"name": "Physics"}, {"name": ""}],
        }, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Subject.objects.count(), 1)

    def test_delete(self):
        res = self.client.delete(self.url(self.maths.id))
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Subject.objects.exists())

    def test_delete_subject_owning_exam_conflicts(self):
        Exam.objects.create(name="Maths final", subject=self.maths)
        res = self.client.delete(self.url(self.maths.id))
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Subject.objects.filter(id=self.maths.id).exists())

    def test_enrolled_students(self):
        ada = Student.objects.create(name="Ada")
        Student.objects.create(name="Bob")
        reconcile_student(ada.id, subject_ids=[self.maths.id])
        res = self.client.get(f"{self.url(self.maths.id)}students/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([s["name"] for s in res.data], ["Ada"])
