"""
Tests for the shared core: health endpoint, domain error mapping, CRUD base.
"""
from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APITestCase

from .exceptions import Conflict, NotFound, api_exception_handler
from .services import CrudService


class HealthTestCase(APITestCase):

    def test_health(self):
        res = self.client.get("/api/health/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data, {"status": "ok"})


class ExceptionHandlerTestCase(SimpleTestCase):

    def test_not_found(self):
        res = api_exception_handler(NotFound("Student not found"), {})
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data, {"detail": "Student not found"})

    def test_conflict_default_detail(self):
        res = api_exception_handler(Conflict(), {})
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data, {"detail": "Conflict."})

    def test_other_errors_use_drf_handler(self):
        res = api_exception_handler(ValidationError({"name": ["required"]}), {})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("name", res.data)


class CrudServiceTestCase(SimpleTestCase):

    def test_base_cannot_be_instantiated(self):
        with self.assertRaises(TypeError):
            CrudService()

    def test_subclass_must_implement_update(self):
        class CreateOnly(CrudService):
            def create(self, data):
                return data

        with self.assertRaises(TypeError):
            CreateOnly()

    def test_complete_subclass_instantiates(self):
        class Complete(CrudService):
            def create(self, data):
                return data

            def update(self, pk, data):
                return data

        self.assertEqual(Complete().create({"name": "x"}), {"name": "x"})
