# core/services.py
import logging
from abc import ABC, abstractmethod

from django.db import transaction

from .exceptions import NotFound

logger = logging.getLogger(__name__)


class CrudService(ABC):
    """
    Interface commune create/get/list/update/delete pour une entité.
    Chaque app fournit sa sous-classe (SubjectService, ExamService, StudentService)
    et implémente create()/update(); get/list/delete sont partagés.
    """
    model = None
    not_found_message = "Not found"

    def queryset(self):
        return self.model.objects.all()

    def get(self, pk):
        obj = self.queryset().filter(pk=pk).first()
        if obj is None:
            raise NotFound(self.not_found_message)
        return obj

    def list(self):
        return self.queryset()

    @abstractmethod
    def create(self, data):
        pass

    @abstractmethod
    def update(self, pk, data):
        pass

    @transaction.atomic
    def delete(self, pk) -> bool:
        obj = self.get(pk)
        obj.delete()
        logger.info("Deleted %s %s", self.model.__name__, pk)
        return True
