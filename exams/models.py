from django.db import models
from subjects.models import Subject

# Create your models here.

class Exam(models.Model):
    name = models.CharField(max_length=128)
    # une seule épreuve par matière
    subject = models.OneToOneField(Subject, on_delete=models.PROTECT, related_name="exam")

    class Meta:
        ordering = ["subject__name", "id"]

    def __str__(self):
        return f"{self.name} [{self.id}]"
