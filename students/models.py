from django.db import models
from subjects.models import Subject
from exams.models import Exam

# Create your models here.

class Student(models.Model):
    name = models.CharField(max_length=128, blank=True)
    # relations à sens unique: pas de collection inverse sur Subject/Exam,
    # "qui est inscrit à X" passe par une requête (voir store.py)
    enrolled_subjects = models.ManyToManyField(Subject, blank=True, related_name="+")
    enrolled_exams = models.ManyToManyField(Exam, blank=True, related_name="+")

    class Meta:
        ordering = ["name", "id"]

    def __str__(self):
        return f"{self.name or '-'} [{self.id}]"
