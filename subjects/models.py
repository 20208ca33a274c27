from django.db import models

# Create your models here.

class Subject(models.Model):
    name = models.CharField(max_length=128)

    class Meta:
        ordering = ["name", "id"]

    def __str__(self):
        return f"{self.name} [{self.id}]"
