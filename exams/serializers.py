from rest_framework import serializers
from subjects.serializers import SubjectSerializer
from .models import Exam

class ExamSerializer(serializers.ModelSerializer):
    subject = SubjectSerializer(read_only=True)

    class Meta:
        model = Exam
        fields = ["id", "name", "subject"]

class ExamWriteSerializer(serializers.Serializer):
    """
    Écriture: { "name": "Algebra final", "subject_id": 3 }
    - create: les deux champs sont requis
    - update: chaque champ est optionnel (name vide = inchangé)
    L'existence de la matière et l'unicité sont vérifiées par ExamService.
    """
    name = serializers.CharField(max_length=128, allow_blank=True, trim_whitespace=True)
    subject_id = serializers.IntegerField(min_value=1)

    def validate_name(self, value):
        if not value and not self.partial:
            raise serializers.ValidationError("Exam 'name' must not be empty.")
        return value
