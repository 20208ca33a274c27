# students/serializers.py
from rest_framework import serializers
from subjects.serializers import SubjectSerializer
from exams.serializers import ExamSerializer
from .models import Student

class StudentSerializer(serializers.ModelSerializer):
    enrolled_subjects = SubjectSerializer(many=True, read_only=True)
    enrolled_exams = ExamSerializer(many=True, read_only=True)

    class Meta:
        model = Student
        fields = ["id", "name", "enrolled_subjects", "enrolled_exams"]

class EntityRefField(serializers.Field):
    """Référence vers une matière/épreuve: 5, "5" ou {"id": 5}."""
    default_error_messages = {
        "invalid": "Expected an id or an object with an 'id' key.",
    }

    def to_internal_value(self, data):
        if isinstance(data, dict):
            data = data.get("id")
        if isinstance(data, bool):
            self.fail("invalid")
        try:
            value = int(data)
        except (TypeError, ValueError):
            self.fail("invalid")
        if value < 1:
            self.fail("invalid")
        return value

    def to_representation(self, value):
        return value

class StudentWriteSerializer(serializers.Serializer):
    """
    Body (tous les champs optionnels):
    {
      "name": "Ada",
      "enrolled_subjects": [1, {"id": 2}],
      "enrolled_exams": [{"id": 7}]
    }
    Les inscriptions s'ajoutent à l'existant; rien n'est jamais retiré.
    """
    name = serializers.CharField(max_length=128, required=False, allow_blank=True, allow_null=True)
    enrolled_subjects = serializers.ListField(child=EntityRefField(), required=False, allow_null=True)
    enrolled_exams = serializers.ListField(child=EntityRefField(), required=False, allow_null=True)

class RejectedExamSerializer(serializers.Serializer):
    exam_id = serializers.IntegerField()
    exam_name = serializers.CharField()
    subject_id = serializers.IntegerField()
    subject_name = serializers.CharField()

class ReconciliationOutcomeSerializer(serializers.Serializer):
    student = StudentSerializer()
    not_found_subject_ids = serializers.ListField(child=serializers.IntegerField())
    not_found_exam_ids = serializers.ListField(child=serializers.IntegerField())
    rejected_exams = RejectedExamSerializer(source="rejections", many=True)
    # rendu texte uniquement ici, à la frontière de présentation
    message = serializers.CharField(allow_null=True)
