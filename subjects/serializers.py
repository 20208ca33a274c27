from rest_framework import serializers
from .models import Subject

class SubjectSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subject
        fields = ["id", "name"]

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Subject 'name' must not be empty.")
        return value

class BulkSubjectCreateSerializer(serializers.Serializer):
    """
    Création en lot:
    { "subjects": [ {"name": "Mathematics"}, {"name": "Physics"} ] }
    """
    subjects = SubjectSerializer(many=True, allow_empty=False)
