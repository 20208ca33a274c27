from rest_framework import viewsets, permissions, filters, status
from rest_framework.response import Response
from rest_framework.decorators import action
from .models import Subject
from .serializers import SubjectSerializer, BulkSubjectCreateSerializer
from .services import SubjectService

class SubjectViewSet(viewsets.ModelViewSet):
    queryset = Subject.objects.all()
    serializer_class = SubjectSerializer
    permission_classes = [permissions.AllowAny]
    filter_backends = [filters.SearchFilter]
    search_fields = ["name"]
    lookup_value_regex = r"\d+"
    service = SubjectService()

    def retrieve(self, request, pk=None):
        return Response(SubjectSerializer(self.service.get(pk)).data)

    def create(self, request, *args, **kwargs):
        ser = SubjectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        subject = self.service.create(ser.validated_data)
        return Response(SubjectSerializer(subject).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None, partial=False):
        subject = self.service.get(pk)
        ser = SubjectSerializer(subject, data=request.data, partial=partial)
        ser.is_valid(raise_exception=True)
        subject = self.service.update(pk, ser.validated_data)
        return Response(SubjectSerializer(subject).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        self.service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"], url_path="bulk")
    def bulk_create(self, request):
        ser = BulkSubjectCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        subjects = self.service.create_many(ser.validated_data["subjects"])
        return Response(SubjectSerializer(subjects, many=True).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"])
    def students(self, request, pk=None):
        """Élèves inscrits à cette matière (requête, pas de collection inverse)."""
        from students.serializers import StudentSerializer  # évite import circulaire
        from students.store import DjangoEntityStore
        subject = self.service.get(pk)
        qs = DjangoEntityStore().students_enrolled_in_subject(subject.id)
        return Response(StudentSerializer(qs, many=True).data)
