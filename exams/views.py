from rest_framework import viewsets, permissions, filters, status
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework.response import Response
from rest_framework.decorators import action
from .models import Exam
from .serializers import ExamSerializer, ExamWriteSerializer
from .services import ExamService

class ExamViewSet(viewsets.ModelViewSet):
    queryset = Exam.objects.select_related("subject").all()
    serializer_class = ExamSerializer
    permission_classes = [permissions.AllowAny]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ["subject"]  # GET /api/exams/?subject=<id>
    search_fields = ["name", "subject__name"]
    lookup_value_regex = r"\d+"
    service = ExamService()

    def retrieve(self, request, pk=None):
        return Response(ExamSerializer(self.service.get(pk)).data)

    def create(self, request, *args, **kwargs):
        ser = ExamWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        exam = self.service.create(ser.validated_data)
        return Response(ExamSerializer(exam).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None, **kwargs):
        # PUT et PATCH: champs optionnels, nom vide = inchangé
        ser = ExamWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        exam = self.service.update(pk, ser.validated_data)
        return Response(ExamSerializer(exam).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        self.service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def students(self, request, pk=None):
        """Élèves inscrits à cette épreuve."""
        from students.serializers import StudentSerializer  # évite import circulaire
        from students.store import DjangoEntityStore
        exam = self.service.get(pk)
        qs = DjangoEntityStore().students_enrolled_in_exam(exam.id)
        return Response(StudentSerializer(qs, many=True).data)
