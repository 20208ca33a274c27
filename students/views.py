from rest_framework import viewsets, permissions, filters, status
from rest_framework.response import Response
from .models import Student
from .serializers import StudentSerializer, StudentWriteSerializer, ReconciliationOutcomeSerializer
from .services import StudentService

class StudentViewSet(viewsets.ModelViewSet):
    queryset = Student.objects.prefetch_related("enrolled_subjects", "enrolled_exams__subject").all()
    serializer_class = StudentSerializer
    permission_classes = [permissions.AllowAny]
    filter_backends = [filters.SearchFilter]
    search_fields = ["name"]
    lookup_value_regex = r"\d+"
    service = StudentService()

    def retrieve(self, request, pk=None):
        return Response(StudentSerializer(self.service.get(pk)).data)

    def _outcome_response(self, outcome, ok_status):
        # 207 dès qu'un id demandé n'a pas été résolu
        code = status.HTTP_207_MULTI_STATUS if outcome.is_partial else ok_status
        return Response(ReconciliationOutcomeSerializer(outcome).data, status=code)

    def create(self, request, *args, **kwargs):
        ser = StudentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        outcome = self.service.create(ser.validated_data)
        return self._outcome_response(outcome, status.HTTP_201_CREATED)

    def update(self, request, pk=None, **kwargs):
        ser = StudentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        outcome = self.service.update(pk, ser.validated_data)
        return self._outcome_response(outcome, status.HTTP_200_OK)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        self.service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
