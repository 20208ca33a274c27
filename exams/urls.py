from rest_framework.routers import DefaultRouter
from .views import ExamViewSet

router = DefaultRouter()
router.register(r"exams", ExamViewSet, basename="exams")
urlpatterns = router.urls
