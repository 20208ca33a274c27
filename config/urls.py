from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),

    # API
    path("api/", include("core.urls")),
    path("api/", include("subjects.urls")),
    path("api/", include("exams.urls")),
    path("api/", include("students.urls")),
]
