from django.contrib import admin
from .models import Exam
# Register your models here.

@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "subject")
    list_filter = ("subject",)
    search_fields = ("name", "subject__name")
