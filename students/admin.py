from django.contrib import admin
from .models import Student
# Register your models here.

@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ("id", "name")
    search_fields = ("name",)
    # lecture seule: les inscriptions ne changent que via la réconciliation
    readonly_fields = ("enrolled_subjects", "enrolled_exams")
