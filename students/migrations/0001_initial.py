from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("subjects", "0001_initial"),
        ("exams", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Student",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(blank=True, max_length=128)),
                ("enrolled_exams", models.ManyToManyField(blank=True, related_name="+", to="exams.exam")),
                ("enrolled_subjects", models.ManyToManyField(blank=True, related_name="+", to="subjects.subject")),
            ],
            options={
                "ordering": ["name", "id"],
            },
        ),
    ]
