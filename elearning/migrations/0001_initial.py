import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Course",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(help_text="Title shown in the catalogue and on the checkout page", max_length=200, verbose_name="Course Title")),
                ("subtitle", models.CharField(blank=True, max_length=255, verbose_name="Subtitle")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("category", models.CharField(blank=True, max_length=100, verbose_name="Category")),
                ("level", models.CharField(choices=[("beginner", "Beginner"), ("medium", "Medium"), ("advanced", "Advanced")], default="beginner", max_length=20, verbose_name="Level")),
                ("price", models.DecimalField(decimal_places=2, default=0, help_text="Price charged at checkout", max_digits=10, verbose_name="Price")),
                ("thumbnail", models.CharField(blank=True, max_length=500, verbose_name="Thumbnail URL")),
                ("is_published", models.BooleanField(default=False, verbose_name="Published")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("creator", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_courses", to=settings.AUTH_USER_MODEL, verbose_name="Creator")),
                ("enrolled_students", models.ManyToManyField(blank=True, help_text="Users with a completed purchase of this course", related_name="enrolled_courses", to=settings.AUTH_USER_MODEL, verbose_name="Enrolled Students")),
            ],
            options={
                "verbose_name": "Course",
                "verbose_name_plural": "Courses",
                "db_table": "elearning_course",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Lecture",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255, verbose_name="Lecture Title")),
                ("video_url", models.CharField(blank=True, max_length=500, verbose_name="Video URL")),
                ("order", models.PositiveIntegerField(default=0, help_text="Order of lectures within the course (0 = first)", verbose_name="Display Order")),
                ("is_preview_free", models.BooleanField(default=False, help_text="Viewable without purchasing the course", verbose_name="Free Preview")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lectures", to="elearning.course", verbose_name="Course")),
            ],
            options={
                "verbose_name": "Lecture",
                "verbose_name_plural": "Lectures",
                "db_table": "elearning_lecture",
                "ordering": ["course", "order", "id"],
            },
        ),
        migrations.CreateModel(
            name="CoursePurchase",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="Amount")),
                ("currency", models.CharField(default="eur", max_length=3, verbose_name="Currency")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("completed", "Completed"), ("failed", "Failed")], db_index=True, default="pending", max_length=10, verbose_name="Status")),
                ("payment_session_id", models.CharField(blank=True, help_text="Stripe Checkout Session id (cs_...)", max_length=255, null=True, unique=True, verbose_name="Payment Session ID")),
                ("payment_intent_id", models.CharField(blank=True, max_length=255, verbose_name="Payment Intent ID")),
                ("failure_reason", models.CharField(blank=True, max_length=100, verbose_name="Failure Reason")),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("entitlements_granted_at", models.DateTimeField(blank=True, help_text="Empty for a completed purchase means enrollment still has to run", null=True, verbose_name="Entitlements Granted At")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="purchases", to="elearning.course", verbose_name="Course")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="course_purchases", to=settings.AUTH_USER_MODEL, verbose_name="User")),
            ],
            options={
                "verbose_name": "Course Purchase",
                "verbose_name_plural": "Course Purchases",
                "db_table": "elearning_course_purchase",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["user", "course", "status"], name="purchase_user_course_status")],
                "constraints": [models.UniqueConstraint(condition=models.Q(("status", "completed")), fields=("user", "course"), name="unique_completed_purchase_per_user_course")],
            },
        ),
        migrations.CreateModel(
            name="CourseProgress",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("completed", models.BooleanField(default=False, verbose_name="Completed")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="progress_entries", to="elearning.course", verbose_name="Course")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="course_progress", to=settings.AUTH_USER_MODEL, verbose_name="User")),
            ],
            options={
                "verbose_name": "Course Progress",
                "verbose_name_plural": "Course Progress Entries",
                "db_table": "elearning_course_progress",
                "unique_together": {("user", "course")},
            },
        ),
        migrations.CreateModel(
            name="LectureProgress",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("viewed", models.BooleanField(default=False, verbose_name="Viewed")),
                ("viewed_at", models.DateTimeField(blank=True, null=True)),
                ("course_progress", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lecture_progress", to="elearning.courseprogress", verbose_name="Course Progress")),
                ("lecture", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="progress_entries", to="elearning.lecture", verbose_name="Lecture")),
            ],
            options={
                "verbose_name": "Lecture Progress",
                "verbose_name_plural": "Lecture Progress Entries",
                "db_table": "elearning_lecture_progress",
                "ordering": ["course_progress", "id"],
                "unique_together": {("course_progress", "lecture")},
            },
        ),
    ]
