from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="School",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("code", models.SlugField(max_length=64, unique=True)),
                ("address", models.TextField(blank=True)),
                ("country", models.CharField(blank=True, max_length=64)),
                ("motto", models.CharField(blank=True, max_length=255)),
            ],
        ),
        migrations.CreateModel(
            name="AcademicYear",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=32)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("is_current", models.BooleanField(default=False)),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="academic_years", to="schools.school")),
            ],
            options={
                "ordering": ["start_date", "name"],
            },
        ),
        migrations.CreateModel(
            name="GradeLevel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=64)),
                ("is_alumni", models.BooleanField(default=False)),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="grade_levels", to="schools.school")),
            ],
        ),
        migrations.CreateModel(
            name="Term",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=32)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("is_current", models.BooleanField(default=False)),
                ("academic_year", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="terms", to="schools.academicyear")),
            ],
            options={
                "ordering": ["start_date", "name"],
            },
        ),
        migrations.CreateModel(
            name="Class",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=64)),
                ("is_active", models.BooleanField(default=True)),
                ("grade_level", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="classes", to="schools.gradelevel")),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="classes", to="schools.school")),
            ],
            options={
                "verbose_name_plural": "classes",
            },
        ),
        migrations.CreateModel(
            name="Student",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=64)),
                ("last_name", models.CharField(max_length=64)),
                ("admission_number", models.CharField(max_length=64)),
                ("is_active", models.BooleanField(default=True)),
                ("klass", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="students", to="schools.class")),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="students", to="schools.school")),
            ],
        ),
        migrations.CreateModel(
            name="TermResult",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("average", models.DecimalField(decimal_places=2, max_digits=5)),
                ("rank", models.PositiveIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="term_results", to="schools.student")),
                ("term", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="results", to="schools.term")),
            ],
        ),
        migrations.CreateModel(
            name="DisciplinaryCase",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField()),
                ("occurred_on", models.DateField()),
                ("academic_year", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="disciplinary_cases", to="schools.academicyear")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="disciplinary_cases", to="schools.student")),
            ],
        ),
        migrations.CreateModel(
            name="FeeStructure",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("academic_year", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="fee_structures", to="schools.academicyear")),
                ("grade_level", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="fee_structures", to="schools.gradelevel")),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="fee_structures", to="schools.school")),
                ("term", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="fee_structures", to="schools.term")),
            ],
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("payment_date", models.DateField()),
                ("method", models.CharField(choices=[("CASH", "Cash"), ("BANK", "Bank transfer"), ("MPESA", "M-Pesa"), ("CHEQUE", "Cheque")], default="CASH", max_length=16)),
                ("reference_number", models.CharField(blank=True, max_length=64)),
                ("receipt_number", models.CharField(blank=True, max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("academic_year", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="schools.academicyear")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="schools.student")),
                ("term", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="payments", to="schools.term")),
            ],
        ),
        migrations.CreateModel(
            name="ArrearsCarryForward",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("from_year", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="carried_out", to="schools.academicyear")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="carry_forwards", to="schools.student")),
                ("to_year", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="carried_in", to="schools.academicyear")),
            ],
        ),
        migrations.AddConstraint(
            model_name="academicyear",
            constraint=models.UniqueConstraint(fields=("school", "name"), name="academicyear_school_name_uniq"),
        ),
        migrations.AddConstraint(
            model_name="gradelevel",
            constraint=models.UniqueConstraint(fields=("school", "name"), name="gradelevel_school_name_uniq"),
        ),
        migrations.AddConstraint(
            model_name="class",
            constraint=models.UniqueConstraint(fields=("school", "name"), name="class_school_name_uniq"),
        ),
        migrations.AddConstraint(
            model_name="student",
            constraint=models.UniqueConstraint(fields=("school", "admission_number"), name="student_school_admission_uniq"),
        ),
        migrations.AddIndex(
            model_name="termresult",
            index=models.Index(fields=["student", "term"], name="termresult_student_term_idx"),
        ),
        migrations.AddConstraint(
            model_name="arrearscarryforward",
            constraint=models.UniqueConstraint(fields=("student", "from_year"), name="carryforward_student_year_uniq"),
        ),
    ]
