from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("schools", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PromotionCriteria",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=128)),
                ("description", models.TextField(blank=True)),
                ("min_grade", models.DecimalField(decimal_places=2, max_digits=5)),
                ("max_fee_balance", models.DecimalField(decimal_places=2, max_digits=12)),
                ("max_disciplinary_cases", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=False)),
                ("is_default", models.BooleanField(default=False)),
                ("priority", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="promotion_criteria", to="schools.school")),
            ],
            options={
                "verbose_name_plural": "promotion criteria",
                "ordering": ["-is_active", "-priority", "-created_at"],
            },
        ),
        migrations.CreateModel(
            name="ProgressionRuleSet",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField(default=0)),
                ("updated_by", models.CharField(blank=True, max_length=128)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("school", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="progression_rule_set", to="schools.school")),
            ],
        ),
        migrations.CreateModel(
            name="ClassProgression",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("from_class", models.CharField(max_length=64)),
                ("to_class", models.CharField(max_length=64)),
                ("order", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="class_progressions", to="schools.school")),
            ],
            options={
                "ordering": ["order", "from_class"],
            },
        ),
        migrations.CreateModel(
            name="PromotionRun",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("stage", models.CharField(choices=[("select_year", "Select academic year"), ("criteria", "Criteria"), ("preview", "Preview"), ("progression", "Class progression"), ("confirm", "Confirm"), ("results", "Results")], default="select_year", max_length=16)),
                ("overrides", models.JSONField(blank=True, default=dict)),
                ("exclusions", models.JSONField(blank=True, default=dict)),
                ("snapshot", models.JSONField(blank=True, default=dict)),
                ("snapshot_fingerprint", models.CharField(blank=True, max_length=64)),
                ("created_by", models.CharField(blank=True, max_length=128)),
                ("result", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("executed_at", models.DateTimeField(blank=True, null=True)),
                ("academic_year", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="promotion_runs", to="schools.academicyear")),
                ("criteria", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="runs", to="promotions.promotioncriteria")),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="promotion_runs", to="schools.school")),
                ("term", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="promotion_runs", to="schools.term")),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PromotionLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("student_name", models.CharField(max_length=160)),
                ("from_class", models.CharField(max_length=64)),
                ("to_class", models.CharField(blank=True, max_length=64)),
                ("from_grade", models.CharField(blank=True, max_length=64)),
                ("to_grade", models.CharField(blank=True, max_length=64)),
                ("from_year", models.CharField(blank=True, max_length=32)),
                ("to_year", models.CharField(blank=True, max_length=32)),
                ("promoted_by", models.CharField(max_length=128)),
                ("promotion_type", models.CharField(choices=[("bulk", "Bulk"), ("override", "Manual override"), ("excluded", "Excluded")], default="bulk", max_length=16)),
                ("average_grade", models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                ("outstanding_balance", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("disciplinary_cases", models.PositiveIntegerField(default=0)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("academic_year", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="promotion_logs", to="schools.academicyear")),
                ("run", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="logs", to="promotions.promotionrun")),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="promotion_logs", to="schools.school")),
                ("student", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="promotion_logs", to="schools.student")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.AddConstraint(
            model_name="classprogression",
            constraint=models.UniqueConstraint(fields=("school", "from_class"), name="progression_school_from_uniq"),
        ),
        migrations.AddIndex(
            model_name="promotionlog",
            index=models.Index(fields=["school", "created_at"], name="promolog_school_created_idx"),
        ),
        migrations.AddConstraint(
            model_name="promotionlog",
            constraint=models.UniqueConstraint(condition=models.Q(("promotion_type", "excluded"), _negated=True), fields=("student", "academic_year"), name="promotionlog_promoted_once_per_year"),
        ),
        migrations.AddConstraint(
            model_name="promotionlog",
            constraint=models.UniqueConstraint(condition=models.Q(("promotion_type", "excluded")), fields=("student", "academic_year"), name="promotionlog_excluded_once_per_year"),
        ),
    ]
