import django.db.models.functions.text
from django.db import migrations, models


def lowercase_parent_emails(apps, schema_editor):
    ParentAccount = apps.get_model("enrollment", "ParentAccount")
    ParentAccount.objects.update(email=django.db.models.functions.text.Lower("email"))


class Migration(migrations.Migration):

    dependencies = [
        ("enrollment", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(lowercase_parent_emails, migrations.RunPython.noop),
        migrations.AddConstraint(
            model_name="parentaccount",
            constraint=models.UniqueConstraint(
                django.db.models.functions.text.Lower("email"),
                name="parent_email_ci_unique",
            ),
        ),
        migrations.AddField(
            model_name="course",
            name="min_age",
            field=models.PositiveSmallIntegerField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="course",
            name="max_age",
            field=models.PositiveSmallIntegerField(blank=True, null=True),
        ),
        migrations.AddConstraint(
            model_name="course",
            constraint=models.CheckConstraint(
                condition=models.Q(
                    ("min_age__isnull", True),
                    ("max_age__isnull", True),
                    ("max_age__gte", models.F("min_age")),
                    _connector="OR",
                ),
                name="course_age_range_ordered",
            ),
        ),
    ]
