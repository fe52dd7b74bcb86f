# Generated manually
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
            name='Grievance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_email', models.EmailField(max_length=254)),
                ('subject', models.CharField(max_length=255)),
                ('description', models.TextField()),
                ('type', models.CharField(choices=[('Complaint', 'Complaint'), ('Suggestion', 'Suggestion'), ('Other', 'Other')], default='Complaint', max_length=20)),
                ('file_url', models.URLField(blank=True, max_length=1000, null=True)),
                ('file_path', models.CharField(blank=True, max_length=500, null=True)),
                ('status', models.CharField(choices=[('Open', 'Open'), ('In Review', 'In Review'), ('Resolved', 'Resolved')], default='Open', max_length=20)),
                ('seen_by_ceo', models.BooleanField(default=False)),
                ('workspace_id', models.CharField(blank=True, db_index=True, max_length=50, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='grievances', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'grievances',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['workspace_id', 'seen_by_ceo'], name='grievances_unseen_idx')],
            },
        ),
    ]
