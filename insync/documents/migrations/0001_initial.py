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
            name='Document',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('type', models.CharField(choices=[('PDF', 'PDF'), ('Word', 'Word'), ('Excel', 'Excel'), ('Image', 'Image'), ('Other', 'Other')], default='Other', max_length=20)),
                ('category', models.CharField(choices=[('Legal', 'Legal'), ('Finance', 'Finance'), ('Operations', 'Operations'), ('Reports', 'Reports')], max_length=20)),
                ('url', models.URLField(max_length=1000)),
                ('storage_path', models.CharField(max_length=500)),
                ('workspace_id', models.CharField(blank=True, db_index=True, max_length=50, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='documents', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'documents',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['-created_at'], name='documents_created_idx'), models.Index(fields=['category'], name='documents_category_idx')],
            },
        ),
    ]
