# Generated manually
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SyncReceipt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('idempotency_key', models.CharField(max_length=100)),
                ('entity_type', models.CharField(max_length=50)),
                ('action', models.CharField(choices=[('create', 'Create'), ('update', 'Update'), ('delete', 'Delete')], max_length=10)),
                ('object_id', models.CharField(blank=True, max_length=100)),
                ('status_code', models.PositiveSmallIntegerField()),
                ('response', models.JSONField(default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sync_receipts', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'sync_receipts',
                'ordering': ['-created_at'],
                'unique_together': {('user', 'idempotency_key')},
                'indexes': [models.Index(fields=['user', 'created_at'], name='sync_receipts_user_idx')],
            },
        ),
    ]
