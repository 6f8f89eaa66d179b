# Generated manually
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ('locations', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('assets', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='SubstationStatus',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('substation_number', models.CharField(max_length=100)),
                ('substation_name', models.CharField(max_length=200)),
                ('location', models.CharField(blank=True, max_length=255)),
                ('latitude', models.FloatField(blank=True, null=True)),
                ('longitude', models.FloatField(blank=True, null=True)),
                ('rating', models.CharField(blank=True, max_length=50)),
                ('transformer_type', models.CharField(default='PMT', max_length=50)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed')], default='pending', max_length=20)),
                ('inspector_name', models.CharField(blank=True, max_length=200)),
                ('transformer_conditions', models.JSONField(blank=True, default=dict)),
                ('fuse_conditions', models.JSONField(blank=True, default=dict)),
                ('earthing_conditions', models.JSONField(blank=True, default=dict)),
                ('submission_id', models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='substation_statuses', to=settings.AUTH_USER_MODEL)),
                ('district', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='substation_statuses', to='locations.district')),
                ('region', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='substation_statuses', to='locations.region')),
            ],
            options={
                'verbose_name_plural': 'substation statuses',
                'db_table': 'substation_statuses',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['region', 'district'], name='substation_status_region_idx'),
                ],
            },
        ),
    ]
