# Generated manually
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('locations', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='VITAsset',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('serial_number', models.CharField(max_length=100, unique=True)),
                ('feeder_name', models.CharField(blank=True, max_length=200)),
                ('type_of_unit', models.CharField(choices=[('Ring Main Unit', 'Ring Main Unit'), ('Circuit Breaker', 'Circuit Breaker'), ('Load Break Switch', 'Load Break Switch'), ('Voltage Transformer', 'Voltage Transformer'), ('Other', 'Other')], default='Ring Main Unit', max_length=50)),
                ('voltage_level', models.CharField(blank=True, max_length=20)),
                ('location', models.CharField(blank=True, max_length=255)),
                ('gps_coordinates', models.CharField(blank=True, max_length=100)),
                ('status', models.CharField(choices=[('Operational', 'Operational'), ('Under Maintenance', 'Under Maintenance'), ('Faulty', 'Faulty'), ('Decommissioned', 'Decommissioned')], default='Operational', max_length=30)),
                ('protection', models.CharField(blank=True, max_length=200)),
                ('photo_url', models.TextField(blank=True)),
                ('photo', models.TextField(blank=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='vit_assets', to=settings.AUTH_USER_MODEL)),
                ('district', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='vit_assets', to='locations.district')),
                ('region', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='vit_assets', to='locations.region')),
            ],
            options={
                'db_table': 'vit_assets',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['region', 'district'], name='vit_assets_region_idx'),
                    models.Index(fields=['status'], name='vit_assets_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='VITInspection',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('inspection_date', models.DateField()),
                ('checklist', models.JSONField(blank=True, default=dict)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('requires_attention', 'Requires Attention')], default='completed', max_length=30)),
                ('remarks', models.TextField(blank=True)),
                ('photo_urls', models.JSONField(blank=True, default=list)),
                ('asset', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inspections', to='assets.vitasset')),
                ('district', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='vit_inspections', to='locations.district')),
                ('inspected_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='vit_inspections', to=settings.AUTH_USER_MODEL)),
                ('region', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='vit_inspections', to='locations.region')),
            ],
            options={
                'db_table': 'vit_inspections',
                'ordering': ['-inspection_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='OverheadLineInspection',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('feeder_name', models.CharField(max_length=200)),
                ('voltage_level', models.CharField(blank=True, max_length=20)),
                ('reference_pole', models.CharField(blank=True, max_length=100)),
                ('pole_id', models.CharField(blank=True, max_length=100)),
                ('pole_height', models.CharField(blank=True, max_length=20)),
                ('pole_type', models.CharField(blank=True, max_length=50)),
                ('gps_coordinates', models.CharField(blank=True, max_length=100)),
                ('inspection_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('in-progress', 'In Progress'), ('completed', 'Completed')], default='pending', max_length=20)),
                ('components', models.JSONField(blank=True, default=dict)),
                ('remarks', models.TextField(blank=True)),
                ('photo_url', models.TextField(blank=True)),
                ('photos', models.JSONField(blank=True, default=list)),
                ('before_photo', models.TextField(blank=True)),
                ('after_photo', models.TextField(blank=True)),
                ('district', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='overhead_inspections', to='locations.district')),
                ('inspector', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='overhead_inspections', to=settings.AUTH_USER_MODEL)),
                ('region', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='overhead_inspections', to='locations.region')),
            ],
            options={
                'db_table': 'overhead_line_inspections',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['region', 'district'], name='overhead_region_idx'),
                    models.Index(fields=['feeder_name'], name='overhead_feeder_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SubstationInspection',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('substation_name', models.CharField(blank=True, max_length=200)),
                ('substation_number', models.CharField(max_length=100)),
                ('substation_type', models.CharField(choices=[('primary', 'Primary'), ('secondary', 'Secondary')], default='secondary', max_length=20)),
                ('inspection_date', models.DateField()),
                ('items', models.JSONField(blank=True, default=dict)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('in-progress', 'In Progress'), ('completed', 'Completed')], default='completed', max_length=20)),
                ('remarks', models.TextField(blank=True)),
                ('photos', models.JSONField(blank=True, default=list)),
                ('district', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='substation_inspections', to='locations.district')),
                ('inspector', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='substation_inspections', to=settings.AUTH_USER_MODEL)),
                ('region', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='substation_inspections', to='locations.region')),
            ],
            options={
                'db_table': 'substation_inspections',
                'ordering': ['-inspection_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['region', 'district'], name='substation_region_idx'),
                ],
            },
        ),
    ]
