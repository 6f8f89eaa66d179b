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
            name='LoadMonitoringRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('date', models.DateField()),
                ('time', models.TimeField(blank=True, null=True)),
                ('substation_name', models.CharField(blank=True, max_length=200)),
                ('substation_number', models.CharField(max_length=100)),
                ('location', models.CharField(blank=True, max_length=255)),
                ('gps_location', models.CharField(blank=True, max_length=100)),
                ('rating', models.FloatField(help_text='Transformer rating in kVA')),
                ('peak_load_status', models.CharField(choices=[('day', 'Day'), ('night', 'Night')], default='day', max_length=10)),
                ('feeder_legs', models.JSONField(blank=True, default=list)),
                ('rated_load', models.FloatField(default=0)),
                ('red_phase_bulk_load', models.FloatField(default=0)),
                ('yellow_phase_bulk_load', models.FloatField(default=0)),
                ('blue_phase_bulk_load', models.FloatField(default=0)),
                ('average_current', models.FloatField(default=0)),
                ('percentage_load', models.FloatField(default=0)),
                ('ten_percent_full_load_neutral', models.FloatField(default=0)),
                ('calculated_neutral', models.FloatField(default=0)),
                ('load_status', models.CharField(choices=[('OKAY', 'Okay'), ('Action Required', 'Action Required'), ('OVERLOAD', 'Overload')], default='OKAY', max_length=20)),
                ('imbalance_percentage', models.FloatField(default=0)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='load_records', to=settings.AUTH_USER_MODEL)),
                ('district', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='load_records', to='locations.district')),
                ('region', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='load_records', to='locations.region')),
            ],
            options={
                'db_table': 'load_monitoring',
                'ordering': ['-date', '-time', '-created_at'],
                'indexes': [
                    models.Index(fields=['region', 'district'], name='load_region_idx'),
                    models.Index(fields=['date'], name='load_date_idx'),
                    models.Index(fields=['load_status'], name='load_status_idx'),
                ],
            },
        ),
    ]
