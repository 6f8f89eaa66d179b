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
            name='OP5Fault',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('fault_type', models.CharField(choices=[('Planned', 'Planned'), ('Unplanned', 'Unplanned'), ('Emergency', 'Emergency'), ('ECG Load Shedding', 'ECG Load Shedding'), ('GridCo Outages', 'GridCo Outages')], default='Unplanned', max_length=50)),
                ('specific_fault_type', models.CharField(blank=True, max_length=100)),
                ('fault_location', models.CharField(blank=True, help_text='Areas affected', max_length=255)),
                ('substation_number', models.CharField(max_length=100)),
                ('occurrence_date', models.DateTimeField()),
                ('repair_date', models.DateTimeField(blank=True, null=True)),
                ('repair_end_date', models.DateTimeField(blank=True, null=True)),
                ('restoration_date', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('resolved', 'Resolved')], default='pending', max_length=20)),
                ('affected_population_rural', models.PositiveIntegerField(default=0)),
                ('affected_population_urban', models.PositiveIntegerField(default=0)),
                ('affected_population_metro', models.PositiveIntegerField(default=0)),
                ('reason', models.TextField(blank=True)),
                ('materials_used', models.JSONField(blank=True, default=list)),
                ('outage_description', models.TextField(blank=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='op5_faults', to=settings.AUTH_USER_MODEL)),
                ('district', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='op5_faults', to='locations.district')),
                ('region', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='op5_faults', to='locations.region')),
            ],
            options={
                'db_table': 'op5_faults',
                'ordering': ['-occurrence_date'],
                'indexes': [
                    models.Index(fields=['region', 'district'], name='op5_region_idx'),
                    models.Index(fields=['occurrence_date'], name='op5_occurrence_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ControlOutage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('feeder_name', models.CharField(blank=True, max_length=200)),
                ('voltage_level', models.CharField(blank=True, max_length=20)),
                ('fault_type', models.CharField(blank=True, max_length=50)),
                ('occurrence_date', models.DateTimeField()),
                ('restoration_date', models.DateTimeField(blank=True, null=True)),
                ('load_mw', models.FloatField(default=0)),
                ('customers_affected_rural', models.PositiveIntegerField(default=0)),
                ('customers_affected_urban', models.PositiveIntegerField(default=0)),
                ('customers_affected_metro', models.PositiveIntegerField(default=0)),
                ('area_affected', models.CharField(blank=True, max_length=255)),
                ('reason', models.TextField(blank=True)),
                ('control_panel_indications', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('resolved', 'Resolved')], default='pending', max_length=20)),
                ('duration_hours', models.FloatField(blank=True, null=True)),
                ('unserved_energy_mwh', models.FloatField(default=0)),
                ('customer_interruption_duration_rural', models.FloatField(default=0)),
                ('customer_interruption_duration_urban', models.FloatField(default=0)),
                ('customer_interruption_duration_metro', models.FloatField(default=0)),
                ('customer_interruption_duration', models.FloatField(default=0)),
                ('customer_interruption_frequency', models.PositiveIntegerField(default=0)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='control_outages', to=settings.AUTH_USER_MODEL)),
                ('district', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='control_outages', to='locations.district')),
                ('region', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='control_outages', to='locations.region')),
            ],
            options={
                'db_table': 'control_outages',
                'ordering': ['-occurrence_date'],
                'indexes': [
                    models.Index(fields=['region', 'district'], name='control_region_idx'),
                    models.Index(fields=['occurrence_date'], name='control_occurrence_idx'),
                ],
            },
        ),
    ]
