# Generated manually
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Region',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True)),
                ('code', models.CharField(blank=True, max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'regions',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='District',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('population_rural', models.PositiveIntegerField(default=0)),
                ('population_urban', models.PositiveIntegerField(default=0)),
                ('population_metro', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('region', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='districts', to='locations.region')),
            ],
            options={
                'db_table': 'districts',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['region', 'name'], name='districts_region_name_idx')],
            },
        ),
        migrations.CreateModel(
            name='Feeder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('voltage_level', models.CharField(choices=[('11kV', '11kV'), ('33kV', '33kV'), ('0.433kV', '0.433kV')], default='11kV', max_length=20)),
                ('bsp_pss', models.CharField(blank=True, help_text='Bulk supply point / primary substation', max_length=200)),
                ('feeder_type', models.CharField(blank=True, max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('district', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='feeders', to='locations.district')),
                ('region', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='feeders', to='locations.region')),
            ],
            options={
                'db_table': 'feeders',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['region', 'name'], name='feeders_region_name_idx')],
            },
        ),
    ]
