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
            name='SystemSchedule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('system_date', models.DateField(unique=True)),
                ('is_locked', models.BooleanField(default=False)),
                ('admin_action', models.CharField(choices=[('pending', 'Pending'), ('keep_prices', 'Keep Prices'), ('price_change', 'Price Change')], default='pending', max_length=20)),
                ('price_change_status', models.CharField(blank=True, choices=[('pending', 'Pending'), ('cancelled', 'Cancelled'), ('approved', 'Approved')], max_length=20, null=True)),
                ('lockout_time', models.DateTimeField(blank=True, null=True)),
                ('admin_action_time', models.DateTimeField(blank=True, null=True)),
                ('price_change_action_time', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('admin_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='system_schedule_actions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'system_schedule',
                'ordering': ['-system_date'],
            },
        ),
        migrations.CreateModel(
            name='SystemTracking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('scheduled', 'Scheduled'), ('active', 'Active'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='scheduled', max_length=20)),
                ('action', models.CharField(choices=[('system_down', 'System Down')], default='system_down', max_length=30)),
                ('scheduled_at', models.DateTimeField(db_index=True)),
                ('executed_at', models.DateTimeField(blank=True, null=True)),
                ('description', models.TextField(blank=True, default='')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'system_tracking',
                'ordering': ['scheduled_at'],
                'indexes': [
                    models.Index(fields=['action', 'status', 'scheduled_at'], name='system_tracking_due_idx'),
                ],
            },
        ),
    ]
