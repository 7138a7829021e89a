import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('routes', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('reference_number', models.CharField(max_length=50, unique=True)),
                ('pickup_latitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('pickup_longitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('dropoff_latitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('dropoff_longitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('CONFIRMED', 'Confirmed'), ('IN_PROGRESS', 'In Progress'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled'), ('NO_SHOW', 'No Show')], default='PENDING', max_length=20)),
                ('scheduled_pickup_time', models.DateTimeField()),
                ('estimated_dropoff_time', models.DateTimeField(blank=True, null=True)),
                ('actual_pickup_time', models.DateTimeField(blank=True, null=True)),
                ('actual_dropoff_time', models.DateTimeField(blank=True, null=True)),
                ('passenger_count', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(10)])),
                ('fare_amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('distance_km', models.DecimalField(decimal_places=2, max_digits=10)),
                ('special_instructions', models.CharField(blank=True, max_length=500, null=True)),
                ('rider_rating', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('driver_rating', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('rider_feedback', models.CharField(blank=True, max_length=1000, null=True)),
                ('driver_feedback', models.CharField(blank=True, max_length=1000, null=True)),
                ('cancellation_reason', models.CharField(blank=True, max_length=500, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('confirmed_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cancelled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='cancelled_bookings', to=settings.AUTH_USER_MODEL)),
                ('dropoff_stop', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dropoff_bookings', to='routes.virtualstop')),
                ('pickup_stop', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pickup_bookings', to='routes.virtualstop')),
                ('rider', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to=settings.AUTH_USER_MODEL)),
                ('route', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='routes.route')),
            ],
            options={
                'db_table': 'bookings',
                'ordering': ['-scheduled_pickup_time'],
                'indexes': [
                    models.Index(fields=['rider', 'status'], name='idx_booking_rider_status'),
                    models.Index(fields=['route', 'status'], name='idx_booking_route_status'),
                    models.Index(fields=['route', 'scheduled_pickup_time'], name='idx_booking_route_sched'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('passenger_count__gte', 1), ('passenger_count__lte', 10)), name='chk_passenger_count'),
                    models.CheckConstraint(condition=models.Q(('fare_amount__gte', 0)), name='chk_fare_amount'),
                    models.CheckConstraint(condition=models.Q(('rider_rating__isnull', True), models.Q(('rider_rating__gte', 1), ('rider_rating__lte', 5)), _connector='OR'), name='chk_rider_rating'),
                    models.CheckConstraint(condition=models.Q(('driver_rating__isnull', True), models.Q(('driver_rating__gte', 1), ('driver_rating__lte', 5)), _connector='OR'), name='chk_driver_rating'),
                    models.CheckConstraint(condition=models.Q(('status__in', ['PENDING', 'CONFIRMED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED', 'NO_SHOW'])), name='chk_booking_status'),
                ],
            },
        ),
    ]
