import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Technician',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, verbose_name='created at')),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='updated at')),
                ('name', models.CharField(max_length=100, verbose_name='name')),
                ('is_active', models.BooleanField(default=True, verbose_name='active')),
                ('user', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='technician', to=settings.AUTH_USER_MODEL, verbose_name='user')),
            ],
            options={
                'verbose_name': 'technician',
                'verbose_name_plural': 'technicians',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='TicketCounter',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, verbose_name='created at')),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='updated at')),
                ('prefix', models.CharField(max_length=16, unique=True, verbose_name='prefix')),
                ('count', models.PositiveIntegerField(default=0, verbose_name='count')),
            ],
            options={
                'verbose_name': 'ticket counter',
                'verbose_name_plural': 'ticket counters',
            },
        ),
        migrations.CreateModel(
            name='ServiceTicket',
            fields=[
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, verbose_name='created at')),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='updated at')),
                ('key', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='key')),
                ('ticket_id', models.CharField(editable=False, max_length=32, unique=True, verbose_name='ticket ID')),
                ('customer_name', models.CharField(max_length=200, verbose_name='customer name')),
                ('phone', models.CharField(max_length=32, verbose_name='phone')),
                ('address', models.CharField(blank=True, max_length=255, verbose_name='address')),
                ('city', models.CharField(blank=True, max_length=100, verbose_name='city')),
                ('product_category', models.CharField(max_length=100, verbose_name='product category')),
                ('product_model', models.CharField(blank=True, max_length=200, verbose_name='product model')),
                ('serial_number', models.CharField(blank=True, max_length=100, verbose_name='serial number')),
                ('warranty_status', models.BooleanField(default=False, verbose_name='under warranty')),
                ('service_type', models.CharField(choices=[('Installation', 'Installation'), ('Product Demo', 'Product Demo'), ('Service - Paid', 'Service - Paid'), ('Service - Warranty', 'Service - Warranty')], default='Service - Paid', max_length=32, verbose_name='service type')),
                ('issue_description', models.TextField(blank=True, verbose_name='issue description')),
                ('urgency', models.CharField(choices=[('Low', 'Low'), ('Medium', 'Medium'), ('High', 'High')], default='Medium', max_length=10, verbose_name='urgency')),
                ('status', models.CharField(choices=[('New', 'New'), ('Assigned', 'Assigned'), ('In Progress', 'In Progress'), ('Completed', 'Completed'), ('Closed', 'Closed')], default='New', max_length=20, verbose_name='status')),
                ('scheduled_date', models.DateField(blank=True, null=True, verbose_name='scheduled date')),
                ('notes', models.TextField(blank=True, verbose_name='notes')),
                ('service_charge', models.DecimalField(decimal_places=2, default=0, max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='service charge')),
                ('parts_charge', models.DecimalField(decimal_places=2, default=0, max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='parts charge')),
                ('commission', models.DecimalField(decimal_places=2, default=0, max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='commission')),
                ('feedback_rating', models.PositiveSmallIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)], verbose_name='feedback rating')),
                ('customer_signature', models.CharField(blank=True, max_length=500, verbose_name='customer signature')),
                ('photos', models.JSONField(blank=True, default=list, verbose_name='photos')),
                ('technician', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tickets', to='tickets.technician', verbose_name='technician')),
            ],
            options={
                'verbose_name': 'service ticket',
                'verbose_name_plural': 'service tickets',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'urgency'], name='ticket_status_urgency_idx'),
                    models.Index(fields=['-created_at'], name='ticket_created_idx'),
                ],
            },
        ),
    ]
