from decimal import Decimal
import django.core.validators
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
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('description', models.TextField(blank=True)),
                ('produce_type', models.CharField(blank=True, help_text='e.g. fruit, vegetable', max_length=50)),
                ('price_kilo', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('price_pc', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('price_tali', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('archived', models.BooleanField(db_index=True, default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'products',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Stock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(choices=[('Kilo', 'Kilo'), ('Pc', 'Piece'), ('Tali', 'Tali')], max_length=10)),
                ('quantity', models.DecimalField(decimal_places=2, default=Decimal('0'), help_text='Quantity remaining (not yet sold)', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('sold_quantity', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=10)),
                ('pending_order_qty', models.DecimalField(decimal_places=2, default=Decimal('0'), help_text='Quantity reserved by orders awaiting approval', max_digits=10)),
                ('initial_quantity', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=10)),
                ('status', models.CharField(blank=True, choices=[('partial', 'Partially Sold'), ('sold', 'Sold'), ('removed', 'Removed')], max_length=20, null=True)),
                ('removed_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('last_customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='purchased_stocks', to=settings.AUTH_USER_MODEL)),
                ('member', models.ForeignKey(limit_choices_to={'type': 'member'}, on_delete=django.db.models.deletion.PROTECT, related_name='stocks', to=settings.AUTH_USER_MODEL)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stocks', to='inventory.product')),
            ],
            options={
                'db_table': 'stocks',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['product', 'category'], name='stocks_product_category_idx'),
                    models.Index(fields=['member', 'status'], name='stocks_member_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockTrail',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(choices=[('Kilo', 'Kilo'), ('Pc', 'Piece'), ('Tali', 'Tali')], max_length=10)),
                ('action_type', models.CharField(choices=[('created', 'Created'), ('updated', 'Updated'), ('sale', 'Sale'), ('completed', 'Completed'), ('reversal', 'Reversal'), ('removed', 'Removed'), ('restored', 'Restored'), ('status_change', 'Status Change')], db_index=True, max_length=20)),
                ('old_quantity', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('new_quantity', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('notes', models.TextField(blank=True)),
                ('performed_by_type', models.CharField(blank=True, max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('member', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stock_trails', to=settings.AUTH_USER_MODEL)),
                ('performed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='performed_stock_trails', to=settings.AUTH_USER_MODEL)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stock_trails', to='inventory.product')),
                ('stock', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trails', to='inventory.stock')),
            ],
            options={
                'db_table': 'stock_trails',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['stock', 'action_type'], name='stock_trails_stock_action_idx'),
                    models.Index(fields=['product', 'created_at'], name='stock_trails_product_idx'),
                ],
            },
        ),
    ]
