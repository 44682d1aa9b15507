from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('customers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Promotion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, unique=True)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('promotion_type', models.CharField(choices=[('percentage', 'Percentage'), ('fixed_amount', 'Fixed amount'), ('fixed_price', 'Fixed price'), ('gift', 'Gift')], max_length=20)),
                ('discount_value', models.DecimalField(blank=True, decimal_places=2, help_text='Percent for PERCENTAGE, amount for FIXED_AMOUNT, unit price for FIXED_PRICE.', max_digits=14, null=True)),
                ('min_order_value', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('max_discount', models.DecimalField(blank=True, decimal_places=2, help_text='Cap on a percentage discount.', max_digits=14, null=True)),
                ('buy_quantity', models.PositiveIntegerField(blank=True, null=True)),
                ('get_quantity', models.PositiveIntegerField(blank=True, null=True)),
                ('require_same_item', models.BooleanField(default=False, help_text='Count the buy quantity per item instead of across the order.')),
                ('start_date', models.DateTimeField(blank=True, null=True)),
                ('end_date', models.DateTimeField(blank=True, null=True)),
                ('max_total_usage', models.PositiveIntegerField(blank=True, null=True)),
                ('max_usage_per_customer', models.PositiveIntegerField(blank=True, null=True)),
                ('current_total_usage', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('apply_to_all_items', models.BooleanField(default=False)),
                ('apply_to_all_categories', models.BooleanField(default=False)),
                ('apply_to_all_combos', models.BooleanField(default=False)),
                ('apply_to_all_customers', models.BooleanField(default=False)),
                ('apply_to_all_customer_groups', models.BooleanField(default=False)),
                ('apply_to_walk_in', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('applicable_categories', models.ManyToManyField(blank=True, related_name='promotions', to='catalog.category')),
                ('applicable_combos', models.ManyToManyField(blank=True, related_name='promotions', to='catalog.combo')),
                ('applicable_customer_groups', models.ManyToManyField(blank=True, related_name='promotions', to='customers.customergroup')),
                ('applicable_customers', models.ManyToManyField(blank=True, related_name='promotions', to='customers.customer')),
                ('applicable_items', models.ManyToManyField(blank=True, related_name='promotions', to='catalog.inventoryitem')),
                ('gift_items', models.ManyToManyField(blank=True, related_name='gift_promotions', to='catalog.inventoryitem')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['is_active', 'start_date', 'end_date'], name='promotions__is_acti_4e8a1b_idx'),
                    models.Index(fields=['promotion_type'], name='promotions__promoti_7c3d95_idx'),
                ],
            },
        ),
    ]
